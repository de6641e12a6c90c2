"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class WorkflowConfig(BaseSettings):
    """Stage workflow engine configuration."""

    model_config = {"env_prefix": "SHOWSYNC_WORKFLOW_"}

    variant: Literal["review", "simple"] = "review"
    version_scheme: Literal["shared", "per_stage"] = "shared"
    revision_stages: list[str] = ["integrated", "inBim360", "drawing2d"]
    languages: list[str] = ["en", "zh", "zh-TW"]
    upload_url_ttl: int = 600
    max_attachment_bytes: int = 50 * 1024 * 1024


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "SHOWSYNC_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "ap-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis read-cache configuration."""

    model_config = {"env_prefix": "SHOWSYNC_REDIS_"}

    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    key_prefix: str = "showsync:"
    cache_ttl: int = 60


class S3Config(BaseSettings):
    """S3 attachment storage configuration."""

    model_config = {"env_prefix": "SHOWSYNC_S3_"}

    bucket: str = "showsync-attachments"
    region: str = "ap-east-1"
    endpoint_url: str | None = None  # LocalStack override


class SQSConfig(BaseSettings):
    """SQS queue configuration."""

    model_config = {"env_prefix": "SHOWSYNC_SQS_"}

    region: str = "ap-east-1"
    endpoint_url: str | None = None  # LocalStack override
    translation_queue_url: str = ""


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "SHOWSYNC_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    workflow: WorkflowConfig = WorkflowConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
    sqs: SQSConfig = SQSConfig()
