"""Tests for configuration defaults and env overrides."""

from __future__ import annotations

from showsync.core.config import AppSettings, DynamoDBConfig, RedisConfig, S3Config, WorkflowConfig


def test_default_settings():
    settings = AppSettings()
    assert settings.environment == "dev"
    assert settings.log_level == "INFO"
    assert settings.workflow.variant == "review"


def test_workflow_config_defaults():
    config = WorkflowConfig()
    assert config.version_scheme == "shared"
    assert config.revision_stages == ["integrated", "inBim360", "drawing2d"]
    assert config.languages == ["en", "zh", "zh-TW"]
    assert config.upload_url_ttl == 600
    assert config.max_attachment_bytes == 50 * 1024 * 1024


def test_workflow_config_env_override(monkeypatch):
    monkeypatch.setenv("SHOWSYNC_WORKFLOW_VARIANT", "simple")
    monkeypatch.setenv("SHOWSYNC_WORKFLOW_VERSION_SCHEME", "per_stage")
    config = WorkflowConfig()
    assert config.variant == "simple"
    assert config.version_scheme == "per_stage"


def test_redis_disabled_by_default():
    config = RedisConfig()
    assert config.enabled is False
    assert config.cache_ttl == 60
    assert config.key_prefix == "showsync:"


def test_nested_groups_read_their_own_prefix(monkeypatch):
    monkeypatch.setenv("SHOWSYNC_DYNAMO_TABLE_SUFFIX", "-uat")
    monkeypatch.setenv("SHOWSYNC_S3_BUCKET", "attachments-uat")
    settings = AppSettings(dynamodb=DynamoDBConfig(), s3=S3Config())
    assert settings.dynamodb.table_suffix == "-uat"
    assert settings.s3.bucket == "attachments-uat"
