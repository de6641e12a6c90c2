"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from showsync.core.config import AppSettings
from showsync.core.protocols import (
    IActivitySink,
    IAttachmentSigner,
    IDiscussionStore,
    IShowSetStore,
    ITranslationQueue,
)
from showsync.persistence.dynamodb_backend import (
    DynamoDBActivitySink,
    DynamoDBDiscussionStore,
    DynamoDBShowSetStore,
)
from showsync.persistence.redis_backend import RedisCacheBackend
from showsync.persistence.s3_backend import S3AttachmentSigner
from showsync.persistence.sqs_backend import SQSTranslationQueue


class Persistence(NamedTuple):
    store: IShowSetStore
    activity: IActivitySink
    discussions: IDiscussionStore
    translations: ITranslationQueue
    signer: IAttachmentSigner


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings."""
    if settings is None:
        settings = AppSettings()

    ddb = settings.dynamodb
    cache = None
    if settings.redis.enabled:
        cache = RedisCacheBackend.from_config(settings.redis)

    store = DynamoDBShowSetStore(
        table_suffix=ddb.table_suffix,
        region=ddb.region,
        endpoint_url=ddb.endpoint_url,
        cache=cache,
        cache_ttl=settings.redis.cache_ttl,
    )
    activity = DynamoDBActivitySink(table_suffix=ddb.table_suffix, region=ddb.region, endpoint_url=ddb.endpoint_url)
    discussions = DynamoDBDiscussionStore(
        table_suffix=ddb.table_suffix, region=ddb.region, endpoint_url=ddb.endpoint_url,
    )

    translations = SQSTranslationQueue(
        queue_url=settings.sqs.translation_queue_url,
        region=settings.sqs.region,
        endpoint_url=settings.sqs.endpoint_url,
    )
    signer = S3AttachmentSigner(
        bucket=settings.s3.bucket,
        region=settings.s3.region,
        endpoint_url=settings.s3.endpoint_url,
        expires_in=settings.workflow.upload_url_ttl,
    )

    return Persistence(store, activity, discussions, translations, signer)
