"""SQS backend implementing ITranslationQueue."""

from __future__ import annotations

import json

import boto3
from botocore.exceptions import ClientError

from showsync.core.exceptions import ShowSyncError
from showsync.models.discussion import TranslationJob


class SQSTranslationQueue:
    """Sends translation jobs to the translation worker's queue."""

    def __init__(self, queue_url: str, region: str = "ap-east-1",
                 endpoint_url: str | None = None) -> None:
        self._queue_url = queue_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("sqs", **kwargs)

    def enqueue(self, job: TranslationJob) -> None:
        if not self._queue_url:
            raise ShowSyncError("Translation queue URL is not configured")
        try:
            self._client.send_message(QueueUrl=self._queue_url, MessageBody=json.dumps(job.to_message()))
        except ClientError as exc:
            raise ShowSyncError(f"SQS send failed for note {job.note_id!r}: {exc}") from exc
