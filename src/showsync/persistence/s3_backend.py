"""S3 presigned-upload signer implementing IAttachmentSigner."""

from __future__ import annotations

import boto3
from botocore.exceptions import ClientError

from showsync.core.exceptions import ShowSyncError
from showsync.models.discussion import UploadHandle


class S3AttachmentSigner:
    """Issues presigned ``put_object`` URLs scoped to a single key."""

    def __init__(self, bucket: str, region: str = "ap-east-1",
                 endpoint_url: str | None = None, expires_in: int = 600) -> None:
        self._bucket = bucket
        self._expires_in = expires_in
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def request_upload(self, key: str, mime_type: str, size: int) -> UploadHandle:
        """``key`` is ``revisions/{showSetId}/{noteId}/{attachmentId}/{fileName}``."""
        try:
            url = self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": key,
                    "ContentType": mime_type,
                    "ContentLength": size,
                },
                ExpiresIn=self._expires_in,
            )
        except ClientError as exc:
            raise ShowSyncError(f"S3 presign failed for {key!r}: {exc}") from exc
        return UploadHandle(
            attachment_id=key.split("/")[-2],
            url=url,
            key=key,
            expires_in=self._expires_in,
        )
