"""In-memory backends: dict-backed fakes used by unit tests and local runs."""

from __future__ import annotations

import uuid
from typing import Any

from showsync.core.exceptions import ConflictError, NotFoundError, ValidationError
from showsync.models.activity import ActivityAction, ActivityRecord
from showsync.models.discussion import Attachment, DiscussionItem, TranslationJob, UploadHandle
from showsync.models.showset import ShowSet, utc_now


class MemoryShowSetStore:
    """Dict-backed IShowSetStore with the same revision check as DynamoDB."""

    def __init__(self) -> None:
        self._items: dict[str, dict[str, Any]] = {}

    def get(self, show_set_id: str, consistent: bool = False) -> ShowSet | None:
        item = self._items.get(show_set_id)
        return ShowSet.model_validate(item) if item is not None else None

    def list(self, area: str | None = None) -> list[ShowSet]:
        return [
            ShowSet.model_validate(item)
            for key, item in sorted(self._items.items())
            if area is None or item["area"] == area
        ]

    def create(self, show_set: ShowSet) -> None:
        if show_set.show_set_id in self._items:
            raise ValidationError(f"ShowSet {show_set.show_set_id!r} already exists")
        self._items[show_set.show_set_id] = show_set.to_item()

    def replace(self, show_set: ShowSet, expected_revision: int) -> ShowSet:
        current = self._items.get(show_set.show_set_id)
        if current is None:
            raise NotFoundError("ShowSet", show_set.show_set_id)
        if current["revision"] != expected_revision:
            raise ConflictError(show_set.show_set_id, expected_revision)
        self._items[show_set.show_set_id] = show_set.to_item()
        return show_set

    def delete(self, show_set_id: str, expected_revision: int | None = None) -> None:
        current = self._items.get(show_set_id)
        if current is None:
            raise NotFoundError("ShowSet", show_set_id)
        if expected_revision is not None and current["revision"] != expected_revision:
            raise ConflictError(show_set_id, expected_revision)
        del self._items[show_set_id]


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class MemoryActivitySink:
    """List-backed IActivitySink; records keep append order."""

    def __init__(self) -> None:
        self.records: list[ActivityRecord] = []

    def append(
        self,
        show_set_id: str,
        actor_id: str,
        actor_name: str,
        action: ActivityAction,
        details: dict[str, Any],
        created_at: str | None = None,
        sequence: int = 0,
    ) -> ActivityRecord:
        record = ActivityRecord(
            activity_id=str(uuid.uuid4()),
            show_set_id=show_set_id,
            user_id=actor_id,
            user_name=actor_name,
            action=action,
            details=details,
            created_at=created_at or utc_now(),
            sequence=sequence,
        )
        self.records.append(record)
        return record

    def list_for(self, show_set_id: str) -> list[ActivityRecord]:
        return [r for r in self.records if r.show_set_id == show_set_id]

    def actions(self, show_set_id: str) -> list[ActivityAction]:
        return [r.action for r in self.list_for(show_set_id)]


class MemoryDiscussionStore:
    """Dict-backed IDiscussionStore keyed by (show_set_id, item_id)."""

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], DiscussionItem] = {}

    def put(self, item: DiscussionItem) -> None:
        self._items[(item.show_set_id, item.item_id)] = item.model_copy(deep=True)

    def get(self, show_set_id: str, item_id: str) -> DiscussionItem | None:
        return self._items.get((show_set_id, item_id))

    def list_for(self, show_set_id: str) -> list[DiscussionItem]:
        return sorted(
            (i for (sid, _), i in self._items.items() if sid == show_set_id),
            key=lambda i: i.created_at,
        )

    def add_attachment(self, show_set_id: str, item_id: str, attachment: Attachment) -> None:
        item = self._items.get((show_set_id, item_id))
        if item is None:
            raise NotFoundError("Note", item_id)
        item.attachments.append(attachment)


class MemoryTranslationQueue:
    """Records enqueued jobs in order."""

    def __init__(self) -> None:
        self.jobs: list[TranslationJob] = []

    def enqueue(self, job: TranslationJob) -> None:
        self.jobs.append(job)


class MemoryAttachmentSigner:
    """Issues fake upload URLs; every request is recorded."""

    def __init__(self, expires_in: int = 600) -> None:
        self.expires_in = expires_in
        self.requests: list[tuple[str, str, int]] = []

    def request_upload(self, key: str, mime_type: str, size: int) -> UploadHandle:
        self.requests.append((key, mime_type, size))
        return UploadHandle(
            attachment_id=key.split("/")[-2],
            url=f"memory://uploads/{key}",
            key=key,
            expires_in=self.expires_in,
        )
