"""Protocol interfaces for all ShowSync collaborators.

The workflow engine only talks to storage, audit, translation and upload
systems through these Protocols. Structural typing, no inheritance
required, easy to swap for in-memory fakes in tests.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from showsync.models.activity import ActivityAction, ActivityRecord
from showsync.models.discussion import Attachment, DiscussionItem, TranslationJob, UploadHandle
from showsync.models.showset import ShowSet


# ---------------------------------------------------------------------------
# Persistence: ShowSet Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IShowSetStore(Protocol):
    """Item store keyed by ShowSet identity with conditional full replace."""

    def get(self, show_set_id: str, consistent: bool = False) -> ShowSet | None: ...

    def list(self, area: str | None = None) -> list[ShowSet]: ...

    def create(self, show_set: ShowSet) -> None: ...

    def replace(self, show_set: ShowSet, expected_revision: int) -> ShowSet: ...

    def delete(self, show_set_id: str, expected_revision: int | None = None) -> None: ...


# ---------------------------------------------------------------------------
# Persistence: Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Activity Sink
# ---------------------------------------------------------------------------

@runtime_checkable
class IActivitySink(Protocol):
    """Append-only audit log."""

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
        """``created_at`` defaults to now; ``sequence`` orders records sharing a timestamp."""
        ...

    def list_for(self, show_set_id: str) -> list[ActivityRecord]: ...


# ---------------------------------------------------------------------------
# Discussion items (revision notes / issues)
# ---------------------------------------------------------------------------

@runtime_checkable
class IDiscussionStore(Protocol):
    """Notes and threaded issues attached to a ShowSet."""

    def put(self, item: DiscussionItem) -> None: ...

    def get(self, show_set_id: str, item_id: str) -> DiscussionItem | None: ...

    def list_for(self, show_set_id: str) -> list[DiscussionItem]: ...

    def add_attachment(self, show_set_id: str, item_id: str, attachment: Attachment) -> None: ...


# ---------------------------------------------------------------------------
# Translation pipeline
# ---------------------------------------------------------------------------

@runtime_checkable
class ITranslationQueue(Protocol):
    """Fire-and-forget outbound queue for note translation."""

    def enqueue(self, job: TranslationJob) -> None: ...


# ---------------------------------------------------------------------------
# Attachment uploads
# ---------------------------------------------------------------------------

@runtime_checkable
class IAttachmentSigner(Protocol):
    """Issues time-limited write handles scoped to one storage key."""

    def request_upload(self, key: str, mime_type: str, size: int) -> UploadHandle: ...
