"""Discussion items (revision notes and threaded issues), translation jobs, uploads."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from showsync.models.showset import Language, LocalizedString, StageName

ALLOWED_MIME_TYPES: tuple[str, ...] = (
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
)


class DiscussionKind(StrEnum):
    NOTE = "note"
    ISSUE = "issue"


class TranslationStatus(StrEnum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class IssueStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class Attachment(BaseModel):
    id: str
    file_name: str
    file_size: int
    mime_type: str
    s3_key: str
    uploaded_at: Optional[str] = None  # set once the upload is confirmed


class DiscussionItem(BaseModel):
    """A flat note or a threaded issue attached to a ShowSet.

    Threading fields (``parent_id``, ``reply_count``, ``status``) are only
    meaningful for ``kind == ISSUE``.
    """

    item_id: str
    show_set_id: str
    kind: DiscussionKind = DiscussionKind.NOTE
    stage: Optional[StageName] = None
    author_id: str
    author_name: str
    original_lang: Language
    content: LocalizedString
    translation_status: TranslationStatus = TranslationStatus.PENDING
    attachments: list[Attachment] = Field(default_factory=list)
    is_revision_note: bool = False
    parent_id: Optional[str] = None
    reply_count: int = 0
    status: Optional[IssueStatus] = None
    created_at: str
    updated_at: str


class TranslationJob(BaseModel):
    """Outbound message to the translation pipeline."""

    note_id: str
    show_set_id: str
    original_lang: Language
    original_content: str
    target_languages: list[Language]

    def to_message(self) -> dict:
        """Flat, camelCase JSON payload consumed by the translation worker."""
        return {
            "noteId": self.note_id,
            "showSetId": self.show_set_id,
            "originalLang": self.original_lang.value,
            "originalContent": self.original_content,
            "targetLanguages": [lang.value for lang in self.target_languages],
        }


class UploadHandle(BaseModel):
    """Time-limited, write-capable handle for one attachment."""

    attachment_id: str
    url: str
    key: str
    expires_in: int
