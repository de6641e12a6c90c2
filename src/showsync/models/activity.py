"""Activity (audit) records."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActivityAction(StrEnum):
    SHOWSET_CREATED = "showset_created"
    SHOWSET_UPDATED = "showset_updated"
    SHOWSET_RENAMED = "showset_renamed"
    SHOWSET_DELETED = "showset_deleted"
    STATUS_CHANGE = "status_change"
    ASSIGNMENT = "assignment"
    VERSION_UPDATE = "version_update"  # free-text stage version label
    VERSION_BUMP = "version_bump"
    VERSION_MANUAL = "version_manual"
    CASCADE_RESET = "cascade_reset"
    UPSTREAM_REVISION = "upstream_revision"
    RECALL = "recall"
    SHOWSET_LOCKED = "showset_locked"
    SHOWSET_UNLOCKED = "showset_unlocked"
    LINK_UPDATE = "link_update"


class ActivityRecord(BaseModel):
    """Immutable audit entry emitted by every state-changing operation."""

    model_config = ConfigDict(frozen=True)

    activity_id: str
    show_set_id: str
    user_id: str
    user_name: str
    action: ActivityAction
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: str
    sequence: int = 0  # position within one committed operation


class PendingActivity(BaseModel):
    """An activity computed during planning, appended after the commit."""

    action: ActivityAction
    details: dict[str, Any] = Field(default_factory=dict)
