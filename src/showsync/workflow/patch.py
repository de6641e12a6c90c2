"""Typed patches and the plan an operation commits.

Every workflow operation is planned against a snapshot of the ShowSet, the
resulting ``ShowSetPatch`` is merged into a copy of that snapshot, and the copy
is written back with one conditional replace. Nothing outside the patch is
ever written, so there is no partially-applied operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from showsync.models.activity import ActivityAction, PendingActivity
from showsync.models.discussion import DiscussionItem, TranslationJob
from showsync.models.showset import (
    ShowSet,
    StageInfo,
    StageName,
    StageStatus,
    VersionHistoryEntry,
    VersionType,
)
from showsync.workflow.versions import VersionChange

LOCK_FIELDS = frozenset({
    "locked_at", "locked_by", "unlocked_at", "unlocked_by", "unlock_reason",
})
DETAIL_FIELDS = frozenset({"area", "scene", "description", "vm_list", "links"})


@dataclass
class ShowSetPatch:
    stages: dict[StageName, StageInfo] = field(default_factory=dict)
    versions: dict[VersionType, int] = field(default_factory=dict)
    history: list[VersionHistoryEntry] = field(default_factory=list)
    fields: dict[str, Any] = field(default_factory=dict)

    def set_stage(self, name: StageName, info: StageInfo) -> None:
        self.stages[name] = info

    def set_field(self, name: str, value: Any) -> None:
        if name not in LOCK_FIELDS | DETAIL_FIELDS:
            raise KeyError(f"{name!r} is not a patchable ShowSet field")
        self.fields[name] = value

    def record(self, change: VersionChange) -> None:
        self.versions[change.version_type] = change.to_version
        self.history.append(change.entry)

    def status_of(self, show_set: ShowSet, name: StageName) -> StageStatus:
        """Status of ``name`` with this patch applied."""
        if name in self.stages:
            return self.stages[name].status
        return show_set.stage(name).status

    def version_of(self, show_set: ShowSet, version_type: VersionType) -> int:
        if version_type in self.versions:
            return self.versions[version_type]
        return show_set.version_of(version_type)

    def is_empty(self) -> bool:
        return not (self.stages or self.versions or self.history or self.fields)

    def apply(self, show_set: ShowSet, timestamp: str) -> ShowSet:
        """Return a new ShowSet with the patch merged in and the revision advanced."""
        updated = show_set.model_copy(deep=True)
        for name, info in self.stages.items():
            updated.stages[name] = info
        updated.versions = {**updated.versions, **self.versions}
        updated.version_history = [*updated.version_history, *self.history]
        for name, value in self.fields.items():
            setattr(updated, name, value)
        updated.updated_at = timestamp
        updated.revision = show_set.revision + 1
        return updated


@dataclass
class PendingUpload:
    attachment_id: str
    note_id: str
    key: str
    file_name: str
    mime_type: str
    size: int


@dataclass
class WorkflowPlan:
    """Everything one operation will do: the patch plus its post-commit side effects."""

    patch: ShowSetPatch = field(default_factory=ShowSetPatch)
    activities: list[PendingActivity] = field(default_factory=list)
    notes: list[DiscussionItem] = field(default_factory=list)
    translations: list[TranslationJob] = field(default_factory=list)
    uploads: list[PendingUpload] = field(default_factory=list)
    reset_stages: list[StageName] = field(default_factory=list)
    changes: list[VersionChange] = field(default_factory=list)

    def log(self, action: ActivityAction, **details: Any) -> None:
        self.activities.append(PendingActivity(action=action, details=details))

    def record_version(self, change: VersionChange) -> None:
        self.patch.record(change)
        self.changes.append(change)
