"""ShowSet, stage and version-history models.

A ShowSet moves through five ordered stages. The order of ``STAGE_ORDER`` is
load-bearing: every upstream/downstream computation is an index comparison
against it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StageName(StrEnum):
    SCREEN = "screen"
    STRUCTURE = "structure"
    INTEGRATED = "integrated"
    IN_BIM360 = "inBim360"
    DRAWING_2D = "drawing2d"


class StageStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    ENGINEER_REVIEW = "engineer_review"
    CLIENT_REVIEW = "client_review"
    COMPLETE = "complete"
    REVISION_REQUIRED = "revision_required"


class Area(StrEnum):
    AREA_311 = "311"
    AREA_312 = "312"


class Language(StrEnum):
    EN = "en"
    ZH = "zh"
    ZH_TW = "zh-TW"


class VersionType(StrEnum):
    SCREEN = "screenVersion"
    REVIT = "revitVersion"  # structure + integrated under the shared scheme
    STRUCTURE = "structureVersion"
    INTEGRATED = "integratedVersion"
    DRAWING = "drawingVersion"


STAGE_ORDER: tuple[StageName, ...] = (
    StageName.SCREEN,
    StageName.STRUCTURE,
    StageName.INTEGRATED,
    StageName.IN_BIM360,
    StageName.DRAWING_2D,
)

# The external-system sync stage carries no assignee, label or deliverable.
SYNC_STAGE = StageName.IN_BIM360

REVIEW_STATUSES = frozenset({StageStatus.ENGINEER_REVIEW, StageStatus.CLIENT_REVIEW})
BUMP_FROM_STATUSES = frozenset({StageStatus.COMPLETE, StageStatus.REVISION_REQUIRED})

SHOW_SET_ID_PATTERN = r"^SS-\d{2}[A-Za-z]?-\d{2}$"
SCENE_PATTERN = r"^SC\d{2}$"


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def stage_index(stage: StageName) -> int:
    return STAGE_ORDER.index(stage)


def downstream_of(stage: StageName) -> list[StageName]:
    """Stages strictly after ``stage`` in pipeline order."""
    return list(STAGE_ORDER[stage_index(stage) + 1:])


def stages_between(start: StageName, end: StageName) -> list[StageName]:
    """Stages from ``start`` (inclusive) up to ``end`` (exclusive)."""
    return list(STAGE_ORDER[stage_index(start):stage_index(end)])


class LocalizedString(BaseModel):
    """Text held in every supported language."""

    model_config = ConfigDict(populate_by_name=True)

    en: str = ""
    zh: str = ""
    zh_tw: str = Field(default="", alias="zh-TW")

    @classmethod
    def single(cls, text: str, language: Language | str) -> LocalizedString:
        """Build a value with only ``language`` filled in."""
        out = cls()
        out.set(Language(language), text)
        return out

    def get(self, language: Language | str) -> str:
        return {"en": self.en, "zh": self.zh, "zh-TW": self.zh_tw}[Language(language).value]

    def set(self, language: Language | str, text: str) -> None:
        lang = Language(language)
        if lang is Language.EN:
            self.en = text
        elif lang is Language.ZH:
            self.zh = text
        else:
            self.zh_tw = text


class VMItem(BaseModel):
    """Cross-referenced sub-item of a ShowSet."""

    id: str
    name: Optional[str] = None


class StageInfo(BaseModel):
    """State of one stage. Replaced as a whole on every change."""

    status: StageStatus = StageStatus.NOT_STARTED
    assigned_to: Optional[str] = None
    version_label: Optional[str] = None
    revision_note: Optional[str] = None
    revision_note_lang: Optional[Language] = None
    revision_note_by: Optional[str] = None
    revision_note_at: Optional[str] = None
    revision_note_id: Optional[str] = None
    updated_by: str = ""
    updated_at: str = ""


class ShowSetLinks(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_url: Optional[str] = None
    drawings_url: Optional[str] = None


class VersionHistoryEntry(BaseModel):
    """Immutable record of a deliverable version change."""

    model_config = ConfigDict(frozen=True)

    id: str
    version_type: VersionType
    version: int
    reason: LocalizedString = Field(default_factory=LocalizedString)
    created_by: str
    created_at: str


class ShowSet(BaseModel):
    """The unit of coordinated work tracked through the five stages."""

    show_set_id: str = Field(pattern=SHOW_SET_ID_PATTERN)
    area: Area
    scene: str
    description: LocalizedString = Field(default_factory=LocalizedString)
    vm_list: list[VMItem] = Field(default_factory=list)
    stages: dict[StageName, StageInfo]
    links: ShowSetLinks = Field(default_factory=ShowSetLinks)
    versions: dict[VersionType, int] = Field(default_factory=dict)
    version_history: list[VersionHistoryEntry] = Field(default_factory=list)

    # Explicit admin lock
    locked_at: Optional[str] = None
    locked_by: Optional[str] = None
    # Implicit completion lock: set when an admin releases it
    unlocked_at: Optional[str] = None
    unlocked_by: Optional[str] = None
    unlock_reason: Optional[str] = None

    created_at: str = ""
    updated_at: str = ""
    revision: int = 1  # compare-and-swap token, bumped on every committed write

    def stage(self, name: StageName) -> StageInfo:
        return self.stages[name]

    def version_of(self, version_type: VersionType) -> int:
        return self.versions.get(version_type, 1)

    def to_item(self) -> dict:
        """JSON-compatible dict for storage."""
        return self.model_dump(mode="json", by_alias=True)


def default_stages(user_id: str, timestamp: str) -> dict[StageName, StageInfo]:
    return {
        name: StageInfo(status=StageStatus.NOT_STARTED, updated_by=user_id, updated_at=timestamp)
        for name in STAGE_ORDER
    }
