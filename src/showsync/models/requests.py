"""Request payloads accepted by the workflow orchestrator."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, PositiveInt

from showsync.models.showset import (
    SCENE_PATTERN,
    SHOW_SET_ID_PATTERN,
    Area,
    Language,
    LocalizedString,
    StageStatus,
    VMItem,
    VersionType,
)


class ShowSetCreateInput(BaseModel):
    show_set_id: str = Field(pattern=SHOW_SET_ID_PATTERN)
    area: Area
    scene: str = Field(pattern=SCENE_PATTERN)
    description: LocalizedString
    vm_list: list[VMItem] = Field(default_factory=list)


class ShowSetUpdateInput(BaseModel):
    show_set_id: Optional[str] = Field(default=None, pattern=SHOW_SET_ID_PATTERN)
    area: Optional[Area] = None
    scene: Optional[str] = Field(default=None, pattern=SCENE_PATTERN)
    description: Optional[LocalizedString] = None
    vm_list: Optional[list[VMItem]] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class StageUpdateInput(BaseModel):
    """Requested change to one stage."""

    status: StageStatus
    assigned_to: Optional[str] = None
    clear_assignee: bool = False
    version_label: Optional[str] = None
    revision_note: Optional[str] = None
    revision_note_lang: Optional[Language] = None


class AttachmentRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    mime_type: str = Field(min_length=1, max_length=100)
    file_size: PositiveInt


class UpstreamRevisionInput(BaseModel):
    target_stages: list[str]
    current_stage: str
    revision_note: str
    revision_note_lang: Language
    attachment: Optional[AttachmentRequest] = None


class RecallInput(BaseModel):
    recall_from: str
    recall_target: str
    status: StageStatus = StageStatus.IN_PROGRESS  # in_progress or revision_required
    note: Optional[str] = None
    note_lang: Optional[Language] = None


class UnlockInput(BaseModel):
    reason: str = ""
    reset_stages: list[str] = Field(default_factory=list)


class VersionUpdateInput(BaseModel):
    version_type: VersionType
    target_version: Optional[PositiveInt] = None
    reason: str = ""
    language: Language = Language.EN


class LinksUpdateInput(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_url: Optional[HttpUrl] = None
    drawings_url: Optional[HttpUrl] = None
    clear: list[Literal["model_url", "drawings_url"]] = Field(default_factory=list)

    def changes(self) -> dict[str, Optional[str]]:
        out: dict[str, Optional[str]] = {}
        if self.model_url is not None:
            out["model_url"] = str(self.model_url)
        if self.drawings_url is not None:
            out["drawings_url"] = str(self.drawings_url)
        for field in self.clear:
            out.setdefault(field, None)
        return out
