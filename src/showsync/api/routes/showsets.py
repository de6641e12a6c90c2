"""ShowSet and stage workflow endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Response

from showsync.api.deps import ActorDep, OrchestratorDep
from showsync.models.activity import ActivityRecord
from showsync.models.requests import (
    LinksUpdateInput,
    RecallInput,
    ShowSetCreateInput,
    ShowSetUpdateInput,
    StageUpdateInput,
    UnlockInput,
    UpstreamRevisionInput,
    VersionUpdateInput,
)
from showsync.models.showset import Area, ShowSet
from showsync.workflow.orchestrator import TransitionResult, VersionEditResult

router = APIRouter(tags=["showsets"])


@router.get("")
def list_show_sets(orchestrator: OrchestratorDep, actor: ActorDep, area: Optional[Area] = None) -> list[ShowSet]:
    return orchestrator.list_show_sets(area)


@router.post("", status_code=201)
def create_show_set(data: ShowSetCreateInput, orchestrator: OrchestratorDep, actor: ActorDep) -> ShowSet:
    return orchestrator.create_show_set(data, actor)


@router.get("/{show_set_id}")
def get_show_set(show_set_id: str, orchestrator: OrchestratorDep, actor: ActorDep) -> ShowSet:
    return orchestrator.get_show_set(show_set_id)


@router.put("/{show_set_id}")
def update_show_set(
    show_set_id: str, data: ShowSetUpdateInput, orchestrator: OrchestratorDep, actor: ActorDep
) -> ShowSet:
    return orchestrator.update_show_set(show_set_id, data, actor)


@router.delete("/{show_set_id}", status_code=204)
def delete_show_set(show_set_id: str, orchestrator: OrchestratorDep, actor: ActorDep) -> Response:
    orchestrator.delete_show_set(show_set_id, actor)
    return Response(status_code=204)


@router.put("/{show_set_id}/stage/{stage}")
def update_stage(
    show_set_id: str, stage: str, data: StageUpdateInput, orchestrator: OrchestratorDep, actor: ActorDep
) -> TransitionResult:
    return orchestrator.update_stage(show_set_id, stage, data, actor)


@router.post("/{show_set_id}/request-revision")
def request_revision(
    show_set_id: str, data: UpstreamRevisionInput, orchestrator: OrchestratorDep, actor: ActorDep
) -> TransitionResult:
    return orchestrator.request_upstream_revision(show_set_id, data, actor)


@router.post("/{show_set_id}/recall")
def recall(show_set_id: str, data: RecallInput, orchestrator: OrchestratorDep, actor: ActorDep) -> TransitionResult:
    return orchestrator.recall_from_review(show_set_id, data, actor)


@router.put("/{show_set_id}/links")
def update_links(
    show_set_id: str, data: LinksUpdateInput, orchestrator: OrchestratorDep, actor: ActorDep
) -> ShowSet:
    return orchestrator.update_links(show_set_id, data, actor)


@router.put("/{show_set_id}/version")
def set_version(
    show_set_id: str, data: VersionUpdateInput, orchestrator: OrchestratorDep, actor: ActorDep
) -> VersionEditResult:
    return orchestrator.set_version(show_set_id, data, actor)


@router.post("/{show_set_id}/lock")
def lock(show_set_id: str, orchestrator: OrchestratorDep, actor: ActorDep) -> ShowSet:
    return orchestrator.lock(show_set_id, actor)


@router.post("/{show_set_id}/unlock")
def unlock(
    show_set_id: str, orchestrator: OrchestratorDep, actor: ActorDep, data: Optional[UnlockInput] = None
) -> TransitionResult:
    return orchestrator.unlock(show_set_id, data or UnlockInput(), actor)


@router.get("/{show_set_id}/activity")
def activity(show_set_id: str, orchestrator: OrchestratorDep, actor: ActorDep) -> list[ActivityRecord]:
    return orchestrator.activity(show_set_id)
