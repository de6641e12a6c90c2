"""Request dependencies: the orchestrator and the calling actor."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request

from showsync.workflow.orchestrator import WorkflowOrchestrator
from showsync.workflow.permissions import Actor, Role


def get_orchestrator(request: Request) -> WorkflowOrchestrator:
    return request.app.state.orchestrator


def get_actor(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_name: Annotated[Optional[str], Header()] = None,
    x_user_role: Annotated[Optional[str], Header()] = None,
    x_can_edit_versions: Annotated[bool, Header()] = False,
) -> Actor:
    """Identity is asserted by the upstream gateway through headers."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    try:
        role = Role(x_user_role)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role {x_user_role!r}") from None
    return Actor(
        user_id=x_user_id,
        name=x_user_name or x_user_id,
        role=role,
        can_edit_versions=x_can_edit_versions,
    )


OrchestratorDep = Annotated[WorkflowOrchestrator, Depends(get_orchestrator)]
ActorDep = Annotated[Actor, Depends(get_actor)]
