"""Permission Resolver: maps a caller's role to what it may do."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from showsync.models.showset import STAGE_ORDER, StageName, StageStatus


class Role(StrEnum):
    ADMIN = "admin"
    BIM_COORDINATOR = "bim_coordinator"
    ENGINEER = "engineer"
    MODELLER_3D = "3d_modeller"
    DRAFTER_2D = "2d_drafter"
    CUSTOMER_REVIEWER = "customer_reviewer"
    VIEW_ONLY = "view_only"


STAGE_PERMISSIONS: dict[Role, frozenset[StageName]] = {
    Role.ADMIN: frozenset(STAGE_ORDER),
    Role.BIM_COORDINATOR: frozenset({StageName.IN_BIM360}),
    Role.ENGINEER: frozenset(STAGE_ORDER),  # approve/reject only, see REVIEWER_RULES
    Role.MODELLER_3D: frozenset({StageName.SCREEN, StageName.STRUCTURE, StageName.INTEGRATED}),
    Role.DRAFTER_2D: frozenset({StageName.DRAWING_2D}),
    Role.CUSTOMER_REVIEWER: frozenset({StageName.IN_BIM360, StageName.DRAWING_2D}),
    Role.VIEW_ONLY: frozenset(),
}


class ReviewerRule(BaseModel):
    """Approval-only role: the statuses it may set, and from which review state."""

    allowed_statuses: frozenset[StageStatus]
    reviews: StageStatus


REVIEWER_RULES: dict[Role, ReviewerRule] = {
    Role.ENGINEER: ReviewerRule(
        allowed_statuses=frozenset({StageStatus.COMPLETE, StageStatus.REVISION_REQUIRED}),
        reviews=StageStatus.ENGINEER_REVIEW,
    ),
    Role.CUSTOMER_REVIEWER: ReviewerRule(
        allowed_statuses=frozenset({StageStatus.COMPLETE, StageStatus.REVISION_REQUIRED}),
        reviews=StageStatus.CLIENT_REVIEW,
    ),
}


class Actor(BaseModel):
    """The authenticated caller of a workflow operation."""

    user_id: str
    name: str
    role: Role
    can_edit_versions: bool = False


def can_update_stage(role: Role, stage: StageName) -> bool:
    return stage in STAGE_PERMISSIONS.get(role, frozenset())


def can_manage_show_sets(role: Role) -> bool:
    return role is Role.ADMIN


def can_delete_show_sets(role: Role) -> bool:
    return role is Role.ADMIN


def can_manage_links(role: Role) -> bool:
    return role in (Role.ADMIN, Role.BIM_COORDINATOR)


def can_request_upstream_revision(role: Role) -> bool:
    """Any role that is not view-only may flag an upstream problem."""
    return role is not Role.VIEW_ONLY


def can_edit_versions(actor: Actor) -> bool:
    """Admins always may; everyone else needs an individual grant."""
    return actor.role is Role.ADMIN or actor.can_edit_versions


def reviewer_rule(role: Role) -> ReviewerRule | None:
    return REVIEWER_RULES.get(role)


def is_approval_only(role: Role) -> bool:
    return role in REVIEWER_RULES
