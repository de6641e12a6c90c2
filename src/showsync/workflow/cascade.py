"""Cascade Engine: forced resets of stages other than the one acted upon.

Two directions:

- downstream, when a stage is reworked (a ``CascadePolicy`` decides exactly how);
- upstream, when a revision request or a recall invalidates earlier stages.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from showsync.core.exceptions import ValidationError
from showsync.models.activity import ActivityAction
from showsync.models.showset import (
    STAGE_ORDER,
    ShowSet,
    StageName,
    StageStatus,
    downstream_of,
    stage_index,
    stages_between,
)
from showsync.workflow.patch import WorkflowPlan
from showsync.workflow.versions import VersionLedger

logger = logging.getLogger(__name__)


def reset_stage(
    show_set: ShowSet,
    plan: WorkflowPlan,
    stage: StageName,
    status: StageStatus,
    actor_id: str,
    timestamp: str,
    *,
    keep_assignment: bool = True,
) -> None:
    """Force ``stage`` to ``status`` inside ``plan``."""
    current = plan.patch.stages.get(stage, show_set.stage(stage))
    if keep_assignment:
        info = current.model_copy(update={"status": status, "updated_by": actor_id, "updated_at": timestamp})
    else:
        info = type(current)(status=status, updated_by=actor_id, updated_at=timestamp)
    plan.patch.set_stage(stage, info)
    if stage not in plan.reset_stages:
        plan.reset_stages.append(stage)


def complete_downstream(show_set: ShowSet, plan: WorkflowPlan, stage: StageName) -> list[StageName]:
    """Stages strictly after ``stage`` that are currently ``complete``."""
    return [
        ds for ds in downstream_of(stage)
        if plan.patch.status_of(show_set, ds) is StageStatus.COMPLETE
    ]


def upstream_revision_range(targets: list[StageName], current: StageName) -> list[StageName]:
    """Stages from the earliest target up to ``current`` (exclusive).

    Intermediate stages the caller did not name are included: a later stage
    cannot stay in a forward state while an earlier dependency is invalid.
    """
    if not targets:
        raise ValidationError("At least one target stage is required")
    current_idx = stage_index(current)
    for target in targets:
        if stage_index(target) >= current_idx:
            raise ValidationError(
                f"Target stage {target.value!r} is not upstream of {current.value!r}"
            )
    earliest = min(targets, key=stage_index)
    return stages_between(earliest, current)


def recall_range(target: StageName, recall_from: StageName) -> list[StageName]:
    """Stages strictly after ``target`` up to and including ``recall_from``."""
    if stage_index(target) > stage_index(recall_from):
        raise ValidationError(
            f"Recall target {target.value!r} must be upstream of or equal to {recall_from.value!r}"
        )
    return list(STAGE_ORDER[stage_index(target) + 1:stage_index(recall_from) + 1])


class CascadePolicy(ABC):
    """Strategy for the downstream cascade triggered by a stage transition."""

    name: str = ""

    @abstractmethod
    def apply(
        self,
        show_set: ShowSet,
        plan: WorkflowPlan,
        stage: StageName,
        prior: StageStatus,
        requested: StageStatus,
        actor_id: str,
        timestamp: str,
    ) -> list[StageName]:
        """Fold the cascade into ``plan``; return the stages that were reset."""


class ReworkCascade(CascadePolicy):
    """Reopening a ``complete`` stage invalidates every completed stage after it.

    Cascaded stages go to ``revision_required`` rather than ``not_started`` so
    their version history is kept; only the reopened stage's counter moves.
    """

    name = "rework"

    def apply(self, show_set, plan, stage, prior, requested, actor_id, timestamp):
        if not (prior is StageStatus.COMPLETE and requested is StageStatus.IN_PROGRESS):
            return []
        reset = complete_downstream(show_set, plan, stage)
        for ds in reset:
            reset_stage(show_set, plan, ds, StageStatus.REVISION_REQUIRED, actor_id, timestamp)
        if reset:
            plan.log(ActivityAction.CASCADE_RESET, triggeredBy=stage.value, resetStages=[s.value for s in reset])
        return reset


class UnlockResetCascade(CascadePolicy):
    """First work started after a lock release restarts everything downstream.

    Every downstream stage goes back to ``not_started`` and each distinct
    downstream deliverable is bumped once. The release marker is consumed.
    """

    name = "unlock_reset"

    def __init__(self, ledger: VersionLedger) -> None:
        self._ledger = ledger

    def apply(self, show_set, plan, stage, prior, requested, actor_id, timestamp):
        if requested is not StageStatus.IN_PROGRESS or not show_set.unlocked_at:
            return []

        plan.patch.set_field("unlocked_at", None)
        plan.patch.set_field("unlocked_by", None)
        plan.patch.set_field("unlock_reason", None)

        reset = downstream_of(stage)
        bumped = {change.version_type for change in plan.changes}
        for ds in reset:
            reset_stage(show_set, plan, ds, StageStatus.NOT_STARTED, actor_id, timestamp, keep_assignment=False)
            vt = self._ledger.deliverable_for(ds)
            if vt is None or vt in bumped:
                continue
            change = self._ledger.bump(vt, plan.patch.version_of(show_set, vt), actor_id, timestamp)
            plan.record_version(change)
            bumped.add(vt)
            plan.log(
                ActivityAction.VERSION_BUMP,
                versionType=vt.value,
                **{"from": change.from_version},
                to=change.to_version,
                trigger="unlock_cascade",
                historyEntryId=change.entry.id,
            )
        if reset:
            logger.info("Unlock cascade on %s from %s reset %s", show_set.show_set_id, stage, reset)
            plan.log(ActivityAction.CASCADE_RESET, triggeredBy=stage.value, resetStages=[s.value for s in reset])
        return reset
