"""Lock Gate: a ShowSet-level hold on new work."""

from __future__ import annotations

from abc import ABC, abstractmethod

from showsync.core.exceptions import ForbiddenError, ValidationError
from showsync.models.activity import ActivityAction
from showsync.models.showset import ShowSet, StageName, StageStatus
from showsync.workflow.cascade import reset_stage
from showsync.workflow.patch import WorkflowPlan


class LockPolicy(ABC):
    """Strategy deciding when a ShowSet is locked and how it is released."""

    name: str = ""

    @abstractmethod
    def is_locked(self, show_set: ShowSet) -> bool: ...

    @abstractmethod
    def lock(self, show_set: ShowSet, plan: WorkflowPlan, actor_id: str, timestamp: str) -> None: ...

    @abstractmethod
    def unlock(
        self,
        show_set: ShowSet,
        plan: WorkflowPlan,
        actor_id: str,
        timestamp: str,
        reason: str,
        reset_stages: list[StageName],
    ) -> list[StageName]: ...

    def guard(self, show_set: ShowSet, requested: StageStatus) -> None:
        """Reject any move to ``in_progress`` while the ShowSet is locked."""
        if requested is StageStatus.IN_PROGRESS and self.is_locked(show_set):
            raise ForbiddenError(
                f"ShowSet {show_set.show_set_id} is locked. An admin must unlock it before work can start."
            )


class ExplicitLock(LockPolicy):
    """Admin sets and clears the lock by hand.

    Unlocking may reopen a caller-chosen set of stages, but only those that are
    currently ``complete``; anything else named is left as it is.
    """

    name = "explicit"

    def is_locked(self, show_set):
        return show_set.locked_at is not None

    def lock(self, show_set, plan, actor_id, timestamp):
        if self.is_locked(show_set):
            raise ValidationError(f"ShowSet {show_set.show_set_id} is already locked")
        plan.patch.set_field("locked_at", timestamp)
        plan.patch.set_field("locked_by", actor_id)
        plan.log(ActivityAction.SHOWSET_LOCKED)

    def unlock(self, show_set, plan, actor_id, timestamp, reason, reset_stages):
        if not self.is_locked(show_set):
            raise ValidationError(f"ShowSet {show_set.show_set_id} is not locked")
        plan.patch.set_field("locked_at", None)
        plan.patch.set_field("locked_by", None)

        reset: list[StageName] = []
        for stage in dict.fromkeys(reset_stages):
            if show_set.stage(stage).status is StageStatus.COMPLETE:
                reset_stage(show_set, plan, stage, StageStatus.REVISION_REQUIRED, actor_id, timestamp)
                reset.append(stage)
        plan.log(
            ActivityAction.SHOWSET_UNLOCKED,
            reason=reason,
            resetStages=[s.value for s in reset],
        )
        return reset


class CompletionLock(LockPolicy):
    """Locked exactly when the final stage is complete and no release is pending.

    Releasing requires a reason; the release marker is consumed by the next
    ``in_progress`` transition (see ``UnlockResetCascade``).
    """

    name = "completion"

    def is_locked(self, show_set):
        return (
            show_set.stage(StageName.DRAWING_2D).status is StageStatus.COMPLETE
            and not show_set.unlocked_at
        )

    def lock(self, show_set, plan, actor_id, timestamp):
        raise ValidationError("ShowSets lock automatically once drawing2d is complete")

    def unlock(self, show_set, plan, actor_id, timestamp, reason, reset_stages):
        if not reason.strip():
            raise ValidationError("Unlock reason is required")
        if reset_stages:
            raise ValidationError("Selective stage reset is not available with the completion lock")
        if not self.is_locked(show_set):
            raise ValidationError(
                "ShowSet is not locked (drawing2d must be complete and not already unlocked)"
            )
        plan.patch.set_field("unlocked_at", timestamp)
        plan.patch.set_field("unlocked_by", actor_id)
        plan.patch.set_field("unlock_reason", reason.strip())
        plan.log(ActivityAction.SHOWSET_UNLOCKED, reason=reason.strip(), resetStages=[])
        return []
