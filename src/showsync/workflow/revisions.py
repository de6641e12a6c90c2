"""Upstream revision requests and recall-from-review.

Both reach backwards in the pipeline: an actor working a later stage flags a
problem that originated earlier, or pulls a stage out of review for rework.
"""

from __future__ import annotations

import uuid
from typing import NamedTuple

from showsync.core.exceptions import ForbiddenError, ValidationError
from showsync.models.activity import ActivityAction
from showsync.models.discussion import ALLOWED_MIME_TYPES
from showsync.models.requests import AttachmentRequest, RecallInput, StageUpdateInput, UpstreamRevisionInput
from showsync.models.showset import REVIEW_STATUSES, ShowSet, StageName, StageStatus
from showsync.workflow.cascade import (
    complete_downstream,
    recall_range,
    reset_stage,
    upstream_revision_range,
)
from showsync.workflow.patch import PendingUpload, WorkflowPlan
from showsync.workflow.permissions import Actor, can_request_upstream_revision, can_update_stage, is_approval_only
from showsync.workflow.stage_machine import StageMachine, parse_stage

RECALL_STATUSES = frozenset({StageStatus.IN_PROGRESS, StageStatus.REVISION_REQUIRED})


class UpstreamRequest(NamedTuple):
    targets: list[StageName]
    affected: list[StageName]  # [earliest target, current)
    current: StageName


class RecallRequest(NamedTuple):
    recall_from: StageName
    target: StageName


def attachment_key(show_set_id: str, note_id: str, attachment_id: str, file_name: str) -> str:
    return f"revisions/{show_set_id}/{note_id}/{attachment_id}/{file_name}"


def check_attachment(attachment: AttachmentRequest, max_bytes: int) -> None:
    if attachment.mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Unsupported attachment type {attachment.mime_type!r}; allowed: {', '.join(ALLOWED_MIME_TYPES)}"
        )
    if attachment.file_size > max_bytes:
        raise ValidationError(f"Attachment exceeds the {max_bytes} byte limit")


class RevisionPlanner:
    """Plans the backward-reaching operations on top of a ``StageMachine``."""

    def __init__(self, machine: StageMachine, max_attachment_bytes: int) -> None:
        self.machine = machine
        self.max_attachment_bytes = max_attachment_bytes

    # ---- upstream revision ----

    def check_upstream(self, actor: Actor, data: UpstreamRevisionInput) -> UpstreamRequest:
        """Checks that need no ShowSet state; run before the ShowSet is loaded."""
        if not can_request_upstream_revision(actor.role):
            raise ForbiddenError("You do not have permission to request revisions")
        current = parse_stage(data.current_stage)
        targets = [parse_stage(s) for s in data.target_stages]
        affected = upstream_revision_range(targets, current)
        if not data.revision_note.strip():
            raise ValidationError("A revision note is required")
        if data.attachment is not None:
            check_attachment(data.attachment, self.max_attachment_bytes)
        return UpstreamRequest(targets, affected, current)

    def plan_upstream(
        self,
        show_set: ShowSet,
        data: UpstreamRevisionInput,
        request: UpstreamRequest,
        actor: Actor,
        timestamp: str,
    ) -> tuple[WorkflowPlan, str]:
        """Reset ``[earliest target, current)`` to ``revision_required``.

        The note lands on the earliest target. No counter moves here; the bump
        happens when someone later restarts one of the reset stages.
        """
        affected, current = request.affected, request.current
        if self.machine.lock.is_locked(show_set):
            raise ForbiddenError(f"ShowSet {show_set.show_set_id} is locked")

        plan = WorkflowPlan()
        for stage in affected:
            reset_stage(show_set, plan, stage, StageStatus.REVISION_REQUIRED, actor.user_id, timestamp)

        earliest = affected[0]
        note_id = self.machine.attach_note(
            plan, show_set, earliest, plan.patch.stages[earliest],
            data.revision_note.strip(), data.revision_note_lang, actor, timestamp,
        )
        if data.attachment is not None:
            attachment_id = str(uuid.uuid4())
            plan.uploads.append(PendingUpload(
                attachment_id=attachment_id,
                note_id=note_id,
                key=attachment_key(show_set.show_set_id, note_id, attachment_id, data.attachment.file_name),
                file_name=data.attachment.file_name,
                mime_type=data.attachment.mime_type,
                size=data.attachment.file_size,
            ))

        plan.log(
            ActivityAction.UPSTREAM_REVISION,
            targetStages=[s.value for s in request.targets],
            currentStage=current.value,
            resetStages=[s.value for s in affected],
            noteId=note_id,
            hasAttachment=data.attachment is not None,
        )
        return plan, note_id

    # ---- recall ----

    def check_recall(self, actor: Actor, data: RecallInput) -> RecallRequest:
        """Checks that need no ShowSet state; run before the ShowSet is loaded."""
        recall_from = parse_stage(data.recall_from)
        target = parse_stage(data.recall_target)
        if data.status not in RECALL_STATUSES:
            raise ValidationError("A recall must set the target to in_progress or revision_required")
        recall_range(target, recall_from)
        if not can_update_stage(actor.role, target):
            raise ForbiddenError(f"You do not have permission to update the {target.value} stage")
        if is_approval_only(actor.role) and data.status is not StageStatus.REVISION_REQUIRED:
            raise ForbiddenError(f"Role {actor.role.value} may only recall to revision_required")
        if data.note and data.note.strip() and data.note_lang is None:
            raise ValidationError("A recall note needs its language")
        return RecallRequest(recall_from, target)

    def plan_recall(
        self, show_set: ShowSet, data: RecallInput, request: RecallRequest, actor: Actor, timestamp: str
    ) -> tuple[WorkflowPlan, str | None]:
        """Pull ``recall_target`` back while ``recall_from`` sits in review.

        The target takes the requested status (bumping on the usual rework
        edge); everything after it up to and including ``recall_from`` becomes
        ``revision_required``, as does any completed stage past ``recall_from``.
        """
        recall_from, target = request
        from_status = show_set.stage(recall_from).status
        if from_status not in REVIEW_STATUSES:
            raise ValidationError(
                f"{recall_from.value} is {from_status.value}; only stages in review can be recalled"
            )
        self.machine.lock.guard(show_set, data.status)

        plan = WorkflowPlan()
        current = show_set.stage(target)
        info = self.machine.next_stage_info(current, target, StageUpdateInput(status=data.status), actor, timestamp)
        note_id = None
        if data.note and data.note.strip():
            note_id = self.machine.attach_note(
                plan, show_set, target, info, data.note.strip(), data.note_lang, actor, timestamp,
            )
        plan.patch.set_stage(target, info)
        bumped = self.machine.apply_bump(show_set, plan, target, current.status, data.status, actor, timestamp)

        reset = recall_range(target, recall_from)
        for stage in reset:
            reset_stage(show_set, plan, stage, StageStatus.REVISION_REQUIRED, actor.user_id, timestamp)
        for stage in complete_downstream(show_set, plan, recall_from):
            reset_stage(show_set, plan, stage, StageStatus.REVISION_REQUIRED, actor.user_id, timestamp)
            reset.append(stage)

        plan.log(
            ActivityAction.RECALL,
            recallFrom=recall_from.value,
            recallTarget=target.value,
            status=data.status.value,
            startedWork=data.status is StageStatus.IN_PROGRESS,
            resetStages=[s.value for s in reset],
            versionBumped=bumped,
            noteId=note_id,
        )
        return plan, note_id
