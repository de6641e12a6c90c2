"""Stage State Machine: the per-stage status lifecycle.

Preconditions are checked in a fixed order, each with its own failure:

1. the stage name is one of the five pipeline stages (``InvalidStageError``);
2. the actor may update the stage, and approval-only roles stay within their
   statuses and their review state (``ForbiddenError``);
3. ``revision_required`` is only requested on eligible stages and carries a
   note (``ValidationError``);
4. no ``in_progress`` while the ShowSet is locked (``ForbiddenError``).

A successful transition replaces the stage sub-record, bumps the stage's
deliverable on the ``{complete, revision_required} -> in_progress`` edge, and
lets the configured ``CascadePolicy`` reset downstream stages.
"""

from __future__ import annotations

import logging
import uuid

from showsync.core.exceptions import ForbiddenError, InvalidStageError, ValidationError
from showsync.models.activity import ActivityAction
from showsync.models.discussion import DiscussionItem, DiscussionKind, TranslationJob
from showsync.models.requests import StageUpdateInput
from showsync.models.showset import (
    SYNC_STAGE,
    Language,
    LocalizedString,
    ShowSet,
    StageInfo,
    StageName,
    StageStatus,
)
from showsync.workflow.cascade import CascadePolicy
from showsync.workflow.lock import LockPolicy
from showsync.workflow.patch import WorkflowPlan
from showsync.workflow.permissions import Actor, can_update_stage, reviewer_rule
from showsync.workflow.versions import VersionLedger, is_bump_edge

logger = logging.getLogger(__name__)


def parse_stage(name: str | StageName) -> StageName:
    try:
        return StageName(name)
    except ValueError:
        raise InvalidStageError(str(name)) from None


class StageMachine:
    """Plans single-stage transitions against a ShowSet snapshot."""

    def __init__(
        self,
        ledger: VersionLedger,
        cascade: CascadePolicy,
        lock: LockPolicy,
        revision_stages: frozenset[StageName],
        languages: list[Language],
    ) -> None:
        self.ledger = ledger
        self.cascade = cascade
        self.lock = lock
        self.revision_stages = revision_stages
        self.languages = languages

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def check_permission(self, actor: Actor, stage: StageName, requested: StageStatus) -> None:
        """Role-level checks that need no ShowSet state."""
        if not can_update_stage(actor.role, stage):
            raise ForbiddenError(f"You do not have permission to update the {stage.value} stage")
        rule = reviewer_rule(actor.role)
        if rule is not None and requested not in rule.allowed_statuses:
            raise ForbiddenError(
                f"Role {actor.role.value} may only set "
                + ", ".join(sorted(s.value for s in rule.allowed_statuses))
            )

    def check_review_state(self, actor: Actor, show_set: ShowSet, stage: StageName) -> None:
        rule = reviewer_rule(actor.role)
        if rule is None:
            return
        current = show_set.stage(stage).status
        if current is not rule.reviews:
            raise ForbiddenError(
                f"Role {actor.role.value} may only act on {stage.value} while it is in "
                f"{rule.reviews.value} (currently {current.value})"
            )

    def check_revision_request(self, stage: StageName, update: StageUpdateInput) -> None:
        if update.status is not StageStatus.REVISION_REQUIRED:
            return
        if stage not in self.revision_stages:
            eligible = ", ".join(s.value for s in sorted(self.revision_stages, key=list(StageName).index))
            raise ValidationError(f"revision_required is only valid for: {eligible}")
        if not (update.revision_note and update.revision_note.strip()) or update.revision_note_lang is None:
            raise ValidationError("A revision note and its language are required for revision_required")

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(
        self,
        show_set: ShowSet,
        stage: StageName,
        update: StageUpdateInput,
        actor: Actor,
        timestamp: str,
        *,
        plan: WorkflowPlan | None = None,
    ) -> WorkflowPlan:
        """Plan one stage transition, cascade included."""
        plan = plan or WorkflowPlan()
        self.check_review_state(actor, show_set, stage)
        self.check_revision_request(stage, update)
        self.lock.guard(show_set, update.status)

        current = show_set.stage(stage)
        prior = current.status
        requested = update.status

        info = self.next_stage_info(current, stage, update, actor, timestamp)
        if requested is StageStatus.REVISION_REQUIRED and update.revision_note and update.revision_note_lang:
            self.attach_note(
                plan, show_set, stage, info, update.revision_note.strip(), update.revision_note_lang,
                actor, timestamp,
            )
        plan.patch.set_stage(stage, info)

        if prior is not requested:
            plan.log(ActivityAction.STATUS_CHANGE, stage=stage.value, **{"from": prior.value}, to=requested.value)
        if info.assigned_to != current.assigned_to:
            plan.log(ActivityAction.ASSIGNMENT, stage=stage.value, assignedTo=info.assigned_to)
        if info.version_label != current.version_label:
            plan.log(ActivityAction.VERSION_UPDATE, stage=stage.value, version=info.version_label)

        self.apply_bump(show_set, plan, stage, prior, requested, actor, timestamp)
        self.cascade.apply(show_set, plan, stage, prior, requested, actor.user_id, timestamp)
        return plan

    def apply_bump(
        self,
        show_set: ShowSet,
        plan: WorkflowPlan,
        stage: StageName,
        prior: StageStatus,
        requested: StageStatus,
        actor: Actor,
        timestamp: str,
    ) -> bool:
        """Bump the stage's deliverable if and only if this is the rework edge."""
        version_type = self.ledger.deliverable_for(stage)
        if version_type is None or not is_bump_edge(prior, requested):
            return False
        change = self.ledger.bump(
            version_type, plan.patch.version_of(show_set, version_type), actor.user_id, timestamp
        )
        plan.record_version(change)
        plan.log(
            ActivityAction.VERSION_BUMP,
            versionType=version_type.value,
            **{"from": change.from_version},
            to=change.to_version,
            trigger=prior.value,
            historyEntryId=change.entry.id,
        )
        logger.info(
            "Bumped %s on %s: v%d -> v%d", version_type, show_set.show_set_id,
            change.from_version, change.to_version,
        )
        return True

    def attach_note(
        self,
        plan: WorkflowPlan,
        show_set: ShowSet,
        stage: StageName,
        info: StageInfo,
        text: str,
        language: Language,
        actor: Actor,
        timestamp: str,
    ) -> str:
        """Store a revision note on ``info`` and queue its discussion item and translation."""
        note_id = str(uuid.uuid4())
        info.revision_note = text
        info.revision_note_lang = language
        info.revision_note_by = actor.name
        info.revision_note_at = timestamp
        info.revision_note_id = note_id
        plan.notes.append(DiscussionItem(
            item_id=note_id,
            show_set_id=show_set.show_set_id,
            kind=DiscussionKind.NOTE,
            stage=stage,
            author_id=actor.user_id,
            author_name=actor.name,
            original_lang=language,
            content=LocalizedString.single(text, language),
            is_revision_note=True,
            created_at=timestamp,
            updated_at=timestamp,
        ))
        plan.translations.append(TranslationJob(
            note_id=note_id,
            show_set_id=show_set.show_set_id,
            original_lang=language,
            original_content=text,
            target_languages=[lang for lang in self.languages if lang != language],
        ))
        return note_id

    @staticmethod
    def next_stage_info(
        current: StageInfo, stage: StageName, update: StageUpdateInput, actor: Actor, timestamp: str
    ) -> StageInfo:
        info = StageInfo(
            status=update.status,
            assigned_to=current.assigned_to,
            version_label=current.version_label,
            updated_by=actor.user_id,
            updated_at=timestamp,
        )
        if update.status is StageStatus.REVISION_REQUIRED:
            info.revision_note = current.revision_note
            info.revision_note_lang = current.revision_note_lang
            info.revision_note_by = current.revision_note_by
            info.revision_note_at = current.revision_note_at
            info.revision_note_id = current.revision_note_id
        if stage is not SYNC_STAGE:
            if update.clear_assignee:
                info.assigned_to = None
            elif update.assigned_to is not None:
                info.assigned_to = update.assigned_to
            if update.version_label is not None:
                info.version_label = update.version_label
        return info
