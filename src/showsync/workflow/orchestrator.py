"""Workflow Orchestrator: the single entry point for every ShowSet mutation.

Each operation reads the ShowSet consistently, plans its full effect as a
``WorkflowPlan``, and commits the patch with one conditional replace keyed on
the snapshot's revision. Activity records, discussion items, translation jobs
and upload handles are produced only after that commit succeeds, and their
failures are logged rather than raised.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from pydantic import BaseModel, Field

from showsync.core.config import WorkflowConfig
from showsync.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from showsync.core.protocols import (
    IActivitySink,
    IAttachmentSigner,
    IDiscussionStore,
    IShowSetStore,
    ITranslationQueue,
)
from showsync.models.activity import ActivityAction, ActivityRecord
from showsync.models.discussion import Attachment, UploadHandle
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
from showsync.models.showset import (
    Area,
    Language,
    LocalizedString,
    ShowSet,
    ShowSetLinks,
    StageName,
    VersionType,
    default_stages,
    utc_now,
)
from showsync.workflow.cascade import CascadePolicy, ReworkCascade, UnlockResetCascade
from showsync.workflow.lock import CompletionLock, ExplicitLock, LockPolicy
from showsync.workflow.patch import WorkflowPlan
from showsync.workflow.permissions import (
    Actor,
    can_delete_show_sets,
    can_edit_versions,
    can_manage_links,
    can_manage_show_sets,
)
from showsync.workflow.revisions import RevisionPlanner
from showsync.workflow.stage_machine import StageMachine, parse_stage
from showsync.workflow.versions import VersionLedger

logger = logging.getLogger(__name__)


def build_policies(variant: str, ledger: VersionLedger) -> tuple[CascadePolicy, LockPolicy]:
    """Cascade and lock policies for a deployment variant. The pair is never mixed."""
    if variant == "review":
        return ReworkCascade(), ExplicitLock()
    if variant == "simple":
        return UnlockResetCascade(ledger), CompletionLock()
    raise ValueError(f"Unknown workflow variant: {variant!r}")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class TransitionResult(BaseModel):
    """Outcome of an operation that moved one or more stages."""

    show_set: ShowSet
    reset_stages: list[StageName] = Field(default_factory=list)
    versions: dict[VersionType, int] = Field(default_factory=dict)  # counters that moved
    note_id: Optional[str] = None
    upload: Optional[UploadHandle] = None


class VersionEditResult(BaseModel):
    show_set: ShowSet
    changed: bool
    version_type: VersionType
    from_version: int
    to_version: int
    history_entry_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class WorkflowOrchestrator:
    """Composes the permission, stage, cascade, lock and version rules."""

    def __init__(
        self,
        store: IShowSetStore,
        activity: IActivitySink,
        discussions: IDiscussionStore,
        translations: ITranslationQueue,
        signer: IAttachmentSigner,
        config: WorkflowConfig | None = None,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        config = config or WorkflowConfig()
        self.store = store
        self.activity_sink = activity
        self.discussions = discussions
        self.translations = translations
        self.signer = signer
        self.clock = clock

        self.ledger = VersionLedger(config.version_scheme)
        cascade, lock = build_policies(config.variant, self.ledger)
        self.lock_policy = lock
        self.machine = StageMachine(
            ledger=self.ledger,
            cascade=cascade,
            lock=lock,
            revision_stages=frozenset(parse_stage(s) for s in config.revision_stages),
            languages=[Language(lang) for lang in config.languages],
        )
        self.revisions = RevisionPlanner(self.machine, config.max_attachment_bytes)

    # ---- reads ----

    def get_show_set(self, show_set_id: str) -> ShowSet:
        return self._load(show_set_id, consistent=False)

    def list_show_sets(self, area: Area | str | None = None) -> list[ShowSet]:
        return self.store.list(Area(area) if area is not None else None)

    def activity(self, show_set_id: str) -> list[ActivityRecord]:
        self._load(show_set_id, consistent=False)
        return self.activity_sink.list_for(show_set_id)

    # ---- ShowSet lifecycle ----

    def create_show_set(self, data: ShowSetCreateInput, actor: Actor) -> ShowSet:
        if not can_manage_show_sets(actor.role):
            raise ForbiddenError("You do not have permission to create ShowSets")
        ts = self.clock()
        show_set = ShowSet(
            show_set_id=data.show_set_id,
            area=data.area,
            scene=data.scene,
            description=data.description,
            vm_list=data.vm_list,
            stages=default_stages(actor.user_id, ts),
            versions=self.ledger.initial_counters(),
            created_at=ts,
            updated_at=ts,
        )
        self.store.create(show_set)
        logger.info("Created ShowSet %s", show_set.show_set_id)
        self._record(
            show_set.show_set_id, actor, ActivityAction.SHOWSET_CREATED, {"area": show_set.area.value}, ts,
        )
        return show_set

    def update_show_set(self, show_set_id: str, data: ShowSetUpdateInput, actor: Actor) -> ShowSet:
        """Edit details; a new ``show_set_id`` moves the record to that key."""
        if not can_manage_show_sets(actor.role):
            raise ForbiddenError("You do not have permission to update ShowSets")
        if data.is_empty():
            raise ValidationError("At least one field must be provided")
        snapshot = self._load(show_set_id)
        ts = self.clock()

        plan = WorkflowPlan()
        changed: list[str] = []
        for name in ("area", "scene", "description", "vm_list"):
            value = getattr(data, name)
            if value is not None and value != getattr(snapshot, name):
                plan.patch.set_field(name, value)
                changed.append(name)

        new_id = data.show_set_id
        if new_id is not None and new_id != show_set_id:
            if self.store.get(new_id, consistent=True) is not None:
                raise ValidationError(f"ShowSet {new_id!r} already exists")
            renamed = plan.patch.apply(snapshot, ts).model_copy(update={"show_set_id": new_id, "revision": 1})
            self.store.create(renamed)
            try:
                self.store.delete(show_set_id, expected_revision=snapshot.revision)
            except (ConflictError, NotFoundError):
                logger.info("Rename of ShowSet %s lost a race; removing %s", show_set_id, new_id)
                self._discard(new_id)
                raise
            logger.info("Renamed ShowSet %s -> %s", show_set_id, new_id)
            self._record(new_id, actor, ActivityAction.SHOWSET_RENAMED,
                         {"oldId": show_set_id, "newId": new_id, "fields": changed}, ts)
            return renamed

        if plan.patch.is_empty():
            return snapshot
        plan.log(ActivityAction.SHOWSET_UPDATED, fields=changed)
        return self._commit(snapshot, plan, actor, ts)[0]

    def delete_show_set(self, show_set_id: str, actor: Actor) -> None:
        if not can_delete_show_sets(actor.role):
            raise ForbiddenError("You do not have permission to delete ShowSets")
        self.store.delete(show_set_id)
        logger.info("Deleted ShowSet %s", show_set_id)
        self._record(show_set_id, actor, ActivityAction.SHOWSET_DELETED, {})

    def update_links(self, show_set_id: str, data: LinksUpdateInput, actor: Actor) -> ShowSet:
        if not can_manage_links(actor.role):
            raise ForbiddenError("You do not have permission to manage links")
        changes = data.changes()
        if not changes:
            raise ValidationError("At least one of model_url or drawings_url is required")
        snapshot = self._load(show_set_id)

        plan = WorkflowPlan()
        links = snapshot.links.model_dump()
        for name, value in changes.items():
            if links[name] != value:
                plan.log(ActivityAction.LINK_UPDATE, field=name, **{"from": links[name]}, to=value)
                links[name] = value
        if not plan.activities:
            return snapshot
        plan.patch.set_field("links", ShowSetLinks(**links))
        return self._commit(snapshot, plan, actor, self.clock())[0]

    # ---- stage workflow ----

    def update_stage(
        self, show_set_id: str, stage_name: str, update: StageUpdateInput, actor: Actor
    ) -> TransitionResult:
        """Move one stage to ``update.status`` with every rule and cascade applied."""
        stage = parse_stage(stage_name)
        self.machine.check_permission(actor, stage, update.status)
        snapshot = self._load(show_set_id)
        prior = snapshot.stage(stage).status
        ts = self.clock()

        plan = self.machine.plan(snapshot, stage, update, actor, ts)
        saved, _ = self._commit(snapshot, plan, actor, ts)
        logger.info("ShowSet %s %s: %s -> %s", show_set_id, stage, prior, update.status)
        return self._result(saved, plan, note_id=plan.notes[0].item_id if plan.notes else None)

    def request_upstream_revision(
        self, show_set_id: str, data: UpstreamRevisionInput, actor: Actor
    ) -> TransitionResult:
        request = self.revisions.check_upstream(actor, data)
        snapshot = self._load(show_set_id)
        ts = self.clock()

        plan, note_id = self.revisions.plan_upstream(snapshot, data, request, actor, ts)
        saved, handles = self._commit(snapshot, plan, actor, ts)
        logger.info("ShowSet %s upstream revision reset %s", show_set_id, plan.reset_stages)
        return self._result(saved, plan, note_id=note_id, upload=handles[0] if handles else None)

    def recall_from_review(self, show_set_id: str, data: RecallInput, actor: Actor) -> TransitionResult:
        request = self.revisions.check_recall(actor, data)
        snapshot = self._load(show_set_id)
        ts = self.clock()

        plan, note_id = self.revisions.plan_recall(snapshot, data, request, actor, ts)
        saved, _ = self._commit(snapshot, plan, actor, ts)
        logger.info(
            "ShowSet %s recalled %s -> %s (%s)", show_set_id, data.recall_from, data.recall_target, data.status
        )
        return self._result(saved, plan, note_id=note_id)

    # ---- lock ----

    def lock(self, show_set_id: str, actor: Actor) -> ShowSet:
        if not can_manage_show_sets(actor.role):
            raise ForbiddenError("Only admins can lock ShowSets")
        snapshot = self._load(show_set_id)
        ts = self.clock()
        plan = WorkflowPlan()
        self.lock_policy.lock(snapshot, plan, actor.user_id, ts)
        return self._commit(snapshot, plan, actor, ts)[0]

    def unlock(self, show_set_id: str, data: UnlockInput, actor: Actor) -> TransitionResult:
        if not can_manage_show_sets(actor.role):
            raise ForbiddenError("Only admins can unlock ShowSets")
        reset_stages = [parse_stage(s) for s in data.reset_stages]
        snapshot = self._load(show_set_id)
        ts = self.clock()
        plan = WorkflowPlan()
        self.lock_policy.unlock(snapshot, plan, actor.user_id, ts, data.reason, reset_stages)
        saved, _ = self._commit(snapshot, plan, actor, ts)
        logger.info("ShowSet %s unlocked, reset %s", show_set_id, plan.reset_stages)
        return self._result(saved, plan)

    # ---- versions ----

    def set_version(self, show_set_id: str, data: VersionUpdateInput, actor: Actor) -> VersionEditResult:
        """Administrative counter edit. A target equal to the current value is a no-op."""
        if not can_edit_versions(actor):
            raise ForbiddenError("You do not have permission to edit versions")
        version_type = data.version_type
        if version_type not in self.ledger.deliverables():
            raise ValidationError(
                f"{version_type.value} is not tracked under the {self.ledger.scheme} version scheme"
            )
        snapshot = self._load(show_set_id)
        current = snapshot.version_of(version_type)
        if data.target_version is not None and data.target_version == current:
            return VersionEditResult(
                show_set=snapshot, changed=False, version_type=version_type,
                from_version=current, to_version=current,
            )

        ts = self.clock()
        reason = LocalizedString.single(data.reason, data.language) if data.reason else LocalizedString()
        target = data.target_version if data.target_version is not None else current + 1
        change = self.ledger.set_to(version_type, current, target, reason, actor.user_id, ts)

        plan = WorkflowPlan()
        plan.record_version(change)
        plan.log(
            ActivityAction.VERSION_MANUAL,
            versionType=version_type.value,
            **{"from": current},
            to=target,
            reason=data.reason,
            historyEntryId=change.entry.id,
        )
        saved, _ = self._commit(snapshot, plan, actor, ts)
        logger.info("ShowSet %s %s set v%d -> v%d", show_set_id, version_type, current, target)
        return VersionEditResult(
            show_set=saved, changed=True, version_type=version_type,
            from_version=current, to_version=target, history_entry_id=change.entry.id,
        )

    # ---- internals ----

    def _load(self, show_set_id: str, consistent: bool = True) -> ShowSet:
        show_set = self.store.get(show_set_id, consistent=consistent)
        if show_set is None:
            raise NotFoundError("ShowSet", show_set_id)
        return show_set

    def _commit(
        self, snapshot: ShowSet, plan: WorkflowPlan, actor: Actor, timestamp: str
    ) -> tuple[ShowSet, list[UploadHandle]]:
        """Write the patch conditionally, then run the best-effort side effects."""
        try:
            saved = self.store.replace(plan.patch.apply(snapshot, timestamp), expected_revision=snapshot.revision)
        except ConflictError:
            logger.info("Conflict on ShowSet %s at revision %d", snapshot.show_set_id, snapshot.revision)
            raise

        show_set_id = saved.show_set_id
        for sequence, pending in enumerate(plan.activities):
            self._record(show_set_id, actor, pending.action, pending.details, timestamp, sequence)
        for note in plan.notes:
            try:
                self.discussions.put(note)
            except Exception:
                logger.warning("Failed to store note %s on %s", note.item_id, show_set_id, exc_info=True)
        for job in plan.translations:
            try:
                self.translations.enqueue(job)
            except Exception:
                logger.warning("Failed to enqueue translation for note %s", job.note_id, exc_info=True)

        handles: list[UploadHandle] = []
        for upload in plan.uploads:
            try:
                handle = self.signer.request_upload(upload.key, upload.mime_type, upload.size)
            except Exception:
                logger.warning("Failed to presign upload %s", upload.key, exc_info=True)
                continue
            handles.append(handle)
            try:
                self.discussions.add_attachment(show_set_id, upload.note_id, Attachment(
                    id=upload.attachment_id,
                    file_name=upload.file_name,
                    file_size=upload.size,
                    mime_type=upload.mime_type,
                    s3_key=upload.key,
                ))
            except Exception:
                logger.warning("Failed to record attachment %s", upload.attachment_id, exc_info=True)
        return saved, handles

    def _discard(self, show_set_id: str) -> None:
        """Remove a record this operation created and nobody has written since."""
        try:
            self.store.delete(show_set_id, expected_revision=1)
        except Exception:
            logger.warning("Failed to remove orphaned ShowSet %s", show_set_id, exc_info=True)

    def _record(
        self,
        show_set_id: str,
        actor: Actor,
        action: ActivityAction,
        details: dict,
        created_at: str | None = None,
        sequence: int = 0,
    ) -> None:
        try:
            self.activity_sink.append(
                show_set_id, actor.user_id, actor.name, action, details,
                created_at=created_at, sequence=sequence,
            )
        except Exception:
            logger.warning("Failed to log %s activity for %s", action, show_set_id, exc_info=True)

    @staticmethod
    def _result(
        saved: ShowSet, plan: WorkflowPlan, note_id: str | None = None, upload: UploadHandle | None = None
    ) -> TransitionResult:
        return TransitionResult(
            show_set=saved,
            reset_stages=list(plan.reset_stages),
            versions={change.version_type: change.to_version for change in plan.changes},
            note_id=note_id,
            upload=upload,
        )
