"""Actors and an in-memory orchestrator harness for workflow tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from showsync.core.config import WorkflowConfig
from showsync.models.showset import (
    Area,
    LocalizedString,
    ShowSet,
    StageName,
    StageStatus,
    default_stages,
    utc_now,
)
from showsync.persistence.memory_backend import (
    MemoryActivitySink,
    MemoryAttachmentSigner,
    MemoryDiscussionStore,
    MemoryShowSetStore,
    MemoryTranslationQueue,
)
from showsync.workflow.orchestrator import WorkflowOrchestrator
from showsync.workflow.permissions import Actor, Role

SHOW_SET_ID = "SS-07-01"

ADMIN = Actor(user_id="u-admin", name="Ada", role=Role.ADMIN)
COORDINATOR = Actor(user_id="u-bim", name="Bo", role=Role.BIM_COORDINATOR)
ENGINEER = Actor(user_id="u-eng", name="Eli", role=Role.ENGINEER)
MODELLER = Actor(user_id="u-3d", name="Mei", role=Role.MODELLER_3D)
DRAFTER = Actor(user_id="u-2d", name="Dev", role=Role.DRAFTER_2D)
CLIENT = Actor(user_id="u-client", name="Cy", role=Role.CUSTOMER_REVIEWER)
VIEWER = Actor(user_id="u-view", name="Vi", role=Role.VIEW_ONLY)


@dataclass
class Harness:
    orchestrator: WorkflowOrchestrator
    store: MemoryShowSetStore
    activity: MemoryActivitySink
    discussions: MemoryDiscussionStore
    translations: MemoryTranslationQueue
    signer: MemoryAttachmentSigner

    def seed(
        self,
        statuses: dict[StageName, StageStatus] | None = None,
        show_set_id: str = SHOW_SET_ID,
        **fields: Any,
    ) -> ShowSet:
        """Store a ShowSet directly, bypassing the workflow rules."""
        ts = utc_now()
        show_set = ShowSet(
            show_set_id=show_set_id,
            area=Area.AREA_311,
            scene="SC07",
            description=LocalizedString(en="Lobby"),
            stages=default_stages("seed", ts),
            versions=fields.pop("versions", None) or self.orchestrator.ledger.initial_counters(),
            created_at=ts,
            updated_at=ts,
            **fields,
        )
        for stage, status in (statuses or {}).items():
            show_set.stages[stage].status = status
        self.store.create(show_set)
        return show_set

    def reload(self, show_set_id: str = SHOW_SET_ID) -> ShowSet:
        show_set = self.store.get(show_set_id, consistent=True)
        assert show_set is not None
        return show_set

    def actions(self, show_set_id: str = SHOW_SET_ID) -> list[str]:
        return [a.value for a in self.activity.actions(show_set_id)]


def make_harness(
    variant: str = "review",
    version_scheme: str = "shared",
    store: MemoryShowSetStore | None = None,
) -> Harness:
    store = store or MemoryShowSetStore()
    activity = MemoryActivitySink()
    discussions = MemoryDiscussionStore()
    translations = MemoryTranslationQueue()
    signer = MemoryAttachmentSigner()
    orchestrator = WorkflowOrchestrator(
        store=store,
        activity=activity,
        discussions=discussions,
        translations=translations,
        signer=signer,
        config=WorkflowConfig(variant=variant, version_scheme=version_scheme),
    )
    return Harness(orchestrator, store, activity, discussions, translations, signer)
