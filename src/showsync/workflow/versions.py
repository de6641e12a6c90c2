"""Version Ledger: per-deliverable counters and the append-only bump history."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Literal

from showsync.models.showset import (
    BUMP_FROM_STATUSES,
    STAGE_ORDER,
    LocalizedString,
    StageName,
    StageStatus,
    VersionHistoryEntry,
    VersionType,
)

VersionScheme = Literal["shared", "per_stage"]

_SCHEMES: dict[str, dict[StageName, VersionType | None]] = {
    "shared": {
        StageName.SCREEN: VersionType.SCREEN,
        StageName.STRUCTURE: VersionType.REVIT,
        StageName.INTEGRATED: VersionType.REVIT,
        StageName.IN_BIM360: None,
        StageName.DRAWING_2D: VersionType.DRAWING,
    },
    "per_stage": {
        StageName.SCREEN: VersionType.SCREEN,
        StageName.STRUCTURE: VersionType.STRUCTURE,
        StageName.INTEGRATED: VersionType.INTEGRATED,
        StageName.IN_BIM360: None,
        StageName.DRAWING_2D: VersionType.DRAWING,
    },
}


@dataclass(frozen=True)
class VersionChange:
    """One counter move, together with the history entry that records it."""

    version_type: VersionType
    from_version: int
    to_version: int
    entry: VersionHistoryEntry


def is_bump_edge(prior: StageStatus, requested: StageStatus) -> bool:
    """True only for the ``{complete, revision_required} -> in_progress`` edge."""
    return prior in BUMP_FROM_STATUSES and requested is StageStatus.IN_PROGRESS


class VersionLedger:
    """Maps stages to deliverables and produces counter changes.

    The ledger never mutates a ShowSet; it returns ``VersionChange`` values that
    the caller folds into a patch.
    """

    def __init__(self, scheme: VersionScheme = "shared") -> None:
        if scheme not in _SCHEMES:
            raise ValueError(f"Unknown version scheme: {scheme!r}")
        self.scheme = scheme
        self._map = _SCHEMES[scheme]

    def deliverable_for(self, stage: StageName) -> VersionType | None:
        return self._map[stage]

    def deliverables(self) -> list[VersionType]:
        """Distinct deliverable types, in pipeline order."""
        out: list[VersionType] = []
        for stage in STAGE_ORDER:
            vt = self._map[stage]
            if vt is not None and vt not in out:
                out.append(vt)
        return out

    def initial_counters(self) -> dict[VersionType, int]:
        return {vt: 1 for vt in self.deliverables()}

    def bump(
        self, version_type: VersionType, current: int, actor_id: str, timestamp: str
    ) -> VersionChange:
        """Automatic +1 bump. Reason is left blank."""
        return self._change(version_type, current, current + 1, LocalizedString(), actor_id, timestamp)

    def set_to(
        self,
        version_type: VersionType,
        current: int,
        target: int,
        reason: LocalizedString,
        actor_id: str,
        timestamp: str,
    ) -> VersionChange:
        """Administrative override; ``target`` may be lower than ``current``."""
        if target < 1:
            raise ValueError("Version counters are positive integers")
        return self._change(version_type, current, target, reason, actor_id, timestamp)

    def _change(
        self,
        version_type: VersionType,
        current: int,
        target: int,
        reason: LocalizedString,
        actor_id: str,
        timestamp: str,
    ) -> VersionChange:
        entry = VersionHistoryEntry(
            id=str(uuid.uuid4()),
            version_type=version_type,
            version=target,
            reason=reason,
            created_by=actor_id,
            created_at=timestamp,
        )
        return VersionChange(version_type, current, target, entry)
