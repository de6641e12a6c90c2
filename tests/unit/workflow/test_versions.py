"""Tests for the version ledger and the bump edge."""

from __future__ import annotations

import itertools

import pytest

from showsync.models.showset import LocalizedString, StageName, StageStatus, VersionType
from showsync.workflow.versions import VersionLedger, is_bump_edge

TS = "2026-01-01T00:00:00.000Z"


class TestBumpEdge:
    @pytest.mark.parametrize("prior,requested", itertools.product(StageStatus, StageStatus))
    def test_only_rework_edge_bumps(self, prior, requested):
        expected = (
            prior in (StageStatus.COMPLETE, StageStatus.REVISION_REQUIRED)
            and requested is StageStatus.IN_PROGRESS
        )
        assert is_bump_edge(prior, requested) is expected


class TestSchemes:
    def test_shared_scheme_pairs_structure_and_integrated(self):
        ledger = VersionLedger("shared")
        assert ledger.deliverable_for(StageName.STRUCTURE) is VersionType.REVIT
        assert ledger.deliverable_for(StageName.INTEGRATED) is VersionType.REVIT
        assert ledger.deliverables() == [VersionType.SCREEN, VersionType.REVIT, VersionType.DRAWING]

    def test_per_stage_scheme(self):
        ledger = VersionLedger("per_stage")
        assert ledger.deliverables() == [
            VersionType.SCREEN, VersionType.STRUCTURE, VersionType.INTEGRATED, VersionType.DRAWING,
        ]

    @pytest.mark.parametrize("scheme", ["shared", "per_stage"])
    def test_sync_stage_has_no_deliverable(self, scheme):
        assert VersionLedger(scheme).deliverable_for(StageName.IN_BIM360) is None

    def test_initial_counters_are_one(self):
        assert set(VersionLedger().initial_counters().values()) == {1}

    def test_unknown_scheme_rejected(self):
        with pytest.raises(ValueError):
            VersionLedger("weekly")  # type: ignore[arg-type]


class TestChanges:
    def test_bump_adds_one_with_blank_reason(self):
        change = VersionLedger().bump(VersionType.SCREEN, 4, "u1", TS)
        assert (change.from_version, change.to_version) == (4, 5)
        assert change.entry.version == 5
        assert change.entry.reason == LocalizedString()
        assert change.entry.created_by == "u1"

    def test_set_to_may_go_down(self):
        reason = LocalizedString(en="wrong counter")
        change = VersionLedger().set_to(VersionType.DRAWING, 7, 3, reason, "u1", TS)
        assert change.to_version == 3
        assert change.entry.reason.en == "wrong counter"

    def test_set_to_rejects_zero(self):
        with pytest.raises(ValueError):
            VersionLedger().set_to(VersionType.DRAWING, 2, 0, LocalizedString(), "u1", TS)

    def test_entries_get_distinct_ids(self):
        ledger = VersionLedger()
        a = ledger.bump(VersionType.SCREEN, 1, "u1", TS)
        b = ledger.bump(VersionType.SCREEN, 2, "u1", TS)
        assert a.entry.id != b.entry.id
