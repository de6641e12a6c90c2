"""Tests for the role-to-permission mapping."""

from __future__ import annotations

import pytest

from showsync.models.showset import STAGE_ORDER, StageName, StageStatus
from showsync.workflow.permissions import (
    Actor,
    Role,
    can_delete_show_sets,
    can_edit_versions,
    can_manage_links,
    can_manage_show_sets,
    can_request_upstream_revision,
    can_update_stage,
    is_approval_only,
    reviewer_rule,
)


class TestCanUpdateStage:
    @pytest.mark.parametrize("stage", STAGE_ORDER)
    def test_admin_updates_every_stage(self, stage):
        assert can_update_stage(Role.ADMIN, stage)

    @pytest.mark.parametrize("stage", STAGE_ORDER)
    def test_view_only_updates_nothing(self, stage):
        assert not can_update_stage(Role.VIEW_ONLY, stage)

    def test_modeller_limited_to_model_stages(self):
        allowed = [s for s in STAGE_ORDER if can_update_stage(Role.MODELLER_3D, s)]
        assert allowed == [StageName.SCREEN, StageName.STRUCTURE, StageName.INTEGRATED]

    def test_drafter_limited_to_drawings(self):
        allowed = [s for s in STAGE_ORDER if can_update_stage(Role.DRAFTER_2D, s)]
        assert allowed == [StageName.DRAWING_2D]

    def test_coordinator_limited_to_sync_stage(self):
        allowed = [s for s in STAGE_ORDER if can_update_stage(Role.BIM_COORDINATOR, s)]
        assert allowed == [StageName.IN_BIM360]

    def test_customer_reviewer_stages(self):
        allowed = [s for s in STAGE_ORDER if can_update_stage(Role.CUSTOMER_REVIEWER, s)]
        assert allowed == [StageName.IN_BIM360, StageName.DRAWING_2D]


class TestCapabilities:
    def test_only_admin_manages_show_sets(self):
        assert [r for r in Role if can_manage_show_sets(r)] == [Role.ADMIN]
        assert [r for r in Role if can_delete_show_sets(r)] == [Role.ADMIN]

    def test_links_admin_and_coordinator(self):
        assert {r for r in Role if can_manage_links(r)} == {Role.ADMIN, Role.BIM_COORDINATOR}

    def test_everyone_but_view_only_requests_revisions(self):
        assert {r for r in Role if not can_request_upstream_revision(r)} == {Role.VIEW_ONLY}

    def test_edit_versions_needs_grant_unless_admin(self):
        assert can_edit_versions(Actor(user_id="a", name="a", role=Role.ADMIN))
        assert not can_edit_versions(Actor(user_id="m", name="m", role=Role.MODELLER_3D))
        assert can_edit_versions(Actor(user_id="m", name="m", role=Role.MODELLER_3D, can_edit_versions=True))


class TestReviewerRules:
    def test_engineer_reviews_engineer_review(self):
        rule = reviewer_rule(Role.ENGINEER)
        assert rule is not None
        assert rule.reviews is StageStatus.ENGINEER_REVIEW
        assert rule.allowed_statuses == {StageStatus.COMPLETE, StageStatus.REVISION_REQUIRED}

    def test_customer_reviews_client_review(self):
        rule = reviewer_rule(Role.CUSTOMER_REVIEWER)
        assert rule is not None
        assert rule.reviews is StageStatus.CLIENT_REVIEW

    def test_workers_are_unrestricted(self):
        assert reviewer_rule(Role.MODELLER_3D) is None
        assert not is_approval_only(Role.ADMIN)
        assert is_approval_only(Role.ENGINEER)
