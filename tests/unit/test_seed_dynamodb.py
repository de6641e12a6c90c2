"""Tests for DynamoDB seed script."""

from __future__ import annotations

import sys
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

# Make scripts/ importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "scripts"))

from seed_dynamodb import create_tables, sample_show_sets, seed_show_sets  # noqa: E402

from showsync.models.showset import StageName, StageStatus  # noqa: E402
from showsync.persistence.dynamodb_backend import DynamoDBShowSetStore  # noqa: E402


@pytest.fixture
def ddb():
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="us-east-1")


class TestCreateTables:
    def test_creates_all_three_tables(self, ddb):
        create_tables(ddb, suffix="-test")
        client = boto3.client("dynamodb", region_name="us-east-1")
        tables = client.list_tables()["TableNames"]
        assert sorted(tables) == [
            "showsync-activity-test", "showsync-notes-test", "showsync-showsets-test",
        ]

    def test_idempotent_skips_existing(self, ddb):
        create_tables(ddb, suffix="-test")
        create_tables(ddb, suffix="-test")  # should not raise
        client = boto3.client("dynamodb", region_name="us-east-1")
        assert len(client.list_tables()["TableNames"]) == 3

    def test_showsets_table_has_area_index(self, ddb):
        create_tables(ddb, suffix="-test")
        desc = ddb.meta.client.describe_table(TableName="showsync-showsets-test")["Table"]
        assert [i["IndexName"] for i in desc["GlobalSecondaryIndexes"]] == ["GSI1"]


class TestSampleShowSets:
    def test_all_start_at_version_one(self):
        for show_set in sample_show_sets():
            assert set(show_set.versions.values()) == {1}

    def test_finished_show_set_is_fully_complete(self):
        finished = sample_show_sets()[-1]
        assert all(info.status is StageStatus.COMPLETE for info in finished.stages.values())

    def test_per_stage_scheme_counters(self):
        show_set = sample_show_sets("per_stage")[0]
        assert "structureVersion" in show_set.versions
        assert "revitVersion" not in show_set.versions


class TestSeedShowSets:
    def test_seeded_items_readable_by_store(self, ddb):
        create_tables(ddb, suffix="-test")
        seed_show_sets(ddb, suffix="-test")
        store = DynamoDBShowSetStore(table_suffix="-test", region="us-east-1")
        in_flight = store.get("SS-07-02", consistent=True)
        assert in_flight is not None
        assert in_flight.stage(StageName.INTEGRATED).status is StageStatus.IN_PROGRESS

    def test_area_listing(self, ddb):
        create_tables(ddb, suffix="-test")
        seed_show_sets(ddb, suffix="-test")
        store = DynamoDBShowSetStore(table_suffix="-test", region="us-east-1")
        assert [s.show_set_id for s in store.list("311")] == ["SS-07-01", "SS-07-02"]
        assert [s.show_set_id for s in store.list("312")] == ["SS-12A-01"]
