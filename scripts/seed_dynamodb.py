"""Create the ShowSync DynamoDB tables and seed sample ShowSets.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3

from showsync.models.showset import (
    Area,
    LocalizedString,
    ShowSet,
    StageName,
    StageStatus,
    VMItem,
    default_stages,
    utc_now,
)
from showsync.workflow.versions import VersionLedger

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {"name": "showsync-showsets", "gsi": True},
    {"name": "showsync-activity", "gsi": True},
    {"name": "showsync-notes", "gsi": False},
]


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create the ShowSync tables. Skips if a table already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        attributes = [
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ]
        kwargs: dict[str, Any] = {}
        if defn["gsi"]:
            attributes += [
                {"AttributeName": "GSI1PK", "AttributeType": "S"},
                {"AttributeName": "GSI1SK", "AttributeType": "S"},
            ]
            kwargs["GlobalSecondaryIndexes"] = [{
                "IndexName": "GSI1",
                "KeySchema": [
                    {"AttributeName": "GSI1PK", "KeyType": "HASH"},
                    {"AttributeName": "GSI1SK", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }]
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=attributes,
            BillingMode="PAY_PER_REQUEST",
            **kwargs,
        )
        print(f"  Created table {table_name}")


def sample_show_sets(version_scheme: str = "shared") -> list[ShowSet]:
    """Three ShowSets at different points in the pipeline."""
    ts = utc_now()
    counters = VersionLedger(version_scheme).initial_counters()

    fresh = ShowSet(
        show_set_id="SS-07-01", area=Area.AREA_311, scene="SC07",
        description=LocalizedString(en="Lobby show set", zh="大堂布景", zh_tw="大堂佈景"),
        vm_list=[VMItem(id="VM-0701", name="Lobby screen")],
        stages=default_stages("seed", ts), versions=dict(counters), created_at=ts, updated_at=ts,
    )

    in_flight = ShowSet(
        show_set_id="SS-07-02", area=Area.AREA_311, scene="SC07",
        description=LocalizedString(en="Lobby ceiling rig"),
        stages=default_stages("seed", ts), versions=dict(counters), created_at=ts, updated_at=ts,
    )
    for stage in (StageName.SCREEN, StageName.STRUCTURE):
        in_flight.stages[stage].status = StageStatus.COMPLETE
    in_flight.stages[StageName.INTEGRATED].status = StageStatus.IN_PROGRESS

    finished = ShowSet(
        show_set_id="SS-12A-01", area=Area.AREA_312, scene="SC12",
        description=LocalizedString(en="Finale stage"),
        stages=default_stages("seed", ts), versions=dict(counters), created_at=ts, updated_at=ts,
    )
    for info in finished.stages.values():
        info.status = StageStatus.COMPLETE

    return [fresh, in_flight, finished]


def seed_show_sets(ddb: Any, suffix: str = "", version_scheme: str = "shared") -> None:
    """Write the sample ShowSets with their key attributes."""
    tbl = ddb.Table(f"showsync-showsets{suffix}")
    show_sets = sample_show_sets(version_scheme)
    with tbl.batch_writer() as batch:
        for show_set in show_sets:
            pk = f"SHOWSET#{show_set.show_set_id}"
            batch.put_item(Item={
                "PK": pk,
                "SK": "DETAILS",
                "GSI1PK": f"AREA#{show_set.area.value}",
                "GSI1SK": pk,
                **show_set.to_item(),
            })
    print(f"  Seeded {len(show_sets)} ShowSets")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for ShowSync")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="ap-east-1", help="AWS region")
    parser.add_argument("--no-sample-data", action="store_true", help="Only create tables")
    parser.add_argument("--version-scheme", default="shared", choices=["shared", "per_stage"])
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    if not args.no_sample_data:
        print("Seeding data...")
        seed_show_sets(ddb, suffix=args.table_suffix, version_scheme=args.version_scheme)

    print("Done!")


if __name__ == "__main__":
    main()
