"""DynamoDB backends: ShowSet store (with Redis read cache), activity sink, discussion store."""

from __future__ import annotations

import json
import logging
import uuid
from decimal import Decimal
from typing import Any

import boto3
from botocore.exceptions import ClientError

from showsync.core.exceptions import CacheError, ConflictError, NotFoundError, StoreError, ValidationError
from showsync.models.activity import ActivityAction, ActivityRecord
from showsync.models.discussion import Attachment, DiscussionItem
from showsync.models.showset import ShowSet, utc_now

logger = logging.getLogger(__name__)

SHOWSETS_TABLE = "showsync-showsets"
ACTIVITY_TABLE = "showsync-activity"
NOTES_TABLE = "showsync-notes"

_KEY_ATTRS = ("PK", "SK", "GSI1PK", "GSI1SK")


def _decode_decimals(item: dict[str, Any]) -> dict[str, Any]:
    """Convert Decimal values in a DynamoDB item to int/float."""
    out: dict[str, Any] = {}
    for k, v in item.items():
        out[k] = _decode_value(v)
    return out


def _decode_value(v: Any) -> Any:
    if isinstance(v, Decimal):
        return int(v) if v == int(v) else float(v)
    if isinstance(v, dict):
        return _decode_decimals(v)
    if isinstance(v, list):
        return [_decode_value(i) for i in v]
    return v


def _strip_keys(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k not in _KEY_ATTRS}


def _is_condition_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class _DynamoDBBackend:
    """Shared boto3 resource and table naming."""

    def __init__(self, table_suffix: str = "", region: str = "ap-east-1",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    def _table(self, base: str):
        return self._ddb.Table(f"{base}{self._table_suffix}")

    def _query_all(self, table_base: str, **kwargs: Any) -> list[dict[str, Any]]:
        """Run a query to exhaustion, following ``LastEvaluatedKey``."""
        tbl = self._table(table_base)
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = tbl.query(**kwargs)
                items.extend(_decode_decimals(i) for i in resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    return items
                kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as exc:
            raise StoreError(f"DynamoDB query on {table_base!r} failed: {exc}") from exc


# ---------------------------------------------------------------------------
# ShowSets
# ---------------------------------------------------------------------------

class DynamoDBShowSetStore(_DynamoDBBackend):
    """IShowSetStore backed by DynamoDB with an optional Redis read cache.

    Writes are conditional on the stored ``revision`` so two writers working
    from the same snapshot cannot both succeed. Only non-consistent reads are
    served from the cache; every write evicts the entry.
    """

    def __init__(self, table_suffix: str = "", region: str = "ap-east-1",
                 endpoint_url: str | None = None, cache: Any = None, cache_ttl: int = 60) -> None:
        super().__init__(table_suffix, region, endpoint_url)
        self._cache = cache
        self._cache_ttl = cache_ttl

    @staticmethod
    def _pk(show_set_id: str) -> str:
        return f"SHOWSET#{show_set_id}"

    @staticmethod
    def _cache_key(show_set_id: str) -> str:
        return f"showset:{show_set_id}"

    def _to_item(self, show_set: ShowSet) -> dict[str, Any]:
        return {
            "PK": self._pk(show_set.show_set_id),
            "SK": "DETAILS",
            "GSI1PK": f"AREA#{show_set.area.value}",
            "GSI1SK": self._pk(show_set.show_set_id),
            **show_set.to_item(),
        }

    # ---- cache helpers ----

    def _cache_get(self, show_set_id: str) -> ShowSet | None:
        if self._cache is None:
            return None
        try:
            cached = self._cache.get(self._cache_key(show_set_id))
        except CacheError:
            logger.warning("Cache read failed for %s; falling back to DynamoDB", show_set_id, exc_info=True)
            return None
        return ShowSet.model_validate(json.loads(cached)) if cached is not None else None

    def _cache_put(self, show_set: ShowSet) -> None:
        if self._cache is None:
            return
        try:
            self._cache.setex(
                self._cache_key(show_set.show_set_id), self._cache_ttl, show_set.model_dump_json(by_alias=True),
            )
        except CacheError:
            logger.warning("Cache write failed for %s", show_set.show_set_id, exc_info=True)

    def _cache_evict(self, show_set_id: str) -> None:
        if self._cache is None:
            return
        try:
            self._cache.delete(self._cache_key(show_set_id))
        except CacheError:
            logger.warning("Cache eviction failed for %s", show_set_id, exc_info=True)

    # ---- IShowSetStore methods ----

    def get(self, show_set_id: str, consistent: bool = False) -> ShowSet | None:
        if not consistent:
            cached = self._cache_get(show_set_id)
            if cached is not None:
                return cached
        try:
            resp = self._table(SHOWSETS_TABLE).get_item(
                Key={"PK": self._pk(show_set_id), "SK": "DETAILS"},
                ConsistentRead=consistent,
            )
        except ClientError as exc:
            raise StoreError(f"DynamoDB get failed for {show_set_id!r}: {exc}") from exc
        item = resp.get("Item")
        if item is None:
            return None
        show_set = ShowSet.model_validate(_strip_keys(_decode_decimals(item)))
        if not consistent:
            self._cache_put(show_set)
        return show_set

    def list(self, area: str | None = None) -> list[ShowSet]:
        if area is not None:
            items = self._query_all(
                SHOWSETS_TABLE,
                IndexName="GSI1",
                KeyConditionExpression="GSI1PK = :pk",
                ExpressionAttributeValues={":pk": f"AREA#{area}"},
            )
        else:
            items = self._scan_all()
        show_sets = [ShowSet.model_validate(_strip_keys(i)) for i in items]
        return sorted(show_sets, key=lambda s: s.show_set_id)

    def _scan_all(self) -> list[dict[str, Any]]:
        tbl = self._table(SHOWSETS_TABLE)
        kwargs: dict[str, Any] = {
            "FilterExpression": "SK = :sk",
            "ExpressionAttributeValues": {":sk": "DETAILS"},
        }
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = tbl.scan(**kwargs)
                items.extend(_decode_decimals(i) for i in resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    return items
                kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as exc:
            raise StoreError(f"DynamoDB scan failed: {exc}") from exc

    def create(self, show_set: ShowSet) -> None:
        try:
            self._table(SHOWSETS_TABLE).put_item(
                Item=self._to_item(show_set),
                ConditionExpression="attribute_not_exists(PK)",
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                raise ValidationError(f"ShowSet {show_set.show_set_id!r} already exists") from exc
            raise StoreError(f"DynamoDB put failed for {show_set.show_set_id!r}: {exc}") from exc
        self._cache_evict(show_set.show_set_id)

    def replace(self, show_set: ShowSet, expected_revision: int) -> ShowSet:
        """Full replace, only if the stored revision is still ``expected_revision``."""
        try:
            self._table(SHOWSETS_TABLE).put_item(
                Item=self._to_item(show_set),
                ConditionExpression="attribute_exists(PK) AND #rev = :expected",
                ExpressionAttributeNames={"#rev": "revision"},
                ExpressionAttributeValues={":expected": expected_revision},
            )
        except ClientError as exc:
            if not _is_condition_failure(exc):
                raise StoreError(f"DynamoDB put failed for {show_set.show_set_id!r}: {exc}") from exc
            self._cache_evict(show_set.show_set_id)
            if self.get(show_set.show_set_id, consistent=True) is None:
                raise NotFoundError("ShowSet", show_set.show_set_id) from exc
            raise ConflictError(show_set.show_set_id, expected_revision) from exc
        self._cache_evict(show_set.show_set_id)
        return show_set

    def delete(self, show_set_id: str, expected_revision: int | None = None) -> None:
        """Delete; with ``expected_revision`` only if no write landed since that revision."""
        kwargs: dict[str, Any] = {"ConditionExpression": "attribute_exists(PK)"}
        if expected_revision is not None:
            kwargs = {
                "ConditionExpression": "attribute_exists(PK) AND #rev = :expected",
                "ExpressionAttributeNames": {"#rev": "revision"},
                "ExpressionAttributeValues": {":expected": expected_revision},
            }
        try:
            self._table(SHOWSETS_TABLE).delete_item(
                Key={"PK": self._pk(show_set_id), "SK": "DETAILS"}, **kwargs,
            )
        except ClientError as exc:
            if not _is_condition_failure(exc):
                raise StoreError(f"DynamoDB delete failed for {show_set_id!r}: {exc}") from exc
            self._cache_evict(show_set_id)
            if expected_revision is None or self.get(show_set_id, consistent=True) is None:
                raise NotFoundError("ShowSet", show_set_id) from exc
            raise ConflictError(show_set_id, expected_revision) from exc
        self._cache_evict(show_set_id)


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------

class DynamoDBActivitySink(_DynamoDBBackend):
    """IActivitySink writing one item per activity, sorted by timestamp within a ShowSet."""

    def append(
        self,
        show_set_id: str,
        actor_id: str,
        actor_name: str,
        action: ActivityAction,
        details: dict[str, Any],
        created_at: str | None = None,
        sequence: int = 0,
    ) -> ActivityRecord:
        record = ActivityRecord(
            activity_id=str(uuid.uuid4()),
            show_set_id=show_set_id,
            user_id=actor_id,
            user_name=actor_name,
            action=action,
            details=details,
            created_at=created_at or utc_now(),
            sequence=sequence,
        )
        item = {
            "PK": f"SHOWSET#{show_set_id}",
            "SK": f"ACTIVITY#{record.created_at}#{record.sequence:04d}#{record.activity_id}",
            "GSI1PK": f"ACTIVITY_DATE#{record.created_at[:10]}",
            "GSI1SK": f"{record.created_at}#{record.sequence:04d}",
            **record.model_dump(mode="json"),
        }
        try:
            self._table(ACTIVITY_TABLE).put_item(Item=item)
        except ClientError as exc:
            raise StoreError(f"DynamoDB activity write failed for {show_set_id!r}: {exc}") from exc
        return record

    def list_for(self, show_set_id: str) -> list[ActivityRecord]:
        items = self._query_all(
            ACTIVITY_TABLE,
            KeyConditionExpression="PK = :pk AND begins_with(SK, :prefix)",
            ExpressionAttributeValues={":pk": f"SHOWSET#{show_set_id}", ":prefix": "ACTIVITY#"},
        )
        return [ActivityRecord.model_validate(_strip_keys(i)) for i in items]


# ---------------------------------------------------------------------------
# Discussion items
# ---------------------------------------------------------------------------

class DynamoDBDiscussionStore(_DynamoDBBackend):
    """IDiscussionStore; notes and issues share one table, sorted by creation time."""

    def put(self, item: DiscussionItem) -> None:
        record = {
            "PK": f"SHOWSET#{item.show_set_id}",
            "SK": f"NOTE#{item.created_at}#{item.item_id}",
            **item.model_dump(mode="json", by_alias=True),
        }
        try:
            self._table(NOTES_TABLE).put_item(Item=record)
        except ClientError as exc:
            raise StoreError(f"DynamoDB note write failed for {item.item_id!r}: {exc}") from exc

    def _find(self, show_set_id: str, item_id: str) -> dict[str, Any] | None:
        items = self._query_all(
            NOTES_TABLE,
            KeyConditionExpression="PK = :pk AND begins_with(SK, :prefix)",
            FilterExpression="item_id = :id",
            ExpressionAttributeValues={
                ":pk": f"SHOWSET#{show_set_id}", ":prefix": "NOTE#", ":id": item_id,
            },
        )
        return items[0] if items else None

    def get(self, show_set_id: str, item_id: str) -> DiscussionItem | None:
        item = self._find(show_set_id, item_id)
        return DiscussionItem.model_validate(_strip_keys(item)) if item else None

    def list_for(self, show_set_id: str) -> list[DiscussionItem]:
        items = self._query_all(
            NOTES_TABLE,
            KeyConditionExpression="PK = :pk AND begins_with(SK, :prefix)",
            ExpressionAttributeValues={":pk": f"SHOWSET#{show_set_id}", ":prefix": "NOTE#"},
        )
        return [DiscussionItem.model_validate(_strip_keys(i)) for i in items]

    def add_attachment(self, show_set_id: str, item_id: str, attachment: Attachment) -> None:
        found = self._find(show_set_id, item_id)
        if found is None:
            raise NotFoundError("Note", item_id)
        try:
            self._table(NOTES_TABLE).update_item(
                Key={"PK": found["PK"], "SK": found["SK"]},
                UpdateExpression="SET attachments = list_append(attachments, :a), updated_at = :ts",
                ExpressionAttributeValues={":a": [attachment.model_dump(mode="json")], ":ts": utc_now()},
            )
        except ClientError as exc:
            raise StoreError(f"DynamoDB attachment update failed for {item_id!r}: {exc}") from exc
