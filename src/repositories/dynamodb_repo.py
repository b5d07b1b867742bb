"""DynamoDB repository for customer and company documents."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, ConditionBase
from botocore.exceptions import ClientError

from utils.error_handling import NotFoundError

KEY_NAME = "_id"
TARGET_NAME = "targetId"


class ConditionFailed(Exception):
    """A conditional write lost to a concurrent change (record still exists)."""


def to_dynamo(value: Any) -> Any:
    """boto3 rejects float, so nested floats become Decimal."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Undo boto3 types: Decimal to int/float, string sets to sorted lists.

    Numbers written with a fractional part (``2.0``) come back as float.
    """
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(from_dynamo(v) for v in value)
    if isinstance(value, Decimal):
        return int(value) if value.as_tuple().exponent >= 0 else float(value)
    return value


class UpdateBuilder:
    """Collect placeholders for an UpdateItem call.

    Dotted paths address nested map attributes, e.g. ``messengerData.isActive``.
    """

    def __init__(self) -> None:
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}
        self._name_ids: Dict[str, str] = {}

    def path(self, dotted: str) -> str:
        parts = []
        for segment in dotted.split("."):
            if segment not in self._name_ids:
                placeholder = f"#f{len(self._name_ids)}"
                self._name_ids[segment] = placeholder
                self.names[placeholder] = segment
            parts.append(self._name_ids[segment])
        return ".".join(parts)

    def value(self, raw: Any) -> str:
        placeholder = f":u{len(self.values)}"
        self.values[placeholder] = to_dynamo(raw)
        return placeholder


class DynamoDbRepository:
    """Per-table helpers mapping document operations onto DynamoDB."""

    def __init__(self, table_name: str, resource=None):
        self.table = (resource or boto3.resource("dynamodb")).Table(table_name)

    def put(self, item: Dict[str, Any]) -> None:
        """Insert an item; never replaces an existing key."""
        self.table.put_item(
            Item=to_dynamo(item),
            ConditionExpression=Attr(KEY_NAME).not_exists(),
        )

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Fetch one item by key (strongly consistent)."""
        resp = self.table.get_item(Key={KEY_NAME: key}, ConsistentRead=True)
        item = resp.get("Item")
        return from_dynamo(item) if item else None

    def find_one(self, index_name: str, attribute: str, value: Any) -> Optional[Dict[str, Any]]:
        """Return the first item whose ``attribute`` equals ``value`` via a GSI."""
        resp = self.table.query(
            IndexName=index_name,
            KeyConditionExpression="#a = :v",
            ExpressionAttributeNames={"#a": attribute},
            ExpressionAttributeValues={":v": value},
            Limit=1,
        )
        items = resp.get("Items", [])
        if not items:
            return None
        # GSI projections may be partial; read the full item by key.
        return self.get(items[0][KEY_NAME])

    def update(
        self,
        key: str,
        set_fields: Optional[Dict[str, Any]] = None,
        increments: Optional[Dict[str, int]] = None,
        add_to_set: Optional[Dict[str, Iterable[str]]] = None,
        condition: Optional[ConditionBase] = None,
        ensure_maps: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Apply a partial update and return the updated item.

        Every write is conditioned on the key existing so an update never
        creates a record. Raises NotFoundError for unknown keys and
        ConditionFailed when the extra ``condition`` does not hold.
        """
        for map_path in ensure_maps:
            self._ensure_map(key, map_path)

        builder = UpdateBuilder()
        set_clauses: List[str] = []
        add_clauses: List[str] = []

        for field, raw in (set_fields or {}).items():
            set_clauses.append(f"{builder.path(field)} = {builder.value(raw)}")

        for field, amount in (increments or {}).items():
            path = builder.path(field)
            zero = builder.value(0)
            set_clauses.append(
                f"{path} = if_not_exists({path}, {zero}) + {builder.value(amount)}"
            )

        for field, members in (add_to_set or {}).items():
            add_clauses.append(f"{builder.path(field)} {builder.value(set(members))}")

        if not set_clauses and not add_clauses:
            item = self.get(key)
            if item is None:
                raise NotFoundError(f"{key} not found")
            return item

        expression = []
        if set_clauses:
            expression.append("SET " + ", ".join(set_clauses))
        if add_clauses:
            expression.append("ADD " + ", ".join(add_clauses))

        exists = Attr(KEY_NAME).exists()
        try:
            resp = self.table.update_item(
                Key={KEY_NAME: key},
                UpdateExpression=" ".join(expression),
                ExpressionAttributeNames=builder.names,
                ExpressionAttributeValues=builder.values,
                ConditionExpression=exists & condition if condition is not None else exists,
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if not _is_conditional_failure(exc):
                raise
            if condition is None or self.get(key) is None:
                raise NotFoundError(f"{key} not found") from exc
            raise ConditionFailed(key) from exc

        return from_dynamo(resp["Attributes"])

    def _ensure_map(self, key: str, map_path: str) -> None:
        """Create an empty map at ``map_path`` if absent so nested SETs succeed."""
        try:
            self.table.update_item(
                Key={KEY_NAME: key},
                UpdateExpression="SET #m = if_not_exists(#m, :empty)",
                ExpressionAttributeNames={"#m": map_path},
                ExpressionAttributeValues={":empty": {}},
                ConditionExpression=Attr(KEY_NAME).exists(),
            )
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise NotFoundError(f"{key} not found") from exc
            raise


class LookupRepository:
    """
    Pointers from a natural key (email, phone, company name) to a record id.

    Pointers are read with strongly consistent gets, so a record is found by
    its natural key right after it was written. Index queries only catch up
    eventually. Writes are plain puts: the latest record for a key wins.
    """

    def __init__(self, table_name: str, resource=None):
        self.table = (resource or boto3.resource("dynamodb")).Table(table_name)

    @staticmethod
    def key(kind: str, value: str) -> str:
        return f"{kind}#{value}"

    def put(self, kind: str, value: str, target_id: str) -> None:
        self.table.put_item(Item={KEY_NAME: self.key(kind, value), TARGET_NAME: target_id})

    def get(self, kind: str, value: str) -> Optional[str]:
        """Return the id the pointer names, or None."""
        resp = self.table.get_item(Key={KEY_NAME: self.key(kind, value)}, ConsistentRead=True)
        item = resp.get("Item")
        return item[TARGET_NAME] if item else None


def _is_conditional_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"
