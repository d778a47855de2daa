"""
hotel_data_access.store — DynamoEntityClient, an EntityDataClient on DynamoDB.

Single-table design:
    PK: ENTITY#{entity}   SK: {record id}

Every operation reads the entity partition and evaluates the `where`
filter in process (see hotel_data_access.filters), so relation filters
such as {"bookings": {"some": {...}}} work without secondary indexes.
Sized for a property's operational data, not for analytics scans.

This client knows nothing about tenants. Request code reaches it only
through RestrictedClient.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Key

from hotel_data_access.filters import FilterEvaluator
from hotel_data_access.models import HOTEL_RELATIONS, Relation

logger = Logger(service="hotel-data-access")

_TABLE_ENV = "HOTEL_DATA_TABLE_NAME"
_ENTITY_PK_PREFIX = "ENTITY#"
_KEY_ATTRIBUTES = ("PK", "SK")
_MAX_TRANSACTION_ITEMS = 100  # DynamoDB TransactWriteItems limit

Record = dict[str, Any]


class RecordNotFoundError(LookupError):
    """No record matched the filter of a single-record update or delete."""

    def __init__(self, *, entity: str, where: Mapping[str, Any] | None) -> None:
        self.entity = entity
        self.where = where
        super().__init__(f"No {entity} record matches {where!r}")


def _to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal, recursively. DynamoDB rejects float."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_to_dynamo(v) for v in value]
    return value


def _strip_keys(item: Mapping[str, Any]) -> Record:
    return {k: v for k, v in item.items() if k not in _KEY_ATTRIBUTES}


class DynamoEntityClient:
    """Entity CRUD over one DynamoDB table."""

    def __init__(
        self,
        table_name: str | None = None,
        *,
        dynamodb_resource: Any = None,
        relations: Mapping[str, Mapping[str, Relation]] | None = None,
    ) -> None:
        self._table_name = table_name or os.environ[_TABLE_ENV]
        region = os.environ.get("AWS_REGION", "eu-west-2")
        self._dynamodb: Any = dynamodb_resource or boto3.resource("dynamodb", region_name=region)
        self._relations = HOTEL_RELATIONS if relations is None else relations

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _table(self) -> Any:
        return self._dynamodb.Table(self._table_name)

    @staticmethod
    def _key(entity: str, record_id: str) -> dict[str, str]:
        return {"PK": f"{_ENTITY_PK_PREFIX}{entity}", "SK": record_id}

    def _query_entity(self, entity: str) -> list[Record]:
        """Return every record in the entity partition, following pagination."""
        table = self._table()
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("PK").eq(f"{_ENTITY_PK_PREFIX}{entity}")
        }
        records: list[Record] = []
        while True:
            response = table.query(**kwargs)
            records.extend(_strip_keys(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return records
            kwargs["ExclusiveStartKey"] = last_key

    def _select(self, entity: str, where: Mapping[str, Any] | None) -> list[Record]:
        loaded: dict[str, list[Record]] = {}

        def load(name: str) -> list[Record]:
            if name not in loaded:
                loaded[name] = self._query_entity(name)
            return loaded[name]

        evaluator = FilterEvaluator(self._relations, load)
        normalized = _to_dynamo(where) if where else None
        return [r for r in load(entity) if evaluator.matches(entity, r, normalized)]

    def _new_record(self, data: Mapping[str, Any]) -> Record:
        # PK/SK are storage keys, never payload: dropping them keeps a record
        # in the partition and slot its entity and id dictate.
        record = _strip_keys(_to_dynamo(dict(data)))
        record["id"] = str(record.get("id") or uuid.uuid4().hex)
        return record

    def _item(self, entity: str, record: Record) -> Record:
        return {**record, **self._key(entity, record["id"])}

    def _put_new(self, entity: str, data: Mapping[str, Any]) -> Record:
        record = self._new_record(data)
        self._table().put_item(
            Item=self._item(entity, record),
            ConditionExpression="attribute_not_exists(PK)",
        )
        return record

    def _put_update(self, entity: str, record: Record, data: Mapping[str, Any]) -> Record:
        updated = {**record, **_strip_keys(_to_dynamo(dict(data))), "id": record["id"]}
        self._table().put_item(Item=self._item(entity, updated))
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_one(self, entity: str, *, where: Mapping[str, Any] | None = None) -> Record | None:
        rows = self._select(entity, where)
        return rows[0] if rows else None

    def find_many(
        self,
        entity: str,
        *,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """Return matching records.

        order_by names a field, prefixed with "-" for descending order.
        Records missing that field sort last either way.
        """
        rows = self._select(entity, where)
        if order_by:
            field = order_by.lstrip("-")
            present = [r for r in rows if r.get(field) is not None]
            missing = [r for r in rows if r.get(field) is None]
            present.sort(key=lambda r: r[field], reverse=order_by.startswith("-"))
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, entity: str, *, where: Mapping[str, Any] | None = None) -> int:
        return len(self._select(entity, where))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_one(self, entity: str, *, data: Mapping[str, Any]) -> Record:
        """Insert one record. An existing id fails the conditional write (ClientError)."""
        return self._put_new(entity, data)

    def create_many(self, entity: str, *, data: Sequence[Mapping[str, Any]]) -> int:
        """Insert all records in one transaction, or none of them.

        Any existing id cancels the whole transaction (ClientError
        TransactionCanceledException). At most 100 records per call.
        """
        if len(data) > _MAX_TRANSACTION_ITEMS:
            raise ValueError(
                f"create_many accepts at most {_MAX_TRANSACTION_ITEMS} records, got {len(data)}"
            )
        if not data:
            return 0
        records = [self._new_record(record) for record in data]
        # Resource-level client: plain Python values, serialised by boto3.
        self._dynamodb.meta.client.transact_write_items(
            TransactItems=[
                {
                    "Put": {
                        "TableName": self._table_name,
                        "Item": self._item(entity, record),
                        "ConditionExpression": "attribute_not_exists(PK)",
                    }
                }
                for record in records
            ]
        )
        return len(records)

    def update_one(
        self, entity: str, *, where: Mapping[str, Any], data: Mapping[str, Any]
    ) -> Record:
        rows = self._select(entity, where)
        if not rows:
            raise RecordNotFoundError(entity=entity, where=where)
        return self._put_update(entity, rows[0], data)

    def update_many(
        self, entity: str, *, where: Mapping[str, Any], data: Mapping[str, Any]
    ) -> int:
        rows = self._select(entity, where)
        for row in rows:
            self._put_update(entity, row, data)
        logger.debug("update_many", entity=entity, affected=len(rows))
        return len(rows)

    def delete_one(self, entity: str, *, where: Mapping[str, Any]) -> Record:
        rows = self._select(entity, where)
        if not rows:
            raise RecordNotFoundError(entity=entity, where=where)
        self._table().delete_item(Key=self._key(entity, rows[0]["id"]))
        return rows[0]

    def delete_many(self, entity: str, *, where: Mapping[str, Any] | None = None) -> int:
        rows = self._select(entity, where)
        with self._table().batch_writer() as batch:
            for row in rows:
                batch.delete_item(Key=self._key(entity, row["id"]))
        logger.debug("delete_many", entity=entity, affected=len(rows))
        return len(rows)
