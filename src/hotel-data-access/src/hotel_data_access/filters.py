"""
hotel_data_access.filters — Evaluate `where` filters against stored records.

Filter language (top-level keys are ANDed):

    {"status": "DIRTY"}                               equality (None matches a missing field)
    {"floor": {"gte": 2, "lt": 5}}                    operator dict
    {"name": {"contains": "smith", "mode": "insensitive"}}
    {"OR": [{...}, {...}], "NOT": {...}, "AND": [...]}
    {"bookings": {"some": {...}, "every": {...}, "none": {...}}}   relation filter

Relation filters follow the declared Relation of the record's entity.
"every" over an empty relation is true, so "some" + "every" together
mean "at least one, and all".
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from hotel_data_access.models import Relation

Record = dict[str, Any]

_RELATION_OPERATORS = frozenset({"some", "every", "none"})
_STRING_OPERATORS = frozenset({"contains", "starts_with", "ends_with"})


class FilterError(ValueError):
    """Raised for a filter the evaluator does not understand."""


def _as_list(condition: Any) -> list[Any]:
    if isinstance(condition, Mapping):
        return [condition]
    return list(condition)


def _fold(value: Any, insensitive: bool) -> Any:
    if insensitive and isinstance(value, str):
        return value.casefold()
    return value


class FilterEvaluator:
    """
    Evaluate filters for records of a given entity.

    `load(entity)` returns every stored record of an entity; it is used to
    resolve relation filters and should be memoised by the caller for the
    duration of one operation.
    """

    def __init__(
        self,
        relations: Mapping[str, Mapping[str, Relation]],
        load: Callable[[str], list[Record]],
    ) -> None:
        self._relations = relations
        self._load = load

    def matches(self, entity: str, record: Record, where: Mapping[str, Any] | None) -> bool:
        if not where:
            return True
        for key, condition in where.items():
            if key == "AND":
                if not all(self.matches(entity, record, c) for c in _as_list(condition)):
                    return False
            elif key == "OR":
                if not any(self.matches(entity, record, c) for c in _as_list(condition)):
                    return False
            elif key == "NOT":
                if any(self.matches(entity, record, c) for c in _as_list(condition)):
                    return False
            elif key in self._relations.get(entity, {}):
                relation = self._relations[entity][key]
                if not self._match_relation(relation, record, condition):
                    return False
            elif not self._match_field(record.get(key), condition):
                return False
        return True

    def _related(self, relation: Relation, record: Record) -> list[Record]:
        owner_id = record.get("id")
        return [r for r in self._load(relation.target) if r.get(relation.foreign_key) == owner_id]

    def _match_relation(self, relation: Relation, record: Record, condition: Any) -> bool:
        if not isinstance(condition, Mapping) or not condition:
            raise FilterError(f"Relation filter must use one of {sorted(_RELATION_OPERATORS)}")
        unknown = set(condition) - _RELATION_OPERATORS
        if unknown:
            raise FilterError(f"Unsupported relation operators: {sorted(unknown)}")

        rows = self._related(relation, record)
        for op, nested in condition.items():
            hits = [self.matches(relation.target, row, nested) for row in rows]
            if op == "some" and not any(hits):
                return False
            if op == "every" and not all(hits):
                return False
            if op == "none" and any(hits):
                return False
        return True

    def _match_field(self, value: Any, condition: Any) -> bool:
        if not isinstance(condition, Mapping):
            return value == condition

        insensitive = condition.get("mode") == "insensitive"
        for op, operand in condition.items():
            if op == "mode":
                continue
            if not self._apply(op, value, operand, insensitive):
                return False
        return True

    def _apply(self, op: str, value: Any, operand: Any, insensitive: bool) -> bool:
        if op == "equals":
            return _fold(value, insensitive) == _fold(operand, insensitive)
        if op == "not":
            if isinstance(operand, Mapping):
                return not self._match_field(value, operand)
            return _fold(value, insensitive) != _fold(operand, insensitive)
        if op in ("in", "not_in"):
            folded = _fold(value, insensitive)
            found = any(folded == _fold(o, insensitive) for o in operand)
            return found if op == "in" else not found
        if op in _STRING_OPERATORS:
            if not isinstance(value, str) or not isinstance(operand, str):
                return False
            text, needle = _fold(value, insensitive), _fold(operand, insensitive)
            if op == "contains":
                return needle in text
            if op == "starts_with":
                return text.startswith(needle)
            return text.endswith(needle)
        if op in ("gt", "gte", "lt", "lte"):
            if value is None:
                return False
            if op == "gt":
                return value > operand
            if op == "gte":
                return value >= operand
            if op == "lt":
                return value < operand
            return value <= operand
        raise FilterError(f"Unsupported filter operator {op!r}")
