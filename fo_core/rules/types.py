# fo_core/rules/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from uuid import UUID


class Operator:
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    IN = "in"

    ALL = (
        EQUALS,
        NOT_EQUALS,
        CONTAINS,
        NOT_CONTAINS,
        STARTS_WITH,
        ENDS_WITH,
        IS_EMPTY,
        IS_NOT_EMPTY,
        IN,
    )
    # value is ignored for these
    UNARY = (IS_EMPTY, IS_NOT_EMPTY)


class Logic:
    ALL = "all"
    ANY = "any"

    CHOICES = (ALL, ANY)


class ValueKind:
    """
    How a condition compares its value, fixed when the rule is saved.
    TEXT: free text, case-insensitive. ID / ENUM: exact match.
    """
    TEXT = "text"
    ID = "id"
    ENUM = "enum"

    CHOICES = (TEXT, ID, ENUM)


@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: Optional[str] = None
    value_kind: str = ValueKind.TEXT

    @staticmethod
    def from_dict(data: Any) -> "Condition":
        # never raises: a malformed entry becomes a condition the evaluator rejects
        if not isinstance(data, Mapping):
            return Condition(field="", operator="")
        value = data.get("value")
        return Condition(
            field=str(data.get("field") or ""),
            operator=str(data.get("operator") or ""),
            value=None if value is None else str(value),
            value_kind=str(data.get("value_kind") or ValueKind.TEXT),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
            "value_kind": self.value_kind,
        }


@dataclass(frozen=True)
class ConditionSet:
    logic: str = Logic.ALL
    conditions: tuple[Condition, ...] = ()

    @staticmethod
    def from_dict(data: Any) -> "ConditionSet":
        if not isinstance(data, Mapping):
            return ConditionSet()
        items = data.get("conditions")
        if not isinstance(items, (list, tuple)):
            items = []
        return ConditionSet(
            logic=str(data.get("logic") or Logic.ALL),
            conditions=tuple(Condition.from_dict(c) for c in items),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"logic": self.logic, "conditions": [c.to_dict() for c in self.conditions]}


@dataclass(frozen=True)
class CreationIntent:
    """
    What to create, as decided by RuleEngine.apply(). Never persisted by the engine;
    the Project/Service write services materialize it.
    """
    tenant_id: UUID
    rule_id: UUID
    trigger_type: str
    target_type_id: str
    origin_id: Optional[UUID] = None
    defaults: Mapping[str, Any] = field(default_factory=dict)
    prevent_duplicates: bool = True
    duplicate_scope: str = "rule"
