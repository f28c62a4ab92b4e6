# fo_core/rules/conditions.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from fo_core.rules.models import TriggerType
from fo_core.rules.types import Condition, ConditionSet, Logic, Operator, ValueKind

logger = logging.getLogger(__name__)


# Fields a condition may reference, per trigger, with their value kind.
LOCATION_CONDITION_FIELDS: dict[str, str] = {
    "client": ValueKind.TEXT,
    "client_id": ValueKind.ID,
    "country": ValueKind.TEXT,
    "state": ValueKind.TEXT,
    "city": ValueKind.TEXT,
    "type": ValueKind.ENUM,
    "status": ValueKind.ENUM,
    "name": ValueKind.TEXT,
    "code": ValueKind.TEXT,
    "postal_code": ValueKind.TEXT,
}

# Project -> Service rules see the project and its location (location status is
# exposed as location_status so it does not shadow the project status).
SERVICE_RULE_CONDITION_FIELDS: dict[str, str] = {
    "project_type_id": ValueKind.ID,
    "billing_model": ValueKind.ENUM,
    "sla_tier": ValueKind.ENUM,
    "priority": ValueKind.ENUM,
    "status": ValueKind.ENUM,
    "name": ValueKind.TEXT,
    "project_id": ValueKind.TEXT,
    "client": ValueKind.TEXT,
    "client_id": ValueKind.ID,
    "country": ValueKind.TEXT,
    "state": ValueKind.TEXT,
    "city": ValueKind.TEXT,
    "type": ValueKind.ENUM,
    "postal_code": ValueKind.TEXT,
    "location_status": ValueKind.ENUM,
}

CONDITION_FIELDS: dict[str, dict[str, str]] = {
    TriggerType.LOCATION_PROJECT: LOCATION_CONDITION_FIELDS,
    TriggerType.PROJECT_SERVICE: SERVICE_RULE_CONDITION_FIELDS,
}


def value_kind_for(trigger_type: str, field: str) -> str:
    """
    Value kind of `field` for rules of `trigger_type`. Unknown fields
    (custom fields included) compare as free text.
    """
    return CONDITION_FIELDS.get(trigger_type, {}).get(field, ValueKind.TEXT)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _equal(actual: str, expected: str, kind: str) -> bool:
    if kind in (ValueKind.ID, ValueKind.ENUM):
        return actual == expected
    return actual.casefold() == expected.casefold()


class ConditionEvaluator:
    """
    Pure predicate evaluation over a flat attribute snapshot.

    Never raises on bad data: unsupported operators and malformed conditions
    evaluate to False and are logged.
    """

    @staticmethod
    def evaluate(condition: Union[Condition, Mapping[str, Any]], attributes: Mapping[str, Any]) -> bool:
        if not isinstance(condition, Condition):
            condition = Condition.from_dict(condition)

        op = condition.operator
        if op not in Operator.ALL:
            logger.warning("Unsupported condition operator %r on field %r", op, condition.field)
            return False
        if not condition.field:
            logger.warning("Malformed condition without a field: %r", condition)
            return False

        kind = condition.value_kind
        if kind not in ValueKind.CHOICES:
            logger.warning("Unknown value kind %r on field %r, comparing as text", kind, condition.field)
            kind = ValueKind.TEXT

        # missing keys read as empty
        actual = _as_text(attributes.get(condition.field))

        if op == Operator.IS_EMPTY:
            return actual == ""
        if op == Operator.IS_NOT_EMPTY:
            return actual != ""

        expected = _as_text(condition.value)

        if op == Operator.EQUALS:
            return _equal(actual, expected, kind)
        if op == Operator.NOT_EQUALS:
            return not _equal(actual, expected, kind)
        if op == Operator.IN:
            items = [item.strip() for item in expected.split(",") if item.strip()]
            return any(_equal(actual, item, kind) for item in items)

        haystack = actual.casefold()
        needle = expected.casefold()
        if op == Operator.CONTAINS:
            return needle in haystack
        if op == Operator.NOT_CONTAINS:
            return needle not in haystack
        if op == Operator.STARTS_WITH:
            return haystack.startswith(needle)
        return haystack.endswith(needle)

    @staticmethod
    def evaluate_set(condition_set: Union[ConditionSet, Mapping[str, Any]], attributes: Mapping[str, Any]) -> bool:
        """
        all -> AND, any -> OR, both short-circuit. An empty set is False.
        """
        if not isinstance(condition_set, ConditionSet):
            condition_set = ConditionSet.from_dict(condition_set)

        if not condition_set.conditions:
            return False

        results = (ConditionEvaluator.evaluate(c, attributes) for c in condition_set.conditions)
        if condition_set.logic == Logic.ALL:
            return all(results)
        if condition_set.logic == Logic.ANY:
            return any(results)

        logger.warning("Unsupported condition logic %r", condition_set.logic)
        return False
