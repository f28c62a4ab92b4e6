# fo_core/fields/values.py
from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from rest_framework.exceptions import ValidationError

from fo_core.fields import selectors
from fo_core.fields.models import CustomField, FieldType


class ValueKind:
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OPTIONS = "options"


KIND_BY_FIELD_TYPE: dict[str, str] = {
    FieldType.TEXT: ValueKind.TEXT,
    FieldType.TEXTAREA: ValueKind.TEXT,
    FieldType.SELECT: ValueKind.TEXT,
    FieldType.EMAIL: ValueKind.TEXT,
    FieldType.PHONE: ValueKind.TEXT,
    FieldType.URL: ValueKind.TEXT,
    FieldType.TIME: ValueKind.TEXT,
    FieldType.USER: ValueKind.TEXT,
    FieldType.ATTACHMENT: ValueKind.TEXT,
    FieldType.NUMBER: ValueKind.NUMBER,
    FieldType.CURRENCY: ValueKind.NUMBER,
    FieldType.PERCENT: ValueKind.NUMBER,
    FieldType.DURATION: ValueKind.NUMBER,
    FieldType.RATING: ValueKind.NUMBER,
    FieldType.CHECKBOX: ValueKind.BOOLEAN,
    FieldType.DATE: ValueKind.DATE,
    FieldType.MULTISELECT: ValueKind.OPTIONS,
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class CustomValue:
    """
    Tagged custom-field value. Python value per kind:
      text -> str, number -> Decimal, boolean -> bool,
      date -> datetime.date, options -> tuple[str, ...]
    """
    kind: str
    value: Any

    def to_json(self) -> dict[str, Any]:
        if self.kind == ValueKind.NUMBER:
            return {"kind": self.kind, "value": str(self.value)}
        if self.kind == ValueKind.DATE:
            return {"kind": self.kind, "value": self.value.isoformat()}
        if self.kind == ValueKind.OPTIONS:
            return {"kind": self.kind, "value": list(self.value)}
        return {"kind": self.kind, "value": self.value}

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> "CustomValue":
        kind = data.get("kind")
        raw = data.get("value")
        if kind == ValueKind.NUMBER:
            return CustomValue(kind, Decimal(str(raw)))
        if kind == ValueKind.DATE:
            return CustomValue(kind, datetime.date.fromisoformat(str(raw)))
        if kind == ValueKind.OPTIONS:
            return CustomValue(kind, tuple(str(v) for v in raw or ()))
        if kind == ValueKind.BOOLEAN:
            return CustomValue(kind, bool(raw))
        return CustomValue(ValueKind.TEXT, "" if raw is None else str(raw))

    def as_text(self) -> str:
        """
        Flat string used as a condition attribute.
        """
        if self.kind == ValueKind.OPTIONS:
            return ",".join(self.value)
        if self.kind == ValueKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind == ValueKind.DATE:
            return self.value.isoformat()
        return str(self.value)


def coerce(field: CustomField, raw: Any) -> CustomValue:
    kind = KIND_BY_FIELD_TYPE.get(field.field_type, ValueKind.TEXT)
    key = field.field_key

    if kind == ValueKind.NUMBER:
        try:
            return CustomValue(kind, Decimal(str(raw).strip()))
        except (InvalidOperation, ValueError):
            raise ValidationError({key: "Enter a number."})

    if kind == ValueKind.BOOLEAN:
        if isinstance(raw, bool):
            return CustomValue(kind, raw)
        text = str(raw).strip().lower()
        if text in _TRUE:
            return CustomValue(kind, True)
        if text in _FALSE:
            return CustomValue(kind, False)
        raise ValidationError({key: "Enter true or false."})

    if kind == ValueKind.DATE:
        if isinstance(raw, datetime.datetime):
            return CustomValue(kind, raw.date())
        if isinstance(raw, datetime.date):
            return CustomValue(kind, raw)
        try:
            return CustomValue(kind, datetime.date.fromisoformat(str(raw).strip()))
        except ValueError:
            raise ValidationError({key: "Enter a date as YYYY-MM-DD."})

    allowed = {o.get("value") for o in (field.options or [])}

    if kind == ValueKind.OPTIONS:
        items = raw.split(",") if isinstance(raw, str) else list(raw or [])
        values = tuple(str(v).strip() for v in items if str(v).strip())
        bad = [v for v in values if v not in allowed]
        if bad:
            raise ValidationError({key: f"Unknown option(s): {', '.join(bad)}."})
        return CustomValue(kind, values)

    text = "" if raw is None else str(raw)
    if field.field_type == FieldType.SELECT and text and text not in allowed:
        raise ValidationError({key: f"Unknown option: {text}."})
    return CustomValue(ValueKind.TEXT, text)


class CustomValueMap:
    """
    Typed view over an entity's `custom_values` JSON bag
    ({field_key: {"kind": ..., "value": ...}}).

    Keys whose custom field was retired are kept untouched: the key is never
    reassigned, so the stored value cannot be misread later.
    """

    def __init__(self, stored: Optional[Mapping[str, Any]] = None):
        self._values: dict[str, CustomValue] = {}
        for key, data in (stored or {}).items():
            if isinstance(data, Mapping) and "kind" in data:
                self._values[key] = CustomValue.from_json(data)
            else:
                # untagged legacy value
                self._values[key] = CustomValue(ValueKind.TEXT, "" if data is None else str(data))

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str) -> Optional[CustomValue]:
        return self._values.get(key)

    def items(self):
        return self._values.items()

    def to_json(self) -> dict[str, dict[str, Any]]:
        return {k: v.to_json() for k, v in self._values.items()}

    def as_attributes(self) -> dict[str, str]:
        return {k: v.as_text() for k, v in self._values.items()}

    def apply(self, *, fields: Iterable[CustomField], incoming: Mapping[str, Any]) -> "CustomValueMap":
        """
        Validate `incoming` against the active custom fields and merge it in.
        None / "" clears a value. Unknown keys are rejected.
        """
        by_key = {f.field_key: f for f in fields if f.is_active}
        unknown = sorted(k for k in incoming if k not in by_key)
        if unknown:
            raise ValidationError({k: "Unknown custom field." for k in unknown})

        merged = CustomValueMap()
        merged._values = dict(self._values)
        for key, raw in incoming.items():
            if raw is None or raw == "" or raw == []:
                merged._values.pop(key, None)
                continue
            merged._values[key] = coerce(by_key[key], raw)
        return merged

    def missing_required(self, fields: Iterable[CustomField]) -> list[str]:
        return [f.field_key for f in fields if f.is_active and f.is_required and f.field_key not in self._values]


def validate_custom_values(
    *,
    tenant_id: UUID,
    entity_type: str,
    stored: Optional[Mapping[str, Any]],
    incoming: Optional[Mapping[str, Any]],
    enforce_required: bool = False,
) -> dict[str, dict[str, Any]]:
    """
    Entry point used by the Project/Service write services.
    Returns the JSON to persist.
    """
    active = list(selectors.custom_fields(tenant_id=tenant_id, entity_type=entity_type))
    values = CustomValueMap(stored).apply(fields=active, incoming=incoming or {})

    if enforce_required:
        missing = values.missing_required(active)
        if missing:
            raise ValidationError({k: "This field is required." for k in missing})

    return values.to_json()
