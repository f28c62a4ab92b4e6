# fo_core/rules/services.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Union
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from fo_core.projects.models import BillingModel, ProjectPriority, SlaTier
from fo_core.rules.conditions import value_kind_for
from fo_core.rules.defaults import DEFAULTS_BY_TRIGGER, merge_defaults
from fo_core.rules.models import AutoCreationRecord, AutoRule, DuplicateScope, RecordStatus, TriggerType
from fo_core.rules.serializers import ConditionSetSerializer
from fo_core.rules.types import ConditionSet, CreationIntent
from fo_core.service_visits.models import ServiceStatus, Urgency

# allowed values for enum-valued defaults
_DEFAULT_CHOICES: dict[str, Any] = {
    "billing_model": BillingModel.values,
    "sla_tier": SlaTier.values,
    "priority": ProjectPriority.values,
    "urgency": Urgency.values,
    "status": ServiceStatus.values,
}

_UPDATABLE = {
    "name",
    "description",
    "target_type_id",
    "conditions",
    "defaults",
    "is_active",
    "priority",
    "prevent_duplicates",
    "duplicate_scope",
}


def _validated_conditions(trigger_type: str, conditions: Union[ConditionSet, Mapping[str, Any], None]) -> dict:
    """
    Validate structure and stamp each condition with the value kind of its field.
    """
    data = conditions.to_dict() if isinstance(conditions, ConditionSet) else conditions
    serializer = ConditionSetSerializer(data=data or {})
    if not serializer.is_valid():
        raise ValidationError({"conditions": serializer.errors})

    validated = serializer.validated_data
    return {
        "logic": validated["logic"],
        "conditions": [
            {
                "field": c["field"].strip(),
                "operator": c["operator"],
                "value": None if c.get("value") is None else c["value"].strip(),
                "value_kind": value_kind_for(trigger_type, c["field"].strip()),
            }
            for c in validated["conditions"]
        ],
    }


def _validated_defaults(trigger_type: str, defaults: Optional[Mapping[str, Any]]) -> dict:
    defaults = dict(defaults or {})
    allowed = DEFAULTS_BY_TRIGGER[trigger_type]

    unknown = sorted(set(defaults) - set(allowed))
    if unknown:
        raise ValidationError({"defaults": f"Unknown default(s) for {trigger_type}: {', '.join(unknown)}"})

    merged = merge_defaults(trigger_type, defaults)
    for key, value in merged.items():
        choices = _DEFAULT_CHOICES.get(key)
        if choices is not None and value not in choices:
            raise ValidationError({"defaults": f"Invalid {key} '{value}'. Allowed: {list(choices)}"})
    return merged


def _validated_target(target_type_id: Any) -> str:
    target = str(target_type_id or "").strip()
    if not target:
        raise ValidationError({"target_type_id": "A target type is required."})
    return target


def _validated_scope(scope: str) -> str:
    if scope not in DuplicateScope.values:
        raise ValidationError({"duplicate_scope": f"Invalid duplicate_scope. Allowed: {list(DuplicateScope.values)}"})
    return scope


def _validated_priority(priority: Any) -> int:
    try:
        return int(priority)
    except (TypeError, ValueError):
        raise ValidationError({"priority": "A whole number is required."})


class AutoRuleService:
    """
    Auto-creation rule write model. A rule only reaches the database with a
    non-empty, well-formed condition set and a target type.
    """

    @staticmethod
    def clean_definition(
        *,
        trigger_type: str,
        target_type_id: Any,
        conditions: Union[ConditionSet, Mapping[str, Any], None],
        defaults: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        """
        Normalized target/conditions/defaults exactly as create/update store them.
        For editors that write AutoRule rows themselves (admin forms).
        """
        if trigger_type not in TriggerType.values:
            raise ValidationError({"trigger_type": f"Invalid trigger_type. Allowed: {list(TriggerType.values)}"})
        if defaults is not None and not isinstance(defaults, Mapping):
            raise ValidationError({"defaults": "Must be a JSON object."})
        return {
            "target_type_id": _validated_target(target_type_id),
            "conditions": _validated_conditions(trigger_type, conditions),
            "defaults": _validated_defaults(trigger_type, defaults),
        }

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        trigger_type: str,
        name: str,
        target_type_id: str,
        conditions: Union[ConditionSet, Mapping[str, Any]],
        defaults: Optional[Mapping[str, Any]] = None,
        description: str = "",
        priority: int = 0,
        is_active: bool = True,
        prevent_duplicates: bool = True,
        duplicate_scope: str = DuplicateScope.RULE,
        rule_id: Optional[UUID] = None,
    ) -> AutoRule:
        if trigger_type not in TriggerType.values:
            raise ValidationError({"trigger_type": f"Invalid trigger_type. Allowed: {list(TriggerType.values)}"})

        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "This field is required."})

        extra = {"id": rule_id} if rule_id is not None else {}
        return AutoRule.objects.create(
            tenant_id=tenant_id,
            trigger_type=trigger_type,
            name=name,
            description=(description or "").strip(),
            target_type_id=_validated_target(target_type_id),
            conditions=_validated_conditions(trigger_type, conditions),
            defaults=_validated_defaults(trigger_type, defaults),
            priority=_validated_priority(priority),
            is_active=bool(is_active),
            prevent_duplicates=bool(prevent_duplicates),
            duplicate_scope=_validated_scope(duplicate_scope),
            **extra,
        )

    @staticmethod
    @transaction.atomic
    def update(*, tenant_id: UUID, rule_id: UUID, **changes: Any) -> AutoRule:
        if "trigger_type" in changes:
            raise ValidationError({"trigger_type": "The trigger of a rule cannot be changed."})

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError({k: "Unknown field." for k in sorted(unknown)})

        rule = AutoRule.objects.select_for_update().get(id=rule_id, tenant_id=tenant_id)

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError({"name": "This field is required."})
            rule.name = name
        if "description" in changes:
            rule.description = (changes["description"] or "").strip()
        if "target_type_id" in changes:
            rule.target_type_id = _validated_target(changes["target_type_id"])
        if "conditions" in changes:
            rule.conditions = _validated_conditions(rule.trigger_type, changes["conditions"])
        if "defaults" in changes:
            rule.defaults = _validated_defaults(rule.trigger_type, changes["defaults"])
        if "priority" in changes:
            rule.priority = _validated_priority(changes["priority"])
        if "duplicate_scope" in changes:
            rule.duplicate_scope = _validated_scope(changes["duplicate_scope"])
        for flag in ("is_active", "prevent_duplicates"):
            if flag in changes:
                setattr(rule, flag, bool(changes[flag]))

        rule.save()
        return rule

    @staticmethod
    @transaction.atomic
    def set_active(*, tenant_id: UUID, rule_id: UUID, is_active: bool) -> AutoRule:
        rule = AutoRule.objects.select_for_update().get(id=rule_id, tenant_id=tenant_id)

        # idempotent no-op
        if rule.is_active == bool(is_active):
            return rule

        rule.is_active = bool(is_active)
        rule.save(update_fields=["is_active", "updated_at"])
        return rule

    @staticmethod
    @transaction.atomic
    def delete(*, tenant_id: UUID, rule_id: UUID) -> None:
        AutoRule.objects.get(id=rule_id, tenant_id=tenant_id).delete()

    @staticmethod
    @transaction.atomic
    def upsert(*, tenant_id: UUID, rule_id: UUID, **fields: Any) -> tuple[AutoRule, bool]:
        """
        Idempotent by (tenant, rule_id). Returns (rule, created).
        """
        existing = AutoRule.objects.filter(id=rule_id, tenant_id=tenant_id).first()
        if existing is not None:
            trigger_type = fields.pop("trigger_type", existing.trigger_type)
            if trigger_type != existing.trigger_type:
                raise ValidationError({"trigger_type": "The trigger of a rule cannot be changed."})
            return AutoRuleService.update(tenant_id=tenant_id, rule_id=rule_id, **fields), False

        if AutoRule.objects.filter(id=rule_id).exists():
            raise ValidationError({"rule_id": "This id is already in use."})

        return AutoRuleService.create(tenant_id=tenant_id, rule_id=rule_id, **fields), True


class AutoCreationService:
    """
    Ledger writes for auto-created entities (see AutoCreationRecord).
    """

    @staticmethod
    def dedupe_key(intent: CreationIntent) -> Optional[str]:
        if not intent.prevent_duplicates or intent.origin_id is None:
            return None
        if intent.duplicate_scope == DuplicateScope.ORIGIN:
            return f"{intent.trigger_type}:{intent.origin_id}"
        return f"{intent.trigger_type}:{intent.origin_id}:rule:{intent.rule_id}"

    @staticmethod
    def claim(*, intent: CreationIntent) -> AutoCreationRecord:
        """
        Insert the ledger row for `intent`. Must run inside the caller's atomic
        block together with the entity write; a concurrent claim for the same
        key raises IntegrityError.
        """
        return AutoCreationRecord.objects.create(
            tenant_id=intent.tenant_id,
            rule_id=intent.rule_id,
            trigger_type=intent.trigger_type,
            origin_id=intent.origin_id,
            target_type_id=intent.target_type_id,
            dedupe_key=AutoCreationService.dedupe_key(intent),
            status=RecordStatus.CREATED,
        )

    @staticmethod
    def mark_created(*, record: AutoCreationRecord, entity_id: UUID) -> AutoCreationRecord:
        record.created_entity_id = entity_id
        record.save(update_fields=["created_entity_id", "updated_at"])
        return record

    @staticmethod
    @transaction.atomic
    def record_failure(*, intent: CreationIntent, error: str) -> AutoCreationRecord:
        return AutoCreationRecord.objects.create(
            tenant_id=intent.tenant_id,
            rule_id=intent.rule_id,
            trigger_type=intent.trigger_type,
            origin_id=intent.origin_id,
            target_type_id=intent.target_type_id,
            dedupe_key=None,
            status=RecordStatus.FAILED,
            error=(error or "")[:2000],
        )
