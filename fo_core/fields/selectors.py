# fo_core/fields/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from fo_core.fields.models import CustomField, FieldConfig, FieldDefinition


def active_definitions(*, entity_type: str) -> QuerySet[FieldDefinition]:
    return FieldDefinition.objects.filter(entity_type=entity_type, is_active=True).order_by("display_order", "field_key")


def get_definition_or_none(*, field_definition_id: UUID) -> Optional[FieldDefinition]:
    return FieldDefinition.objects.filter(id=field_definition_id, is_active=True).first()


def field_configs(*, tenant_id: UUID, entity_type: str) -> QuerySet[FieldConfig]:
    return FieldConfig.objects.filter(tenant_id=tenant_id, entity_type=entity_type)


def field_config_map(*, tenant_id: UUID, entity_type: str) -> dict[UUID, FieldConfig]:
    return {c.field_definition_id: c for c in field_configs(tenant_id=tenant_id, entity_type=entity_type)}


def custom_fields(*, tenant_id: UUID, entity_type: str, include_retired: bool = False) -> QuerySet[CustomField]:
    qs = CustomField.objects.filter(tenant_id=tenant_id, entity_type=entity_type)
    if not include_retired:
        qs = qs.filter(is_active=True)
    return qs.order_by("display_order", "created_at")


def get_custom_field(*, tenant_id: UUID, custom_field_id: UUID) -> CustomField:
    return CustomField.objects.get(id=custom_field_id, tenant_id=tenant_id)


def custom_field_key_taken(*, tenant_id: UUID, entity_type: str, field_key: str) -> bool:
    # retired keys stay reserved
    return CustomField.objects.filter(tenant_id=tenant_id, entity_type=entity_type, field_key=field_key).exists()
