# fo_core/fields/services.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from fo_core.fields import selectors
from fo_core.fields.models import CustomField, EntityType, FieldConfig, FieldType

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

OPTION_FIELD_TYPES = {FieldType.SELECT, FieldType.MULTISELECT}


def slugify_field_key(label: str) -> str:
    """
    "Site Access Code!" -> "site_access_code"
    """
    return _NON_ALNUM.sub("_", (label or "").lower()).strip("_")


def _normalize_options(options: Optional[Iterable[Any]]) -> list[dict[str, str]]:
    out: list[dict[str, str]] = []
    for opt in options or []:
        if isinstance(opt, dict):
            value = str(opt.get("value", "")).strip()
            label = str(opt.get("label") or value).strip()
        else:
            value = label = str(opt).strip()
        if value:
            out.append({"value": value, "label": label})
    return out


@dataclass(frozen=True)
class FieldConfigChange:
    """
    One tenant override write. None means "leave as inherited".
    """
    field_definition_id: UUID
    is_required: Optional[bool] = None
    is_visible: Optional[bool] = None
    custom_label: Optional[str] = None
    custom_placeholder: Optional[str] = None
    custom_help_text: Optional[str] = None
    display_order: Optional[int] = None


@dataclass(frozen=True)
class UpsertFieldConfigResult:
    config: FieldConfig
    created: bool


class FieldConfigService:
    """
    Tenant field-override write model.

    Uniqueness: (tenant_id, field_definition_id). Upsert is idempotent.
    """

    @staticmethod
    @transaction.atomic
    def upsert(*, tenant_id: UUID, change: FieldConfigChange) -> UpsertFieldConfigResult:
        definition = selectors.get_definition_or_none(field_definition_id=change.field_definition_id)
        if definition is None:
            raise ValidationError({"field_definition_id": "Field definition not found."})

        if change.is_visible is False and definition.is_auto_generated:
            raise ValidationError({"is_visible": f"'{definition.field_key}' is auto-generated and always visible."})
        if change.is_visible is False and definition.is_platform_required:
            raise ValidationError({"is_visible": f"'{definition.field_key}' is required by the platform."})
        if change.is_required is False and definition.is_platform_required:
            raise ValidationError({"is_required": f"'{definition.field_key}' is required by the platform."})

        obj, created = FieldConfig.objects.update_or_create(
            tenant_id=tenant_id,
            field_definition_id=definition.id,
            defaults={
                "entity_type": definition.entity_type,
                "is_required": change.is_required,
                "is_visible": change.is_visible,
                "custom_label": (change.custom_label or "").strip(),
                "custom_placeholder": (change.custom_placeholder or "").strip(),
                "custom_help_text": (change.custom_help_text or "").strip(),
                "display_order": change.display_order,
            },
        )
        return UpsertFieldConfigResult(config=obj, created=created)

    @staticmethod
    @transaction.atomic
    def bulk_upsert(*, tenant_id: UUID, changes: Iterable[FieldConfigChange]) -> list[FieldConfig]:
        """
        All-or-nothing "save all": one invalid change rejects the batch.
        """
        return [FieldConfigService.upsert(tenant_id=tenant_id, change=c).config for c in changes]

    @staticmethod
    @transaction.atomic
    def reset(*, tenant_id: UUID, field_definition_id: UUID) -> int:
        """
        Drop the override so the definition defaults apply again.
        """
        deleted, _ = FieldConfig.objects.filter(tenant_id=tenant_id, field_definition_id=field_definition_id).delete()
        return deleted


class CustomFieldService:
    """
    Tenant custom-field write model.

    - field_key = prefix + slug(label), assigned once at creation.
    - delete() retires the row; the key is never reused within the tenant/entity type.
    """

    @staticmethod
    def _validate_type_and_options(field_type: str, options: list[dict[str, str]]) -> None:
        if field_type not in FieldType.values:
            raise ValidationError({"field_type": f"Invalid field_type. Allowed: {list(FieldType.values)}"})
        if field_type in OPTION_FIELD_TYPES and not options:
            raise ValidationError({"options": "Select fields need at least one option."})

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        entity_type: str,
        field_label: str,
        field_type: str = FieldType.TEXT,
        is_required: bool = False,
        is_visible: bool = True,
        display_order: int = 100,
        options: Optional[Iterable[Any]] = None,
        validation_rules: Optional[dict] = None,
        placeholder: str = "",
        help_text: str = "",
        default_value: str = "",
    ) -> CustomField:
        if entity_type not in EntityType.values:
            raise ValidationError({"entity_type": f"Invalid entity_type. Allowed: {list(EntityType.values)}"})

        field_label = (field_label or "").strip()
        if not field_label:
            raise ValidationError({"field_label": "This field is required."})

        slug = slugify_field_key(field_label)
        if not slug:
            raise ValidationError({"field_label": "Label must contain at least one letter or digit."})

        field_key = f"{settings.FIELDOPS_CUSTOM_FIELD_PREFIX}{slug}"
        if selectors.custom_field_key_taken(tenant_id=tenant_id, entity_type=entity_type, field_key=field_key):
            raise ValidationError({"field_label": f"A custom field with key '{field_key}' already exists."})

        opts = _normalize_options(options)
        CustomFieldService._validate_type_and_options(field_type, opts)

        return CustomField.objects.create(
            tenant_id=tenant_id,
            entity_type=entity_type,
            field_key=field_key,
            field_label=field_label,
            field_type=field_type,
            is_required=bool(is_required),
            is_visible=bool(is_visible),
            display_order=display_order,
            options=opts,
            validation_rules=dict(validation_rules or {}),
            placeholder=placeholder or "",
            help_text=help_text or "",
            default_value=default_value or "",
        )

    @staticmethod
    @transaction.atomic
    def update(*, tenant_id: UUID, custom_field_id: UUID, **changes: Any) -> CustomField:
        """
        Partial update. field_key and entity_type are immutable.
        """
        if "field_key" in changes or "entity_type" in changes:
            raise ValidationError({"field_key": "Custom field keys cannot be changed."})

        cf = CustomField.objects.select_for_update().get(id=custom_field_id, tenant_id=tenant_id, is_active=True)

        if "field_label" in changes:
            label = (changes.pop("field_label") or "").strip()
            if not label:
                raise ValidationError({"field_label": "This field is required."})
            cf.field_label = label

        if "options" in changes:
            changes["options"] = _normalize_options(changes["options"])

        allowed = {
            "field_type",
            "is_required",
            "is_visible",
            "display_order",
            "options",
            "validation_rules",
            "placeholder",
            "help_text",
            "default_value",
        }
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError({k: "Unknown field." for k in sorted(unknown)})

        for name, value in changes.items():
            setattr(cf, name, value)

        CustomFieldService._validate_type_and_options(cf.field_type, cf.options)
        cf.save()
        return cf

    @staticmethod
    @transaction.atomic
    def delete(*, tenant_id: UUID, custom_field_id: UUID) -> CustomField:
        cf = CustomField.objects.select_for_update().get(id=custom_field_id, tenant_id=tenant_id)
        if not cf.is_active:
            return cf
        cf.is_active = False
        cf.retired_at = timezone.now()
        cf.save(update_fields=["is_active", "retired_at", "updated_at"])
        return cf
