# fo_core/fields/registry.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from django.db import transaction

from fo_core.fields.models import EntityType, FieldCategory, FieldDefinition, FieldType


@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    type: str
    category: str
    display_order: int
    is_platform_required: bool = False
    is_system_field: bool = True
    is_client_configurable: bool = True
    placeholder: str = ""
    help_text: str = ""
    options: tuple[tuple[str, str], ...] = ()
    validation_rules: dict[str, Any] = field(default_factory=dict)

    def option_dicts(self) -> list[dict[str, str]]:
        return [{"value": v, "label": label} for v, label in self.options]


_BILLING_MODELS = (
    ("fixed", "Fixed"),
    ("time_and_materials", "Time & materials"),
    ("per_visit", "Per visit"),
    ("per_action", "Per action"),
)
_SLA_TIERS = (("standard", "Standard"), ("premium", "Premium"), ("critical", "Critical"))
_PROJECT_PRIORITIES = (("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent"))
_URGENCIES = (("scheduled", "Scheduled"), ("same_day", "Same day"), ("emergency", "Emergency"))


PROJECT_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(
        "project_id", "Project ID", FieldType.TEXT, FieldCategory.GENERAL, 0,
        is_client_configurable=False,
        help_text="Generated as TYPE_COUNTRY_DDMMYY_SEQ.",
    ),
    FieldSpec("location_id", "Location", FieldType.SELECT, FieldCategory.GENERAL, 10, is_platform_required=True),
    FieldSpec("project_type_id", "Project type", FieldType.SELECT, FieldCategory.GENERAL, 20, is_platform_required=True),
    FieldSpec("name", "Name", FieldType.TEXT, FieldCategory.GENERAL, 30, placeholder="Defaults to the project ID"),
    FieldSpec("description", "Description", FieldType.TEXTAREA, FieldCategory.GENERAL, 40),
    FieldSpec("status", "Status", FieldType.SELECT, FieldCategory.OPERATIONAL, 50),
    FieldSpec("priority", "Priority", FieldType.SELECT, FieldCategory.OPERATIONAL, 60, options=_PROJECT_PRIORITIES),
    FieldSpec("step_id", "Workflow step", FieldType.SELECT, FieldCategory.OPERATIONAL, 70),
    FieldSpec("step_status_id", "Step status", FieldType.SELECT, FieldCategory.OPERATIONAL, 80),
    FieldSpec("start_date", "Start date", FieldType.DATE, FieldCategory.TIMELINE, 90),
    FieldSpec("target_end_date", "Target end date", FieldType.DATE, FieldCategory.TIMELINE, 100),
    FieldSpec("billing_model", "Billing model", FieldType.SELECT, FieldCategory.FINANCIAL, 110, options=_BILLING_MODELS),
    FieldSpec("sla_tier", "SLA tier", FieldType.SELECT, FieldCategory.FINANCIAL, 120, options=_SLA_TIERS),
    FieldSpec("estimated_value", "Estimated value", FieldType.CURRENCY, FieldCategory.FINANCIAL, 130),
    FieldSpec("currency", "Currency", FieldType.TEXT, FieldCategory.FINANCIAL, 140, placeholder="EUR"),
    FieldSpec("notes", "Notes", FieldType.TEXTAREA, FieldCategory.GENERAL, 150),
)

SERVICE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(
        "service_id", "Service ID", FieldType.TEXT, FieldCategory.GENERAL, 0,
        is_client_configurable=False,
        help_text="Generated as SVC_<project id>_SEQ.",
    ),
    FieldSpec("project_id", "Project", FieldType.SELECT, FieldCategory.GENERAL, 10, is_platform_required=True),
    FieldSpec("service_type_id", "Service type", FieldType.SELECT, FieldCategory.GENERAL, 20),
    FieldSpec("title", "Title", FieldType.TEXT, FieldCategory.GENERAL, 30),
    FieldSpec("description", "Description", FieldType.TEXTAREA, FieldCategory.GENERAL, 40),
    FieldSpec("reference_number", "Reference number", FieldType.TEXT, FieldCategory.GENERAL, 50),
    FieldSpec("step_id", "Workflow step", FieldType.SELECT, FieldCategory.OPERATIONAL, 60),
    FieldSpec("step_status_id", "Step status", FieldType.SELECT, FieldCategory.OPERATIONAL, 70),
    FieldSpec("urgency", "Urgency", FieldType.SELECT, FieldCategory.OPERATIONAL, 80, options=_URGENCIES),
    FieldSpec("status", "Status", FieldType.SELECT, FieldCategory.OPERATIONAL, 90),
    FieldSpec("scheduled_date", "Scheduled date", FieldType.DATE, FieldCategory.SCHEDULING, 100),
    FieldSpec("scheduled_start_time", "Start time", FieldType.TIME, FieldCategory.SCHEDULING, 110),
    FieldSpec("scheduled_end_time", "End time", FieldType.TIME, FieldCategory.SCHEDULING, 120),
    FieldSpec("assigned_technicians", "Technicians", FieldType.USER, FieldCategory.ASSIGNMENT, 130),
    FieldSpec("notes", "Notes", FieldType.TEXTAREA, FieldCategory.GENERAL, 140),
)


@dataclass(frozen=True)
class SyncResult:
    created: int
    updated: int
    deactivated: int


class FieldRegistry:
    """
    Static, platform-owned catalog of field definitions per entity type.

    The catalog lives in code; sync() mirrors it into FieldDefinition rows so
    tenant FieldConfigs have a stable id to point at.
    """

    CATALOG: dict[str, tuple[FieldSpec, ...]] = {
        EntityType.PROJECT: PROJECT_FIELDS,
        EntityType.SERVICE: SERVICE_FIELDS,
    }

    @staticmethod
    def specs(entity_type: str) -> tuple[FieldSpec, ...]:
        return FieldRegistry.CATALOG.get(entity_type, ())

    @staticmethod
    def keys(entity_type: str) -> set[str]:
        return {s.key for s in FieldRegistry.specs(entity_type)}

    @staticmethod
    @transaction.atomic
    def sync() -> SyncResult:
        """
        Idempotent. Keys dropped from the catalog are deactivated, never deleted.
        """
        created = updated = deactivated = 0

        for entity_type, specs in FieldRegistry.CATALOG.items():
            for spec in specs:
                _, was_created = FieldDefinition.objects.update_or_create(
                    entity_type=entity_type,
                    field_key=spec.key,
                    defaults={
                        "field_label": spec.label,
                        "field_type": spec.type,
                        "category": spec.category,
                        "display_order": spec.display_order,
                        "is_system_field": spec.is_system_field,
                        "is_platform_required": spec.is_platform_required,
                        "is_client_configurable": spec.is_client_configurable,
                        "options": spec.option_dicts(),
                        "validation_rules": dict(spec.validation_rules),
                        "placeholder": spec.placeholder,
                        "help_text": spec.help_text,
                        "is_active": True,
                    },
                )
                if was_created:
                    created += 1
                else:
                    updated += 1

            deactivated += (
                FieldDefinition.objects.filter(entity_type=entity_type, is_active=True)
                .exclude(field_key__in=[s.key for s in specs])
                .update(is_active=False)
            )

        return SyncResult(created=created, updated=updated, deactivated=deactivated)
