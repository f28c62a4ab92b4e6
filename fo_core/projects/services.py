# fo_core/projects/services.py
from __future__ import annotations

import datetime
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from fo_core.fields.models import EntityType
from fo_core.fields.resolver import FieldResolver
from fo_core.fields.values import validate_custom_values
from fo_core.locations.models import Location
from fo_core.projects.models import BillingModel, Project, ProjectPriority, ProjectStatus, SlaTier
from fo_core.rules.types import CreationIntent
from fo_core.tenants.selectors import get_tenant_or_none

_LETTERS = re.compile(r"[^A-Za-z]")

# inserts retried when a concurrent create took the same readable id
ID_ATTEMPTS = 5

_CHOICES = {
    "billing_model": BillingModel.values,
    "sla_tier": SlaTier.values,
    "status": ProjectStatus.values,
    "priority": ProjectPriority.values,
}

_UPDATABLE = {
    "name",
    "description",
    "project_type",
    "project_type_id",
    "billing_model",
    "sla_tier",
    "status",
    "priority",
    "step_id",
    "step_status_id",
    "start_date",
    "target_end_date",
    "estimated_value",
    "currency",
    "notes",
    "custom_values",
}


def _type_code(project_type: str) -> str:
    """
    "Deployment" -> "DEP"
    """
    return _LETTERS.sub("", project_type or "")[:3].upper() or "PRJ"


def _country_code(country: str) -> str:
    """
    ISO-2 codes pass through; names are shortened to their first two letters.
    """
    return _LETTERS.sub("", country or "")[:2].upper() or "XX"


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError({"estimated_value": "Enter a number."})


class ProjectService:
    """
    Project write model. Manual creates enforce the tenant's required fields;
    projects created by an AutoRule only carry the rule's defaults.
    """

    @staticmethod
    def _validate_choices(values: dict[str, Any]) -> None:
        for key, allowed in _CHOICES.items():
            if key in values and values[key] not in allowed:
                raise ValidationError({key: f"Invalid {key}. Allowed: {list(allowed)}"})

    @staticmethod
    def generate_project_id(
        *,
        tenant_id: UUID,
        project_type: str,
        country: str,
        on: Optional[datetime.date] = None,
    ) -> str:
        """
        TYPE_CC_DDMMYY_SEQ, e.g. DEP_FR_151224_001. SEQ restarts per prefix.
        """
        on = on or timezone.localdate()
        prefix = f"{_type_code(project_type)}_{_country_code(country)}_{on:%d%m%y}_"
        seq = Project.objects.filter(tenant_id=tenant_id, project_id__startswith=prefix).count() + 1
        while Project.objects.filter(tenant_id=tenant_id, project_id=f"{prefix}{seq:03d}").exists():
            seq += 1
        return f"{prefix}{seq:03d}"

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        location_id: UUID,
        project_type_id: str,
        project_type: str = "",
        name: str = "",
        description: str = "",
        billing_model: str = BillingModel.FIXED,
        sla_tier: str = SlaTier.STANDARD,
        status: str = ProjectStatus.DRAFT,
        priority: str = ProjectPriority.MEDIUM,
        step_id: str = "",
        step_status_id: str = "",
        start_date: Optional[datetime.date] = None,
        target_end_date: Optional[datetime.date] = None,
        estimated_value: Any = None,
        currency: str = "",
        notes: str = "",
        custom_values: Optional[dict[str, Any]] = None,
        auto_rule_id: Optional[UUID] = None,
    ) -> Project:
        project_type_id = (project_type_id or "").strip()
        values = {
            "location_id": location_id,
            "project_type_id": project_type_id,
            "name": (name or "").strip(),
            "description": (description or "").strip(),
            "billing_model": billing_model,
            "sla_tier": sla_tier,
            "status": status,
            "priority": priority,
            "step_id": step_id or "",
            "step_status_id": step_status_id or "",
            "start_date": start_date,
            "target_end_date": target_end_date,
            "estimated_value": _decimal_or_none(estimated_value),
            "currency": (currency or "").strip().upper() or settings.FIELDOPS_DEFAULT_CURRENCY,
            "notes": (notes or "").strip(),
        }
        ProjectService._validate_choices(values)

        manual = auto_rule_id is None
        if manual:
            missing = FieldResolver.missing_required(tenant_id=tenant_id, entity_type=EntityType.PROJECT, values=values)
            if missing:
                raise ValidationError({k: "This field is required." for k in missing})
        if not project_type_id:
            raise ValidationError({"project_type_id": "This field is required."})

        location = Location.objects.filter(id=location_id, tenant_id=tenant_id).first()
        if location is None:
            raise ValidationError({"location_id": "Location not found."})

        if start_date and target_end_date and target_end_date < start_date:
            raise ValidationError({"target_end_date": "Must be on or after the start date."})

        stored_values = validate_custom_values(
            tenant_id=tenant_id,
            entity_type=EntityType.PROJECT,
            stored=None,
            incoming=custom_values,
            enforce_required=manual,
        )

        country = location.country
        if not country:
            tenant = get_tenant_or_none(tenant_id=tenant_id)
            country = tenant.default_country if tenant else ""

        project_type = (project_type or "").strip() or project_type_id
        values.pop("location_id")
        name = values.pop("name")

        # a concurrent create can take the same sequence number; the unique
        # (tenant_id, project_id) constraint catches it and the next attempt recounts
        for attempt in range(1, ID_ATTEMPTS + 1):
            readable_id = ProjectService.generate_project_id(tenant_id=tenant_id, project_type=project_type, country=country)
            try:
                with transaction.atomic(savepoint=True):
                    return Project.objects.create(
                        tenant_id=tenant_id,
                        location=location,
                        project_id=readable_id,
                        name=name or readable_id,
                        project_type=project_type,
                        custom_values=stored_values,
                        auto_rule_id=auto_rule_id,
                        **values,
                    )
            except IntegrityError:
                if attempt == ID_ATTEMPTS:
                    raise

    @staticmethod
    def create_from_intent(intent: CreationIntent) -> Project:
        """
        Materialize a Location -> Project CreationIntent (origin = location).
        """
        d = intent.defaults
        return ProjectService.create(
            tenant_id=intent.tenant_id,
            location_id=intent.origin_id,
            project_type_id=intent.target_type_id,
            billing_model=d.get("billing_model") or BillingModel.FIXED,
            sla_tier=d.get("sla_tier") or SlaTier.STANDARD,
            priority=d.get("priority") or ProjectPriority.MEDIUM,
            step_id=d.get("step_id") or "",
            step_status_id=d.get("step_status_id") or "",
            auto_rule_id=intent.rule_id,
        )

    @staticmethod
    @transaction.atomic
    def update(*, tenant_id: UUID, project_pk: UUID, **changes: Any) -> Project:
        """
        Partial update. project_id and location never change.
        """
        if "project_id" in changes or "location_id" in changes:
            raise ValidationError({"project_id": "Project id and location cannot be changed."})

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError({k: "Unknown field." for k in sorted(unknown)})

        project = Project.objects.select_for_update().get(id=project_pk, tenant_id=tenant_id)

        ProjectService._validate_choices(changes)

        required = {
            f.key
            for f in FieldResolver.resolve_schema(tenant_id=tenant_id, entity_type=EntityType.PROJECT).required
            if not f.is_custom_field
        }
        blanked = sorted(k for k in changes if k in required and changes[k] in (None, ""))
        if blanked:
            raise ValidationError({k: "This field is required." for k in blanked})

        if "custom_values" in changes:
            project.custom_values = validate_custom_values(
                tenant_id=tenant_id,
                entity_type=EntityType.PROJECT,
                stored=project.custom_values,
                incoming=changes.pop("custom_values"),
            )
        if "estimated_value" in changes:
            project.estimated_value = _decimal_or_none(changes.pop("estimated_value"))
        if "currency" in changes:
            project.currency = (changes.pop("currency") or "").strip().upper() or settings.FIELDOPS_DEFAULT_CURRENCY

        for name, value in changes.items():
            setattr(project, name, value.strip() if isinstance(value, str) else value)

        if not project.name:
            project.name = project.project_id
        if project.start_date and project.target_end_date and project.target_end_date < project.start_date:
            raise ValidationError({"target_end_date": "Must be on or after the start date."})

        project.save()
        return project

    @staticmethod
    @transaction.atomic
    def delete(*, tenant_id: UUID, project_pk: UUID) -> None:
        project = Project.objects.select_for_update().get(id=project_pk, tenant_id=tenant_id)
        if project.services.exists():
            raise ValidationError({"project": "Project has services; delete them first."})
        project.delete()
