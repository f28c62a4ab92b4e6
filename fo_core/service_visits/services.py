# fo_core/service_visits/services.py
from __future__ import annotations

import datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from fo_core.fields.models import EntityType
from fo_core.fields.resolver import FieldResolver
from fo_core.fields.values import validate_custom_values
from fo_core.projects.models import Project
from fo_core.rules.types import CreationIntent
from fo_core.service_visits.models import Service, ServiceStatus, Urgency

# inserts retried when a concurrent create took the same service id
ID_ATTEMPTS = 5

_UPDATABLE = {
    "service_type_id",
    "step_id",
    "step_status_id",
    "title",
    "description",
    "reference_number",
    "urgency",
    "status",
    "scheduled_date",
    "scheduled_start_time",
    "scheduled_end_time",
    "assigned_technicians",
    "notes",
    "custom_values",
}


class ServiceVisitService:
    """
    Service (visit / work order) write model. The location is always derived
    from the project.
    """

    @staticmethod
    def _validate(values: dict[str, Any]) -> None:
        if "urgency" in values and values["urgency"] not in Urgency.values:
            raise ValidationError({"urgency": f"Invalid urgency. Allowed: {list(Urgency.values)}"})
        if "status" in values and values["status"] not in ServiceStatus.values:
            raise ValidationError({"status": f"Invalid status. Allowed: {list(ServiceStatus.values)}"})

        start = values.get("scheduled_start_time")
        end = values.get("scheduled_end_time")
        if start and end and end <= start:
            raise ValidationError({"scheduled_end_time": "Must be after the start time."})

    @staticmethod
    def generate_service_id(*, tenant_id: UUID, project: Project) -> str:
        """
        SVC_<project_id>_SEQ, SEQ counted per project.
        """
        prefix = f"SVC_{project.project_id}_"
        seq = Service.objects.filter(tenant_id=tenant_id, project=project).count() + 1
        while Service.objects.filter(tenant_id=tenant_id, service_id=f"{prefix}{seq:03d}").exists():
            seq += 1
        return f"{prefix}{seq:03d}"

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        project_pk: UUID,
        service_type_id: str = "",
        title: str = "",
        description: str = "",
        reference_number: str = "",
        step_id: str = "",
        step_status_id: str = "",
        urgency: str = Urgency.SCHEDULED,
        status: str = ServiceStatus.SCHEDULED,
        scheduled_date: Optional[datetime.date] = None,
        scheduled_start_time: Optional[datetime.time] = None,
        scheduled_end_time: Optional[datetime.time] = None,
        assigned_technicians: Optional[Iterable[str]] = None,
        notes: str = "",
        custom_values: Optional[dict[str, Any]] = None,
        auto_rule_id: Optional[UUID] = None,
    ) -> Service:
        values = {
            "project_id": project_pk,
            "service_type_id": (service_type_id or "").strip(),
            "title": (title or "").strip(),
            "description": (description or "").strip(),
            "reference_number": (reference_number or "").strip(),
            "step_id": step_id or "",
            "step_status_id": step_status_id or "",
            "urgency": urgency,
            "status": status,
            "scheduled_date": scheduled_date,
            "scheduled_start_time": scheduled_start_time,
            "scheduled_end_time": scheduled_end_time,
            "assigned_technicians": [str(t) for t in (assigned_technicians or [])],
            "notes": (notes or "").strip(),
        }
        ServiceVisitService._validate(values)

        manual = auto_rule_id is None
        if manual:
            missing = FieldResolver.missing_required(tenant_id=tenant_id, entity_type=EntityType.SERVICE, values=values)
            if missing:
                raise ValidationError({k: "This field is required." for k in missing})

        project = Project.objects.select_related("location").filter(id=project_pk, tenant_id=tenant_id).first()
        if project is None:
            raise ValidationError({"project_id": "Project not found."})

        stored_values = validate_custom_values(
            tenant_id=tenant_id,
            entity_type=EntityType.SERVICE,
            stored=None,
            incoming=custom_values,
            enforce_required=manual,
        )

        values.pop("project_id")
        for attempt in range(1, ID_ATTEMPTS + 1):
            service_id = ServiceVisitService.generate_service_id(tenant_id=tenant_id, project=project)
            try:
                with transaction.atomic(savepoint=True):
                    return Service.objects.create(
                        tenant_id=tenant_id,
                        project=project,
                        location=project.location,
                        service_id=service_id,
                        custom_values=stored_values,
                        auto_rule_id=auto_rule_id,
                        **values,
                    )
            except IntegrityError:
                if attempt == ID_ATTEMPTS:
                    raise

    @staticmethod
    def create_from_intent(intent: CreationIntent) -> Service:
        """
        Materialize a Project -> Service CreationIntent (origin = project).
        """
        d = intent.defaults
        return ServiceVisitService.create(
            tenant_id=intent.tenant_id,
            project_pk=intent.origin_id,
            service_type_id=intent.target_type_id,
            step_id=d.get("step_id") or "",
            step_status_id=d.get("step_status_id") or "",
            urgency=d.get("urgency") or Urgency.SCHEDULED,
            status=d.get("status") or ServiceStatus.SCHEDULED,
            auto_rule_id=intent.rule_id,
        )

    @staticmethod
    @transaction.atomic
    def update(*, tenant_id: UUID, service_pk: UUID, **changes: Any) -> Service:
        if "project_id" in changes or "service_id" in changes:
            raise ValidationError({"project_id": "Service id and project cannot be changed."})

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError({k: "Unknown field." for k in sorted(unknown)})

        service = Service.objects.select_for_update().get(id=service_pk, tenant_id=tenant_id)

        required = {
            f.key
            for f in FieldResolver.resolve_schema(tenant_id=tenant_id, entity_type=EntityType.SERVICE).required
            if not f.is_custom_field
        }
        blanked = sorted(k for k in changes if k in required and changes[k] in (None, "", []))
        if blanked:
            raise ValidationError({k: "This field is required." for k in blanked})

        if "custom_values" in changes:
            service.custom_values = validate_custom_values(
                tenant_id=tenant_id,
                entity_type=EntityType.SERVICE,
                stored=service.custom_values,
                incoming=changes.pop("custom_values"),
            )
        if "assigned_technicians" in changes:
            service.assigned_technicians = [str(t) for t in (changes.pop("assigned_technicians") or [])]

        for name, value in changes.items():
            setattr(service, name, value.strip() if isinstance(value, str) else value)

        ServiceVisitService._validate(
            {
                "urgency": service.urgency,
                "status": service.status,
                "scheduled_start_time": service.scheduled_start_time,
                "scheduled_end_time": service.scheduled_end_time,
            }
        )

        service.save()
        return service

    @staticmethod
    @transaction.atomic
    def delete(*, tenant_id: UUID, service_pk: UUID) -> None:
        Service.objects.get(id=service_pk, tenant_id=tenant_id).delete()
