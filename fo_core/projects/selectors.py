# fo_core/projects/selectors.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.db.models import QuerySet

from fo_core.fields.values import CustomValueMap
from fo_core.locations.selectors import LOCATION_ATTRIBUTE_FIELDS
from fo_core.projects.models import Project


def get_project(*, tenant_id: UUID, project_pk: UUID) -> Project:
    return Project.objects.select_related("location").get(id=project_pk, tenant_id=tenant_id)


def list_projects(
    *,
    tenant_id: UUID,
    location_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> QuerySet[Project]:
    qs = Project.objects.filter(tenant_id=tenant_id).select_related("location")
    if location_id is not None:
        qs = qs.filter(location_id=location_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


def auto_created_projects(*, tenant_id: UUID, location_id: UUID) -> QuerySet[Project]:
    return Project.objects.filter(tenant_id=tenant_id, location_id=location_id, auto_rule_id__isnull=False)


PROJECT_ATTRIBUTE_FIELDS = (
    "project_id",
    "name",
    "project_type",
    "project_type_id",
    "billing_model",
    "sla_tier",
    "status",
    "priority",
    "step_id",
    "step_status_id",
    "currency",
)


def project_attributes(project: Project) -> dict[str, Any]:
    """
    Flat snapshot of a project and its location used as the Project -> Service
    rule context. Location fields that collide with project fields are prefixed
    with "location_" (status -> location_status).
    """
    attrs: dict[str, Any] = {}

    location = project.location
    for f in LOCATION_ATTRIBUTE_FIELDS:
        key = f if f not in PROJECT_ATTRIBUTE_FIELDS else f"location_{f}"
        attrs[key] = getattr(location, f)
    attrs["location_id"] = str(location.id)

    for f in PROJECT_ATTRIBUTE_FIELDS:
        attrs[f] = getattr(project, f)

    attrs.update(CustomValueMap(project.custom_values).as_attributes())
    return attrs
