# fo_core/service_visits/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from fo_core.service_visits.models import Service


def get_service(*, tenant_id: UUID, service_pk: UUID) -> Service:
    return Service.objects.select_related("project", "location").get(id=service_pk, tenant_id=tenant_id)


def list_services(
    *,
    tenant_id: UUID,
    project_pk: Optional[UUID] = None,
    status: Optional[str] = None,
) -> QuerySet[Service]:
    qs = Service.objects.filter(tenant_id=tenant_id).select_related("project", "location")
    if project_pk is not None:
        qs = qs.filter(project_id=project_pk)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("scheduled_date", "created_at")
