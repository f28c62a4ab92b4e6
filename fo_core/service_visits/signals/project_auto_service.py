# fo_core/service_visits/signals/project_auto_service.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.db import transaction

from fo_core.projects.models import Project
from fo_core.projects.selectors import project_attributes
from fo_core.rules.dispatch import DispatchResult, dispatch
from fo_core.rules.models import TriggerType
from fo_core.service_visits.services import ServiceVisitService


def auto_create_service_for_project(sender, instance: Project, created: bool, **kwargs):
    """
    Project saved (manually or by a Location -> Project rule) -> after commit,
    run the tenant's Project -> Service rules against the project and its location.
    """
    if kwargs.get("raw"):
        return

    tenant_id = instance.tenant_id
    project_pk = instance.id
    transaction.on_commit(
        lambda: run_project_automation(tenant_id=tenant_id, project_pk=project_pk),
        robust=True,
    )


def run_project_automation(*, tenant_id: UUID, project_pk: UUID) -> DispatchResult:
    def snapshot() -> Optional[dict[str, Any]]:
        project = Project.objects.select_related("location").filter(id=project_pk, tenant_id=tenant_id).first()
        return project_attributes(project) if project is not None else None

    return dispatch(
        tenant_id=tenant_id,
        trigger_type=TriggerType.PROJECT_SERVICE,
        origin_id=project_pk,
        snapshot=snapshot,
        materialize=ServiceVisitService.create_from_intent,
    )
