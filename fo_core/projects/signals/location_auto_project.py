# fo_core/projects/signals/location_auto_project.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.db import transaction

from fo_core.locations.models import Location
from fo_core.locations.selectors import location_attributes
from fo_core.projects.services import ProjectService
from fo_core.rules.dispatch import DispatchResult, dispatch
from fo_core.rules.models import TriggerType


def auto_create_project_for_location(sender, instance: Location, created: bool, **kwargs):
    """
    Location saved -> after commit, let the tenant's Location -> Project rules decide
    whether to create a project. Runs on create and update; duplicate protection is
    the rule's job.
    """
    if kwargs.get("raw"):
        return

    tenant_id = instance.tenant_id
    location_id = instance.id
    transaction.on_commit(
        lambda: run_location_automation(tenant_id=tenant_id, location_id=location_id),
        robust=True,
    )


def run_location_automation(*, tenant_id: UUID, location_id: UUID) -> DispatchResult:
    def snapshot() -> Optional[dict[str, Any]]:
        # re-read: the rule sees the committed state, not the in-memory instance
        location = Location.objects.filter(id=location_id, tenant_id=tenant_id).first()
        return location_attributes(location) if location is not None else None

    return dispatch(
        tenant_id=tenant_id,
        trigger_type=TriggerType.LOCATION_PROJECT,
        origin_id=location_id,
        snapshot=snapshot,
        materialize=ProjectService.create_from_intent,
    )
