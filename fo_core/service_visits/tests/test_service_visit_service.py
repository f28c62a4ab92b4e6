import datetime

import pytest
from rest_framework.exceptions import ValidationError

from fo_core.fields.models import EntityType, FieldDefinition
from fo_core.fields.services import FieldConfigChange, FieldConfigService
from fo_core.service_visits.models import Service, ServiceStatus, Urgency
from fo_core.service_visits.selectors import list_services
from fo_core.service_visits.services import ServiceVisitService


pytestmark = pytest.mark.django_db


def test_service_takes_its_location_from_the_project(tenant, location, project):
    s = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id, title=" Site survey ")

    assert s.location_id == location.id
    assert s.title == "Site survey"
    assert (s.urgency, s.status) == (Urgency.SCHEDULED, ServiceStatus.SCHEDULED)
    assert s.service_id == f"SVC_{project.project_id}_001"


def test_service_ids_count_per_project(tenant, project):
    first = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)
    second = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)

    assert first.service_id.endswith("_001")
    assert second.service_id.endswith("_002")


def test_project_of_another_tenant_is_not_found(other_tenant, project):
    with pytest.raises(ValidationError) as e:
        ServiceVisitService.create(tenant_id=other_tenant.id, project_pk=project.id)
    assert "project_id" in e.value.detail


def test_time_window_must_be_ordered(tenant, project):
    with pytest.raises(ValidationError) as e:
        ServiceVisitService.create(
            tenant_id=tenant.id,
            project_pk=project.id,
            scheduled_date=datetime.date(2025, 1, 10),
            scheduled_start_time=datetime.time(14, 0),
            scheduled_end_time=datetime.time(9, 0),
        )
    assert "scheduled_end_time" in e.value.detail


def test_invalid_urgency_is_rejected(tenant, project):
    with pytest.raises(ValidationError) as e:
        ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id, urgency="asap")
    assert "urgency" in e.value.detail


def test_manual_create_enforces_required_fields(tenant, project, field_definitions):
    title = FieldDefinition.objects.get(entity_type=EntityType.SERVICE, field_key="title")
    FieldConfigService.upsert(tenant_id=tenant.id, change=FieldConfigChange(field_definition_id=title.id, is_required=True))

    with pytest.raises(ValidationError) as e:
        ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)
    assert "title" in e.value.detail

    s = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id, title="Install")

    with pytest.raises(ValidationError):
        ServiceVisitService.update(tenant_id=tenant.id, service_pk=s.id, title="")


def test_update_status_and_technicians(tenant, project):
    s = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)

    ServiceVisitService.update(
        tenant_id=tenant.id,
        service_pk=s.id,
        status=ServiceStatus.IN_PROGRESS,
        assigned_technicians=["tech-1", "tech-2"],
    )

    s.refresh_from_db()
    assert s.status == ServiceStatus.IN_PROGRESS
    assert s.assigned_technicians == ["tech-1", "tech-2"]


def test_project_cannot_be_changed(tenant, project):
    s = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)

    with pytest.raises(ValidationError):
        ServiceVisitService.update(tenant_id=tenant.id, service_pk=s.id, project_id=project.id)


def test_list_services_filters_by_project_and_status(tenant, project):
    a = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id, scheduled_date=datetime.date(2025, 2, 1))
    b = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id, scheduled_date=datetime.date(2025, 1, 1))
    ServiceVisitService.update(tenant_id=tenant.id, service_pk=a.id, status=ServiceStatus.COMPLETED)

    assert [s.id for s in list_services(tenant_id=tenant.id, project_pk=project.id)] == [b.id, a.id]
    assert [s.id for s in list_services(tenant_id=tenant.id, status=ServiceStatus.COMPLETED)] == [a.id]


def test_delete_removes_the_service(tenant, project):
    s = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)

    ServiceVisitService.delete(tenant_id=tenant.id, service_pk=s.id)

    assert not Service.objects.filter(id=s.id).exists()


def test_service_id_taken_concurrently_is_retried(tenant, project, monkeypatch):
    first = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)
    ids = iter([first.service_id, f"SVC_{project.project_id}_002"])
    monkeypatch.setattr(ServiceVisitService, "generate_service_id", staticmethod(lambda **kwargs: next(ids)))

    second = ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id)

    assert second.service_id.endswith("_002")
    assert Service.objects.filter(project=project).count() == 2
