import datetime
from decimal import Decimal

import pytest
from django.test import override_settings
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from fo_core.fields.models import EntityType, FieldDefinition
from fo_core.fields.services import CustomFieldService, FieldConfigChange, FieldConfigService
from fo_core.locations.services import LocationService
from fo_core.projects.models import Project, ProjectStatus
from fo_core.projects.selectors import list_projects, project_attributes
from fo_core.projects.services import ProjectService
from fo_core.service_visits.services import ServiceVisitService


pytestmark = pytest.mark.django_db


def _today() -> str:
    return f"{timezone.localdate():%d%m%y}"


def test_readable_id_is_type_country_date_sequence(tenant, location, project):
    second = ProjectService.create(
        tenant_id=tenant.id,
        location_id=location.id,
        project_type_id="deployment",
        project_type="Deployment",
    )

    assert project.project_id == f"DEP_FR_{_today()}_001"
    assert second.project_id == f"DEP_FR_{_today()}_002"


def test_readable_id_for_a_given_day_and_fallback_codes(tenant):
    on = datetime.date(2024, 12, 15)

    assert ProjectService.generate_project_id(tenant_id=tenant.id, project_type="Maintenance", country="DE", on=on) == "MAI_DE_151224_001"
    assert ProjectService.generate_project_id(tenant_id=tenant.id, project_type="", country="", on=on) == "PRJ_XX_151224_001"


def test_country_falls_back_to_the_tenant_default(tenant):
    site = LocationService.create(tenant_id=tenant.id, name="Unknown country yard")

    p = ProjectService.create(tenant_id=tenant.id, location_id=site.id, project_type_id="survey")

    assert p.project_id.startswith("SUR_FR_")
    assert p.project_type == "survey"


def test_defaults_name_currency_and_status(tenant, project):
    assert project.name == project.project_id
    assert project.currency == "EUR"
    assert project.status == ProjectStatus.DRAFT
    assert project.auto_rule_id is None


@override_settings(FIELDOPS_DEFAULT_CURRENCY="GBP")
def test_currency_default_follows_settings(tenant, location):
    p = ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment")
    assert p.currency == "GBP"


def test_estimated_value_is_parsed_as_decimal(tenant, location):
    p = ProjectService.create(
        tenant_id=tenant.id,
        location_id=location.id,
        project_type_id="deployment",
        estimated_value="12500.50",
        currency="usd",
    )
    assert p.estimated_value == Decimal("12500.50")
    assert p.currency == "USD"

    with pytest.raises(ValidationError) as e:
        ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment", estimated_value="lots")
    assert "estimated_value" in e.value.detail


def test_manual_create_enforces_tenant_required_fields(tenant, location, field_definitions):
    description = FieldDefinition.objects.get(entity_type=EntityType.PROJECT, field_key="description")
    FieldConfigService.upsert(tenant_id=tenant.id, change=FieldConfigChange(field_definition_id=description.id, is_required=True))

    with pytest.raises(ValidationError) as e:
        ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment")
    assert "description" in e.value.detail

    p = ProjectService.create(
        tenant_id=tenant.id,
        location_id=location.id,
        project_type_id="deployment",
        description="Fibre cabinet swap",
    )
    assert p.description == "Fibre cabinet swap"


def test_rule_created_projects_skip_tenant_required_fields(tenant, location, field_definitions):
    description = FieldDefinition.objects.get(entity_type=EntityType.PROJECT, field_key="description")
    FieldConfigService.upsert(tenant_id=tenant.id, change=FieldConfigChange(field_definition_id=description.id, is_required=True))
    CustomFieldService.create(tenant_id=tenant.id, entity_type=EntityType.PROJECT, field_label="PO number", is_required=True)
    rule_id = location.id  # any uuid marks the project as rule-created

    p = ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment", auto_rule_id=rule_id)

    assert p.description == ""
    assert p.custom_values == {}


def test_custom_values_are_validated_against_tenant_fields(tenant, location):
    CustomFieldService.create(tenant_id=tenant.id, entity_type=EntityType.PROJECT, field_label="PO number", is_required=True)

    with pytest.raises(ValidationError) as e:
        ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment")
    assert "custom_po_number" in e.value.detail

    with pytest.raises(ValidationError) as e:
        ProjectService.create(
            tenant_id=tenant.id,
            location_id=location.id,
            project_type_id="deployment",
            custom_values={"custom_po_number": "PO-7", "custom_unknown": "x"},
        )
    assert "custom_unknown" in e.value.detail

    p = ProjectService.create(
        tenant_id=tenant.id,
        location_id=location.id,
        project_type_id="deployment",
        custom_values={"custom_po_number": "PO-7"},
    )
    assert p.custom_values == {"custom_po_number": {"kind": "text", "value": "PO-7"}}


def test_location_of_another_tenant_is_not_found(other_tenant, location):
    with pytest.raises(ValidationError) as e:
        ProjectService.create(tenant_id=other_tenant.id, location_id=location.id, project_type_id="deployment")
    assert "location_id" in e.value.detail


def test_invalid_choice_is_rejected(tenant, location):
    with pytest.raises(ValidationError) as e:
        ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment", sla_tier="gold")
    assert "sla_tier" in e.value.detail


def test_update_keeps_readable_id_and_location(tenant, project):
    with pytest.raises(ValidationError):
        ProjectService.update(tenant_id=tenant.id, project_pk=project.id, project_id="NEW_ID")

    ProjectService.update(tenant_id=tenant.id, project_pk=project.id, status=ProjectStatus.ACTIVE, name="")

    project.refresh_from_db()
    assert project.status == ProjectStatus.ACTIVE
    assert project.name == project.project_id


def test_update_rejects_end_before_start(tenant, project):
    with pytest.raises(ValidationError) as e:
        ProjectService.update(
            tenant_id=tenant.id,
            project_pk=project.id,
            start_date=datetime.date(2025, 3, 1),
            target_end_date=datetime.date(2025, 2, 1),
        )
    assert "target_end_date" in e.value.detail


def test_delete_is_blocked_while_services_exist(tenant, project):
    ServiceVisitService.create(tenant_id=tenant.id, project_pk=project.id, title="Survey")

    with pytest.raises(ValidationError):
        ProjectService.delete(tenant_id=tenant.id, project_pk=project.id)
    assert Project.objects.filter(id=project.id).exists()


def test_list_projects_is_tenant_scoped(tenant, other_tenant, project):
    theirs = LocationService.create(tenant_id=other_tenant.id, name="Berlin", country="Germany")
    ProjectService.create(tenant_id=other_tenant.id, location_id=theirs.id, project_type_id="deployment")

    assert [p.id for p in list_projects(tenant_id=tenant.id)] == [project.id]


def test_project_attributes_merge_location_and_custom_values(tenant, location):
    CustomFieldService.create(tenant_id=tenant.id, entity_type=EntityType.PROJECT, field_label="Region")
    p = ProjectService.create(
        tenant_id=tenant.id,
        location_id=location.id,
        project_type_id="deployment",
        name="Cabinet swap",
        custom_values={"custom_region": "north"},
    )

    attrs = project_attributes(p)

    assert attrs["name"] == "Cabinet swap"
    assert attrs["location_name"] == "Paris Depot"
    assert attrs["status"] == ProjectStatus.DRAFT
    assert attrs["location_status"] == "active"
    assert attrs["country"] == "France"
    assert attrs["client_id"] == "acme"
    assert attrs["project_type_id"] == "deployment"
    assert attrs["location_id"] == str(location.id)
    assert attrs["custom_region"] == "north"


def test_readable_id_taken_concurrently_is_retried(tenant, location, project, monkeypatch):
    fresh = f"DEP_FR_{_today()}_002"
    ids = iter([project.project_id, fresh])
    monkeypatch.setattr(ProjectService, "generate_project_id", staticmethod(lambda **kwargs: next(ids)))

    p = ProjectService.create(tenant_id=tenant.id, location_id=location.id, project_type_id="deployment")

    assert p.project_id == fresh
    assert p.name == fresh
    assert Project.objects.filter(tenant_id=tenant.id).count() == 2
