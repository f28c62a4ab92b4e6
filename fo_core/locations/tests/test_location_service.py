import pytest
from rest_framework.exceptions import ValidationError

from fo_core.locations.models import Location, LocationStatus
from fo_core.locations.selectors import list_locations, location_attributes
from fo_core.locations.services import LocationService


pytestmark = pytest.mark.django_db


def test_create_generates_sequential_codes_per_tenant(tenant, other_tenant):
    a = LocationService.create(tenant_id=tenant.id, name="North yard")
    b = LocationService.create(tenant_id=tenant.id, name="South yard")
    c = LocationService.create(tenant_id=other_tenant.id, name="Berlin")

    assert (a.code, b.code) == ("LOC-0001", "LOC-0002")
    assert c.code == "LOC-0001"


def test_create_strips_text_and_rejects_blank_name(tenant):
    loc = LocationService.create(tenant_id=tenant.id, name="  Depot  ", city=" Lille ", country="France")
    assert (loc.name, loc.city) == ("Depot", "Lille")

    with pytest.raises(ValidationError) as e:
        LocationService.create(tenant_id=tenant.id, name="   ")
    assert "name" in e.value.detail


def test_code_is_unique_within_a_tenant_only(tenant, other_tenant, location):
    LocationService.create(tenant_id=other_tenant.id, name="Paris too", code=location.code)

    with pytest.raises(ValidationError) as e:
        LocationService.create(tenant_id=tenant.id, name="Paris again", code=location.code)
    assert "code" in e.value.detail


def test_invalid_choice_and_unknown_field_are_rejected(tenant):
    with pytest.raises(ValidationError) as e:
        LocationService.create(tenant_id=tenant.id, name="X", status="closed")
    assert "status" in e.value.detail

    with pytest.raises(ValidationError) as e:
        LocationService.create(tenant_id=tenant.id, name="X", region="EMEA")
    assert "region" in e.value.detail


def test_update_changes_fields_in_place(tenant, location):
    LocationService.update(
        tenant_id=tenant.id,
        location_id=location.id,
        status=LocationStatus.INACTIVE,
        notes=" key at reception ",
        metadata={"floor": 2},
    )

    location.refresh_from_db()
    assert location.status == LocationStatus.INACTIVE
    assert location.notes == "key at reception"
    assert location.metadata == {"floor": 2}


def test_update_is_tenant_scoped(other_tenant, location):
    with pytest.raises(Location.DoesNotExist):
        LocationService.update(tenant_id=other_tenant.id, location_id=location.id, name="Hijacked")


def test_delete_is_blocked_while_projects_exist(tenant, location, project):
    with pytest.raises(ValidationError):
        LocationService.delete(tenant_id=tenant.id, location_id=location.id)

    assert Location.objects.filter(id=location.id).exists()


def test_list_locations_filters_by_tenant_and_status(tenant, other_tenant, location):
    LocationService.create(tenant_id=tenant.id, name="Old site", code="OLD-01", status=LocationStatus.ARCHIVED)
    LocationService.create(tenant_id=other_tenant.id, name="Theirs")

    assert [l.code for l in list_locations(tenant_id=tenant.id)] == ["OLD-01", "PAR-01"]
    assert [l.code for l in list_locations(tenant_id=tenant.id, status=LocationStatus.ACTIVE)] == ["PAR-01"]


def test_location_attributes_snapshot(location):
    attrs = location_attributes(location)

    assert attrs["country"] == "France"
    assert attrs["client_id"] == "acme"
    assert attrs["status"] == "active"
    assert attrs["location_id"] == str(location.id)
    assert "metadata" not in attrs
