import pytest

from fo_core.fields.registry import FieldRegistry
from fo_core.locations.services import LocationService
from fo_core.projects.services import ProjectService
from fo_core.tenants.services import TenantService


@pytest.fixture
def tenant(db):
    return TenantService.create(name="Acme Field Ops", code="acme-ops", default_country="FR")


@pytest.fixture
def other_tenant(db):
    return TenantService.create(name="Other Co", code="other-co", default_country="DE")


@pytest.fixture
def field_definitions(db):
    """
    Platform catalog synced into FieldDefinition rows.
    """
    FieldRegistry.sync()
    return FieldRegistry


@pytest.fixture
def location(tenant):
    # on_commit hooks do not run here; tests that need automation capture them
    return LocationService.create(
        tenant_id=tenant.id,
        name="Paris Depot",
        code="PAR-01",
        client="Acme",
        client_id="acme",
        city="Paris",
        country="France",
    )


@pytest.fixture
def project(tenant, location):
    return ProjectService.create(
        tenant_id=tenant.id,
        location_id=location.id,
        project_type_id="deployment",
        project_type="Deployment",
    )
