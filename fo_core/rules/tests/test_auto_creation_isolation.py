import pytest

from fo_core.common.events import subscribe, unsubscribe
from fo_core.locations.services import LocationService
from fo_core.projects.models import Project
from fo_core.rules.models import AutoCreationRecord, RecordStatus, TriggerType
from fo_core.rules.services import AutoRuleService
from fo_core.service_visits.models import Service
from fo_core.service_visits.signals import project_auto_service


# real commits: on_commit hooks run exactly as in production
pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def chained_rules(tenant):
    AutoRuleService.create(
        tenant_id=tenant.id,
        trigger_type=TriggerType.LOCATION_PROJECT,
        name="French deployments",
        target_type_id="deployment",
        conditions={"conditions": [{"field": "country", "operator": "equals", "value": "France"}]},
    )
    AutoRuleService.create(
        tenant_id=tenant.id,
        trigger_type=TriggerType.PROJECT_SERVICE,
        name="Survey every deployment",
        target_type_id="site-survey",
        conditions={"conditions": [{"field": "project_type_id", "operator": "equals", "value": "deployment"}]},
    )


def _location_ledger(site):
    return list(
        AutoCreationRecord.objects.filter(origin_id=site.id, trigger_type=TriggerType.LOCATION_PROJECT)
        .values_list("status", flat=True)
    )


def test_chained_hook_error_does_not_mark_the_parent_creation_failed(tenant, chained_rules, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("service automation crashed")

    monkeypatch.setattr(project_auto_service, "run_project_automation", broken)

    site = LocationService.create(tenant_id=tenant.id, name="Lyon Hub", country="France")

    assert Project.objects.filter(location=site).count() == 1
    assert Service.objects.count() == 0
    assert _location_ledger(site) == [RecordStatus.CREATED]


def test_chained_subscriber_error_is_contained(tenant, chained_rules):
    def notifier(payload):
        if payload["trigger_type"] == TriggerType.PROJECT_SERVICE:
            raise RuntimeError("notifier down")

    subscribe("auto_creation.created")(notifier)
    try:
        site = LocationService.create(tenant_id=tenant.id, name="Lyon Hub", country="France")
    finally:
        unsubscribe("auto_creation.created", notifier)

    project = Project.objects.get(location=site)
    assert Service.objects.filter(project=project).count() == 1
    assert _location_ledger(site) == [RecordStatus.CREATED]
    assert not AutoCreationRecord.objects.filter(status=RecordStatus.FAILED).exists()
