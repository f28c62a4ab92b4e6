import uuid

import pytest
from rest_framework.exceptions import ValidationError

from fo_core.fields.models import EntityType, FieldConfig, FieldDefinition
from fo_core.fields.resolver import FieldResolver
from fo_core.fields.services import FieldConfigChange, FieldConfigService


pytestmark = pytest.mark.django_db


def _def_id(key: str, entity_type: str = EntityType.PROJECT):
    return FieldDefinition.objects.get(entity_type=entity_type, field_key=key).id


def test_upsert_is_idempotent_per_tenant_and_definition(tenant, field_definitions):
    change = FieldConfigChange(field_definition_id=_def_id("notes"), is_required=True, custom_label="Remarks")

    first = FieldConfigService.upsert(tenant_id=tenant.id, change=change)
    second = FieldConfigService.upsert(tenant_id=tenant.id, change=change)

    assert first.created is True
    assert second.created is False
    assert first.config.id == second.config.id
    assert FieldConfig.objects.filter(tenant_id=tenant.id).count() == 1


def test_upsert_replaces_the_whole_override(tenant, field_definitions):
    FieldConfigService.upsert(
        tenant_id=tenant.id,
        change=FieldConfigChange(field_definition_id=_def_id("notes"), is_required=True, custom_label="Remarks"),
    )
    FieldConfigService.upsert(
        tenant_id=tenant.id,
        change=FieldConfigChange(field_definition_id=_def_id("notes"), is_visible=False),
    )

    cfg = FieldConfig.objects.get(tenant_id=tenant.id)
    assert cfg.is_required is None
    assert cfg.is_visible is False
    assert cfg.custom_label == ""


def test_same_definition_is_configured_independently_per_tenant(tenant, other_tenant, field_definitions):
    FieldConfigService.upsert(tenant_id=tenant.id, change=FieldConfigChange(field_definition_id=_def_id("notes"), is_required=True))
    FieldConfigService.upsert(tenant_id=other_tenant.id, change=FieldConfigChange(field_definition_id=_def_id("notes"), is_visible=False))

    mine = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT).get("notes")
    theirs = FieldResolver.resolve_schema(tenant_id=other_tenant.id, entity_type=EntityType.PROJECT).get("notes")

    assert (mine.is_required, mine.is_visible) == (True, True)
    assert (theirs.is_required, theirs.is_visible) == (False, False)


def test_unknown_definition_is_rejected(tenant, field_definitions):
    with pytest.raises(ValidationError) as exc:
        FieldConfigService.upsert(tenant_id=tenant.id, change=FieldConfigChange(field_definition_id=uuid.uuid4()))

    assert "field_definition_id" in exc.value.detail


@pytest.mark.parametrize(
    "key, change",
    [
        ("project_id", {"is_visible": False}),
        ("location_id", {"is_visible": False}),
        ("location_id", {"is_required": False}),
    ],
)
def test_platform_owned_behaviour_cannot_be_overridden(tenant, field_definitions, key, change):
    with pytest.raises(ValidationError):
        FieldConfigService.upsert(
            tenant_id=tenant.id,
            change=FieldConfigChange(field_definition_id=_def_id(key), **change),
        )
    assert FieldConfig.objects.count() == 0


def test_bulk_upsert_is_all_or_nothing(tenant, field_definitions):
    changes = [
        FieldConfigChange(field_definition_id=_def_id("notes"), is_required=True),
        FieldConfigChange(field_definition_id=_def_id("location_id"), is_required=False),
    ]

    with pytest.raises(ValidationError):
        FieldConfigService.bulk_upsert(tenant_id=tenant.id, changes=changes)

    assert FieldConfig.objects.filter(tenant_id=tenant.id).count() == 0


def test_bulk_upsert_saves_every_change(tenant, field_definitions):
    saved = FieldConfigService.bulk_upsert(
        tenant_id=tenant.id,
        changes=[
            FieldConfigChange(field_definition_id=_def_id("notes"), is_required=True),
            FieldConfigChange(field_definition_id=_def_id("urgency", EntityType.SERVICE), is_visible=False),
        ],
    )

    assert len(saved) == 2
    assert {c.entity_type for c in saved} == {EntityType.PROJECT, EntityType.SERVICE}


def test_reset_restores_definition_defaults(tenant, field_definitions):
    FieldConfigService.upsert(tenant_id=tenant.id, change=FieldConfigChange(field_definition_id=_def_id("notes"), is_required=True))

    assert FieldConfigService.reset(tenant_id=tenant.id, field_definition_id=_def_id("notes")) == 1
    assert FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT).get("notes").is_required is False
