import logging
import uuid

import pytest

from fo_core.fields.models import CustomField, EntityType, FieldConfig, FieldDefinition
from fo_core.fields.resolver import FieldResolver
from fo_core.fields.services import CustomFieldService


pytestmark = pytest.mark.django_db


def _definition(key: str, entity_type: str = EntityType.PROJECT) -> FieldDefinition:
    return FieldDefinition.objects.get(entity_type=entity_type, field_key=key)


def _override(tenant, key: str, entity_type: str = EntityType.PROJECT, **values) -> FieldConfig:
    # written directly: the service refuses some of these on purpose
    d = _definition(key, entity_type)
    return FieldConfig.objects.create(
        tenant_id=tenant.id,
        field_definition_id=d.id,
        entity_type=entity_type,
        **values,
    )


def test_platform_required_stays_required_whatever_the_override(tenant, field_definitions):
    _override(tenant, "location_id", is_required=False)
    _override(tenant, "project_type_id", is_required=False, is_visible=True)

    schema = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    for d in FieldDefinition.objects.filter(entity_type=EntityType.PROJECT, is_platform_required=True):
        assert schema.get(d.field_key).is_required is True


def test_required_fields_come_first_then_display_order(tenant, field_definitions):
    _override(tenant, "notes", is_required=True)
    _override(tenant, "description", display_order=1)
    CustomFieldService.create(tenant_id=tenant.id, entity_type=EntityType.PROJECT, field_label="Site access code", display_order=5)

    fields = FieldResolver.resolve(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    flags = [f.is_required for f in fields]
    assert flags == sorted(flags, reverse=True)

    required = [f for f in fields if f.is_required]
    optional = [f for f in fields if not f.is_required]
    assert [f.display_order for f in required] == sorted(f.display_order for f in required)
    assert [f.display_order for f in optional] == sorted(f.display_order for f in optional)

    assert {"location_id", "project_type_id", "notes"} == {f.key for f in required}
    # project_id (0) then description (1) then the custom field (5)
    assert [f.key for f in optional][:3] == ["project_id", "description", "custom_site_access_code"]


def test_auto_generated_field_is_always_visible(tenant, field_definitions):
    _override(tenant, "project_id", is_visible=False)

    schema = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    assert schema.get("project_id").is_visible is True
    assert "project_id" in [f.key for f in schema.visible]


def test_hidden_field_is_excluded_from_render_buckets_but_resolvable_by_key(tenant, field_definitions):
    _override(tenant, "sla_tier", is_visible=False)

    schema = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT)
    rendered = FieldResolver.resolve(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    assert "sla_tier" not in [f.key for f in rendered]
    assert "sla_tier" not in [f.key for f in schema.required + schema.optional]
    assert schema.get("sla_tier") is not None
    assert schema.get("sla_tier").is_visible is False
    assert [f.key for f in schema.hidden] == ["sla_tier"]


def test_overrides_replace_label_placeholder_help_and_order(tenant, field_definitions):
    _override(
        tenant,
        "name",
        custom_label="Job name",
        custom_placeholder="e.g. Fibre rollout",
        custom_help_text="Shown on invoices",
        display_order=999,
    )

    f = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT).get("name")

    assert f.label == "Job name"
    assert f.placeholder == "e.g. Fibre rollout"
    assert f.help_text == "Shown on invoices"
    assert f.display_order == 999
    assert f.is_custom_field is False


def test_blank_override_falls_back_to_definition_default(tenant, field_definitions):
    _override(tenant, "name", custom_label="")

    f = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT).get("name")

    assert f.label == _definition("name").field_label
    assert f.display_order == _definition("name").display_order


def test_config_for_missing_definition_is_skipped_with_warning(tenant, field_definitions, caplog):
    FieldConfig.objects.create(
        tenant_id=tenant.id,
        field_definition_id=uuid.uuid4(),
        entity_type=EntityType.PROJECT,
        is_required=True,
    )

    with caplog.at_level(logging.WARNING, logger="fo_core.fields.resolver"):
        fields = FieldResolver.resolve(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    assert len(fields) == FieldDefinition.objects.filter(entity_type=EntityType.PROJECT).count()
    assert "definition" in caplog.text and "missing or inactive" in caplog.text


def test_config_for_deactivated_definition_is_skipped(tenant, field_definitions):
    _override(tenant, "notes", is_required=True)
    FieldDefinition.objects.filter(entity_type=EntityType.PROJECT, field_key="notes").update(is_active=False)

    schema = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    assert schema.get("notes") is None
    assert schema.get("name") is not None


def test_custom_fields_are_resolved_and_retired_ones_dropped(tenant, field_definitions):
    kept = CustomFieldService.create(tenant_id=tenant.id, entity_type=EntityType.SERVICE, field_label="Gate code", is_required=True)
    gone = CustomFieldService.create(tenant_id=tenant.id, entity_type=EntityType.SERVICE, field_label="Old flag")
    CustomFieldService.delete(tenant_id=tenant.id, custom_field_id=gone.id)

    schema = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.SERVICE)

    resolved = schema.get(kept.field_key)
    assert resolved.is_custom_field is True
    assert resolved.is_required is True
    assert schema.get(gone.field_key) is None


def test_other_tenants_configuration_never_leaks(tenant, other_tenant, field_definitions):
    _override(other_tenant, "notes", is_required=True, custom_label="Their notes")
    CustomField.objects.create(
        tenant_id=other_tenant.id,
        entity_type=EntityType.PROJECT,
        field_key="custom_theirs",
        field_label="Theirs",
    )

    schema = FieldResolver.resolve_schema(tenant_id=tenant.id, entity_type=EntityType.PROJECT)

    assert schema.get("notes").is_required is False
    assert schema.get("notes").label == "Notes"
    assert schema.get("custom_theirs") is None


def test_preloaded_rows_from_another_tenant_are_ignored(tenant, other_tenant, field_definitions):
    foreign = _override(other_tenant, "notes", is_required=True)

    schema = FieldResolver.resolve_schema(
        tenant_id=str(tenant.id),
        entity_type=EntityType.PROJECT,
        configs=[foreign],
        custom_fields=[],
    )

    assert schema.get("notes").is_required is False


def test_empty_catalog_resolves_to_empty_list(tenant):
    assert FieldResolver.resolve(tenant_id=tenant.id, entity_type=EntityType.PROJECT) == []


def test_missing_required_reports_blank_required_fields(tenant, field_definitions):
    _override(tenant, "description", is_required=True)

    missing = FieldResolver.missing_required(
        tenant_id=tenant.id,
        entity_type=EntityType.PROJECT,
        values={"location_id": uuid.uuid4(), "project_type_id": "", "description": ""},
    )

    assert sorted(missing) == ["description", "project_type_id"]
