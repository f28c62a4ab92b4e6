# fo_core/fields/resolver.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from fo_core.fields import selectors
from fo_core.fields.models import CustomField, FieldConfig, FieldDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedField:
    key: str
    label: str
    type: str
    category: str
    display_order: int
    is_required: bool
    is_visible: bool
    is_custom_field: bool
    is_system_field: bool = False
    is_platform_required: bool = False
    is_client_configurable: bool = True
    placeholder: str = ""
    help_text: str = ""
    default_value: str = ""
    options: tuple[dict, ...] = ()
    validation_rules: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FormSchema:
    """
    Effective schema of one entity type for one tenant.

    `fields` holds everything (hidden included) for read paths;
    required/optional are the render buckets and never contain hidden fields.
    """
    entity_type: str
    fields: tuple[ResolvedField, ...]

    @property
    def visible(self) -> list[ResolvedField]:
        return [f for f in self.fields if f.is_visible]

    @property
    def required(self) -> list[ResolvedField]:
        return [f for f in self.visible if f.is_required]

    @property
    def optional(self) -> list[ResolvedField]:
        return [f for f in self.visible if not f.is_required]

    @property
    def hidden(self) -> list[ResolvedField]:
        return [f for f in self.fields if not f.is_visible]

    def get(self, key: str) -> Optional[ResolvedField]:
        for f in self.fields:
            if f.key == key:
                return f
        return None


def _sort_key(f: ResolvedField) -> tuple[int, int]:
    return (0 if f.is_required else 1, f.display_order)


class FieldResolver:
    """
    Merges platform definitions, tenant overrides and tenant custom fields.

    Pure read: definitions/configs/custom_fields may be passed in (already loaded);
    otherwise they are read through fo_core.fields.selectors for the tenant.
    """

    @staticmethod
    def resolve_definition(definition: FieldDefinition, config: Optional[FieldConfig]) -> ResolvedField:
        if definition.is_auto_generated:
            is_visible = True
        elif config is not None and config.is_visible is not None:
            is_visible = bool(config.is_visible)
        else:
            is_visible = True

        is_required = bool(definition.is_platform_required) or bool(config is not None and config.is_required)

        display_order = definition.display_order
        if config is not None and config.display_order is not None:
            display_order = config.display_order

        return ResolvedField(
            key=definition.field_key,
            label=(config.custom_label if config else "") or definition.field_label,
            type=definition.field_type,
            category=definition.category,
            display_order=display_order,
            is_required=is_required,
            is_visible=is_visible,
            is_custom_field=False,
            is_system_field=definition.is_system_field,
            is_platform_required=definition.is_platform_required,
            is_client_configurable=definition.is_client_configurable,
            placeholder=(config.custom_placeholder if config else "") or definition.placeholder,
            help_text=(config.custom_help_text if config else "") or definition.help_text,
            options=tuple(definition.options or ()),
            validation_rules=dict(definition.validation_rules or {}),
        )

    @staticmethod
    def resolve_custom(custom: CustomField) -> ResolvedField:
        return ResolvedField(
            key=custom.field_key,
            label=custom.field_label,
            type=custom.field_type,
            category=custom.category,
            display_order=custom.display_order,
            is_required=bool(custom.is_required),
            is_visible=bool(custom.is_visible),
            is_custom_field=True,
            placeholder=custom.placeholder,
            help_text=custom.help_text,
            default_value=custom.default_value,
            options=tuple(custom.options or ()),
            validation_rules=dict(custom.validation_rules or {}),
        )

    @staticmethod
    def resolve_schema(
        *,
        tenant_id: UUID,
        entity_type: str,
        definitions: Optional[Iterable[FieldDefinition]] = None,
        configs: Optional[Iterable[FieldConfig]] = None,
        custom_fields: Optional[Iterable[CustomField]] = None,
    ) -> FormSchema:
        tenant_id = UUID(str(tenant_id))

        if definitions is None:
            definitions = selectors.active_definitions(entity_type=entity_type)
        if configs is None:
            configs = selectors.field_configs(tenant_id=tenant_id, entity_type=entity_type)
        if custom_fields is None:
            custom_fields = selectors.custom_fields(tenant_id=tenant_id, entity_type=entity_type)

        definitions = list(definitions)
        known_ids = {d.id for d in definitions}

        config_map: dict[UUID, FieldConfig] = {}
        for cfg in configs:
            if str(cfg.tenant_id) != str(tenant_id):
                continue
            if cfg.field_definition_id not in known_ids:
                logger.warning(
                    "Skipping field config %s for tenant %s: definition %s is missing or inactive",
                    cfg.id,
                    tenant_id,
                    cfg.field_definition_id,
                )
                continue
            config_map[cfg.field_definition_id] = cfg

        resolved = [FieldResolver.resolve_definition(d, config_map.get(d.id)) for d in definitions]
        resolved.extend(
            FieldResolver.resolve_custom(cf)
            for cf in custom_fields
            if str(cf.tenant_id) == str(tenant_id) and cf.is_active
        )

        # sorted() is stable: equal (required, order) keep system-before-custom, catalog order
        return FormSchema(entity_type=entity_type, fields=tuple(sorted(resolved, key=_sort_key)))

    @staticmethod
    def resolve(*, tenant_id: UUID, entity_type: str, **loaded) -> list[ResolvedField]:
        """
        Ordered fields a create/edit form renders: required first, then ascending
        display_order. Hidden fields are excluded; use resolve_schema().get(key)
        to read them.
        """
        return FieldResolver.resolve_schema(tenant_id=tenant_id, entity_type=entity_type, **loaded).visible

    @staticmethod
    def missing_required(*, tenant_id: UUID, entity_type: str, values: Mapping[str, Any]) -> list[str]:
        """
        Visible required system fields left blank in `values`. Auto-generated
        fields are filled by the write service; custom fields are checked by
        fo_core.fields.values.
        """
        schema = FieldResolver.resolve_schema(tenant_id=tenant_id, entity_type=entity_type)
        return [
            f.key
            for f in schema.required
            if not f.is_custom_field
            and (f.is_platform_required or f.is_client_configurable)
            and values.get(f.key) in (None, "", [], ())
        ]
