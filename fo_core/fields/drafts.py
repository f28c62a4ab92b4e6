# fo_core/fields/drafts.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Optional
from uuid import UUID

from fo_core.fields import selectors
from fo_core.fields.models import FieldConfig, FieldDefinition
from fo_core.fields.services import FieldConfigChange


@dataclass(frozen=True)
class FieldSettings:
    """
    Effective, editable settings of one system field for one tenant.
    """
    is_required: bool
    is_visible: bool
    custom_label: str = ""
    custom_placeholder: str = ""
    custom_help_text: str = ""
    display_order: int = 0

    def edit(self, **changes) -> "FieldSettings":
        return replace(self, **changes)


@dataclass(frozen=True)
class FieldConfigSnapshot:
    """
    Immutable view of a tenant's field settings as loaded.

    Editors copy `settings` into a draft (draft()), change entries freely, and ask
    diff() for what actually changed. Nothing tracks edits incrementally.
    """
    entity_type: str
    settings: Mapping[UUID, FieldSettings]

    @staticmethod
    def build(
        *,
        entity_type: str,
        definitions: Iterable[FieldDefinition],
        configs: Iterable[FieldConfig],
    ) -> "FieldConfigSnapshot":
        config_map = {c.field_definition_id: c for c in configs}
        out: dict[UUID, FieldSettings] = {}
        for d in definitions:
            c = config_map.get(d.id)
            out[d.id] = FieldSettings(
                is_required=bool(d.is_platform_required) or bool(c is not None and c.is_required),
                is_visible=True if (c is None or c.is_visible is None) else bool(c.is_visible),
                custom_label=(c.custom_label if c else "") or "",
                custom_placeholder=(c.custom_placeholder if c else "") or "",
                custom_help_text=(c.custom_help_text if c else "") or "",
                display_order=d.display_order if (c is None or c.display_order is None) else c.display_order,
            )
        return FieldConfigSnapshot(entity_type=entity_type, settings=MappingProxyType(out))

    @staticmethod
    def load(*, tenant_id: UUID, entity_type: str) -> "FieldConfigSnapshot":
        return FieldConfigSnapshot.build(
            entity_type=entity_type,
            definitions=selectors.active_definitions(entity_type=entity_type),
            configs=selectors.field_configs(tenant_id=tenant_id, entity_type=entity_type),
        )

    def draft(self) -> dict[UUID, FieldSettings]:
        return dict(self.settings)

    def changed_keys(self, draft: Mapping[UUID, FieldSettings]) -> list[UUID]:
        return [k for k, v in draft.items() if k in self.settings and self.settings[k] != v]

    def has_changes(self, draft: Mapping[UUID, FieldSettings]) -> bool:
        return bool(self.changed_keys(draft))

    def diff(self, draft: Mapping[UUID, FieldSettings]) -> list[FieldConfigChange]:
        """
        Changes to persist, one per edited definition, carrying the full draft state
        of that field (FieldConfigService.upsert replaces the whole override).
        Entries for definitions not in the snapshot are ignored.
        """
        return [
            FieldConfigChange(
                field_definition_id=k,
                is_required=draft[k].is_required,
                is_visible=draft[k].is_visible,
                custom_label=draft[k].custom_label or None,
                custom_placeholder=draft[k].custom_placeholder or None,
                custom_help_text=draft[k].custom_help_text or None,
                display_order=draft[k].display_order,
            )
            for k in self.changed_keys(draft)
        ]

    def changed_attributes(self, draft: Mapping[UUID, FieldSettings], key: UUID) -> set[str]:
        before: Optional[FieldSettings] = self.settings.get(key)
        after = draft.get(key)
        if before is None or after is None:
            return set()
        return {f.name for f in fields(FieldSettings) if getattr(before, f.name) != getattr(after, f.name)}
