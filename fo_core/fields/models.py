# fo_core/fields/models.py
from __future__ import annotations

import uuid

from django.db import models

from fo_core.common.models import ScopedModel, TimeStampedModel


class EntityType(models.TextChoices):
    PROJECT = "project", "Project"
    SERVICE = "service", "Service"


class FieldType(models.TextChoices):
    TEXT = "text", "Text"
    TEXTAREA = "textarea", "Long text"
    SELECT = "select", "Select"
    MULTISELECT = "multiselect", "Multi-select"
    NUMBER = "number", "Number"
    CURRENCY = "currency", "Currency"
    PERCENT = "percent", "Percent"
    DATE = "date", "Date"
    TIME = "time", "Time"
    EMAIL = "email", "Email"
    PHONE = "phone", "Phone"
    URL = "url", "URL"
    CHECKBOX = "checkbox", "Checkbox"
    ATTACHMENT = "attachment", "Attachment"
    USER = "user", "User"
    DURATION = "duration", "Duration"
    RATING = "rating", "Rating"


class FieldCategory(models.TextChoices):
    GENERAL = "general", "General"
    TIMELINE = "timeline", "Timeline"
    FINANCIAL = "financial", "Financial"
    CLIENT = "client", "Client"
    SCHEDULING = "scheduling", "Scheduling"
    ASSIGNMENT = "assignment", "Assignment"
    OPERATIONAL = "operational", "Operational"
    CUSTOM = "custom", "Custom"


class FieldDefinition(TimeStampedModel):
    """
    Platform-owned field catalog row (one per entity_type + field_key).
    Seeded from fo_core.fields.registry; tenants never write here.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entity_type = models.CharField(max_length=16, choices=EntityType.choices, db_index=True)
    field_key = models.CharField(max_length=64)
    field_label = models.CharField(max_length=128)
    field_type = models.CharField(max_length=16, choices=FieldType.choices)
    category = models.CharField(max_length=16, choices=FieldCategory.choices, default=FieldCategory.GENERAL)
    display_order = models.IntegerField(default=0)

    is_system_field = models.BooleanField(default=True)
    is_platform_required = models.BooleanField(default=False)
    is_client_configurable = models.BooleanField(default=True)

    options = models.JSONField(default=list, blank=True)
    validation_rules = models.JSONField(default=dict, blank=True)
    placeholder = models.CharField(max_length=255, blank=True, default="")
    help_text = models.CharField(max_length=255, blank=True, default="")

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "fields_field_definition"
        constraints = [
            models.UniqueConstraint(fields=["entity_type", "field_key"], name="uq_field_definition_entity_key"),
        ]
        indexes = [
            models.Index(fields=["entity_type", "is_active", "display_order"]),
        ]

    def __str__(self) -> str:
        return f"{self.entity_type}.{self.field_key}"

    @property
    def is_auto_generated(self) -> bool:
        """
        System field that tenants can neither configure nor are forced to fill
        (e.g. the readable project_id). Always visible, never toggled.
        """
        return self.is_system_field and not self.is_client_configurable and not self.is_platform_required


class FieldConfig(ScopedModel):
    """
    Tenant override of one FieldDefinition. At most one per (tenant, definition).

    field_definition_id is a plain UUID (no FK) so a definition that disappears
    from the catalog leaves the override in place; the resolver skips it.
    Nullable overrides mean "inherit the definition default".
    """
    field_definition_id = models.UUIDField(db_index=True)
    entity_type = models.CharField(max_length=16, choices=EntityType.choices, db_index=True)

    is_required = models.BooleanField(null=True, blank=True)
    is_visible = models.BooleanField(null=True, blank=True)
    custom_label = models.CharField(max_length=128, blank=True, default="")
    custom_placeholder = models.CharField(max_length=255, blank=True, default="")
    custom_help_text = models.CharField(max_length=255, blank=True, default="")
    display_order = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "fields_field_config"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "field_definition_id"], name="uq_field_config_tenant_definition"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "entity_type"]),
        ]

    def __str__(self) -> str:
        return f"{self.tenant_id}:{self.field_definition_id}"


class CustomField(ScopedModel):
    """
    Tenant-defined extra field on Project or Service forms.

    field_key is derived once from the label and never changes. Deleting a custom
    field retires it (is_active=False) so the key stays reserved and values stored
    under it keep their meaning.
    """
    entity_type = models.CharField(max_length=16, choices=EntityType.choices, db_index=True)

    field_key = models.CharField(max_length=80)
    field_label = models.CharField(max_length=128)
    field_type = models.CharField(max_length=16, choices=FieldType.choices, default=FieldType.TEXT)
    category = models.CharField(max_length=16, choices=FieldCategory.choices, default=FieldCategory.CUSTOM)

    is_required = models.BooleanField(default=False)
    is_visible = models.BooleanField(default=True)
    display_order = models.IntegerField(default=100)

    options = models.JSONField(default=list, blank=True)
    validation_rules = models.JSONField(default=dict, blank=True)
    placeholder = models.CharField(max_length=255, blank=True, default="")
    help_text = models.CharField(max_length=255, blank=True, default="")
    default_value = models.CharField(max_length=255, blank=True, default="")

    is_active = models.BooleanField(default=True, db_index=True)
    retired_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "fields_custom_field"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "entity_type", "field_key"],
                name="uq_custom_field_tenant_entity_key",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "entity_type", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.entity_type}.{self.field_key}"
