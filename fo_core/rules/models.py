# fo_core/rules/models.py
from django.db import models

from fo_core.common.models import ScopedModel


class TriggerType(models.TextChoices):
    LOCATION_PROJECT = "location_project", "Location -> Project"
    PROJECT_SERVICE = "project_service", "Project -> Service"


class DuplicateScope(models.TextChoices):
    # only entities this rule created for the origin count as duplicates
    RULE = "rule", "Same rule"
    # any entity auto-created for the origin (same trigger type) counts
    ORIGIN = "origin", "Any rule"


class AutoRule(ScopedModel):
    """
    Tenant auto-creation rule.

    conditions: {"logic": "all"|"any",
                 "conditions": [{"field", "operator", "value", "value_kind"}, ...]}
    defaults:   trigger-specific values copied onto the created entity.
    priority:   lower is evaluated first; ties fall back to creation order.
    """
    trigger_type = models.CharField(max_length=32, choices=TriggerType.choices, db_index=True)

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    target_type_id = models.CharField(max_length=64)
    conditions = models.JSONField(default=dict)
    defaults = models.JSONField(default=dict, blank=True)

    is_active = models.BooleanField(default=True)
    priority = models.IntegerField(default=0)
    prevent_duplicates = models.BooleanField(default=True)
    duplicate_scope = models.CharField(max_length=16, choices=DuplicateScope.choices, default=DuplicateScope.RULE)

    class Meta:
        db_table = "rules_auto_rule"
        indexes = [
            models.Index(fields=["tenant_id", "trigger_type", "is_active", "priority"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.trigger_type})"


class RecordStatus(models.TextChoices):
    CREATED = "CREATED", "Created"
    FAILED = "FAILED", "Failed"


class AutoCreationRecord(ScopedModel):
    """
    Ledger of auto-created entities.

    The row with a dedupe_key is inserted in the same transaction as the child
    entity; the unique (tenant_id, dedupe_key) constraint is the compare-and-create
    guard. FAILED rows carry no key so a later trigger can try again.
    """
    rule_id = models.UUIDField(null=True, blank=True, db_index=True)
    trigger_type = models.CharField(max_length=32, choices=TriggerType.choices)
    origin_id = models.UUIDField(db_index=True)
    target_type_id = models.CharField(max_length=64, blank=True, default="")

    dedupe_key = models.CharField(max_length=160, null=True, blank=True)
    status = models.CharField(max_length=16, choices=RecordStatus.choices, default=RecordStatus.CREATED)

    created_entity_id = models.UUIDField(null=True, blank=True)
    error = models.TextField(blank=True, default="")

    class Meta:
        db_table = "rules_auto_creation_record"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "dedupe_key"], name="uq_auto_creation_dedupe_key"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "trigger_type", "origin_id"]),
        ]

    def __str__(self) -> str:
        return f"{self.trigger_type}:{self.origin_id} [{self.status}]"
