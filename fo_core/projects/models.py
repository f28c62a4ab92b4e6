# fo_core/projects/models.py
from django.db import models

from fo_core.common.models import ScopedModel
from fo_core.locations.models import Location


class BillingModel(models.TextChoices):
    FIXED = "fixed", "Fixed"
    TIME_AND_MATERIALS = "time_and_materials", "Time & materials"
    PER_VISIT = "per_visit", "Per visit"
    PER_ACTION = "per_action", "Per action"


class SlaTier(models.TextChoices):
    STANDARD = "standard", "Standard"
    PREMIUM = "premium", "Premium"
    CRITICAL = "critical", "Critical"


class ProjectStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ACTIVE = "active", "Active"
    ON_HOLD = "on_hold", "On hold"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class ProjectPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class Project(ScopedModel):
    """
    Deployment or maintenance work at a Location.

    project_id is the readable id (TYPE_CC_DDMMYY_SEQ), assigned once.
    custom_values holds typed tenant custom-field values (fo_core.fields.values).
    auto_rule_id is set when an AutoRule created the project.
    """
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name="projects")

    project_id = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    project_type = models.CharField(max_length=128, blank=True, default="")
    project_type_id = models.CharField(max_length=64)

    billing_model = models.CharField(max_length=32, choices=BillingModel.choices, default=BillingModel.FIXED)
    sla_tier = models.CharField(max_length=16, choices=SlaTier.choices, default=SlaTier.STANDARD)
    status = models.CharField(max_length=16, choices=ProjectStatus.choices, default=ProjectStatus.DRAFT, db_index=True)
    priority = models.CharField(max_length=16, choices=ProjectPriority.choices, default=ProjectPriority.MEDIUM)

    step_id = models.CharField(max_length=64, blank=True, default="")
    step_status_id = models.CharField(max_length=64, blank=True, default="")

    start_date = models.DateField(null=True, blank=True)
    target_end_date = models.DateField(null=True, blank=True)

    estimated_value = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="EUR")

    notes = models.TextField(blank=True, default="")
    custom_values = models.JSONField(default=dict, blank=True)

    auto_rule_id = models.UUIDField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "projects_project"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "project_id"], name="uq_project_tenant_project_id"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "location"]),
            models.Index(fields=["tenant_id", "status"]),
        ]

    def __str__(self) -> str:
        return self.project_id
