# fo_core/service_visits/models.py
from django.db import models

from fo_core.common.models import ScopedModel
from fo_core.locations.models import Location
from fo_core.projects.models import Project


class Urgency(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    SAME_DAY = "same_day", "Same day"
    EMERGENCY = "emergency", "Emergency"


class ServiceStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    IN_PROGRESS = "in_progress", "In progress"
    PENDING_APPROVAL = "pending_approval", "Pending approval"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    ON_HOLD = "on_hold", "On hold"


class Service(ScopedModel):
    """
    A scheduled visit or work order on a Project.

    location is always the project's location. service_id is the readable id
    (SVC_<project_id>_SEQ), assigned once.
    """
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name="services")
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name="services")

    service_id = models.CharField(max_length=96)
    service_type_id = models.CharField(max_length=64, blank=True, default="")

    step_id = models.CharField(max_length=64, blank=True, default="")
    step_status_id = models.CharField(max_length=64, blank=True, default="")

    title = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    reference_number = models.CharField(max_length=64, blank=True, default="")

    urgency = models.CharField(max_length=16, choices=Urgency.choices, default=Urgency.SCHEDULED)
    status = models.CharField(max_length=24, choices=ServiceStatus.choices, default=ServiceStatus.SCHEDULED, db_index=True)

    scheduled_date = models.DateField(null=True, blank=True)
    scheduled_start_time = models.TimeField(null=True, blank=True)
    scheduled_end_time = models.TimeField(null=True, blank=True)
    assigned_technicians = models.JSONField(default=list, blank=True)

    notes = models.TextField(blank=True, default="")
    custom_values = models.JSONField(default=dict, blank=True)

    auto_rule_id = models.UUIDField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "service_visits_service"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "service_id"], name="uq_service_tenant_service_id"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "project"]),
            models.Index(fields=["tenant_id", "scheduled_date"]),
        ]

    def __str__(self) -> str:
        return self.service_id
