# fo_core/locations/models.py
from django.db import models

from fo_core.common.models import ScopedModel


class LocationType(models.TextChoices):
    SITE = "site", "Site"
    WAREHOUSE = "warehouse", "Warehouse"
    OFFICE = "office", "Office"
    STORE = "store", "Store"
    OTHER = "other", "Other"


class LocationStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    PENDING = "pending", "Pending"
    ARCHIVED = "archived", "Archived"


class Location(ScopedModel):
    """
    A physical client site. Saving one fires the Location -> Project automation
    (see fo_core.projects.signals).
    """
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=64)

    client = models.CharField(max_length=255, blank=True, default="")
    client_id = models.CharField(max_length=64, blank=True, default="", db_index=True)

    type = models.CharField(max_length=16, choices=LocationType.choices, default=LocationType.SITE)
    status = models.CharField(max_length=16, choices=LocationStatus.choices, default=LocationStatus.ACTIVE, db_index=True)

    address_line1 = models.CharField(max_length=255, blank=True, default="")
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=128, blank=True, default="")
    state = models.CharField(max_length=128, blank=True, default="")
    postal_code = models.CharField(max_length=32, blank=True, default="")
    country = models.CharField(max_length=64, blank=True, default="")

    notes = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "locations_location"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "code"], name="uq_location_tenant_code"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"
