# fo_core/locations/selectors.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.db.models import QuerySet

from fo_core.locations.models import Location


def get_location(*, tenant_id: UUID, location_id: UUID) -> Location:
    return Location.objects.get(id=location_id, tenant_id=tenant_id)


def list_locations(*, tenant_id: UUID, status: Optional[str] = None) -> QuerySet[Location]:
    qs = Location.objects.filter(tenant_id=tenant_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("code")


# keys a Location contributes to a rule's evaluation context
LOCATION_ATTRIBUTE_FIELDS = (
    "name",
    "code",
    "client",
    "client_id",
    "type",
    "status",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)


def location_attributes(location: Location) -> dict[str, Any]:
    """
    Flat snapshot used as the Location -> Project rule context.
    """
    attrs: dict[str, Any] = {f: getattr(location, f) for f in LOCATION_ATTRIBUTE_FIELDS}
    attrs["location_id"] = str(location.id)
    return attrs
