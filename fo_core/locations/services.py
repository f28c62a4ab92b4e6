# fo_core/locations/services.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from fo_core.locations.models import Location, LocationStatus, LocationType

_TEXT_FIELDS = (
    "client",
    "client_id",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
    "notes",
)

_UPDATABLE = {"name", "code", "type", "status", "metadata", *_TEXT_FIELDS}


def _next_code(tenant_id: UUID) -> str:
    n = Location.objects.filter(tenant_id=tenant_id).count() + 1
    while Location.objects.filter(tenant_id=tenant_id, code=f"LOC-{n:04d}").exists():
        n += 1
    return f"LOC-{n:04d}"


class LocationService:
    """
    Location write model. Every save fires the Location -> Project automation
    after commit (post_save hook registered by the projects app).
    """

    @staticmethod
    def _validate_choices(*, type: Optional[str], status: Optional[str]) -> None:
        if type is not None and type not in LocationType.values:
            raise ValidationError({"type": f"Invalid type. Allowed: {list(LocationType.values)}"})
        if status is not None and status not in LocationStatus.values:
            raise ValidationError({"status": f"Invalid status. Allowed: {list(LocationStatus.values)}"})

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        name: str,
        code: str = "",
        type: str = LocationType.SITE,
        status: str = LocationStatus.ACTIVE,
        metadata: Optional[dict] = None,
        **fields: Any,
    ) -> Location:
        unknown = set(fields) - set(_TEXT_FIELDS)
        if unknown:
            raise ValidationError({k: "Unknown field." for k in sorted(unknown)})

        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "This field is required."})

        LocationService._validate_choices(type=type, status=status)

        code = (code or "").strip() or _next_code(tenant_id)
        if Location.objects.filter(tenant_id=tenant_id, code=code).exists():
            raise ValidationError({"code": "A location with this code already exists."})

        return Location.objects.create(
            tenant_id=tenant_id,
            name=name,
            code=code,
            type=type,
            status=status,
            metadata=dict(metadata or {}),
            **{k: (fields.get(k) or "").strip() for k in _TEXT_FIELDS},
        )

    @staticmethod
    @transaction.atomic
    def update(*, tenant_id: UUID, location_id: UUID, **changes: Any) -> Location:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError({k: "Unknown field." for k in sorted(unknown)})

        loc = Location.objects.select_for_update().get(id=location_id, tenant_id=tenant_id)

        LocationService._validate_choices(type=changes.get("type"), status=changes.get("status"))

        if "name" in changes:
            name = (changes.pop("name") or "").strip()
            if not name:
                raise ValidationError({"name": "This field is required."})
            loc.name = name

        if "code" in changes:
            code = (changes.pop("code") or "").strip()
            if not code:
                raise ValidationError({"code": "This field is required."})
            if Location.objects.filter(tenant_id=tenant_id, code=code).exclude(id=loc.id).exists():
                raise ValidationError({"code": "A location with this code already exists."})
            loc.code = code

        if "metadata" in changes:
            loc.metadata = dict(changes.pop("metadata") or {})

        for name, value in changes.items():
            setattr(loc, name, value.strip() if isinstance(value, str) else value)

        loc.save()
        return loc

    @staticmethod
    @transaction.atomic
    def delete(*, tenant_id: UUID, location_id: UUID) -> None:
        loc = Location.objects.select_for_update().get(id=location_id, tenant_id=tenant_id)
        if loc.projects.exists():
            raise ValidationError({"location": "Location has projects; delete or move them first."})
        loc.delete()
