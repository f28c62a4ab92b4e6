# fo_core/tenants/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from fo_core.tenants.models import Tenant, TenantStatus


class TenantService:
    """
    All Tenant mutations live here (write-model boundary).
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        name: str,
        code: str,
        default_country: str = "",
        status: str = TenantStatus.ACTIVE,
    ) -> Tenant:
        code = (code or "").strip()
        name = (name or "").strip()

        if not code:
            raise ValidationError({"code": "This field is required."})
        if not name:
            raise ValidationError({"name": "This field is required."})
        if status not in TenantStatus.values:
            raise ValidationError({"status": f"Invalid status. Allowed: {list(TenantStatus.values)}"})
        if Tenant.objects.filter(code=code).exists():
            raise ValidationError({"code": "A tenant with this code already exists."})

        return Tenant.objects.create(
            name=name,
            code=code,
            status=status,
            default_country=(default_country or "").strip(),
        )

    @staticmethod
    @transaction.atomic
    def set_status(*, tenant_id: UUID, status: str) -> Tenant:
        if status not in TenantStatus.values:
            raise ValidationError({"status": f"Invalid status. Allowed: {list(TenantStatus.values)}"})

        t = Tenant.objects.select_for_update().get(id=tenant_id)

        # idempotent no-op
        if t.status == status:
            return t

        t.status = status
        t.save(update_fields=["status", "updated_at"])
        return t

    @staticmethod
    def suspend(*, tenant_id: UUID) -> Tenant:
        return TenantService.set_status(tenant_id=tenant_id, status=TenantStatus.SUSPENDED)

    @staticmethod
    def reactivate(*, tenant_id: UUID) -> Tenant:
        return TenantService.set_status(tenant_id=tenant_id, status=TenantStatus.ACTIVE)
