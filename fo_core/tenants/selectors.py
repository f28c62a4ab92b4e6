# fo_core/tenants/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fo_core.tenants.models import Tenant, TenantStatus


def get_tenant(*, tenant_id: UUID) -> Tenant:
    return Tenant.objects.get(id=tenant_id)


def get_tenant_or_none(*, tenant_id: UUID) -> Optional[Tenant]:
    return Tenant.objects.filter(id=tenant_id).first()


def is_tenant_active(*, tenant_id: UUID) -> bool:
    # scoped rows only store the UUID; an id without a Tenant row counts as active
    status = Tenant.objects.filter(id=tenant_id).values_list("status", flat=True).first()
    return status in (None, TenantStatus.ACTIVE)
