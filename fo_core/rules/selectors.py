# fo_core/rules/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from fo_core.rules.models import AutoCreationRecord, AutoRule, DuplicateScope, RecordStatus


def list_rules(*, tenant_id: UUID, trigger_type: Optional[str] = None, active_only: bool = False) -> QuerySet[AutoRule]:
    qs = AutoRule.objects.filter(tenant_id=tenant_id)
    if trigger_type:
        qs = qs.filter(trigger_type=trigger_type)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("priority", "created_at", "id")


def candidate_rules(*, tenant_id: UUID, trigger_type: str) -> QuerySet[AutoRule]:
    """
    Active rules in evaluation order: priority, then creation order.
    """
    return list_rules(tenant_id=tenant_id, trigger_type=trigger_type, active_only=True)


def get_rule(*, tenant_id: UUID, rule_id: UUID) -> AutoRule:
    return AutoRule.objects.get(id=rule_id, tenant_id=tenant_id)


def has_auto_created(
    *,
    tenant_id: UUID,
    trigger_type: str,
    origin_id: UUID,
    rule_id: UUID,
    scope: str = DuplicateScope.RULE,
) -> bool:
    qs = AutoCreationRecord.objects.filter(
        tenant_id=tenant_id,
        trigger_type=trigger_type,
        origin_id=origin_id,
        status=RecordStatus.CREATED,
    )
    if scope != DuplicateScope.ORIGIN:
        qs = qs.filter(rule_id=rule_id)
    return qs.exists()


def creation_records(*, tenant_id: UUID, origin_id: Optional[UUID] = None, status: Optional[str] = None) -> QuerySet[AutoCreationRecord]:
    qs = AutoCreationRecord.objects.filter(tenant_id=tenant_id)
    if origin_id is not None:
        qs = qs.filter(origin_id=origin_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")
