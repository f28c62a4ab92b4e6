# fo_core/rules/dispatch.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
from uuid import UUID

from django.conf import settings
from django.db import IntegrityError, transaction

from fo_core.common.events import publish
from fo_core.rules.engine import RuleEngine
from fo_core.rules.models import AutoCreationRecord
from fo_core.rules.services import AutoCreationService
from fo_core.rules.types import CreationIntent
from fo_core.tenants.selectors import is_tenant_active

logger = logging.getLogger(__name__)

# writes the child entity for an intent and returns it (must have .id)
Materializer = Callable[[CreationIntent], Any]

# reads the origin's rule attributes; None when the origin no longer exists
Snapshot = Callable[[], Optional[Mapping[str, Any]]]


class DispatchStatus:
    DISABLED = "disabled"
    NO_MATCH = "no_match"
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DispatchResult:
    status: str
    intent: Optional[CreationIntent] = None
    entity_id: Optional[UUID] = None
    record: Optional[AutoCreationRecord] = None


def _payload(intent: CreationIntent, **extra: Any) -> dict[str, Any]:
    payload = {
        "tenant_id": str(intent.tenant_id),
        "rule_id": str(intent.rule_id),
        "trigger_type": intent.trigger_type,
        "origin_id": str(intent.origin_id) if intent.origin_id else "",
        "target_type_id": intent.target_type_id,
    }
    payload.update({k: str(v) for k, v in extra.items()})
    return payload


def dispatch(
    *,
    tenant_id: UUID,
    trigger_type: str,
    origin_id: UUID,
    snapshot: Snapshot,
    materialize: Materializer,
) -> DispatchResult:
    """
    Post-commit automation step for one trigger.

    Runs after the triggering mutation committed; nothing here can roll it back
    or raise into it. `snapshot` is read here so a broken origin fails this step
    only. The ledger claim and the child write share one transaction, so
    concurrent triggers for the same origin create at most one child. Failures
    are logged, recorded in the ledger and published as `auto_creation.failed`.
    """
    try:
        return _dispatch(
            tenant_id=tenant_id,
            trigger_type=trigger_type,
            origin_id=origin_id,
            snapshot=snapshot,
            materialize=materialize,
        )
    except Exception:
        logger.exception("Auto-creation for %s %s aborted", trigger_type, origin_id)
        return DispatchResult(status=DispatchStatus.FAILED)


def _dispatch(
    *,
    tenant_id: UUID,
    trigger_type: str,
    origin_id: UUID,
    snapshot: Snapshot,
    materialize: Materializer,
) -> DispatchResult:
    if not settings.FIELDOPS_AUTO_CREATION_ENABLED:
        return DispatchResult(status=DispatchStatus.DISABLED)
    if not is_tenant_active(tenant_id=tenant_id):
        logger.debug("Tenant %s is not active; auto-creation skipped", tenant_id)
        return DispatchResult(status=DispatchStatus.DISABLED)

    attributes = snapshot()
    if attributes is None:
        logger.debug("Origin %s of %s is gone; auto-creation skipped", origin_id, trigger_type)
        return DispatchResult(status=DispatchStatus.NO_MATCH)

    intent = RuleEngine.run(
        tenant_id=tenant_id,
        trigger_type=trigger_type,
        attributes=attributes,
        origin_id=origin_id,
    )
    if intent is None:
        return DispatchResult(status=DispatchStatus.NO_MATCH)

    try:
        record, entity = _claim_and_materialize(intent, materialize)
    except Exception as exc:
        logger.exception(
            "Auto-creation failed for %s %s (rule %s)",
            trigger_type,
            origin_id,
            intent.rule_id,
        )
        failed = AutoCreationService.record_failure(intent=intent, error=f"{type(exc).__name__}: {exc}")
        publish("auto_creation.failed", _payload(intent, error=failed.error))
        return DispatchResult(status=DispatchStatus.FAILED, intent=intent, record=failed)

    if record is None:
        # another trigger already created it for this origin
        logger.info(
            "Duplicate auto-creation for %s %s (rule %s) skipped",
            trigger_type,
            origin_id,
            intent.rule_id,
        )
        publish("auto_creation.skipped", _payload(intent))
        return DispatchResult(status=DispatchStatus.SKIPPED, intent=intent)

    logger.info(
        "Auto-created %s for %s %s via rule %s (target type %s)",
        entity.id,
        trigger_type,
        origin_id,
        intent.rule_id,
        intent.target_type_id,
    )
    publish("auto_creation.created", _payload(intent, entity_id=entity.id))
    return DispatchResult(status=DispatchStatus.CREATED, intent=intent, entity_id=entity.id, record=record)


def _claim_and_materialize(
    intent: CreationIntent, materialize: Materializer
) -> tuple[Optional[AutoCreationRecord], Any]:
    """
    Claim and child write in one transaction; (None, None) when the claim is
    already held. Hooks the child's save registers run robust=True, so their
    errors never surface here.
    """
    with transaction.atomic():
        try:
            with transaction.atomic():
                record = AutoCreationService.claim(intent=intent)
        except IntegrityError:
            return None, None

        entity = materialize(intent)
        AutoCreationService.mark_created(record=record, entity_id=entity.id)
    return record, entity
