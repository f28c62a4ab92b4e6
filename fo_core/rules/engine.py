# fo_core/rules/engine.py
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional
from uuid import UUID

from fo_core.rules import selectors
from fo_core.rules.conditions import ConditionEvaluator
from fo_core.rules.defaults import merge_defaults
from fo_core.rules.models import AutoRule
from fo_core.rules.types import ConditionSet, CreationIntent

logger = logging.getLogger(__name__)

# (rule, origin_id) -> True when an entity already exists for that origin
DuplicateCheck = Callable[[AutoRule, UUID], bool]


def ledger_duplicate_check(rule: AutoRule, origin_id: UUID) -> bool:
    return selectors.has_auto_created(
        tenant_id=rule.tenant_id,
        trigger_type=rule.trigger_type,
        origin_id=origin_id,
        rule_id=rule.id,
        scope=rule.duplicate_scope,
    )


def _evaluation_order(rule: AutoRule) -> tuple:
    return (rule.priority, rule.created_at, str(rule.id))


class RuleEngine:
    """
    Decides which rule (if any) fires for a trigger and what it asks to create.

    Reads rules and the duplicate ledger for the given tenant only; never writes.
    Persisting the intent is up to fo_core.rules.dispatch and the entity services.
    """

    @staticmethod
    def candidates(*, tenant_id: UUID, trigger_type: str, rules: Iterable[AutoRule]) -> list[AutoRule]:
        """
        Active rules of this tenant and trigger, lowest priority first, earliest created first on ties.
        """
        scoped = [
            r
            for r in rules
            if str(r.tenant_id) == str(tenant_id) and r.trigger_type == trigger_type and r.is_active
        ]
        return sorted(scoped, key=_evaluation_order)

    @staticmethod
    def find_matching_rule(
        *,
        tenant_id: UUID,
        trigger_type: str,
        attributes: Mapping[str, Any],
        origin_id: Optional[UUID] = None,
        rules: Optional[Iterable[AutoRule]] = None,
        duplicate_check: Optional[DuplicateCheck] = None,
    ) -> Optional[AutoRule]:
        if rules is None:
            rules = selectors.candidate_rules(tenant_id=tenant_id, trigger_type=trigger_type)
        if duplicate_check is None:
            duplicate_check = ledger_duplicate_check

        for rule in RuleEngine.candidates(tenant_id=tenant_id, trigger_type=trigger_type, rules=rules):
            if not ConditionEvaluator.evaluate_set(ConditionSet.from_dict(rule.conditions), attributes):
                continue

            if rule.prevent_duplicates and origin_id is not None and duplicate_check(rule, origin_id):
                logger.info(
                    "Rule %s skipped for %s %s: already auto-created (%s scope)",
                    rule.id,
                    trigger_type,
                    origin_id,
                    rule.duplicate_scope,
                )
                continue

            return rule

        return None

    @staticmethod
    def apply(*, rule: AutoRule, attributes: Mapping[str, Any], origin_id: Optional[UUID] = None) -> CreationIntent:
        """
        Declarative description of the entity `rule` creates. `attributes` is the
        trigger snapshot the rule matched; it is accepted so callers can pass the
        same snapshot through, but it is not read. Defaults come from the rule only.
        """
        return CreationIntent(
            tenant_id=rule.tenant_id,
            rule_id=rule.id,
            trigger_type=rule.trigger_type,
            target_type_id=rule.target_type_id,
            origin_id=origin_id,
            defaults=merge_defaults(rule.trigger_type, rule.defaults),
            prevent_duplicates=rule.prevent_duplicates,
            duplicate_scope=rule.duplicate_scope,
        )

    @staticmethod
    def run(
        *,
        tenant_id: UUID,
        trigger_type: str,
        attributes: Mapping[str, Any],
        origin_id: Optional[UUID] = None,
        rules: Optional[Iterable[AutoRule]] = None,
        duplicate_check: Optional[DuplicateCheck] = None,
    ) -> Optional[CreationIntent]:
        rule = RuleEngine.find_matching_rule(
            tenant_id=tenant_id,
            trigger_type=trigger_type,
            attributes=attributes,
            origin_id=origin_id,
            rules=rules,
            duplicate_check=duplicate_check,
        )
        if rule is None:
            return None
        return RuleEngine.apply(rule=rule, attributes=attributes, origin_id=origin_id)
