# fo_core/rules/defaults.py
from __future__ import annotations

from typing import Any, Mapping, Optional

from fo_core.rules.models import TriggerType

# Values a rule may set on the entity it creates, with their fallbacks.
LOCATION_PROJECT_DEFAULTS: dict[str, Any] = {
    "step_id": None,
    "step_status_id": None,
    "billing_model": "fixed",
    "sla_tier": "standard",
    "priority": "medium",
}

PROJECT_SERVICE_DEFAULTS: dict[str, Any] = {
    "step_id": None,
    "step_status_id": None,
    "urgency": "scheduled",
    "status": "scheduled",
}

DEFAULTS_BY_TRIGGER: dict[str, dict[str, Any]] = {
    TriggerType.LOCATION_PROJECT: LOCATION_PROJECT_DEFAULTS,
    TriggerType.PROJECT_SERVICE: PROJECT_SERVICE_DEFAULTS,
}


def merge_defaults(trigger_type: str, defaults: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Fill the trigger's known keys; blank values fall back. Unknown keys are dropped.
    """
    base = DEFAULTS_BY_TRIGGER.get(trigger_type, {})
    given = defaults if isinstance(defaults, Mapping) else {}
    out = dict(base)
    for key in base:
        value = given.get(key)
        if value is not None and value != "":
            out[key] = value
    return out
