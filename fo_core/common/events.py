# fo_core/common/events.py
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)


def subscribe(event_name: str):
    """
    Decorator to register an in-process event handler.
    Usage:
        @subscribe("auto_creation.failed")
        def notify_admins(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        if fn not in _registry[event_name]:
            _registry[event_name].append(fn)
        return fn
    return _decorator


def unsubscribe(event_name: str, fn: Handler) -> None:
    handlers = _registry.get(event_name, [])
    if fn in handlers:
        handlers.remove(fn)


def publish(event_name: str, payload: Dict[str, Any]) -> int:
    """
    Publish to in-process subscribers; returns how many handlers succeeded.
    Payloads are ID-based (strings only) so apps never import each other's models.
    A failing handler is logged and the remaining handlers still run.
    """
    handlers = list(_registry.get(event_name, []))
    logger.debug("publish %s to %d handler(s)", event_name, len(handlers))
    ok = 0
    for handler in handlers:
        try:
            handler(payload)
        except Exception:
            logger.exception("Handler %r for %s failed", handler, event_name)
            continue
        ok += 1
    return ok
