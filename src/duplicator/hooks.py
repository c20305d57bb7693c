"""Extension points of the duplication pipeline.

Each point keeps an ordered list of handlers, called in registration
order.  Actions observe and cannot change the pipeline; a failing action
is logged and skipped.  Filters receive a value, return a (possibly new)
value, and the last one wins.  Filter errors propagate to the caller.

Usage::

    hooks = HookRegistry()
    hooks.add_filter("new_post_data", lambda draft, source, policy: draft)
    hooks.add_action("after_duplicate", audit_copy)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ACTIONS = frozenset({"before_duplicate", "after_duplicate"})
FILTERS = frozenset(
    {
        "new_post_data",
        "excluded_meta_keys",
        "user_can_duplicate",
        "enabled_post_types",
    }
)


class HookRegistry:
    """Ordered action and filter handlers per extension point."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., Any]]] = {
            name: [] for name in ACTIONS | FILTERS
        }

    def add_action(self, name: str, handler: Callable[..., Any]) -> None:
        """Register an observer for an action point.

        Raises ValueError if ``name`` is not an action point.
        """
        if name not in ACTIONS:
            raise ValueError(f"Unknown action hook: {name!r}")
        self._handlers[name].append(handler)

    def add_filter(self, name: str, handler: Callable[..., Any]) -> None:
        """Register a transformer for a filter point.

        Raises ValueError if ``name`` is not a filter point.
        """
        if name not in FILTERS:
            raise ValueError(f"Unknown filter hook: {name!r}")
        self._handlers[name].append(handler)

    def remove(self, name: str, handler: Callable[..., Any]) -> bool:
        """Unregister a handler; return whether it was registered."""
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def has(self, name: str) -> bool:
        return bool(self._handlers.get(name))

    def do_action(self, name: str, *args: Any) -> None:
        """Call every observer of ``name``; failures are logged, not raised."""
        for handler in list(self._handlers[name]):
            try:
                handler(*args)
            except Exception:
                logger.warning("Hook %s handler %r failed", name, handler, exc_info=True)

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """Thread ``value`` through every filter of ``name`` and return it."""
        for handler in list(self._handlers[name]):
            value = handler(value, *args)
        return value
