"""
Event Bus - Fire-and-forget notification dispatch.

This is the default event sink for the plugin lifecycle. Subscribers register
for exact event IDs or glob patterns and receive the event payload.

Features:
- Priority-based execution (higher priority = earlier execution)
- Glob pattern matching for event IDs (`*` stays within one `:` segment)
- A failing subscriber never stops dispatch to the others
"""

import re
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


class EventBusError(Exception):
    """Base exception for event bus errors."""

    pass


class RegistrationError(EventBusError):
    """Raised when handler registration fails."""

    pass


@dataclass
class Handler:
    """
    Represents a registered event handler.

    Attributes:
        callback: The handler function, called with (event_id, payload)
            when requires_src is set, otherwise with (payload)
        priority: Higher priority executes first
        registration_order: Tie-breaker for same priority (lower = earlier)
        requires_src: Whether handler expects the event ID
    """

    callback: Callable
    priority: int
    registration_order: int
    requires_src: bool = False

    def __call__(self, event_id: str, payload: Any) -> None:
        if self.requires_src:
            self.callback(event_id, payload)
        else:
            self.callback(payload)


class EventBus:
    """Registration and dispatch of lifecycle notifications."""

    def __init__(self):
        self._routes: dict[str, list[Handler]] = {}
        self._patterns: list[tuple[re.Pattern, Handler]] = []
        self._registration_counter = 0

    def _next_registration_order(self) -> int:
        order = self._registration_counter
        self._registration_counter += 1
        return order

    def _glob_to_regex(self, pattern: str) -> re.Pattern:
        """
        Convert glob pattern to compiled regex.

        Example:
            'plugin:*' matches 'plugin:loaded' and 'plugin:loadError'
        """
        escaped = re.escape(pattern)
        regex_pattern = escaped.replace(r"\*", "[^:]*")
        return re.compile(f"^{regex_pattern}$")

    def subscribe(self, event_id: str, callback: Callable, priority: int = 0) -> None:
        """
        Register a subscriber.

        Args:
            event_id: Exact event ID, or a glob pattern containing '*'
            callback: For exact IDs, called as callback(payload); for
                patterns, called as callback(src, payload)
            priority: Execution priority (higher = earlier)

        Raises:
            RegistrationError: If callback is not callable, or a pattern
                subscriber doesn't take 'src' as first parameter
        """
        if not callable(callback):
            raise RegistrationError(f"Subscriber for '{event_id}' must be callable")

        if "*" not in event_id:
            handler = Handler(callback, priority, self._next_registration_order())
            self._routes.setdefault(event_id, []).append(handler)
            return

        import inspect

        params = list(inspect.signature(callback).parameters.keys())
        if len(params) < 1 or params[0] != "src":
            raise RegistrationError(
                f"Pattern subscriber must have 'src' as first parameter. Got: {params}"
            )

        handler = Handler(
            callback, priority, self._next_registration_order(), requires_src=True
        )
        self._patterns.append((self._glob_to_regex(event_id), handler))

    def on(self, event_id: str, priority: int = 0):
        """
        Decorator form of subscribe().

        Example:
            @bus.on('plugin:loaded')
            def announce(payload):
                print(payload['name'])
        """

        def decorator(func: Callable) -> Callable:
            self.subscribe(event_id, func, priority)
            return func

        return decorator

    def _find_handlers(self, event_id: str) -> list[Handler]:
        handlers = list(self._routes.get(event_id, []))
        for pattern, handler in self._patterns:
            if pattern.match(event_id):
                handlers.append(handler)
        return sorted(handlers, key=lambda h: (-h.priority, h.registration_order))

    def emit(self, event_id: str, payload: Any = None) -> None:
        """
        Dispatch an event to every matching subscriber.

        Args:
            event_id: The event identifier
            payload: Event data (usually a dict, may be None)
        """
        for handler in self._find_handlers(event_id):
            try:
                handler(event_id, payload)
            except Exception as e:
                warnings.warn(
                    f"Event handler failed for '{event_id}': {e}",
                    RuntimeWarning,
                    stacklevel=2,
                )

    def clear(self) -> None:
        """Remove every subscriber."""
        self._routes.clear()
        self._patterns.clear()
