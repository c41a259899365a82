"""Process-wide event bus.

Errors that should reach a central reporter (permission denials in
particular) are emitted here instead of being handled where they occur.
"""

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class EventEmitter:
    """Minimal synchronous publish/subscribe emitter."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def emit(self, event: str, payload: Any = None) -> None:
        # Copy so listeners may unsubscribe themselves
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for '{event}' failed: {e}")

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))


error_emitter = EventEmitter()


def _report_permission_error(error) -> None:
    logger.warning(f"Permission denied: {error}")


error_emitter.on("permission-error", _report_permission_error)
