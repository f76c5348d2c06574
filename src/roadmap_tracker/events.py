"""Publish/subscribe plumbing between the engine and its UI subscribers."""
import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"
METRICS_UPDATED = "metrics_updated"


class EventBus:
    def __init__(self):
        self._handlers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> Callable[[], None]:
        """Register a handler; returns a function that removes it again."""
        self._handlers[event].append(handler)

        def unsubscribe():
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: str, payload: Any = None) -> None:
        # A failing subscriber must not break the mutation that emitted.
        for handler in list(self._handlers[event]):
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for %s raised", event)
