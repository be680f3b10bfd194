"""
Event Bus — injected publish/subscribe channel for tool execution events.

Behavioral Contract:
- One bus per pipeline; there is no module-level instance.
- Handlers are plain callables invoked synchronously, in subscription order.
- A handler that raises is logged and dropped; publishing never fails.
"""

import logging
from typing import Callable, List

from todo_kernel.models.events import ToolEvent

logger = logging.getLogger(__name__)

Handler = Callable[[ToolEvent], None]


class EventBus:
    """Fan-out of ToolEvents to whoever is listening (e.g. a streaming endpoint)."""

    def __init__(self):
        self._handlers: List[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns a callable that removes it again."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            self._remove(handler)

        return unsubscribe

    def publish(self, event: ToolEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.warning(
                    "Dropping event handler %r after it raised on %s/%s: %s",
                    handler, event.tool, event.status, e,
                )
                self._remove(handler)

    def _remove(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)
