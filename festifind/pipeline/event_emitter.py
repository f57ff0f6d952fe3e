"""Synchronous broadcast of orchestrator events to registered handlers.

Observer pattern: the orchestrator calls :meth:`EventEmitter.emit` at each
step of a research run, and every registered handler receives the event in
registration order.

    ResearchOrchestrator --emit()--> EventEmitter --handler(event)--> CLI printer
                                                 --handler(event)--> SSE bridge

Handlers are plain callables.  They can subscribe or unsubscribe from any
thread, even while an emit is in progress: ``emit`` copies the handler list
under a lock and then calls the copy, so a change only affects later
events.  A handler that raises is logged and skipped; the remaining handlers
still run and the research run is unaffected.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from festifind.models.events import OrchestratorEvent
from festifind.utils.logging import get_logger

EventHandler = Callable[[OrchestratorEvent], None]


@dataclass(eq=False)
class _Subscription:
    """One registration; compared by identity."""

    handler: EventHandler


class EventEmitter:
    """Ordered list of event handlers with copy-on-emit dispatch."""

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.Lock()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def on_event(self, handler: EventHandler) -> Callable[[], None]:
        """Register *handler*; returns a function that unregisters it.

        The same callable registered twice receives each event twice, and
        each returned function removes only its own registration, once.
        """
        subscription = _Subscription(handler)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe

    def emit(self, event: OrchestratorEvent) -> None:
        """Deliver *event* to every handler registered at call time."""
        with self._lock:
            snapshot = [s.handler for s in self._subscriptions]

        for handler in snapshot:
            try:
                handler(event)
            except Exception as exc:
                self._logger.warning(
                    "event_handler_failed",
                    event_type=event.type,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def clear(self) -> None:
        """Remove every handler."""
        with self._lock:
            self._subscriptions.clear()
