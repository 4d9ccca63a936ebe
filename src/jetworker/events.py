# src/jetworker/events.py
"""
Process-wide event bus.

Components publish lifecycle events (``consumer_error``, ``consuming_done``)
through an ``EventBus``. A default bus is shared by the process; tests and
embedding applications can inject their own or swap the default.

Usage:
    from jetworker.events import on_event

    @on_event("consumer_error")
    def report(error):
        sentry_sdk.capture_exception(error)
"""

import threading
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

EventHandler = Callable[..., Any]

_NO_PAYLOAD = object()


class EventBus:
    """
    A synchronous publish/subscribe hub keyed by event name.

    Handlers run on the publishing thread in subscription order. A handler
    that raises is logged and skipped; it never breaks the publisher.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event: str, handler: EventHandler) -> EventHandler:
        with self._lock:
            self._handlers.setdefault(event, []).append(handler)
        return handler

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def handlers(self, event: str) -> List[EventHandler]:
        with self._lock:
            return list(self._handlers.get(event, []))

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def notify(self, event: str, payload: Any = _NO_PAYLOAD) -> None:
        """
        Publish an event to every subscriber.

        Handlers are called with the payload when one is given, and with no
        arguments otherwise.
        """
        for handler in self.handlers(event):
            try:
                if payload is _NO_PAYLOAD:
                    handler()
                else:
                    handler(payload)
            except Exception as e:
                logger.error(f"Event handler {handler!r} for '{event}' failed: {e}", exc_info=True)


_default_bus: Optional[EventBus] = None
_default_lock = threading.Lock()


def get_event_bus() -> EventBus:
    """Return the process-wide event bus, creating it on first use."""
    global _default_bus
    if _default_bus is None:
        with _default_lock:
            if _default_bus is None:
                _default_bus = EventBus()
    return _default_bus


def set_event_bus(bus: EventBus) -> None:
    """Replace the process-wide event bus."""
    global _default_bus
    with _default_lock:
        _default_bus = bus


def reset_event_bus() -> None:
    """Tear down the process-wide event bus; the next access creates a new one."""
    global _default_bus
    with _default_lock:
        if _default_bus is not None:
            _default_bus.clear()
        _default_bus = None


def on_event(event: str, handler: Optional[EventHandler] = None):
    """
    Subscribe ``handler`` to ``event`` on the default bus.

    Can be used directly or as a decorator.
    """
    if handler is not None:
        return get_event_bus().subscribe(event, handler)

    def decorator(func: EventHandler) -> EventHandler:
        return get_event_bus().subscribe(event, func)

    return decorator


def trigger_event(event: str, payload: Any = _NO_PAYLOAD) -> None:
    """Publish ``event`` on the default bus."""
    get_event_bus().notify(event, payload)
