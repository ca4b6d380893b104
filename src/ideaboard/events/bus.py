"""Async event bus for Ideaboard."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Coroutine
from typing import Any

from ideaboard.events.types import EventType

logger = logging.getLogger(__name__)

Listener = Callable[[EventType, dict[str, Any]], Coroutine[Any, Any, None]]


class EventBus:
    """Simple async pub/sub event bus."""

    def __init__(self) -> None:
        self._listeners: dict[EventType, list[Listener]] = defaultdict(list)
        self._global_listeners: list[Listener] = []

    def on(self, event_type: EventType, listener: Listener) -> None:
        """Register a listener for a specific event type."""
        self._listeners[event_type].append(listener)

    def on_all(self, listener: Listener) -> None:
        """Register a listener for all events."""
        self._global_listeners.append(listener)

    def off(self, event_type: EventType, listener: Listener) -> None:
        """Remove a listener."""
        if listener in self._listeners[event_type]:
            self._listeners[event_type].remove(listener)

    def off_all(self, listener: Listener) -> None:
        """Remove a listener registered with on_all."""
        if listener in self._global_listeners:
            self._global_listeners.remove(listener)

    def subscribe(
        self, listener: Listener, *event_types: EventType
    ) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it.

        With no ``event_types`` the listener receives every event.
        """
        if not event_types:
            self.on_all(listener)
            return lambda: self.off_all(listener)

        for event_type in event_types:
            self.on(event_type, listener)

        def unsubscribe() -> None:
            for event_type in event_types:
                self.off(event_type, listener)

        return unsubscribe

    def listener_count(self, event_type: EventType | None = None) -> int:
        if event_type is None:
            return len(self._global_listeners)
        return len(self._listeners.get(event_type, []))

    async def emit(self, event_type: EventType, data: dict[str, Any] | None = None) -> None:
        """Emit an event to all registered listeners."""
        data = data or {}
        listeners = self._listeners.get(event_type, []) + self._global_listeners

        for listener in listeners:
            try:
                await listener(event_type, data)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error in event listener for %s", event_type)

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()
        self._global_listeners.clear()
