"""Tests for the event bus."""

import pytest

from ideaboard.events.bus import EventBus
from ideaboard.events.types import EventType


@pytest.mark.asyncio
async def test_emit_to_specific_and_global(bus: EventBus):
    specific: list[dict] = []
    every: list[EventType] = []

    async def on_created(event_type, data):
        specific.append(data)

    async def on_any(event_type, data):
        every.append(event_type)

    bus.on(EventType.RECORD_CREATED, on_created)
    bus.on_all(on_any)

    await bus.emit(EventType.RECORD_CREATED, {"record_id": 4})
    await bus.emit(EventType.RECORD_DELETED)

    assert specific == [{"record_id": 4}]
    assert every == [EventType.RECORD_CREATED, EventType.RECORD_DELETED]


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_others(bus: EventBus):
    received: list[EventType] = []

    async def broken(event_type, data):
        raise RuntimeError("listener bug")

    async def healthy(event_type, data):
        received.append(event_type)

    bus.on(EventType.NOTIFICATION, broken)
    bus.on(EventType.NOTIFICATION, healthy)

    await bus.emit(EventType.NOTIFICATION, {"message": "hi"})
    assert received == [EventType.NOTIFICATION]


@pytest.mark.asyncio
async def test_subscribe_returns_unsubscribe(bus: EventBus):
    calls: list[EventType] = []

    async def listener(event_type, data):
        calls.append(event_type)

    stop = bus.subscribe(listener, EventType.BUFFER_CHANGED, EventType.BUFFER_DISCARDED)
    assert bus.listener_count(EventType.BUFFER_CHANGED) == 1

    await bus.emit(EventType.BUFFER_DISCARDED)
    stop()
    await bus.emit(EventType.BUFFER_CHANGED)

    assert calls == [EventType.BUFFER_DISCARDED]
    assert bus.listener_count(EventType.BUFFER_CHANGED) == 0


@pytest.mark.asyncio
async def test_subscribe_all_and_clear(bus: EventBus):
    async def listener(event_type, data):
        pass

    stop = bus.subscribe(listener)
    assert bus.listener_count() == 1
    stop()
    assert bus.listener_count() == 0

    bus.on(EventType.RECORDS_LOADED, listener)
    bus.clear()
    assert bus.listener_count(EventType.RECORDS_LOADED) == 0
