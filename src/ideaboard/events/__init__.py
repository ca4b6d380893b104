"""Ideaboard event system."""

from ideaboard.events.bus import EventBus
from ideaboard.events.types import EventType

__all__ = ["EventBus", "EventType"]
