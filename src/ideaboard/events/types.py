"""Event type constants for Ideaboard."""

from enum import StrEnum


class EventType(StrEnum):
    RECORDS_LOADED = "records.loaded"
    RECORDS_LOAD_FAILED = "records.load_failed"

    RECORD_CREATED = "record.created"
    RECORD_UPDATED = "record.updated"
    RECORD_DELETED = "record.deleted"

    BUFFER_CHANGED = "buffer.changed"
    BUFFER_DISCARDED = "buffer.discarded"
    FLUSH_COMPLETED = "buffer.flushed"

    AUTOMATION_TRIGGERED = "automation.triggered"

    NOTIFICATION = "notification"
