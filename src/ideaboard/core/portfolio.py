"""Portfolio: the owner of the Record Store and Edit Buffer.

All state changes go through this class. Consumers read immutable snapshots
and subscribe to the event bus for change notifications.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ideaboard.core.buffer import EditBuffer, FlushResult
from ideaboard.core.diagnostics import DiagnosticReport, classify_error
from ideaboard.core.ranking import PAGE_SIZE, RankingState, RankingView, records_in_cluster
from ideaboard.core.store import RecordStore
from ideaboard.errors import GatewayError, ValidationError
from ideaboard.events.bus import EventBus, Listener
from ideaboard.events.types import EventType
from ideaboard.export import DEFAULT_DATE_FORMAT, export_csv, write_csv
from ideaboard.gateway.base import PersistenceGateway
from ideaboard.models.record import Record, RecordDraft

logger = logging.getLogger(__name__)


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    message: str
    level: NotificationLevel
    id: int


@dataclass(frozen=True)
class PortfolioSnapshot:
    records: tuple[Record, ...]
    dirty_ids: frozenset[int]
    is_loading: bool
    is_refreshing: bool
    error: DiagnosticReport | None
    notification: Notification | None


class Portfolio:
    """Shared idea portfolio backed by a persistence gateway."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        event_bus: EventBus | None = None,
        *,
        page_size: int = PAGE_SIZE,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        """Initialize the Portfolio.

        Args:
            gateway: Backend used for every read and write
            event_bus: Bus for change events (a private one if omitted)
            page_size: Rows per ranking page
            date_format: strftime format for dates in CSV exports
        """
        self._gateway = gateway
        self._event_bus = event_bus or EventBus()
        self._store = RecordStore()
        self._buffer = EditBuffer(self._store)
        self._date_format = date_format
        self._notification_ids = itertools.count(1)

        self.ranking = RankingState(page_size=page_size)
        self.error: DiagnosticReport | None = None
        self.notification: Notification | None = None
        self.is_loading = False
        self.is_refreshing = False

    # --- state access ---

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    def records(self) -> tuple[Record, ...]:
        return self._store.records()

    def get(self, record_id: int) -> Record | None:
        return self._store.get(record_id)

    def effective(self, record_id: int) -> Record | None:
        """The record as displayed: buffered edits over canonical values."""
        overlay = self._buffer.get(record_id)
        return overlay if overlay is not None else self._store.get(record_id)

    def dirty_ids(self) -> frozenset[int]:
        return self._buffer.dirty_ids()

    def snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            records=self._store.records(),
            dirty_ids=self._buffer.dirty_ids(),
            is_loading=self.is_loading,
            is_refreshing=self.is_refreshing,
            error=self.error,
            notification=self.notification,
        )

    def subscribe(self, listener: Listener, *event_types: EventType) -> Callable[[], None]:
        """Listen for changes; returns the unsubscribe callable."""
        return self._event_bus.subscribe(listener, *event_types)

    def view(self) -> RankingView:
        """Ranking of canonical records with buffered edits overlaid."""
        return self.ranking.view(self._store.records(), self._buffer.entries())

    def records_in_cluster(self, cluster: str) -> list[Record]:
        return records_in_cluster(self._store.records(), cluster)

    async def _notify(self, message: str, level: NotificationLevel) -> None:
        self.notification = Notification(message, level, next(self._notification_ids))
        await self._event_bus.emit(
            EventType.NOTIFICATION,
            {"message": message, "level": level.value, "id": self.notification.id},
        )

    # --- loading ---

    async def load(self) -> DiagnosticReport | None:
        """Replace the store with the backend's records.

        A failure blocks the view: it is classified, kept in ``error`` until a
        later load succeeds, and returned.
        """
        self.is_loading = True
        self.error = None
        try:
            records = await self._gateway.fetch_all()
        except GatewayError as e:
            self.error = classify_error(e)
            logger.error("Failed to load records: %s", e)
            await self._event_bus.emit(
                EventType.RECORDS_LOAD_FAILED,
                {"category": self.error.category.value, "message": self.error.raw_message},
            )
            return self.error
        finally:
            self.is_loading = False

        self._store.replace_all(records)
        for orphan in self._buffer.dirty_ids() - self._store.ids():
            logger.warning("Dropping unsaved changes for record %s, removed on the backend", orphan)
            self._buffer.discard(orphan)

        await self._event_bus.emit(EventType.RECORDS_LOADED, {"count": len(self._store)})
        return None

    async def refresh(self) -> DiagnosticReport | None:
        self.is_refreshing = True
        try:
            report = await self.load()
        finally:
            self.is_refreshing = False
        if report is None:
            await self._notify("Data synchronized.", NotificationLevel.SUCCESS)
        return report

    # --- single-record operations ---

    async def add_record(self, draft: RecordDraft) -> Record:
        """Create an idea on the backend and add it to the store.

        Raises:
            ValidationError: If a required field is blank (nothing is sent).
            GatewayError: If the backend call fails (store unchanged).
        """
        draft = draft.validated()
        try:
            record = await self._gateway.create(draft)
        except GatewayError as e:
            await self._notify(f"Failed to add idea: {e}", NotificationLevel.ERROR)
            raise

        self._store.upsert(record)
        await self._event_bus.emit(
            EventType.RECORD_CREATED, {"record_id": record.id, "name": record.name}
        )
        await self._notify("Idea added.", NotificationLevel.SUCCESS)
        return record

    async def update_record(self, record: Record) -> Record:
        """Save a full record immediately, bypassing the buffer."""
        if record.id not in self._store:
            raise ValidationError(f"Unknown record id: {record.id}")
        try:
            saved = await self._gateway.update(record)
        except GatewayError as e:
            await self._notify(f"Failed to save idea: {e}", NotificationLevel.ERROR)
            raise

        self._store.upsert(saved)
        await self._event_bus.emit(EventType.RECORD_UPDATED, {"record_id": saved.id})
        await self._notify("Idea saved.", NotificationLevel.SUCCESS)
        return saved

    async def delete_record(self, record_id: int) -> None:
        """Delete on the backend, then drop the record and any unsaved edits."""
        try:
            await self._gateway.delete(record_id)
        except GatewayError as e:
            await self._notify(f"Failed to delete idea: {e}", NotificationLevel.ERROR)
            raise

        self._store.remove(record_id)
        self._buffer.discard(record_id)
        await self._event_bus.emit(EventType.RECORD_DELETED, {"record_id": record_id})
        await self._notify("Idea deleted.", NotificationLevel.SUCCESS)

    async def trigger_automation(self, record_id: int, note: str = "") -> None:
        """Send the saved record to the automation webhook. Never changes the store."""
        record = self._store.get(record_id)
        if record is None:
            raise ValidationError(f"Unknown record id: {record_id}")
        try:
            await self._gateway.trigger_automation(record, note)
        except GatewayError as e:
            await self._notify(f"Failed to trigger automation: {e}", NotificationLevel.ERROR)
            raise

        await self._event_bus.emit(EventType.AUTOMATION_TRIGGERED, {"record_id": record_id})
        await self._notify("Idea sent to the automation flow.", NotificationLevel.SUCCESS)

    # --- buffered edits ---

    async def set_field(self, record_id: int, field_name: str, value: Any) -> Record:
        overlay = self._buffer.set_field(record_id, field_name, value)
        await self._event_bus.emit(
            EventType.BUFFER_CHANGED,
            {"record_id": record_id, "field": field_name, "dirty_count": len(self._buffer)},
        )
        return overlay

    async def discard_changes(self) -> int:
        """Drop every unsaved edit. Confirmation is the caller's job."""
        count = self._buffer.discard_all()
        await self._event_bus.emit(EventType.BUFFER_DISCARDED, {"count": count})
        return count

    async def save_changes(self) -> FlushResult:
        """Flush the buffer: one backend update per dirty record.

        Failed records stay dirty and are reported one by one; saved ones are
        never rolled back.
        """
        if not len(self._buffer):
            await self._notify("No unsaved changes.", NotificationLevel.INFO)
            return FlushResult()

        result = await self._buffer.flush(self._gateway.update)

        await self._event_bus.emit(
            EventType.FLUSH_COMPLETED,
            {
                "succeeded": list(result.succeeded),
                "failed": {f.record_id: f.message for f in result.failed},
            },
        )
        if result.complete:
            await self._notify(
                f"{len(result.succeeded)} idea(s) saved.", NotificationLevel.SUCCESS
            )
        else:
            failures = "; ".join(f"#{f.record_id}: {f.message}" for f in result.failed)
            await self._notify(
                f"Saved {len(result.succeeded)} of {result.attempted} idea(s). "
                f"Failed: {failures}",
                NotificationLevel.ERROR,
            )
        return result

    # --- export ---

    async def export_csv(self) -> str | None:
        """CSV of saved data only; None when there is nothing to export."""
        records = self._store.records()
        if not records:
            await self._notify("No data to export.", NotificationLevel.INFO)
            return None
        return export_csv(records, date_format=self._date_format)

    async def write_csv(self, path: Path | None = None) -> Path | None:
        records = self._store.records()
        if not records:
            await self._notify("No data to export.", NotificationLevel.INFO)
            return None
        target = write_csv(records, path, date_format=self._date_format)
        await self._notify(f"Exported {len(records)} idea(s) to {target}.", NotificationLevel.SUCCESS)
        return target
