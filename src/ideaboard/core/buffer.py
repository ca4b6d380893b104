"""Edit Buffer.

Holds uncommitted per-record overlays keyed by record id. An id present in the
buffer is dirty; an absent id shows its canonical value. Overlays are created
or replaced on every field edit and leave the buffer only through discard,
a successful flush, or deletion of the record.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ideaboard.core.store import RecordStore
from ideaboard.errors import ValidationError
from ideaboard.models.catalog import parse_score_field
from ideaboard.models.record import (
    EDITABLE_FIELDS,
    Record,
    clamp_revenue,
    clamp_score,
    parse_status,
)

logger = logging.getLogger(__name__)

PersistFn = Callable[[Record], Awaitable[Record | None]]

_FIELD_ALIASES = {"revenue": "revenue_estimate"}


@dataclass(frozen=True)
class FlushFailure:
    record_id: int
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class FlushResult:
    """Per-id outcome of one flush."""

    succeeded: tuple[int, ...] = ()
    failed: tuple[FlushFailure, ...] = ()
    # Ids edited again while their save was in flight
    redirtied: tuple[int, ...] = field(default=())

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def complete(self) -> bool:
        """True when every persist call succeeded."""
        return not self.failed

    @property
    def failed_ids(self) -> tuple[int, ...]:
        return tuple(f.record_id for f in self.failed)


class EditBuffer:
    """Per-record edit overlays awaiting commit."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._entries: dict[int, Record] = {}
        self._revisions: dict[int, int] = {}
        # Never reset: a revision is unique even across discards
        self._revision_counter = itertools.count(1)

    def set_field(self, record_id: int, field_name: str, value: Any) -> Record:
        """Apply one field edit and return the record's new overlay.

        Scores clamp to [0,5] and revenue to >= 0. The edit builds on the
        current effective value: the existing overlay if any, else canonical.

        Raises:
            ValidationError: If the record or field is unknown, or the value
                cannot be coerced.
        """
        base = self._entries.get(record_id)
        if base is None:
            base = self._store.get(record_id)
        if base is None:
            raise ValidationError(f"Unknown record id: {record_id}")

        overlay = base.with_changes(**self._coerce(base, field_name, value))
        self._entries[record_id] = overlay
        self._revisions[record_id] = next(self._revision_counter)
        logger.debug("Buffered %s on record %s", field_name, record_id)
        return overlay

    @staticmethod
    def _coerce(base: Record, field_name: str, value: Any) -> dict[str, Any]:
        field_name = _FIELD_ALIASES.get(field_name, field_name)

        index = parse_score_field(field_name)
        if index is not None:
            scores = list(base.scores)
            scores[index] = clamp_score(value)
            return {"scores": scores}

        if field_name not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown field: {field_name!r}")
        if field_name == "revenue_estimate":
            return {field_name: clamp_revenue(value)}
        if field_name == "status":
            return {field_name: parse_status(value)}
        return {field_name: "" if value is None else str(value)}

    def get(self, record_id: int) -> Record | None:
        return self._entries.get(record_id)

    def entries(self) -> dict[int, Record]:
        """Snapshot of the current overlays."""
        return dict(self._entries)

    def dirty_ids(self) -> frozenset[int]:
        return frozenset(self._entries)

    def is_dirty(self, record_id: int) -> bool:
        return record_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def discard(self, record_id: int) -> bool:
        """Drop one overlay. Returns True if the id was dirty."""
        self._revisions.pop(record_id, None)
        return self._entries.pop(record_id, None) is not None

    def discard_all(self) -> int:
        """Drop every overlay unconditionally. Returns how many were dropped."""
        count = len(self._entries)
        self._entries.clear()
        self._revisions.clear()
        if count:
            logger.info("Discarded %d unsaved change(s)", count)
        return count

    async def flush(self, persist: PersistFn) -> FlushResult:
        """Persist every dirty overlay concurrently, one call per id.

        Successful ids merge into the store and leave the buffer; failed ids
        stay dirty. An id edited again while its call was in flight stays
        dirty with the newer overlay, though the persisted value still merges.
        """
        pending = [
            (record_id, overlay, self._revisions.get(record_id, 0))
            for record_id, overlay in self._entries.items()
        ]
        if not pending:
            return FlushResult()

        logger.info("Flushing %d buffered record(s)", len(pending))
        outcomes = await asyncio.gather(
            *(self._flush_one(rid, overlay, rev, persist) for rid, overlay, rev in pending)
        )

        succeeded: list[int] = []
        failed: list[FlushFailure] = []
        redirtied: list[int] = []
        for record_id, outcome in zip((p[0] for p in pending), outcomes, strict=True):
            if isinstance(outcome, FlushFailure):
                failed.append(outcome)
                continue
            succeeded.append(record_id)
            if outcome:
                redirtied.append(record_id)

        result = FlushResult(tuple(succeeded), tuple(failed), tuple(redirtied))
        if result.complete:
            logger.info("Flush complete: %d saved", len(succeeded))
        else:
            logger.warning(
                "Partial flush: %d saved, %d failed (%s)",
                len(succeeded),
                len(failed),
                ", ".join(str(i) for i in result.failed_ids),
            )
        return result

    async def _flush_one(
        self, record_id: int, overlay: Record, revision: int, persist: PersistFn
    ) -> FlushFailure | bool:
        """Returns a failure, or whether the id was re-dirtied mid-flight."""
        try:
            saved = await persist(overlay)
        except Exception as e:
            logger.warning("Failed to save record %s: %s", record_id, e)
            return FlushFailure(record_id, e)

        # Deleted while in flight: do not resurrect
        if record_id in self._store:
            self._store.upsert(saved if isinstance(saved, Record) else overlay)

        if self._revisions.get(record_id) == revision:
            self._entries.pop(record_id, None)
            self._revisions.pop(record_id, None)
            return False
        return record_id in self._entries
