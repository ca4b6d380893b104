"""Canonical in-memory collection of idea records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from ideaboard.models.record import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """Records keyed by id, in backend order.

    Readers get immutable ``Record`` instances; the store itself changes only
    through ``replace_all``, ``upsert`` and ``remove``.
    """

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: dict[int, Record] = {}
        self.replace_all(records)

    def replace_all(self, records: Iterable[Record]) -> None:
        """Swap the whole collection, as after a full refresh."""
        fresh: dict[int, Record] = {}
        for record in records:
            if record.id in fresh:
                logger.warning("Duplicate record id %s from backend; keeping the last one", record.id)
            fresh[record.id] = record
        self._records = fresh

    def upsert(self, record: Record) -> bool:
        """Insert or replace a record. Returns True if it was new."""
        is_new = record.id not in self._records
        self._records[record.id] = record
        return is_new

    def remove(self, record_id: int) -> Record | None:
        return self._records.pop(record_id, None)

    def get(self, record_id: int) -> Record | None:
        return self._records.get(record_id)

    def records(self) -> tuple[Record, ...]:
        return tuple(self._records.values())

    def ids(self) -> frozenset[int]:
        return frozenset(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records())
