"""Tests for the Record Store."""

from conftest import make_record
from ideaboard.core.store import RecordStore


def test_replace_all_keeps_backend_order():
    store = RecordStore([make_record(3), make_record(1), make_record(2)])
    assert [r.id for r in store.records()] == [3, 1, 2]
    assert store.ids() == frozenset({1, 2, 3})


def test_replace_all_last_duplicate_wins(caplog):
    store = RecordStore([make_record(1, name="first"), make_record(1, name="second")])
    assert len(store) == 1
    assert store.get(1).name == "second"
    assert "Duplicate record id 1" in caplog.text


def test_upsert_reports_new(store: RecordStore):
    assert store.upsert(make_record(9)) is True
    assert store.upsert(make_record(9, name="Renamed")) is False
    assert store.get(9).name == "Renamed"


def test_remove(store: RecordStore):
    removed = store.remove(1)
    assert removed is not None and removed.id == 1
    assert 1 not in store
    assert store.remove(1) is None


def test_replace_all_drops_missing(store: RecordStore):
    store.replace_all([make_record(5)])
    assert [r.id for r in store] == [5]
