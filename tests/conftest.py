"""Shared test fixtures for Ideaboard."""

from __future__ import annotations

from pathlib import Path

import pytest

from ideaboard.config import Config
from ideaboard.core.buffer import EditBuffer
from ideaboard.core.portfolio import Portfolio
from ideaboard.core.store import RecordStore
from ideaboard.events.bus import EventBus
from ideaboard.gateway.demo import DemoGateway
from ideaboard.models.record import Record


def make_record(record_id: int, scores=(0, 0, 0, 0, 0), **fields) -> Record:
    defaults = {
        "name": f"Idea {record_id}",
        "description": f"Benefit {record_id}",
        "target_audience": "Everyone",
        "business_model": "consulting",
        "cluster": "Smart Home",
    }
    defaults.update(fields)
    return Record(id=record_id, scores=scores, **defaults)


@pytest.fixture
def records() -> list[Record]:
    return [
        make_record(1, (5, 4, 3, 5, 4), name="Smart Home Consulting", revenue_estimate=150000),
        make_record(2, (1, 1, 1, 1, 1), name="Basic Repair", cluster="Tech Support"),
    ]


@pytest.fixture
def store(records) -> RecordStore:
    return RecordStore(records)


@pytest.fixture
def buffer(store) -> EditBuffer:
    return EditBuffer(store)


@pytest.fixture
def gateway() -> DemoGateway:
    return DemoGateway(latency=(0.0, 0.0))


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
async def portfolio(gateway, bus) -> Portfolio:
    p = Portfolio(gateway, bus)
    report = await p.load()
    assert report is None
    return p


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(workspace_path=tmp_path, demo_latency_min=0.0, demo_latency_max=0.0)
