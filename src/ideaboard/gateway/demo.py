"""In-process demo backend with the same contract as the HTTP gateway."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import random
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from ideaboard.gateway.base import EnvelopeGateway
from ideaboard.gateway.envelope import (
    Action,
    GatewayRequest,
    GatewayResponse,
    build_automation_payload,
)
from ideaboard.models.catalog import CRITERIA, CRITERIA_COUNT
from ideaboard.models.record import WIRE_FIELDS, Record, RecordStatus

logger = logging.getLogger(__name__)

SEED_ROWS: tuple[dict[str, Any], ...] = (
    {
        "id": 1,
        "service": "Smart Home Consulting",
        "need": "Help choosing and installing compatible smart home devices.",
        "cluster": "Smart Home",
        "businessModel": "consulting",
        "targetAudience": "Homeowners",
        "status": "approved",
        "creatorName": "Ana",
        "creationDate": "2023-10-01T10:00:00+00:00",
        "scores": [5, 4, 3, 5, 4],
        "revenueEstimate": 150000,
    },
    {
        "id": 2,
        "service": "Premium Tech Support Plan",
        "need": "24/7 technical support for every device in the house.",
        "cluster": "Tech Support",
        "businessModel": "subscription",
        "targetAudience": "Families with many devices",
        "status": "under-review",
        "creatorName": "Bruno",
        "creationDate": "2023-10-02T11:30:00+00:00",
        "scores": [4, 5, 5, 4, 3],
        "revenueEstimate": 500000,
    },
    {
        "id": 3,
        "service": "VR Equipment Rental",
        "need": "Access to high-end VR gear for events or casual use.",
        "cluster": "Flexible Access",
        "businessModel": "rental",
        "targetAudience": "Gamers and event planners",
        "status": "under-review",
        "creatorName": "Carlos",
        "creationDate": "2023-10-03T14:00:00+00:00",
        "scores": [3, 4, 3, 4, 4],
        "revenueEstimate": 80000,
    },
)


class _DemoFailure(Exception):
    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class DemoGateway(EnvelopeGateway):
    """Mock backend holding rows in memory.

    Requests and responses pass through JSON exactly as they would over the
    wire, after a simulated network delay.
    """

    def __init__(
        self,
        rows: Iterable[dict[str, Any]] | None = None,
        *,
        latency: tuple[float, float] = (0.3, 0.7),
        automation_source: str = "IdeaboardApp",
        seed: int | None = None,
    ) -> None:
        self._rows: list[dict[str, Any]] = copy.deepcopy(list(SEED_ROWS if rows is None else rows))
        self._next_id = max((int(r["id"]) for r in self._rows), default=0) + 1
        self._latency = latency
        self._random = random.Random(seed)
        self._automation_source = automation_source
        self.automations: list[dict[str, Any]] = []
        self.requests: list[GatewayRequest] = []

    async def _delay(self) -> None:
        low, high = self._latency
        if high > 0:
            await asyncio.sleep(self._random.uniform(low, high))

    async def _send(self, request: GatewayRequest) -> GatewayResponse:
        await self._delay()
        request = GatewayRequest.model_validate_json(request.model_dump_json())
        self.requests.append(request)

        try:
            data = self._handle(request.action, request.payload or {})
            response = GatewayResponse.ok(data)
        except _DemoFailure as e:
            logger.warning("Demo backend rejected %s: %s", request.action, e)
            response = GatewayResponse.fail(str(e), e.code)

        return GatewayResponse.model_validate(json.loads(response.model_dump_json()))

    def _handle(self, action: str, payload: dict[str, Any]) -> Any:
        try:
            if action == Action.GET_SERVICES:
                return copy.deepcopy(self._rows)
            if action == Action.ADD_SERVICE:
                return self._add(payload["service"])
            if action == Action.UPDATE_SERVICE:
                return self._update(payload["service"])
            if action == Action.DELETE_SERVICE:
                return self._delete(payload["id"])
        except (KeyError, TypeError) as e:
            raise _DemoFailure(f"Malformed payload for {action}: {e}", "bad_request") from e
        raise _DemoFailure(f"Unknown action: {action}", "unknown_action")

    def _add(self, service: dict[str, Any]) -> dict[str, Any]:
        row = {k: v for k, v in service.items() if k in WIRE_FIELDS}
        row.update(
            {
                "id": self._next_id,
                "creationDate": datetime.now(UTC).isoformat(),
                "scores": [0] * CRITERIA_COUNT,
                "revenueEstimate": 0,
                "status": RecordStatus.UNDER_REVIEW.value,
            }
        )
        self._next_id += 1
        self._rows.append(row)
        return copy.deepcopy(row)

    def _update(self, service: dict[str, Any]) -> dict[str, Any]:
        record_id = service["id"]
        for row in self._rows:
            if row["id"] == record_id:
                row.update({k: v for k, v in service.items() if k in WIRE_FIELDS})
                if "scores" not in service:
                    row["scores"] = [service.get(c.column, 0) for c in CRITERIA]
                if "revenueEstimate" not in service and "revenue_estimate" in service:
                    row["revenueEstimate"] = service["revenue_estimate"]
                return copy.deepcopy(row)
        raise _DemoFailure(f"Service with id {record_id} not found.", "not_found")

    def _delete(self, record_id: int) -> dict[str, Any]:
        self._rows = [r for r in self._rows if r["id"] != record_id]
        return {"id": record_id}

    async def trigger_automation(self, record: Record, note: str = "") -> None:
        await self._delay()
        payload = build_automation_payload(record, note, source=self._automation_source)
        self.automations.append(json.loads(json.dumps(payload)))
        logger.info("Demo automation received record %s", record.id)
