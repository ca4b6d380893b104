"""Request/response envelopes shared by every gateway."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from ideaboard.models.record import Record


class Action(StrEnum):
    GET_SERVICES = "getServices"
    ADD_SERVICE = "addService"
    UPDATE_SERVICE = "updateService"
    DELETE_SERVICE = "deleteService"


class GatewayRequest(BaseModel):
    action: str
    payload: dict[str, Any] | None = None


class GatewayResponse(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    # Structured error code; older backends omit it
    code: str | None = None

    @classmethod
    def ok(cls, data: Any) -> GatewayResponse:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> GatewayResponse:
        return cls(success=False, error=error, code=code)


def build_automation_payload(
    record: Record,
    note: str,
    *,
    source: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Snapshot sent to the automation webhook."""
    timestamp = (now or datetime.now(UTC)).isoformat()
    return {
        "idea": {
            "id": record.id,
            "name": record.name,
            "description": record.description,
            "cluster": record.cluster,
            "businessModel": record.business_model,
            "targetAudience": record.target_audience,
            "status": record.status.value,
            "creator": record.creator_name,
            "creationDate": record.creation_timestamp,
            "scores": list(record.scores),
            "totalScore": record.total,
            "revenueEstimate": record.revenue_estimate,
        },
        "message": note,
        "triggeredBy": source,
        "timestamp": timestamp,
    }
