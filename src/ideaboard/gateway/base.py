"""Abstract persistence gateway for Ideaboard."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import pydantic

from ideaboard.errors import BusinessError, ProtocolError
from ideaboard.gateway.envelope import Action, GatewayRequest, GatewayResponse
from ideaboard.models.record import Record, RecordDraft

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):
    """Abstract interface for Ideaboard backends.

    Every call returns the declared payload or raises a ``GatewayError``
    carrying a human-readable message. Nothing is retried automatically.
    """

    @abstractmethod
    async def fetch_all(self) -> list[Record]:
        """Fetch every record."""

    @abstractmethod
    async def create(self, draft: RecordDraft) -> Record:
        """Create a record. The backend assigns id, scores and timestamp."""

    @abstractmethod
    async def update(self, record: Record) -> Record:
        """Full-record upsert by id. Returns the stored record."""

    @abstractmethod
    async def delete(self, record_id: int) -> int:
        """Delete a record. Returns the deleted id."""

    @abstractmethod
    async def trigger_automation(self, record: Record, note: str = "") -> None:
        """Send a record snapshot to the automation side channel."""

    async def close(self) -> None:
        """Release connections."""

    async def __aenter__(self) -> PersistenceGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class EnvelopeGateway(PersistenceGateway):
    """CRUD over the ``{action, payload}`` / ``{success, data, error}`` envelope.

    Subclasses only implement transport in ``_send``.
    """

    @abstractmethod
    async def _send(self, request: GatewayRequest) -> GatewayResponse:
        """Deliver one request envelope and return the response envelope."""

    async def _call(self, action: Action, payload: dict[str, Any] | None = None) -> Any:
        response = await self._send(GatewayRequest(action=action.value, payload=payload))
        if not response.success:
            message = response.error or f"Backend reported a failure for {action}"
            logger.error("Action %s rejected by backend: %s", action, message)
            raise BusinessError(message, code=response.code)
        return response.data

    @staticmethod
    def _decode(data: Any, action: Action) -> Record:
        if not isinstance(data, dict):
            raise ProtocolError(f"Invalid JSON payload for {action}: expected an object")
        try:
            return Record.from_wire(data)
        except pydantic.ValidationError as e:
            raise ProtocolError(f"Invalid record in {action} response: {e}") from e

    async def fetch_all(self) -> list[Record]:
        data = await self._call(Action.GET_SERVICES)
        if not isinstance(data, list):
            raise ProtocolError(f"Invalid JSON payload for {Action.GET_SERVICES}: expected a list")
        records = [self._decode(item, Action.GET_SERVICES) for item in data]
        logger.info("Fetched %d record(s)", len(records))
        return records

    async def create(self, draft: RecordDraft) -> Record:
        draft = draft.validated()
        data = await self._call(Action.ADD_SERVICE, {"service": draft.to_wire()})
        record = self._decode(data, Action.ADD_SERVICE)
        logger.info("Created record %s - %s", record.id, record.name)
        return record

    async def update(self, record: Record) -> Record:
        data = await self._call(Action.UPDATE_SERVICE, {"service": record.to_sheet_row()})
        # Older backends acknowledge without echoing the row
        saved = self._decode(data, Action.UPDATE_SERVICE) if data is not None else record
        logger.info("Updated record %s", record.id)
        return saved

    async def delete(self, record_id: int) -> int:
        await self._call(Action.DELETE_SERVICE, {"id": record_id})
        logger.info("Deleted record %s", record_id)
        return record_id
