"""HTTP gateway to a deployed backend script and automation webhook."""

from __future__ import annotations

import json
import logging

import httpx
import pydantic

from ideaboard.errors import GatewayError, ProtocolError, TransportError
from ideaboard.gateway.base import EnvelopeGateway
from ideaboard.gateway.envelope import GatewayRequest, GatewayResponse, build_automation_payload
from ideaboard.models.record import Record

logger = logging.getLogger(__name__)

# Statuses that mean the endpoint itself is wrong or not shared
_UNREACHABLE_STATUSES = {401, 403, 404}


def _status_error(response: httpx.Response, what: str) -> GatewayError:
    message = f"{what} failed: {response.status_code} {response.reason_phrase} - {response.text}"
    if response.status_code in _UNREACHABLE_STATUSES:
        return TransportError(message, code=f"http_{response.status_code}")
    return GatewayError(message, code=f"http_{response.status_code}")


class HttpGateway(EnvelopeGateway):
    """Gateway speaking the envelope protocol over HTTP POST.

    Example:
        async with HttpGateway("https://script.example.com/exec") as gateway:
            records = await gateway.fetch_all()
    """

    def __init__(
        self,
        backend_url: str,
        *,
        webhook_url: str = "",
        automation_source: str = "IdeaboardApp",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            backend_url: Deployed backend endpoint receiving request envelopes
            webhook_url: Automation webhook; automation fails while unset
            automation_source: Value of ``triggeredBy`` in automation payloads
            timeout: Request timeout in seconds
            client: Optional preconfigured client (closed by the caller)
        """
        if not backend_url:
            raise ValueError("backend_url cannot be empty")
        self._backend_url = backend_url
        self._webhook_url = webhook_url
        self._automation_source = automation_source
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def _send(self, request: GatewayRequest) -> GatewayResponse:
        try:
            # Plain-text body avoids a CORS preflight on script deployments
            response = await self._client.post(
                self._backend_url,
                content=request.model_dump_json(),
                headers={"Content-Type": "text/plain;charset=utf-8"},
            )
        except (httpx.TransportError, httpx.InvalidURL) as e:
            logger.error("Action %s could not reach backend: %s", request.action, e)
            raise TransportError(f"Failed to fetch {self._backend_url}: {e}") from e

        if response.is_error:
            logger.error("Action %s returned HTTP %s", request.action, response.status_code)
            raise _status_error(response, f"Action {request.action}")

        try:
            return GatewayResponse.model_validate(response.json())
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON from backend for {request.action}: {e}") from e
        except pydantic.ValidationError as e:
            raise ProtocolError(
                f"Invalid JSON envelope from backend for {request.action}: {e}"
            ) from e

    async def trigger_automation(self, record: Record, note: str = "") -> None:
        if not self._webhook_url:
            raise GatewayError("Webhook URL is not configured", code="webhook_not_configured")

        payload = build_automation_payload(record, note, source=self._automation_source)
        try:
            response = await self._client.post(self._webhook_url, json=payload)
        except (httpx.TransportError, httpx.InvalidURL) as e:
            logger.error("Automation webhook unreachable: %s", e)
            raise TransportError(f"Failed to fetch {self._webhook_url}: {e}") from e

        if response.is_error:
            raise _status_error(response, "Automation webhook")
        logger.info("Sent record %s to automation webhook", record.id)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
