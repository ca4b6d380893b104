"""Tests for the persistence gateways."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from conftest import make_record
from ideaboard.config import Config
from ideaboard.errors import BusinessError, GatewayError, ProtocolError, TransportError
from ideaboard.gateway import DemoGateway, HttpGateway, create_gateway
from ideaboard.gateway.envelope import Action, GatewayRequest, build_automation_payload
from ideaboard.models.record import RecordDraft, RecordStatus

BACKEND = "https://script.example.com/exec"
WEBHOOK = "https://hooks.example.com/run"


def _draft(**overrides) -> RecordDraft:
    fields = {
        "name": "Device Trade-in",
        "description": "Credit for old devices",
        "target_audience": "Upgraders",
        "business_model": "service-fee",
        "cluster": "Sustainability",
        "creator_name": "Dana",
    }
    fields.update(overrides)
    return RecordDraft(**fields)


# --- demo backend ---


@pytest.mark.asyncio
async def test_demo_fetch_all_returns_seed(gateway: DemoGateway):
    records = await gateway.fetch_all()

    assert [r.id for r in records] == [1, 2, 3]
    assert records[0].total == 21
    assert records[0].status == RecordStatus.APPROVED


@pytest.mark.asyncio
async def test_demo_create_assigns_backend_fields(gateway: DemoGateway):
    record = await gateway.create(_draft())

    assert record.id == 4
    assert record.scores == (0, 0, 0, 0, 0)
    assert record.status == RecordStatus.UNDER_REVIEW
    assert record.revenue_estimate == 0
    assert record.creation_timestamp
    assert [r.id for r in await gateway.fetch_all()][-1] == 4


@pytest.mark.asyncio
async def test_demo_create_rejects_blank_fields(gateway: DemoGateway):
    with pytest.raises(ValueError, match="name"):
        await gateway.create(_draft(name="   "))
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_demo_update_roundtrips_full_record(gateway: DemoGateway):
    [first, *_] = await gateway.fetch_all()
    edited = first.with_changes(scores=[0, 0, 0, 0, 1], revenue_estimate=42, status="completed")

    saved = await gateway.update(edited)

    assert saved.scores == (0, 0, 0, 0, 1)
    assert saved.revenue_estimate == 42
    assert saved.status == RecordStatus.COMPLETED
    assert (await gateway.fetch_all())[0] == saved


@pytest.mark.asyncio
async def test_demo_update_missing_id(gateway: DemoGateway):
    with pytest.raises(BusinessError, match="Service with id 99 not found.") as exc_info:
        await gateway.update(make_record(99))
    assert exc_info.value.code == "not_found"


@pytest.mark.asyncio
async def test_demo_delete_is_idempotent(gateway: DemoGateway):
    assert await gateway.delete(2) == 2
    assert await gateway.delete(2) == 2
    assert [r.id for r in await gateway.fetch_all()] == [1, 3]


@pytest.mark.asyncio
async def test_demo_unknown_action(gateway: DemoGateway):
    response = await gateway._send(GatewayRequest(action="ping"))

    assert response.success is False
    assert response.code == "unknown_action"
    assert "Unknown action" in response.error


@pytest.mark.asyncio
async def test_demo_malformed_payload(gateway: DemoGateway):
    response = await gateway._send(GatewayRequest(action=Action.DELETE_SERVICE, payload={}))
    assert response.code == "bad_request"


@pytest.mark.asyncio
async def test_demo_records_automation(gateway: DemoGateway):
    [first, *_] = await gateway.fetch_all()
    await gateway.trigger_automation(first, "please review")

    [payload] = gateway.automations
    assert payload["idea"]["id"] == 1
    assert payload["idea"]["totalScore"] == 21
    assert payload["message"] == "please review"
    assert payload["triggeredBy"] == "IdeaboardApp"


@pytest.mark.asyncio
async def test_demo_state_isolated_from_seed():
    first = DemoGateway(latency=(0.0, 0.0))
    await first.delete(1)
    second = DemoGateway(latency=(0.0, 0.0))
    assert len(await second.fetch_all()) == 3


# --- automation payload ---


def test_automation_payload_shape(records):
    payload = build_automation_payload(records[0], "", source="Tests")

    assert set(payload) == {"idea", "message", "triggeredBy", "timestamp"}
    assert payload["idea"]["scores"] == [5, 4, 3, 5, 4]
    assert payload["idea"]["status"] == "under-review"


# --- HTTP backend ---


@pytest.mark.asyncio
@respx.mock
async def test_http_fetch_all_sends_envelope():
    route = respx.post(BACKEND).mock(
        return_value=httpx.Response(
            200, json={"success": True, "data": [{"id": 1, "service": "A", "scores": [1, 2, 3, 4, 5]}]}
        )
    )
    async with HttpGateway(BACKEND) as gateway:
        records = await gateway.fetch_all()

    assert [r.total for r in records] == [15]
    sent = route.calls.last.request
    assert json.loads(sent.content) == {"action": "getServices", "payload": None}
    assert sent.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
@respx.mock
async def test_http_create_sends_service_payload():
    route = respx.post(BACKEND).mock(
        return_value=httpx.Response(200, json={"success": True, "data": {"id": 10, "service": "Device Trade-in"}})
    )
    async with HttpGateway(BACKEND) as gateway:
        record = await gateway.create(_draft())

    assert record.id == 10
    body = json.loads(route.calls.last.request.content)
    assert body["action"] == "addService"
    assert body["payload"]["service"]["service"] == "Device Trade-in"
    assert body["payload"]["service"]["status"] == "under-review"


@pytest.mark.asyncio
@respx.mock
async def test_http_update_without_echo_returns_input():
    respx.post(BACKEND).mock(return_value=httpx.Response(200, json={"success": True}))
    record = make_record(5, (1, 1, 1, 1, 1))
    async with HttpGateway(BACKEND) as gateway:
        assert await gateway.update(record) == record


@pytest.mark.asyncio
@respx.mock
async def test_http_business_failure_raises():
    respx.post(BACKEND).mock(
        return_value=httpx.Response(
            200, json={"success": False, "error": "Service with id 5 not found.", "code": "not_found"}
        )
    )
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(BusinessError) as exc_info:
            await gateway.delete(5)

    assert exc_info.value.message == "Service with id 5 not found."
    assert exc_info.value.code == "not_found"


@pytest.mark.asyncio
@respx.mock
async def test_http_invalid_json_is_protocol_error():
    respx.post(BACKEND).mock(return_value=httpx.Response(200, text="<html>Sign in</html>"))
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(ProtocolError, match="Invalid JSON"):
            await gateway.fetch_all()


@pytest.mark.asyncio
@respx.mock
async def test_http_non_list_fetch_is_protocol_error():
    respx.post(BACKEND).mock(return_value=httpx.Response(200, json={"success": True, "data": {"id": 1}}))
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(ProtocolError):
            await gateway.fetch_all()


@pytest.mark.asyncio
@respx.mock
async def test_http_connect_error_is_transport_error():
    respx.post(BACKEND).mock(side_effect=httpx.ConnectError("Connection refused"))
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(TransportError, match="Failed to fetch"):
            await gateway.fetch_all()


@pytest.mark.asyncio
@respx.mock
async def test_http_invalid_url_is_transport_error():
    respx.post(BACKEND).mock(side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"))
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(TransportError, match="Failed to fetch"):
            await gateway.fetch_all()


@pytest.mark.asyncio
@pytest.mark.parametrize(("status", "error_type"), [(403, TransportError), (500, GatewayError)])
@respx.mock
async def test_http_status_errors(status, error_type):
    respx.post(BACKEND).mock(return_value=httpx.Response(status, text="nope"))
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(error_type) as exc_info:
            await gateway.fetch_all()
    assert exc_info.value.code == f"http_{status}"


@pytest.mark.asyncio
@respx.mock
async def test_http_automation_posts_json():
    route = respx.post(WEBHOOK).mock(return_value=httpx.Response(200))
    async with HttpGateway(BACKEND, webhook_url=WEBHOOK, automation_source="Tests") as gateway:
        await gateway.trigger_automation(make_record(3, (5, 5, 5, 5, 5)), "ship it")

    body = json.loads(route.calls.last.request.content)
    assert body["idea"]["totalScore"] == 25
    assert body["message"] == "ship it"
    assert body["triggeredBy"] == "Tests"


@pytest.mark.asyncio
async def test_http_automation_without_webhook():
    async with HttpGateway(BACKEND) as gateway:
        with pytest.raises(GatewayError) as exc_info:
            await gateway.trigger_automation(make_record(1))
    assert exc_info.value.code == "webhook_not_configured"


def test_http_requires_backend_url():
    with pytest.raises(ValueError):
        HttpGateway("")


# --- factory ---


@pytest.mark.asyncio
async def test_create_gateway_by_config(tmp_path):
    demo = create_gateway(Config(workspace_path=tmp_path))
    live = create_gateway(Config(workspace_path=tmp_path, backend_url=BACKEND))

    assert isinstance(demo, DemoGateway)
    assert isinstance(live, HttpGateway)
    await live.close()
