import json

import httpx
import pytest

from sei_mcp_gateway.mcp.errors import McpConnectionError, McpRequestError, McpTimeoutError
from sei_mcp_gateway.mcp.transport import SESSION_HEADER, HttpMcpTransport


def _transport(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpMcpTransport("http://mcp.test/", client=client), client


@pytest.mark.asyncio
async def test_connect_probes_health_and_creates_session():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"status": "ok"})

    transport, client = _transport(handler)
    await transport.connect()

    assert seen == [("GET", "/health")]
    assert transport.is_ready
    assert transport.session_id.startswith("http-session-")
    await transport.close()
    await client.aclose()


@pytest.mark.asyncio
async def test_request_sends_jsonrpc_envelope_with_session_header():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"status": "ok"})
        captured["path"] = request.url.path
        captured["session"] = request.headers.get(SESSION_HEADER)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": "1", "result": {"ok": True}})

    transport, client = _transport(handler)
    await transport.connect()
    result = await transport.request("get_chain_info", {"network": "sei"})

    assert result == {"ok": True}
    assert captured["path"] == "/api/mcp"
    assert captured["session"] == transport.session_id
    body = captured["body"]
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "get_chain_info"
    assert body["params"] == {"network": "sei"}
    assert isinstance(body["id"], str) and len(body["id"]) == 16
    await client.aclose()


@pytest.mark.asyncio
async def test_request_before_connect_fails_without_io():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be reached
        raise AssertionError("unexpected request")

    transport, client = _transport(handler)

    with pytest.raises(McpConnectionError):
        await transport.request("get_chain_info")
    await client.aclose()


@pytest.mark.asyncio
async def test_connect_maps_unhealthy_status_to_connection_error():
    transport, client = _transport(lambda request: httpx.Response(503, json={"status": "down"}))

    with pytest.raises(McpConnectionError) as excinfo:
        await transport.connect()

    assert "503" in str(excinfo.value)
    assert not transport.is_ready
    await client.aclose()


@pytest.mark.asyncio
async def test_connect_maps_network_failure_with_cause():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport, client = _transport(handler)

    with pytest.raises(McpConnectionError) as excinfo:
        await transport.connect()

    assert isinstance(excinfo.value.cause, httpx.ConnectError)
    await client.aclose()


@pytest.mark.asyncio
async def test_server_error_maps_to_request_error_with_status():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={})
        return httpx.Response(500, text="boom")

    transport, client = _transport(handler)
    await transport.connect()

    with pytest.raises(McpRequestError) as excinfo:
        await transport.request("get_balance", {"address": "0x1"})

    assert excinfo.value.status_code == 500
    assert transport.is_ready
    await client.aclose()


@pytest.mark.asyncio
async def test_jsonrpc_error_object_maps_to_request_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={})
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": "1", "error": {"code": -32602, "message": "Invalid params"}}
        )

    transport, client = _transport(handler)
    await transport.connect()

    with pytest.raises(McpRequestError) as excinfo:
        await transport.request("get_balance", {})

    assert str(excinfo.value) == "Invalid params"
    assert excinfo.value.code == -32602
    await client.aclose()


@pytest.mark.asyncio
async def test_invalid_json_body_maps_to_request_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={})
        return httpx.Response(200, text="not json")

    transport, client = _transport(handler)
    await transport.connect()

    with pytest.raises(McpRequestError):
        await transport.request("get_balance", {})
    await client.aclose()


@pytest.mark.asyncio
async def test_http_timeout_maps_to_timeout_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={})
        raise httpx.ReadTimeout("slow", request=request)

    transport, client = _transport(handler)
    await transport.connect()

    with pytest.raises(McpTimeoutError):
        await transport.request("get_balance", {})
    await client.aclose()


@pytest.mark.asyncio
async def test_network_failure_during_request_drops_session():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={})
        raise httpx.RemoteProtocolError("peer closed", request=request)

    transport, client = _transport(handler)
    await transport.connect()

    with pytest.raises(McpRequestError):
        await transport.request("get_balance", {})

    assert not transport.is_ready
    await client.aclose()


@pytest.mark.asyncio
async def test_close_is_idempotent_and_keeps_injected_client_open():
    transport, client = _transport(lambda request: httpx.Response(200, json={}))
    await transport.connect()

    await transport.close()
    await transport.close()

    assert not transport.is_ready
    assert not client.is_closed
    await client.aclose()


def test_rejects_empty_base_url():
    with pytest.raises(ValueError):
        HttpMcpTransport("   ")
