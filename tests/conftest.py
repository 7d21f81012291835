import json

import httpx
import pytest

from sei_mcp_gateway.config import ClientConfig
from sei_mcp_gateway.infra.cache import ResponseCache
from sei_mcp_gateway.infra.ratelimit import SlidingWindowRateLimiter
from sei_mcp_gateway.mcp.client import SeiMcpClient
from sei_mcp_gateway.mcp.transport import HttpMcpTransport

SERVER_URL = "http://mcp.test"


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RpcServer:
    """In-process stand-in for the MCP server behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.results = {}
        self.calls = []
        self.health_checks = 0
        self.health_status = 200

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path == "/health":
            self.health_checks += 1
            return httpx.Response(self.health_status, json={"status": "ok"})

        body = json.loads(request.content)
        self.calls.append((body["method"], body["params"], request.headers.get("X-Session-ID")))
        result = self.results.get(body["method"])
        if isinstance(result, httpx.Response):
            return result
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(body["params"])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def methods(self):
        return [method for method, _, _ in self.calls]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rpc_server():
    return RpcServer()


@pytest.fixture
def make_client(rpc_server, clock):
    def factory(*, max_requests=60, ttl=30.0, window=60.0, handler=None, **overrides):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler or rpc_server.handler))
        config = ClientConfig(
            server_url=SERVER_URL,
            max_requests_per_minute=max_requests,
            cache_ttl=ttl,
            rate_window=window,
            **overrides,
        )
        transport = HttpMcpTransport(
            config.server_url,
            rpc_path=config.rpc_path,
            timeout=config.request_timeout,
            client=http,
        )
        return SeiMcpClient(
            config,
            transport=transport,
            cache=ResponseCache(ttl, clock=clock),
            rate_limiter=SlidingWindowRateLimiter(max_requests, window=window, clock=clock),
        )

    return factory
