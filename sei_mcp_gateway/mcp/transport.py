"""Async HTTP transport for the Sei MCP JSON-RPC endpoint."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import McpConnectionError, McpRequestError, McpTimeoutError

_LOGGER = logging.getLogger(__name__)

HEALTH_PATH = "/health"
SESSION_HEADER = "X-Session-ID"


class HttpMcpTransport:
    """Lightweight JSON-RPC client that talks to the MCP server over HTTP.

    ``connect`` probes ``GET /health`` and creates a local session id; there is no
    handshake beyond that. ``request`` performs exactly one round trip and never
    retries.
    """

    def __init__(
        self,
        base_url: str,
        *,
        rpc_path: str = "/api/mcp",
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        base_url = base_url.strip().rstrip("/")
        if not base_url:
            raise ValueError("MCP base URL must not be empty")
        self._base_url = base_url
        self._rpc_path = rpc_path if rpc_path.startswith("/") else f"/{rpc_path}"
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._session_id: Optional[str] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def is_ready(self) -> bool:
        return self._session_id is not None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            timeout = httpx.Timeout(self._timeout) if self._timeout is not None else httpx.Timeout(5.0)
            self._client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        return self._client

    async def connect(self) -> None:
        url = f"{self._base_url}{HEALTH_PATH}"
        _LOGGER.debug("Probing MCP server health at %s", url)
        try:
            response = await self._http().get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            self._session_id = None
            raise McpConnectionError(
                f"Failed to connect to MCP server at {self._base_url}: {exc}", cause=exc
            ) from exc

        if response.status_code != 200:
            self._session_id = None
            raise McpConnectionError(
                f"Failed to connect to MCP server at {self._base_url}: "
                f"health check returned HTTP {response.status_code}"
            )

        try:
            health = response.json()
        except ValueError as exc:
            self._session_id = None
            raise McpConnectionError(
                f"Failed to connect to MCP server at {self._base_url}: health check returned invalid JSON",
                cause=exc,
            ) from exc

        self._session_id = f"http-session-{uuid.uuid4().hex}"
        _LOGGER.debug("MCP health check passed: %s", health)

    async def request(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        if self._session_id is None:
            raise McpConnectionError("Not connected to MCP server")

        message: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": uuid.uuid4().hex[:16],
            "method": method,
            "params": dict(params or {}),
        }
        url = f"{self._base_url}{self._rpc_path}"
        _LOGGER.debug("MCP request %s id=%s", method, message["id"])

        try:
            response = await self._http().post(
                url,
                json=message,
                headers={SESSION_HEADER: self._session_id},
            )
        except httpx.TimeoutException as exc:
            raise McpTimeoutError(f"MCP request {method} timed out", timeout=self._timeout) from exc
        except httpx.HTTPError as exc:
            self._session_id = None
            raise McpRequestError(f"MCP request {method} failed: {exc}") from exc

        if not response.is_success:
            raise McpRequestError(
                f"MCP server request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise McpRequestError(
                f"MCP request {method} returned invalid JSON", status_code=response.status_code
            ) from exc

        if not isinstance(body, Mapping):
            raise McpRequestError(f"Invalid MCP response payload: {body!r}", status_code=response.status_code)

        error = body.get("error")
        if error is not None:
            if isinstance(error, Mapping):
                message_text = error.get("message") or "MCP request error"
                code = error.get("code") if isinstance(error.get("code"), int) else None
            else:
                message_text = str(error) or "MCP request error"
                code = None
            raise McpRequestError(str(message_text), code=code)

        return body.get("result")

    async def close(self) -> None:
        if self._session_id is not None:
            _LOGGER.debug("Closing MCP session %s", self._session_id)
        self._session_id = None
        if self._owns_client and self._client is not None:
            client, self._client = self._client, None
            await client.aclose()
