"""Error taxonomy shared by the transport and the gateway client."""

from __future__ import annotations

from typing import Optional

_TRANSIENT_MARKERS = ("rate limit", "temporary", "timeout", "timed out")


class McpClientError(RuntimeError):
    """Base class for every failure surfaced by the MCP gateway."""


class McpConnectionError(McpClientError):
    """Raised when the downstream MCP server cannot be reached or verified."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class McpRequestError(McpClientError):
    """Raised when a call fails after a connection exists."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class UnsupportedOperationError(McpRequestError):
    """Raised for operations the downstream server does not implement."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


class McpTimeoutError(McpClientError):
    """Raised when a deadline elapses before a call completes."""

    def __init__(self, message: str = "MCP request timed out", *, timeout: Optional[float] = None) -> None:
        super().__init__(message)
        self.timeout = timeout


def is_recoverable(exc: BaseException) -> bool:
    """Return True when retrying ``exc`` later may succeed."""

    if isinstance(exc, (McpConnectionError, McpTimeoutError)):
        return True
    if isinstance(exc, UnsupportedOperationError):
        return False
    if isinstance(exc, McpRequestError):
        status = exc.status_code
        if status is not None and (status == 429 or status >= 500):
            return True
        message = str(exc).lower()
        return any(marker in message for marker in _TRANSIENT_MARKERS)
    return False


def is_rate_limited(exc: BaseException) -> bool:
    if not isinstance(exc, McpRequestError):
        return False
    return exc.status_code == 429 or "rate limit" in str(exc).lower()
