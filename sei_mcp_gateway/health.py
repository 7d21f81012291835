"""Health probing for the downstream MCP server."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .mcp.client import SeiMcpClient
from .mcp.errors import McpClientError

_LOGGER = logging.getLogger(__name__)

DEFAULT_HEALTH_TIMEOUT = 10.0
DEFAULT_DEGRADED_LATENCY = 2.0


class HealthStatus(Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(slots=True, frozen=True)
class HealthReport:
    status: HealthStatus
    connection_state: str
    latency_ms: Optional[float]
    cached_entries: int
    remaining_quota: int
    error: Optional[str] = None

    @property
    def healthy(self) -> bool:
        return self.status is not HealthStatus.UNHEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "connection_state": self.connection_state,
            "latency_ms": self.latency_ms,
            "cached_entries": self.cached_entries,
            "remaining_quota": self.remaining_quota,
            "error": self.error,
        }


async def check_health(
    client: SeiMcpClient,
    *,
    timeout: float = DEFAULT_HEALTH_TIMEOUT,
    degraded_latency: float = DEFAULT_DEGRADED_LATENCY,
    clock: Callable[[], float] = time.perf_counter,
) -> HealthReport:
    """Round-trip a cheap uncached call and report how the gateway fared.

    The probe goes through the full client pipeline, so it connects lazily and
    counts against the rate limit like any other request. Gateway failures are
    reported in the result rather than raised.
    """

    started = clock()
    error: Optional[str] = None
    try:
        await client.call("get_supported_networks", {}, cacheable=False, timeout=timeout)
    except McpClientError as exc:
        _LOGGER.warning("MCP health probe failed: %s", exc)
        error = str(exc) or type(exc).__name__
    elapsed = clock() - started

    if error is not None:
        status = HealthStatus.UNHEALTHY
        latency_ms = None
    else:
        status = HealthStatus.DEGRADED if elapsed > degraded_latency else HealthStatus.HEALTHY
        latency_ms = round(elapsed * 1000, 2)

    return HealthReport(
        status=status,
        connection_state=client.state.value,
        latency_ms=latency_ms,
        cached_entries=len(client.cache),
        remaining_quota=client.rate_limiter.remaining(),
        error=error,
    )


def format_health(report: HealthReport) -> str:
    icon = {"healthy": "🟢", "degraded": "🟡", "unhealthy": "🔴"}[report.status.value]
    latency = f"{report.latency_ms:.0f} ms" if report.latency_ms is not None else "n/a"
    lines = [
        f"{icon} MCP gateway {report.status.value}",
        f"Connection: {report.connection_state}",
        f"Latency: {latency}",
        f"Cached entries: {report.cached_entries}",
        f"Remaining quota: {report.remaining_quota}",
    ]
    if report.error:
        lines.append(f"Error: {report.error}")
    return "\n".join(lines)
