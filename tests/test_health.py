import pytest

from sei_mcp_gateway.health import HealthStatus, check_health, format_health


class SteppingClock:
    def __init__(self, *readings):
        self._readings = list(readings)

    def __call__(self):
        return self._readings.pop(0)


@pytest.mark.asyncio
async def test_healthy_report_measures_latency(make_client, rpc_server):
    rpc_server.results["get_supported_networks"] = ["sei"]
    client = make_client(max_requests=10)

    report = await check_health(client, clock=SteppingClock(1.0, 1.25))

    assert report.status is HealthStatus.HEALTHY
    assert report.healthy
    assert report.latency_ms == pytest.approx(250.0)
    assert report.connection_state == "connected"
    assert report.remaining_quota == 9
    assert report.error is None
    await client.close()


@pytest.mark.asyncio
async def test_probe_bypasses_cache(make_client, rpc_server):
    rpc_server.results["get_supported_networks"] = ["sei"]
    client = make_client()

    await check_health(client)
    await check_health(client)

    assert rpc_server.methods() == ["get_supported_networks", "get_supported_networks"]
    assert len(client.cache) == 0
    await client.close()


@pytest.mark.asyncio
async def test_slow_probe_is_degraded(make_client, rpc_server):
    rpc_server.results["get_supported_networks"] = ["sei"]
    client = make_client()

    report = await check_health(client, degraded_latency=2.0, clock=SteppingClock(0.0, 3.0))

    assert report.status is HealthStatus.DEGRADED
    assert report.healthy
    await client.close()


@pytest.mark.asyncio
async def test_unreachable_server_is_reported_not_raised(make_client, rpc_server):
    rpc_server.health_status = 500
    client = make_client()

    report = await check_health(client)

    assert report.status is HealthStatus.UNHEALTHY
    assert not report.healthy
    assert report.latency_ms is None
    assert "health check returned HTTP 500" in report.error
    assert report.to_dict()["connection_state"] == "disconnected"
    assert "🔴" in format_health(report)
    await client.close()
