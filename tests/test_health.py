"""Smoke tests for health and app wiring."""

from httpx import AsyncClient


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json().get("status") == "ok"


async def test_ready_reports_local_realtime(client: AsyncClient) -> None:
    """With Redis disabled the lifespan wires the in-process publisher."""
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "realtime": "local"}


async def test_root_describes_endpoints(client: AsyncClient) -> None:
    response = await client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["health"] == "/api/v1/health"
    assert body["websocket"] == "/api/v1/ws"
