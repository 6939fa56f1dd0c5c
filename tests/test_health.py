"""Tests for health endpoints and request logging."""

import pytest
from httpx import AsyncClient

from medibook.api.v1.endpoints import health
from medibook.config import settings


def stub_checks(monkeypatch: pytest.MonkeyPatch, database: bool, event_bus: bool, cache: bool):
    """Replace dependency checks with fixed answers."""

    async def answer(value: bool) -> bool:
        return value

    monkeypatch.setattr(health, "check_database_connection", lambda: answer(database))
    monkeypatch.setattr(health, "check_event_bus_connection", lambda: answer(event_bus))
    monkeypatch.setattr(health, "check_redis_connection", lambda: answer(cache))


@pytest.mark.asyncio
async def test_detailed_health_all_up(client: AsyncClient, monkeypatch) -> None:
    """Every dependency reachable reports healthy."""
    stub_checks(monkeypatch, database=True, event_bus=True, cache=True)

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["slots_per_day"] == len(settings.slot_template)


@pytest.mark.asyncio
async def test_detailed_health_redis_down_is_degraded(client: AsyncClient, monkeypatch) -> None:
    """Losing Redis stops events and caching but bookings still work."""
    stub_checks(monkeypatch, database=True, event_bus=False, cache=False)

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database"] == "healthy"
    assert data["event_bus"] == "unhealthy"
    assert data["profile_cache"] == "unhealthy"


@pytest.mark.asyncio
async def test_detailed_health_database_down(client: AsyncClient, monkeypatch) -> None:
    """Without the database no booking can be taken."""
    stub_checks(monkeypatch, database=False, event_bus=True, cache=True)

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient) -> None:
    """A caller supplied request id is echoed; otherwise one is generated."""
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "booking-42"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "booking-42"

    response = await client.get("/api/v1/ping")
    assert response.headers["X-Request-ID"]
    assert "X-Process-Time" in response.headers
