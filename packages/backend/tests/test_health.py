"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_reports_redis_unavailable_without_failing(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["redis"].startswith("unavailable")


@pytest.mark.asyncio
async def test_health_counts_realtime_connections(client, connect_tab):
    connect_tab(admin=True)
    connect_tab(admin=False)

    resp = await client.get("/api/health")
    realtime = resp.json()["realtime"]
    assert realtime["connections"] >= 2
    assert realtime["admins"] >= 1
