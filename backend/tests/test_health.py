"""Tests for the health endpoints."""

from coalition import main


async def test_health(client):
    response = await client.get("/health")
    assert response.json()["status"] == "healthy"


async def test_detailed_health_degraded_without_workers(client, monkeypatch):
    monkeypatch.setattr(main, "_check_workers", lambda: {"ok": False, "workers": []})

    response = await client.get("/health/detailed")

    checks = response.json()["checks"]
    assert response.json()["status"] == "degraded"
    assert checks["database"] == {"ok": True}
    assert checks["email"] == {"configured": True}


async def test_detailed_health_with_workers(client, monkeypatch):
    monkeypatch.setattr(main, "_check_workers", lambda: {"ok": True, "workers": ["celery@worker-1"]})

    response = await client.get("/health/detailed")

    assert response.json()["status"] == "healthy"
    assert response.json()["checks"]["workers"]["workers"] == ["celery@worker-1"]
