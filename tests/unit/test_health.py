from __future__ import annotations

import sys
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import oap.api.routes.health as health_route
from oap.api.main import app


def test_live_health_endpoint() -> None:
    client = TestClient(app)
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_health_endpoint_healthy_with_mocks(monkeypatch) -> None:
    monkeypatch.setattr(health_route, "ping_database", lambda timeout_seconds=1.0: True)
    monkeypatch.setattr(health_route, "redis_configured", lambda: False)

    client = TestClient(app)
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "checks": {"database": True}}


def test_ready_health_endpoint_reports_redis_outage(monkeypatch) -> None:
    monkeypatch.setattr(health_route, "ping_database", lambda timeout_seconds=1.0: True)
    monkeypatch.setattr(health_route, "redis_configured", lambda: True)
    monkeypatch.setattr(health_route, "ping_redis", lambda timeout_seconds=1.0: False)

    client = TestClient(app)
    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {
        "status": "unavailable",
        "checks": {"database": True, "redis": False, "event_fanout": False},
    }


def test_responses_carry_request_id() -> None:
    client = TestClient(app)

    echoed = client.get("/health/live", headers={"X-Request-Id": "kiosk-7.42"})
    replaced = client.get("/health/live", headers={"X-Request-Id": "bad id/with spaces"})

    assert echoed.headers["X-Request-Id"] == "kiosk-7.42"
    assert replaced.headers["X-Request-Id"] != "bad id/with spaces"
    assert len(replaced.headers["X-Request-Id"]) == 32
