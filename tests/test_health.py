from __future__ import annotations

from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.routes.health import health_check
from app.core.config import settings


def test_healthy_when_database_answers(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["ping"] == "success"
    assert body["uptime"].endswith("s")


def test_unhealthy_when_database_is_down() -> None:
    db = MagicMock()
    db.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

    resp = health_check(db=db)

    assert resp.status_code == 503


def test_health_bypasses_rate_limit(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "max_requests", 1)

    for _ in range(3):
        assert client.get("/health").status_code == 200

    assert client.get("/api/products").status_code == 401
    assert client.get("/api/products").status_code == 429


def test_reports_memory_usage(client: TestClient) -> None:
    memory = client.get("/health").json()["checks"]["memory"]

    assert memory["status"] == "healthy"
    assert memory["unit"] == "MB"
    assert memory["usage"]["rss"] > 0
    assert memory["usage"]["peakRss"] >= 1


def test_memory_over_threshold_warns_without_failing(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "memory_warning_mb", 0)

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["checks"]["memory"]["status"] == "warning"
