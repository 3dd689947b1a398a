"""Tests for the /status health report."""

from types import SimpleNamespace

from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from taskforge.config import settings
from taskforge.database import get_engine
from taskforge.main import app
from taskforge.services import health
from taskforge.services.health import HealthStatus, build_report, check_gc_info

GIB = 1024 * 1024 * 1024


class TestHealthChecks:
    def test_gc_info_healthy_below_threshold(self):
        entry = check_gc_info(threshold_bytes=1 << 50)

        assert entry.status == HealthStatus.HEALTHY
        assert entry.data["Allocated"] > 0
        assert "Gen0Collections" in entry.data

    def test_gc_info_degraded_at_threshold(self):
        entry = check_gc_info(threshold_bytes=1)
        assert entry.status == HealthStatus.DEGRADED

    def test_gc_info_recovers_when_memory_is_released(self, monkeypatch):
        """The check follows current memory, so a past spike does not pin it at Degraded."""
        samples = iter([2 * GIB, 100 * 1024 * 1024])

        class FakeProcess:
            def memory_info(self):
                return SimpleNamespace(rss=next(samples))

        monkeypatch.setattr(health.psutil, "Process", FakeProcess)

        spike = check_gc_info(threshold_bytes=GIB)
        released = check_gc_info(threshold_bytes=GIB)

        assert spike.status == HealthStatus.DEGRADED
        assert spike.data["Allocated"] == 2 * GIB
        assert released.status == HealthStatus.HEALTHY
        assert released.data["Allocated"] == 100 * 1024 * 1024

    def test_report_takes_worst_status(self, engine):
        report = build_report(threshold_bytes=1, engine=engine)

        assert report.results["database"].status == HealthStatus.HEALTHY
        assert report.status == HealthStatus.DEGRADED


class TestStatusEndpoint:
    def test_status_healthy(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "gc_memory_threshold_bytes", 1 << 50)

        response = client.get("/status")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Healthy"
        assert set(body["results"]) == {"gcinfo", "database"}
        assert "ElapsedMilliseconds" in body["results"]["database"]["data"]

    def test_status_degraded_is_still_ok(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "gc_memory_threshold_bytes", 1)

        response = client.get("/status")

        assert response.status_code == 200
        assert response.json()["status"] == "Degraded"

    def test_status_unhealthy_database(self, client: TestClient, tmp_path):
        broken = create_engine(f"sqlite:///{tmp_path / 'missing' / 'taskforge.db'}")
        app.dependency_overrides[get_engine] = lambda: broken

        response = client.get("/status")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "Unhealthy"
        assert body["results"]["database"]["data"]["error"] == "OperationalError"

    def test_security_headers(self, client: TestClient):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "private, max-age=3600, must-revalidate"
