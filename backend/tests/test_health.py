"""
Tests for health, monitoring and error handling.
"""

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from newsroom.main import app
from newsroom.services.logging_service import app_metrics
from newsroom.storage import Storage, RecordNotFound, get_storage


@pytest.mark.unit
class TestHealthEndpoints:
    """Liveness, readiness and detail checks."""

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "operational"

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "test"

    def test_api_health_reports_backend(self, client: TestClient):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["storage"] == "sqlite"

    def test_liveness(self, client: TestClient):
        assert client.get("/health/live").json()["status"] == "alive"

    def test_ready_with_redis_disabled(self, client: TestClient):
        response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["redis"]["status"] == "disabled"

    def test_not_ready_when_storage_fails(self, client: TestClient):
        broken = MagicMock(spec=Storage)
        broken.ping.side_effect = RuntimeError("database is down")
        app.dependency_overrides[get_storage] = lambda: broken

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["storage"]["status"] == "unhealthy"

    def test_detailed(self, client: TestClient):
        response = client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["scheduler"]["status"] == "disabled"
        assert "memory_percent" in data["system"]

    def test_api_health_degraded(self, client: TestClient):
        broken = MagicMock(spec=Storage)
        broken.ping.side_effect = RuntimeError("database is down")
        app.dependency_overrides[get_storage] = lambda: broken

        response = client.get("/api/health")

        assert response.json()["status"] == "degraded"
        assert response.json()["storage_status"] == "unhealthy"


@pytest.mark.unit
class TestMetricsEndpoint:
    """Request counters gathered by the audit middleware."""

    def test_requests_are_counted(self, client: TestClient):
        app_metrics.reset()

        client.get("/api/categories")
        client.get("/api/articles/999")
        metrics = client.get("/health/metrics").json()

        assert metrics["requests"]["total"] == 2
        assert metrics["requests"]["success"] == 1
        assert metrics["requests"]["error"] == 1
        assert set(metrics["requests"]["by_endpoint"]) == {"GET /api/categories", "GET /api/articles/{article_id}"}
        assert metrics["error_rate_percent"] == 50.0

    def test_endpoints_are_keyed_by_full_template(self, client: TestClient):
        app_metrics.reset()

        client.get("/api/articles/998")
        client.get("/api/articles/999")
        client.get("/api/channels/999")
        by_endpoint = client.get("/health/metrics").json()["requests"]["by_endpoint"]

        assert by_endpoint["GET /api/articles/{article_id}"]["total"] == 2
        assert by_endpoint["GET /api/channels/{channel_id}"]["total"] == 1

    def test_health_checks_are_not_counted(self, client: TestClient):
        app_metrics.reset()

        client.get("/health")

        assert client.get("/health/metrics").json()["requests"]["total"] == 0


@pytest.mark.unit
class TestErrorHandling:
    """Storage errors map onto HTTP statuses."""

    def test_record_not_found_maps_to_404(self, client: TestClient):
        broken = MagicMock(spec=Storage)
        broken.list_categories.side_effect = RecordNotFound("Channel", 7)
        app.dependency_overrides[get_storage] = lambda: broken

        response = client.get("/api/categories")

        assert response.status_code == 404

    def test_unhandled_error_is_500(self, storage: Storage):
        broken = MagicMock(spec=Storage)
        broken.list_locations.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_storage] = lambda: broken

        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/api/locations")

        app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

    def test_validation_errors_are_422(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/channels", json={"name": ""}, headers=auth_headers)

        assert response.status_code == 422
