"""Tests for health check endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from main import app


class TestHealthCheck:
    """Tests for basic health check endpoint."""

    def test_health_check_returns_success(self) -> None:
        """Test basic health check returns healthy status."""
        client = TestClient(app)
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "healthy"
        assert "Release Notes Relay" in data["data"]["message"]
        assert data["message"] == "Health check successful"

    def test_health_check_reports_provider(self) -> None:
        """Provider name is exposed, credentials are not."""
        client = TestClient(app)
        data = client.get("/api/v1/health").json()

        assert data["data"]["provider"] == "openai"
        assert "api_key" not in str(data).lower()

    def test_health_check_echoes_correlation_id(self) -> None:
        client = TestClient(app)
        response = client.get(
            "/api/v1/health", headers={"X-Correlation-ID": "cid-123"}
        )

        assert response.headers["X-Correlation-ID"] == "cid-123"

    def test_health_check_generates_correlation_id(self) -> None:
        client = TestClient(app)
        response = client.get("/api/v1/health")

        assert response.headers["X-Correlation-ID"]
