"""Tests for health check endpoints."""

from fastapi.testclient import TestClient

from conftest import FakeGateway
from nova.api.main import create_app
from nova.assistant import Assistant

client = TestClient(create_app(assistant=Assistant(gateway=FakeGateway())))


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self):
        """Health check should return 200 OK."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_healthy_status(self):
        """Health check should return healthy status."""
        data = client.get("/health").json()
        assert data["status"] == "healthy"

    def test_health_includes_version(self):
        """Health check should include version."""
        data = client.get("/health").json()
        assert data["version"] == "0.1.0"

    def test_health_includes_model(self):
        """Health check should include the gateway's model name."""
        data = client.get("/health").json()
        assert data["model"] == "fake-model"


class TestPingEndpoint:
    """Tests for /ping endpoint."""

    def test_ping(self):
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
