"""Tests for API routes."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import make_response
from headermatch.api.routes import router
from headermatch.matching import ColumnMatchingService


@pytest.fixture
def service(mock_registry) -> ColumnMatchingService:
    """Create a service backed by the mock registry."""
    return ColumnMatchingService(mock_registry)


@pytest.fixture
def test_client(service):
    """Create a test client with the mocked service."""
    app = FastAPI()
    app.include_router(router, prefix="/api")

    with patch("headermatch.api.routes.get_service", return_value=service):
        yield TestClient(app)


def _payload(**overrides) -> dict:
    payload = {
        "sourceHeaders": ["Qty", "Desc"],
        "targetHeaders": ["Quantity", "Description"],
        "existingMappings": [],
        "modelConfiguration": {"modelId": "mock-model"},
        "providerConfiguration": {"providerId": "mock"},
    }
    payload.update(overrides)
    return payload


class TestHealthEndpoint:
    """Test the /api/health endpoint."""

    def test_health_check_returns_ok_status(self, test_client):
        """Test that health check returns status 'ok'."""
        response = test_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "headermatch"

    def test_health_check_shows_key_presence_without_secrets(self, test_client, monkeypatch):
        """Test that health check reports key presence without exposing keys."""
        from headermatch.config import settings

        monkeypatch.setattr(settings, "openai_api_key", "sk-secret-value")
        response = test_client.get("/api/health")

        config = response.json()["config"]
        assert config["openai_key_present"] is True
        assert isinstance(config["anthropic_key_present"], bool)
        assert "sk-secret-value" not in response.text


class TestProvidersEndpoint:
    """Test the /api/providers endpoint."""

    def test_lists_registered_providers(self, test_client):
        """Test the registered provider IDs are returned."""
        response = test_client.get("/api/providers")

        assert response.status_code == 200
        assert response.json() == {"count": 1, "providers": ["mock"]}


class TestMatchEndpoint:
    """Test the /api/match endpoint."""

    def test_match_success(self, test_client, mock_provider):
        """Test a successful match returns the camelCase report."""
        mock_provider.queue_response(make_response("Qty", "Quantity", 90))
        mock_provider.queue_response(make_response("Desc", "Description", 92))

        response = test_client.post("/api/match", json=_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["providerName"] == "Mock Provider"
        assert data["operationMode"] == "COLUMN_MATCHING"
        assert [r["sourceHeader"] for r in data["results"]] == ["Qty", "Desc"]
        assert data["statistics"]["averageConfidence"] == pytest.approx(91)

    def test_validation_error_is_400(self, test_client):
        """Test empty source headers give a 400."""
        response = test_client.post("/api/match", json=_payload(sourceHeaders=[]))

        assert response.status_code == 400
        assert "Source headers" in response.json()["detail"]

    def test_unsupported_model_is_400(self, test_client, mock_provider):
        """Test an unsupported model gives a 400 without calling the backend."""
        response = test_client.post(
            "/api/match", json=_payload(modelConfiguration={"modelId": "gpt-4"})
        )

        assert response.status_code == 400
        assert not mock_provider.prompts

    def test_unknown_provider_is_404(self, test_client):
        """Test an unregistered provider gives a 404."""
        response = test_client.post(
            "/api/match", json=_payload(providerConfiguration={"providerId": "gemini"})
        )

        assert response.status_code == 404

    def test_malformed_body_is_422(self, test_client):
        """Test a body missing required fields is rejected by FastAPI."""
        response = test_client.post("/api/match", json={"sourceHeaders": ["Qty"]})

        assert response.status_code == 422


class TestCreateApp:
    """Test the application factory."""

    def test_routes_are_mounted_under_api(self):
        """Test the router is included with the /api prefix."""
        from headermatch.api import create_app

        paths = create_app().openapi()["paths"]
        assert set(paths["/api/health"]) == {"get"}
        assert set(paths["/api/providers"]) == {"get"}
        assert set(paths["/api/match"]) == {"post"}
