"""Tests for the FastAPI application."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from audioos import main
from audioos.handlers.error_handler import UpstreamConnectionError


@pytest.fixture
def test_client():
    """Create a TestClient instance for testing FastAPI endpoints."""
    return TestClient(main.app)


def test_root_reports_status(test_client):
    response = test_client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "running"
    assert body["websocket_path"] == main.WS_PATH
    assert isinstance(body["api_key_configured"], bool)


def test_unknown_path(test_client):
    assert test_client.get("/does-not-exist").status_code == 404


def test_cors_preflight(test_client):
    response = test_client.options(
        "/",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


def test_relay_reports_upstream_failure(test_client):
    connector = MagicMock()
    connector.connect = AsyncMock(side_effect=UpstreamConnectionError("OpenAI API key is required"))

    with patch.object(main, "UpstreamConnector", return_value=connector):
        with test_client.websocket_connect(main.WS_PATH) as websocket:
            assert websocket.receive_json() == {
                "type": "error",
                "message": "Failed to connect to AI system: OpenAI API key is required",
            }
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_text()

    assert exc_info.value.code == 1011
