"""Tests for chat API endpoints.

Tests the FastAPI routes, the response envelope and the status codes the
chat pipeline maps its failures to.
"""

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from models.chat import ChatResult
from services.chat_service import SERVICE_UNAVAILABLE_MESSAGE, ChatServiceError
from services.llm_service import MOCK_RESPONSES
from utils.constants import MOCK_API_KEY, SERVICE_VERSION

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_env():
    """Mock-mode credentials with DynamoDB persistence disabled."""
    env = {
        "OPENAI_API_KEY": MOCK_API_KEY,
        "CLAUDE_API_KEY": MOCK_API_KEY,
        "CHAT_HISTORY_TABLE": "",
        "LLM_HISTORY_TABLE": "",
    }
    with patch.dict(os.environ, env):
        yield env


@pytest.fixture()
def client():
    """Create a FastAPI TestClient with services reset."""
    from handlers.api_handler import app, reset_services

    reset_services()
    yield TestClient(app)
    reset_services()


def _result(**overrides) -> ChatResult:
    values = {
        "message": "괜찮아요, 천천히 얘기해요.",
        "emotion": "sad",
        "service": "general",
        "session_id": "s1",
        "timestamp": "2026-01-20T10:00:00+00:00",
        "mock_mode": False,
    }
    values.update(overrides)
    return ChatResult(**values)


# ---------------------------------------------------------------------------
# POST /api/chat (mock mode, real pipeline)
# ---------------------------------------------------------------------------


class TestChatMockMode:
    """End-to-end through ChatService with mock credentials."""

    def test_hello(self, mock_env, client):
        resp = client.post("/api/chat", json={"message": "hello"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["service"] == "general"
        assert data["mockMode"] is True
        assert data["message"] in MOCK_RESPONSES
        assert data["sessionId"] is None
        assert data["emotion"] is None
        assert data["timestamp"]

    def test_empty_message(self, mock_env, client):
        resp = client.post("/api/chat", json={"message": ""})

        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": {"message": "Message field is required", "status": 400},
        }

    def test_malformed_json(self, mock_env, client):
        resp = client.post(
            "/api/chat",
            content=b'{"message": ',
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid request format."

    def test_dandani_route_sets_service(self, mock_env, client):
        resp = client.post("/api/chat/dandani", json={"message": "hi", "service": "tteut"})
        assert resp.status_code == 200
        assert resp.json()["data"]["service"] == "dandani"

    def test_no_credentials_is_500(self, client):
        env = {
            "OPENAI_API_KEY": "",
            "CLAUDE_API_KEY": "",
            "CHAT_HISTORY_TABLE": "",
            "LLM_HISTORY_TABLE": "",
        }
        with patch.dict(os.environ, env):
            resp = client.post("/api/chat", json={"message": "hi"})

        assert resp.status_code == 500
        assert resp.json()["error"] == {
            "message": "LLM API keys not configured",
            "status": 500,
        }


# ---------------------------------------------------------------------------
# POST /api/chat (service mocked)
# ---------------------------------------------------------------------------


@patch("handlers.api_handler.get_chat_service")
class TestChatRoutes:
    """Route wiring and error rendering with a mocked ChatService."""

    def test_success_envelope(self, mock_chat_svc, mock_env, client):
        svc = MagicMock()
        svc.chat.return_value = _result()
        mock_chat_svc.return_value = svc

        resp = client.post("/api/chat", json={"message": "힘들어", "sessionId": "s1"})

        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "data": {
                "message": "괜찮아요, 천천히 얘기해요.",
                "emotion": "sad",
                "service": "general",
                "sessionId": "s1",
                "timestamp": "2026-01-20T10:00:00+00:00",
                "mockMode": False,
            },
        }
        payload, config = svc.chat.call_args[0]
        assert payload == {"message": "힘들어", "sessionId": "s1"}
        assert config.mock_mode is True
        assert svc.chat.call_args[1] == {"service": None}

    @pytest.mark.parametrize(
        "path,service",
        [
            ("/api/chat/dandani", "dandani"),
            ("/api/chat/timefold", "timefold"),
            ("/api/chat/tteut", "tteut"),
        ],
    )
    def test_service_routes(self, mock_chat_svc, mock_env, client, path, service):
        svc = MagicMock()
        svc.chat.return_value = _result(service=service)
        mock_chat_svc.return_value = svc

        resp = client.post(path, json={"message": "hi"})

        assert resp.status_code == 200
        assert svc.chat.call_args[1] == {"service": service}

    def test_backend_failure_is_503(self, mock_chat_svc, mock_env, client):
        svc = MagicMock()
        svc.chat.side_effect = ChatServiceError(SERVICE_UNAVAILABLE_MESSAGE, 503)
        mock_chat_svc.return_value = svc

        resp = client.post("/api/chat", json={"message": "hi", "sessionId": "s1"})

        assert resp.status_code == 503
        assert resp.json() == {
            "success": False,
            "error": {"message": SERVICE_UNAVAILABLE_MESSAGE, "status": 503},
        }

    def test_unexpected_error_is_500(self, mock_chat_svc, mock_env, client):
        svc = MagicMock()
        svc.chat.side_effect = Exception("kaboom")
        mock_chat_svc.return_value = svc

        resp = client.post("/api/chat", json={"message": "hi"})

        assert resp.status_code == 500
        assert resp.json()["error"]["message"] == "Internal Server Error"


# ---------------------------------------------------------------------------
# Status endpoints and routing
# ---------------------------------------------------------------------------


class TestStatusEndpoints:
    def test_health(self, client):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "buddy"
        assert data["version"] == SERVICE_VERSION

    @pytest.mark.parametrize("path", ["/", "/index.html"])
    def test_landing_page(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "POST /api/chat" in resp.text

    def test_unknown_path(self, client):
        resp = client.get("/api/unknown")
        assert resp.status_code == 404
        assert resp.json() == {
            "success": False,
            "error": {"message": "Not Found", "status": 404},
        }

    def test_wrong_method(self, client):
        resp = client.get("/api/chat")
        assert resp.status_code == 405
        assert resp.json()["error"]["message"] == "Method Not Allowed"

    def test_cors_preflight(self, client):
        resp = client.options(
            "/api/chat",
            headers={
                "Origin": "https://buddy.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
