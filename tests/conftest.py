"""Pytest configuration and shared fixtures."""

import json
from unittest.mock import Mock

import pytest
import requests

from models.provider import ProviderConfig
from utils.constants import MOCK_API_KEY


class InMemoryTable:
    """Minimal stand-in for a DynamoDB table keyed by a single hash key."""

    def __init__(self, key_name: str):
        self.key_name = key_name
        self.items: dict[str, dict] = {}
        self.put_calls: list[dict] = []

    def get_item(self, Key):
        item = self.items.get(Key[self.key_name])
        return {"Item": dict(item)} if item else {}

    def put_item(self, Item):
        self.put_calls.append(Item)
        self.items[Item[self.key_name]] = dict(Item)
        return {}


@pytest.fixture
def history_table():
    """In-memory chat history table."""
    return InMemoryTable("history_key")


@pytest.fixture
def log_table():
    """In-memory LLM interaction log table."""
    return InMemoryTable("id")


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table for testing."""
    mock_table = Mock()
    mock_table.put_item.return_value = {}
    mock_table.get_item.return_value = {}
    return mock_table


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects with a JSON body."""

    def _make(status_code: int = 200, body=None, raw: bytes | None = None):
        response = requests.Response()
        response.status_code = status_code
        response.encoding = "utf-8"
        if raw is not None:
            response._content = raw
        else:
            response._content = json.dumps(body if body is not None else {}).encode(
                "utf-8"
            )
        response.headers["Content-Type"] = "application/json"
        return response

    return _make


@pytest.fixture
def openai_completion():
    """Factory for an OpenAI chat completion body."""

    def _make(content: str = "I'm here with you."):
        return {
            "id": "chatcmpl-123",
            "object": "chat.completion",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
        }

    return _make


@pytest.fixture
def claude_completion():
    """Factory for an Anthropic messages API body."""

    def _make(text: str = "I'm here with you."):
        return {
            "id": "msg_123",
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": text}],
            "stop_reason": "end_turn",
        }

    return _make


@pytest.fixture
def mock_session():
    """HTTP session double; tests set post.return_value / side_effect."""
    return Mock(spec=requests.Session)


@pytest.fixture
def openai_config():
    return ProviderConfig(openai_api_key="sk-test-openai")


@pytest.fixture
def claude_config():
    return ProviderConfig(claude_api_key="sk-ant-test")


@pytest.fixture
def mock_config():
    return ProviderConfig(openai_api_key=MOCK_API_KEY, claude_api_key=MOCK_API_KEY)
