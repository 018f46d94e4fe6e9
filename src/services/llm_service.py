"""LLM backend access for OpenAI-style and Claude-style chat completion APIs.

Each backend is a ``ProviderAdapter`` that only knows its wire format:
``build_request`` turns a chat turn into an HTTP request and ``parse_response``
pulls the reply text out of the decoded body. ``LLMService`` owns the single
HTTP call and maps transport and status failures onto ``LLMServiceError``.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests

from models.chat import Message, MessageRole
from models.provider import (
    DEFAULT_CLAUDE_MODEL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    GenerationOptions,
    ProviderConfig,
    ProviderName,
)

logger = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
CLAUDE_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

MOCK_RESPONSES = (
    """안녕하세요! 👋 벗입니다.
Mock 모드로 실행되고 있습니다.

**감정 회복을 위한 조언:**

지금 이렇게 말로 풀어내는 것만으로도 큰 진전이에요.
때로는 모든 것이 무겁게 느껴질 수 있지만,
그 무거움을 인정하고 받아들이는 것이 첫 번째 단계입니다.

오늘 하루도 수고했어요. 🌟""",
    """좋은 질문이네요! 🤔

**감정 회복의 핵심:**

1. **인정하기**: 지금의 감정을 있는 그대로 받아들이기
2. **이해하기**: 이 감정이 왜 생겼는지 탐구하기
3. **실천하기**: 작은 행동으로 변화 시작하기

어떤 부분에서 도움이 필요하신가요?
더 구체적으로 말씀해주시면 맞춤형 조언을 드릴게요! 💡""",
)


def mock_response() -> str:
    """Return one of the canned development replies at random."""
    return random.choice(MOCK_RESPONSES)


class LLMServiceError(Exception):
    """A model backend call failed."""

    pass


class BackendHttpError(LLMServiceError):
    """The provider answered with a non-2xx status."""

    def __init__(self, status: int, provider_message: str | None = None):
        self.status = status
        self.provider_message = provider_message or "API request failed"
        super().__init__(f"HTTP {status}: {self.provider_message}")


class MalformedResponseError(LLMServiceError):
    """The provider answered 2xx but the body had no usable reply."""

    pass


class BackendConnectionError(LLMServiceError):
    """The request never got an HTTP response (DNS, refused, timeout)."""

    pass


@dataclass
class ProviderRequest:
    """A fully built outbound request."""

    url: str
    payload: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


class ProviderAdapter(ABC):
    """Wire format of one chat completion backend."""

    name: ProviderName

    @abstractmethod
    def build_request(
        self,
        user_message: str,
        history: list[Message],
        system_prompt: str,
        options: GenerationOptions,
    ) -> ProviderRequest:
        """Build the outbound request for one chat turn."""

    @abstractmethod
    def parse_response(self, data: Any) -> str:
        """Extract the trimmed reply text from a decoded response body.

        Raises:
            MalformedResponseError: If the body carries no reply text
        """


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat completions: one flat message list, system message first.

    With a ``relay_url`` the request goes to the relay instead, carrying the
    real endpoint and key in the body (``apiUrl``/``apiKey``).
    """

    name = ProviderName.OPENAI

    def __init__(
        self,
        api_key: str,
        default_model: str = DEFAULT_OPENAI_MODEL,
        relay_url: str | None = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.relay_url = relay_url

    def build_request(
        self,
        user_message: str,
        history: list[Message],
        system_prompt: str,
        options: GenerationOptions,
    ) -> ProviderRequest:
        messages = []
        if system_prompt:
            messages.append({"role": MessageRole.SYSTEM.value, "content": system_prompt})
        messages.extend(message.to_wire() for message in history)
        messages.append({"role": MessageRole.USER.value, "content": user_message})

        payload: dict[str, Any] = {
            "model": options.model or self.default_model,
            "messages": messages,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }

        if self.relay_url:
            payload = {"apiUrl": OPENAI_API_URL, "apiKey": self.api_key, **payload}
            return ProviderRequest(
                url=self.relay_url,
                payload=payload,
                headers={"Content-Type": "application/json"},
            )

        return ProviderRequest(
            url=OPENAI_API_URL,
            payload=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
        )

    def parse_response(self, data: Any) -> str:
        if not isinstance(data, dict):
            raise MalformedResponseError("OpenAI response is not a JSON object")

        error = data.get("error")
        if error:
            detail = error
            if isinstance(error, dict):
                detail = error.get("message") or error.get("type")
            raise MalformedResponseError(f"OpenAI API error: {detail or 'Unknown error'}")

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            logger.error("OpenAI response without choices: %s", data)
            raise MalformedResponseError("No response choices available")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not content or not isinstance(content, str):
            logger.error("Invalid OpenAI choice format: %s", choices[0])
            raise MalformedResponseError("Invalid response format")

        return content.strip()


class ClaudeAdapter(ProviderAdapter):
    """Anthropic messages API: history plus user turn, system as its own field."""

    name = ProviderName.CLAUDE

    def __init__(self, api_key: str, default_model: str = DEFAULT_CLAUDE_MODEL):
        self.api_key = api_key
        self.default_model = default_model

    def build_request(
        self,
        user_message: str,
        history: list[Message],
        system_prompt: str,
        options: GenerationOptions,
    ) -> ProviderRequest:
        messages = [message.to_wire() for message in history]
        messages.append({"role": MessageRole.USER.value, "content": user_message})

        return ProviderRequest(
            url=CLAUDE_API_URL,
            payload={
                "model": options.model or self.default_model,
                "system": system_prompt or "",
                "messages": messages,
                "max_tokens": options.max_tokens,
                "temperature": options.temperature,
                "top_p": options.top_p,
            },
            headers={
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
        )

    def parse_response(self, data: Any) -> str:
        if not isinstance(data, dict):
            raise MalformedResponseError("Claude response is not a JSON object")

        content = data.get("content")
        if not isinstance(content, list) or not content:
            raise MalformedResponseError("No response content available")

        text = content[0].get("text") if isinstance(content[0], dict) else None
        if not text or not isinstance(text, str):
            raise MalformedResponseError("Invalid response format")

        return text.strip()


def _extract_error_message(response: requests.Response) -> str | None:
    """Pull the provider's own error message out of an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, str):
        return error
    return None


class LLMService:
    """Sends chat turns to one backend through its adapter."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ):
        """Initialize the LLM service.

        Args:
            adapter: Wire format of the selected backend
            session: HTTP session, a fresh one if omitted
            timeout: Transport timeout in seconds for each call
        """
        self.adapter = adapter
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_config(
        cls, config: ProviderConfig, session: requests.Session | None = None
    ) -> "LLMService":
        """Create a service for the provider ``config`` selects."""
        adapter: ProviderAdapter
        if config.provider == ProviderName.OPENAI:
            adapter = OpenAIAdapter(
                api_key=config.openai_api_key,
                default_model=config.openai_model,
                relay_url=config.openai_relay_url,
            )
        else:
            adapter = ClaudeAdapter(
                api_key=config.claude_api_key,
                default_model=config.claude_model,
            )
        return cls(adapter, session=session, timeout=config.request_timeout)

    @property
    def provider(self) -> ProviderName:
        return self.adapter.name

    def generate(
        self,
        user_message: str,
        history: list[Message] | None = None,
        system_prompt: str = "",
        options: GenerationOptions | None = None,
    ) -> str:
        """Generate a reply with a single backend call. Never retries.

        Args:
            user_message: The user's message text
            history: Prior messages, already cut to the window the caller wants sent
            system_prompt: System instruction for this call
            options: Sampling options, defaults if omitted

        Returns:
            The reply text, stripped of surrounding whitespace

        Raises:
            ValueError: If user_message is not a non-blank string
            BackendConnectionError: If no HTTP response was received
            BackendHttpError: If the provider returned a non-2xx status
            MalformedResponseError: If the body had no usable reply
        """
        if not isinstance(user_message, str) or not user_message.strip():
            raise ValueError("User message is required and must be a string")

        request = self.adapter.build_request(
            user_message, history or [], system_prompt, options or GenerationOptions()
        )
        provider = self.provider.value

        try:
            response = self.session.post(
                request.url,
                json=request.payload,
                headers=request.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("%s API request failed: %s", provider, e)
            raise BackendConnectionError(f"{provider} API request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            error = BackendHttpError(response.status_code, _extract_error_message(response))
            logger.error("%s API error: %s", provider, error)
            raise error

        try:
            data = response.json()
        except ValueError as e:
            logger.error("%s API returned a non-JSON body", provider)
            raise MalformedResponseError(f"{provider} API returned invalid JSON") from e

        return self.adapter.parse_response(data)
