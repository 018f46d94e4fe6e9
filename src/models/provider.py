"""LLM provider configuration models."""

from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from utils.constants import MOCK_API_KEY

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_CLAUDE_MODEL = "claude-3-sonnet-20240229"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0


class ProviderName(str, Enum):
    """Supported LLM backends."""

    OPENAI = "openai"
    CLAUDE = "claude"


class GenerationOptions(BaseModel):
    """Sampling options for a single completion call."""

    max_tokens: int = 1000
    temperature: float = 0.7
    model: str | None = None  # overrides the provider default
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0


class ProviderConfig(BaseModel):
    """Resolved credentials and provider choice for one request.

    Built from the environment by the API handler and passed down explicitly,
    so nothing below the handler reads environment variables.
    """

    openai_api_key: str | None = None
    claude_api_key: str | None = None
    openai_relay_url: str | None = Field(
        None, description="Relay that forwards OpenAI calls (apiUrl/apiKey in body)"
    )
    openai_model: str = DEFAULT_OPENAI_MODEL
    claude_model: str = DEFAULT_CLAUDE_MODEL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @field_validator("openai_api_key", "claude_api_key", "openai_relay_url")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        return value or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "ProviderConfig":
        """Build a config from environment-style variables."""
        return cls(
            openai_api_key=environ.get("OPENAI_API_KEY"),
            claude_api_key=environ.get("CLAUDE_API_KEY"),
            openai_relay_url=environ.get("OPENAI_RELAY_URL"),
            openai_model=environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            claude_model=environ.get("CLAUDE_MODEL") or DEFAULT_CLAUDE_MODEL,
            request_timeout=float(
                environ.get("LLM_REQUEST_TIMEOUT") or DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
        )

    @property
    def mock_mode(self) -> bool:
        """True when both keys are the testing sentinel."""
        return self.openai_api_key == MOCK_API_KEY and self.claude_api_key == MOCK_API_KEY

    @property
    def has_credentials(self) -> bool:
        """True in mock mode or when the selected provider has a real key."""
        if self.mock_mode or self.openai_usable:
            return True
        return bool(self.claude_api_key) and self.claude_api_key != MOCK_API_KEY

    @property
    def openai_usable(self) -> bool:
        """True when a real (non-sentinel) OpenAI key is configured."""
        return bool(self.openai_api_key) and self.openai_api_key != MOCK_API_KEY

    @property
    def provider(self) -> ProviderName:
        """OpenAI when its key is usable, otherwise Claude."""
        return ProviderName.OPENAI if self.openai_usable else ProviderName.CLAUDE
