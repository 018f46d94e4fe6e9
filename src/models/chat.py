"""Chat data models for Buddy conversations."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from utils.constants import DEFAULT_SERVICE, MAX_MESSAGE_LENGTH


class MessageRole(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ServiceTag(str, Enum):
    """Platform services that can front the chat API."""

    GENERAL = "general"
    DANDANI = "dandani"  # practice-based resilience training
    TIMEFOLD = "timefold"  # memories sealed in time
    TTEUT = "tteut"  # Korean word meanings


class EmotionTag(str, Enum):
    """Emotion labels produced by emotion analysis."""

    FRUSTRATED = "frustrated"
    SAD = "sad"
    ANGRY = "angry"
    ANXIOUS = "anxious"
    HAPPY = "happy"
    TIRED = "tired"
    NEUTRAL = "neutral"


class Message(BaseModel):
    """A single message in a conversation. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str

    def to_wire(self) -> dict[str, str]:
        """Return the {role, content} dict used by storage and both providers."""
        return {"role": self.role.value, "content": self.content}


class Practice(BaseModel):
    """Practice task embedded by the dandani service."""

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    description: str | None = None
    day: int | float | str | None = None
    category: str | None = None

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class ChatRequest(BaseModel):
    """Request body for sending a chat message.

    Field names are camelCase on the wire (``sessionId``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    session_id: str | None = Field(None, description="Conversation thread identifier")
    service: str = Field(DEFAULT_SERVICE, description="Service tag, see ServiceTag")
    emotion: str | None = Field(None, description="Caller-declared emotion tag")
    practice: Practice | None = None

    @field_validator("service", mode="before")
    @classmethod
    def _default_service(cls, value: Any) -> Any:
        return DEFAULT_SERVICE if value is None else value


class PromptContext(BaseModel):
    """Inputs to system prompt composition. Built fresh for every request."""

    model_config = ConfigDict(frozen=True)

    service: str = DEFAULT_SERVICE
    user_emotion: str | None = None
    practice: Practice | None = None
    # Reserved for personalization; nothing fills it yet
    user_profile: dict[str, Any] | None = None


class ChatResult(BaseModel):
    """Successful chat response payload, serialized camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., description="Generated assistant reply")
    emotion: str | None = Field(None, description="Declared or analyzed emotion")
    service: str
    session_id: str | None = None
    timestamp: str = Field(..., description="ISO timestamp of the response")
    mock_mode: bool = False
