"""Data models for the Buddy chat backend."""

from .chat import (
    ChatRequest,
    ChatResult,
    EmotionTag,
    Message,
    MessageRole,
    Practice,
    PromptContext,
    ServiceTag,
)
from .interaction import InteractionRecord
from .provider import GenerationOptions, ProviderConfig, ProviderName

__all__ = [
    "ChatRequest",
    "ChatResult",
    "EmotionTag",
    "Message",
    "MessageRole",
    "Practice",
    "PromptContext",
    "ServiceTag",
    "InteractionRecord",
    "GenerationOptions",
    "ProviderConfig",
    "ProviderName",
]
