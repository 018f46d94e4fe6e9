"""Services for the Buddy chat backend."""

from .chat_service import ChatService, ChatServiceError
from .conversation_service import ConversationStore
from .interaction_log_service import InteractionLog
from .llm_service import ClaudeAdapter, LLMService, OpenAIAdapter

__all__ = [
    "ChatService",
    "ChatServiceError",
    "ConversationStore",
    "InteractionLog",
    "LLMService",
    "OpenAIAdapter",
    "ClaudeAdapter",
]
