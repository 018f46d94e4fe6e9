"""Buddy chat orchestration: one user message in, one model reply out."""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import requests
from pydantic import ValidationError

from models.chat import ChatRequest, ChatResult, Message, MessageRole, PromptContext
from models.interaction import InteractionRecord
from models.provider import GenerationOptions, ProviderConfig
from services.conversation_service import ConversationStore
from services.interaction_log_service import InteractionLog
from services.llm_service import LLMService, LLMServiceError, mock_response
from services.prompt_service import compose_system_prompt, create_emotion_analysis_prompt
from utils.constants import HISTORY_WINDOW
from utils.validation import validate_chat_request

logger = logging.getLogger(__name__)

CHAT_OPTIONS = GenerationOptions(max_tokens=1000, temperature=0.7)
# Classification wants short, stable output
EMOTION_ANALYSIS_OPTIONS = GenerationOptions(max_tokens=200, temperature=0.3)

INVALID_REQUEST_MESSAGE = "Invalid request format."
SERVICE_UNAVAILABLE_MESSAGE = (
    "AI service is temporarily unavailable. Please try again shortly."
)
GENERIC_ERROR_MESSAGE = "An error occurred while processing your message."

_JSON_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class ChatRequestError(Exception):
    """The request payload failed validation."""

    pass


class ConfigurationError(Exception):
    """No usable LLM credentials are configured."""

    pass


class ChatServiceError(Exception):
    """A chat request failed; carries the HTTP status and public message."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_status(exc: Exception) -> tuple[int, str]:
    """Map a pipeline failure to (HTTP status, public message)."""
    if isinstance(exc, ChatRequestError):
        return 400, str(exc)
    if isinstance(exc, json.JSONDecodeError):
        return 400, INVALID_REQUEST_MESSAGE
    if isinstance(exc, ConfigurationError):
        return 500, str(exc)
    if isinstance(exc, LLMServiceError):
        return 503, SERVICE_UNAVAILABLE_MESSAGE
    return 500, GENERIC_ERROR_MESSAGE


def parse_emotion_analysis(raw: str) -> str | None:
    """Extract ``primaryEmotion`` from the model's JSON answer, or None."""
    text = raw.strip()
    fenced = _JSON_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning("Failed to parse emotion analysis: %s", e)
        return None

    if not isinstance(data, dict):
        logger.warning("Emotion analysis is not a JSON object: %s", data)
        return None

    emotion = data.get("primaryEmotion")
    if not isinstance(emotion, str) or not emotion:
        return None

    logger.info("Emotion analysis result: %s", data)
    return emotion


@dataclass
class _Turn:
    """What is known about a request so far, for the failure record."""

    request: ChatRequest
    history: list[Message] = field(default_factory=list)
    system_prompt: str | None = None


class ChatService:
    """Runs the chat pipeline for one request at a time.

    Validate, resolve the provider, load history, optionally analyze emotion,
    compose the prompt, call the backend, save history, log the interaction.
    Holds no per-request state, so one instance serves every request.
    """

    def __init__(
        self,
        conversation_store: ConversationStore,
        interaction_log: InteractionLog,
        session: requests.Session | None = None,
    ):
        """Initialize the chat service.

        Args:
            conversation_store: Session history gateway
            interaction_log: Analytics log for interaction records
            session: HTTP session shared by LLM calls
        """
        self.conversation_store = conversation_store
        self.interaction_log = interaction_log
        self.session = session

    def chat(
        self, payload: Any, config: ProviderConfig, service: str | None = None
    ) -> ChatResult:
        """Process a chat payload and return the reply.

        Args:
            payload: Decoded JSON request body
            config: Credentials and provider choice for this request
            service: Service tag forced by the route, overriding the body

        Returns:
            ChatResult with the reply, resolved emotion and request echo

        Raises:
            ChatServiceError: With the HTTP status and message to return
        """
        if service and isinstance(payload, dict):
            payload = {**payload, "service": service}

        try:
            request = self._validate(payload)
        except ChatRequestError as e:
            logger.info("Chat request rejected: %s", e)
            status_code, message = error_status(e)
            raise ChatServiceError(message, status_code) from e

        turn = _Turn(request=request)
        try:
            return self._process(turn, config)
        except Exception as e:
            logger.error("Chat processing failed: %s", e, exc_info=True)
            self.interaction_log.record(
                InteractionRecord.failure(
                    error_message=str(e),
                    user_message=request.message,
                    system_prompt=turn.system_prompt,
                    conversation_length=len(turn.history),
                    practice=request.practice,
                )
            )
            status_code, message = error_status(e)
            raise ChatServiceError(message, status_code) from e

    def analyze_emotion(self, llm: LLMService, message: str) -> str | None:
        """Ask the model for the message's primary emotion. Never raises."""
        try:
            raw = llm.generate(
                message,
                [],
                create_emotion_analysis_prompt(message),
                EMOTION_ANALYSIS_OPTIONS,
            )
        except Exception as e:
            logger.warning("Emotion analysis failed: %s", e)
            return None
        return parse_emotion_analysis(raw)

    # ---- Private methods ----

    def _validate(self, payload: Any) -> ChatRequest:
        error = validate_chat_request(payload)
        if error:
            raise ChatRequestError(error)
        try:
            return ChatRequest.model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ChatRequestError(f"Invalid field {location}: {first['msg']}") from e

    def _process(self, turn: _Turn, config: ProviderConfig) -> ChatResult:
        request = turn.request
        mock_mode = config.mock_mode

        if not mock_mode and not config.has_credentials:
            logger.error("No LLM API keys configured")
            raise ConfigurationError("LLM API keys not configured")

        llm = None if mock_mode else LLMService.from_config(config, session=self.session)
        logger.info(
            "Chat request: provider=%s mock_mode=%s service=%s session=%s",
            config.provider.value,
            mock_mode,
            request.service,
            request.session_id,
        )

        turn.history = self.conversation_store.load(request.session_id)

        emotion = request.emotion or None
        if emotion is None and llm is not None and config.openai_usable:
            emotion = self.analyze_emotion(llm, request.message)

        context = PromptContext(
            service=request.service,
            user_emotion=emotion,
            practice=request.practice,
        )
        turn.system_prompt = compose_system_prompt(context)

        recent_history = turn.history[-HISTORY_WINDOW:]
        if llm is None:
            reply = mock_response()
        else:
            reply = llm.generate(
                request.message, recent_history, turn.system_prompt, CHAT_OPTIONS
            )
        logger.info("LLM response received (%d chars)", len(reply))

        updated_history = [
            *turn.history,
            Message(role=MessageRole.USER, content=request.message),
            Message(role=MessageRole.ASSISTANT, content=reply),
        ]
        self.conversation_store.save(request.session_id, updated_history)

        self.interaction_log.record(
            InteractionRecord.success(
                system_prompt=turn.system_prompt,
                user_message=request.message,
                response_content=reply,
                conversation_length=len(turn.history),
                practice=request.practice,
            )
        )

        return ChatResult(
            message=reply,
            emotion=emotion,
            service=request.service,
            session_id=request.session_id,
            timestamp=datetime.now(UTC).isoformat(),
            mock_mode=mock_mode,
        )
