"""Validation of raw chat request payloads.

Runs before anything touches storage or a model backend, so it works on the
decoded JSON body rather than on a parsed pydantic model: the API reports the
first broken rule as a plain message instead of a 422 error list.
"""

from typing import Any

from .constants import MAX_MESSAGE_LENGTH

# Optional fields that must be strings when present
_OPTIONAL_STRING_FIELDS = (
    ("sessionId", "SessionId must be a string"),
    ("service", "Service must be a string"),
    ("emotion", "Emotion must be a string"),
)


def validate_chat_request(payload: Any) -> str | None:
    """Check a chat payload and return the first violated rule.

    Args:
        payload: Decoded JSON request body

    Returns:
        Error message for the first failing check, or None if the payload is valid
    """
    if payload is None:
        return "Request body is required"

    if not isinstance(payload, dict):
        return "Request body must be a JSON object"

    message = payload.get("message")
    if not message:
        return "Message field is required"

    if not isinstance(message, str):
        return "Message must be a string"

    if not message.strip():
        return "Message cannot be empty"

    if len(message) > MAX_MESSAGE_LENGTH:
        return f"Message is too long (maximum {MAX_MESSAGE_LENGTH} characters)"

    for field, error in _OPTIONAL_STRING_FIELDS:
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            return error

    practice = payload.get("practice")
    if practice is not None and not isinstance(practice, dict):
        return "Practice must be an object"

    return None
