"""Interaction records written to the LLM analytics log."""

import json
from datetime import UTC, datetime

from pydantic import BaseModel, Field
from ulid import ULID

from .chat import Practice


def _new_request_id() -> str:
    return f"req_{ULID()}"


def _serialize_practice(practice: Practice | None) -> str | None:
    if practice is None:
        return None
    return json.dumps(practice.model_dump(exclude_none=True), ensure_ascii=False)


class InteractionRecord(BaseModel):
    """One audit row per chat request, written on success and on failure."""

    id: str = Field(default_factory=_new_request_id)
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    system_prompt: str | None = None
    user_message: str | None = None
    response_content: str | None = None
    response_length: int = 0
    conversation_length: int = 0
    practice_info: str | None = Field(None, description="Practice as a JSON string")
    error_message: str | None = None

    @property
    def request_id(self) -> str:
        return self.id

    @classmethod
    def success(
        cls,
        system_prompt: str,
        user_message: str,
        response_content: str,
        conversation_length: int,
        practice: Practice | None = None,
    ) -> "InteractionRecord":
        """Build the record for a request that produced a reply."""
        return cls(
            system_prompt=system_prompt,
            user_message=user_message,
            response_content=response_content,
            response_length=len(response_content),
            conversation_length=conversation_length,
            practice_info=_serialize_practice(practice),
        )

    @classmethod
    def failure(
        cls,
        error_message: str,
        user_message: str | None = None,
        system_prompt: str | None = None,
        conversation_length: int = 0,
        practice: Practice | None = None,
    ) -> "InteractionRecord":
        """Build the record for a failed request from whatever was available."""
        return cls(
            system_prompt=system_prompt,
            user_message=user_message,
            response_content=None,
            response_length=0,
            conversation_length=conversation_length,
            practice_info=_serialize_practice(practice),
            error_message=error_message,
        )

    def to_item(self) -> dict:
        """Return the DynamoDB item, omitting unset attributes."""
        item = self.model_dump(exclude_none=True)
        item["request_id"] = self.id
        return item
