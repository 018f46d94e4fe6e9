"""Session conversation history stored in DynamoDB."""

import json
import logging
from datetime import UTC, datetime, timedelta

from models.chat import Message
from utils.constants import HISTORY_TTL_DAYS

logger = logging.getLogger(__name__)


class ConversationStore:
    """Best-effort load/save of a session's message history.

    One item per session under ``history_key = "chat:<session_id>"``, holding
    the whole history as a JSON array. Failures never reach the caller: a bad
    read yields an empty history and a failed write is logged.
    """

    def __init__(self, table=None):
        """Initialize the conversation store.

        Args:
            table: DynamoDB table for chat history, or None to disable history
        """
        self.table = table

    @staticmethod
    def history_key(session_id: str) -> str:
        return f"chat:{session_id}"

    def load(self, session_id: str | None) -> list[Message]:
        """Load the full stored history for a session, oldest first."""
        if not session_id or self.table is None:
            return []

        try:
            response = self.table.get_item(Key={"history_key": self.history_key(session_id)})
            item = response.get("Item")
            if not item:
                return []

            raw_messages = json.loads(item.get("messages") or "[]")
            messages = [Message.model_validate(entry) for entry in raw_messages]
        except Exception as e:
            logger.warning(
                "Failed to load conversation history for session %s: %s", session_id, e
            )
            return []

        logger.info(
            "Loaded conversation history for session %s (%d messages)",
            session_id,
            len(messages),
        )
        return messages

    def save(self, session_id: str | None, messages: list[Message]) -> bool:
        """Replace the stored history for a session.

        Returns:
            True if the history was written, False if skipped or failed
        """
        if not session_id or self.table is None:
            return False

        now = datetime.now(UTC)
        expires_at = int((now + timedelta(days=HISTORY_TTL_DAYS)).timestamp())

        item = {
            "history_key": self.history_key(session_id),
            "session_id": session_id,
            "messages": json.dumps(
                [message.to_wire() for message in messages], ensure_ascii=False
            ),
            "message_count": len(messages),
            "updated_at": now.isoformat(),
            "expires_at": expires_at,
        }

        try:
            self.table.put_item(Item=item)
        except Exception as e:
            logger.warning(
                "Failed to save conversation history for session %s: %s", session_id, e
            )
            return False

        logger.info(
            "Saved conversation history for session %s (%d messages)",
            session_id,
            len(messages),
        )
        return True
