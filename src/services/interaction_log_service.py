"""Append-only analytics log of LLM interactions."""

import logging

from models.interaction import InteractionRecord

logger = logging.getLogger(__name__)


class InteractionLog:
    """Writes one InteractionRecord per chat request to DynamoDB."""

    def __init__(self, table=None):
        """Initialize the interaction log.

        Args:
            table: DynamoDB table for LLM history, or None to disable logging
        """
        self.table = table

    def record(self, record: InteractionRecord) -> bool:
        """Append a record. Failures are logged, never raised.

        Returns:
            True if the record was written
        """
        if self.table is None:
            return False

        try:
            self.table.put_item(Item=record.to_item())
        except Exception as e:
            logger.warning("Failed to save interaction record %s: %s", record.id, e)
            return False

        logger.info(
            "Saved interaction record %s (error=%s)", record.id, bool(record.error_message)
        )
        return True
