"""Shared constants for the Buddy chat backend."""

# Both provider keys set to this value switches the API into mock mode:
# canned replies, no network access.
MOCK_API_KEY = "MOCK_KEY_FOR_TESTING"

MAX_MESSAGE_LENGTH = 4000

# Only the most recent messages of a session are sent to the model.
HISTORY_WINDOW = 8

DEFAULT_SERVICE = "general"

# Session history expires this long after the last write (DynamoDB TTL)
HISTORY_TTL_DAYS = 30

SERVICE_NAME = "buddy"
SERVICE_VERSION = "1.0.0"
