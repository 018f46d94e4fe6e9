"""Utility functions and constants for the Buddy chat backend."""

from .validation import validate_chat_request

__all__ = [
    "validate_chat_request",
]
