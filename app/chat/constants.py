"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message content limits
- Channel layer group naming and event types
- WebSocket close codes

Import example:
    from chat.constants import MESSAGE_CONFIG, CHANNEL_EVENTS, user_group_name
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Overridable with the CHAT_MESSAGE_MAX_LENGTH setting
    DEFAULT_MAX_CONTENT_LENGTH: Final[int] = 4000

    @classmethod
    def max_content_length(cls) -> int:
        return getattr(settings, "CHAT_MESSAGE_MAX_LENGTH", cls.DEFAULT_MAX_CONTENT_LENGTH)


# =============================================================================
# Channel Layer Configuration
# =============================================================================


class CHANNEL_EVENTS:
    """Event types sent through the channel layer (dots map to handler underscores)."""

    CONVERSATION_CHANGED: Final[str] = "conversation.changed"
    MESSAGE_CREATED: Final[str] = "message.created"


def user_group_name(user_id) -> str:
    """Group receiving conversation-list changes for one user."""
    return f"chat_user_{user_id}"


def conversation_group_name(conversation_key: str) -> str:
    """Group receiving new messages of one conversation."""
    return f"chat_conversation_{conversation_key}"


# =============================================================================
# WebSocket Close Codes
# =============================================================================


class CLOSE_CODES:
    """Application close codes (4000-4999 range)."""

    UNAUTHENTICATED: Final[int] = 4001
    NOT_PARTICIPANT: Final[int] = 4003
    INVALID_CONVERSATION: Final[int] = 4004
