"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, delete-for-everyone window, retention)
- Group limits
- Mention parsing

Time windows can be overridden via Django settings:
    CHAT_DELETE_FOR_EVERYONE_WINDOW_SECONDS
    CHAT_RETENTION_SECONDS

Import example:
    from chat.constants import MESSAGE_CONFIG, delete_for_everyone_window
"""

from datetime import timedelta
from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters

    # Sender may retract a message for everyone within this window; later
    # requests fall back to deleting for the sender only.
    DELETE_FOR_EVERYONE_WINDOW_SECONDS: Final[int] = 120

    # Fully deleted messages older than this are purged by the sweep
    RETENTION_SECONDS: Final[int] = 3600

    # Rendered in place of content for retracted messages
    DELETED_PLACEHOLDER: Final[str] = "This message was deleted"


# =============================================================================
# Group Configuration
# =============================================================================


class GROUP_CONFIG:
    """Configuration for groups."""

    MAX_NAME_LENGTH: Final[int] = 100
    MAX_DESCRIPTION_LENGTH: Final[int] = 500

    # Used in system messages when the member has no display name
    UNKNOWN_MEMBER_NAME: Final[str] = "Someone"


# =============================================================================
# Mention Configuration
# =============================================================================


class MENTION_CONFIG:
    """Configuration for @mention parsing."""

    # Token after '@': letters, digits, dot, underscore, hyphen
    PATTERN: Final[str] = r"@([a-zA-Z0-9._-]+)"

    MAX_MENTIONS_PER_MESSAGE: Final[int] = 50


def delete_for_everyone_window() -> timedelta:
    return timedelta(
        seconds=getattr(
            settings,
            "CHAT_DELETE_FOR_EVERYONE_WINDOW_SECONDS",
            MESSAGE_CONFIG.DELETE_FOR_EVERYONE_WINDOW_SECONDS,
        )
    )


def retention_period() -> timedelta:
    return timedelta(
        seconds=getattr(settings, "CHAT_RETENTION_SECONDS", MESSAGE_CONFIG.RETENTION_SECONDS)
    )
