"""
Pagination classes for chat API.

This module provides cursor-based pagination for the chat system:
- MessageCursorPagination: Message history, newest first
- GroupCursorPagination: Group lists, most recently active first
- MentionCursorPagination: Mentions, newest first

Cursor-based pagination keeps pages stable while new messages arrive,
which offset pagination cannot do.
"""

from rest_framework.pagination import CursorPagination


class MessageCursorPagination(CursorPagination):
    """
    Cursor pagination for direct and group message history.

    Default: 50 messages per page
    Maximum: 100 messages per page

    Query parameters:
        cursor: Encoded cursor for position
        page_size: Number of messages (optional override)
    """

    page_size = 50
    max_page_size = 100
    page_size_query_param = "page_size"
    ordering = ("-timestamp", "-id")
    cursor_query_param = "cursor"


class GroupCursorPagination(CursorPagination):
    page_size = 20
    max_page_size = 50
    page_size_query_param = "page_size"
    ordering = ("-updated_at", "-id")
    cursor_query_param = "cursor"


class MentionCursorPagination(CursorPagination):
    page_size = 20
    max_page_size = 50
    page_size_query_param = "page_size"
    ordering = ("-created_at", "-id")
    cursor_query_param = "cursor"
