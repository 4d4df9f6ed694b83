"""
Chat application configuration.

This app provides:
- Groups with an owner and admin/member roles
- Direct and group messages with soft deletion and receipts
- Mentions and the retention sweep
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        from chat import signals  # noqa: F401
