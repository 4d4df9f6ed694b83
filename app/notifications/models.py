"""
Notification model.

Notifications are derived records: they are written as a side effect of
connection requests, group invitations, direct adds and mentions. The
recipient may mark them read, delete them or clear them all.

The ``data`` payload is type-specific:
    connection_request: {requester_id, requester_name, requester_email,
                         connection_id, status?}
    group_invite:       {group_id, group_name, added_by|invited_by,
                         auto_added|requires_acceptance, rejected?}
    mention:            {message_id, group_id, sender_id}

UUIDs inside ``data`` are stored as strings, user ids as integers.

Usage:
    from notifications.models import Notification, NotificationKind

    unread = Notification.objects.filter(recipient=user, is_read=False)
"""

from __future__ import annotations

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class NotificationKind(models.TextChoices):
    """Notification types."""

    CONNECTION_REQUEST = "connection_request", "Connection request"
    MESSAGE = "message", "Message"
    GENERAL = "general", "General"
    MENTION = "mention", "Mention"
    GROUP_INVITE = "group_invite", "Group invite"


class Notification(UUIDPrimaryKeyMixin, BaseModel):
    """
    Individual notification record for a user.

    Fields:
        recipient: User receiving the notification (scopes all queries)
        actor: Optional user who triggered the notification
        notification_type: One of NotificationKind
        content: Rendered human-readable text
        data: Type-specific JSON payload
        is_read: Whether recipient has read this notification

    Note:
        - recipient CASCADE: Notifications deleted when user deleted
        - actor SET_NULL: Notification preserved when actor deleted
        - connection_request rows are updated in place when answered
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="User receiving this notification",
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="triggered_notifications",
        help_text="User who triggered this notification (optional)",
    )

    notification_type = models.CharField(
        max_length=30,
        choices=NotificationKind.choices,
        default=NotificationKind.GENERAL,
        db_index=True,
        help_text="Kind of notification",
    )

    content = models.TextField(
        help_text="Rendered notification text",
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Type-specific payload (ids the client needs to act on it)",
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether recipient has read this notification",
    )

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_recipient_unread_idx",
            ),
            models.Index(
                fields=["recipient", "notification_type"],
                name="notif_recipient_type_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.notification_type} for {self.recipient_id}: {self.content[:40]}"
