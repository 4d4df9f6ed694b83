"""
Notification service layer.

Notifications are never requested directly by end users; the connection,
membership and messaging services create them. The recipient can read,
delete and clear them.

Services:
    NotificationService: creation, read state, deletion and the
        type-specific lookups used by the other apps

Usage:
    from notifications.services import NotificationService

    NotificationService.create_notification(
        recipient=receiver,
        notification_type=NotificationKind.CONNECTION_REQUEST,
        content=f"{requester.get_full_name()} wants to connect with you",
        data={"requester_id": requester.id},
        actor=requester,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.realtime import publish_to_user
from core.services import BaseService, ServiceResult
from notifications.models import Notification, NotificationKind

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """
    Service for notification operations.

    Methods:
        create_notification: Create a notification and push it to the recipient
        mark_as_read / mark_all_as_read: Read state
        delete_notification / clear_all: Removal by the owner
        connection_requests_from: Unread connection_request rows for a requester
        pending_group_invitations: Invitations awaiting acceptance for a group
        close_group_invitations: Mark invitations read once answered
    """

    @classmethod
    def create_notification(
        cls,
        recipient: User,
        notification_type: str,
        content: str,
        data: dict | None = None,
        actor: User | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a notification for ``recipient``.

        The ``notification.new`` event is published after commit.

        Error codes:
            INVALID_TYPE: notification_type is not a NotificationKind
        """
        if notification_type not in NotificationKind.values:
            return ServiceResult.failure(
                f"Unknown notification type '{notification_type}'",
                error_code="INVALID_TYPE",
            )

        notification = Notification.objects.create(
            recipient=recipient,
            actor=actor,
            notification_type=notification_type,
            content=content,
            data=data or {},
        )

        publish_to_user(
            recipient.pk,
            "notification.new",
            {
                "id": notification.id,
                "type": notification.notification_type,
                "content": notification.content,
                "data": notification.data,
            },
        )
        cls.get_logger().debug(
            f"Created {notification_type} notification {notification.id} for user {recipient.pk}"
        )
        return ServiceResult.success(notification)

    @classmethod
    def mark_as_read(cls, notification: Notification, user: User) -> ServiceResult[Notification]:
        """
        Mark a single notification as read.

        Idempotent. Only the recipient may mark it.

        Error codes:
            NOT_OWNER: User doesn't own the notification
        """
        if notification.recipient_id != user.id:
            cls.get_logger().warning(
                f"User {user.id} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.failure(
                "Cannot mark notification you don't own",
                error_code="NOT_OWNER",
            )

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """Mark every unread notification of ``user`` read; returns the count."""
        count = Notification.objects.filter(recipient=user, is_read=False).update(
            is_read=True
        )
        cls.get_logger().info(f"Marked {count} notifications as read for user {user.id}")
        return ServiceResult.success(count)

    @classmethod
    def delete_notification(cls, notification: Notification, user: User) -> ServiceResult[None]:
        if notification.recipient_id != user.id:
            return ServiceResult.failure(
                "Cannot delete notification you don't own",
                error_code="NOT_OWNER",
            )

        notification.delete()
        return ServiceResult.success(None)

    @classmethod
    def clear_all(cls, user: User) -> ServiceResult[int]:
        """Delete all of the user's notifications."""
        count, _ = Notification.objects.filter(recipient=user).delete()
        cls.get_logger().info(f"Cleared {count} notifications for user {user.id}")
        return ServiceResult.success(count)

    @staticmethod
    def unread_count(user: User) -> int:
        return Notification.objects.filter(recipient=user, is_read=False).count()

    # -------------------------------------------------------------------------
    # Type-specific lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def connection_requests_from(receiver_id, requester_id) -> QuerySet[Notification]:
        """Unread connection_request notifications ``requester`` sent ``receiver``."""
        return Notification.objects.filter(
            recipient_id=receiver_id,
            notification_type=NotificationKind.CONNECTION_REQUEST,
            is_read=False,
            data__requester_id=requester_id,
        )

    @staticmethod
    def pending_group_invitations(user: User, group_id) -> QuerySet[Notification]:
        """Unread invitations for ``group_id`` that still require an answer."""
        return Notification.objects.filter(
            recipient=user,
            notification_type=NotificationKind.GROUP_INVITE,
            is_read=False,
            data__group_id=str(group_id),
            data__requires_acceptance=True,
        )

    @classmethod
    def close_group_invitations(cls, user: User, group_id, rejected: bool = False) -> int:
        """
        Mark the user's pending invitations for a group read.

        When ``rejected`` the payload also records ``rejected: true``.
        Returns the number of invitations closed.
        """
        closed = 0
        for notification in cls.pending_group_invitations(user, group_id):
            notification.is_read = True
            if rejected:
                notification.data = {**notification.data, "rejected": True}
            notification.save(update_fields=["is_read", "data", "updated_at"])
            closed += 1
        return closed
