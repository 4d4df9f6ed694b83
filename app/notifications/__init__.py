"""
Notifications app for in-app notifications.

This app provides:
- Notification model with a type-specific JSON payload
- NotificationService used by connections and chat to derive notifications
- REST API for listing, reading, deleting and clearing notifications

Usage:
    from notifications.services import NotificationService

    result = NotificationService.create_notification(
        recipient=user,
        notification_type=NotificationKind.MENTION,
        content="Ada mentioned you in Eng",
        data={"message_id": str(message.id), "group_id": str(group.id)},
        actor=sender,
    )
"""
