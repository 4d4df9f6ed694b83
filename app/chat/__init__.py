"""
Chat app for groups and messaging.

This app handles:
- Groups, memberships, invitations and ownership handover
- Direct (1:1) and group messages
- @mentions inside group messages
- WebSocket real-time updates and typing indicators
- Purging fully deleted messages

Related apps:
    - authentication: User model, profiles and presence
    - connections: Contact graph deciding direct adds vs. invitations
    - notifications: Invitations and mention notifications

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import GroupService, GroupMessageService

    group = GroupService.create_group(name="Eng", creator=user).data

    GroupMessageService.send_group_message_with_mentions(
        group_id=group.id,
        user=user,
        content="Hello!",
    )
"""
