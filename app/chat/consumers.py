"""
WebSocket consumer for real-time chat events.

A single socket per client carries every event for the user: direct
messages, messages in each of their groups, receipts, notifications and
presence changes.

Consumers:
    ChatConsumer: One connection per client session

Authentication:
    Users are authenticated via JWT token passed as query parameter.
    The JWTAuthMiddleware attaches the user to self.scope["user"].

Channel Groups:
    user_<user_id>    - joined on connect
    group_<group_id>  - one per group the user belongs to, joined on connect
                        and on group.member_joined for the user

Message Types (from client):
    - typing: {"type": "typing", "group_id": ..., "is_typing": true}
              or {"type": "typing", "user_id": ..., "is_typing": true}
    - ping:   {"type": "ping"}

Message Types (to client):
    - {"event": "<name>", "data": {...}} for every published event
    - typing, pong, error

Presence:
    Connecting marks the user online and disconnecting marks them offline.
    Clients with several sockets keep themselves online via the heartbeat
    endpoint.
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from authentication.models import Profile
from authentication.services import PresenceService
from chat.models import Member
from core.realtime import group_channel_group, user_channel_group

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer relaying published events to a user's client.

    Attributes:
        user_group_name: The user's personal channel group
        group_names: Chat group channel groups currently joined
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_group_name: str | None = None
        self.group_names: set[str] = set()

    async def connect(self):
        user = self.scope.get("user")

        if not user or isinstance(user, AnonymousUser):
            logger.warning("Rejected unauthenticated WebSocket connection")
            await self.close(code=4001)
            return

        self.user_group_name = user_channel_group(user.id)
        await self.channel_layer.group_add(self.user_group_name, self.channel_name)

        for group_id in await self._get_group_ids(user):
            await self._join_group(group_id)

        await self.accept()
        await self._set_presence(user, Profile.Status.ONLINE)
        logger.info(f"User {user.id} connected ({len(self.group_names)} groups)")

    async def disconnect(self, close_code):
        if not self.user_group_name:
            return

        for name in list(self.group_names):
            await self.channel_layer.group_discard(name, self.channel_name)
        self.group_names.clear()

        await self.channel_layer.group_discard(self.user_group_name, self.channel_name)

        user = self.scope.get("user")
        if user and not isinstance(user, AnonymousUser):
            await self._set_presence(user, Profile.Status.OFFLINE)
            logger.info(f"User {user.id} disconnected (code {close_code})")

    async def receive_json(self, content):
        """
        Handle client frames.

        Expected message format:
            {"type": "typing", "group_id": "<uuid>", "is_typing": true}
            {"type": "typing", "user_id": 42, "is_typing": true}
            {"type": "ping"}
        """
        message_type = content.get("type")
        user = self.scope["user"]

        if message_type == "typing":
            await self._handle_typing(user, content)
        elif message_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_json(
                {
                    "type": "error",
                    "message": f"Unknown message type: {message_type}",
                }
            )

    async def _handle_typing(self, user, content):
        """
        Relay a typing indicator to a group (members only) or one user.
        """
        is_typing = bool(content.get("is_typing", False))
        group_id = content.get("group_id")
        target_user_id = content.get("user_id")

        event = {
            "type": "chat.typing",
            "user_id": user.id,
            "group_id": str(group_id) if group_id else None,
            "is_typing": is_typing,
        }

        if group_id:
            name = group_channel_group(group_id)
            if name not in self.group_names:
                await self.send_json(
                    {"type": "error", "message": "You are not a member of this group"}
                )
                return
            await self.channel_layer.group_send(name, event)
        elif target_user_id:
            await self.channel_layer.group_send(user_channel_group(target_user_id), event)
        else:
            await self.send_json(
                {"type": "error", "message": "typing requires group_id or user_id"}
            )

    async def chat_event(self, event):
        """
        Handle chat.event messages published by core.realtime.

        Membership changes for this user update the joined channel groups
        before the event is forwarded.
        """
        name = event["event"]
        data = event.get("data") or {}
        user = self.scope.get("user")

        if data.get("user_id") == user.id and data.get("group_id"):
            if name == "group.member_joined":
                await self._join_group(data["group_id"])
            elif name == "group.member_left":
                await self._leave_group(data["group_id"])

        if name == "group.deleted" and data.get("group_id"):
            await self._leave_group(data["group_id"])

        await self.send_json({"event": name, "data": data})

    async def chat_typing(self, event):
        """Forward typing indicators, except back to their author."""
        user = self.scope.get("user")
        if user and user.id == event["user_id"]:
            return

        await self.send_json(
            {
                "type": "typing",
                "user_id": event["user_id"],
                "group_id": event.get("group_id"),
                "is_typing": event["is_typing"],
            }
        )

    async def _join_group(self, group_id):
        name = group_channel_group(group_id)
        if name not in self.group_names:
            await self.channel_layer.group_add(name, self.channel_name)
            self.group_names.add(name)

    async def _leave_group(self, group_id):
        name = group_channel_group(group_id)
        if name in self.group_names:
            await self.channel_layer.group_discard(name, self.channel_name)
            self.group_names.discard(name)

    @database_sync_to_async
    def _get_group_ids(self, user) -> list:
        return [
            str(group_id)
            for group_id in Member.objects.filter(user=user).values_list("group_id", flat=True)
        ]

    @database_sync_to_async
    def _set_presence(self, user, status: str) -> None:
        result = PresenceService.set_status(user, status)
        if not result.success:
            logger.warning(f"Could not set presence for user {user.id}: {result.error}")
