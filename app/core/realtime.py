"""
Publishing helpers for real-time fan-out over the Channels layer.

Services call these after a mutation; delivery is deferred with
``transaction.on_commit`` so subscribers never observe uncommitted state.
If no transaction is active the event is sent immediately.

Channel group naming:
    user_<user_id>     - every socket of one user
    group_<group_id>   - every member socket of one chat group

The consumer (chat.consumers.ChatConsumer) relays each event to the client
as ``{"event": <name>, "data": <payload>}``.

Usage:
    from core.realtime import publish_to_user, publish_to_group

    publish_to_group(group.id, "message.new", {"message_id": message.id})
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

logger = logging.getLogger(__name__)

# Handler name on the consumer ("chat.event" -> ChatConsumer.chat_event)
EVENT_MESSAGE_TYPE = "chat.event"


def user_channel_group(user_id) -> str:
    return f"user_{user_id}"


def group_channel_group(group_id) -> str:
    return f"group_{group_id}"


def _send(channel_group: str, event: str, payload: dict[str, Any]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    # UUIDs and datetimes must be plain JSON types for the redis layer
    data = json.loads(json.dumps(payload, cls=DjangoJSONEncoder))
    try:
        async_to_sync(channel_layer.group_send)(
            channel_group,
            {"type": EVENT_MESSAGE_TYPE, "event": event, "data": data},
        )
    except Exception:
        # The mutation is already committed; a lost event is recovered by
        # the client's next fetch.
        logger.exception(f"Failed to publish {event} to {channel_group}")


def publish(channel_group: str, event: str, payload: dict[str, Any]) -> None:
    """Send ``event`` to ``channel_group`` once the current transaction commits."""
    transaction.on_commit(lambda: _send(channel_group, event, payload))


def publish_to_user(user_id, event: str, payload: dict[str, Any]) -> None:
    publish(user_channel_group(user_id), event, payload)


def publish_to_users(user_ids: Iterable, event: str, payload: dict[str, Any]) -> None:
    for user_id in set(user_ids):
        publish_to_user(user_id, event, payload)


def publish_to_group(group_id, event: str, payload: dict[str, Any]) -> None:
    publish(group_channel_group(group_id), event, payload)
