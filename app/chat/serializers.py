"""
Serializers for chat API.

This module provides serializers for the chat system:
- Group serializers (list, detail, create, update)
- Member serializers (read, add, role change)
- Message serializers (direct and group, read and send)
- Mention serializer

Serializer Hierarchy:
    GroupListSerializer: Group with member count
    GroupDetailSerializer: Group info with owner name and caller's role
    GroupCreateSerializer / GroupUpdateSerializer: Input validation

    MemberSerializer: Membership with user summary
    MemberAddSerializer: Add/invite by email
    MemberRoleSerializer: Change role

    DirectMessageSerializer / GroupMessageSerializer: Messages
    MessageCreateSerializer / GroupMessageCreateSerializer: Send input

Design Decisions:
    - Read and write serializers are separate for clarity
    - Messages deleted for everyone are filtered out before serialization;
      the placeholder is only used in real-time deletion events
    - Authorization happens in the services, never here
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from chat.constants import GROUP_CONFIG, MENTION_CONFIG, MESSAGE_CONFIG
from chat.models import (
    DirectMessage,
    Group,
    GroupMessage,
    Member,
    MemberRole,
    Mention,
    MessageType,
)

# =============================================================================
# Group Serializers
# =============================================================================


class GroupListSerializer(serializers.ModelSerializer):
    """Group in the caller's group list."""

    member_count = serializers.IntegerField(read_only=True)
    owner_id = serializers.IntegerField(source="created_by_id", read_only=True)

    class Meta:
        model = Group
        fields = [
            "id",
            "name",
            "description",
            "avatar_url",
            "owner_id",
            "member_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class GroupDetailSerializer(GroupListSerializer):
    """
    Group info for a member.

    Expects the ``creator_name`` and ``my_role`` attributes set by
    GroupService.get_group_info; both fall back to None otherwise.
    """

    creator_name = serializers.SerializerMethodField()
    my_role = serializers.SerializerMethodField()

    class Meta(GroupListSerializer.Meta):
        fields = GroupListSerializer.Meta.fields + ["creator_name", "my_role"]
        read_only_fields = fields

    def get_creator_name(self, obj: Group) -> str | None:
        if hasattr(obj, "creator_name"):
            return obj.creator_name
        return obj.created_by.get_full_name() if obj.created_by else None

    def get_my_role(self, obj: Group) -> str | None:
        return getattr(obj, "my_role", None)


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH)
    description = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_DESCRIPTION_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    avatar_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )


class GroupUpdateSerializer(serializers.Serializer):
    """Partial group update; omitted fields are left unchanged."""

    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH, required=False)
    description = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_DESCRIPTION_LENGTH,
        required=False,
        allow_blank=True,
    )
    avatar_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )


class GroupNameAvailabilitySerializer(serializers.Serializer):
    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH)


class TransferOwnershipSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class LeaveGroupSerializer(serializers.Serializer):
    successor_id = serializers.IntegerField(required=False, allow_null=True)


# =============================================================================
# Member Serializers
# =============================================================================


class MemberSerializer(serializers.ModelSerializer):
    """Membership with user info."""

    user = UserSummarySerializer(read_only=True)
    is_owner = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = ["user", "role", "is_owner", "joined_at"]
        read_only_fields = fields

    def get_is_owner(self, obj: Member) -> bool:
        return obj.group.created_by_id == obj.user_id


class MemberAddSerializer(serializers.Serializer):
    email = serializers.EmailField()


class MemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=MemberRole.choices)


# =============================================================================
# Message Serializers
# =============================================================================


class MessageCreateSerializer(serializers.Serializer):
    """
    Send input shared by direct and group messages.

    Either text content or a file_url is required.
    """

    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
    )
    message_type = serializers.ChoiceField(
        choices=MessageType.choices, required=False, default=MessageType.TEXT
    )
    file_url = serializers.URLField(max_length=1000, required=False, allow_null=True)
    file_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    file_size = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    file_type = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("content", "").strip() and not attrs.get("file_url"):
            raise serializers.ValidationError(
                {"content": "Message content or a file is required."}
            )
        return attrs


class GroupMessageCreateSerializer(MessageCreateSerializer):
    """
    Group send input.

    ``mentioned_user_ids`` omitted means mentions are resolved from the
    content; an empty list means no mentions.
    """

    mentioned_user_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        allow_null=True,
        max_length=MENTION_CONFIG.MAX_MENTIONS_PER_MESSAGE,
    )


class DirectMessageSerializer(serializers.ModelSerializer):
    sender_id = serializers.IntegerField(read_only=True)
    receiver_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = DirectMessage
        fields = [
            "id",
            "sender_id",
            "receiver_id",
            "content",
            "message_type",
            "file_url",
            "file_name",
            "file_size",
            "file_type",
            "timestamp",
            "delivered_at",
            "read_at",
        ]
        read_only_fields = fields


class GroupMessageSerializer(serializers.ModelSerializer):
    """
    Group message.

    System messages have ``author_kind="system"``, ``sender=None`` and the
    structured event in ``system_event``.
    """

    sender = UserSummarySerializer(read_only=True, allow_null=True)
    mentioned_user_ids = serializers.SerializerMethodField()

    class Meta:
        model = GroupMessage
        fields = [
            "id",
            "group_id",
            "author_kind",
            "sender",
            "content",
            "message_type",
            "system_event",
            "file_url",
            "file_name",
            "file_size",
            "file_type",
            "mentioned_user_ids",
            "timestamp",
            "delivered_at",
            "read_at",
        ]
        read_only_fields = fields

    def get_mentioned_user_ids(self, obj: GroupMessage) -> list[int]:
        if hasattr(obj, "mentioned_user_ids"):
            return list(obj.mentioned_user_ids)
        return [mention.mentioned_user_id for mention in obj.mentions.all()]


class MessageDeleteResultSerializer(serializers.Serializer):
    deleted_for_everyone = serializers.BooleanField()


class ReceiptResultSerializer(serializers.Serializer):
    updated = serializers.IntegerField()


# =============================================================================
# Mention Serializers
# =============================================================================


class MentionSerializer(serializers.ModelSerializer):
    group_id = serializers.UUIDField(source="message.group_id", read_only=True)
    group_name = serializers.CharField(source="message.group.name", read_only=True)
    message_id = serializers.UUIDField(read_only=True)
    content = serializers.CharField(source="message.content", read_only=True)
    mentioned_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = Mention
        fields = [
            "id",
            "message_id",
            "group_id",
            "group_name",
            "content",
            "mentioned_by",
            "is_read",
            "created_at",
        ]
        read_only_fields = fields
