"""
Chat system models.

This module defines the data models for the chat system supporting:
- Groups with admin/member roles and an owner (``created_by``)
- Direct (1:1) messages with per-party soft delete
- Group messages with per-viewer soft delete, system messages and mentions

Models:
    Group: A named chat group, name unique case-insensitively
    Member: A user's participation in a group, with a role
    DirectMessage: Message between two users
    GroupMessage: Message in a group (user- or system-authored)
    GroupMessageDeletion: One row per member who hid a group message
    Mention: A group message naming a specific member

Design Decisions:
    - Group owner is ``Group.created_by``; the owner always holds the admin role
    - System messages carry ``author_kind=system`` and no sender
    - Deletion is soft until the retention sweep purges fully deleted rows
    - Delivery/read are single timestamps set once
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Lower
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class MemberRole(models.TextChoices):
    """
    Role within a group.

    ADMIN: Can add members and remove plain members
    MEMBER: Can send messages, add users, rename the group, leave

    Role changes are reserved for the group owner (Group.created_by).
    """

    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"


class MessageType(models.TextChoices):
    """Kind of message content."""

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    FILE = "file", "File"


class AuthorKind(models.TextChoices):
    """
    Who authored a group message.

    USER: A member; ``sender`` is set
    SYSTEM: Generated by a membership or group change; ``sender`` is NULL
    """

    USER = "user", "User"
    SYSTEM = "system", "System"


class SystemMessageEvent:
    """
    System message event types.

    System messages store the rendered text in ``content`` and the structured
    event in ``system_event``: {"event": "<event_type>", "data": {...}}

    Events:
        MEMBER_ADDED: data {"user_id", "added_by_id"}
        MEMBER_JOINED: data {"user_id"} (invitation accepted)
        MEMBER_LEFT: data {"user_id"}
        MEMBER_REMOVED: data {"user_id", "removed_by_id"}
        ROLE_CHANGED: data {"user_id", "old_role", "new_role", "changed_by_id"}
        OWNERSHIP_TRANSFERRED: data {"from_user_id", "to_user_id", "reason"}
        GROUP_RENAMED: data {"old_name", "new_name", "changed_by_id"}
    """

    MEMBER_ADDED = "member_added"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    MEMBER_REMOVED = "member_removed"
    ROLE_CHANGED = "role_changed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    GROUP_RENAMED = "group_renamed"


class Group(UUIDPrimaryKeyMixin, BaseModel):
    """
    A chat group.

    Fields:
        name: Display name, unique case-insensitively across all groups
        description: Optional free text
        avatar_url: Optional avatar image location
        created_by: The owner. Reassigned on ownership transfer or when the
            owner leaves. NULL only transiently while an account is removed.

    Note:
        A group with at least one member always has at least one admin and
        ``created_by`` refers to a current member. The group is deleted when
        its last member leaves.
    """

    name = models.CharField(
        max_length=100,
        help_text="Group name (unique, case-insensitive)",
    )

    description = models.TextField(
        blank=True,
        default="",
        help_text="Group description",
    )

    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        null=True,
        help_text="Location of the group avatar image",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_groups",
        help_text="Group owner",
    )

    class Meta:
        db_table = "chat_group"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                Lower("name"),
                name="unique_group_name_case_insensitive",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def is_owner(self, user: User) -> bool:
        return user is not None and self.created_by_id == user.pk


class Member(BaseModel):
    """
    A user's membership in a group.

    Fields:
        group: The group
        user: The member
        role: admin or member
        joined_at: When the user joined

    Constraints:
        - UniqueConstraint(group, user): one membership per user per group
    """

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="members",
        help_text="Group this membership belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="group_memberships",
        help_text="Member user",
    )

    role = models.CharField(
        max_length=10,
        choices=MemberRole.choices,
        default=MemberRole.MEMBER,
        help_text="Member role",
    )

    joined_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the user joined the group",
    )

    class Meta:
        db_table = "chat_member"
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["group", "user"],
                name="unique_group_member",
            ),
        ]
        indexes = [
            models.Index(
                fields=["group", "role"],
                name="chat_member_group_role_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} in {self.group_id} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN


class MessageAttachmentFields(models.Model):
    """File metadata shared by direct and group messages. Storage is external."""

    file_url = models.URLField(
        max_length=1000,
        blank=True,
        null=True,
        help_text="Location of the attached file",
    )
    file_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Original file name",
    )
    file_size = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="File size in bytes",
    )
    file_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="MIME type of the file",
    )

    class Meta:
        abstract = True


class DirectMessageQuerySet(models.QuerySet):
    def between(self, user_a_id, user_b_id):
        return self.filter(
            Q(sender_id=user_a_id, receiver_id=user_b_id)
            | Q(sender_id=user_b_id, receiver_id=user_a_id)
        )

    def visible_to(self, user):
        """Not deleted for everyone and not hidden by ``user`` themself."""
        return self.filter(deleted_for_everyone=False).filter(
            Q(sender=user, deleted_for_sender=False)
            | Q(receiver=user, deleted_for_receiver=False)
        )


class DirectMessage(UUIDPrimaryKeyMixin, MessageAttachmentFields, BaseModel):
    """
    A message between two users.

    Visibility to a party P holds iff ``deleted_for_everyone`` is False and
    P's own flag is False. The three flags are independent.

    Fields:
        sender / receiver: The two parties
        content: Message text
        message_type: text, image or file
        timestamp: When the message was sent
        deleted_for_sender / deleted_for_receiver / deleted_for_everyone
        delivered_at / read_at: Set once by the receiver's acknowledgements
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_direct_messages",
        help_text="User who sent the message",
    )

    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_direct_messages",
        help_text="User the message was sent to",
    )

    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of message content",
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the message was sent",
    )

    deleted_for_sender = models.BooleanField(
        default=False,
        help_text="Hidden from the sender",
    )
    deleted_for_receiver = models.BooleanField(
        default=False,
        help_text="Hidden from the receiver",
    )
    deleted_for_everyone = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Retracted by the sender for both parties",
    )

    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the receiver's client acknowledged the message",
    )
    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the receiver read the message",
    )

    objects = DirectMessageQuerySet.as_manager()

    class Meta:
        db_table = "chat_direct_message"
        ordering = ["-timestamp"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(sender=F("receiver")),
                name="direct_message_not_to_self",
            ),
        ]
        indexes = [
            models.Index(
                fields=["sender", "receiver", "-timestamp"],
                name="chat_dm_pair_time_idx",
            ),
            models.Index(
                fields=["receiver", "delivered_at"],
                name="chat_dm_receiver_delivery_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"DirectMessage({self.sender_id} -> {self.receiver_id})"

    def is_party(self, user: User) -> bool:
        return user.pk in (self.sender_id, self.receiver_id)

    def is_visible_to(self, user: User) -> bool:
        if self.deleted_for_everyone:
            return False
        if user.pk == self.sender_id:
            return not self.deleted_for_sender
        if user.pk == self.receiver_id:
            return not self.deleted_for_receiver
        return False


class GroupMessageQuerySet(models.QuerySet):
    def visible_to(self, user):
        """Not deleted for everyone and not hidden by ``user``."""
        return self.filter(deleted_for_everyone=False).exclude(deletions__user=user)


class GroupMessage(UUIDPrimaryKeyMixin, MessageAttachmentFields, BaseModel):
    """
    A message in a group.

    Fields:
        group: The group
        author_kind: user or system
        sender: Author for user messages, NULL for system messages
        content: Message text (rendered text for system messages)
        message_type: text, image or file
        system_event: Structured event for system messages
        timestamp: When the message was sent
        deleted_for_everyone: Retracted by the sender
        delivered_at / read_at: Set once by the first acknowledging member

    Related:
        deletions: GroupMessageDeletion rows (the per-viewer deleted set)
        mentions: Mention rows (the mentioned users)
    """

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Group the message was sent in",
    )

    author_kind = models.CharField(
        max_length=10,
        choices=AuthorKind.choices,
        default=AuthorKind.USER,
        help_text="Whether a member or the system authored the message",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="sent_group_messages",
        help_text="Author (NULL for system messages)",
    )

    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of message content",
    )

    system_event = models.JSONField(
        null=True,
        blank=True,
        help_text="Structured system event: {'event': str, 'data': dict}",
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the message was sent",
    )

    deleted_for_everyone = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Retracted by the sender for all members",
    )

    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When another member's client first acknowledged the message",
    )
    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When another member first read the message",
    )

    objects = GroupMessageQuerySet.as_manager()

    class Meta:
        db_table = "chat_group_message"
        ordering = ["-timestamp"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(author_kind=AuthorKind.SYSTEM, sender__isnull=True)
                    | Q(author_kind=AuthorKind.USER, sender__isnull=False)
                ),
                name="group_message_author_matches_sender",
            ),
        ]
        indexes = [
            models.Index(
                fields=["group", "-timestamp"],
                name="chat_gm_group_time_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"GroupMessage({self.group_id}, {self.author_kind})"

    @property
    def is_system(self) -> bool:
        return self.author_kind == AuthorKind.SYSTEM


class GroupMessageDeletion(BaseModel):
    """
    Marks a group message as hidden for one member.

    Together these rows form the message's ``deleted_for_users`` set.
    """

    message = models.ForeignKey(
        GroupMessage,
        on_delete=models.CASCADE,
        related_name="deletions",
        help_text="Hidden message",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="deleted_group_messages",
        help_text="Member who hid the message",
    )

    class Meta:
        db_table = "chat_group_message_deletion"
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_group_message_deletion",
            ),
        ]

    def __str__(self) -> str:
        return f"Deletion({self.message_id}, {self.user_id})"


class Mention(UUIDPrimaryKeyMixin, BaseModel):
    """
    A group message naming a member.

    Created together with the message, one per validated mentioned member,
    alongside a ``mention`` notification.
    """

    message = models.ForeignKey(
        GroupMessage,
        on_delete=models.CASCADE,
        related_name="mentions",
        help_text="Message containing the mention",
    )

    mentioned_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="mentions",
        help_text="Member who was mentioned",
    )

    mentioned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Author of the mentioning message",
    )

    is_read = models.BooleanField(
        default=False,
        help_text="Whether the mentioned member has seen the mention",
    )

    class Meta:
        db_table = "chat_mention"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "mentioned_user"],
                name="unique_message_mention",
            ),
        ]
        indexes = [
            models.Index(
                fields=["mentioned_user", "is_read"],
                name="chat_mention_user_read_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Mention({self.message_id} -> {self.mentioned_user_id})"
