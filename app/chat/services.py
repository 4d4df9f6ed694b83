"""
Chat system service layer.

This module provides the business logic for groups, memberships and the
message lifecycle.

Services:
    GroupService: Group lifecycle (create, info, update, transfer, delete)
    MembershipService: Adding/inviting, invitations, leaving, removal, roles
    DirectMessageService: 1:1 messages (send, delete, receipts, clear)
    GroupMessageService: Group messages (send with mentions, delete, receipts)
    MentionService: The current user's mentions
    RetentionService: Periodic purge of fully deleted messages

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Every mutation runs in a transaction; real-time events are published
      after commit (core.realtime)
    - Membership and group changes append system messages in the same
      transaction as the change

Usage:
    from chat.services import GroupService, MembershipService, GroupMessageService

    result = GroupService.create_group(name="Eng", creator=user)
    result = MembershipService.add_user_to_group_with_check(
        group_id=group.id, target_email="bob@example.com", user=user
    )
    result = GroupMessageService.send_group_message_with_mentions(
        group_id=group.id, user=user, content="hi @bob", mentioned_user_ids=[bob.id]
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.db.models import Count, DateTimeField, F, Q, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from authentication.models import User
from chat.authorization import GroupAuthorization, require_group_member
from chat.constants import (
    GROUP_CONFIG,
    MESSAGE_CONFIG,
    delete_for_everyone_window,
    retention_period,
)
from chat.mentions import resolve_mentions
from chat.models import (
    AuthorKind,
    DirectMessage,
    Group,
    GroupMessage,
    GroupMessageDeletion,
    Member,
    MemberRole,
    Mention,
    MessageType,
    SystemMessageEvent,
)
from connections.services import ConnectionService
from core.realtime import publish_to_group, publish_to_user, publish_to_users
from core.services import BaseService, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet

logger = logging.getLogger(__name__)


def member_name(user: User | None) -> str:
    """Name used in system messages; 'Someone' when no display name is set."""
    if user is None:
        return GROUP_CONFIG.UNKNOWN_MEMBER_NAME
    profile = getattr(user, "profile", None)
    if profile is not None and profile.display_name:
        return profile.display_name
    return GROUP_CONFIG.UNKNOWN_MEMBER_NAME


def _validate_message_input(
    content: str, message_type: str, file_url: str | None
) -> ServiceResult | None:
    if message_type not in MessageType.values:
        return ServiceResult.failure(
            f"Invalid message type '{message_type}'",
            error_code="VALIDATION_ERROR",
            errors={"message_type": [f"Must be one of {', '.join(MessageType.values)}."]},
        )
    if not (content or "").strip() and not file_url:
        return ServiceResult.failure(
            "Message content cannot be empty",
            error_code="VALIDATION_ERROR",
            errors={"content": ["This field may not be blank."]},
        )
    if len(content or "") > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
        return ServiceResult.failure(
            f"Message exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
            error_code="VALIDATION_ERROR",
            errors={"content": ["Message is too long."]},
        )
    return None


def _within_delete_window(timestamp) -> bool:
    return timestamp > timezone.now() - delete_for_everyone_window()


def direct_message_payload(message: DirectMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "content": message.content,
        "message_type": message.message_type,
        "timestamp": message.timestamp,
        "file_url": message.file_url,
        "file_name": message.file_name,
    }


def group_message_payload(message: GroupMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "group_id": message.group_id,
        "author_kind": message.author_kind,
        "sender_id": message.sender_id,
        "content": message.content,
        "message_type": message.message_type,
        "system_event": message.system_event,
        "timestamp": message.timestamp,
        "file_url": message.file_url,
        "file_name": message.file_name,
    }


# =============================================================================
# GroupService
# =============================================================================


class GroupService(BaseService):
    """
    Service for group lifecycle operations.

    Methods:
        create_group: Create a group with the creator as owner and admin
        check_group_name_availability: Case-insensitive name check
        get_group_info: Group details with member count and owner name
        list_user_groups: Groups the user belongs to
        update_group: Rename / describe (any member)
        transfer_admin: Hand ownership to another member (owner only)
        delete_group: Delete the group (owner only)
    """

    @classmethod
    def create_group(
        cls,
        name: str,
        creator: User,
        description: str = "",
        avatar_url: str | None = None,
    ) -> ServiceResult[Group]:
        """
        Create a group and make the creator its owner and first admin.

        The group row and the creator's membership are created atomically.

        Error codes:
            VALIDATION_ERROR: Name missing or too long
            GROUP_NAME_EXISTS: Name taken (case-insensitive)
        """
        validation = cls.validate_required(name=name)
        if validation is not None:
            return validation

        name = name.strip()
        if len(name) > GROUP_CONFIG.MAX_NAME_LENGTH:
            return ServiceResult.failure(
                f"Group name exceeds {GROUP_CONFIG.MAX_NAME_LENGTH} characters",
                error_code="VALIDATION_ERROR",
                errors={"name": ["Group name is too long."]},
            )

        if not cls.check_group_name_availability(name):
            return ServiceResult.failure(
                "Group name already exists",
                error_code="GROUP_NAME_EXISTS",
            )

        try:
            with cls.atomic():
                group = Group.objects.create(
                    name=name,
                    description=(description or "").strip(),
                    avatar_url=avatar_url or None,
                    created_by=creator,
                )
                Member.objects.create(group=group, user=creator, role=MemberRole.ADMIN)
        except IntegrityError:
            return ServiceResult.failure(
                "Group name already exists",
                error_code="GROUP_NAME_EXISTS",
            )

        cls.get_logger().info(f"Created group {group.id} by user {creator.pk}")
        return ServiceResult.success(group)

    @classmethod
    def check_group_name_availability(cls, name: str, exclude_group_id=None) -> bool:
        queryset = Group.objects.filter(name__iexact=(name or "").strip())
        if exclude_group_id is not None:
            queryset = queryset.exclude(pk=exclude_group_id)
        return not queryset.exists()

    @classmethod
    @require_group_member()
    def get_group_info(
        cls, group_id, user: User, _group: Group = None, _member: Member = None
    ) -> ServiceResult[Group]:
        """
        Group details for a member.

        The returned group carries ``member_count``, ``creator_name`` and
        ``my_role`` attributes.
        """
        group = _group
        group.member_count = group.members.count()
        group.creator_name = group.created_by.get_full_name() if group.created_by else None
        group.my_role = _member.role
        return ServiceResult.success(group)

    @classmethod
    def list_user_groups(cls, user: User) -> QuerySet[Group]:
        return (
            Group.objects.filter(
                pk__in=Member.objects.filter(user=user).values("group_id")
            )
            .annotate(member_count=Count("members", distinct=True))
            .select_related("created_by__profile")
            .order_by("-updated_at")
        )

    @classmethod
    @require_group_member()
    def update_group(
        cls,
        group_id,
        user: User,
        name: str | None = None,
        description: str | None = None,
        avatar_url: str | None = None,
        _group: Group = None,
        _member: Member = None,
    ) -> ServiceResult[Group]:
        """
        Update group details. Any current member may do this.

        A rename appends a system message describing the change.

        Error codes:
            VALIDATION_ERROR: Blank or too long name
            GROUP_NAME_EXISTS: Another group already uses the name
        """
        group = _group
        update_fields = ["updated_at"]
        old_name = group.name

        if name is not None:
            name = name.strip()
            if not name:
                return ServiceResult.failure(
                    "Group name cannot be empty",
                    error_code="VALIDATION_ERROR",
                    errors={"name": ["This field may not be blank."]},
                )
            if len(name) > GROUP_CONFIG.MAX_NAME_LENGTH:
                return ServiceResult.failure(
                    f"Group name exceeds {GROUP_CONFIG.MAX_NAME_LENGTH} characters",
                    error_code="VALIDATION_ERROR",
                    errors={"name": ["Group name is too long."]},
                )
            if not cls.check_group_name_availability(name, exclude_group_id=group.pk):
                return ServiceResult.failure(
                    "Group name already exists",
                    error_code="GROUP_NAME_EXISTS",
                )
            if name != group.name:
                group.name = name
                update_fields.append("name")

        if description is not None:
            group.description = description.strip()
            update_fields.append("description")

        if avatar_url is not None:
            group.avatar_url = avatar_url or None
            update_fields.append("avatar_url")

        try:
            with cls.atomic():
                group.save(update_fields=update_fields)

                if "name" in update_fields:
                    GroupMessageService._create_system_message(
                        group=group,
                        event=SystemMessageEvent.GROUP_RENAMED,
                        data={
                            "old_name": old_name,
                            "new_name": group.name,
                            "changed_by_id": user.pk,
                        },
                        content=f'{member_name(user)} changed the group name to "{group.name}"',
                    )
        except IntegrityError:
            return ServiceResult.failure(
                "Group name already exists",
                error_code="GROUP_NAME_EXISTS",
            )

        publish_to_group(
            group.pk,
            "group.updated",
            {
                "group_id": group.pk,
                "name": group.name,
                "description": group.description,
                "avatar_url": group.avatar_url,
            },
        )
        cls.get_logger().info(f"Group {group.id} updated by user {user.pk}")
        return ServiceResult.success(group)

    @classmethod
    @require_group_member()
    def transfer_admin(
        cls,
        group_id,
        user: User,
        new_owner_id,
        _group: Group = None,
        _member: Member = None,
    ) -> ServiceResult[Group]:
        """
        Make another member the owner.

        The new owner is promoted to admin and the previous owner becomes a
        plain member.

        Error codes:
            NOT_OWNER: Caller is not the owner
            MEMBER_NOT_FOUND: Target is not a member of the group
            INVALID_SUCCESSOR: Target is the caller
        """
        if not GroupAuthorization.is_owner(_group, user):
            return ServiceResult.failure(
                "Only the group owner can transfer ownership",
                error_code="NOT_OWNER",
            )

        if new_owner_id == user.pk:
            return ServiceResult.failure(
                "You already own this group",
                error_code="INVALID_SUCCESSOR",
            )

        with cls.atomic():
            group = Group.objects.select_for_update().get(pk=_group.pk)
            target = (
                Member.objects.select_related("user__profile")
                .filter(group=group, user_id=new_owner_id)
                .first()
            )
            if target is None:
                return ServiceResult.failure(
                    "User is not a member of this group",
                    error_code="MEMBER_NOT_FOUND",
                )

            group.created_by = target.user
            group.save(update_fields=["created_by", "updated_at"])

            target.role = MemberRole.ADMIN
            target.save(update_fields=["role", "updated_at"])

            _member.role = MemberRole.MEMBER
            _member.save(update_fields=["role", "updated_at"])

            GroupMessageService._create_system_message(
                group=group,
                event=SystemMessageEvent.OWNERSHIP_TRANSFERRED,
                data={
                    "from_user_id": user.pk,
                    "to_user_id": target.user_id,
                    "reason": "manual",
                },
                content=(
                    f"{member_name(user)} transferred ownership to "
                    f"{member_name(target.user)}"
                ),
            )

        publish_to_group(
            group.pk,
            "group.updated",
            {"group_id": group.pk, "created_by": target.user_id},
        )
        cls.get_logger().info(
            f"Ownership of group {group.id} transferred from {user.pk} to {target.user_id}"
        )
        return ServiceResult.success(group)

    @classmethod
    @require_group_member()
    def delete_group(
        cls, group_id, user: User, _group: Group = None, _member: Member = None
    ) -> ServiceResult[None]:
        """
        Delete the group with all its messages and mentions.

        Error codes:
            NOT_OWNER: Caller is not the owner
        """
        if not GroupAuthorization.can_delete_group(_group, user):
            return ServiceResult.failure(
                "Only the group owner can delete the group",
                error_code="NOT_OWNER",
            )

        group_pk = _group.pk
        member_ids = list(_group.members.values_list("user_id", flat=True))

        with cls.atomic():
            _group.delete()

        publish_to_users(member_ids, "group.deleted", {"group_id": group_pk})
        cls.get_logger().info(f"Group {group_pk} deleted by owner {user.pk}")
        return ServiceResult.success(None)


# =============================================================================
# MembershipService
# =============================================================================


class MembershipService(BaseService):
    """
    Service for membership changes.

    Methods:
        add_user_to_group_with_check: Add directly (connected) or invite
        accept_group_invitation / reject_group_invitation: Answer an invite
        leave_group: Leave, handing over ownership/admin as needed
        remove_member: Remove another member (owner, or admin for members)
        change_role: Promote/demote (owner only)
        list_members: Group roster (members only)
    """

    @classmethod
    def add_user_to_group_with_check(
        cls, group_id, target_email: str, user: User
    ) -> ServiceResult[dict]:
        """
        Add a user to a group by email.

        If the caller and the target share an accepted connection the target
        is added immediately and notified. Otherwise the target receives an
        invitation notification and no membership is created until they
        accept it.

        Returns data:
            {"auto_added": bool, "requires_acceptance": bool, "member": Member|None}

        Error codes:
            GROUP_NOT_FOUND: Group does not exist
            NOT_MEMBER: Caller is not a member
            USER_NOT_FOUND: No account with that email (errors.user_exists=[False])
            ALREADY_MEMBER: Target is already a member
            INVITATION_PENDING: Target already has an unanswered invitation
        """
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return ServiceResult.failure("Group not found", error_code="GROUP_NOT_FOUND")

        if not GroupAuthorization.can_add_members(group, user):
            return ServiceResult.failure(
                "Only group members can add users",
                error_code="NOT_MEMBER",
            )

        try:
            target = User.objects.get_by_email(target_email)
        except User.DoesNotExist:
            return ServiceResult.failure(
                "User not found",
                error_code="USER_NOT_FOUND",
                errors={"user_exists": [False]},
            )

        if GroupAuthorization.is_member(group, target):
            return ServiceResult.failure(
                "User is already a member of this group",
                error_code="ALREADY_MEMBER",
            )

        if ConnectionService.are_users_connected(user.pk, target.pk):
            return cls._add_connected_user(group, target, user)

        if NotificationService.pending_group_invitations(target, group.pk).exists():
            return ServiceResult.failure(
                "User already has a pending invitation to this group",
                error_code="INVITATION_PENDING",
            )

        with cls.atomic():
            NotificationService.create_notification(
                recipient=target,
                notification_type=NotificationKind.GROUP_INVITE,
                content=f'{user.get_full_name()} invited you to join "{group.name}"',
                data={
                    "group_id": str(group.pk),
                    "group_name": group.name,
                    "invited_by": user.pk,
                    "requires_acceptance": True,
                },
                actor=user,
            )

        cls.get_logger().info(f"User {user.pk} invited {target.pk} to group {group.id}")
        return ServiceResult.success(
            {"auto_added": False, "requires_acceptance": True, "member": None}
        )

    @classmethod
    def _add_connected_user(cls, group: Group, target: User, user: User) -> ServiceResult[dict]:
        try:
            with cls.atomic():
                member = Member.objects.create(group=group, user=target, role=MemberRole.MEMBER)

                NotificationService.create_notification(
                    recipient=target,
                    notification_type=NotificationKind.GROUP_INVITE,
                    content=f'{user.get_full_name()} added you to "{group.name}"',
                    data={
                        "group_id": str(group.pk),
                        "group_name": group.name,
                        "added_by": user.pk,
                        "auto_added": True,
                    },
                    actor=user,
                )

                GroupMessageService._create_system_message(
                    group=group,
                    event=SystemMessageEvent.MEMBER_ADDED,
                    data={"user_id": target.pk, "added_by_id": user.pk},
                    content=f"{member_name(user)} added {member_name(target)}",
                )
        except IntegrityError:
            return ServiceResult.failure(
                "User is already a member of this group",
                error_code="ALREADY_MEMBER",
            )

        cls._publish_member_joined(group, target)
        cls.get_logger().info(f"User {user.pk} added {target.pk} to group {group.id}")
        return ServiceResult.success(
            {"auto_added": True, "requires_acceptance": False, "member": member}
        )

    @classmethod
    def accept_group_invitation(cls, group_id, user: User) -> ServiceResult[Member]:
        """
        Join a group the user was invited to.

        Error codes:
            GROUP_NOT_FOUND: Group no longer exists
            NO_INVITATION: No pending invitation for this group
        """
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return ServiceResult.failure("Group not found", error_code="GROUP_NOT_FOUND")

        existing = GroupAuthorization.get_membership(group, user)
        if existing is not None:
            NotificationService.close_group_invitations(user, group.pk)
            return ServiceResult.success(existing)

        if not NotificationService.pending_group_invitations(user, group.pk).exists():
            return ServiceResult.failure(
                "No pending invitation for this group",
                error_code="NO_INVITATION",
            )

        try:
            with cls.atomic():
                member = Member.objects.create(group=group, user=user, role=MemberRole.MEMBER)
                NotificationService.close_group_invitations(user, group.pk)
                GroupMessageService._create_system_message(
                    group=group,
                    event=SystemMessageEvent.MEMBER_JOINED,
                    data={"user_id": user.pk},
                    content=f"{member_name(user)} joined the group",
                )
        except IntegrityError:
            # Accepted twice concurrently
            return ServiceResult.success(GroupAuthorization.get_membership(group, user))

        cls._publish_member_joined(group, user)
        cls.get_logger().info(f"User {user.pk} accepted invitation to group {group.id}")
        return ServiceResult.success(member)

    @classmethod
    def reject_group_invitation(cls, group_id, user: User) -> ServiceResult[int]:
        """
        Decline an invitation; returns the number of invitations closed.

        Error codes:
            NO_INVITATION: No pending invitation for this group
        """
        with cls.atomic():
            closed = NotificationService.close_group_invitations(user, group_id, rejected=True)

        if not closed:
            return ServiceResult.failure(
                "No pending invitation for this group",
                error_code="NO_INVITATION",
            )

        cls.get_logger().info(f"User {user.pk} rejected invitation to group {group_id}")
        return ServiceResult.success(closed)

    @classmethod
    @require_group_member()
    def leave_group(
        cls,
        group_id,
        user: User,
        successor_id=None,
        _group: Group = None,
        _member: Member = None,
    ) -> ServiceResult[dict]:
        """
        Leave a group.

        - Sole member: the group is deleted (action "group_deleted").
        - Owner or admin leaving: a nominated successor (a current member) is
          promoted to admin and, when the owner leaves, becomes owner.
          Without a nominee the owner hands over to the oldest remaining
          admin, else the oldest remaining member; a non-owner sole admin
          promotes the oldest remaining member.
        - A "<name> left the group" system message is appended.

        Returns data:
            {"action": "group_deleted" | "left_group", "new_owner_id": id|None}

        Error codes:
            INVALID_SUCCESSOR: Nominee is the caller or not a member
        """
        with cls.atomic():
            group = Group.objects.select_for_update().get(pk=_group.pk)
            remaining = (
                Member.objects.filter(group=group)
                .exclude(pk=_member.pk)
                .select_related("user__profile")
                .order_by("joined_at", "pk")
            )

            if not remaining.exists():
                group_pk = group.pk
                group.delete()
                publish_to_user(user.pk, "group.deleted", {"group_id": group_pk})
                cls.get_logger().info(f"Group {group_pk} deleted (last member {user.pk} left)")
                return ServiceResult.success({"action": "group_deleted", "new_owner_id": None})

            is_owner = GroupAuthorization.is_owner(group, user)
            successor = None

            if successor_id is not None and (is_owner or _member.is_admin):
                successor = remaining.filter(user_id=successor_id).first()
                if successor is None:
                    return ServiceResult.failure(
                        "Successor must be another current member",
                        error_code="INVALID_SUCCESSOR",
                    )
            elif is_owner:
                successor = (
                    remaining.filter(role=MemberRole.ADMIN).first() or remaining.first()
                )
            elif _member.is_admin and not remaining.filter(role=MemberRole.ADMIN).exists():
                successor = remaining.first()

            new_owner_id = None
            if successor is not None:
                if successor.role != MemberRole.ADMIN:
                    successor.role = MemberRole.ADMIN
                    successor.save(update_fields=["role", "updated_at"])

                if is_owner:
                    group.created_by = successor.user
                    group.save(update_fields=["created_by", "updated_at"])
                    new_owner_id = successor.user_id

                    GroupMessageService._create_system_message(
                        group=group,
                        event=SystemMessageEvent.OWNERSHIP_TRANSFERRED,
                        data={
                            "from_user_id": user.pk,
                            "to_user_id": successor.user_id,
                            "reason": "departure",
                        },
                        content=f"{member_name(successor.user)} is now the group owner",
                    )

            _member.delete()

            GroupMessageService._create_system_message(
                group=group,
                event=SystemMessageEvent.MEMBER_LEFT,
                data={"user_id": user.pk},
                content=f"{member_name(user)} left the group",
            )

        payload = {"group_id": group.pk, "user_id": user.pk, "new_owner_id": new_owner_id}
        publish_to_group(group.pk, "group.member_left", payload)
        cls.get_logger().info(f"User {user.pk} left group {group.id}")
        return ServiceResult.success({"action": "left_group", "new_owner_id": new_owner_id})

    @classmethod
    @require_group_member()
    def remove_member(
        cls,
        group_id,
        user: User,
        target_user_id,
        _group: Group = None,
        _member: Member = None,
    ) -> ServiceResult[None]:
        """
        Remove another member.

        Error codes:
            MEMBER_NOT_FOUND: Target is not a member
            FORBIDDEN: Caller may not remove the target (use leave for self)
        """
        target = (
            Member.objects.select_related("user__profile")
            .filter(group=_group, user_id=target_user_id)
            .first()
        )
        if target is None:
            return ServiceResult.failure(
                "User is not a member of this group",
                error_code="MEMBER_NOT_FOUND",
            )

        if not GroupAuthorization.can_manage_member(_group, user, target, _member):
            cls.get_logger().warning(
                f"User {user.pk} may not remove {target_user_id} from group {_group.id}"
            )
            return ServiceResult.failure(
                "You cannot remove this member",
                error_code="FORBIDDEN",
            )

        with cls.atomic():
            target.delete()
            GroupMessageService._create_system_message(
                group=_group,
                event=SystemMessageEvent.MEMBER_REMOVED,
                data={"user_id": target.user_id, "removed_by_id": user.pk},
                content=f"{member_name(user)} removed {member_name(target.user)}",
            )

        payload = {"group_id": _group.pk, "user_id": target.user_id, "new_owner_id": None}
        publish_to_group(_group.pk, "group.member_left", payload)
        cls.get_logger().info(f"User {user.pk} removed {target.user_id} from group {_group.id}")
        return ServiceResult.success(None)

    @classmethod
    @require_group_member()
    def change_role(
        cls,
        group_id,
        user: User,
        target_user_id,
        role: str,
        _group: Group = None,
        _member: Member = None,
    ) -> ServiceResult[Member]:
        """
        Promote a member to admin or demote an admin to member.

        Error codes:
            VALIDATION_ERROR: Unknown role
            NOT_OWNER: Caller is not the owner
            MEMBER_NOT_FOUND: Target is not a member
            FORBIDDEN: Target is the owner
        """
        if role not in MemberRole.values:
            return ServiceResult.failure(
                f"Invalid role '{role}'",
                error_code="VALIDATION_ERROR",
                errors={"role": [f"Must be one of {', '.join(MemberRole.values)}."]},
            )

        if not GroupAuthorization.is_owner(_group, user):
            return ServiceResult.failure(
                "Only the group owner can change roles",
                error_code="NOT_OWNER",
            )

        target = (
            Member.objects.select_related("user__profile")
            .filter(group=_group, user_id=target_user_id)
            .first()
        )
        if target is None:
            return ServiceResult.failure(
                "User is not a member of this group",
                error_code="MEMBER_NOT_FOUND",
            )

        if not GroupAuthorization.can_change_role(_group, user, target):
            return ServiceResult.failure(
                "The owner's role cannot be changed; transfer ownership instead",
                error_code="FORBIDDEN",
            )

        if target.role == role:
            return ServiceResult.success(target)

        old_role = target.role
        with cls.atomic():
            target.role = role
            target.save(update_fields=["role", "updated_at"])

            verb = "made" if role == MemberRole.ADMIN else "removed admin rights from"
            suffix = " an admin" if role == MemberRole.ADMIN else ""
            GroupMessageService._create_system_message(
                group=_group,
                event=SystemMessageEvent.ROLE_CHANGED,
                data={
                    "user_id": target.user_id,
                    "old_role": old_role,
                    "new_role": role,
                    "changed_by_id": user.pk,
                },
                content=f"{member_name(user)} {verb} {member_name(target.user)}{suffix}",
            )

        publish_to_group(
            _group.pk,
            "group.updated",
            {"group_id": _group.pk, "user_id": target.user_id, "role": role},
        )
        cls.get_logger().info(
            f"User {user.pk} changed role of {target.user_id} in group {_group.id} to {role}"
        )
        return ServiceResult.success(target)

    @classmethod
    @require_group_member()
    def list_members(
        cls, group_id, user: User, _group: Group = None, _member: Member = None
    ) -> ServiceResult[QuerySet[Member]]:
        """Roster of the group; only visible to members."""
        return ServiceResult.success(
            Member.objects.filter(group=_group).select_related("user__profile", "group")
        )

    @classmethod
    def _publish_member_joined(cls, group: Group, user: User) -> None:
        payload = {"group_id": group.pk, "group_name": group.name, "user_id": user.pk}
        publish_to_group(group.pk, "group.member_joined", payload)
        publish_to_user(user.pk, "group.member_joined", payload)


# =============================================================================
# DirectMessageService
# =============================================================================


class DirectMessageService(BaseService):
    """
    Service for 1:1 messages.

    Methods:
        send_message: Send a message to another user
        get_conversation: Messages between two users visible to the caller
        delete_message_for_user: Delete for me, or for everyone within the window
        mark_messages_delivered / mark_messages_read: Receipts, set once
        clear_conversation_for_user: Hide the whole conversation for the caller
    """

    @classmethod
    def can_message(cls, sender: User, receiver: User) -> bool:
        """
        Direct messaging eligibility.

        Any user may message any other unless
        CHAT_REQUIRE_CONNECTION_FOR_DIRECT_MESSAGES is enabled, in which case
        an accepted connection is required.
        """
        if not getattr(settings, "CHAT_REQUIRE_CONNECTION_FOR_DIRECT_MESSAGES", False):
            return True
        return ConnectionService.are_users_connected(sender.pk, receiver.pk)

    @classmethod
    def send_message(
        cls,
        sender: User,
        receiver_id,
        content: str = "",
        message_type: str = MessageType.TEXT,
        file_url: str | None = None,
        file_name: str = "",
        file_size: int | None = None,
        file_type: str = "",
    ) -> ServiceResult[DirectMessage]:
        """
        Send a direct message.

        Error codes:
            USER_NOT_FOUND: Receiver does not exist or is inactive
            VALIDATION_ERROR: Self-message, empty or oversized content, bad type
            NOT_CONNECTED: Connection required and missing
        """
        receiver = User.objects.filter(pk=receiver_id, is_active=True).first()
        if receiver is None:
            return ServiceResult.failure("User not found", error_code="USER_NOT_FOUND")

        if receiver.pk == sender.pk:
            return ServiceResult.failure(
                "You cannot message yourself",
                error_code="VALIDATION_ERROR",
            )

        validation = _validate_message_input(content, message_type, file_url)
        if validation is not None:
            return validation

        if not cls.can_message(sender, receiver):
            return ServiceResult.failure(
                "You must be connected to message this user",
                error_code="NOT_CONNECTED",
            )

        with cls.atomic():
            message = DirectMessage.objects.create(
                sender=sender,
                receiver=receiver,
                content=content or "",
                message_type=message_type,
                file_url=file_url or None,
                file_name=file_name or "",
                file_size=file_size,
                file_type=file_type or "",
            )

        publish_to_users(
            [sender.pk, receiver.pk], "message.new", direct_message_payload(message)
        )
        cls.get_logger().debug(f"Direct message {message.id} sent {sender.pk} -> {receiver.pk}")
        return ServiceResult.success(message)

    @classmethod
    def get_conversation(cls, user: User, other_user_id) -> QuerySet[DirectMessage]:
        return (
            DirectMessage.objects.between(user.pk, other_user_id)
            .visible_to(user)
            .select_related("sender__profile", "receiver__profile")
        )

    @classmethod
    def delete_message_for_user(
        cls, message_id, user: User, for_everyone: bool = False
    ) -> ServiceResult[dict]:
        """
        Delete a direct message.

        For everyone only when the caller is the sender and the message is
        within the grace window; otherwise only the caller's own copy is
        hidden.

        Returns data:
            {"deleted_for_everyone": bool}

        Error codes:
            MESSAGE_NOT_FOUND: No such message, or the caller is not a party
        """
        message = (
            DirectMessage.objects.filter(pk=message_id)
            .filter(Q(sender=user) | Q(receiver=user))
            .first()
        )
        if message is None:
            return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")

        is_sender = message.sender_id == user.pk

        with cls.atomic():
            if for_everyone and is_sender and _within_delete_window(message.timestamp):
                message.deleted_for_everyone = True
                message.save(update_fields=["deleted_for_everyone", "updated_at"])

                publish_to_users(
                    [message.sender_id, message.receiver_id],
                    "message.deleted",
                    {
                        "id": message.id,
                        "deleted_for_everyone": True,
                        "content": MESSAGE_CONFIG.DELETED_PLACEHOLDER,
                    },
                )
                cls.get_logger().info(f"Direct message {message.id} deleted for everyone")
                return ServiceResult.success({"deleted_for_everyone": True})

            if is_sender:
                message.deleted_for_sender = True
                message.save(update_fields=["deleted_for_sender", "updated_at"])
            else:
                message.deleted_for_receiver = True
                message.save(update_fields=["deleted_for_receiver", "updated_at"])

        if for_everyone:
            cls.get_logger().debug(
                f"Delete-for-everyone of {message.id} by {user.pk} fell back to delete-for-me"
            )
        return ServiceResult.success({"deleted_for_everyone": False})

    @classmethod
    def mark_messages_delivered(cls, receiver: User, sender_id) -> int:
        """Stamp ``delivered_at`` on messages from ``sender_id`` still visible to the receiver."""
        now = timezone.now()
        with cls.atomic():
            count = DirectMessage.objects.filter(
                sender_id=sender_id,
                receiver=receiver,
                delivered_at__isnull=True,
                deleted_for_receiver=False,
                deleted_for_everyone=False,
            ).update(delivered_at=now)

        if count:
            publish_to_user(
                sender_id,
                "message.receipt",
                {"receiver_id": receiver.pk, "delivered_at": now, "read_at": None},
            )
        return count

    @classmethod
    def mark_messages_read(cls, receiver: User, sender_id) -> int:
        """Stamp ``read_at`` (and ``delivered_at`` if missing) on visible messages."""
        now = timezone.now()
        with cls.atomic():
            count = DirectMessage.objects.filter(
                sender_id=sender_id,
                receiver=receiver,
                read_at__isnull=True,
                deleted_for_receiver=False,
                deleted_for_everyone=False,
            ).update(
                read_at=now,
                delivered_at=Coalesce(F("delivered_at"), Value(now, output_field=DateTimeField())),
            )

        if count:
            publish_to_user(
                sender_id,
                "message.receipt",
                {"receiver_id": receiver.pk, "delivered_at": now, "read_at": now},
            )
        return count

    @classmethod
    def clear_conversation_for_user(cls, user: User, other_user_id) -> int:
        """Hide every message of the conversation for the caller only."""
        with cls.atomic():
            sent = DirectMessage.objects.filter(
                sender=user, receiver_id=other_user_id, deleted_for_sender=False
            ).update(deleted_for_sender=True)
            received = DirectMessage.objects.filter(
                sender_id=other_user_id, receiver=user, deleted_for_receiver=False
            ).update(deleted_for_receiver=True)

        cls.get_logger().info(
            f"User {user.pk} cleared conversation with {other_user_id} ({sent + received} messages)"
        )
        return sent + received


# =============================================================================
# GroupMessageService
# =============================================================================


class GroupMessageService(BaseService):
    """
    Service for group messages.

    Methods:
        send_group_message_with_mentions: Send, creating mentions/notifications
        get_group_messages: Messages visible to the caller
        delete_group_message_for_everyone: Retract within the grace window
        delete_group_message_for_user: Hide for the caller
        mark_group_messages_delivered / mark_group_messages_read: Receipts
    """

    @classmethod
    @require_group_member()
    def send_group_message_with_mentions(
        cls,
        group_id,
        user: User,
        content: str = "",
        message_type: str = MessageType.TEXT,
        mentioned_user_ids: list | None = None,
        file_url: str | None = None,
        file_name: str = "",
        file_size: int | None = None,
        file_type: str = "",
        _group: Group = None,
        _member: Member = None,
    ) -> ServiceResult[GroupMessage]:
        """
        Send a group message and fan out mentions.

        Mentioned ids are re-validated against the current roster:
        duplicates, non-members and the sender are dropped. When
        ``mentioned_user_ids`` is None the ids are resolved from ``@tokens``
        in the content. One Mention row and one ``mention`` notification is
        created per remaining id.

        The returned message carries ``mentioned_user_ids``.
        """
        validation = _validate_message_input(content, message_type, file_url)
        if validation is not None:
            return validation

        group = _group
        if mentioned_user_ids is None:
            roster = (
                User.objects.filter(group_memberships__group=group)
                .select_related("profile")
                .order_by("group_memberships__joined_at", "pk")
            )
            mentioned_user_ids = resolve_mentions(content, roster)

        valid_ids = cls._validate_mentions(group, user, mentioned_user_ids)

        with cls.atomic():
            message = GroupMessage.objects.create(
                group=group,
                author_kind=AuthorKind.USER,
                sender=user,
                content=content or "",
                message_type=message_type,
                file_url=file_url or None,
                file_name=file_name or "",
                file_size=file_size,
                file_type=file_type or "",
            )

            if valid_ids:
                Mention.objects.bulk_create(
                    [
                        Mention(message=message, mentioned_user_id=user_id, mentioned_by=user)
                        for user_id in valid_ids
                    ]
                )
                recipients = User.objects.in_bulk(valid_ids)
                for user_id in valid_ids:
                    NotificationService.create_notification(
                        recipient=recipients[user_id],
                        notification_type=NotificationKind.MENTION,
                        content=f'{user.get_full_name()} mentioned you in "{group.name}"',
                        data={
                            "message_id": str(message.pk),
                            "group_id": str(group.pk),
                            "sender_id": user.pk,
                        },
                        actor=user,
                    )

            Group.objects.filter(pk=group.pk).update(updated_at=timezone.now())

        message.mentioned_user_ids = valid_ids
        payload = group_message_payload(message)
        payload["mentioned_user_ids"] = valid_ids
        publish_to_group(group.pk, "message.new", payload)
        cls.get_logger().debug(
            f"Group message {message.id} sent in {group.id} with {len(valid_ids)} mentions"
        )
        return ServiceResult.success(message)

    @classmethod
    def _validate_mentions(cls, group: Group, sender: User, mentioned_user_ids) -> list:
        requested = []
        for user_id in mentioned_user_ids or []:
            if user_id not in requested and user_id != sender.pk:
                requested.append(user_id)
        if not requested:
            return []

        member_ids = set(
            Member.objects.filter(group=group, user_id__in=requested).values_list(
                "user_id", flat=True
            )
        )
        dropped = [user_id for user_id in requested if user_id not in member_ids]
        if dropped:
            cls.get_logger().warning(
                f"Dropped mentions of non-members {dropped} in group {group.id}"
            )
        return [user_id for user_id in requested if user_id in member_ids]

    @classmethod
    @require_group_member()
    def get_group_messages(
        cls, group_id, user: User, _group: Group = None, _member: Member = None
    ) -> ServiceResult[QuerySet[GroupMessage]]:
        return ServiceResult.success(
            GroupMessage.objects.filter(group=_group)
            .visible_to(user)
            .select_related("sender__profile")
            .prefetch_related("mentions")
        )

    @classmethod
    def delete_group_message_for_everyone(
        cls, message_id, user: User, group_id=None
    ) -> ServiceResult[dict]:
        """
        Retract a group message for all members.

        Only the sender, only within the grace window. Otherwise the request
        falls back to hiding the message for the caller.

        When ``group_id`` is given the message must belong to that group.

        Returns data:
            {"deleted_for_everyone": bool}
        """
        message = cls._find_message(message_id, group_id)
        if message is None:
            return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")

        if message.sender_id != user.pk or not _within_delete_window(message.timestamp):
            cls.get_logger().debug(
                f"Delete-for-everyone of {message.id} by {user.pk} fell back to delete-for-me"
            )
            return cls.delete_group_message_for_user(message_id, user, group_id=group_id)

        with cls.atomic():
            message.deleted_for_everyone = True
            message.save(update_fields=["deleted_for_everyone", "updated_at"])

        publish_to_group(
            message.group_id,
            "message.deleted",
            {
                "id": message.id,
                "group_id": message.group_id,
                "deleted_for_everyone": True,
                "content": MESSAGE_CONFIG.DELETED_PLACEHOLDER,
            },
        )
        cls.get_logger().info(f"Group message {message.id} deleted for everyone")
        return ServiceResult.success({"deleted_for_everyone": True})

    @classmethod
    def delete_group_message_for_user(
        cls, message_id, user: User, group_id=None
    ) -> ServiceResult[dict]:
        """
        Hide a group message for the caller. Idempotent.

        Error codes:
            MESSAGE_NOT_FOUND: No such message (in ``group_id``, when given)
            NOT_MEMBER: Caller is neither the sender nor a member
        """
        message = cls._find_message(message_id, group_id)
        if message is None:
            return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")

        if message.sender_id != user.pk and not GroupAuthorization.is_member(
            message.group_id, user
        ):
            return ServiceResult.failure(
                "You are not a member of this group",
                error_code="NOT_MEMBER",
            )

        with cls.atomic():
            GroupMessageDeletion.objects.get_or_create(message=message, user=user)

        return ServiceResult.success({"deleted_for_everyone": False})

    @staticmethod
    def _find_message(message_id, group_id=None) -> GroupMessage | None:
        messages = GroupMessage.objects.filter(pk=message_id)
        if group_id is not None:
            messages = messages.filter(group_id=group_id)
        return messages.first()

    @classmethod
    def _unacknowledged(cls, group: Group, user: User):
        """Messages by other authors (system included) the user has not hidden."""
        return (
            GroupMessage.objects.filter(group=group, deleted_for_everyone=False)
            .exclude(sender=user)
            .exclude(deletions__user=user)
        )

    @classmethod
    @require_group_member()
    def mark_group_messages_delivered(
        cls, group_id, user: User, _group: Group = None, _member: Member = None
    ) -> ServiceResult[int]:
        now = timezone.now()
        with cls.atomic():
            count = (
                cls._unacknowledged(_group, user)
                .filter(delivered_at__isnull=True)
                .update(delivered_at=now)
            )

        if count:
            publish_to_group(
                _group.pk,
                "message.receipt",
                {"group_id": _group.pk, "user_id": user.pk, "delivered_at": now, "read_at": None},
            )
        return ServiceResult.success(count)

    @classmethod
    @require_group_member()
    def mark_group_messages_read(
        cls, group_id, user: User, _group: Group = None, _member: Member = None
    ) -> ServiceResult[int]:
        now = timezone.now()
        with cls.atomic():
            count = (
                cls._unacknowledged(_group, user)
                .filter(read_at__isnull=True)
                .update(
                    read_at=now,
                    delivered_at=Coalesce(
                        F("delivered_at"), Value(now, output_field=DateTimeField())
                    ),
                )
            )
            Mention.objects.filter(
                message__group=_group, mentioned_user=user, is_read=False
            ).update(is_read=True)

        if count:
            publish_to_group(
                _group.pk,
                "message.receipt",
                {"group_id": _group.pk, "user_id": user.pk, "delivered_at": now, "read_at": now},
            )
        return ServiceResult.success(count)

    @classmethod
    def _create_system_message(
        cls,
        group: Group,
        event: str,
        data: dict,
        content: str,
    ) -> GroupMessage:
        """
        Internal: Append a system-authored message.

        System messages have author_kind=SYSTEM, no sender, the rendered
        text in ``content`` and {event, data} in ``system_event``.

        This method should be called within an existing transaction.
        """
        message = GroupMessage.objects.create(
            group=group,
            author_kind=AuthorKind.SYSTEM,
            sender=None,
            content=content,
            system_event={"event": event, "data": data},
        )
        publish_to_group(group.pk, "message.new", group_message_payload(message))
        return message


# =============================================================================
# MentionService
# =============================================================================


class MentionService(BaseService):
    """The caller's mentions across groups."""

    @classmethod
    def list_mentions(cls, user: User, unread_only: bool = False) -> QuerySet[Mention]:
        queryset = Mention.objects.filter(
            mentioned_user=user,
            message__deleted_for_everyone=False,
        ).select_related("message__group", "mentioned_by__profile")
        if unread_only:
            queryset = queryset.filter(is_read=False)
        return queryset

    @classmethod
    def mark_mention_read(cls, mention_id, user: User) -> ServiceResult[Mention]:
        mention = Mention.objects.filter(pk=mention_id, mentioned_user=user).first()
        if mention is None:
            return ServiceResult.failure("Mention not found", error_code="MENTION_NOT_FOUND")

        if not mention.is_read:
            mention.is_read = True
            mention.save(update_fields=["is_read", "updated_at"])
        return ServiceResult.success(mention)


# =============================================================================
# RetentionService
# =============================================================================


class RetentionService(BaseService):
    """
    Purges fully deleted messages once they age out.

    Idempotent: a re-run re-evaluates the same filter. Rows removed before
    an interruption stay removed; the rest are caught by the next run.
    """

    @classmethod
    def cleanup_deleted_messages(cls) -> int:
        """
        Permanently delete:
            - direct messages deleted for everyone, older than the retention period
            - direct messages deleted by both parties, older than the retention period
            - group messages deleted for everyone, older than the retention period

        Returns:
            Number of messages removed
        """
        cutoff = timezone.now() - retention_period()

        _, direct_counts = DirectMessage.objects.filter(timestamp__lt=cutoff).filter(
            Q(deleted_for_everyone=True)
            | Q(deleted_for_sender=True, deleted_for_receiver=True)
        ).delete()

        _, group_counts = GroupMessage.objects.filter(
            timestamp__lt=cutoff, deleted_for_everyone=True
        ).delete()

        direct_deleted = direct_counts.get(DirectMessage._meta.label, 0)
        group_deleted = group_counts.get(GroupMessage._meta.label, 0)

        cls.get_logger().info(
            f"Retention sweep removed {direct_deleted} direct and {group_deleted} group messages"
        )
        return direct_deleted + group_deleted
