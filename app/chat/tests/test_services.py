"""
Tests for chat services.

This module tests:
- GroupService: create, info, update, ownership transfer, delete
- MembershipService: add/invite, invitations, leave with handover, removal, roles
- DirectMessageService: send, delete windows, receipts, clear
- GroupMessageService: listing, delete windows, receipts
- RetentionService: the purge of fully deleted messages

Related files:
    - services.py: Implementation under test
    - authorization.py: Rules the services apply
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from authentication.tests.factories import UserFactory
from chat.models import (
    AuthorKind,
    DirectMessage,
    Group,
    GroupMessage,
    GroupMessageDeletion,
    Member,
    MemberRole,
    Mention,
    SystemMessageEvent,
)
from chat.services import (
    DirectMessageService,
    GroupMessageService,
    GroupService,
    MembershipService,
    RetentionService,
    member_name,
)
from chat.tests.factories import (
    DirectMessageFactory,
    GroupFactory,
    GroupMessageFactory,
    MentionFactory,
)
from notifications.models import Notification, NotificationKind
from notifications.services import NotificationService


def minutes_ago(minutes):
    return timezone.now() - timedelta(minutes=minutes)


def system_messages(group):
    return list(
        GroupMessage.objects.filter(group=group, author_kind=AuthorKind.SYSTEM)
        .order_by("timestamp")
        .values_list("content", flat=True)
    )


def role_of(group, user):
    return Member.objects.get(group=group, user=user).role


# =============================================================================
# TestMemberName
# =============================================================================


class TestMemberName:
    """Tests for member_name()."""

    def test_display_name(self, db):
        assert member_name(UserFactory(display_name="Ada")) == "Ada"

    def test_missing_display_name(self, db):
        """
        System messages fall back to "Someone".

        Why it matters: Email addresses must not leak into group history.
        """
        assert member_name(UserFactory(display_name="")) == "Someone"
        assert member_name(None) == "Someone"


# =============================================================================
# TestGroupService
# =============================================================================


class TestCreateGroup:
    """Tests for GroupService.create_group()."""

    def test_creator_becomes_owner_and_admin(self, owner_user):
        result = GroupService.create_group(name="  Design  ", creator=owner_user)

        assert result.success is True
        group = result.data
        assert group.name == "Design"
        assert group.created_by == owner_user
        assert role_of(group, owner_user) == MemberRole.ADMIN

    def test_name_taken_case_insensitive(self, group, member_user):
        result = GroupService.create_group(name="engineering", creator=member_user)

        assert result.success is False
        assert result.error_code == "GROUP_NAME_EXISTS"

    def test_blank_name(self, owner_user):
        """
        A blank name is refused before anything is written.

        Why it matters: Groups must be addressable by a real name.
        """
        result = GroupService.create_group(name="   ", creator=owner_user)

        assert result.error_code == "VALIDATION_ERROR"
        assert "name" in result.errors
        assert not Group.objects.filter(created_by=owner_user).exists()

    def test_name_too_long(self, owner_user):
        result = GroupService.create_group(name="x" * 101, creator=owner_user)

        assert result.error_code == "VALIDATION_ERROR"

    def test_name_availability(self, group):
        assert GroupService.check_group_name_availability("ENGINEERING") is False
        assert GroupService.check_group_name_availability("Marketing") is True
        assert GroupService.check_group_name_availability(
            "Engineering", exclude_group_id=group.pk
        ) is True


class TestGroupInfo:
    """Tests for get_group_info() and list_user_groups()."""

    def test_member_sees_details(self, group, member_user):
        result = GroupService.get_group_info(group_id=group.pk, user=member_user)

        assert result.success is True
        assert result.data.member_count == 3
        assert result.data.creator_name == "Ada"
        assert result.data.my_role == MemberRole.MEMBER

    def test_outsider_refused(self, group, outsider):
        result = GroupService.get_group_info(group_id=group.pk, user=outsider)

        assert result.error_code == "NOT_MEMBER"

    def test_unknown_group(self, member_user):
        result = GroupService.get_group_info(group_id=uuid.uuid4(), user=member_user)

        assert result.error_code == "GROUP_NOT_FOUND"

    def test_list_user_groups(self, group, solo_group, owner_user, member_user):
        owned = {g.name: g.member_count for g in GroupService.list_user_groups(owner_user)}

        assert owned == {"Engineering": 3, "Solo": 1}
        assert [g.name for g in GroupService.list_user_groups(member_user)] == ["Engineering"]


class TestUpdateGroup:
    """Tests for GroupService.update_group()."""

    def test_any_member_renames(self, group, member_user):
        """
        Renaming is open to every member and leaves a trace in history.

        Why it matters: Members need to see who changed the name.
        """
        result = GroupService.update_group(group_id=group.pk, user=member_user, name="Platform")

        assert result.success is True
        group.refresh_from_db()
        assert group.name == "Platform"
        assert system_messages(group) == ['Linus changed the group name to "Platform"']

    def test_description_only_adds_no_system_message(self, group, member_user):
        GroupService.update_group(group_id=group.pk, user=member_user, description="Builders")

        group.refresh_from_db()
        assert group.description == "Builders"
        assert system_messages(group) == []

    def test_rename_to_taken_name(self, group, solo_group, owner_user):
        result = GroupService.update_group(group_id=group.pk, user=owner_user, name="solo")

        assert result.error_code == "GROUP_NAME_EXISTS"

    def test_blank_name(self, group, owner_user):
        result = GroupService.update_group(group_id=group.pk, user=owner_user, name=" ")

        assert result.error_code == "VALIDATION_ERROR"

    def test_outsider_refused(self, group, outsider):
        result = GroupService.update_group(group_id=group.pk, user=outsider, name="Mine")

        assert result.error_code == "NOT_MEMBER"


class TestTransferAdmin:
    """Tests for GroupService.transfer_admin()."""

    def test_owner_transfers(self, group, owner_user, member_user):
        result = GroupService.transfer_admin(
            group_id=group.pk, user=owner_user, new_owner_id=member_user.pk
        )

        assert result.success is True
        group.refresh_from_db()
        assert group.created_by == member_user
        assert role_of(group, member_user) == MemberRole.ADMIN
        assert role_of(group, owner_user) == MemberRole.MEMBER
        assert system_messages(group) == ["Ada transferred ownership to Linus"]

    def test_admin_cannot_transfer(self, group, admin_user, member_user):
        result = GroupService.transfer_admin(
            group_id=group.pk, user=admin_user, new_owner_id=member_user.pk
        )

        assert result.error_code == "NOT_OWNER"

    def test_transfer_to_self(self, group, owner_user):
        result = GroupService.transfer_admin(
            group_id=group.pk, user=owner_user, new_owner_id=owner_user.pk
        )

        assert result.error_code == "INVALID_SUCCESSOR"

    def test_transfer_to_non_member(self, group, owner_user, outsider):
        result = GroupService.transfer_admin(
            group_id=group.pk, user=owner_user, new_owner_id=outsider.pk
        )

        assert result.error_code == "MEMBER_NOT_FOUND"
        group.refresh_from_db()
        assert group.created_by == owner_user


class TestDeleteGroup:
    """Tests for GroupService.delete_group()."""

    def test_owner_deletes_everything(self, group, owner_user, member_user):
        MentionFactory(message=GroupMessageFactory(group=group), mentioned_user=member_user)

        result = GroupService.delete_group(group_id=group.pk, user=owner_user)

        assert result.success is True
        assert not Group.objects.filter(pk=group.pk).exists()
        assert not Member.objects.filter(group_id=group.pk).exists()
        assert not Mention.objects.exists()

    def test_admin_cannot_delete(self, group, admin_user):
        result = GroupService.delete_group(group_id=group.pk, user=admin_user)

        assert result.error_code == "NOT_OWNER"
        assert Group.objects.filter(pk=group.pk).exists()


# =============================================================================
# TestMembershipService
# =============================================================================


class TestAddUserToGroup:
    """
    Tests for MembershipService.add_user_to_group_with_check().

    Verifies:
    - Connected targets are added immediately
    - Everyone else gets an invitation and no membership
    - Duplicate adds and invitations are refused
    """

    def test_connected_user_added_directly(self, group, owner_user, outsider, connect):
        connect(owner_user, outsider)

        result = MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email="margaret@example.com", user=owner_user
        )

        assert result.success is True
        assert result.data["auto_added"] is True
        assert result.data["requires_acceptance"] is False
        assert result.data["member"].user == outsider
        assert role_of(group, outsider) == MemberRole.MEMBER
        assert system_messages(group) == ["Ada added Margaret"]

        notification = Notification.objects.get(recipient=outsider)
        assert notification.notification_type == NotificationKind.GROUP_INVITE
        assert notification.data["auto_added"] is True

    def test_unconnected_user_invited(self, group, member_user, outsider):
        """
        Strangers are invited, not added.

        Why it matters: Nobody should find themselves in a group of
        strangers without agreeing to it.
        """
        result = MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email="Margaret@Example.com", user=member_user
        )

        assert result.data == {"auto_added": False, "requires_acceptance": True, "member": None}
        assert not Member.objects.filter(group=group, user=outsider).exists()
        assert NotificationService.pending_group_invitations(outsider, group.pk).count() == 1
        assert system_messages(group) == []

    def test_second_invitation_refused(self, group, owner_user, outsider):
        MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email=outsider.email, user=owner_user
        )

        result = MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email=outsider.email, user=owner_user
        )

        assert result.error_code == "INVITATION_PENDING"

    def test_unknown_email(self, group, owner_user):
        result = MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email="nobody@example.com", user=owner_user
        )

        assert result.error_code == "USER_NOT_FOUND"
        assert result.errors == {"user_exists": [False]}

    def test_already_member(self, group, owner_user, member_user):
        result = MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email=member_user.email, user=owner_user
        )

        assert result.error_code == "ALREADY_MEMBER"

    def test_non_member_cannot_add(self, group, outsider, member_user):
        result = MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email=member_user.email, user=outsider
        )

        assert result.error_code == "NOT_MEMBER"

    def test_unknown_group(self, owner_user, outsider):
        result = MembershipService.add_user_to_group_with_check(
            group_id=uuid.uuid4(), target_email=outsider.email, user=owner_user
        )

        assert result.error_code == "GROUP_NOT_FOUND"


class TestInvitations:
    """Tests for accept_group_invitation() / reject_group_invitation()."""

    @pytest.fixture
    def invited(self, group, owner_user, outsider):
        MembershipService.add_user_to_group_with_check(
            group_id=group.pk, target_email=outsider.email, user=owner_user
        )
        return outsider

    def test_accept_joins_group(self, group, invited):
        result = MembershipService.accept_group_invitation(group_id=group.pk, user=invited)

        assert result.success is True
        assert role_of(group, invited) == MemberRole.MEMBER
        assert system_messages(group) == ["Margaret joined the group"]
        assert not NotificationService.pending_group_invitations(invited, group.pk).exists()

    def test_accept_twice_is_harmless(self, group, invited):
        MembershipService.accept_group_invitation(group_id=group.pk, user=invited)

        result = MembershipService.accept_group_invitation(group_id=group.pk, user=invited)

        assert result.success is True
        assert Member.objects.filter(group=group, user=invited).count() == 1

    def test_accept_without_invitation(self, group, outsider):
        result = MembershipService.accept_group_invitation(group_id=group.pk, user=outsider)

        assert result.error_code == "NO_INVITATION"

    def test_accept_for_deleted_group(self, invited):
        result = MembershipService.accept_group_invitation(group_id=uuid.uuid4(), user=invited)

        assert result.error_code == "GROUP_NOT_FOUND"

    def test_reject_closes_invitation(self, group, invited):
        result = MembershipService.reject_group_invitation(group_id=group.pk, user=invited)

        assert result.success is True
        assert result.data == 1
        assert not Member.objects.filter(group=group, user=invited).exists()
        notification = Notification.objects.get(recipient=invited)
        assert notification.is_read is True
        assert notification.data["rejected"] is True

    def test_reject_without_invitation(self, group, outsider):
        result = MembershipService.reject_group_invitation(group_id=group.pk, user=outsider)

        assert result.error_code == "NO_INVITATION"


class TestLeaveGroup:
    """
    Tests for MembershipService.leave_group().

    Verifies:
    - Sole member leaving deletes the group
    - Owner leaving hands ownership over (nominee, oldest admin, oldest member)
    - Plain members simply leave
    """

    def test_sole_member_deletes_group(self, solo_group, owner_user):
        result = MembershipService.leave_group(group_id=solo_group.pk, user=owner_user)

        assert result.data == {"action": "group_deleted", "new_owner_id": None}
        assert not Group.objects.filter(pk=solo_group.pk).exists()

    def test_owner_hands_over_to_oldest_admin(self, group, owner_user, admin_user):
        """
        Without a nominee the oldest remaining admin becomes owner.

        Why it matters: A group must never be left without an owner.
        """
        result = MembershipService.leave_group(group_id=group.pk, user=owner_user)

        assert result.data == {"action": "left_group", "new_owner_id": admin_user.pk}
        group.refresh_from_db()
        assert group.created_by == admin_user
        assert not Member.objects.filter(group=group, user=owner_user).exists()
        assert system_messages(group) == ["Grace is now the group owner", "Ada left the group"]

    def test_owner_hands_over_to_oldest_member_without_admins(
        self, owner_user, member_user, outsider
    ):
        group = GroupFactory(created_by=owner_user)
        Member.objects.create(group=group, user=member_user, joined_at=minutes_ago(5))
        Member.objects.create(group=group, user=outsider)

        result = MembershipService.leave_group(group_id=group.pk, user=owner_user)

        assert result.data["new_owner_id"] == member_user.pk
        assert role_of(group, member_user) == MemberRole.ADMIN

    def test_owner_nominates_successor(self, group, owner_user, member_user):
        result = MembershipService.leave_group(
            group_id=group.pk, user=owner_user, successor_id=member_user.pk
        )

        assert result.data["new_owner_id"] == member_user.pk
        group.refresh_from_db()
        assert group.created_by == member_user
        assert role_of(group, member_user) == MemberRole.ADMIN

    def test_nominee_must_be_member(self, group, owner_user, outsider):
        result = MembershipService.leave_group(
            group_id=group.pk, user=owner_user, successor_id=outsider.pk
        )

        assert result.error_code == "INVALID_SUCCESSOR"
        assert Member.objects.filter(group=group, user=owner_user).exists()

    def test_admin_leaves_without_ownership_change(self, group, owner_user, admin_user):
        result = MembershipService.leave_group(group_id=group.pk, user=admin_user)

        assert result.data == {"action": "left_group", "new_owner_id": None}
        group.refresh_from_db()
        assert group.created_by == owner_user

    def test_admin_nominee_promoted(self, group, admin_user, member_user):
        MembershipService.leave_group(
            group_id=group.pk, user=admin_user, successor_id=member_user.pk
        )

        assert role_of(group, member_user) == MemberRole.ADMIN

    def test_plain_member_leaves(self, group, member_user):
        result = MembershipService.leave_group(group_id=group.pk, user=member_user)

        assert result.data["action"] == "left_group"
        assert system_messages(group) == ["Linus left the group"]
        last = GroupMessage.objects.filter(group=group).first()
        assert last.system_event["event"] == SystemMessageEvent.MEMBER_LEFT

    def test_plain_member_nominee_ignored(self, group, member_user, admin_user):
        MembershipService.leave_group(
            group_id=group.pk, user=member_user, successor_id=admin_user.pk
        )

        group.refresh_from_db()
        assert role_of(group, admin_user) == MemberRole.ADMIN
        assert group.created_by.email == "ada@example.com"

    def test_outsider_cannot_leave(self, group, outsider):
        result = MembershipService.leave_group(group_id=group.pk, user=outsider)

        assert result.error_code == "NOT_MEMBER"

    def test_departure_published_once(self, group, member_user):
        """
        The leaver hears about their own departure through the group channel only.

        Why it matters: Their socket is still subscribed to the group, so a
        second copy on the user channel would arrive as a duplicate.
        """
        with patch("chat.services.publish_to_group") as to_group, patch(
            "chat.services.publish_to_user"
        ) as to_user:
            MembershipService.leave_group(group_id=group.pk, user=member_user)

        departures = [c.args for c in to_group.call_args_list if c.args[1] == "group.member_left"]
        payload = {"group_id": group.pk, "user_id": member_user.pk, "new_owner_id": None}
        assert departures == [(group.pk, "group.member_left", payload)]
        to_user.assert_not_called()


class TestRemoveMember:
    """Tests for MembershipService.remove_member()."""

    def test_owner_removes_admin(self, group, owner_user, admin_user):
        result = MembershipService.remove_member(
            group_id=group.pk, user=owner_user, target_user_id=admin_user.pk
        )

        assert result.success is True
        assert not Member.objects.filter(group=group, user=admin_user).exists()
        assert system_messages(group) == ["Ada removed Grace"]

    def test_admin_removes_plain_member(self, group, admin_user, member_user):
        result = MembershipService.remove_member(
            group_id=group.pk, user=admin_user, target_user_id=member_user.pk
        )

        assert result.success is True

    def test_removal_published_once(self, group, owner_user, member_user):
        with patch("chat.services.publish_to_group") as to_group, patch(
            "chat.services.publish_to_user"
        ) as to_user:
            MembershipService.remove_member(
                group_id=group.pk, user=owner_user, target_user_id=member_user.pk
            )

        departures = [c.args for c in to_group.call_args_list if c.args[1] == "group.member_left"]
        payload = {"group_id": group.pk, "user_id": member_user.pk, "new_owner_id": None}
        assert departures == [(group.pk, "group.member_left", payload)]
        to_user.assert_not_called()

    def test_admin_cannot_remove_owner(self, group, admin_user, owner_user):
        result = MembershipService.remove_member(
            group_id=group.pk, user=admin_user, target_user_id=owner_user.pk
        )

        assert result.error_code == "FORBIDDEN"

    def test_member_cannot_remove(self, group, member_user, admin_user):
        result = MembershipService.remove_member(
            group_id=group.pk, user=member_user, target_user_id=admin_user.pk
        )

        assert result.error_code == "FORBIDDEN"

    def test_cannot_remove_self(self, group, owner_user):
        result = MembershipService.remove_member(
            group_id=group.pk, user=owner_user, target_user_id=owner_user.pk
        )

        assert result.error_code == "FORBIDDEN"

    def test_target_not_member(self, group, owner_user, outsider):
        result = MembershipService.remove_member(
            group_id=group.pk, user=owner_user, target_user_id=outsider.pk
        )

        assert result.error_code == "MEMBER_NOT_FOUND"


class TestChangeRole:
    """Tests for MembershipService.change_role()."""

    def test_owner_promotes(self, group, owner_user, member_user):
        result = MembershipService.change_role(
            group_id=group.pk, user=owner_user, target_user_id=member_user.pk, role="admin"
        )

        assert result.success is True
        assert role_of(group, member_user) == MemberRole.ADMIN
        assert system_messages(group) == ["Ada made Linus an admin"]

    def test_owner_demotes(self, group, owner_user, admin_user):
        MembershipService.change_role(
            group_id=group.pk, user=owner_user, target_user_id=admin_user.pk, role="member"
        )

        assert role_of(group, admin_user) == MemberRole.MEMBER
        assert system_messages(group) == ["Ada removed admin rights from Grace"]

    def test_same_role_is_noop(self, group, owner_user, admin_user):
        result = MembershipService.change_role(
            group_id=group.pk, user=owner_user, target_user_id=admin_user.pk, role="admin"
        )

        assert result.success is True
        assert system_messages(group) == []

    def test_admin_cannot_change_roles(self, group, admin_user, member_user):
        result = MembershipService.change_role(
            group_id=group.pk, user=admin_user, target_user_id=member_user.pk, role="admin"
        )

        assert result.error_code == "NOT_OWNER"

    def test_owner_role_cannot_change(self, group, owner_user):
        result = MembershipService.change_role(
            group_id=group.pk, user=owner_user, target_user_id=owner_user.pk, role="member"
        )

        assert result.error_code == "FORBIDDEN"

    def test_invalid_role(self, group, owner_user, member_user):
        result = MembershipService.change_role(
            group_id=group.pk, user=owner_user, target_user_id=member_user.pk, role="owner"
        )

        assert result.error_code == "VALIDATION_ERROR"

    def test_target_not_member(self, group, owner_user, outsider):
        result = MembershipService.change_role(
            group_id=group.pk, user=owner_user, target_user_id=outsider.pk, role="admin"
        )

        assert result.error_code == "MEMBER_NOT_FOUND"


class TestListMembers:
    """Tests for MembershipService.list_members()."""

    def test_member_sees_roster(self, group, member_user):
        result = MembershipService.list_members(group_id=group.pk, user=member_user)

        assert {m.user.email for m in result.data} == {
            "ada@example.com",
            "grace@example.com",
            "linus@example.com",
        }

    def test_outsider_refused(self, group, outsider):
        result = MembershipService.list_members(group_id=group.pk, user=outsider)

        assert result.error_code == "NOT_MEMBER"


# =============================================================================
# TestDirectMessageService
# =============================================================================


class TestSendDirectMessage:
    """Tests for DirectMessageService.send_message()."""

    def test_send(self, owner_user, outsider):
        result = DirectMessageService.send_message(
            sender=owner_user, receiver_id=outsider.pk, content="hello"
        )

        assert result.success is True
        assert result.data.receiver == outsider
        assert result.data.delivered_at is None

    def test_to_self(self, owner_user):
        result = DirectMessageService.send_message(
            sender=owner_user, receiver_id=owner_user.pk, content="me"
        )

        assert result.error_code == "VALIDATION_ERROR"

    def test_empty_content(self, owner_user, outsider):
        result = DirectMessageService.send_message(
            sender=owner_user, receiver_id=outsider.pk, content="   "
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert not DirectMessage.objects.filter(sender=owner_user).exists()

    def test_file_without_text(self, owner_user, outsider):
        result = DirectMessageService.send_message(
            sender=owner_user,
            receiver_id=outsider.pk,
            message_type="file",
            file_url="https://files.example.com/roadmap.pdf",
            file_name="roadmap.pdf",
        )

        assert result.success is True

    def test_invalid_type(self, owner_user, outsider):
        result = DirectMessageService.send_message(
            sender=owner_user, receiver_id=outsider.pk, content="hi", message_type="video"
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.errors == {"message_type": ["Must be one of text, image, file."]}
        assert not DirectMessage.objects.filter(sender=owner_user).exists()

    def test_unknown_receiver(self, owner_user):
        result = DirectMessageService.send_message(
            sender=owner_user, receiver_id=999999, content="hi"
        )

        assert result.error_code == "USER_NOT_FOUND"

    def test_connection_required_when_configured(self, settings, owner_user, outsider, connect):
        settings.CHAT_REQUIRE_CONNECTION_FOR_DIRECT_MESSAGES = True

        refused = DirectMessageService.send_message(
            sender=owner_user, receiver_id=outsider.pk, content="hi"
        )
        connect(outsider, owner_user)
        allowed = DirectMessageService.send_message(
            sender=owner_user, receiver_id=outsider.pk, content="hi"
        )

        assert refused.error_code == "NOT_CONNECTED"
        assert allowed.success is True


class TestDeleteDirectMessage:
    """
    Tests for DirectMessageService.delete_message_for_user().

    Verifies:
    - Delete-for-me only hides the caller's copy
    - Delete-for-everyone requires the sender within the window
    - Otherwise delete-for-everyone degrades to delete-for-me
    """

    def test_receiver_deletes_for_self(self, db):
        message = DirectMessageFactory()

        result = DirectMessageService.delete_message_for_user(message.pk, message.receiver)

        assert result.data == {"deleted_for_everyone": False}
        message.refresh_from_db()
        assert message.deleted_for_receiver is True
        assert message.is_visible_to(message.sender) is True

    def test_sender_deletes_for_everyone_within_window(self, db):
        message = DirectMessageFactory()

        result = DirectMessageService.delete_message_for_user(
            message.pk, message.sender, for_everyone=True
        )

        assert result.data == {"deleted_for_everyone": True}
        message.refresh_from_db()
        assert message.deleted_for_everyone is True

    def test_window_expired_falls_back(self, db):
        """
        After the window, delete-for-everyone only hides the sender's copy.

        Why it matters: The receiver may already have relied on the message.
        """
        message = DirectMessageFactory(timestamp=minutes_ago(5))

        result = DirectMessageService.delete_message_for_user(
            message.pk, message.sender, for_everyone=True
        )

        assert result.data == {"deleted_for_everyone": False}
        message.refresh_from_db()
        assert message.deleted_for_everyone is False
        assert message.deleted_for_sender is True

    def test_receiver_cannot_delete_for_everyone(self, db):
        message = DirectMessageFactory()

        result = DirectMessageService.delete_message_for_user(
            message.pk, message.receiver, for_everyone=True
        )

        assert result.data == {"deleted_for_everyone": False}
        message.refresh_from_db()
        assert message.deleted_for_receiver is True
        assert message.deleted_for_everyone is False

    def test_outsider(self, db):
        message = DirectMessageFactory()

        result = DirectMessageService.delete_message_for_user(message.pk, UserFactory())

        assert result.error_code == "MESSAGE_NOT_FOUND"


class TestDirectReceipts:
    """Tests for mark_messages_delivered / mark_messages_read / clear."""

    def test_delivered_once(self, owner_user, outsider):
        message = DirectMessageFactory(sender=owner_user, receiver=outsider)

        assert DirectMessageService.mark_messages_delivered(outsider, owner_user.pk) == 1
        first = DirectMessage.objects.get(pk=message.pk).delivered_at
        assert DirectMessageService.mark_messages_delivered(outsider, owner_user.pk) == 0
        assert DirectMessage.objects.get(pk=message.pk).delivered_at == first

    def test_read_sets_missing_delivery(self, owner_user, outsider):
        message = DirectMessageFactory(sender=owner_user, receiver=outsider)

        assert DirectMessageService.mark_messages_read(outsider, owner_user.pk) == 1

        message.refresh_from_db()
        assert message.read_at is not None
        assert message.delivered_at == message.read_at

    def test_sender_cannot_acknowledge_own_messages(self, owner_user, outsider):
        DirectMessageFactory(sender=owner_user, receiver=outsider)

        assert DirectMessageService.mark_messages_read(owner_user, outsider.pk) == 0

    def test_hidden_messages_not_acknowledged(self, owner_user, outsider):
        DirectMessageFactory(sender=owner_user, receiver=outsider, deleted_for_receiver=True)

        assert DirectMessageService.mark_messages_delivered(outsider, owner_user.pk) == 0

    def test_clear_conversation_hides_for_caller_only(self, owner_user, outsider):
        DirectMessageFactory(sender=owner_user, receiver=outsider)
        DirectMessageFactory(sender=outsider, receiver=owner_user)

        assert DirectMessageService.clear_conversation_for_user(owner_user, outsider.pk) == 2

        assert not DirectMessageService.get_conversation(owner_user, outsider.pk).exists()
        assert DirectMessageService.get_conversation(outsider, owner_user.pk).count() == 2


# =============================================================================
# TestGroupMessageService
# =============================================================================


class TestSendGroupMessage:
    """Tests for send_group_message_with_mentions() outside of mentions."""

    def test_member_sends(self, group, member_user):
        result = GroupMessageService.send_group_message_with_mentions(
            group_id=group.pk, user=member_user, content="hi all"
        )

        assert result.success is True
        assert result.data.author_kind == AuthorKind.USER
        assert result.data.sender == member_user

    def test_outsider_refused(self, group, outsider):
        result = GroupMessageService.send_group_message_with_mentions(
            group_id=group.pk, user=outsider, content="let me in"
        )

        assert result.error_code == "NOT_MEMBER"

    def test_empty_content(self, group, member_user):
        result = GroupMessageService.send_group_message_with_mentions(
            group_id=group.pk, user=member_user, content=""
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert not GroupMessage.objects.filter(group=group, sender=member_user).exists()


class TestDeleteGroupMessage:
    """Tests for group message deletion."""

    def test_sender_deletes_for_everyone(self, group, member_user):
        message = GroupMessageFactory(group=group, sender=member_user)

        result = GroupMessageService.delete_group_message_for_everyone(message.pk, member_user)

        assert result.data == {"deleted_for_everyone": True}
        result = GroupMessageService.get_group_messages(group_id=group.pk, user=member_user)
        assert not result.data.exists()

    def test_expired_window_falls_back(self, group, member_user, owner_user):
        message = GroupMessageFactory(group=group, sender=member_user, timestamp=minutes_ago(5))

        result = GroupMessageService.delete_group_message_for_everyone(message.pk, member_user)

        assert result.data == {"deleted_for_everyone": False}
        assert GroupMessageDeletion.objects.filter(message=message, user=member_user).exists()
        visible = GroupMessageService.get_group_messages(group_id=group.pk, user=owner_user)
        assert list(visible.data) == [message]

    def test_other_member_falls_back(self, group, member_user, owner_user):
        message = GroupMessageFactory(group=group, sender=owner_user)

        result = GroupMessageService.delete_group_message_for_everyone(message.pk, member_user)

        assert result.data == {"deleted_for_everyone": False}
        message.refresh_from_db()
        assert message.deleted_for_everyone is False

    def test_delete_for_me_is_idempotent(self, group, member_user):
        message = GroupMessageFactory(group=group)

        GroupMessageService.delete_group_message_for_user(message.pk, member_user)
        result = GroupMessageService.delete_group_message_for_user(message.pk, member_user)

        assert result.success is True
        assert GroupMessageDeletion.objects.filter(message=message).count() == 1

    def test_outsider_cannot_delete(self, group, outsider):
        message = GroupMessageFactory(group=group)

        result = GroupMessageService.delete_group_message_for_user(message.pk, outsider)

        assert result.error_code == "NOT_MEMBER"

    def test_unknown_message(self, member_user):
        result = GroupMessageService.delete_group_message_for_everyone(uuid.uuid4(), member_user)

        assert result.error_code == "MESSAGE_NOT_FOUND"

    def test_message_outside_given_group(self, group, solo_group, owner_user):
        """
        A message addressed through the wrong group is not found.

        Why it matters: Group-scoped URLs must not reach messages of other groups.
        """
        message = GroupMessageFactory(group=solo_group, sender=owner_user)

        for_everyone = GroupMessageService.delete_group_message_for_everyone(
            message.pk, owner_user, group_id=group.pk
        )
        for_me = GroupMessageService.delete_group_message_for_user(
            message.pk, owner_user, group_id=group.pk
        )

        assert for_everyone.error_code == "MESSAGE_NOT_FOUND"
        assert for_me.error_code == "MESSAGE_NOT_FOUND"
        message.refresh_from_db()
        assert message.deleted_for_everyone is False
        assert not GroupMessageDeletion.objects.filter(message=message).exists()


class TestGroupReceipts:
    """Tests for mark_group_messages_delivered / mark_group_messages_read."""

    def test_delivered_skips_own_messages(self, group, owner_user, member_user):
        GroupMessageFactory(group=group, sender=owner_user)
        GroupMessageFactory(group=group, sender=member_user)

        result = GroupMessageService.mark_group_messages_delivered(
            group_id=group.pk, user=member_user
        )

        assert result.data == 1

    def test_first_reader_stamps(self, group, owner_user, admin_user, member_user):
        message = GroupMessageFactory(group=group, sender=owner_user)

        GroupMessageService.mark_group_messages_read(group_id=group.pk, user=member_user)
        message.refresh_from_db()
        first_read = message.read_at
        second = GroupMessageService.mark_group_messages_read(group_id=group.pk, user=admin_user)

        assert first_read is not None
        assert message.delivered_at == first_read
        assert second.data == 0

    def test_read_marks_mentions(self, group, owner_user, member_user):
        mention = MentionFactory(
            message=GroupMessageFactory(group=group, sender=owner_user), mentioned_user=member_user
        )

        GroupMessageService.mark_group_messages_read(group_id=group.pk, user=member_user)

        mention.refresh_from_db()
        assert mention.is_read is True

    def test_outsider_refused(self, group, outsider):
        result = GroupMessageService.mark_group_messages_read(group_id=group.pk, user=outsider)

        assert result.error_code == "NOT_MEMBER"


# =============================================================================
# TestRetentionService
# =============================================================================


class TestRetentionService:
    """
    Tests for RetentionService.cleanup_deleted_messages().

    Verifies:
    - Only fully deleted messages past retention are purged
    - Half-deleted and recent messages survive
    """

    def test_purges_fully_deleted_old_messages(self, db):
        old = minutes_ago(120)
        gone = [
            DirectMessageFactory(timestamp=old, deleted_for_everyone=True),
            DirectMessageFactory(timestamp=old, deleted_for_sender=True, deleted_for_receiver=True),
        ]
        kept = [
            DirectMessageFactory(timestamp=old, deleted_for_sender=True),
            DirectMessageFactory(deleted_for_everyone=True),
            DirectMessageFactory(timestamp=old),
        ]
        old_group_message = GroupMessageFactory(timestamp=old, deleted_for_everyone=True)
        recent_group_message = GroupMessageFactory(deleted_for_everyone=True)

        removed = RetentionService.cleanup_deleted_messages()

        assert removed == 3
        assert not DirectMessage.objects.filter(pk__in=[m.pk for m in gone]).exists()
        assert DirectMessage.objects.filter(pk__in=[m.pk for m in kept]).count() == 3
        assert not GroupMessage.objects.filter(pk=old_group_message.pk).exists()
        assert GroupMessage.objects.filter(pk=recent_group_message.pk).exists()

    def test_rerun_is_noop(self, db):
        DirectMessageFactory(timestamp=minutes_ago(120), deleted_for_everyone=True)

        RetentionService.cleanup_deleted_messages()

        assert RetentionService.cleanup_deleted_messages() == 0

    def test_retention_follows_settings(self, settings, db):
        settings.CHAT_RETENTION_SECONDS = 60
        DirectMessageFactory(timestamp=minutes_ago(5), deleted_for_everyone=True)

        assert RetentionService.cleanup_deleted_messages() == 1
