"""
Service-level authorization for group operations.

This module decides who may see and change group memberships. Views
perform no checks of their own; every rule below is applied by the
services in chat/services.py.

Every decision is made from at most three things:
    1. the acting user,
    2. the Group row (its ``created_by`` owner field),
    3. the actor's OWN Member row, fetched by (group, actor).

No decision scans other members' rows to find out what the actor may do,
so checking roster access can never depend on roster access.

Rules:
    - A user may always read their own membership.
    - A user may read a group's roster iff they are a member.
    - The owner may change or remove any membership except their own
      (the owner leaves through leave_group).
    - An admin may remove plain members only.
    - Only the owner may change roles.
    - A user may only create/delete their own membership through
      join (invitation acceptance) and leave.

Error Codes:
    NOT_MEMBER: Actor has no membership in the group
    NOT_OWNER: Actor is not the group owner
    FORBIDDEN: Actor is a member but lacks the standing for the action
    GROUP_NOT_FOUND: Group does not exist

Usage:
    membership = GroupAuthorization.get_membership(group, user)
    if not GroupAuthorization.can_view_roster(group, user):
        ...

    class MembershipService(BaseService):
        @classmethod
        @require_group_member()
        def leave_group(cls, group_id, user, successor_id=None, _group=None, _member=None):
            ...
"""

from __future__ import annotations

import inspect
from functools import wraps
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from chat.models import Group, Member, MemberRole
from core.services import ServiceResult

if TYPE_CHECKING:
    from authentication.models import User


T = TypeVar("T")


class GroupAuthorization:
    """
    Stateless authorization checks for groups and memberships.

    All methods are classmethods returning booleans or the actor's own
    Member row, so they compose easily in services and permission classes.
    """

    @classmethod
    def get_membership(cls, group: Group | str, user: "User") -> Optional[Member]:
        """The actor's own Member row in ``group``, or None."""
        if user is None or not user.is_authenticated:
            return None
        group_id = group.pk if isinstance(group, Group) else group
        return Member.objects.filter(group_id=group_id, user_id=user.pk).first()

    @classmethod
    def is_member(cls, group: Group | str, user: "User") -> bool:
        return cls.get_membership(group, user) is not None

    @classmethod
    def is_owner(cls, group: Group, user: "User") -> bool:
        """Decided from the group row alone."""
        return group.is_owner(user)

    @classmethod
    def can_view_membership(cls, membership: Member, user: "User") -> bool:
        """Own row always; anyone else's row iff the actor is in that group."""
        if membership.user_id == user.pk:
            return True
        return cls.is_member(membership.group_id, user)

    @classmethod
    def can_view_roster(cls, group: Group, user: "User") -> bool:
        return cls.is_member(group, user)

    @classmethod
    def can_manage_member(
        cls,
        group: Group,
        actor: "User",
        target: Member,
        actor_membership: Optional[Member] = None,
    ) -> bool:
        """
        Whether ``actor`` may remove (or otherwise manage) ``target``.

        Owner path is checked first and needs no membership lookup.
        """
        if target.user_id == actor.pk:
            # Self-service: only via leave, never via management
            return False

        if cls.is_owner(group, actor):
            return True

        if actor_membership is None:
            actor_membership = cls.get_membership(group, actor)
        if actor_membership is None or not actor_membership.is_admin:
            return False

        # Admins manage plain members only; the owner is always an admin
        return target.role == MemberRole.MEMBER

    @classmethod
    def can_change_role(cls, group: Group, actor: "User", target: Member) -> bool:
        """Role changes are owner-only and never apply to the owner's own row."""
        return cls.is_owner(group, actor) and target.user_id != actor.pk

    @classmethod
    def can_update_group(cls, group: Group, actor: "User") -> bool:
        return cls.is_owner(group, actor) or cls.is_member(group, actor)

    @classmethod
    def can_delete_group(cls, group: Group, actor: "User") -> bool:
        return cls.is_owner(group, actor)

    @classmethod
    def can_add_members(cls, group: Group, actor: "User") -> bool:
        """Any current member may add (or invite) users."""
        return cls.is_member(group, actor)


def require_group_member(
    group_id_param: str = "group_id",
    user_param: str = "user",
) -> Callable:
    """
    Decorator that requires the user to be a member of the group.

    Looks up the group and the user's own membership, then injects them as
    ``_group`` and ``_member`` kwargs to avoid repeating the queries.

    Returns:
        ServiceResult.failure with GROUP_NOT_FOUND if the group doesn't exist
        ServiceResult.failure with NOT_MEMBER if the user isn't a member
        ServiceResult.failure with INVALID_REQUEST if required params missing
    """

    def decorator(
        func: Callable[..., ServiceResult[T]],
    ) -> Callable[..., ServiceResult[T]]:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs) -> ServiceResult[T]:
            bound = signature.bind_partial(*args, **kwargs).arguments
            user = bound.get(user_param)
            group_id = bound.get(group_id_param)

            if user is None or group_id is None:
                return ServiceResult.failure(
                    "Missing required parameters",
                    error_code="INVALID_REQUEST",
                )

            group = Group.objects.filter(pk=group_id).first()
            if group is None:
                return ServiceResult.failure(
                    "Group not found",
                    error_code="GROUP_NOT_FOUND",
                )

            membership = GroupAuthorization.get_membership(group, user)
            if membership is None:
                return ServiceResult.failure(
                    "You are not a member of this group",
                    error_code="NOT_MEMBER",
                )

            kwargs["_group"] = group
            kwargs["_member"] = membership
            return func(*args, **kwargs)

        return wrapper

    return decorator
