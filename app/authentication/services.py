"""
Authentication services.

This module provides:
- ProfileService: profile bootstrap/upsert and inactive-account cleanup
- PresenceService: presence status changes and heartbeats

Related files:
    - models.py: User, Profile
    - signals.py: Calls safe_create_profile on registration
    - tasks.py: Periodic inactive-account cleanup
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.models import Profile, User
from core.realtime import publish_to_group, publish_to_users
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class ProfileService(BaseService):
    """
    Profile lifecycle operations.

    Usage:
        from authentication.services import ProfileService

        ProfileService.safe_create_profile(user, user.email, "Ada")
        profile = ProfileService.ensure_profile_exists(user, user.email)
        deleted = ProfileService.cleanup_inactive_accounts()
    """

    @classmethod
    def safe_create_profile(cls, user: User, email: str, display_name: str = "") -> bool:
        """
        Idempotent profile bootstrap.

        Returns True when the profile already exists, was created, or was
        created concurrently by someone else. Any other fault is logged and
        reported as False; this method never raises.
        """
        try:
            if Profile.objects.filter(user_id=user.pk).exists():
                return True

            # Savepoint so a unique race does not poison an outer transaction
            with transaction.atomic():
                Profile.objects.create(
                    user=user,
                    display_name=(display_name or "").strip(),
                    status=Profile.Status.OFFLINE,
                    last_active=timezone.now(),
                )
        except IntegrityError:
            cls.get_logger().debug(f"Profile for user {user.pk} created concurrently")
            return True
        except Exception:
            cls.get_logger().exception(
                f"Error creating profile for user {user.pk} ({email})"
            )
            return False

        cls.get_logger().info(f"Created profile for user {user.pk}")
        return True

    @classmethod
    def ensure_profile_exists(
        cls, user: User, email: str, display_name: str = ""
    ) -> Profile:
        """
        Upsert the user's profile and return it.

        Updates the account email when it changed, the display name only when
        a non-empty one is supplied, and always refreshes ``last_active``.
        """
        display_name = (display_name or "").strip()
        now = timezone.now()

        with cls.atomic():
            if email and email != user.email:
                user.email = User.objects.normalize_email(email)
                user.save(update_fields=["email", "updated_at"])

            profile, created = Profile.objects.select_for_update().get_or_create(
                user=user,
                defaults={
                    "display_name": display_name,
                    "status": Profile.Status.OFFLINE,
                    "last_active": now,
                },
            )
            if not created:
                update_fields = ["last_active", "updated_at"]
                profile.last_active = now
                if display_name:
                    profile.display_name = display_name
                    update_fields.append("display_name")
                profile.save(update_fields=update_fields)

        return profile

    @classmethod
    def update_profile(
        cls,
        user: User,
        display_name: str | None = None,
        avatar_url: str | None = None,
    ) -> ServiceResult[Profile]:
        """Change the user's own display name and/or avatar."""
        profile = cls.ensure_profile_exists(user, user.email)
        update_fields = ["updated_at"]

        if display_name is not None:
            if not display_name.strip():
                return ServiceResult.failure(
                    "Display name cannot be empty",
                    error_code="VALIDATION_ERROR",
                    errors={"display_name": ["This field may not be blank."]},
                )
            profile.display_name = display_name.strip()
            update_fields.append("display_name")

        if avatar_url is not None:
            profile.avatar_url = avatar_url or None
            update_fields.append("avatar_url")

        profile.save(update_fields=update_fields)
        return ServiceResult.success(profile)

    @classmethod
    def cleanup_inactive_accounts(cls, days: int | None = None) -> int:
        """
        Delete accounts that are offline and inactive for more than ``days``.

        Deleting the user cascades to every owned row; group ownership is
        handed over first by the chat app's pre_delete handler.

        Returns:
            Number of accounts deleted
        """
        if days is None:
            days = settings.ACCOUNT_INACTIVITY_DAYS
        cutoff = timezone.now() - timedelta(days=days)

        inactive_users = User.objects.filter(
            profile__status=Profile.Status.OFFLINE,
            profile__last_active__lt=cutoff,
        )

        deleted = 0
        for user in inactive_users.iterator():
            with cls.atomic():
                user.delete()
            deleted += 1
            cls.get_logger().info(f"Deleted inactive account {user.pk} ({user.email})")

        cls.get_logger().info(f"Inactive account cleanup removed {deleted} accounts")
        return deleted


class PresenceService(BaseService):
    """
    Presence capability for the external heartbeat collaborator.

    The only invariant is that status is always one of Profile.Status.
    Changes are broadcast to the user's connections and groups.
    """

    @classmethod
    def set_status(cls, user: User, status: str) -> ServiceResult[Profile]:
        """Set the user's presence status and touch last_active."""
        if status not in Profile.Status.values:
            return ServiceResult.failure(
                f"Invalid status '{status}'",
                error_code="INVALID_STATUS",
                errors={"status": [f"Must be one of {', '.join(Profile.Status.values)}."]},
            )

        profile = ProfileService.ensure_profile_exists(user, user.email)
        previous = profile.status
        profile.status = status
        profile.save(update_fields=["status", "updated_at"])

        if previous != status:
            cls._broadcast(profile)
            cls.get_logger().debug(f"User {user.pk} is now {status}")

        return ServiceResult.success(profile)

    @classmethod
    def heartbeat(cls, user: User) -> ServiceResult[Profile]:
        """A heartbeat means the client is visible: online, active now."""
        return cls.set_status(user, Profile.Status.ONLINE)

    @classmethod
    def get_status(cls, user_id) -> ServiceResult[dict[str, Any]]:
        profile = Profile.objects.filter(user_id=user_id).first()
        if profile is None:
            return ServiceResult.failure("User not found", error_code="USER_NOT_FOUND")

        return ServiceResult.success(cls._presence_payload(profile))

    @staticmethod
    def _presence_payload(profile: Profile) -> dict[str, Any]:
        return {
            "user_id": profile.user_id,
            "status": profile.status,
            "last_active": profile.last_active,
        }

    @classmethod
    def _broadcast(cls, profile: Profile) -> None:
        from connections.services import ConnectionService

        payload = cls._presence_payload(profile)
        publish_to_users(
            ConnectionService.get_connected_user_ids(profile.user),
            "presence.changed",
            payload,
        )
        group_ids = profile.user.group_memberships.values_list("group_id", flat=True)
        for group_id in group_ids:
            publish_to_group(group_id, "presence.changed", payload)
