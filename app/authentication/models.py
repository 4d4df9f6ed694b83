"""
Authentication models.

This module defines the identity models:
- User: Custom user model with email-based authentication
- Profile: Display name, avatar and presence (OneToOne with User)

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: ProfileService and PresenceService
    - signals.py: Auto-create profile on user creation

Deleting a User cascades to every row the user owns (profile, messages,
memberships, connections, notifications).
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from authentication.managers import UserManager
from core.models import BaseModel


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Display data (name, avatar, presence) is stored in the Profile model.

    Fields:
        email: Primary identifier, unique, used for login
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='ada@example.com',
            password='securepassword',
            display_name='Ada',
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    @property
    def email_local_part(self) -> str:
        """Part of the email address before the '@'."""
        return self.email.split("@")[0]

    def get_full_name(self):
        """
        Return the name shown to other users.

        Falls back to the email local part when no display name is set.
        """
        try:
            return self.profile.display_name or self.email_local_part
        except Profile.DoesNotExist:
            return self.email_local_part

    def get_short_name(self):
        return self.get_full_name()


class Profile(BaseModel):
    """
    Per-user display and presence data.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        display_name: Name shown in chats, mentions and notifications
        avatar_url: Optional avatar image location
        status: Presence, one of online/offline/away
        last_active: Last time the user was seen (heartbeat or status change)

    Note:
        Profile is created automatically via signals when a User is created.
        The inactive-account cleanup reads status and last_active.
    """

    class Status(models.TextChoices):
        """Presence states."""

        ONLINE = "online", "Online"
        OFFLINE = "offline", "Offline"
        AWAY = "away", "Away"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown to other users",
    )

    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        null=True,
        help_text="Location of the user's avatar image",
    )

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OFFLINE,
        help_text="Presence status",
    )

    last_active = models.DateTimeField(
        default=timezone.now,
        help_text="When the user was last seen",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        indexes = [
            models.Index(
                fields=["status", "last_active"],
                name="auth_profile_inactive_idx",
            ),
        ]

    def __str__(self):
        return self.display_name or str(self.user)
