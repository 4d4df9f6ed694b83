"""
Tests for UserManager.

The UserManager provides:
- create_user(): Regular users, with the display name handed to the
  profile signal
- create_superuser(): Admin users with elevated privileges
- get_by_email(): Case-insensitive lookup used when adding group members

Related files:
    - managers.py: Implementation under test
    - signals.py: Consumes the display name passed to create_user()
"""

import pytest

from authentication.models import User


class TestCreateUser:
    """Tests for UserManager.create_user()."""

    def test_creates_user_with_hashed_password(self, db):
        """
        Password is stored hashed, never in plain text.

        Why it matters: A leaked database must not leak credentials.
        """
        user = User.objects.create_user(email="ada@example.com", password="s3cret-Pass")

        assert user.password != "s3cret-Pass"
        assert user.check_password("s3cret-Pass") is True

    def test_normalizes_email_domain(self, db):
        """Domain part of the email is lower-cased."""
        user = User.objects.create_user(email="ada@EXAMPLE.COM", password="x")

        assert user.email == "ada@example.com"

    def test_missing_email_raises(self, db):
        """Email is the login identifier and must be set."""
        with pytest.raises(ValueError, match="Email"):
            User.objects.create_user(email="", password="x")

    def test_without_password_sets_unusable_password(self, db):
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_display_name_bootstraps_profile(self, db):
        """
        display_name passed to create_user ends up on the profile.

        Why it matters: Registration supplies the name once; the profile is
        created by a signal and must pick it up.
        """
        user = User.objects.create_user(
            email="ada@example.com", password="x", display_name="Ada"
        )

        assert user.profile.display_name == "Ada"

    def test_defaults_are_regular_user(self, db):
        user = User.objects.create_user(email="ada@example.com", password="x")

        assert user.is_active is True
        assert user.is_staff is False
        assert user.is_superuser is False


class TestCreateSuperuser:
    """Tests for UserManager.create_superuser()."""

    def test_creates_staff_superuser(self, db):
        admin = User.objects.create_superuser(email="root@example.com", password="x")

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_rejects_is_staff_false(self, db):
        with pytest.raises(ValueError, match="is_staff"):
            User.objects.create_superuser(
                email="root@example.com", password="x", is_staff=False
            )

    def test_rejects_is_superuser_false(self, db):
        with pytest.raises(ValueError, match="is_superuser"):
            User.objects.create_superuser(
                email="root@example.com", password="x", is_superuser=False
            )


class TestGetByEmail:
    """Tests for UserManager.get_by_email()."""

    def test_lookup_is_case_insensitive(self, db):
        """
        Any capitalisation of an address finds the account.

        Why it matters: People type addresses inconsistently when adding
        someone to a group.
        """
        user = User.objects.create_user(email="ada@example.com", password="x")

        assert User.objects.get_by_email("ADA@Example.com") == user

    def test_strips_surrounding_whitespace(self, db):
        user = User.objects.create_user(email="ada@example.com", password="x")

        assert User.objects.get_by_email("  ada@example.com ") == user

    def test_unknown_email_raises_does_not_exist(self, db):
        with pytest.raises(User.DoesNotExist):
            User.objects.get_by_email("nobody@example.com")
