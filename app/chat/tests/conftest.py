"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures with different group roles
- A group with owner, admin and plain member
- API client helpers for authenticated requests

Usage:
    def test_example(group, owner_client):
        response = owner_client.get(f'/api/v1/chat/groups/{group.id}/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from chat.models import MemberRole
from chat.tests.factories import GroupFactory, MemberFactory
from connections.tests.factories import AcceptedConnectionFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def owner_user(db):
    """User who owns the test group."""
    return UserFactory(email="ada@example.com", display_name="Ada")


@pytest.fixture
def admin_user(db):
    """Admin (not owner) of the test group."""
    return UserFactory(email="grace@example.com", display_name="Grace")


@pytest.fixture
def member_user(db):
    """Plain member of the test group."""
    return UserFactory(email="linus@example.com", display_name="Linus")


@pytest.fixture
def outsider(db):
    """User who is not in the test group."""
    return UserFactory(email="margaret@example.com", display_name="Margaret")


# =============================================================================
# Group Fixtures
# =============================================================================


@pytest.fixture
def group(db, owner_user, admin_user, member_user):
    """
    Group with owner (admin), admin and plain member.

    Members join in that order, so the admin is the oldest non-owner.
    """
    group = GroupFactory(name="Engineering", created_by=owner_user)
    MemberFactory(group=group, user=admin_user, role=MemberRole.ADMIN)
    MemberFactory(group=group, user=member_user, role=MemberRole.MEMBER)
    return group


@pytest.fixture
def solo_group(db, owner_user):
    """Group whose owner is its only member."""
    return GroupFactory(name="Solo", created_by=owner_user)


@pytest.fixture
def connect():
    """Return a helper that creates an accepted connection between two users."""

    def _connect(user_a, user_b):
        return AcceptedConnectionFactory(requester=user_a, receiver=user_b)

    return _connect


# =============================================================================
# API Client Fixtures
# =============================================================================


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def owner_client(owner_user):
    return client_for(owner_user)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def member_client(member_user):
    return client_for(member_user)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)
