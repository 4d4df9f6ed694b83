"""
Test configuration and fixtures for notification tests.

This module provides:
- Recipient and actor users
- Notification fixtures (read/unread, with/without actor)
- API client helpers for authenticated requests

Usage:
    def test_example(user, unread_notification, authenticated_client):
        response = authenticated_client.get('/api/v1/notifications/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from notifications.tests.factories import NotificationFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Notification recipient."""
    return UserFactory(display_name="Ada")


@pytest.fixture
def other_user(db):
    """A different recipient whose notifications must stay invisible."""
    return UserFactory(display_name="Grace")


@pytest.fixture
def actor(db):
    """User who triggers notifications."""
    return UserFactory(display_name="Linus")


# =============================================================================
# Notification Fixtures
# =============================================================================


@pytest.fixture
def unread_notification(user, actor):
    return NotificationFactory(recipient=user, actor=actor)


@pytest.fixture
def read_notification(user):
    return NotificationFactory(recipient=user, is_read=True)


@pytest.fixture
def other_users_notification(other_user):
    return NotificationFactory(recipient=other_user)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def authenticated_client(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client
