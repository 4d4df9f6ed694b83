"""
Test configuration and fixtures for authentication tests.

This module provides:
- User fixtures with and without display names
- API client helpers for authenticated requests

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/auth/me/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a regular user with a display name."""
    return UserFactory(email="ada@example.com", display_name="Ada")


@pytest.fixture
def other_user(db):
    """Create a second user."""
    return UserFactory(email="grace@example.com", display_name="Grace")


@pytest.fixture
def unnamed_user(db):
    """Create a user whose profile has no display name."""
    return UserFactory(email="nameless@example.com", display_name="")


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated as ``user`` with a JWT access token."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client
