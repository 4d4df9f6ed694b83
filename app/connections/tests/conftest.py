"""
Test configuration and fixtures for connection tests.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory


@pytest.fixture
def requester(db):
    """User who sends connection requests."""
    return UserFactory(email="ada@example.com", display_name="Ada")


@pytest.fixture
def receiver(db):
    """User who answers connection requests."""
    return UserFactory(email="grace@example.com", display_name="Grace")


@pytest.fixture
def outsider(db):
    """User who is party to none of the test connections."""
    return UserFactory(email="linus@example.com", display_name="Linus")


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def requester_client(requester):
    return _client_for(requester)


@pytest.fixture
def receiver_client(receiver):
    return _client_for(receiver)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)
