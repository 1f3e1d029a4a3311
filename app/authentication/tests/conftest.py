"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/v1/users/me/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Active user with handle 'alice' and a full name."""
    return UserFactory(
        handle="alice", handle__first_name="Alice", handle__last_name="Liddell"
    )


@pytest.fixture
def other_user(db):
    """Second active user with handle 'albert'."""
    return UserFactory(handle="albert")


@pytest.fixture
def deactivated_user(db):
    """Deactivated user (is_active=False)."""
    return UserFactory(handle="ghost", is_active=False)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """DRF test client authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client
