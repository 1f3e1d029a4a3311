"""
Test configuration and fixtures for social graph tests.

Usage:
    def test_example(alice, bob, alice_client):
        response = alice_client.post(f"/api/v1/social/users/{bob.pk}/follow/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from social.services import FollowService


@pytest.fixture
def alice(db):
    return UserFactory(handle="alice", handle__first_name="Alice")


@pytest.fixture
def bob(db):
    return UserFactory(handle="bob", handle__first_name="Bob")


@pytest.fixture
def carol(db):
    return UserFactory(handle="carol", handle__first_name="Carol")


@pytest.fixture
def alice_follows_bob(alice, bob):
    """alice -> bob, accepted."""
    FollowService.follow_user(alice, bob)
    FollowService.accept_follow_request(bob, alice)


@pytest.fixture
def alice_client(alice):
    client = APIClient()
    client.force_authenticate(user=alice)
    return client


@pytest.fixture
def bob_client(bob):
    client = APIClient()
    client.force_authenticate(user=bob)
    return client


@pytest.fixture
def api_client():
    return APIClient()
