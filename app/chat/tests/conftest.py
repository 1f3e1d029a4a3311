"""
Test configuration and fixtures for chat tests.

Usage:
    def test_example(alice, bob, alice_client):
        response = alice_client.get("/api/v1/chat/conversations/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from chat.identity import conversation_key
from chat.sync import ChatSyncService


@pytest.fixture
def alice(db):
    return UserFactory(handle="alice")


@pytest.fixture
def bob(db):
    return UserFactory(handle="bob")


@pytest.fixture
def carol(db):
    """A user outside the alice/bob conversation."""
    return UserFactory(handle="carol")


@pytest.fixture
def alice_bob_key(alice, bob):
    return conversation_key(alice, bob)


@pytest.fixture
def api_client():
    return APIClient()


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
def chat_sync():
    """A started ChatSyncService, stopped after the test."""
    service = ChatSyncService()
    service.start()
    yield service
    service.stop()


@pytest.fixture
def carol_client(carol):
    client = APIClient()
    client.force_authenticate(user=carol)
    return client
