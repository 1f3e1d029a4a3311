"""
Tests for the chat WebSocket consumers and JWT middleware.

Uses channels.testing.WebsocketCommunicator against the same middleware and
routing as config/asgi.py, with the in-memory channel layer. Tests are
transactional so after-commit notifications fire for real.
"""

import pytest
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from rest_framework_simplejwt.tokens import AccessToken

from chat.constants import CHANNEL_EVENTS, conversation_group_name
from chat.middleware import JWTAuthMiddleware
from chat.routing import websocket_urlpatterns
from chat.services import MessageLogService

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]

TIMEOUT = 3


@pytest.fixture
def alice_token(alice):
    return str(AccessToken.for_user(alice))


@pytest.fixture
def bob_token(bob):
    return str(AccessToken.for_user(bob))


@pytest.fixture
def carol_token(carol):
    return str(AccessToken.for_user(carol))


send_message = database_sync_to_async(MessageLogService.send_message)
append = database_sync_to_async(MessageLogService.append)


def messages_path(key, token=None):
    path = f"/ws/chat/conversations/{key}/messages/"
    return f"{path}?token={token}" if token else path


class TestJWTAuthMiddleware:
    """Authentication of WebSocket connections."""

    async def test_missing_token_rejected(self):
        communicator = WebsocketCommunicator(application, "/ws/chat/conversations/")

        connected, code = await communicator.connect()

        assert not connected
        assert code == 4001

    async def test_invalid_token_rejected(self, db):
        communicator = WebsocketCommunicator(
            application, "/ws/chat/conversations/?token=not-a-jwt"
        )

        connected, code = await communicator.connect()

        assert not connected
        assert code == 4001

    async def test_subprotocol_token_accepted(self, alice_token):
        communicator = WebsocketCommunicator(
            application, "/ws/chat/conversations/", subprotocols=["jwt", alice_token]
        )

        connected, _ = await communicator.connect()

        assert connected
        await communicator.disconnect()

    async def test_deactivated_user_rejected(self, alice, alice_token):
        alice.is_active = False
        await database_sync_to_async(alice.save)(update_fields=["is_active"])
        communicator = WebsocketCommunicator(
            application, f"/ws/chat/conversations/?token={alice_token}"
        )

        connected, code = await communicator.connect()

        assert not connected
        assert code == 4001


class TestConversationListConsumer:
    """ws/chat/conversations/"""

    async def test_sends_list_on_connect(self, alice, bob, alice_token):
        await send_message(bob, alice, "hi")
        communicator = WebsocketCommunicator(
            application, f"/ws/chat/conversations/?token={alice_token}"
        )

        connected, _ = await communicator.connect()
        payload = await communicator.receive_json_from(timeout=TIMEOUT)

        assert connected
        assert payload["type"] == "conversations"
        assert payload["unread_total"] == 1
        assert payload["conversations"][0]["other_participant_id"] == bob.pk
        assert payload["conversations"][0]["unread_count"] == 1
        await communicator.disconnect()

    async def test_pushes_list_after_new_message(self, alice, bob, alice_token):
        communicator = WebsocketCommunicator(
            application, f"/ws/chat/conversations/?token={alice_token}"
        )
        await communicator.connect()
        initial = await communicator.receive_json_from(timeout=TIMEOUT)

        await send_message(bob, alice, "hello")
        pushed = await communicator.receive_json_from(timeout=TIMEOUT)

        assert initial["conversations"] == []
        assert pushed["unread_total"] == 1
        assert pushed["conversations"][0]["last_message"]["text"] == "hello"
        await communicator.disconnect()

    async def test_client_frames_answered_with_error(self, alice_token):
        communicator = WebsocketCommunicator(
            application, f"/ws/chat/conversations/?token={alice_token}"
        )
        await communicator.connect()
        await communicator.receive_json_from(timeout=TIMEOUT)

        await communicator.send_json_to({"type": "message", "text": "hi"})
        reply = await communicator.receive_json_from(timeout=TIMEOUT)

        assert reply["error_code"] == "READ_ONLY_STREAM"
        await communicator.disconnect()


class TestMessageListConsumer:
    """ws/chat/conversations/<key>/messages/"""

    async def test_sends_history_on_connect(self, alice, bob, alice_bob_key, alice_token):
        await append(alice_bob_key, alice, "one")
        await append(alice_bob_key, bob, "two")
        communicator = WebsocketCommunicator(
            application, messages_path(alice_bob_key, alice_token)
        )

        connected, _ = await communicator.connect()
        payload = await communicator.receive_json_from(timeout=TIMEOUT)

        assert connected
        assert payload["type"] == "history"
        assert [m["text"] for m in payload["messages"]] == ["one", "two"]
        await communicator.disconnect()

    async def test_history_message_not_repeated_as_live_frame(
        self, alice, bob, alice_bob_key, alice_token
    ):
        await append(alice_bob_key, alice, "one")
        communicator = WebsocketCommunicator(
            application, messages_path(alice_bob_key, alice_token)
        )
        await communicator.connect()
        history = await communicator.receive_json_from(timeout=TIMEOUT)

        # Late event for a message the history already carried
        await get_channel_layer().group_send(
            conversation_group_name(alice_bob_key),
            {"type": CHANNEL_EVENTS.MESSAGE_CREATED, "message": history["messages"][0]},
        )
        await append(alice_bob_key, bob, "two")
        frame = await communicator.receive_json_from(timeout=TIMEOUT)

        assert frame["message"]["text"] == "two"
        assert await communicator.receive_nothing()
        await communicator.disconnect()

    async def test_sent_message_reaches_both_participants(
        self, alice, bob, alice_bob_key, alice_token, bob_token
    ):
        alice_ws = WebsocketCommunicator(application, messages_path(alice_bob_key, alice_token))
        bob_ws = WebsocketCommunicator(application, messages_path(alice_bob_key, bob_token))
        await alice_ws.connect()
        await bob_ws.connect()
        await alice_ws.receive_json_from(timeout=TIMEOUT)
        await bob_ws.receive_json_from(timeout=TIMEOUT)

        await alice_ws.send_json_to({"type": "message", "text": "hello bob"})
        to_alice = await alice_ws.receive_json_from(timeout=TIMEOUT)
        to_bob = await bob_ws.receive_json_from(timeout=TIMEOUT)

        assert to_alice["type"] == "message"
        assert to_bob["message"]["text"] == "hello bob"
        assert to_bob["message"]["sender_id"] == alice.pk
        await alice_ws.disconnect()
        await bob_ws.disconnect()

    async def test_read_frame_acknowledged(self, alice, bob, alice_bob_key, bob_token):
        await append(alice_bob_key, alice, "hi")
        communicator = WebsocketCommunicator(application, messages_path(alice_bob_key, bob_token))
        await communicator.connect()
        await communicator.receive_json_from(timeout=TIMEOUT)

        await communicator.send_json_to({"type": "read"})
        reply = await communicator.receive_json_from(timeout=TIMEOUT)

        assert reply == {"type": "read", "conversation_key": alice_bob_key}
        await communicator.disconnect()

    async def test_empty_message_returns_error(self, alice, bob, alice_bob_key, alice_token):
        communicator = WebsocketCommunicator(
            application, messages_path(alice_bob_key, alice_token)
        )
        await communicator.connect()
        await communicator.receive_json_from(timeout=TIMEOUT)

        await communicator.send_json_to({"type": "message", "text": "  "})
        reply = await communicator.receive_json_from(timeout=TIMEOUT)

        assert reply["type"] == "error"
        assert reply["error_code"] == "EMPTY_CONTENT"
        await communicator.disconnect()

    async def test_malformed_key_closes_4004(self, alice_token):
        communicator = WebsocketCommunicator(application, messages_path("abc", alice_token))

        connected, code = await communicator.connect()

        assert not connected
        assert code == 4004

    async def test_non_participant_closes_4003(self, alice, bob, alice_bob_key, carol_token):
        communicator = WebsocketCommunicator(
            application, messages_path(alice_bob_key, carol_token)
        )

        connected, code = await communicator.connect()

        assert not connected
        assert code == 4003
