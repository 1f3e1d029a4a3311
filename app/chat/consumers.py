"""
WebSocket consumers for the chat application.

Consumers:
    ConversationListConsumer: Conversation list stream of the connected user
    MessageListConsumer: Message stream of one conversation

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"].

Channel Groups:
    chat_user_<id>: conversation.changed events for one user
    chat_conversation_<key>: message.created events for one conversation
    Events are sent by chat/signals.py after the write commits.

Message Types (to client):
    - conversations: {"conversations": [...], "unread_total": n}, newest first
    - history: {"messages": [...]} once, right after connecting
    - message: {"message": {...}} per new message
    - read: acknowledgement of a read receipt
    - error: {"error": ..., "error_code": ...}

Message Types (from client, message stream only):
    - message: {"type": "message", "text": "..."}
    - read: {"type": "read"}

Close Codes:
    4001: Not authenticated
    4003: Not a participant
    4004: Malformed conversation key
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from chat.constants import CLOSE_CODES, conversation_group_name, user_group_name
from chat.identity import parse_conversation_key
from chat.services import ConversationSummaryService, MessageLogService
from chat.snapshots import MessageSnapshot
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ChatConsumerMixin:
    """Shared authentication and group bookkeeping."""

    group_name: str | None = None

    def _authenticated_user(self):
        user = self.scope.get("user")
        if not user or isinstance(user, AnonymousUser) or not user.is_authenticated:
            return None
        return user

    async def _accept(self):
        if "jwt" in self.scope.get("subprotocols", []):
            await self.accept(subprotocol="jwt")
        else:
            await self.accept()

    async def _join(self, group_name: str):
        self.group_name = group_name
        await self.channel_layer.group_add(group_name, self.channel_name)

    async def disconnect(self, close_code):
        """Leave the channel group if one was joined."""
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.info(f"Left {self.group_name} (code {close_code})")


class ConversationListConsumer(ChatConsumerMixin, AsyncJsonWebsocketConsumer):
    """
    Streams the connected user's conversations.

    Sends the full list on connect and again after every change to any of
    the user's conversations, sorted by recent activity, with the aggregate
    unread badge.
    """

    async def connect(self):
        """Authenticate, join the user's group, send the current list."""
        user = self._authenticated_user()
        if user is None:
            logger.warning("Rejected unauthenticated conversation list connection")
            await self.close(code=CLOSE_CODES.UNAUTHENTICATED)
            return

        await self._join(user_group_name(user.pk))
        await self._accept()
        await self._send_conversations()
        logger.info(f"User {user.pk} subscribed to conversation list")

    async def receive_json(self, content):
        """The list stream is server-push only."""
        await self.send_json(
            {
                "type": "error",
                "error": "This stream does not accept messages",
                "error_code": "READ_ONLY_STREAM",
            }
        )

    async def conversation_changed(self, event):
        """Handle conversation.changed events from the channel layer."""
        await self._send_conversations()

    async def _send_conversations(self):
        payload = await self._conversation_payload(self.scope["user"].pk)
        await self.send_json(payload)

    @database_sync_to_async
    def _conversation_payload(self, user_id: int) -> dict:
        conversations = ConversationSummaryService.sort_by_recent_activity(
            ConversationSummaryService.list_for_user(user_id)
        )
        return {
            "type": "conversations",
            "conversations": [c.to_dict(viewer_id=user_id) for c in conversations],
            "unread_total": ConversationSummaryService.unread_total(user_id),
        }


class MessageListConsumer(ChatConsumerMixin, AsyncJsonWebsocketConsumer):
    """
    Streams one conversation's messages and accepts new ones.

    Attributes:
        conversation_key: Key from the URL
        last_history_id: Newest message id sent in the history frame
    """

    conversation_key: str | None = None
    last_history_id: int | None = None

    async def connect(self):
        """
        Validate, join the conversation group, send the history.

        The conversation row does not need to exist yet: it is created by
        the first message.
        """
        self.conversation_key = self.scope["url_route"]["kwargs"]["conversation_key"]

        user = self._authenticated_user()
        if user is None:
            logger.warning(
                f"Rejected unauthenticated connection to conversation {self.conversation_key}"
            )
            await self.close(code=CLOSE_CODES.UNAUTHENTICATED)
            return

        try:
            participant_ids = parse_conversation_key(self.conversation_key)
        except ValidationError:
            logger.warning(f"User {user.pk} used malformed key {self.conversation_key!r}")
            await self.close(code=CLOSE_CODES.INVALID_CONVERSATION)
            return

        if user.pk not in participant_ids:
            logger.warning(
                f"User {user.pk} is not a participant in conversation {self.conversation_key}"
            )
            await self.close(code=CLOSE_CODES.NOT_PARTICIPANT)
            return

        await self._join(conversation_group_name(self.conversation_key))
        await self._accept()
        history = await self._history()
        if history:
            self.last_history_id = history[-1]["id"]
        await self.send_json({"type": "history", "messages": history})
        logger.info(f"User {user.pk} connected to conversation {self.conversation_key}")

    async def receive_json(self, content):
        """
        Handle incoming client frames.

        Expected formats:
            {"type": "message", "text": "Hello!"}
            {"type": "read"}
        """
        message_type = content.get("type")

        if message_type == "message":
            result = await self._append(content.get("text", ""))
        elif message_type == "read":
            result = await self._mark_read()
            if result.success:
                await self.send_json(
                    {"type": "read", "conversation_key": self.conversation_key}
                )
        else:
            await self.send_json(
                {
                    "type": "error",
                    "error": f"Unknown message type: {message_type}",
                    "error_code": "UNKNOWN_TYPE",
                }
            )
            return

        if not result.success:
            await self.send_json(
                {"type": "error", "error": result.error, "error_code": result.error_code}
            )

    async def message_created(self, event):
        """Handle message.created events from the channel layer."""
        message = event["message"]
        if self.last_history_id is not None and message["id"] <= self.last_history_id:
            return
        await self.send_json({"type": "message", "message": message})

    @database_sync_to_async
    def _history(self) -> list[dict]:
        messages = MessageLogService.stream_ordered(self.conversation_key)
        return [MessageSnapshot.from_message(m).to_dict() for m in messages]

    @database_sync_to_async
    def _append(self, text: str):
        return MessageLogService.append(self.conversation_key, self.scope["user"], text)

    @database_sync_to_async
    def _mark_read(self):
        return ConversationSummaryService.mark_read(self.conversation_key, self.scope["user"])
