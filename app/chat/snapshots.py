"""
Read-side snapshots of chat rows.

Subscribers and WebSocket consumers receive these frozen dataclasses instead
of model instances, so nothing handed out can be saved back by accident and
everything can be serialized outside the database thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chat.models import Conversation, Message


@dataclass(frozen=True)
class MessageSnapshot:
    id: int
    conversation_key: str
    sender_id: int
    text: str
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> MessageSnapshot:
        return cls(
            id=message.id,
            conversation_key=message.conversation_id,
            sender_id=message.sender_id,
            text=message.text,
            created_at=message.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "conversation_key": self.conversation_key,
            "sender_id": self.sender_id,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class LastMessage:
    text: str
    sender_id: int | None
    created_at: datetime


@dataclass(frozen=True)
class ConversationSnapshot:
    """
    Summary of one conversation as seen by subscribers.

    Attributes:
        key: Conversation key
        participants: The two participant ids, in key order
        last_message: Latest message snapshot (None before the first send)
        unread_count: Unread counters keyed by participant id
        updated_at: Creation time of the latest message
    """

    key: str
    participants: tuple[int, int]
    last_message: LastMessage | None
    unread_count: dict[int, int] = field(hash=False)
    updated_at: datetime | None

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> ConversationSnapshot:
        last_message = None
        if conversation.last_message_at is not None:
            last_message = LastMessage(
                text=conversation.last_message_text,
                sender_id=conversation.last_message_sender_id,
                created_at=conversation.last_message_at,
            )
        return cls(
            key=conversation.key,
            participants=conversation.participant_ids,
            last_message=last_message,
            unread_count=dict(conversation.unread_count),
            updated_at=conversation.updated_at,
        )

    def unread_for(self, user_id: int) -> int:
        return self.unread_count.get(user_id, 0)

    def other_participant(self, user_id: int) -> int:
        first, second = self.participants
        return second if user_id == first else first

    def to_dict(self, viewer_id: int | None = None) -> dict[str, Any]:
        """
        Serialize for the wire.

        With a viewer the payload carries the other participant's id and the
        viewer's own unread count instead of the full counter map.
        """
        data: dict[str, Any] = {
            "key": self.key,
            "participants": list(self.participants),
            "last_message": None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.last_message is not None:
            data["last_message"] = {
                "text": self.last_message.text,
                "sender_id": self.last_message.sender_id,
                "created_at": self.last_message.created_at.isoformat(),
            }
        if viewer_id is None:
            data["unread_count"] = {str(k): v for k, v in self.unread_count.items()}
        else:
            data["other_participant_id"] = self.other_participant(viewer_id)
            data["unread_count"] = self.unread_for(viewer_id)
        return data
