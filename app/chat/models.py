"""
Chat system models.

This module defines the data models for pairwise messaging:
- Conversation: Denormalized summary of a two-user conversation
- Message: Individual, immutable message within a conversation

Design Decisions:
    - The conversation key is the primary key, derived from the two
      participant ids (see chat/identity.py); rows are created lazily on
      the first message and never deleted
    - Participants are stored in key order (first_participant, second_participant)
      so each user's unread counter is a plain column that can be
      incremented atomically with F()
    - Message timestamps are assigned by the service layer, not auto_now_add,
      so they can be kept non-decreasing within a conversation
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Q

if TYPE_CHECKING:
    from authentication.models import User


class ConversationQuerySet(models.QuerySet):
    """Custom queryset for Conversation."""

    def for_user(self, user: User | int) -> ConversationQuerySet:
        """Conversations whose participants contain ``user``."""
        user_id = getattr(user, "pk", user)
        return self.filter(
            Q(first_participant_id=user_id) | Q(second_participant_id=user_id)
        )


class Conversation(models.Model):
    """
    Summary record for a conversation between exactly two users.

    Fields:
        key: Conversation key, "<smaller id>_<larger id>" compared as strings
        first_participant / second_participant: Participants in key order
        last_message_text / last_message_sender / last_message_at: Snapshot
            of the latest message
        first_unread_count / second_unread_count: Per-participant unread counters
        created_at: When the first message was sent
        updated_at: Creation time of the latest message (read receipts do
            not change it)
    """

    key = models.CharField(
        max_length=64,
        primary_key=True,
        help_text="Deterministic key derived from the two participant ids",
    )

    first_participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversations_as_first",
        help_text="Participant whose id sorts first in the key",
    )
    second_participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversations_as_second",
        help_text="Participant whose id sorts second in the key",
    )

    last_message_text = models.TextField(
        blank=True,
        default="",
        help_text="Text of the most recent message",
    )
    last_message_sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Sender of the most recent message",
    )
    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Creation time of the most recent message",
    )

    first_unread_count = models.PositiveIntegerField(
        default=0,
        help_text="Messages the first participant has not read",
    )
    second_unread_count = models.PositiveIntegerField(
        default=0,
        help_text="Messages the second participant has not read",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the conversation row was created",
    )
    updated_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Creation time of the latest message (sort key for inboxes)",
    )

    objects = ConversationQuerySet.as_manager()

    class Meta:
        db_table = "chat_conversation"
        constraints = [
            models.CheckConstraint(
                condition=~Q(first_participant=models.F("second_participant")),
                name="chat_conv_distinct_participants",
            ),
        ]
        indexes = [
            models.Index(
                fields=["first_participant", "-updated_at"],
                name="chat_conv_first_updated_idx",
            ),
            models.Index(
                fields=["second_participant", "-updated_at"],
                name="chat_conv_second_updated_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation {self.key}"

    @property
    def participant_ids(self) -> tuple[int, int]:
        return (self.first_participant_id, self.second_participant_id)

    def has_participant(self, user: User | int) -> bool:
        return getattr(user, "pk", user) in self.participant_ids

    def other_participant_id(self, user: User | int) -> int:
        user_id = getattr(user, "pk", user)
        if user_id == self.first_participant_id:
            return self.second_participant_id
        return self.first_participant_id

    @property
    def unread_count(self) -> dict[int, int]:
        """Unread counters keyed by participant id."""
        return {
            self.first_participant_id: self.first_unread_count,
            self.second_participant_id: self.second_unread_count,
        }

    def unread_for(self, user: User | int) -> int:
        return self.unread_count.get(getattr(user, "pk", user), 0)


class Message(models.Model):
    """
    A single message within a conversation.

    Messages are immutable once created. Ordering is by creation time, with
    ties broken by the auto-increment id (insertion order).

    Fields:
        conversation: Conversation this message belongs to
        sender: Participant who sent the message
        text: Message content
        created_at: Server-assigned creation time
    """

    id = models.BigAutoField(primary_key=True)

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )
    text = models.TextField(
        help_text="Message content",
    )
    created_at = models.DateTimeField(
        db_index=True,
        help_text="Server-assigned creation time, non-decreasing per conversation",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_order_idx",
            ),
        ]

    def __str__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"Message {self.id} from {self.sender_id}: {preview}"
