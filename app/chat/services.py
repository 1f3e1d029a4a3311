"""
Chat system service layer.

This module provides the business logic for pairwise messaging.

Services:
    MessageLogService: Append messages and read ordered history
    ConversationSummaryService: Summary upsert, read receipts, unread badges

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures (database errors) raise
    - A message insert and its summary update commit together
    - Change notifications are sent only after commit

Usage:
    from chat.services import ConversationSummaryService, MessageLogService

    result = MessageLogService.send_message(alice, bob, "hello")
    if result.success:
        message = result.data

    ConversationSummaryService.mark_read(message.conversation_id, bob)
    badge = ConversationSummaryService.unread_total(bob)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Case, F, Q, Sum, When
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from chat.identity import conversation_key, parse_conversation_key
from chat.models import Conversation, Message
from chat.signals import conversation_updated, message_created
from chat.snapshots import ConversationSnapshot, MessageSnapshot
from core.exceptions import PermissionDeniedError, ValidationError
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

logger = logging.getLogger(__name__)


def _unread_field(first_participant_id: int, user_id: int) -> str:
    if user_id == first_participant_id:
        return "first_unread_count"
    return "second_unread_count"


def _notify_conversation_updated(key: str, participant_ids: tuple[int, int]) -> None:
    transaction.on_commit(
        lambda: conversation_updated.send(
            sender=Conversation,
            conversation_key=key,
            participant_ids=participant_ids,
        )
    )


class MessageLogService(BaseService):
    """
    Service for the append-only message log.

    Methods:
        append: Append a message to a conversation addressed by key
        send_message: Append a message addressed by recipient
        stream_ordered: Ordered history of a conversation
    """

    @classmethod
    def _validate_text(cls, text: str | None) -> tuple[str, ServiceResult | None]:
        text = text.strip() if text else ""
        if not text:
            return text, ServiceResult.failure(
                "Message content cannot be empty",
                error_code="EMPTY_CONTENT",
            )
        max_length = MESSAGE_CONFIG.max_content_length()
        if len(text) > max_length:
            return text, ServiceResult.failure(
                f"Message content cannot exceed {max_length} characters",
                error_code="CONTENT_TOO_LONG",
            )
        return text, None

    @classmethod
    def _lock_or_create(cls, key: str, participant_ids: tuple[int, int]) -> Conversation | None:
        """
        Lock the summary row for ``key``, creating it on first use.

        Returns None when one of the participants does not exist.
        """
        try:
            return Conversation.objects.select_for_update().get(key=key)
        except Conversation.DoesNotExist:
            pass

        active = get_user_model().objects.filter(
            pk__in=participant_ids, is_active=True
        ).count()
        if active != 2:
            return None

        try:
            with transaction.atomic():
                Conversation.objects.create(
                    key=key,
                    first_participant_id=participant_ids[0],
                    second_participant_id=participant_ids[1],
                )
            cls.get_logger().info(f"Conversation {key} created")
        except IntegrityError:
            # A concurrent first send created the row
            pass
        return Conversation.objects.select_for_update().get(key=key)

    @classmethod
    def append(
        cls,
        conversation_key: str,
        sender: User,
        text: str,
    ) -> ServiceResult[Message]:
        """
        Append a message to the conversation identified by ``conversation_key``.

        The summary row is created on first use, locked, and updated in the
        same transaction as the message insert: last message snapshot,
        updated_at, receiver's unread counter +1, sender's counter reset.
        The message timestamp never precedes the previous message's.

        Args:
            conversation_key: Key from chat.identity.conversation_key
            sender: Participant sending the message
            text: Message content (surrounding whitespace is stripped)

        Returns:
            ServiceResult with the new Message

        Error codes:
            INVALID_CONVERSATION_KEY: Key is malformed
            NOT_PARTICIPANT: Sender is not one of the key's users
            EMPTY_CONTENT: Text is blank
            CONTENT_TOO_LONG: Text exceeds CHAT_MESSAGE_MAX_LENGTH
            USER_NOT_FOUND: The other participant does not exist
        """
        try:
            participant_ids = parse_conversation_key(conversation_key)
        except ValidationError as exc:
            return ServiceResult.from_exception(exc)

        if sender.pk not in participant_ids:
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )

        text, failure = cls._validate_text(text)
        if failure is not None:
            return failure

        with cls.atomic():
            conversation = cls._lock_or_create(conversation_key, participant_ids)
            if conversation is None:
                return ServiceResult.failure(
                    "Recipient not found",
                    error_code="USER_NOT_FOUND",
                )

            created_at = timezone.now()
            if conversation.last_message_at and created_at < conversation.last_message_at:
                created_at = conversation.last_message_at

            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                text=text,
                created_at=created_at,
            )
            ConversationSummaryService.record_message(conversation, message)

            snapshot = MessageSnapshot.from_message(message)
            transaction.on_commit(
                lambda: message_created.send(sender=Message, message=snapshot)
            )
            _notify_conversation_updated(conversation_key, participant_ids)

        cls.get_logger().debug(
            f"User {sender.pk} sent message {message.id} to conversation {conversation_key}"
        )
        return ServiceResult.success(message)

    @classmethod
    def send_message(cls, sender: User, recipient: User, text: str) -> ServiceResult[Message]:
        """
        Append a message to the conversation between ``sender`` and ``recipient``.

        Error codes:
            SAME_USER: Sender and recipient are the same user
            (plus every error code of append)
        """
        if sender.pk == recipient.pk:
            return ServiceResult.failure(
                "You cannot send a message to yourself",
                error_code="SAME_USER",
            )
        return cls.append(conversation_key(sender, recipient), sender, text)

    @classmethod
    def stream_ordered(
        cls,
        conversation_key: str,
        after: int | None = None,
        viewer: User | None = None,
    ) -> QuerySet[Message]:
        """
        Messages of a conversation ordered by (created_at, id), oldest first.

        Args:
            conversation_key: Conversation to read
            after: Message id; only messages ordered after it are returned
            viewer: When given, must be an active participant

        Raises:
            ValidationError: INVALID_CONVERSATION_KEY
            PermissionDeniedError: Viewer is inactive or not a participant
        """
        participant_ids = parse_conversation_key(conversation_key)
        if viewer is not None and (
            not viewer.is_active or viewer.pk not in participant_ids
        ):
            raise PermissionDeniedError(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
                details={"conversation_key": conversation_key},
            )

        queryset = Message.objects.filter(conversation_id=conversation_key).order_by(
            "created_at", "id"
        )
        if after is not None:
            anchor = (
                Message.objects.filter(conversation_id=conversation_key, pk=after)
                .values_list("created_at", flat=True)
                .first()
            )
            if anchor is None:
                queryset = queryset.filter(pk__gt=after)
            else:
                queryset = queryset.filter(
                    Q(created_at__gt=anchor) | Q(created_at=anchor, pk__gt=after)
                )
        return queryset


class ConversationSummaryService(BaseService):
    """
    Service for conversation summaries.

    Methods:
        record_message: Fold a new message into its summary (inside append)
        mark_read: Reset a participant's unread counter
        unread_total: Sum of a user's unread counters
        list_for_user: Summaries of every conversation of a user
        sort_by_recent_activity: Order summaries newest first
    """

    @classmethod
    def record_message(cls, conversation: Conversation, message: Message) -> None:
        """
        Update the locked summary row for a newly appended message.

        The receiver's counter is an atomic increment; the sender's is reset.
        Must run in the transaction that holds the row lock.
        """
        receiver_id = conversation.other_participant_id(message.sender_id)
        first_id = conversation.first_participant_id
        Conversation.objects.filter(key=conversation.key).update(
            last_message_text=message.text,
            last_message_sender_id=message.sender_id,
            last_message_at=message.created_at,
            updated_at=message.created_at,
            **{
                _unread_field(first_id, receiver_id): F(_unread_field(first_id, receiver_id)) + 1,
                _unread_field(first_id, message.sender_id): 0,
            },
        )

    @classmethod
    def mark_read(cls, conversation_key: str, user: User) -> ServiceResult[None]:
        """
        Set ``user``'s unread counter for the conversation to zero.

        A single-column write: updated_at and the other participant's
        counter are untouched. A conversation that does not exist yet is a
        silent no-op.

        Error codes:
            INVALID_CONVERSATION_KEY: Key is malformed
            NOT_PARTICIPANT: User is not one of the key's users
        """
        try:
            participant_ids = parse_conversation_key(conversation_key)
        except ValidationError as exc:
            return ServiceResult.from_exception(exc)

        if user.pk not in participant_ids:
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )

        with cls.atomic():
            updated = Conversation.objects.filter(key=conversation_key).update(
                **{_unread_field(participant_ids[0], user.pk): 0}
            )
            if updated:
                _notify_conversation_updated(conversation_key, participant_ids)

        if updated:
            cls.get_logger().debug(f"User {user.pk} read conversation {conversation_key}")
        return ServiceResult.success(None)

    @classmethod
    def unread_total(cls, user: User | int) -> int:
        """Aggregate unread badge: sum of the user's counters over all conversations."""
        user_id = getattr(user, "pk", user)
        totals = Conversation.objects.for_user(user_id).aggregate(
            total=Sum(
                Case(
                    When(first_participant_id=user_id, then=F("first_unread_count")),
                    default=F("second_unread_count"),
                )
            )
        )
        return totals["total"] or 0

    @classmethod
    def list_for_user(cls, user: User | int) -> list[ConversationSnapshot]:
        """
        Summaries of every conversation the user participates in.

        No ordering is applied; use sort_by_recent_activity for display.
        """
        queryset = Conversation.objects.for_user(user).order_by()
        return [ConversationSnapshot.from_conversation(row) for row in queryset]

    @classmethod
    def get(cls, conversation_key: str) -> ConversationSnapshot | None:
        conversation = Conversation.objects.filter(key=conversation_key).first()
        if conversation is None:
            return None
        return ConversationSnapshot.from_conversation(conversation)

    @staticmethod
    def sort_by_recent_activity(
        conversations: Iterable[ConversationSnapshot],
    ) -> list[ConversationSnapshot]:
        """Newest activity first; conversations without messages last."""
        conversations = list(conversations)
        dated = [c for c in conversations if c.updated_at is not None]
        undated = [c for c in conversations if c.updated_at is None]
        return sorted(dated, key=lambda c: c.updated_at, reverse=True) + undated
