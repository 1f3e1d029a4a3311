"""
In-process change streams for conversations and messages.

ChatSyncService lets code in the same process (management commands, tests,
server-side integrations) follow a user's conversation list or a single
conversation's messages without polling. WebSocket clients get the same two
streams through chat/consumers.py.

Streams:
    Conversation list (per user): the full set of the user's conversations
        on subscribe and again on every change, plus the aggregate unread
        badge. The set carries no ordering; use by_recent_activity().
    Message list (per conversation): full ordered history on subscribe
        (initial=True), then only the new messages (initial=False).

Usage:
    from chat.sync import ChatSyncService

    sync = ChatSyncService()
    sync.start()

    subscription = sync.subscribe_conversations(
        user,
        lambda event: render(event.by_recent_activity(), event.unread_total),
    )
    ...
    subscription.cancel()
    sync.stop()

Error handling:
    A PermissionDeniedError while producing an event (viewer deactivated,
    typically a concurrent sign-out, or no longer a participant) is expected:
    it is logged at debug and ends the subscription. Any other error goes to
    the subscription's on_error callback, or is logged when there is none.
    A callback that raises never blocks delivery to other subscribers.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model

from chat.services import ConversationSummaryService, MessageLogService
from chat.signals import conversation_updated, message_created
from chat.snapshots import ConversationSnapshot, MessageSnapshot
from core.exceptions import PermissionDeniedError

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)

_instance_ids = itertools.count(1)


@dataclass(frozen=True)
class ConversationListChanged:
    """Full conversation set of one user, pushed on subscribe and every change."""

    user_id: int
    conversations: tuple[ConversationSnapshot, ...]
    unread_total: int

    def by_recent_activity(self) -> list[ConversationSnapshot]:
        return ConversationSummaryService.sort_by_recent_activity(self.conversations)


@dataclass(frozen=True)
class MessageListChanged:
    """Messages of one conversation; the whole history when ``initial``."""

    conversation_key: str
    messages: tuple[MessageSnapshot, ...]
    initial: bool


class Subscription:
    """
    Handle returned by ChatSyncService.subscribe_*.

    After cancel() no further callback fires, including one for a change
    that is being delivered concurrently.
    """

    def __init__(
        self,
        service: ChatSyncService,
        topic: Any,
        callback: Callable[[Any], None],
        on_error: Callable[[Exception], None] | None,
    ):
        self.service = service
        self.topic = topic
        self.callback = callback
        self.on_error = on_error
        self.viewer_id: int | None = None
        self.last_message_id: int | None = None
        self.primed = False
        self._active = True
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self.service._remove(self)


class ChatSyncService:
    """
    Registry of in-process subscriptions fed by the chat change signals.

    Events are produced after the writing transaction commits, so a
    subscriber never sees a change that was rolled back.
    """

    def __init__(self):
        self._uid = f"chat.sync.{next(_instance_ids)}"
        self._lock = threading.RLock()
        self._conversation_subs: dict[int, list[Subscription]] = defaultdict(list)
        self._message_subs: dict[str, list[Subscription]] = defaultdict(list)
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Connect to the chat change signals."""
        if self._started:
            return
        message_created.connect(
            self._on_message_created, weak=False, dispatch_uid=f"{self._uid}.message"
        )
        conversation_updated.connect(
            self._on_conversation_updated,
            weak=False,
            dispatch_uid=f"{self._uid}.conversation",
        )
        self._started = True

    def stop(self) -> None:
        """Disconnect from the signals and cancel every subscription."""
        message_created.disconnect(dispatch_uid=f"{self._uid}.message")
        conversation_updated.disconnect(dispatch_uid=f"{self._uid}.conversation")
        self._started = False
        with self._lock:
            subscriptions = [
                sub
                for subs in (*self._conversation_subs.values(), *self._message_subs.values())
                for sub in subs
            ]
        for subscription in subscriptions:
            subscription.cancel()

    # ------------------------------------------------------------------
    # Subscribing
    # ------------------------------------------------------------------

    def subscribe_conversations(
        self,
        user: User,
        callback: Callable[[ConversationListChanged], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Follow every conversation of ``user``; delivers the current set immediately."""
        subscription = Subscription(self, user.pk, callback, on_error)
        with self._lock:
            self._conversation_subs[user.pk].append(subscription)
        self._deliver(subscription, lambda: self._conversation_event(user.pk))
        return subscription

    def subscribe_messages(
        self,
        conversation_key: str,
        viewer: User,
        callback: Callable[[MessageListChanged], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Follow one conversation's messages; delivers the history immediately."""
        subscription = Subscription(self, conversation_key, callback, on_error)
        subscription.viewer_id = viewer.pk
        # Live events wait on the subscription lock until the history is out
        with subscription._lock:
            with self._lock:
                self._message_subs[conversation_key].append(subscription)
            self._deliver(
                subscription, lambda: self._message_event(subscription, initial=True)
            )
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            for registry in (self._conversation_subs, self._message_subs):
                subs = registry.get(subscription.topic)
                if subs and subscription in subs:
                    subs.remove(subscription)
                    if not subs:
                        del registry[subscription.topic]

    # ------------------------------------------------------------------
    # Event production
    # ------------------------------------------------------------------

    @staticmethod
    def _active_viewer(user_id: int) -> User:
        user = get_user_model().objects.filter(pk=user_id, is_active=True).first()
        if user is None:
            raise PermissionDeniedError(
                "Viewer is no longer signed in",
                error_code="VIEWER_INACTIVE",
                details={"user_id": user_id},
            )
        return user

    def _conversation_event(self, user_id: int) -> ConversationListChanged:
        self._active_viewer(user_id)
        return ConversationListChanged(
            user_id=user_id,
            conversations=tuple(ConversationSummaryService.list_for_user(user_id)),
            unread_total=ConversationSummaryService.unread_total(user_id),
        )

    def _message_event(self, subscription: Subscription, initial: bool) -> MessageListChanged | None:
        if not initial and not subscription.primed:
            # The history query has not run yet and will include this message
            return None
        viewer = self._active_viewer(subscription.viewer_id)
        messages = MessageLogService.stream_ordered(
            subscription.topic,
            after=None if initial else subscription.last_message_id,
            viewer=viewer,
        )
        snapshots = tuple(MessageSnapshot.from_message(m) for m in messages)
        subscription.primed = True
        if snapshots:
            subscription.last_message_id = snapshots[-1].id
        elif not initial:
            return None
        return MessageListChanged(
            conversation_key=subscription.topic,
            messages=snapshots,
            initial=initial,
        )

    def _deliver(self, subscription: Subscription, produce: Callable[[], Any]) -> None:
        if not subscription.active:
            return
        try:
            event = produce()
        except PermissionDeniedError as exc:
            logger.debug(f"Ending subscription to {subscription.topic}: {exc}")
            subscription.cancel()
            return
        except Exception as exc:
            if subscription.on_error is None:
                logger.exception(f"Failed to refresh subscription to {subscription.topic}")
                return
            try:
                subscription.on_error(exc)
            except Exception:
                logger.exception(f"Error callback failed for {subscription.topic}")
            return

        if event is None:
            return
        with subscription._lock:
            if not subscription.active:
                return
            try:
                subscription.callback(event)
            except Exception:
                logger.exception(f"Subscriber callback failed for {subscription.topic}")

    # ------------------------------------------------------------------
    # Signal receivers
    # ------------------------------------------------------------------

    def _on_message_created(self, sender, message: MessageSnapshot, **kwargs) -> None:
        with self._lock:
            subscriptions = list(self._message_subs.get(message.conversation_key, ()))
        for subscription in subscriptions:
            with subscription._lock:
                self._deliver(
                    subscription,
                    lambda sub=subscription: self._message_event(sub, initial=False),
                )

    def _on_conversation_updated(
        self, sender, conversation_key: str, participant_ids: tuple[int, int], **kwargs
    ) -> None:
        for user_id in participant_ids:
            with self._lock:
                subscriptions = list(self._conversation_subs.get(user_id, ()))
            for subscription in subscriptions:
                self._deliver(
                    subscription,
                    lambda uid=user_id: self._conversation_event(uid),
                )
