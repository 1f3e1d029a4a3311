"""
Tests for ChatSyncService change streams.

Writes are wrapped in django_capture_on_commit_callbacks(execute=True) so the
after-commit notifications fire inside the test transaction.
"""

from unittest.mock import patch

from chat.identity import conversation_key
from chat.services import ConversationSummaryService, MessageLogService
from chat.signals import message_created
from chat.snapshots import MessageSnapshot


class TestConversationListSubscription:
    """Tests for subscribe_conversations()."""

    def test_current_set_delivered_on_subscribe(self, chat_sync, alice, bob):
        MessageLogService.send_message(bob, alice, "hi")
        events = []

        chat_sync.subscribe_conversations(alice, events.append)

        assert len(events) == 1
        assert [c.key for c in events[0].conversations] == [conversation_key(alice, bob)]
        assert events[0].unread_total == 1

    def test_full_set_pushed_on_every_change(
        self, chat_sync, alice, bob, carol, django_capture_on_commit_callbacks
    ):
        events = []
        chat_sync.subscribe_conversations(alice, events.append)

        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, alice, "one")
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(carol, alice, "two")

        assert len(events) == 3
        assert len(events[-1].conversations) == 2
        assert events[-1].unread_total == 2

    def test_by_recent_activity_orders_newest_first(
        self, chat_sync, alice, bob, carol, django_capture_on_commit_callbacks
    ):
        events = []
        chat_sync.subscribe_conversations(alice, events.append)

        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, alice, "older")
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(carol, alice, "newer")

        ordered = events[-1].by_recent_activity()
        assert ordered[0].last_message.text == "newer"

    def test_mark_read_pushes_new_badge(
        self, chat_sync, alice, bob, django_capture_on_commit_callbacks
    ):
        MessageLogService.send_message(bob, alice, "hi")
        events = []
        chat_sync.subscribe_conversations(alice, events.append)

        with django_capture_on_commit_callbacks(execute=True):
            ConversationSummaryService.mark_read(conversation_key(alice, bob), alice)

        assert [e.unread_total for e in events] == [1, 0]

    def test_other_users_changes_not_delivered(
        self, chat_sync, alice, bob, carol, django_capture_on_commit_callbacks
    ):
        events = []
        chat_sync.subscribe_conversations(alice, events.append)

        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, carol, "private")

        assert len(events) == 1


class TestMessageListSubscription:
    """Tests for subscribe_messages()."""

    def test_history_then_incremental_updates(
        self, chat_sync, alice, bob, alice_bob_key, django_capture_on_commit_callbacks
    ):
        MessageLogService.append(alice_bob_key, alice, "one")
        MessageLogService.append(alice_bob_key, bob, "two")
        events = []

        chat_sync.subscribe_messages(alice_bob_key, alice, events.append)
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.append(alice_bob_key, bob, "three")

        assert events[0].initial is True
        assert [m.text for m in events[0].messages] == ["one", "two"]
        assert events[1].initial is False
        assert [m.text for m in events[1].messages] == ["three"]

    def test_message_signalled_during_history_read_delivered_once(
        self, chat_sync, alice, bob, alice_bob_key, django_capture_on_commit_callbacks
    ):
        """
        Why it matters: a message committed while the history is being read
        must reach the subscriber once, not again as a live update.
        """
        first = MessageLogService.append(alice_bob_key, alice, "one").data
        read_history = MessageLogService.stream_ordered
        events = []

        def history_with_concurrent_send(*args, **kwargs):
            message_created.send(sender=None, message=MessageSnapshot.from_message(first))
            return read_history(*args, **kwargs)

        with patch.object(
            MessageLogService, "stream_ordered", side_effect=history_with_concurrent_send
        ):
            chat_sync.subscribe_messages(alice_bob_key, alice, events.append)
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.append(alice_bob_key, bob, "two")

        assert [event.initial for event in events] == [True, False]
        assert [m.text for m in events[0].messages] == ["one"]
        assert [m.text for m in events[1].messages] == ["two"]

    def test_empty_conversation_delivers_empty_history(self, chat_sync, alice, alice_bob_key):
        events = []

        chat_sync.subscribe_messages(alice_bob_key, alice, events.append)

        assert len(events) == 1
        assert events[0].messages == ()

    def test_non_participant_subscription_ends_quietly(
        self, chat_sync, alice, bob, carol, alice_bob_key
    ):
        """
        Why it matters: permission-denied is an expected end of a stream,
        not an error to report.
        """
        events, errors = [], []

        subscription = chat_sync.subscribe_messages(
            alice_bob_key, carol, events.append, on_error=errors.append
        )

        assert events == []
        assert errors == []
        assert not subscription.active


class TestSubscriptionLifecycle:
    """Cancellation, sign-out and error isolation."""

    def test_no_callback_after_cancel(
        self, chat_sync, alice, bob, alice_bob_key, django_capture_on_commit_callbacks
    ):
        list_events, message_events = [], []
        list_sub = chat_sync.subscribe_conversations(alice, list_events.append)
        message_sub = chat_sync.subscribe_messages(alice_bob_key, alice, message_events.append)

        list_sub.cancel()
        message_sub.cancel()
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.append(alice_bob_key, bob, "after cancel")

        assert len(list_events) == 1
        assert len(message_events) == 1

    def test_cancel_is_idempotent(self, chat_sync, alice):
        subscription = chat_sync.subscribe_conversations(alice, lambda event: None)

        subscription.cancel()
        subscription.cancel()

        assert not subscription.active

    def test_signed_out_viewer_ends_subscription_without_error(
        self, chat_sync, alice, bob, django_capture_on_commit_callbacks
    ):
        MessageLogService.send_message(bob, alice, "before")
        events, errors = [], []
        subscription = chat_sync.subscribe_conversations(
            alice, events.append, on_error=errors.append
        )
        alice.is_active = False
        alice.save(update_fields=["is_active"])

        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, alice, "after")

        assert len(events) == 1
        assert errors == []
        assert not subscription.active

    def test_other_errors_reach_error_callback(
        self, chat_sync, alice, bob, monkeypatch, django_capture_on_commit_callbacks
    ):
        errors = []
        chat_sync.subscribe_conversations(alice, lambda event: None, on_error=errors.append)

        def broken(user):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(ConversationSummaryService, "unread_total", broken)
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, alice, "hi")

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)

    def test_raising_callback_does_not_block_other_subscribers(
        self, chat_sync, alice, bob, django_capture_on_commit_callbacks
    ):
        received = []

        def explode(event):
            raise ValueError("subscriber bug")

        chat_sync.subscribe_conversations(alice, explode)
        chat_sync.subscribe_conversations(alice, received.append)

        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, alice, "hi")

        assert len(received) == 2

    def test_stop_cancels_everything(self, alice, bob, django_capture_on_commit_callbacks):
        from chat.sync import ChatSyncService

        service = ChatSyncService()
        service.start()
        events = []
        subscription = service.subscribe_conversations(alice, events.append)

        service.stop()
        with django_capture_on_commit_callbacks(execute=True):
            MessageLogService.send_message(bob, alice, "hi")

        assert not subscription.active
        assert len(events) == 1
