"""
Chat change signals and their Channels forwarding.

Signals (sent after the writing transaction commits):
    message_created: A message was appended. kwargs: message (MessageSnapshot)
    conversation_updated: A conversation summary changed.
        kwargs: conversation_key, participant_ids

Receivers in this module forward every change to the channel layer so
WebSocket consumers in any process see it. In-process subscribers
(ChatSyncService) connect their own receivers.

Related files:
    - services.py: Sends the signals via transaction.on_commit
    - sync.py: ChatSyncService
    - consumers.py: Handlers for the forwarded events
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.dispatch import Signal, receiver

from chat.constants import CHANNEL_EVENTS, conversation_group_name, user_group_name

logger = logging.getLogger(__name__)

message_created = Signal()
conversation_updated = Signal()


def _group_send(group: str, event: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(group, event)
    except Exception as exc:
        # The write has already committed; a dropped push is recovered on reconnect
        logger.warning(f"Channel layer push to {group} failed: {exc}")


@receiver(message_created, dispatch_uid="chat.forward_message_created")
def forward_message_created(sender, message, **kwargs):
    """Push a new message to the conversation's group."""
    _group_send(
        conversation_group_name(message.conversation_key),
        {"type": CHANNEL_EVENTS.MESSAGE_CREATED, "message": message.to_dict()},
    )


@receiver(conversation_updated, dispatch_uid="chat.forward_conversation_updated")
def forward_conversation_updated(sender, conversation_key, participant_ids, **kwargs):
    """Tell both participants' list streams that a summary changed."""
    for user_id in participant_ids:
        _group_send(
            user_group_name(user_id),
            {
                "type": CHANNEL_EVENTS.CONVERSATION_CHANGED,
                "conversation_key": conversation_key,
            },
        )
