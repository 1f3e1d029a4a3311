"""
Serializers for chat API.

Serializer Hierarchy:
    MessageSerializer: Message read representation
    MessageCreateSerializer: Append to a conversation addressed by key
    SendMessageSerializer: Send to a user (conversation resolved from the pair)
    ConversationListSerializer: ConversationSnapshot as seen by one viewer

Design Decisions:
    - Read and write serializers are separate for clarity
    - Conversation rows are rendered from snapshots, with the other
      participant's profile and the viewer's own unread counter
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserProfileSerializer
from chat.models import Message


class MessageSerializer(serializers.ModelSerializer):
    """Read serializer for messages."""

    conversation_key = serializers.CharField(source="conversation_id", read_only=True)
    sender_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "conversation_key", "sender_id", "text", "created_at"]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Payload for appending a message.

    Blank and overlong text are rejected by the service with EMPTY_CONTENT /
    CONTENT_TOO_LONG, so this only checks the type.
    """

    text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class SendMessageSerializer(MessageCreateSerializer):
    """Payload for sending a message to a user."""

    recipient_id = serializers.IntegerField(min_value=1)


class LastMessageSerializer(serializers.Serializer):
    text = serializers.CharField()
    sender_id = serializers.IntegerField(allow_null=True)
    created_at = serializers.DateTimeField()


class ConversationListSerializer(serializers.Serializer):
    """
    Conversation summary for the inbox.

    Context:
        viewer_id: Id of the requesting user
        profiles: Mapping of user id to UserProfile for other participants
    """

    key = serializers.CharField()
    other_participant = serializers.SerializerMethodField()
    last_message = LastMessageSerializer(allow_null=True)
    unread_count = serializers.SerializerMethodField()
    updated_at = serializers.DateTimeField(allow_null=True)

    def get_other_participant(self, snapshot) -> dict | None:
        other_id = snapshot.other_participant(self.context["viewer_id"])
        profile = self.context.get("profiles", {}).get(other_id)
        if profile is None:
            return None
        return UserProfileSerializer(profile).data

    def get_unread_count(self, snapshot) -> int:
        return snapshot.unread_for(self.context["viewer_id"])


class UnreadTotalSerializer(serializers.Serializer):
    unread_total = serializers.IntegerField()
