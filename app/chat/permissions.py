"""
Permission classes for chat API.

- IsConversationParticipant: The caller is one of the two users in the
  conversation key from the URL
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.identity import parse_conversation_key
from core.exceptions import ValidationError

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsConversationParticipant(permissions.BasePermission):
    """
    Allows access only to the participants of the conversation in the URL.

    Participation follows from the key itself, so the conversation row does
    not have to exist. Malformed keys are left to the view, which answers
    400 INVALID_CONVERSATION_KEY.
    """

    message = "You are not a participant in this conversation."

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not request.user.is_authenticated:
            return False
        key = view.kwargs.get("conversation_key")
        try:
            participant_ids = parse_conversation_key(key)
        except ValidationError:
            return True
        return request.user.pk in participant_ids
