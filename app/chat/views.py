"""
Views for chat API.

URL Structure:
    /api/v1/chat/conversations/                       GET
    /api/v1/chat/conversations/unread/                GET
    /api/v1/chat/conversations/{key}/messages/        GET, POST
    /api/v1/chat/conversations/{key}/read/            POST
    /api/v1/chat/messages/                            POST

Design Decisions:
    - All writes go through the service layer
    - Expected service failures answer 400 with {"error", "error_code"}
    - The inbox is the full conversation set sorted by recent activity;
      message history is cursor-paginated oldest first
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.services import ProfileService
from chat.identity import parse_conversation_key
from chat.pagination import MessageCursorPagination
from chat.permissions import IsConversationParticipant
from chat.serializers import (
    ConversationListSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    SendMessageSerializer,
    UnreadTotalSerializer,
)
from chat.services import ConversationSummaryService, MessageLogService
from core.exceptions import ValidationError

User = get_user_model()


def _failure_response(result) -> Response:
    return Response(
        {"error": result.error, "error_code": result.error_code},
        status=status.HTTP_400_BAD_REQUEST,
    )


class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for conversation summaries.

    list:
        All conversations of the current user, newest activity first, with
        the other participant's profile and the caller's unread count.

    unread:
        Aggregate unread badge over all conversations.

    read:
        Mark a conversation as read for the caller.
    """

    permission_classes = [IsAuthenticated]
    lookup_field = "conversation_key"
    lookup_value_regex = r"[0-9]+_[0-9]+"

    def get_permissions(self):
        """Return permissions based on action."""
        if self.action == "read":
            return [IsAuthenticated(), IsConversationParticipant()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="List conversations",
        tags=["Chat - Conversations"],
        responses={200: ConversationListSerializer(many=True)},
    )
    def list(self, request):
        viewer_id = request.user.pk
        conversations = ConversationSummaryService.sort_by_recent_activity(
            ConversationSummaryService.list_for_user(viewer_id)
        )
        others = [c.other_participant(viewer_id) for c in conversations]
        profiles = {p.id: p for p in ProfileService.get_profiles(others)}

        serializer = ConversationListSerializer(
            conversations,
            many=True,
            context={"viewer_id": viewer_id, "profiles": profiles},
        )
        return Response(serializer.data)

    @extend_schema(
        operation_id="conversation_unread_total",
        summary="Aggregate unread count",
        tags=["Chat - Conversations"],
        responses={200: UnreadTotalSerializer},
    )
    @action(detail=False, methods=["get"])
    def unread(self, request):
        total = ConversationSummaryService.unread_total(request.user)
        return Response({"unread_total": total})

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        tags=["Chat - Conversations"],
        request=None,
    )
    @action(detail=True, methods=["post"])
    def read(self, request, conversation_key=None):
        result = ConversationSummaryService.mark_read(conversation_key, request.user)
        if not result.success:
            return _failure_response(result)
        return Response({"status": "read"})


class MessageViewSet(viewsets.GenericViewSet):
    """
    ViewSet for the messages of one conversation.

    list:
        Ordered history, oldest first, cursor-paginated.

    create:
        Append a message. The conversation is created by its first message.
    """

    permission_classes = [IsAuthenticated, IsConversationParticipant]
    pagination_class = MessageCursorPagination
    serializer_class = MessageSerializer

    def get_queryset(self):
        return MessageLogService.stream_ordered(self.kwargs["conversation_key"])

    @extend_schema(
        summary="List messages",
        tags=["Chat - Messages"],
        responses={200: MessageSerializer(many=True)},
    )
    def list(self, request, conversation_key=None):
        try:
            parse_conversation_key(conversation_key)
        except ValidationError as exc:
            return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        page = self.paginate_queryset(self.get_queryset())
        serializer = MessageSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(
        summary="Send message to conversation",
        tags=["Chat - Messages"],
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
    )
    def create(self, request, conversation_key=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageLogService.append(
            conversation_key, request.user, serializer.validated_data["text"]
        )
        if not result.success:
            return _failure_response(result)

        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)


class SendMessageView(APIView):
    """
    Send a message to a user.

    POST /api/v1/chat/messages/  {"recipient_id": 42, "text": "hi"}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Send message to user",
        tags=["Chat - Messages"],
        request=SendMessageSerializer,
        responses={201: MessageSerializer},
    )
    def post(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        recipient = User.objects.filter(
            pk=serializer.validated_data["recipient_id"], is_active=True
        ).first()
        if recipient is None:
            return Response(
                {"error": "Recipient not found", "error_code": "USER_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )

        result = MessageLogService.send_message(
            request.user, recipient, serializer.validated_data["text"]
        )
        if not result.success:
            return _failure_response(result)

        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)
