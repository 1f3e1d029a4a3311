"""
URL configuration for chat API.

URL Structure:
    /conversations/                      GET
    /conversations/unread/               GET
    /conversations/{key}/read/           POST
    /conversations/{key}/messages/       GET, POST
    /messages/                           POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ConversationViewSet, MessageViewSet, SendMessageView

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    path("messages/", SendMessageView.as_view(), name="send-message"),
    path(
        "conversations/<str:conversation_key>/messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-message-list",
    ),
]
