"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/conversations/                  - Conversation list stream of the caller
    ws/chat/conversations/<key>/messages/   - Message stream of one conversation

Authentication:
    JWT token passed as ?token=<jwt_access_token> or as the "jwt, <token>"
    subprotocol pair; JWTAuthMiddleware attaches the user to the scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path(
        "ws/chat/conversations/",
        consumers.ConversationListConsumer.as_asgi(),
    ),
    path(
        "ws/chat/conversations/<str:conversation_key>/messages/",
        consumers.MessageListConsumer.as_asgi(),
    ),
]
