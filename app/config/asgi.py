"""
ASGI entry point.

Serves HTTP through Django and the chat WebSocket streams through Channels:

    ws/chat/conversations/                     - conversation list stream
    ws/chat/conversations/<key>/messages/      - message stream

WebSocket connections authenticate with a JWT (?token= or the
"jwt, <token>" subprotocol pair) before routing.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Settings must be loaded before Channels and app modules import models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import JWTAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
