"""
Root URL configuration.

URL Structure:
    /                              - ReDoc API documentation
    /schema/                       - OpenAPI schema (YAML)
    /admin/                        - Django admin interface
    /health/                       - Health check (load balancers, Docker)
    /api/v1/users/                 - Profiles and handle search
    /api/v1/chat/                  - Conversations and messages
    /api/v1/social/                - Follow graph

WebSocket routes live in chat/routing.py and are served by config/asgi.py.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# All routes here are prefixed with /api/v1/
api_v1_patterns = [
    path("users/", include("authentication.urls")),
    path("chat/", include("chat.urls")),
    path("social/", include("social.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Messaging Admin"
admin.site.site_title = "Messaging Admin"
admin.site.index_title = "Conversations and follow graph"
