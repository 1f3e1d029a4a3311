"""
Chat application configuration.

This app provides pairwise messaging with:
- Deterministic conversation keys
- Append-only message log with ordered history
- Denormalized conversation summaries and unread counters
- Realtime change streams (in-process and WebSocket)
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        """Connect the channel-layer forwarding receivers."""
        from chat import signals  # noqa: F401
