"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation summaries (read-mostly; counters are maintained by services)
- Message moderation
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    """Latest messages of a conversation."""

    model = Message
    extra = 0
    can_delete = False
    fields = ["sender", "text", "created_at"]
    readonly_fields = ["sender", "text", "created_at"]
    ordering = ["-created_at", "-id"]
    show_change_link = True


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "key",
        "first_participant",
        "second_participant",
        "first_unread_count",
        "second_unread_count",
        "updated_at",
    ]
    search_fields = ["key", "first_participant__email", "second_participant__email"]
    readonly_fields = [
        "key",
        "first_participant",
        "second_participant",
        "last_message_text",
        "last_message_sender",
        "last_message_at",
        "created_at",
        "updated_at",
    ]
    inlines = [MessageInline]
    ordering = ["-updated_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = ["id", "conversation", "sender", "short_text", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["text", "conversation__key", "sender__email"]
    raw_id_fields = ["conversation", "sender"]
    readonly_fields = ["created_at"]
    ordering = ["-created_at", "-id"]

    @admin.display(description="Text")
    def short_text(self, obj):
        return obj.text[:50] + "..." if len(obj.text) > 50 else obj.text
