"""
Initial schema for pairwise chat.

Tables:
    - chat_conversation: One summary row per user pair, keyed by conversation key
    - chat_message: Append-only messages ordered by (created_at, id)
"""

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                (
                    "key",
                    models.CharField(
                        help_text="Deterministic key derived from the two participant ids",
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "last_message_text",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Text of the most recent message",
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Creation time of the most recent message",
                        null=True,
                    ),
                ),
                (
                    "first_unread_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Messages the first participant has not read",
                    ),
                ),
                (
                    "second_unread_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Messages the second participant has not read",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the conversation row was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Creation time of the latest message (sort key for inboxes)",
                        null=True,
                    ),
                ),
                (
                    "first_participant",
                    models.ForeignKey(
                        help_text="Participant whose id sorts first in the key",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversations_as_first",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "second_participant",
                    models.ForeignKey(
                        help_text="Participant whose id sorts second in the key",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversations_as_second",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "last_message_sender",
                    models.ForeignKey(
                        blank=True,
                        help_text="Sender of the most recent message",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "indexes": [
                    models.Index(
                        fields=["first_participant", "-updated_at"],
                        name="chat_conv_first_updated_idx",
                    ),
                    models.Index(
                        fields=["second_participant", "-updated_at"],
                        name="chat_conv_second_updated_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("first_participant", models.F("second_participant")),
                            _negated=True,
                        ),
                        name="chat_conv_distinct_participants",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("text", models.TextField(help_text="Message content")),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="Server-assigned creation time, non-decreasing per conversation",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "created_at", "id"],
                        name="chat_msg_conv_order_idx",
                    )
                ],
            },
        ),
    ]
