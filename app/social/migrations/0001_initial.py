"""
Initial schema for the follow graph.

Tables:
    - social_follow_edge: Requester's following collection (pending/accepted)
    - social_follower_edge: Target's followers collection (accepted only)
    - social_follow_request: Target's incoming requests (pending only)
"""

import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def _id():
    return (
        "id",
        models.BigAutoField(
            auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="FollowEdge",
            fields=[
                _id(),
                *_timestamps(),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("pending", "Pending"), ("accepted", "Accepted")],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the edge (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "requested_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the follow was requested",
                    ),
                ),
                (
                    "followed_at",
                    models.DateTimeField(
                        blank=True,
                        null=True,
                        help_text="When the request was accepted",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="User who follows (the requester)",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="following_edges",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "target",
                    models.ForeignKey(
                        help_text="User being followed",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Following edge",
                "verbose_name_plural": "Following edges",
                "db_table": "social_follow_edge",
                "ordering": ["-requested_at"],
                "indexes": [
                    models.Index(
                        fields=["owner", "status"], name="social_edge_owner_status_idx"
                    ),
                    models.Index(
                        fields=["target", "status"], name="social_edge_target_status_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "target"),
                        name="social_follow_edge_unique_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("owner", models.F("target")), _negated=True),
                        name="social_follow_edge_not_self",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="FollowerEdge",
            fields=[
                _id(),
                *_timestamps(),
                (
                    "followed_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the follow was accepted",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="User being followed",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="follower_edges",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "follower",
                    models.ForeignKey(
                        help_text="User who follows",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "social_follower_edge",
                "ordering": ["-followed_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "follower"),
                        name="social_follower_edge_unique_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("owner", models.F("follower")), _negated=True),
                        name="social_follower_edge_not_self",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="FollowRequest",
            fields=[
                _id(),
                *_timestamps(),
                (
                    "requested_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the follow was requested",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="User whose approval is requested",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="follow_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "requester",
                    models.ForeignKey(
                        help_text="User asking to follow",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "social_follow_request",
                "ordering": ["-requested_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "requester"),
                        name="social_follow_request_unique_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("owner", models.F("requester")), _negated=True),
                        name="social_follow_request_not_self",
                    ),
                ],
            },
        ),
    ]
