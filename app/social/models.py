"""
Social graph models.

For any ordered pair (requester A, target B) exactly one of these holds:

    no relation:  no rows
    pending:      FollowEdge(owner=A, target=B, status=pending)
                  + FollowRequest(owner=B, requester=A)
    accepted:     FollowEdge(owner=A, target=B, status=accepted)
                  + FollowerEdge(owner=B, follower=A)

Rows are written only by social.services.FollowService, one transaction per
transition. social.reconciliation repairs rows that break the rule anyway.

Usage:
    from social.models import FollowEdge, FollowStatus

    edge = FollowEdge.objects.get(owner=alice, target=bob)
    edge.accept()  # pending -> accepted
    edge.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel


class FollowStatus(models.TextChoices):
    """
    State of a following edge.

    State Flow:
        (none) → PENDING → ACCEPTED
        PENDING → (none)   reject or cancel
        ACCEPTED → (none)  unfollow
    """

    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"


class FollowEdge(BaseModel):
    """
    One entry of a user's following collection.

    Fields:
        owner: The requester
        target: The user being followed
        status: pending until the target accepts
        requested_at: When the follow was requested
        followed_at: When the request was accepted
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="following_edges",
        help_text="User who follows (the requester)",
    )
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User being followed",
    )
    status = FSMField(
        default=FollowStatus.PENDING,
        choices=FollowStatus.choices,
        db_index=True,
        help_text="Current state of the edge (managed by FSM)",
    )
    requested_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the follow was requested",
    )
    followed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the request was accepted",
    )

    class Meta:
        db_table = "social_follow_edge"
        ordering = ["-requested_at"]
        verbose_name = "Following edge"
        verbose_name_plural = "Following edges"
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "target"],
                name="social_follow_edge_unique_pair",
            ),
            models.CheckConstraint(
                condition=~models.Q(owner=models.F("target")),
                name="social_follow_edge_not_self",
            ),
        ]
        indexes = [
            models.Index(fields=["owner", "status"], name="social_edge_owner_status_idx"),
            models.Index(fields=["target", "status"], name="social_edge_target_status_idx"),
        ]

    def __str__(self) -> str:
        return f"FollowEdge({self.owner_id} -> {self.target_id}, {self.status})"

    @transition(
        field=status,
        source=FollowStatus.PENDING,
        target=FollowStatus.ACCEPTED,
    )
    def accept(self, at=None):
        """
        Accept the follow request.

        Transition: PENDING -> ACCEPTED
        """
        self.followed_at = at or timezone.now()


class FollowerEdge(BaseModel):
    """
    One entry of a user's followers collection.

    Exists only once the owner has accepted the follower's request.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="follower_edges",
        help_text="User being followed",
    )
    follower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User who follows",
    )
    followed_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the follow was accepted",
    )

    class Meta:
        db_table = "social_follower_edge"
        ordering = ["-followed_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "follower"],
                name="social_follower_edge_unique_pair",
            ),
            models.CheckConstraint(
                condition=~models.Q(owner=models.F("follower")),
                name="social_follower_edge_not_self",
            ),
        ]

    def __str__(self) -> str:
        return f"FollowerEdge({self.follower_id} -> {self.owner_id})"


class FollowRequest(BaseModel):
    """
    One entry of a user's incoming follow requests.

    Exists only while the matching FollowEdge is pending.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="follow_requests",
        help_text="User whose approval is requested",
    )
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User asking to follow",
    )
    requested_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the follow was requested",
    )

    class Meta:
        db_table = "social_follow_request"
        ordering = ["-requested_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "requester"],
                name="social_follow_request_unique_pair",
            ),
            models.CheckConstraint(
                condition=~models.Q(owner=models.F("requester")),
                name="social_follow_request_not_self",
            ),
        ]

    def __str__(self) -> str:
        return f"FollowRequest({self.requester_id} -> {self.owner_id})"
