"""
Social graph service layer.

Services:
    FollowService: Follow state machine over the three graph collections
    CounterAggregator: On-demand counts and profile lists

Design Principles:
    - Every transition writes all of its rows in one transaction
    - Expected failures return ServiceResult.failure()
    - Counters are computed from the graph, never stored

Usage:
    from social.services import CounterAggregator, FollowService

    FollowService.follow_user(alice, bob)            # pending
    FollowService.accept_follow_request(bob, alice)  # accepted

    CounterAggregator.follower_count(bob)   # 1
    CounterAggregator.following_count(alice)  # 1
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.utils import timezone

from authentication.services import ProfileService, UserProfile
from core.exceptions import ConflictError
from core.services import BaseService, ServiceResult
from social.models import FollowEdge, FollowerEdge, FollowRequest, FollowStatus

if TYPE_CHECKING:
    from authentication.models import User


def _user_id(user_or_id) -> int:
    return getattr(user_or_id, "pk", user_or_id)


class FollowService(BaseService):
    """
    Service for follow transitions between two users.

    States per ordered pair (requester -> target):
        None -> PENDING      follow_user
        PENDING -> ACCEPTED  accept_follow_request
        PENDING -> None      reject_follow_request, unfollow_user (cancel)
        ACCEPTED -> None     unfollow_user
    """

    @classmethod
    def _pending_edge(cls, target_id: int, requester_id: int) -> FollowEdge:
        """
        Lock the pending edge requester -> target.

        Raises:
            ConflictError: NO_PENDING_REQUEST when the pair is not pending
        """
        edge = (
            FollowEdge.objects.select_for_update()
            .filter(owner_id=requester_id, target_id=target_id)
            .first()
        )
        if edge is None or edge.status != FollowStatus.PENDING:
            raise ConflictError(
                "No pending follow request from this user",
                error_code="NO_PENDING_REQUEST",
                details={"requester_id": requester_id, "target_id": target_id},
            )
        return edge

    @classmethod
    def follow_user(cls, requester: User, target: User) -> ServiceResult[str]:
        """
        Request to follow ``target``.

        Writes FollowEdge(requester, target, pending) and
        FollowRequest(target, requester). Repeating the call while pending or
        accepted changes nothing and returns the current status.

        Returns:
            ServiceResult with the resulting FollowStatus value
        """
        requester_id, target_id = _user_id(requester), _user_id(target)
        if requester_id == target_id:
            return ServiceResult.failure(
                "You cannot follow yourself",
                error_code="SELF_FOLLOW",
            )

        current = cls.check_status(requester_id, target_id)
        if current is not None:
            cls.get_logger().debug(
                f"User {requester_id} already {current} on {target_id}; nothing to do"
            )
            return ServiceResult.success(current)

        now = timezone.now()
        try:
            with cls.atomic():
                FollowEdge.objects.create(
                    owner_id=requester_id,
                    target_id=target_id,
                    requested_at=now,
                )
                FollowRequest.objects.update_or_create(
                    owner_id=target_id,
                    requester_id=requester_id,
                    defaults={"requested_at": now},
                )
        except IntegrityError:
            # A concurrent call for the same pair may have won
            status = cls.check_status(requester_id, target_id)
            if status is None:
                return ServiceResult.failure(
                    "Could not create the follow request",
                    error_code="FOLLOW_CONFLICT",
                )
            return ServiceResult.success(status)

        cls.get_logger().info(f"User {requester_id} requested to follow {target_id}")
        return ServiceResult.success(FollowStatus.PENDING)

    @classmethod
    def accept_follow_request(cls, target: User, requester: User) -> ServiceResult[str]:
        """
        Accept ``requester``'s pending request to follow ``target``.

        Deletes the request, adds the follower edge and moves the following
        edge to accepted.
        """
        target_id, requester_id = _user_id(target), _user_id(requester)
        try:
            with cls.atomic():
                edge = cls._pending_edge(target_id, requester_id)
                FollowRequest.objects.filter(
                    owner_id=target_id, requester_id=requester_id
                ).delete()
                edge.accept()
                edge.save(update_fields=["status", "followed_at", "updated_at"])
                FollowerEdge.objects.update_or_create(
                    owner_id=target_id,
                    follower_id=requester_id,
                    defaults={"followed_at": edge.followed_at},
                )
        except ConflictError as exc:
            return ServiceResult.from_exception(exc)

        cls.get_logger().info(f"User {target_id} accepted follower {requester_id}")
        return ServiceResult.success(FollowStatus.ACCEPTED)

    @classmethod
    def reject_follow_request(cls, target: User, requester: User) -> ServiceResult[None]:
        """
        Reject ``requester``'s pending request to follow ``target``.

        Deletes the request and the pending edge; the pair returns to no
        relation.
        """
        target_id, requester_id = _user_id(target), _user_id(requester)
        try:
            with cls.atomic():
                edge = cls._pending_edge(target_id, requester_id)
                FollowRequest.objects.filter(
                    owner_id=target_id, requester_id=requester_id
                ).delete()
                edge.delete()
        except ConflictError as exc:
            return ServiceResult.from_exception(exc)

        cls.get_logger().info(f"User {target_id} rejected follow request from {requester_id}")
        return ServiceResult.success(None)

    @classmethod
    def unfollow_user(cls, requester: User, target: User) -> ServiceResult[None]:
        """
        Stop following ``target``, or cancel a pending request.

        Removes every row of the pair whatever the prior state. Calling it
        with no relation is a no-op.
        """
        requester_id, target_id = _user_id(requester), _user_id(target)
        with cls.atomic():
            edges, _ = FollowEdge.objects.filter(
                owner_id=requester_id, target_id=target_id
            ).delete()
            followers, _ = FollowerEdge.objects.filter(
                owner_id=target_id, follower_id=requester_id
            ).delete()
            requests, _ = FollowRequest.objects.filter(
                owner_id=target_id, requester_id=requester_id
            ).delete()

        if edges or followers or requests:
            cls.get_logger().info(f"User {requester_id} unfollowed {target_id}")
        return ServiceResult.success(None)

    @classmethod
    def check_status(cls, requester: User | int, target: User | int) -> str | None:
        """Status of requester -> target: "pending", "accepted" or None."""
        return (
            FollowEdge.objects.filter(
                owner_id=_user_id(requester), target_id=_user_id(target)
            )
            .values_list("status", flat=True)
            .first()
        )


class CounterAggregator(BaseService):
    """
    Counts and lists derived from the social graph.

    Nothing here is persisted; every call reads the current rows.
    """

    @classmethod
    def follower_count(cls, user: User | int) -> int:
        return FollowerEdge.objects.filter(owner_id=_user_id(user)).count()

    @classmethod
    def following_count(cls, user: User | int) -> int:
        """Accepted outgoing follows only."""
        return FollowEdge.objects.filter(
            owner_id=_user_id(user), status=FollowStatus.ACCEPTED
        ).count()

    @classmethod
    def pending_count(cls, user: User | int) -> int:
        """Incoming requests awaiting the user's approval."""
        return FollowRequest.objects.filter(owner_id=_user_id(user)).count()

    @classmethod
    def _accepted_following_ids(cls, user: User | int) -> set[int]:
        return set(
            FollowEdge.objects.filter(
                owner_id=_user_id(user), status=FollowStatus.ACCEPTED
            ).values_list("target_id", flat=True)
        )

    @classmethod
    def mutual_friends_count(cls, first: User | int, second: User | int) -> int:
        """Number of users both ``first`` and ``second`` follow (accepted)."""
        return len(cls._accepted_following_ids(first) & cls._accepted_following_ids(second))

    @classmethod
    def social_counts(cls, user: User | int) -> dict[str, int]:
        """Counts shown on a profile page."""
        return {
            "followers": cls.follower_count(user),
            "following": cls.following_count(user),
            "pending": cls.pending_count(user),
        }

    @classmethod
    def followers(cls, user: User | int) -> list[UserProfile]:
        """Profiles of the user's followers, most recent first."""
        ids = FollowerEdge.objects.filter(owner_id=_user_id(user)).values_list(
            "follower_id", flat=True
        )
        return ProfileService.get_profiles(ids)

    @classmethod
    def following(cls, user: User | int) -> list[UserProfile]:
        """Profiles of the users the user follows (accepted), most recent first."""
        ids = (
            FollowEdge.objects.filter(owner_id=_user_id(user), status=FollowStatus.ACCEPTED)
            .order_by("-followed_at")
            .values_list("target_id", flat=True)
        )
        return ProfileService.get_profiles(ids)

    @classmethod
    def pending_requests(cls, user: User | int) -> list[UserProfile]:
        """Profiles of users waiting for the user's approval, newest first."""
        ids = FollowRequest.objects.filter(owner_id=_user_id(user)).values_list(
            "requester_id", flat=True
        )
        return ProfileService.get_profiles(ids)
