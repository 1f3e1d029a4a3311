"""
API views for the social graph.

Endpoints:
    POST   /api/v1/social/users/<id>/follow/             - Follow (request)
    DELETE /api/v1/social/users/<id>/follow/             - Unfollow or cancel
    GET    /api/v1/social/users/<id>/status/             - Follow status
    GET    /api/v1/social/users/<id>/counts/             - Follower/following/pending counts
    GET    /api/v1/social/users/<id>/followers/          - Follower profiles
    GET    /api/v1/social/users/<id>/following/          - Following profiles
    GET    /api/v1/social/users/<id>/mutual/             - Mutual friends with caller
    GET    /api/v1/social/requests/                      - Caller's pending requests
    POST   /api/v1/social/requests/<id>/accept/          - Accept request
    POST   /api/v1/social/requests/<id>/reject/          - Reject request

Related files:
    - services.py: FollowService, CounterAggregator
"""

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import UserProfileSerializer
from social.serializers import (
    FollowStatusSerializer,
    MutualFriendsSerializer,
    SocialCountsSerializer,
)
from social.services import CounterAggregator, FollowService

User = get_user_model()


def _user_not_found() -> Response:
    return Response(
        {"error": "User not found", "error_code": "USER_NOT_FOUND"},
        status=status.HTTP_404_NOT_FOUND,
    )


def _failure_response(result) -> Response:
    return Response(
        {"error": result.error, "error_code": result.error_code},
        status=status.HTTP_400_BAD_REQUEST,
    )


class SocialUserView(APIView):
    """Base view for endpoints addressed by another user's id."""

    permission_classes = [IsAuthenticated]

    def get_target(self, user_id):
        """Active user ``user_id`` or None."""
        return User.objects.filter(pk=user_id, is_active=True).first()


class FollowView(SocialUserView):
    """
    Follow or unfollow a user.

    POST sends a follow request (or returns the existing status).
    DELETE unfollows, or cancels a pending request.
    """

    @extend_schema(
        summary="Follow a user",
        tags=["Social"],
        request=None,
        responses={200: FollowStatusSerializer},
    )
    def post(self, request, user_id):
        target = self.get_target(user_id)
        if target is None:
            return _user_not_found()

        result = FollowService.follow_user(request.user, target)
        if not result.success:
            return _failure_response(result)
        return Response({"user_id": target.pk, "status": result.data})

    @extend_schema(
        summary="Unfollow a user or cancel a request",
        tags=["Social"],
        request=None,
        responses={200: FollowStatusSerializer},
    )
    def delete(self, request, user_id):
        FollowService.unfollow_user(request.user, user_id)
        return Response({"user_id": user_id, "status": None})


class FollowStatusView(SocialUserView):
    @extend_schema(
        summary="Follow status with a user",
        tags=["Social"],
        responses={200: FollowStatusSerializer},
    )
    def get(self, request, user_id):
        target = self.get_target(user_id)
        if target is None:
            return _user_not_found()

        data = {
            "user_id": target.pk,
            "status": FollowService.check_status(request.user, target),
            "follows_you": FollowService.check_status(target, request.user),
        }
        return Response(FollowStatusSerializer(data).data)


class SocialCountsView(SocialUserView):
    @extend_schema(
        summary="Follower, following and pending counts",
        tags=["Social"],
        responses={200: SocialCountsSerializer},
    )
    def get(self, request, user_id):
        target = self.get_target(user_id)
        if target is None:
            return _user_not_found()
        return Response(CounterAggregator.social_counts(target))


class FollowersView(SocialUserView):
    @extend_schema(
        summary="A user's followers",
        tags=["Social"],
        responses={200: UserProfileSerializer(many=True)},
    )
    def get(self, request, user_id):
        target = self.get_target(user_id)
        if target is None:
            return _user_not_found()
        profiles = CounterAggregator.followers(target)
        return Response(UserProfileSerializer(profiles, many=True).data)


class FollowingView(SocialUserView):
    @extend_schema(
        summary="Users a user follows",
        tags=["Social"],
        responses={200: UserProfileSerializer(many=True)},
    )
    def get(self, request, user_id):
        target = self.get_target(user_id)
        if target is None:
            return _user_not_found()
        profiles = CounterAggregator.following(target)
        return Response(UserProfileSerializer(profiles, many=True).data)


class MutualFriendsView(SocialUserView):
    """Number of users both the caller and the given user follow."""

    @extend_schema(
        summary="Mutual friends count with a user",
        tags=["Social"],
        responses={200: MutualFriendsSerializer},
    )
    def get(self, request, user_id):
        target = self.get_target(user_id)
        if target is None:
            return _user_not_found()
        count = CounterAggregator.mutual_friends_count(request.user, target)
        return Response({"user_id": target.pk, "mutual_friends_count": count})


class FollowRequestListView(APIView):
    """Pending follow requests awaiting the caller's approval."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Pending follow requests",
        tags=["Social - Requests"],
        responses={200: UserProfileSerializer(many=True)},
    )
    def get(self, request):
        profiles = CounterAggregator.pending_requests(request.user)
        return Response(UserProfileSerializer(profiles, many=True).data)


class AcceptFollowRequestView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Accept a follow request",
        tags=["Social - Requests"],
        request=None,
        responses={200: FollowStatusSerializer},
    )
    def post(self, request, requester_id):
        result = FollowService.accept_follow_request(request.user, requester_id)
        if not result.success:
            return _failure_response(result)
        return Response({"user_id": requester_id, "status": result.data})


class RejectFollowRequestView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Reject a follow request",
        tags=["Social - Requests"],
        request=None,
        responses={200: FollowStatusSerializer},
    )
    def post(self, request, requester_id):
        result = FollowService.reject_follow_request(request.user, requester_id)
        if not result.success:
            return _failure_response(result)
        return Response({"user_id": requester_id, "status": None})
