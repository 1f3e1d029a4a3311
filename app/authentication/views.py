"""
API views for the profile store.

Endpoints:
    GET   /api/v1/users/me/          - Caller's own profile
    PATCH /api/v1/users/me/          - Update handle / names
    GET   /api/v1/users/search/?q=   - Handle prefix search
    GET   /api/v1/users/<id>/        - Public profile by identifier

Related files:
    - services.py: ProfileService
    - serializers.py: UserProfileSerializer, ProfileUpdateSerializer
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    HandleSearchSerializer,
    ProfileUpdateSerializer,
    UserProfileSerializer,
)
from authentication.services import ProfileService


class MyProfileView(APIView):
    """
    Current user's profile.

    GET: Retrieve the caller's public profile
    PATCH: Update handle, first name or last name
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current user's profile",
        tags=["Users"],
        responses={200: UserProfileSerializer},
    )
    def get(self, request):
        profile = ProfileService.get_profile(request.user.id)
        if profile is None:
            return Response(
                {"error": "Profile not found", "error_code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(UserProfileSerializer(profile).data)

    @extend_schema(
        summary="Update current user's profile",
        description="Partial update. Handles are stored lower-cased and must be unique.",
        tags=["Users"],
        request=ProfileUpdateSerializer,
        responses={200: UserProfileSerializer},
    )
    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            body = {"error": result.error, "error_code": result.error_code}
            if result.errors:
                body["errors"] = result.errors
            return Response(body, status=status.HTTP_400_BAD_REQUEST)

        return Response(UserProfileSerializer(result.data).data)


class UserSearchView(APIView):
    """
    Search users by handle prefix.

    Matching is case-insensitive and returns at most SOCIAL_SEARCH_LIMIT
    profiles ordered by handle.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Search users by handle",
        tags=["Users"],
        parameters=[
            OpenApiParameter(name="q", description="Handle prefix", required=True, type=str),
            OpenApiParameter(name="limit", description="Maximum results", required=False, type=int),
        ],
        responses={200: UserProfileSerializer(many=True)},
    )
    def get(self, request):
        params = HandleSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        profiles = ProfileService.search_by_handle(
            params.validated_data["q"],
            limit=params.validated_data.get("limit"),
        )
        return Response(UserProfileSerializer(profiles, many=True).data)


class UserProfileView(APIView):
    """Public profile of any active user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get a user's profile",
        tags=["Users"],
        responses={200: UserProfileSerializer},
    )
    def get(self, request, user_id):
        profile = ProfileService.get_profile(user_id)
        if profile is None:
            return Response(
                {"error": "User not found", "error_code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(UserProfileSerializer(profile).data)
