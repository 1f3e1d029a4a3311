"""
Serializers for the profile store.

This module provides DRF serializers for:
- UserProfile snapshots (read operations, reused by chat and social)
- Profile updates (handle and names)
- Handle search query parameters

Related files:
    - services.py: ProfileService and the UserProfile dataclass
    - views.py: Views that use these serializers
"""

from rest_framework import serializers


class UserProfileSerializer(serializers.Serializer):
    """
    Serializer for the UserProfile dataclass.

    Read-only; the shape every other app embeds when it shows a user.
    """

    id = serializers.IntegerField(read_only=True)
    handle = serializers.CharField(read_only=True)
    display_name = serializers.CharField(read_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Validates the payload of a profile update.

    Format and uniqueness checks of the handle happen in
    ProfileService.update_profile so that every caller gets them.
    """

    username = serializers.CharField(max_length=30, required=False, allow_blank=True)
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)


class HandleSearchSerializer(serializers.Serializer):
    """Query parameters for handle prefix search."""

    q = serializers.CharField(max_length=30, allow_blank=True, trim_whitespace=True)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=20)
