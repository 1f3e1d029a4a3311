"""
Serializers for the social graph API.

Profiles in lists use authentication.serializers.UserProfileSerializer.
"""

from rest_framework import serializers

from social.models import FollowStatus


class FollowStatusSerializer(serializers.Serializer):
    """
    Follow state between the caller and another user.

    status: caller -> user
    follows_you: user -> caller
    """

    user_id = serializers.IntegerField(read_only=True)
    status = serializers.ChoiceField(choices=FollowStatus.choices, allow_null=True, read_only=True)
    follows_you = serializers.ChoiceField(
        choices=FollowStatus.choices, allow_null=True, read_only=True
    )


class SocialCountsSerializer(serializers.Serializer):
    followers = serializers.IntegerField(read_only=True)
    following = serializers.IntegerField(read_only=True)
    pending = serializers.IntegerField(read_only=True)


class MutualFriendsSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(read_only=True)
    mutual_friends_count = serializers.IntegerField(read_only=True)
