"""
Profile store service.

This module provides ProfileService, the read/write interface the chat and
social apps use to resolve user identifiers into public profile data.

Usage:
    from authentication.services import ProfileService

    profile = ProfileService.get_profile(user_id)
    if profile is None:
        ...  # unknown or deactivated user

    matches = ProfileService.search_by_handle("ali")  # up to 5 profiles

Note:
    Lookups never raise for missing users. Callers that aggregate profiles
    (friends lists, conversation lists) filter the None results out.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError

from authentication.models import Profile, User
from core.services import BaseService, ServiceResult

logger = logging.getLogger(__name__)

EDITABLE_PROFILE_FIELDS = ("username", "first_name", "last_name")


@dataclass(frozen=True)
class UserProfile:
    """
    Read-only public view of a user.

    Attributes:
        id: Opaque user identifier
        handle: Case-normalized handle ("" when not chosen yet)
        display_name: Full name, falling back to the handle
    """

    id: int
    handle: str
    display_name: str

    @classmethod
    def from_profile(cls, profile: Profile) -> UserProfile:
        return cls(
            id=profile.user_id,
            handle=profile.username,
            display_name=profile.display_name,
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "handle": self.handle, "display_name": self.display_name}


class ProfileService(BaseService):
    """
    Service for profile lookups, handle search and profile updates.

    Only active users are visible through lookups and search.

    Methods:
        get_profile: Resolve one identifier to a UserProfile or None
        get_profiles: Resolve many identifiers, skipping missing ones
        search_by_handle: Case-insensitive prefix search on handles
        update_profile: Change handle and names
    """

    @classmethod
    def _visible_profiles(cls):
        return Profile.objects.select_related("user").filter(user__is_active=True)

    @classmethod
    def get_profile(cls, user_id) -> UserProfile | None:
        """
        Return the public profile for ``user_id``, or None if absent.

        Malformed identifiers are treated as absent.
        """
        try:
            profile = cls._visible_profiles().get(user_id=user_id)
        except (Profile.DoesNotExist, ValueError, TypeError):
            cls.get_logger().debug(f"Profile not found for user: {user_id}")
            return None
        return UserProfile.from_profile(profile)

    @classmethod
    def get_profiles(cls, user_ids: Iterable) -> list[UserProfile]:
        """
        Resolve several identifiers, preserving input order.

        Identifiers without a visible profile are filtered out.
        """
        ids = list(user_ids)
        if not ids:
            return []
        by_id = {
            profile.user_id: UserProfile.from_profile(profile)
            for profile in cls._visible_profiles().filter(user_id__in=ids)
        }
        return [by_id[user_id] for user_id in ids if user_id in by_id]

    @classmethod
    def search_by_handle(cls, term: str, limit: int | None = None) -> list[UserProfile]:
        """
        Prefix search on handles, ordered by handle.

        Handles are stored lower-cased, so the term is lower-cased before
        matching. A blank term matches nothing.

        Args:
            term: Handle prefix typed by the user
            limit: Maximum number of results (defaults to SOCIAL_SEARCH_LIMIT)
        """
        term = (term or "").strip().lower()
        if not term:
            return []
        if limit is None:
            limit = settings.SOCIAL_SEARCH_LIMIT

        profiles = (
            cls._visible_profiles()
            .filter(username__startswith=term)
            .order_by("username")[:limit]
        )
        return [UserProfile.from_profile(profile) for profile in profiles]

    @classmethod
    def update_profile(cls, user: User, **fields) -> ServiceResult[UserProfile]:
        """
        Update the caller's handle and names.

        Unknown fields are ignored. The handle is validated and must be
        unique case-insensitively.

        Returns:
            ServiceResult with the updated UserProfile, or a failure with
            error_code INVALID_PROFILE / HANDLE_TAKEN
        """
        from django.core.exceptions import ValidationError as DjangoValidationError

        profile, _ = Profile.objects.get_or_create(user=user)
        changed = [name for name in EDITABLE_PROFILE_FIELDS if name in fields]
        for name in changed:
            setattr(profile, name, fields[name])

        try:
            profile.full_clean(validate_constraints=False)
        except DjangoValidationError as exc:
            return ServiceResult.failure(
                "Invalid profile data",
                error_code="INVALID_PROFILE",
                errors=exc.message_dict,
            )

        if profile.username and (
            Profile.objects.filter(username__iexact=profile.username)
            .exclude(user=user)
            .exists()
        ):
            return ServiceResult.failure(
                "This handle is already taken", error_code="HANDLE_TAKEN"
            )

        try:
            with cls.atomic():
                profile.save()
        except IntegrityError:
            # Lost a race against a concurrent update claiming the same handle
            cls.get_logger().warning(f"Handle conflict on update for user {user.pk}")
            return ServiceResult.failure(
                "This handle is already taken", error_code="HANDLE_TAKEN"
            )

        cls.get_logger().info(f"Profile updated for user {user.pk}: {', '.join(changed)}")
        return ServiceResult.success(UserProfile.from_profile(profile))
