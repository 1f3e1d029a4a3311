"""
Authentication application.

Holds the user records that externally issued tokens refer to, and the
public profile store the chat and social apps read from.

Key components:
    - User model: Email-keyed user, integer id is the opaque user identifier
    - Profile model: Handle (case-normalized) and display name
    - ProfileService: get_profile / search_by_handle / update_profile

Usage:
    from authentication.services import ProfileService

    profile = ProfileService.get_profile(user_id)  # UserProfile or None
"""
