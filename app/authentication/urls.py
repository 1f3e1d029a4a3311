"""
URL configuration for the profile store.

URL structure:
    /api/v1/users/me/          - Own profile (GET/PATCH)
    /api/v1/users/search/      - Handle prefix search
    /api/v1/users/<id>/        - Public profile
"""

from django.urls import path

from authentication.views import MyProfileView, UserProfileView, UserSearchView

app_name = "authentication"

urlpatterns = [
    path("me/", MyProfileView.as_view(), name="my-profile"),
    path("search/", UserSearchView.as_view(), name="user-search"),
    path("<int:user_id>/", UserProfileView.as_view(), name="user-profile"),
]
