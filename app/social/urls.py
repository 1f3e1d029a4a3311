"""
URL configuration for the social graph API.

URL structure:
    /users/<id>/follow/            - Follow (POST) / unfollow (DELETE)
    /users/<id>/status/            - Follow status
    /users/<id>/counts/            - Counters
    /users/<id>/followers/         - Follower profiles
    /users/<id>/following/         - Following profiles
    /users/<id>/mutual/            - Mutual friends count
    /requests/                     - Pending requests
    /requests/<id>/accept/         - Accept
    /requests/<id>/reject/         - Reject

All URLs are prefixed with /api/v1/social/ in the main URL configuration.
"""

from django.urls import path

from social import views

app_name = "social"

urlpatterns = [
    path("users/<int:user_id>/follow/", views.FollowView.as_view(), name="follow"),
    path("users/<int:user_id>/status/", views.FollowStatusView.as_view(), name="follow-status"),
    path("users/<int:user_id>/counts/", views.SocialCountsView.as_view(), name="social-counts"),
    path("users/<int:user_id>/followers/", views.FollowersView.as_view(), name="followers"),
    path("users/<int:user_id>/following/", views.FollowingView.as_view(), name="following"),
    path("users/<int:user_id>/mutual/", views.MutualFriendsView.as_view(), name="mutual-friends"),
    path("requests/", views.FollowRequestListView.as_view(), name="follow-requests"),
    path(
        "requests/<int:requester_id>/accept/",
        views.AcceptFollowRequestView.as_view(),
        name="accept-follow-request",
    ),
    path(
        "requests/<int:requester_id>/reject/",
        views.RejectFollowRequestView.as_view(),
        name="reject-follow-request",
    ),
]
