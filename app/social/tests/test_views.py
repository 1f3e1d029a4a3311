"""
Tests for social graph API views.
"""

from rest_framework import status

from social.models import FollowStatus
from social.services import FollowService


def user_url(user, action):
    return f"/api/v1/social/users/{user.pk}/{action}/"


def request_url(requester, action):
    return f"/api/v1/social/requests/{requester.pk}/{action}/"


class TestFollowView:
    """Tests for POST/DELETE /api/v1/social/users/<id>/follow/."""

    def test_follow_returns_pending(self, alice_client, alice, bob):
        response = alice_client.post(user_url(bob, "follow"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"user_id": bob.pk, "status": "pending"}

    def test_follow_self_returns_400(self, alice_client, alice):
        response = alice_client.post(user_url(alice, "follow"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "SELF_FOLLOW"

    def test_follow_unknown_user_returns_404(self, alice_client):
        response = alice_client.post("/api/v1/social/users/999999/follow/")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "USER_NOT_FOUND"

    def test_unfollow_removes_relation(self, alice_client, alice, bob, alice_follows_bob):
        response = alice_client.delete(user_url(bob, "follow"))

        assert response.status_code == status.HTTP_200_OK
        assert FollowService.check_status(alice, bob) is None

    def test_requires_authentication(self, api_client, bob):
        response = api_client.post(user_url(bob, "follow"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestFollowStatusView:
    def test_status_in_both_directions(self, bob_client, alice, bob, alice_follows_bob):
        response = bob_client.get(user_url(alice, "status"))

        assert response.data == {
            "user_id": alice.pk,
            "status": None,
            "follows_you": FollowStatus.ACCEPTED,
        }


class TestCountsAndLists:
    def test_counts(self, alice_client, alice, bob, carol, alice_follows_bob):
        FollowService.follow_user(carol, bob)

        response = alice_client.get(user_url(bob, "counts"))

        assert response.data == {"followers": 1, "following": 0, "pending": 1}

    def test_followers_and_following(self, alice_client, alice, bob, alice_follows_bob):
        followers = alice_client.get(user_url(bob, "followers"))
        following = alice_client.get(user_url(alice, "following"))

        assert [p["handle"] for p in followers.data] == ["alice"]
        assert [p["handle"] for p in following.data] == ["bob"]
        assert followers.data[0]["display_name"] == "Alice"

    def test_mutual_friends(self, alice_client, alice, bob, carol):
        for follower in (alice, bob):
            FollowService.follow_user(follower, carol)
            FollowService.accept_follow_request(carol, follower)

        response = alice_client.get(user_url(bob, "mutual"))

        assert response.data == {"user_id": bob.pk, "mutual_friends_count": 1}


class TestFollowRequestViews:
    """Tests for /api/v1/social/requests/."""

    def test_list_pending_requests(self, bob_client, alice, bob):
        FollowService.follow_user(alice, bob)

        response = bob_client.get("/api/v1/social/requests/")

        assert [p["id"] for p in response.data] == [alice.pk]

    def test_accept(self, bob_client, alice, bob):
        FollowService.follow_user(alice, bob)

        response = bob_client.post(request_url(alice, "accept"))

        assert response.status_code == status.HTTP_200_OK
        assert FollowService.check_status(alice, bob) == FollowStatus.ACCEPTED

    def test_reject(self, bob_client, alice, bob):
        FollowService.follow_user(alice, bob)

        response = bob_client.post(request_url(alice, "reject"))

        assert response.status_code == status.HTTP_200_OK
        assert FollowService.check_status(alice, bob) is None

    def test_accept_without_request_returns_400(self, bob_client, alice):
        response = bob_client.post(request_url(alice, "accept"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "NO_PENDING_REQUEST"
