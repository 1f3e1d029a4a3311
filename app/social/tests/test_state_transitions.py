"""
Tests for FollowEdge state transitions using django-fsm.
"""

import pytest
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from social.models import FollowEdge, FollowStatus


class TestFollowEdgeTransitions:
    """Tests for the pending -> accepted transition."""

    def test_new_edge_is_pending(self):
        edge = FollowEdge(owner_id=1, target_id=2)

        assert edge.status == FollowStatus.PENDING
        assert edge.followed_at is None

    def test_pending_to_accepted_sets_followed_at(self):
        edge = FollowEdge(owner_id=1, target_id=2)

        edge.accept()

        assert edge.status == FollowStatus.ACCEPTED
        assert edge.followed_at is not None

    def test_accept_uses_given_timestamp(self):
        at = timezone.now()
        edge = FollowEdge(owner_id=1, target_id=2)

        edge.accept(at=at)

        assert edge.followed_at == at

    def test_accepted_cannot_accept_again(self):
        """
        Why it matters: a second accept would move followed_at and hide the
        original acceptance time.
        """
        edge = FollowEdge(owner_id=1, target_id=2, status=FollowStatus.ACCEPTED)

        with pytest.raises(TransitionNotAllowed):
            edge.accept()
