"""
Tests for FollowGraphReconciliation.

Tests cover:
- Detection of each discrepancy type
- Repair of each discrepancy type
- Dry runs change nothing
- A second run after repair finds nothing
- Consistent graphs produce no discrepancies

Inconsistent pairs are built with factories, bypassing FollowService.
"""

from unittest.mock import patch

from django.db import DatabaseError

from social.models import FollowEdge, FollowerEdge, FollowRequest, FollowStatus
from social.reconciliation import (
    Discrepancy,
    DiscrepancyType,
    FollowGraphReconciliation,
)
from social.services import FollowService
from social.tests.factories import (
    FollowEdgeFactory,
    FollowerEdgeFactory,
    FollowRequestFactory,
)


def found_types(run_result):
    return sorted(d.discrepancy_type for d in run_result.discrepancies)


class TestDetection:
    """Each broken pair is reported once, with the right type."""

    def test_consistent_graph_has_no_discrepancies(self, alice, bob, carol, alice_follows_bob):
        FollowService.follow_user(carol, bob)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert result.success
        assert result.data.discrepancies == []
        assert result.data.edges_checked == 2
        assert result.data.requests_checked == 1
        assert result.data.followers_checked == 1

    def test_orphan_request(self, alice, bob):
        FollowRequestFactory(owner=bob, requester=alice)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert found_types(result.data) == [DiscrepancyType.ORPHAN_REQUEST]
        discrepancy = result.data.discrepancies[0]
        assert (discrepancy.requester_id, discrepancy.target_id) == (alice.pk, bob.pk)

    def test_orphan_follower(self, alice, bob):
        FollowerEdgeFactory(owner=bob, follower=alice)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert found_types(result.data) == [DiscrepancyType.ORPHAN_FOLLOWER]

    def test_pending_missing_request(self, alice, bob):
        FollowEdgeFactory(owner=alice, target=bob)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert found_types(result.data) == [DiscrepancyType.PENDING_MISSING_REQUEST]

    def test_pending_with_follower(self, alice, bob):
        """A half-applied acceptance: follower written, edge still pending."""
        FollowEdgeFactory(owner=alice, target=bob)
        FollowerEdgeFactory(owner=bob, follower=alice)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert found_types(result.data) == [DiscrepancyType.PENDING_WITH_FOLLOWER]

    def test_accepted_missing_follower(self, alice, bob):
        FollowEdgeFactory(owner=alice, target=bob, status=FollowStatus.ACCEPTED)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert found_types(result.data) == [DiscrepancyType.ACCEPTED_MISSING_FOLLOWER]

    def test_accepted_with_request(self, alice, bob, alice_follows_bob):
        FollowRequestFactory(owner=bob, requester=alice)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert found_types(result.data) == [DiscrepancyType.ACCEPTED_WITH_REQUEST]

    def test_small_batches_see_every_row(self, alice, bob, carol):
        for requester in (alice, carol):
            FollowRequestFactory(owner=bob, requester=requester)
        FollowRequestFactory(owner=alice, requester=carol)

        result = FollowGraphReconciliation.run(dry_run=True, batch_size=1)

        assert result.data.requests_checked == 3
        assert result.data.discrepancies_found == 3


class TestDryRun:
    def test_dry_run_changes_nothing(self, alice, bob):
        FollowRequestFactory(owner=bob, requester=alice)

        result = FollowGraphReconciliation.run(dry_run=True)

        assert result.data.repaired == 0
        assert FollowRequest.objects.count() == 1


class TestRepair:
    """Each discrepancy type is repaired to a consistent pair."""

    def test_orphan_request_deleted(self, alice, bob):
        FollowRequestFactory(owner=bob, requester=alice)

        result = FollowGraphReconciliation.run()

        assert result.data.repaired == 1
        assert not FollowRequest.objects.exists()
        assert FollowService.check_status(alice, bob) is None

    def test_orphan_follower_deleted(self, alice, bob):
        FollowerEdgeFactory(owner=bob, follower=alice)

        FollowGraphReconciliation.run()

        assert not FollowerEdge.objects.exists()

    def test_pending_missing_request_recreated(self, alice, bob):
        edge = FollowEdgeFactory(owner=alice, target=bob)

        FollowGraphReconciliation.run()

        request = FollowRequest.objects.get(owner=bob, requester=alice)
        assert request.requested_at == edge.requested_at

    def test_pending_with_follower_completes_acceptance(self, alice, bob):
        FollowEdgeFactory(owner=alice, target=bob)
        follower = FollowerEdgeFactory(owner=bob, follower=alice)
        FollowRequestFactory(owner=bob, requester=alice)

        FollowGraphReconciliation.run()

        edge = FollowEdge.objects.get(owner=alice, target=bob)
        assert edge.status == FollowStatus.ACCEPTED
        assert edge.followed_at == follower.followed_at
        assert not FollowRequest.objects.exists()

    def test_accepted_missing_follower_recreated(self, alice, bob):
        FollowEdgeFactory(owner=alice, target=bob, status=FollowStatus.ACCEPTED)

        FollowGraphReconciliation.run()

        assert FollowerEdge.objects.filter(owner=bob, follower=alice).exists()

    def test_accepted_with_request_cleans_request(self, alice, bob, alice_follows_bob):
        FollowRequestFactory(owner=bob, requester=alice)

        FollowGraphReconciliation.run()

        assert not FollowRequest.objects.exists()
        assert FollowService.check_status(alice, bob) == FollowStatus.ACCEPTED

    def test_second_run_finds_nothing(self, alice, bob, carol):
        """
        Why it matters: the task runs every few hours; repairs must converge
        and never flip a pair back and forth.
        """
        FollowRequestFactory(owner=bob, requester=alice)
        FollowerEdgeFactory(owner=alice, follower=carol)
        FollowEdgeFactory(owner=bob, target=carol)
        FollowEdgeFactory(owner=carol, target=bob, status=FollowStatus.ACCEPTED)
        FollowEdgeFactory(owner=bob, target=alice)
        FollowerEdgeFactory(owner=alice, follower=bob)

        first = FollowGraphReconciliation.run()
        second = FollowGraphReconciliation.run()

        assert first.data.discrepancies_found == 5
        assert first.data.repaired == 5
        assert second.data.discrepancies == []

    def test_repair_skips_pair_fixed_since_detection(self, alice, bob):
        stale = Discrepancy(DiscrepancyType.ORPHAN_REQUEST, alice.pk, bob.pk)

        assert FollowGraphReconciliation._repair(stale) is None


class TestFailures:
    def test_database_error_returns_failure(self, alice, bob):
        FollowRequestFactory(owner=bob, requester=alice)

        with patch(
            "social.reconciliation._edge_statuses",
            side_effect=DatabaseError("connection lost"),
        ):
            result = FollowGraphReconciliation.run()

        assert not result.success
        assert result.error_code == "DATABASEERROR"
