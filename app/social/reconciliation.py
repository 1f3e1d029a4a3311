"""
Reconciliation pass for the follow graph.

FollowService writes every transition in one transaction, so committed
transitions keep the three collections consistent. Rows written some other
way (imports, admin edits, legacy partial writes) can still break the pair
rule documented in social.models. This pass finds and repairs them.

Detection Categories:
    orphan_request:             FollowRequest with no FollowEdge
    orphan_follower:            FollowerEdge with no FollowEdge
    pending_missing_request:    pending FollowEdge with no FollowRequest
    pending_with_follower:      pending FollowEdge that already has a FollowerEdge
    accepted_missing_follower:  accepted FollowEdge with no FollowerEdge
    accepted_with_request:      accepted FollowEdge whose FollowRequest remains

Repair Strategy:
    - Rows without a following edge are deleted
    - A follower edge is evidence of acceptance: the pending edge is accepted
    - Otherwise the following edge is the source of truth and the missing
      row is recreated (or the stale one deleted)
    - Each repair re-checks the pair under a row lock, so repeating a run
      changes nothing

Usage:
    from social.reconciliation import FollowGraphReconciliation

    result = FollowGraphReconciliation.run(dry_run=True)
    if result.success:
        print(f"Found {result.data.discrepancies_found} discrepancies")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from django_fsm import TransitionNotAllowed

from core.services import BaseService, ServiceResult
from social.models import FollowEdge, FollowerEdge, FollowRequest, FollowStatus

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any

    from django.db.models import QuerySet


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


# =============================================================================
# Data Types
# =============================================================================


class DiscrepancyType(str, Enum):
    """Types of discrepancies that can be detected."""

    ORPHAN_REQUEST = "orphan_request"
    ORPHAN_FOLLOWER = "orphan_follower"
    PENDING_MISSING_REQUEST = "pending_missing_request"
    PENDING_WITH_FOLLOWER = "pending_with_follower"
    ACCEPTED_MISSING_FOLLOWER = "accepted_missing_follower"
    ACCEPTED_WITH_REQUEST = "accepted_with_request"


@dataclass
class Discrepancy:
    """A pair (requester -> target) whose rows break the pair rule."""

    discrepancy_type: DiscrepancyType
    requester_id: int
    target_id: int
    detected_at: datetime = field(default_factory=timezone.now)
    action_taken: str | None = None

    @property
    def repaired(self) -> bool:
        return self.action_taken is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.discrepancy_type.value,
            "requester_id": self.requester_id,
            "target_id": self.target_id,
            "action_taken": self.action_taken,
        }


@dataclass
class ReconciliationRunResult:
    """Summary result of a reconciliation run."""

    started_at: datetime
    dry_run: bool
    completed_at: datetime | None = None
    edges_checked: int = 0
    followers_checked: int = 0
    requests_checked: int = 0
    discrepancies: list[Discrepancy] = field(default_factory=list)

    @property
    def discrepancies_found(self) -> int:
        return len(self.discrepancies)

    @property
    def repaired(self) -> int:
        return sum(1 for d in self.discrepancies if d.repaired)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "edges_checked": self.edges_checked,
            "followers_checked": self.followers_checked,
            "requests_checked": self.requests_checked,
            "discrepancies_found": self.discrepancies_found,
            "repaired": self.repaired,
            "discrepancies": [d.to_dict() for d in self.discrepancies],
        }


def _batched(queryset: QuerySet, fields: tuple[str, ...], size: int) -> Iterator[list[tuple]]:
    """Yield rows of ``fields`` in primary key order, ``size`` at a time."""
    last_pk = 0
    while True:
        rows = list(
            queryset.filter(pk__gt=last_pk)
            .order_by("pk")
            .values_list("pk", *fields)[:size]
        )
        if not rows:
            return
        yield rows
        last_pk = rows[-1][0]


def _edge_statuses(pairs: list[tuple[int, int]]) -> dict[tuple[int, int], str]:
    """Status of each (owner, target) following edge that exists."""
    if not pairs:
        return {}
    owners = {owner for owner, _ in pairs}
    targets = {target for _, target in pairs}
    rows = FollowEdge.objects.filter(owner_id__in=owners, target_id__in=targets).values_list(
        "owner_id", "target_id", "status"
    )
    return {(owner, target): status for owner, target, status in rows}


def _existing_pairs(model, owner_field: str, other_field: str, pairs) -> set[tuple[int, int]]:
    """(other, owner) pairs present in ``model`` for the given (requester, target) pairs."""
    if not pairs:
        return set()
    requesters = {requester for requester, _ in pairs}
    targets = {target for _, target in pairs}
    rows = model.objects.filter(
        **{f"{owner_field}_id__in": targets, f"{other_field}_id__in": requesters}
    ).values_list(f"{other_field}_id", f"{owner_field}_id")
    return set(rows)


# =============================================================================
# Reconciliation Service
# =============================================================================


class FollowGraphReconciliation(BaseService):
    """
    Detects and repairs follow pairs that break the pair rule.

    Usage:
        result = FollowGraphReconciliation.run()
        result = FollowGraphReconciliation.run(dry_run=True)  # detect only
    """

    @classmethod
    def run(
        cls,
        dry_run: bool = False,
        batch_size: int | None = None,
    ) -> ServiceResult[ReconciliationRunResult]:
        """
        Run a full reconciliation pass.

        Args:
            dry_run: Detect only, change nothing
            batch_size: Rows read per query (defaults to
                SOCIAL_RECONCILIATION_BATCH_SIZE)

        Returns:
            ServiceResult containing ReconciliationRunResult
        """
        if batch_size is None:
            batch_size = getattr(
                settings, "SOCIAL_RECONCILIATION_BATCH_SIZE", DEFAULT_BATCH_SIZE
            )

        run = ReconciliationRunResult(started_at=timezone.now(), dry_run=dry_run)
        cls.get_logger().info(
            "Starting follow graph reconciliation",
            extra={"dry_run": dry_run, "batch_size": batch_size},
        )

        try:
            run.discrepancies.extend(cls._check_requests(run, batch_size))
            run.discrepancies.extend(cls._check_followers(run, batch_size))
            run.discrepancies.extend(cls._check_edges(run, batch_size))

            if not dry_run:
                for discrepancy in run.discrepancies:
                    discrepancy.action_taken = cls._repair(discrepancy)
        except DatabaseError as exc:
            return cls.handle_exception(exc, "Follow graph reconciliation failed")

        run.completed_at = timezone.now()
        cls.get_logger().info(
            f"Follow graph reconciliation found {run.discrepancies_found} "
            f"discrepancies, repaired {run.repaired}",
            extra={"dry_run": dry_run},
        )
        return ServiceResult.success(run)

    # =========================================================================
    # Detection
    # =========================================================================

    @classmethod
    def _check_requests(cls, run: ReconciliationRunResult, batch_size: int) -> list[Discrepancy]:
        found = []
        for rows in _batched(FollowRequest.objects.all(), ("requester_id", "owner_id"), batch_size):
            run.requests_checked += len(rows)
            pairs = [(requester, target) for _, requester, target in rows]
            statuses = _edge_statuses(pairs)
            for pair in pairs:
                status = statuses.get(pair)
                if status is None:
                    found.append(Discrepancy(DiscrepancyType.ORPHAN_REQUEST, *pair))
                elif status == FollowStatus.ACCEPTED:
                    found.append(Discrepancy(DiscrepancyType.ACCEPTED_WITH_REQUEST, *pair))
        return found

    @classmethod
    def _check_followers(cls, run: ReconciliationRunResult, batch_size: int) -> list[Discrepancy]:
        found = []
        for rows in _batched(FollowerEdge.objects.all(), ("follower_id", "owner_id"), batch_size):
            run.followers_checked += len(rows)
            pairs = [(follower, target) for _, follower, target in rows]
            statuses = _edge_statuses(pairs)
            for pair in pairs:
                status = statuses.get(pair)
                if status is None:
                    found.append(Discrepancy(DiscrepancyType.ORPHAN_FOLLOWER, *pair))
                elif status == FollowStatus.PENDING:
                    found.append(Discrepancy(DiscrepancyType.PENDING_WITH_FOLLOWER, *pair))
        return found

    @classmethod
    def _check_edges(cls, run: ReconciliationRunResult, batch_size: int) -> list[Discrepancy]:
        found = []
        fields = ("owner_id", "target_id", "status")
        for rows in _batched(FollowEdge.objects.all(), fields, batch_size):
            run.edges_checked += len(rows)
            pairs = [(owner, target) for _, owner, target, _status in rows]
            requests = _existing_pairs(FollowRequest, "owner", "requester", pairs)
            followers = _existing_pairs(FollowerEdge, "owner", "follower", pairs)
            for _, owner, target, status in rows:
                pair = (owner, target)
                if status == FollowStatus.PENDING:
                    # A pending edge with a follower is reported by _check_followers
                    if pair not in requests and pair not in followers:
                        found.append(Discrepancy(DiscrepancyType.PENDING_MISSING_REQUEST, *pair))
                elif pair not in followers:
                    found.append(Discrepancy(DiscrepancyType.ACCEPTED_MISSING_FOLLOWER, *pair))
        return found

    # =========================================================================
    # Repair
    # =========================================================================

    @classmethod
    def _repair(cls, discrepancy: Discrepancy) -> str | None:
        """
        Repair one pair under a row lock.

        Returns a description of the change, or None when the pair no longer
        needs this repair.
        """
        requester_id, target_id = discrepancy.requester_id, discrepancy.target_id
        kind = discrepancy.discrepancy_type
        request_rows = FollowRequest.objects.filter(owner_id=target_id, requester_id=requester_id)
        follower_rows = FollowerEdge.objects.filter(owner_id=target_id, follower_id=requester_id)

        with cls.atomic():
            edge = (
                FollowEdge.objects.select_for_update()
                .filter(owner_id=requester_id, target_id=target_id)
                .first()
            )

            if kind == DiscrepancyType.ORPHAN_REQUEST:
                if edge is None and request_rows.delete()[0]:
                    action = "Deleted follow request without following edge"
                else:
                    action = None

            elif kind == DiscrepancyType.ORPHAN_FOLLOWER:
                if edge is None and follower_rows.delete()[0]:
                    action = "Deleted follower edge without following edge"
                else:
                    action = None

            elif kind == DiscrepancyType.ACCEPTED_WITH_REQUEST:
                action = None
                if edge is not None and edge.status == FollowStatus.ACCEPTED:
                    if request_rows.delete()[0]:
                        action = "Deleted stale follow request"

            elif kind == DiscrepancyType.PENDING_MISSING_REQUEST:
                action = None
                if edge is not None and edge.status == FollowStatus.PENDING:
                    _, created = FollowRequest.objects.get_or_create(
                        owner_id=target_id,
                        requester_id=requester_id,
                        defaults={"requested_at": edge.requested_at},
                    )
                    if created:
                        action = "Recreated follow request"

            elif kind == DiscrepancyType.ACCEPTED_MISSING_FOLLOWER:
                action = None
                if edge is not None and edge.status == FollowStatus.ACCEPTED:
                    _, created = FollowerEdge.objects.get_or_create(
                        owner_id=target_id,
                        follower_id=requester_id,
                        defaults={"followed_at": edge.followed_at or timezone.now()},
                    )
                    if created:
                        action = "Recreated follower edge"

            else:
                action = cls._complete_acceptance(edge, follower_rows.first(), request_rows)

        if action:
            cls.get_logger().info(
                f"Repaired {kind.value} for {requester_id} -> {target_id}: {action}"
            )
        return action

    @classmethod
    def _complete_acceptance(cls, edge, follower, request_rows) -> str | None:
        """Finish a half-applied acceptance: the follower edge already exists."""
        if edge is None or follower is None:
            return None
        try:
            edge.accept(at=follower.followed_at)
        except TransitionNotAllowed:
            cls.get_logger().debug(f"Edge {edge.pk} already accepted")
            return None
        edge.save(update_fields=["status", "followed_at", "updated_at"])
        request_rows.delete()
        return "Accepted pending edge that already had a follower"
