"""
Celery tasks for the social graph.

Tasks:
    reconcile_follow_graph: Periodic repair of inconsistent follow pairs

The periodic schedule (every 6 hours) is created by migration
0002_add_reconciliation_schedule through django-celery-beat.
"""

import logging

from celery import shared_task

from social.reconciliation import FollowGraphReconciliation

logger = logging.getLogger(__name__)


@shared_task
def reconcile_follow_graph(dry_run: bool = False) -> dict:
    """
    Periodic task to detect and repair inconsistent follow pairs.

    Args:
        dry_run: Detect only, change nothing

    Returns:
        Dict with run summary, or the error on failure
    """
    result = FollowGraphReconciliation.run(dry_run=dry_run)
    if not result.success:
        logger.error(
            f"Follow graph reconciliation failed: {result.error}",
            extra={"error_code": result.error_code},
        )
        return {"success": False, "error": result.error}

    summary = result.data.to_dict()
    logger.info(
        f"Follow graph reconciliation: {summary['discrepancies_found']} found, "
        f"{summary['repaired']} repaired",
        extra={"dry_run": dry_run},
    )
    return {"success": True, **summary}
