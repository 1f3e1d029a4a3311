"""
Core views providing infrastructure endpoints.

Only the health check lives here; domain endpoints belong to their apps.
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for load balancers and container probes.

    The database is required; the channel layer (realtime push) is reported
    but does not fail the check, since writes still succeed without it.

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            health_status["channel_layer"] = "not_configured"
        else:
            async_to_sync(channel_layer.group_send)(
                "health_check", {"type": "health.ping"}
            )
            health_status["channel_layer"] = "connected"
    except Exception:
        logger.warning("Health check: channel layer unreachable", exc_info=True)
        health_status["channel_layer"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
