"""
Tests for the health check endpoint.
"""

from unittest.mock import patch


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "channel_layer": "connected",
        }

    def test_channel_layer_down_is_reported_but_healthy(self, client, db):
        with patch("core.views.get_channel_layer", side_effect=ConnectionError("redis down")):
            response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["channel_layer"] == "disconnected"
