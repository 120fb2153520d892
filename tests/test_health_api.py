"""Tests for the health check API endpoint."""

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from airdash.device.models import SensorSnapshot
from airdash.lib.config import ConnectionState
from airdash.server.api.health import health_check


class TestHealthCheck:
    """Tests for health_check endpoint."""

    def _make_request(self, running=None, sensor=None):
        """Create a mock Starlette request with a stubbed controller."""
        controller = MagicMock()
        controller.is_running = running or {"telemetry": True, "remote": True}
        controller.connection_state = ConnectionState.CONNECTED
        controller.weather = None
        controller.air_quality = None
        controller.sensor = sensor
        request = MagicMock()
        request.app.state.controller = controller
        return request

    @pytest.mark.asyncio
    async def test_healthy_when_pollers_run(self):
        recorded = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)
        request = self._make_request(sensor=SensorSnapshot(recording_time=recorded))

        response = await health_check(request)

        assert response.status_code == 200
        data = json.loads(response.body)
        assert data["status"] == "healthy"
        assert data["checks"]["device"]["connection_state"] == "connected"
        assert data["checks"]["last_update"] == {
            "weather": None,
            "air_quality": None,
            "sensor": "2024-06-15T12:00:00+00:00",
        }

    @pytest.mark.asyncio
    async def test_unhealthy_when_a_poller_stopped(self, caplog):
        request = self._make_request(running={"telemetry": True, "remote": False})

        response = await health_check(request)

        assert response.status_code == 503
        data = json.loads(response.body)
        assert data["status"] == "unhealthy"
        assert data["checks"]["pollers"]["status"] == {
            "telemetry": True,
            "remote": False,
        }
        assert "Health check failed" in caplog.text
