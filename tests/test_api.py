"""Tests for the dashboard, device and notification API endpoints."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.testclient import TestClient

from airdash.lib.config import ChannelId, ConnectionState
from airdash.server.api.dashboard import (
    dismiss_notification,
    get_dashboard,
    get_notifications,
    refresh_remote,
)
from airdash.server.api.device import connect_device, disconnect_device, refresh_device
from airdash.server.controller import DashboardController
from airdash.server.entrypoint import create_app
from test_remote_polling import AIR, WEATHER


@pytest.fixture
def remote_client():
    client = MagicMock()
    client.fetch_weather = AsyncMock(return_value=WEATHER)
    client.fetch_air_quality = AsyncMock(return_value=AIR)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def controller(session, remote_client, test_settings):
    return DashboardController(session, remote_client, test_settings)


def make_request(controller, path_params=None):
    """Create a mock Starlette request bound to a controller."""
    request = MagicMock()
    request.app.state.controller = controller
    request.path_params = path_params or {}
    return request


def body(response):
    return json.loads(response.body)


class TestDashboardEndpoints:
    """Tests for the read-only endpoints."""

    @pytest.mark.asyncio
    async def test_get_dashboard_before_any_data(self, controller):
        response = await get_dashboard(make_request(controller))

        assert response.status_code == 200
        data = body(response)
        assert data["connection_state"] == "disconnected"
        assert data["sensor"] is None
        assert data["weather"] is None
        assert data["air_quality"] is None

    @pytest.mark.asyncio
    async def test_refresh_remote(self, controller):
        response = await refresh_remote(make_request(controller))

        data = body(response)
        assert data["weather"]["temperature"] == 73
        assert data["weather"]["units"] == "imperial"
        assert data["air_quality"]["normalized_index"] == 150
        assert data["air_quality"]["category"] == "unhealthy_for_sensitive_groups"

    @pytest.mark.asyncio
    async def test_get_notifications(self, controller):
        await controller.request_refresh()

        response = await get_notifications(make_request(controller))

        (notice,) = body(response)["notices"]
        assert notice["source"] == "device"
        assert notice["title"] == "Error"

    @pytest.mark.asyncio
    async def test_dismiss_notification(self, controller):
        await controller.request_refresh()
        (notice,) = controller.notices

        response = await dismiss_notification(
            make_request(controller, {"notice_id": notice.id})
        )

        assert response.status_code == 200
        assert body(response) == {"dismissed": notice.id}
        assert controller.notices == []

    @pytest.mark.asyncio
    async def test_dismiss_unknown_notification(self, controller):
        response = await dismiss_notification(
            make_request(controller, {"notice_id": 99})
        )

        assert response.status_code == 404
        assert "99" in body(response)["error"]


class TestDeviceEndpoints:
    """Tests for the imperative device endpoints."""

    @pytest.mark.asyncio
    async def test_connect(self, controller):
        response = await connect_device(make_request(controller))

        data = body(response)
        assert response.status_code == 200
        assert data["connected"] is True
        assert data["connection_state"] == "connected"
        assert data["sensor"]["pressure"] == 1013.1

    @pytest.mark.asyncio
    async def test_connect_failure_is_reported_as_notice(self, controller, transport):
        transport.open_error = ConnectionError("out of range")

        response = await connect_device(make_request(controller))

        data = body(response)
        assert response.status_code == 200
        assert data["connected"] is False
        assert len(data["notices"]) == 1

    @pytest.mark.asyncio
    async def test_connect_while_connecting_conflicts(self, controller, transport):
        transport.open_gate = asyncio.Event()
        pending = asyncio.create_task(controller.request_connect())
        await asyncio.sleep(0.01)

        response = await connect_device(make_request(controller))

        assert response.status_code == 409
        transport.open_gate.set()
        await pending

    @pytest.mark.asyncio
    async def test_refresh(self, controller, link, transport):
        await link.connect()
        transport.values[ChannelId.CO2] = b"612"

        response = await refresh_device(make_request(controller))

        data = body(response)
        assert data["refreshed"] is True
        assert data["sensor"]["co2"] == 612.0

    @pytest.mark.asyncio
    async def test_refresh_when_disconnected(self, controller):
        response = await refresh_device(make_request(controller))

        data = body(response)
        assert data["refreshed"] is False
        assert data["sensor"] is None
        assert data["notices"][0]["detail"] == "Sensor device not connected"

    @pytest.mark.asyncio
    async def test_disconnect(self, controller, link):
        await controller.request_connect()

        response = await disconnect_device(make_request(controller))

        data = body(response)
        assert data["connection_state"] == "disconnected"
        # Last reading stays on display
        assert data["sensor"] is not None
        assert link.state is ConnectionState.DISCONNECTED


class TestApplication:
    """End-to-end tests against the mock data sources."""

    def test_routes_with_mock_sources(self):
        with TestClient(create_app()) as client:
            response = client.post("/api/device/connect")
            assert response.status_code == 200
            assert response.json()["connected"] is True

            response = client.post("/api/remote/refresh")
            assert response.json()["weather"]["description"] == "clear sky"

            response = client.get("/api/dashboard")
            assert response.json()["sensor"] is not None

            response = client.delete("/api/notifications/12345")
            assert response.status_code == 404

            response = client.post("/api/device/disconnect")
            assert response.json()["connection_state"] == "disconnected"

