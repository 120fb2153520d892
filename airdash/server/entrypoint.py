"""Application factory for the web server."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.routing import Route, WebSocketRoute

from airdash.device.link import create_device_link
from airdash.device.session import TelemetrySession
from airdash.lib.config import get_settings
from airdash.logging import configure, get_logger
from airdash.remote.client import create_remote_client

from .api.dashboard import (
    dismiss_notification,
    get_dashboard,
    get_notifications,
    refresh_remote,
)
from .api.device import connect_device, disconnect_device, refresh_device
from .api.health import health_check
from .controller import DashboardController
from .websockets import DASHBOARD_ENDPOINT, broadcast_dashboard, ws_dashboard_latest

_logger = get_logger("server.entrypoint")


@asynccontextmanager
async def lifespan(app: Starlette) -> AsyncIterator[None]:
    """Start the controller and its pollers, stop them on shutdown."""
    controller = DashboardController(
        TelemetrySession(create_device_link()),
        create_remote_client(),
        broadcast=broadcast_dashboard,
    )
    app.state.controller = controller
    await controller.start()

    try:
        yield
    finally:
        await controller.stop()
        _logger.info("Dashboard controller shut down")


def create_app() -> Starlette:
    """Create and configure the Starlette application.

    Returns:
        Configured Starlette application instance.
    """
    configure(get_settings().log_level)

    routes = [
        Route("/health", health_check),
        Route("/api/dashboard", get_dashboard),
        Route("/api/device/connect", connect_device, methods=["POST"]),
        Route("/api/device/disconnect", disconnect_device, methods=["POST"]),
        Route("/api/device/refresh", refresh_device, methods=["POST"]),
        Route("/api/remote/refresh", refresh_remote, methods=["POST"]),
        Route("/api/notifications", get_notifications),
        Route(
            "/api/notifications/{notice_id:int}",
            dismiss_notification,
            methods=["DELETE"],
        ),
        WebSocketRoute(DASHBOARD_ENDPOINT, ws_dashboard_latest),
    ]

    return Starlette(routes=routes, lifespan=lifespan)
