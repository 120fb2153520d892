"""Imperative device operations for the presentation layer.

Failures are reported as notices in the returned dashboard payload rather
than as error statuses, so the client keeps showing its last good data.
"""

from starlette.requests import Request
from starlette.responses import JSONResponse

from airdash.lib.config import ConnectionState
from airdash.logging import get_logger
from airdash.server.controller import DashboardController

logger = get_logger("server.api.device")


def _controller(request: Request) -> DashboardController:
    return request.app.state.controller


async def connect_device(request: Request) -> JSONResponse:
    """Connect to the sensor device and take a first reading."""
    controller = _controller(request)
    if controller.connection_state is ConnectionState.CONNECTING:
        return JSONResponse(
            {"error": "Connection already in progress"}, status_code=409
        )
    connected = await controller.request_connect()
    logger.info("Connect requested via API (connected=%s)", connected)
    return JSONResponse({"connected": connected, **controller.dashboard()})


async def disconnect_device(request: Request) -> JSONResponse:
    """Disconnect from the sensor device."""
    controller = _controller(request)
    await controller.request_disconnect()
    logger.info("Disconnect requested via API")
    return JSONResponse(controller.dashboard())


async def refresh_device(request: Request) -> JSONResponse:
    """Read every sensor channel now."""
    controller = _controller(request)
    snapshot = await controller.request_refresh()
    return JSONResponse({"refreshed": snapshot is not None, **controller.dashboard()})
