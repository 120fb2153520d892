"""Health check endpoint for monitoring service status."""

from datetime import UTC, datetime

from starlette.requests import Request
from starlette.responses import JSONResponse

from airdash.logging import get_logger
from airdash.server.controller import DashboardController
from airdash.server.websockets import connection_manager

logger = get_logger("server.api.health")


def _check_pollers(controller: DashboardController) -> tuple[bool, dict[str, bool]]:
    """Check that the background pollers are alive."""
    running = controller.is_running
    return all(running.values()), running


def _check_data(controller: DashboardController) -> dict[str, str | None]:
    """Report when each data source was last updated."""
    weather = controller.weather
    air = controller.air_quality
    sensor = controller.sensor
    return {
        "weather": weather.fetched_at.isoformat() if weather else None,
        "air_quality": air.fetched_at.isoformat() if air else None,
        "sensor": sensor.recording_time.isoformat() if sensor else None,
    }


async def health_check(request: Request) -> JSONResponse:
    """Return health status of the application and its data sources."""
    controller: DashboardController = request.app.state.controller
    pollers_ok, pollers = _check_pollers(controller)
    if not pollers_ok:
        logger.error("Health check failed, pollers: %s", pollers)

    return JSONResponse(
        {
            "status": "healthy" if pollers_ok else "unhealthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": {
                "pollers": {"ok": pollers_ok, "status": pollers},
                "device": {"connection_state": controller.connection_state},
                "websocket_clients": connection_manager.count,
                "last_update": _check_data(controller),
            },
        },
        status_code=200 if pollers_ok else 503,
    )
