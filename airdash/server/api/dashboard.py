from starlette.requests import Request
from starlette.responses import JSONResponse

from airdash.server.controller import DashboardController


def _controller(request: Request) -> DashboardController:
    return request.app.state.controller


async def get_dashboard(request: Request) -> JSONResponse:
    """Return dashboard data as JSON for SPA consumption."""
    return JSONResponse(_controller(request).dashboard())


async def get_notifications(request: Request) -> JSONResponse:
    """Return the pending error notices, oldest first."""
    notices = _controller(request).notices
    return JSONResponse({"notices": [notice.to_dict() for notice in notices]})


async def dismiss_notification(request: Request) -> JSONResponse:
    """Dismiss a single notice."""
    notice_id = request.path_params["notice_id"]
    if not _controller(request).dismiss(notice_id):
        return JSONResponse(
            {"error": f"Notice {notice_id} not found"}, status_code=404
        )
    return JSONResponse({"dismissed": notice_id})


async def refresh_remote(request: Request) -> JSONResponse:
    """Fetch weather and air quality now."""
    controller = _controller(request)
    await controller.request_remote_refresh()
    return JSONResponse(controller.dashboard())
