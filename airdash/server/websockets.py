"""WebSocket route for the Airdash presentation layer.

Clients receive the full dashboard payload on connect and again whenever a
snapshot, the connection state or the notice list changes.
"""
import asyncio
from contextlib import suppress
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect

from airdash.logging import get_logger

_logger = get_logger("server.websockets")

DASHBOARD_ENDPOINT = "/dashboard/latest"

# Keepalive ping interval in seconds
_HEARTBEAT_INTERVAL_SEC = 30


class ConnectionManager:
    """Tracks dashboard subscribers and fans payloads out to them."""

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> int:
        """Accept a subscriber.

        Returns:
            An identifier for the client, used in log lines.
        """
        await websocket.accept()
        self._clients.add(websocket)
        client_id = id(websocket)
        _logger.info(
            "Client %s subscribed (total: %d)", client_id, len(self._clients)
        )
        return client_id

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        _logger.info(
            "Client %s unsubscribed (remaining: %d)",
            id(websocket), len(self._clients),
        )

    @property
    def count(self) -> int:
        return len(self._clients)

    async def broadcast(self, data: Any) -> int:
        """Send data to every subscriber, dropping the ones that fail.

        Returns:
            The number of clients that received the message.
        """
        sent_count = 0
        for websocket in list(self._clients):
            try:
                await websocket.send_json(data)
                sent_count += 1
            except Exception:
                self._clients.discard(websocket)
        return sent_count


connection_manager = ConnectionManager()


async def broadcast_dashboard(data: dict[str, Any]) -> int:
    """Push a dashboard payload to every subscribed client."""
    return await connection_manager.broadcast(data)


async def _send_heartbeat(websocket: WebSocket, client_id: int) -> None:
    """Ping periodically so dead connections get noticed."""
    while True:
        await asyncio.sleep(_HEARTBEAT_INTERVAL_SEC)
        try:
            await websocket.send_json({"type": "ping"})
        except WebSocketDisconnect:
            raise
        except Exception:
            _logger.debug("Heartbeat failed for client %s", client_id)
            raise WebSocketDisconnect() from None


async def ws_dashboard_latest(websocket: WebSocket) -> None:
    """Stream the dashboard payload.

    Sends the current payload on connect, then relies on the controller's
    broadcasts for updates.
    """
    client_id = await connection_manager.connect(websocket)
    heartbeat_task: asyncio.Task[None] | None = None

    try:
        await websocket.send_json(websocket.app.state.controller.dashboard())
        heartbeat_task = asyncio.create_task(_send_heartbeat(websocket, client_id))
        await heartbeat_task
    except WebSocketDisconnect:
        pass
    except asyncio.CancelledError:
        _logger.info("Connection to client %s cancelled (shutdown)", client_id)
        raise
    finally:
        if heartbeat_task is not None:
            heartbeat_task.cancel()
            with suppress(asyncio.CancelledError, WebSocketDisconnect):
                await heartbeat_task
        connection_manager.disconnect(websocket)
        with suppress(Exception):
            await websocket.close()
