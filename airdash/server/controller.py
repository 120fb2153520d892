"""Dashboard controller: the read-only view and imperative operations.

Holds the latest weather, air-quality and audited sensor snapshots,
exposes the link state, and turns every surfaced error into a dismissible
notice instead of clearing previously displayed data.
"""

import asyncio
import itertools
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from airdash.device.models import SensorSnapshot
from airdash.device.polling import TelemetryPollingService
from airdash.device.session import TelemetrySession
from airdash.lib.config import ConnectionState, NoticeSource, Settings, get_settings
from airdash.lib.exceptions import (
    AirdashError,
    NotConnected,
    RefreshInProgress,
    SessionError,
)
from airdash.logging import get_logger
from airdash.remote.client import RemoteClient
from airdash.remote.models import AirQualitySnapshot, WeatherSnapshot
from airdash.remote.polling import RemotePollingService, RemoteReading

logger = get_logger("server.controller")

type Broadcaster = Callable[[dict[str, Any]], Awaitable[int]]

NOTICE_MESSAGES: dict[NoticeSource, str] = {
    NoticeSource.DEVICE: "Failed to read sensor data. Please try reconnecting.",
    NoticeSource.WEATHER: "Failed to fetch weather data. Please try again later.",
    NoticeSource.AIR_QUALITY: (
        "Failed to fetch air quality data. Please try again later."
    ),
}
CONNECT_FAILED_MESSAGE = "Failed to connect to the sensor device."


@dataclass(frozen=True, slots=True)
class Notice:
    """A transient error message shown until dismissed."""

    id: int
    source: NoticeSource
    message: str
    detail: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "title": "Error",
            "message": self.message,
            "detail": self.detail,
            "created_at": self.created_at.isoformat(),
        }


class DashboardController:
    """Owns the snapshots shown on the dashboard and the background pollers."""

    def __init__(
        self,
        session: TelemetrySession,
        client: RemoteClient,
        settings: Settings | None = None,
        *,
        broadcast: Broadcaster | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._session = session
        self._broadcast = broadcast
        self._weather: WeatherSnapshot | None = None
        self._air_quality: AirQualitySnapshot | None = None
        # Only readings that passed the bounds audit are displayed
        self._sensor: SensorSnapshot | None = None
        self._notices: deque[Notice] = deque(
            maxlen=settings.server.notification_limit
        )
        self._notice_ids = itertools.count(1)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._pollers: list[asyncio.Task[None]] = []

        self._telemetry = TelemetryPollingService(
            session,
            settings.telemetry,
            on_snapshot=self._on_sensor_snapshot,
            on_error=self._on_telemetry_error,
        )
        self._remote = RemotePollingService(
            client,
            settings.remote,
            on_reading=self._on_remote_reading,
            on_error=self._notify,
        )
        session.link.add_state_listener(self._on_state_change)

    @property
    def connection_state(self) -> ConnectionState:
        return self._session.link.state

    @property
    def weather(self) -> WeatherSnapshot | None:
        return self._weather

    @property
    def air_quality(self) -> AirQualitySnapshot | None:
        return self._air_quality

    @property
    def sensor(self) -> SensorSnapshot | None:
        """The latest sensor snapshot, or None before the first refresh."""
        return self._sensor

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    @property
    def is_running(self) -> dict[str, bool]:
        return {
            "telemetry": self._telemetry.is_running,
            "remote": self._remote.is_running,
        }

    def dashboard(self) -> dict[str, Any]:
        """Everything the presentation layer displays; None means no data yet."""
        return {
            "type": "dashboard",
            "connection_state": self.connection_state,
            "refreshing": self._session.is_refreshing,
            "weather": self._weather.to_dict() if self._weather else None,
            "air_quality": (
                self._air_quality.to_dict() if self._air_quality else None
            ),
            "sensor": self.sensor.to_dict() if self.sensor else None,
            "notices": [notice.to_dict() for notice in self._notices],
        }

    def _schedule_push(self) -> None:
        """Broadcast the dashboard from synchronous callbacks."""
        if self._broadcast is None:
            return
        task = asyncio.get_running_loop().create_task(self._push())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _push(self) -> None:
        if self._broadcast is None:
            return
        count = await self._broadcast(self.dashboard())
        logger.debug("Broadcast dashboard to %d clients", count)

    def _notify(
        self,
        source: NoticeSource,
        error: Exception,
        message: str | None = None,
    ) -> None:
        """Record a dismissible notice for a surfaced error."""
        notice = Notice(
            id=next(self._notice_ids),
            source=source,
            message=message or NOTICE_MESSAGES[source],
            detail=str(error),
            created_at=datetime.now(UTC),
        )
        self._notices.append(notice)
        logger.warning("%s error: %s", source, error)
        self._schedule_push()

    def dismiss(self, notice_id: int) -> bool:
        """Drop a notice. Returns False if no notice has that id."""
        for notice in self._notices:
            if notice.id == notice_id:
                self._notices.remove(notice)
                self._schedule_push()
                return True
        return False

    def _on_state_change(self, state: ConnectionState) -> None:
        self._schedule_push()

    async def _on_sensor_snapshot(self, snapshot: SensorSnapshot) -> None:
        self._sensor = snapshot
        await self._push()

    def _on_telemetry_error(self, error: Exception) -> None:
        # A user-requested refresh already holds the session
        if isinstance(error, RefreshInProgress):
            return
        if isinstance(error, AirdashError):
            self._notify(NoticeSource.DEVICE, error)

    async def _on_remote_reading(self, reading: RemoteReading) -> None:
        if reading.weather is not None:
            self._weather = reading.weather
        if reading.air_quality is not None:
            self._air_quality = reading.air_quality
        await self._push()

    async def request_connect(self) -> bool:
        """Connect to the sensor device and take a first reading."""
        if self.connection_state is ConnectionState.CONNECTING:
            return False
        if not await self._session.link.connect():
            self._notify(
                NoticeSource.DEVICE,
                NotConnected("Connection attempt failed"),
                CONNECT_FAILED_MESSAGE,
            )
            return False
        await self.request_refresh()
        return True

    async def request_disconnect(self) -> None:
        """Disconnect from the sensor device, keeping the last snapshot."""
        await self._session.link.disconnect()

    async def request_refresh(self) -> SensorSnapshot | None:
        """Run one refresh cycle now.

        Returns:
            The new snapshot, or None if the refresh failed (a notice is
            recorded and the previous snapshot stays on display) or the
            reading was outside the sensor's bounds.
        """
        try:
            snapshot = await self._session.refresh()
        except SessionError as e:
            self._notify(NoticeSource.DEVICE, e)
            return None
        if not await self._telemetry.audit(snapshot):
            return None
        await self._on_sensor_snapshot(snapshot)
        return snapshot

    async def request_remote_refresh(self) -> None:
        """Fetch weather and air quality now instead of waiting for the poller."""
        await self._remote.poll_once()

    async def start(self) -> None:
        """Start the telemetry and remote pollers in the background."""
        self._pollers = [
            asyncio.create_task(self._telemetry.serve()),
            asyncio.create_task(self._remote.serve()),
        ]
        logger.info("Dashboard controller started")

    async def stop(self) -> None:
        """Stop the pollers and tear down the device link."""
        self._telemetry.stop()
        self._remote.stop()
        await asyncio.gather(*self._pollers, return_exceptions=True)
        await self._session.close()
        for task in list(self._tasks):
            task.cancel()
        logger.info("Dashboard controller stopped")
