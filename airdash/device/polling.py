"""Periodically refresh the telemetry session.

Each cycle reads every sensor channel once. A cycle whose channel read
fails is retried with exponential backoff before the error is reported;
the session itself never retries.
"""

from collections.abc import Awaitable, Callable
from typing import override

from airdash.device.link import create_device_link
from airdash.device.models import SensorSnapshot
from airdash.device.session import TelemetrySession
from airdash.lib.config import (
    ChannelId,
    ConnectionState,
    TelemetrySettings,
    get_settings,
)
from airdash.lib.config.constants import SENSOR_BOUNDS
from airdash.lib.exceptions import NotConnected, PartialReadFailure
from airdash.lib.polling import PollingService
from airdash.lib.retry import with_retry
from airdash.logging import configure, get_logger

logger = get_logger("device.polling")

type SnapshotHandler = Callable[[SensorSnapshot], Awaitable[None]]
type ErrorHandler = Callable[[Exception], None]


class TelemetryPollingService(PollingService[SensorSnapshot]):
    """Polling service refreshing a telemetry session on an interval."""

    def __init__(
        self,
        session: TelemetrySession,
        settings: TelemetrySettings | None = None,
        *,
        on_snapshot: SnapshotHandler | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self._settings = settings or get_settings().telemetry
        super().__init__(
            name="Telemetry", frequency_sec=self._settings.refresh_interval_sec
        )
        self._session = session
        self._on_snapshot = on_snapshot
        self._on_error = on_error

    @override
    async def initialize(self) -> None:
        """Open the link up front when auto-connect is enabled."""
        if self._settings.auto_connect:
            await self._session.link.connect()

    @override
    async def cleanup(self) -> None:
        """Tear down the link if this service opened it."""
        if self._settings.auto_connect:
            await self._session.close()

    @override
    async def poll(self) -> SensorSnapshot | None:
        """Run one refresh cycle, skipping it while the link is not up."""
        link = self._session.link
        if link.state is ConnectionState.CONNECTING:
            self._logger.debug("Connection in progress, skipping refresh")
            return None
        if not link.is_connected():
            if not self._settings.auto_connect:
                self._logger.debug("Device not connected, skipping refresh")
                return None
            if not await link.connect():
                raise NotConnected("Reconnect to sensor device failed")

        return await with_retry(
            self._session.refresh,
            name="Telemetry refresh",
            logger=self._logger,
            max_retries=self._settings.max_retries,
            initial_backoff_sec=self._settings.initial_backoff_sec,
            retryable_exceptions=(PartialReadFailure,),
        )

    @override
    async def audit(self, reading: SensorSnapshot) -> bool:
        """Flag readings outside the sensor's physical range."""
        for channel, (bmin, bmax) in SENSOR_BOUNDS.items():
            value = reading.value(channel)
            if value < bmin or value > bmax:
                self._logger.error(
                    "%s reading outside sensor bounds: %s",
                    channel.capitalize(),
                    value,
                )
                return False
        return True

    @override
    async def publish(self, reading: SensorSnapshot) -> None:
        """Hand the snapshot to the registered consumer."""
        if self._on_snapshot is not None:
            await self._on_snapshot(reading)

    @override
    def on_poll_error(self, error: Exception) -> None:
        """Report refresh errors to the registered consumer."""
        super().on_poll_error(error)
        if self._on_error is not None:
            self._on_error(error)


async def _log_snapshot(snapshot: SensorSnapshot) -> None:
    logger.info(
        "Snapshot %s",
        ", ".join(f"{c}={snapshot.value(c):g}" for c in ChannelId),
    )


def main() -> None:
    """Connect to the sensor device and log readings until interrupted."""
    configure(get_settings().log_level)
    settings = get_settings().telemetry.model_copy(update={"auto_connect": True})
    session = TelemetrySession(create_device_link())
    service = TelemetryPollingService(session, settings, on_snapshot=_log_snapshot)
    service.run()


if __name__ == "__main__":
    main()
