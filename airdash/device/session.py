"""Telemetry session: full multi-channel read cycles over a device link."""

from datetime import UTC, datetime

from airdash.device.link import DeviceLink
from airdash.device.models import SensorSnapshot
from airdash.lib.config import ChannelId
from airdash.lib.exceptions import (
    DeviceError,
    NotConnected,
    PartialReadFailure,
    RefreshInProgress,
)
from airdash.logging import get_logger

logger = get_logger("device.session")


class TelemetrySession:
    """Owns the current sensor snapshot for one peripheral.

    The snapshot is only ever replaced as a whole, after every channel of
    a refresh cycle has been read.
    """

    def __init__(self, link: DeviceLink) -> None:
        self._link = link
        self._snapshot = SensorSnapshot()
        self._has_data = False
        self._refreshing = False

    @property
    def link(self) -> DeviceLink:
        return self._link

    @property
    def snapshot(self) -> SensorSnapshot:
        """The latest published snapshot (all zeros before the first one)."""
        return self._snapshot

    @property
    def has_data(self) -> bool:
        """Whether a refresh cycle has completed since the session started."""
        return self._has_data

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    def _publish(self, snapshot: SensorSnapshot) -> None:
        self._snapshot = snapshot
        self._has_data = True

    async def refresh(self) -> SensorSnapshot:
        """Read every channel once and publish the result.

        Channels are read in ChannelId order, without retries.

        Raises:
            NotConnected: If the link is down when the refresh starts, or
                goes down before the snapshot is published.
            RefreshInProgress: If another refresh is still running.
            PartialReadFailure: If any channel read fails. The previous
                snapshot is kept.
        """
        if not self._link.is_connected():
            raise NotConnected()
        if self._refreshing:
            raise RefreshInProgress()

        self._refreshing = True
        try:
            values: dict[ChannelId, float] = {}
            for channel in ChannelId:
                try:
                    values[channel] = await self._link.read_channel(channel)
                except DeviceError as e:
                    if not self._link.is_connected():
                        raise NotConnected() from e
                    logger.warning("Refresh failed on %s: %s", channel, e)
                    raise PartialReadFailure(channel, e) from e

            if not self._link.is_connected():
                raise NotConnected("Sensor device disconnected during refresh")

            snapshot = SensorSnapshot.from_channels(values, datetime.now(UTC))
            self._publish(snapshot)
        finally:
            self._refreshing = False

        logger.info(
            "Read %.1f, %.1f%%, %.1f hPa, IAQ %.0f, CO2 %.0f ppm, gas %.0f ohm",
            snapshot.temperature,
            snapshot.humidity,
            snapshot.pressure,
            snapshot.iaq,
            snapshot.co2,
            snapshot.gas,
        )
        return snapshot

    async def close(self) -> None:
        """Tear down the link and forget the current snapshot."""
        await self._link.disconnect()
        self._snapshot = SensorSnapshot()
        self._has_data = False
