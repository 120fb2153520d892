"""Domain models for peripheral sensor readings."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from airdash.lib.config import ChannelId

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class SensorSnapshot:
    """One value per sensor channel, taken in a single refresh cycle.

    A default-constructed snapshot is all zeros and stands for "no reading
    yet".
    """

    temperature: float = 0.0
    humidity: float = 0.0
    pressure: float = 0.0
    iaq: float = 0.0
    co2: float = 0.0
    gas: float = 0.0
    recording_time: datetime = _EPOCH

    @classmethod
    def from_channels(
        cls,
        values: Mapping[ChannelId, float],
        recording_time: datetime,
    ) -> SensorSnapshot:
        """Build a snapshot from a complete set of channel values.

        Raises:
            KeyError: If any channel is missing from ``values``.
        """
        return cls(
            **{channel.value: float(values[channel]) for channel in ChannelId},
            recording_time=recording_time,
        )

    def value(self, channel: ChannelId) -> float:
        """Get the value of a single channel."""
        return float(getattr(self, channel.value))

    def to_dict(self) -> dict[str, Any]:
        return {
            **{channel.value: self.value(channel) for channel in ChannelId},
            "recording_time": self.recording_time.isoformat(),
        }
