"""Periodically refresh the weather and air-quality snapshots."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import override

from airdash.lib.config import NoticeSource, RemoteSettings, get_settings
from airdash.lib.exceptions import RemoteError
from airdash.lib.polling import PollingService
from airdash.remote.client import RemoteClient
from airdash.remote.models import AirQualitySnapshot, WeatherSnapshot

type RemoteErrorHandler = Callable[[NoticeSource, RemoteError], None]


@dataclass(frozen=True, slots=True)
class RemoteReading:
    """Outcome of fetching both providers once; a failed fetch is None."""

    weather: WeatherSnapshot | None
    air_quality: AirQualitySnapshot | None


class RemotePollingService(PollingService[RemoteReading]):
    """Polling service fetching both providers concurrently."""

    def __init__(
        self,
        client: RemoteClient,
        settings: RemoteSettings | None = None,
        *,
        on_reading: Callable[[RemoteReading], Awaitable[None]],
        on_error: RemoteErrorHandler | None = None,
    ) -> None:
        self._settings = settings or get_settings().remote
        super().__init__(
            name="Remote", frequency_sec=self._settings.refresh_interval_sec
        )
        self._client = client
        self._on_reading = on_reading
        self._on_error = on_error

    @override
    async def initialize(self) -> None:
        """Nothing to open, the HTTP client connects lazily."""

    @override
    async def cleanup(self) -> None:
        """Close the provider client."""
        await self._client.aclose()

    def _report(self, source: NoticeSource, error: RemoteError) -> None:
        self._logger.warning("%s fetch failed: %s", source, error)
        if self._on_error is not None:
            self._on_error(source, error)

    @override
    async def poll(self) -> RemoteReading | None:
        """Fetch weather and air quality concurrently."""
        weather, air = await asyncio.gather(
            self._client.fetch_weather(self._settings.location),
            self._client.fetch_air_quality(self._settings.coordinates),
            return_exceptions=True,
        )
        # Anything other than a provider error is a bug, let it surface
        for result in (weather, air):
            if isinstance(result, BaseException) and not isinstance(
                result, RemoteError
            ):
                raise result

        if isinstance(weather, RemoteError):
            self._report(NoticeSource.WEATHER, weather)
            weather = None
        if isinstance(air, RemoteError):
            self._report(NoticeSource.AIR_QUALITY, air)
            air = None

        if weather is None and air is None:
            return None
        return RemoteReading(weather=weather, air_quality=air)

    @override
    async def publish(self, reading: RemoteReading) -> None:
        """Hand the fetched snapshots to the registered consumer."""
        await self._on_reading(reading)
