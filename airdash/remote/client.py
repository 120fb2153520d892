"""Weather and air-quality provider client.

Fetches current conditions from the OpenWeatherMap weather and air
pollution endpoints and turns them into immutable snapshots. Each fetch is
a single request; callers decide whether and when to try again.
"""

from datetime import UTC, datetime
from typing import Any, Self

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from airdash.lib.config import Coordinates, RemoteSettings, get_settings
from airdash.lib.exceptions import InvalidPayload, UpstreamUnavailable
from airdash.logging import get_logger
from airdash.remote.convert import normalize_air_quality_index, round_half_away
from airdash.remote.models import AirQualitySnapshot, WeatherSnapshot

logger = get_logger("remote.client")

WEATHER_PATH = "/data/2.5/weather"
AIR_POLLUTION_PATH = "/data/2.5/air_pollution"


# Provider payloads are JSON decoded by the stdlib, which accepts NaN and
# Infinity literals
_STRICT_FLOATS = ConfigDict(allow_inf_nan=False)


class _WeatherMain(BaseModel):
    model_config = _STRICT_FLOATS

    temp: float
    temp_min: float
    temp_max: float


class _WeatherCondition(BaseModel):
    description: str
    icon: str


class _WeatherPayload(BaseModel):
    main: _WeatherMain
    weather: list[_WeatherCondition] = Field(min_length=1)


class _AirMain(BaseModel):
    model_config = _STRICT_FLOATS

    # Left untyped so an unexpected level degrades to index 0
    aqi: Any = None
    humidity: float | None = None


class _AirComponents(BaseModel):
    model_config = _STRICT_FLOATS

    pm2_5: float
    pm10: float


class _AirEntry(BaseModel):
    main: _AirMain
    components: _AirComponents


class RemoteClient:
    """Client for the weather and air pollution providers."""

    def __init__(
        self,
        settings: RemoteSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings().remote
        self._http = httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_sec,
            transport=transport,
        )

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """Issue a GET and return the decoded JSON body.

        Raises:
            UpstreamUnavailable: On transport errors or non-2xx responses.
        """
        query = {**params, "appid": self._settings.api_key.get_secret_value()}
        try:
            response = await self._http.get(path, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"{path} returned status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"{path} request failed: {e}") from e
        return response.json()

    async def fetch_weather(self, location: str | None = None) -> WeatherSnapshot:
        """Fetch current weather for a place name.

        Args:
            location: Human-readable place name, defaults to the configured one.

        Raises:
            UpstreamUnavailable: On transport error or malformed payload.
        """
        location = location or self._settings.location
        units = self._settings.units
        try:
            body = await self._get_json(
                WEATHER_PATH, {"q": location, "units": units.value}
            )
            payload = _WeatherPayload.model_validate(body)
        except (ValueError, ValidationError) as e:
            raise UpstreamUnavailable(f"Malformed weather payload: {e}") from e

        condition = payload.weather[0]
        snapshot = WeatherSnapshot(
            temperature=round_half_away(payload.main.temp),
            description=condition.description,
            icon=condition.icon,
            daily_high=round_half_away(payload.main.temp_max),
            daily_low=round_half_away(payload.main.temp_min),
            units=units,
            fetched_at=datetime.now(UTC),
        )
        logger.info(
            "Weather for %s: %d, %s", location, snapshot.temperature,
            snapshot.description,
        )
        return snapshot

    async def fetch_air_quality(
        self, coordinates: Coordinates | None = None
    ) -> AirQualitySnapshot:
        """Fetch current air quality for a latitude/longitude.

        Only the first measurement entry is used.

        Raises:
            UpstreamUnavailable: On transport error.
            InvalidPayload: If there is no measurement entry or the first
                entry is structurally wrong.
        """
        coordinates = coordinates or self._settings.coordinates
        try:
            body = await self._get_json(
                AIR_POLLUTION_PATH,
                {"lat": coordinates.latitude, "lon": coordinates.longitude},
            )
        except ValueError as e:
            raise InvalidPayload(f"Air quality body is not JSON: {e}") from e

        entries = body.get("list") if isinstance(body, dict) else None
        if not isinstance(entries, list) or not entries:
            raise InvalidPayload("Air quality payload has no measurement entries")

        try:
            entry = _AirEntry.model_validate(entries[0])
        except ValidationError as e:
            raise InvalidPayload(f"Malformed air quality entry: {e}") from e

        raw_level = entry.main.aqi
        normalized = normalize_air_quality_index(raw_level)
        if normalized == 0:
            logger.warning("Unknown air quality level %r, using 0", raw_level)

        snapshot = AirQualitySnapshot(
            normalized_index=normalized,
            pm25=entry.components.pm2_5,
            pm10=entry.components.pm10,
            humidity_percent=entry.main.humidity or 0.0,
            raw_level=raw_level if normalized else 0,
            fetched_at=datetime.now(UTC),
        )
        logger.info(
            "Air quality at %.2f,%.2f: index %d (level %s)",
            coordinates.latitude, coordinates.longitude,
            snapshot.normalized_index, raw_level,
        )
        return snapshot

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()


def create_remote_client(settings: RemoteSettings | None = None) -> RemoteClient:
    """Create a provider client based on configuration.

    With MOCK_SENSORS=1 the client is wired to an in-process transport
    serving provider-shaped payloads.
    """
    if get_settings().mock_sensors:
        from airdash.lib.mock import MockProviderTransport

        logger.info("Using mock weather and air quality providers")
        return RemoteClient(settings, transport=MockProviderTransport())
    return RemoteClient(settings)
