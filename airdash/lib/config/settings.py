"""Settings models and configuration loading for the Airdash application."""

from functools import cached_property, lru_cache
from typing import Annotated, Any, Literal, Self

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from airdash.lib.config.constants import (
    DEFAULT_CHANNEL_UUIDS,
    OPENWEATHER_BASE_URL,
)
from airdash.lib.config.enums import ChannelId, UnitSystem


def _parse_bool(v: Any) -> bool:
    """Parse boolean from string '1'/'0' or actual bool."""
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v == "1"
    return bool(v)


def _validate_http_url(v: str) -> str:
    """Validate HTTP URL format and strip any trailing slash."""
    HttpUrl(v)
    return v.rstrip("/")


_BoolFromStr = Annotated[bool, BeforeValidator(_parse_bool)]
_HttpUrlStr = Annotated[str, AfterValidator(_validate_http_url)]
_LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class DeviceSettings(BaseModel):
    """BLE peripheral connection settings."""

    model_config = ConfigDict(frozen=True)

    address: str = ""  # Empty means discover by name
    name: str = "AirSense"
    connect_timeout_sec: float = 20.0
    read_timeout_sec: float = 5.0
    pair: bool = False
    channel_uuids: dict[ChannelId, str] = dict(DEFAULT_CHANNEL_UUIDS)

    def get_channel_uuid(self, channel: ChannelId) -> str:
        """Get the GATT characteristic UUID backing a channel."""
        return self.channel_uuids[channel]


class TelemetrySettings(BaseModel):
    """Periodic device refresh settings."""

    model_config = ConfigDict(frozen=True)

    refresh_interval_sec: int = 10
    max_retries: int = 3
    initial_backoff_sec: float = 2.0
    auto_connect: bool = False


class RemoteSettings(BaseModel):
    """Weather and air-quality provider settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = OPENWEATHER_BASE_URL
    api_key: SecretStr = SecretStr("")
    location: str = "Long Beach"
    coordinates: Coordinates = Coordinates(latitude=33.77, longitude=-118.19)
    units: UnitSystem = UnitSystem.IMPERIAL
    timeout_sec: float = 10.0
    refresh_interval_sec: int = 600


class ServerSettings(BaseModel):
    """Presentation API settings."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 5000
    notification_limit: int = 20


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Development without hardware or network access
    mock_sensors: _BoolFromStr = False
    log_level: _LogLevel = "INFO"

    # Peripheral
    device_address: str = ""
    device_name: str = "AirSense"
    device_connect_timeout_sec: float = Field(default=20.0, gt=0)
    device_read_timeout_sec: float = Field(default=5.0, gt=0)
    device_pair: _BoolFromStr = False
    channel_uuid_temperature: str = DEFAULT_CHANNEL_UUIDS[ChannelId.TEMPERATURE]
    channel_uuid_humidity: str = DEFAULT_CHANNEL_UUIDS[ChannelId.HUMIDITY]
    channel_uuid_pressure: str = DEFAULT_CHANNEL_UUIDS[ChannelId.PRESSURE]
    channel_uuid_iaq: str = DEFAULT_CHANNEL_UUIDS[ChannelId.IAQ]
    channel_uuid_co2: str = DEFAULT_CHANNEL_UUIDS[ChannelId.CO2]
    channel_uuid_gas: str = DEFAULT_CHANNEL_UUIDS[ChannelId.GAS]

    # Telemetry refresh
    refresh_interval_sec: int = Field(default=10, ge=1)
    refresh_max_retries: int = Field(default=3, ge=1)
    refresh_initial_backoff_sec: float = Field(default=2.0, ge=0)
    auto_connect: _BoolFromStr = False

    # Remote providers
    openweather_base_url: _HttpUrlStr = OPENWEATHER_BASE_URL
    openweather_api_key: SecretStr = SecretStr("")
    weather_location: str = "Long Beach"
    weather_units: UnitSystem = UnitSystem.IMPERIAL
    air_latitude: float = Field(default=33.77, ge=-90, le=90)
    air_longitude: float = Field(default=-118.19, ge=-180, le=180)
    remote_timeout_sec: float = Field(default=10.0, gt=0)
    remote_refresh_interval_sec: int = Field(default=600, ge=1)

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = Field(default=5000, gt=0, le=65535)
    notification_limit: int = Field(default=20, ge=1)

    @cached_property
    def device(self) -> DeviceSettings:
        """Get peripheral settings as nested object."""
        return DeviceSettings(
            address=self.device_address,
            name=self.device_name,
            connect_timeout_sec=self.device_connect_timeout_sec,
            read_timeout_sec=self.device_read_timeout_sec,
            pair=self.device_pair,
            channel_uuids={
                ChannelId.TEMPERATURE: self.channel_uuid_temperature,
                ChannelId.HUMIDITY: self.channel_uuid_humidity,
                ChannelId.PRESSURE: self.channel_uuid_pressure,
                ChannelId.IAQ: self.channel_uuid_iaq,
                ChannelId.CO2: self.channel_uuid_co2,
                ChannelId.GAS: self.channel_uuid_gas,
            },
        )

    @cached_property
    def telemetry(self) -> TelemetrySettings:
        """Get telemetry refresh settings."""
        return TelemetrySettings(
            refresh_interval_sec=self.refresh_interval_sec,
            max_retries=self.refresh_max_retries,
            initial_backoff_sec=self.refresh_initial_backoff_sec,
            auto_connect=self.auto_connect,
        )

    @cached_property
    def remote(self) -> RemoteSettings:
        """Get remote provider settings as nested object."""
        return RemoteSettings(
            base_url=self.openweather_base_url,
            api_key=self.openweather_api_key,
            location=self.weather_location,
            coordinates=Coordinates(
                latitude=self.air_latitude,
                longitude=self.air_longitude,
            ),
            units=self.weather_units,
            timeout_sec=self.remote_timeout_sec,
            refresh_interval_sec=self.remote_refresh_interval_sec,
        )

    @cached_property
    def server(self) -> ServerSettings:
        """Get presentation API settings."""
        return ServerSettings(
            host=self.server_host,
            port=self.server_port,
            notification_limit=self.notification_limit,
        )

    @model_validator(mode="after")
    def validate_settings(self) -> Self:
        """Validate cross-field configuration constraints."""
        errors: list[str] = []

        if not self.mock_sensors:
            if not self.openweather_api_key.get_secret_value():
                errors.append(
                    "OPENWEATHER_API_KEY is required unless MOCK_SENSORS=1"
                )
            if not self.device_address and not self.device_name:
                errors.append(
                    "Either DEVICE_ADDRESS or DEVICE_NAME must be set"
                )

        uuids = [
            self.channel_uuid_temperature,
            self.channel_uuid_humidity,
            self.channel_uuid_pressure,
            self.channel_uuid_iaq,
            self.channel_uuid_co2,
            self.channel_uuid_gas,
        ]
        if len({u.lower() for u in uuids}) != len(uuids):
            errors.append("CHANNEL_UUID_* values must be distinct")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n  - "
                + "\n  - ".join(errors)
            )

        return self


# Settings override for testing - allows injecting custom Settings without
# modifying environment variables or clearing the lru_cache.
_settings_override: Settings | None = None


@lru_cache(maxsize=1)
def _load_settings() -> Settings:
    """Load settings from environment (cached)."""
    return Settings()


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns the test override if set, otherwise loads from environment
    variables (cached after first load). For testing, use set_settings()
    from airdash.lib.config.testing to override.
    """
    if _settings_override is not None:
        return _settings_override
    return _load_settings()
