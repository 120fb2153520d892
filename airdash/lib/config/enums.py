"""Enumerations for the Airdash application."""

from enum import StrEnum


class ChannelId(StrEnum):
    """Sensor channels exposed by the peripheral.

    Declaration order is the order channels are read in a refresh cycle.
    """

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    IAQ = "iaq"  # BSEC indoor air-quality index
    CO2 = "co2"
    GAS = "gas"  # Gas resistance, ohms


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class UnitSystem(StrEnum):
    """Unit system selector understood by the weather provider."""

    STANDARD = "standard"  # Kelvin
    METRIC = "metric"  # Celsius
    IMPERIAL = "imperial"  # Fahrenheit


class AqiCategory(StrEnum):
    """Bands of the normalized 0-500 air-quality index."""

    GOOD = "good"
    MODERATE = "moderate"
    UNHEALTHY_SENSITIVE = "unhealthy_for_sensitive_groups"
    UNHEALTHY = "unhealthy"
    VERY_UNHEALTHY = "very_unhealthy"
    HAZARDOUS = "hazardous"


class NoticeSource(StrEnum):
    """Origin of a notification surfaced to the presentation layer."""

    DEVICE = "device"
    WEATHER = "weather"
    AIR_QUALITY = "air_quality"
