"""Shared constants for the configuration module.

Kept apart from settings.py so pure modules can import them without
loading the settings machinery.
"""

from airdash.lib.config.enums import AqiCategory, ChannelId

# Upper bound of the normalized index band for each upstream severity level
SEVERITY_INDEX_BANDS: dict[int, int] = {
    1: 50,
    2: 100,
    3: 150,
    4: 200,
    5: 300,
    6: 500,
}

# Inclusive upper bound of each AQI category, lowest first
AQI_CATEGORY_BOUNDS: tuple[tuple[int, AqiCategory], ...] = (
    (50, AqiCategory.GOOD),
    (100, AqiCategory.MODERATE),
    (150, AqiCategory.UNHEALTHY_SENSITIVE),
    (200, AqiCategory.UNHEALTHY),
    (300, AqiCategory.VERY_UNHEALTHY),
)

# GATT characteristic UUIDs of the default sensor firmware
DEFAULT_CHANNEL_UUIDS: dict[ChannelId, str] = {
    ChannelId.TEMPERATURE: "a7a0e1f0-0001-4c8a-9b7e-5d3c2b1a0f01",
    ChannelId.HUMIDITY: "a7a0e1f0-0002-4c8a-9b7e-5d3c2b1a0f01",
    ChannelId.PRESSURE: "a7a0e1f0-0003-4c8a-9b7e-5d3c2b1a0f01",
    ChannelId.IAQ: "a7a0e1f0-0004-4c8a-9b7e-5d3c2b1a0f01",
    ChannelId.CO2: "a7a0e1f0-0005-4c8a-9b7e-5d3c2b1a0f01",
    ChannelId.GAS: "a7a0e1f0-0006-4c8a-9b7e-5d3c2b1a0f01",
}

OPENWEATHER_BASE_URL = "https://api.openweathermap.org"

# Physical operating range of the BME680 sensor
SENSOR_BOUNDS: dict[ChannelId, tuple[float, float]] = {
    ChannelId.TEMPERATURE: (-40.0, 85.0),
    ChannelId.HUMIDITY: (0.0, 100.0),
    ChannelId.PRESSURE: (300.0, 1100.0),
    ChannelId.IAQ: (0.0, 500.0),
}
