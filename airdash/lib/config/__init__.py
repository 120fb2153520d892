"""Centralized configuration for the Airdash application.

This package provides:
- Enums for sensor channels, connection states and unit systems
- Pydantic settings models for configuration
"""

from .enums import (
    AqiCategory,
    ChannelId,
    ConnectionState,
    NoticeSource,
    UnitSystem,
)
from .settings import (
    Coordinates,
    DeviceSettings,
    RemoteSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    get_settings,
)
from .testing import override_settings, set_settings

__all__ = [
    # Enums
    "AqiCategory",
    "ChannelId",
    "ConnectionState",
    "NoticeSource",
    "UnitSystem",
    # Settings models
    "Coordinates",
    "DeviceSettings",
    "RemoteSettings",
    "ServerSettings",
    "Settings",
    "TelemetrySettings",
    # Functions
    "get_settings",
    "override_settings",
    "set_settings",
]
