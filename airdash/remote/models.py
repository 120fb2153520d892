"""Domain models for remote weather and air-quality snapshots."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from airdash.lib.config import UnitSystem
from airdash.remote.convert import aqi_category


@dataclass(frozen=True, slots=True)
class WeatherSnapshot:
    """Current conditions for a place, temperatures rounded to whole units."""

    temperature: int
    description: str
    icon: str
    daily_high: int
    daily_low: int
    units: UnitSystem
    fetched_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "description": self.description,
            "icon": self.icon,
            "daily_high": self.daily_high,
            "daily_low": self.daily_low,
            "units": self.units,
            "fetched_at": self.fetched_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class AirQualitySnapshot:
    """Current air quality, with the provider level on the 0-500 scale."""

    normalized_index: int
    pm25: float
    pm10: float
    humidity_percent: float
    raw_level: int
    fetched_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "normalized_index": self.normalized_index,
            "category": aqi_category(self.normalized_index),
            "pm25": self.pm25,
            "pm10": self.pm10,
            "humidity_percent": self.humidity_percent,
            "raw_level": self.raw_level,
            "fetched_at": self.fetched_at.isoformat(),
        }
