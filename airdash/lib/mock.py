"""Mock data sources for development.

Provides mock implementations of the peripheral transport and the remote
providers that generate realistic data without hardware or network
access. Used when MOCK_SENSORS=1 is set.
"""

import asyncio
import random
from collections.abc import Callable

import httpx

from airdash.lib.config import ChannelId

# (initial low, initial high, drift, min, max) per channel
_CHANNEL_WALKS: dict[ChannelId, tuple[float, float, float, float, float]] = {
    ChannelId.TEMPERATURE: (20.0, 23.0, 0.15, 15.0, 30.0),
    ChannelId.HUMIDITY: (40.0, 55.0, 0.3, 20.0, 80.0),
    ChannelId.PRESSURE: (1008.0, 1018.0, 0.2, 980.0, 1040.0),
    ChannelId.IAQ: (40.0, 90.0, 2.0, 0.0, 500.0),
    ChannelId.CO2: (400.0, 600.0, 10.0, 400.0, 5000.0),
    ChannelId.GAS: (10000.0, 14000.0, 150.0, 1000.0, 300000.0),
}


def _random_walk(
    current: float, drift: float, min_val: float, max_val: float
) -> float:
    """Generate next value using random walk with bounds."""
    change = random.gauss(0, drift)
    new_val = current + change
    return max(min_val, min(max_val, new_val))


class MockPeripheralTransport:
    """Mock BLE transport answering every channel with a drifting value.

    Values are encoded as ASCII text, like the sensor firmware does.
    """

    def __init__(self, latency_sec: float = 0.05) -> None:
        self._latency_sec = latency_sec
        self._values = {
            channel: random.uniform(low, high)
            for channel, (low, high, *_rest) in _CHANNEL_WALKS.items()
        }
        self._open = False

    async def open(self, on_lost: Callable[[], None]) -> None:
        await asyncio.sleep(self._latency_sec)
        self._open = True

    async def read(self, channel: ChannelId) -> bytes:
        if not self._open:
            raise ConnectionError("mock transport is not open")
        await asyncio.sleep(self._latency_sec)
        _low, _high, drift, min_val, max_val = _CHANNEL_WALKS[channel]
        self._values[channel] = _random_walk(
            self._values[channel], drift, min_val, max_val
        )
        return f"{self._values[channel]:.2f}".encode("ascii")

    async def close(self) -> None:
        self._open = False


class MockProviderTransport(httpx.MockTransport):
    """In-process transport serving provider-shaped weather and air payloads."""

    def __init__(self) -> None:
        super().__init__(self._handle)

    @staticmethod
    def _handle(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/weather"):
            temp = round(random.uniform(60.0, 75.0), 2)
            return httpx.Response(
                200,
                json={
                    "weather": [{"description": "clear sky", "icon": "01d"}],
                    "main": {
                        "temp": temp,
                        "temp_min": temp - random.uniform(2.0, 6.0),
                        "temp_max": temp + random.uniform(2.0, 6.0),
                    },
                    "name": request.url.params.get("q", ""),
                },
            )
        if request.url.path.endswith("/air_pollution"):
            return httpx.Response(
                200,
                json={
                    "list": [
                        {
                            "main": {"aqi": random.randint(1, 3)},
                            "components": {
                                "pm2_5": round(random.uniform(2.0, 20.0), 2),
                                "pm10": round(random.uniform(5.0, 40.0), 2),
                            },
                        }
                    ]
                },
            )
        return httpx.Response(404, json={"message": "not found"})
