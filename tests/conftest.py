"""Shared pytest fixtures for the test suite."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from airdash.device.link import DeviceLink
from airdash.device.session import TelemetrySession
from airdash.lib.config import ChannelId, DeviceSettings, override_settings

# Sentinel making a FakeTransport read block until the read times out
HANG = object()

CHANNEL_VALUES: dict[ChannelId, object] = {
    ChannelId.TEMPERATURE: b"21.5",
    ChannelId.HUMIDITY: b"45.2",
    ChannelId.PRESSURE: b"1013.1",
    ChannelId.IAQ: b"75.0",
    ChannelId.CO2: b"410",
    ChannelId.GAS: b"12000",
}


class FakeTransport:
    """In-memory peripheral transport with scriptable failures."""

    def __init__(self, values: dict[ChannelId, object] | None = None) -> None:
        self.values = dict(CHANNEL_VALUES if values is None else values)
        self.open_calls = 0
        self.close_calls = 0
        self.reads: list[ChannelId] = []
        self.open_gate: asyncio.Event | None = None
        self.open_error: Exception | None = None
        self.close_error: Exception | None = None
        self.on_lost: Callable[[], None] | None = None
        self.read_hook: Callable[[ChannelId], None] | None = None

    async def open(self, on_lost: Callable[[], None]) -> None:
        self.open_calls += 1
        self.on_lost = on_lost
        if self.open_gate is not None:
            await self.open_gate.wait()
        if self.open_error is not None:
            raise self.open_error

    async def read(self, channel: ChannelId) -> bytes:
        self.reads.append(channel)
        await asyncio.sleep(0)
        if self.read_hook is not None:
            self.read_hook(channel)
        value = self.values[channel]
        if value is HANG:
            await asyncio.Event().wait()
        if isinstance(value, Exception):
            raise value
        return value  # type: ignore[return-value]

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture(autouse=True)
def configure_caplog(caplog):
    """Ensure caplog captures logs from the airdash namespace."""
    caplog.set_level(logging.DEBUG, logger="airdash")


@pytest.fixture(autouse=True)
def test_settings():
    """Use mock-mode settings so no API key or device is needed."""
    with override_settings(
        device_connect_timeout_sec=0.5,
        device_read_timeout_sec=0.2,
        refresh_initial_backoff_sec=0,
    ) as settings:
        yield settings


@pytest.fixture
def frozen_time():
    """Return a fixed datetime for deterministic tests."""
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def device_settings(test_settings) -> DeviceSettings:
    return test_settings.device


@pytest.fixture
def transport():
    """Create a fake peripheral transport answering every channel."""
    return FakeTransport()


@pytest.fixture
def link(transport, device_settings):
    """Create a disconnected device link over the fake transport."""
    return DeviceLink(transport, device_settings)


@pytest.fixture
def session(link):
    """Create a telemetry session over the fake link."""
    return TelemetrySession(link)
