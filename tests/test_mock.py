"""Tests for the mock data sources."""

import httpx
import pytest

from airdash.device.link import decode_channel_value
from airdash.lib.config import ChannelId
from airdash.lib.mock import MockPeripheralTransport, MockProviderTransport


class TestMockPeripheralTransport:
    @pytest.mark.asyncio
    async def test_read_requires_open(self):
        transport = MockPeripheralTransport(latency_sec=0)

        with pytest.raises(ConnectionError):
            await transport.read(ChannelId.TEMPERATURE)

    @pytest.mark.asyncio
    async def test_values_are_ascii_and_stay_in_range(self):
        transport = MockPeripheralTransport(latency_sec=0)
        await transport.open(lambda: None)

        for _ in range(50):
            humidity = decode_channel_value(await transport.read(ChannelId.HUMIDITY))
            co2 = decode_channel_value(await transport.read(ChannelId.CO2))
            assert 20.0 <= humidity <= 80.0
            assert 400.0 <= co2 <= 5000.0

    @pytest.mark.asyncio
    async def test_close(self):
        transport = MockPeripheralTransport(latency_sec=0)
        await transport.open(lambda: None)
        await transport.close()

        with pytest.raises(ConnectionError):
            await transport.read(ChannelId.GAS)


class TestMockProviderTransport:
    @pytest.mark.asyncio
    async def test_serves_provider_payloads(self):
        async with httpx.AsyncClient(
            base_url="https://provider.test", transport=MockProviderTransport()
        ) as client:
            weather = (await client.get("/data/2.5/weather", params={"q": "X"})).json()
            air = (await client.get("/data/2.5/air_pollution")).json()
            missing = await client.get("/data/2.5/forecast")

        assert weather["name"] == "X"
        assert weather["main"]["temp_min"] < weather["main"]["temp_max"]
        assert air["list"][0]["main"]["aqi"] in (1, 2, 3)
        assert missing.status_code == 404
