"""Connection lifecycle and channel reads for the BLE sensor peripheral.

The link is a small state machine (disconnected → connecting → connected)
around a transport that knows how to open a connection to the peripheral
and read one named channel at a time.
"""

import asyncio
import math
import struct
from collections.abc import Callable
from typing import Protocol

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from airdash.lib.config import ChannelId, ConnectionState, DeviceSettings, get_settings
from airdash.lib.exceptions import ChannelReadTimeout, ChannelUnavailable, LinkNotReady
from airdash.logging import get_logger

logger = get_logger("device.link")

type StateListener = Callable[[ConnectionState], None]


def decode_channel_value(data: bytes | bytearray) -> float:
    """Decode a channel payload into a number.

    The firmware sends either ASCII numeric text or a little-endian IEEE754
    float32 (4 bytes) or float64 (8 bytes).

    Raises:
        ValueError: If the payload is empty, undecodable or not finite.
    """
    raw = bytes(data)
    if not raw:
        raise ValueError("empty payload")

    value: float | None = None
    try:
        text = raw.rstrip(b"\x00").decode("ascii").strip()
        value = float(text)
    except (UnicodeDecodeError, ValueError):
        if len(raw) == 4:
            value = struct.unpack("<f", raw)[0]
        elif len(raw) == 8:
            value = struct.unpack("<d", raw)[0]

    if value is None:
        raise ValueError(f"cannot decode {len(raw)}-byte payload {raw!r}")
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {value}")
    return value


class PeripheralTransport(Protocol):
    """Protocol for peripheral transports.

    Transports report every failure as an OSError (usually ConnectionError).
    """

    async def open(self, on_lost: Callable[[], None]) -> None: ...
    async def read(self, channel: ChannelId) -> bytes: ...
    async def close(self) -> None: ...


class BleakPeripheralTransport:
    """BLE GATT transport, one characteristic per channel."""

    def __init__(self, settings: DeviceSettings) -> None:
        self._settings = settings
        self._client: BleakClient | None = None

    async def _resolve_target(self) -> str:
        if self._settings.address:
            return self._settings.address
        logger.info("Scanning for device named %s", self._settings.name)
        device = await BleakScanner.find_device_by_name(
            self._settings.name, timeout=self._settings.connect_timeout_sec
        )
        if device is None:
            raise ConnectionError(f"Device '{self._settings.name}' not found")
        return device.address

    async def open(self, on_lost: Callable[[], None]) -> None:
        """Connect to the peripheral, pairing first if configured."""
        try:
            target = await self._resolve_target()
            self._client = BleakClient(
                target,
                disconnected_callback=lambda _client: on_lost(),
                timeout=self._settings.connect_timeout_sec,
            )
            await self._client.connect()
            if self._settings.pair:
                await self._client.pair()
        except BleakError as e:
            raise ConnectionError(str(e)) from e
        logger.info("Connected to peripheral %s", target)

    async def read(self, channel: ChannelId) -> bytes:
        """Read the characteristic backing a channel."""
        if self._client is None:
            raise ConnectionError("transport is not open")
        uuid = self._settings.get_channel_uuid(channel)
        try:
            return bytes(await self._client.read_gatt_char(uuid))
        except BleakError as e:
            raise ConnectionError(str(e)) from e

    async def close(self) -> None:
        """Disconnect from the peripheral."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.disconnect()
        except BleakError as e:
            raise ConnectionError(str(e)) from e
        logger.info("Disconnected from peripheral")


class DeviceLink:
    """Connection state machine for a single sensor peripheral."""

    def __init__(
        self,
        transport: PeripheralTransport,
        settings: DeviceSettings | None = None,
    ) -> None:
        self._transport = transport
        self._settings = settings or get_settings().device
        self._state = ConnectionState.DISCONNECTED
        self._listeners: list[StateListener] = []
        # The current connect attempt; disconnect() detaches and cancels it
        self._negotiation: asyncio.Task[None] | None = None
        self._teardowns: set[asyncio.Task[None]] = set()
        # Held while opening or closing the transport
        self._handshake = asyncio.Lock()
        # One outstanding channel request at a time
        self._request = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with the new state on every transition."""
        self._listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        logger.info("Link state %s -> %s", self._state, state)
        self._state = state
        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    async def _negotiate(self) -> None:
        async with self._handshake:
            async with asyncio.timeout(self._settings.connect_timeout_sec):
                await self._transport.open(self._handle_link_lost)

    async def _teardown(self) -> None:
        """Close the transport, logging rather than raising on failure."""
        async with self._handshake:
            try:
                await self._transport.close()
            except Exception as e:
                logger.warning("Error while tearing down link: %s", e)

    def _handle_link_lost(self) -> None:
        """Called by the transport when the peripheral drops the connection."""
        if self._state is not ConnectionState.CONNECTED:
            return
        logger.warning("Peripheral dropped the connection")
        self._set_state(ConnectionState.DISCONNECTED)
        # Release the dropped connection before any reconnect opens a new one
        task = asyncio.get_running_loop().create_task(self._teardown())
        self._teardowns.add(task)
        task.add_done_callback(self._teardowns.discard)

    async def connect(self) -> bool:
        """Open the link to the peripheral.

        Returns:
            True once connected. False if the negotiation failed, was
            aborted by disconnect(), or another connect is already in
            progress (that one is left untouched).
        """
        if self._state is ConnectionState.CONNECTED:
            return True
        if self._state is ConnectionState.CONNECTING:
            logger.warning("Connect requested while already connecting, ignoring")
            return False

        self._set_state(ConnectionState.CONNECTING)
        attempt = asyncio.create_task(self._negotiate())
        self._negotiation = attempt
        try:
            await attempt
        except asyncio.CancelledError:
            if self._negotiation is not attempt:
                logger.info("Connection attempt aborted")
                return False
            # The caller itself was cancelled
            self._negotiation = None
            await self._teardown()
            self._set_state(ConnectionState.DISCONNECTED)
            raise
        except Exception as e:
            if self._negotiation is not attempt:
                return False
            self._negotiation = None
            if isinstance(e, TimeoutError):
                logger.warning(
                    "Connection timed out after %ss",
                    self._settings.connect_timeout_sec,
                )
            else:
                logger.warning("Connection failed: %s", e)
            await self._teardown()
            self._set_state(ConnectionState.DISCONNECTED)
            return False

        if self._negotiation is not attempt:
            # disconnect() won the race after the transport opened
            return False
        self._negotiation = None
        self._set_state(ConnectionState.CONNECTED)
        return True

    async def disconnect(self) -> None:
        """Close the link. Always ends disconnected, never raises."""
        if self._state is ConnectionState.DISCONNECTED:
            return
        attempt, self._negotiation = self._negotiation, None
        if attempt is not None:
            attempt.cancel()
        self._set_state(ConnectionState.DISCONNECTED)
        await self._teardown()

    async def read_channel(self, channel: ChannelId) -> float:
        """Read one channel from the peripheral.

        Raises:
            LinkNotReady: If the link is not connected.
            ChannelReadTimeout: If the peripheral does not answer in time.
            ChannelUnavailable: On transport failure or an undecodable value.
        """
        if not self.is_connected():
            raise LinkNotReady()

        timeout = self._settings.read_timeout_sec
        async with self._request:
            try:
                async with asyncio.timeout(timeout):
                    data = await self._transport.read(channel)
            except TimeoutError as e:
                raise ChannelReadTimeout(channel, timeout) from e
            except OSError as e:
                raise ChannelUnavailable(channel, str(e)) from e

        try:
            value = decode_channel_value(data)
        except ValueError as e:
            raise ChannelUnavailable(channel, str(e)) from e
        logger.debug("Read %s = %s", channel, value)
        return value


def create_device_link(settings: DeviceSettings | None = None) -> DeviceLink:
    """Create a device link based on configuration."""
    settings = settings or get_settings().device
    if get_settings().mock_sensors:
        from airdash.lib.mock import MockPeripheralTransport

        logger.info("Using mock peripheral transport")
        return DeviceLink(MockPeripheralTransport(), settings)
    return DeviceLink(BleakPeripheralTransport(settings), settings)
