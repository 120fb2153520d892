"""Custom exceptions for the Airdash application.

Provides a hierarchy of domain-specific exceptions for the peripheral link,
the telemetry session and the remote data providers.
"""

from airdash.lib.config.enums import ChannelId


class AirdashError(Exception):
    """Base exception for all application errors."""


class DeviceError(AirdashError):
    """Base exception for peripheral link errors."""


class LinkNotReady(DeviceError):
    """Raised when reading a channel while the link is not connected."""

    def __init__(self, message: str = "Device link not connected") -> None:
        super().__init__(message)


class ChannelReadTimeout(DeviceError):
    """Raised when the peripheral does not answer a channel read in time."""

    def __init__(self, channel: ChannelId, timeout_sec: float) -> None:
        self.channel = channel
        super().__init__(
            f"Timed out after {timeout_sec}s reading channel '{channel}'"
        )


class ChannelUnavailable(DeviceError):
    """Raised when a channel read fails at the transport level."""

    def __init__(self, channel: ChannelId, reason: str) -> None:
        self.channel = channel
        super().__init__(f"Channel '{channel}' unavailable: {reason}")


class SessionError(AirdashError):
    """Base exception for telemetry session errors."""


class NotConnected(SessionError):
    """Raised when a refresh is requested or completes without a link."""

    def __init__(self, message: str = "Sensor device not connected") -> None:
        super().__init__(message)


class RefreshInProgress(SessionError):
    """Raised when a refresh is requested while another one is running."""

    def __init__(self, message: str = "A refresh is already in progress") -> None:
        super().__init__(message)


class PartialReadFailure(SessionError):
    """Raised when one channel of a refresh cycle fails.

    The failed channel is available as ``channel`` and the underlying
    device error as ``__cause__``.
    """

    def __init__(self, channel: ChannelId, cause: DeviceError) -> None:
        self.channel = channel
        super().__init__(f"Refresh aborted at channel '{channel}': {cause}")


class RemoteError(AirdashError):
    """Base exception for remote provider errors."""


class UpstreamUnavailable(RemoteError):
    """Raised when a provider request fails or returns an unusable body."""


class InvalidPayload(RemoteError):
    """Raised when a provider payload does not have the expected shape."""
