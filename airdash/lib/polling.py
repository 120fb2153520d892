"""Generic async polling service abstraction.

Provides a reusable base class for acquisition services that follow
the poll → audit → publish pattern with configurable intervals. A service
runs either standalone (``run()``, owning the event loop and signal
handling) or as a task inside a host application (``serve()``/``stop()``).
"""
import asyncio
import contextlib
import signal
from abc import ABC, abstractmethod

from airdash.logging import get_logger


class PollingService[T](ABC):
    """Abstract base class for async polling services.

    Implements the common polling loop pattern with:
    - Configurable polling frequency
    - Graceful shutdown handling
    - Error recovery
    """

    def __init__(self, name: str, frequency_sec: float) -> None:
        """Initialize the polling service.

        Args:
            name: Service name for logging.
            frequency_sec: Polling frequency in seconds.
        """
        self.name = name
        self.frequency_sec = frequency_sec
        self._stop_event = asyncio.Event()
        self._running = False
        self._logger = get_logger(f"polling.{name.lower()}")

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize any resources needed before polling starts."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Release resources when the polling loop exits."""

    @abstractmethod
    async def poll(self) -> T | None:
        """Acquire a new reading.

        Returns:
            A reading object, or None if nothing should be published.
        """

    async def audit(self, reading: T) -> bool:
        """Check the reading before it is published.

        Returns:
            True if the reading should be published, False to skip.
        """
        return True

    @abstractmethod
    async def publish(self, reading: T) -> None:
        """Hand the audited reading to its consumers."""

    def on_poll_error(self, error: Exception) -> None:
        """Handle an error that occurred during polling.

        Override to customize error handling. Default logs the error.
        """
        self._logger.warning("%s poll error: %s", self.name, error)

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Ask the polling loop to exit after the current cycle."""
        self._stop_event.set()

    async def poll_once(self) -> T | None:
        """Execute a single poll → audit → publish cycle."""
        reading = await self.poll()
        if reading is not None and await self.audit(reading):
            await self.publish(reading)
            return reading
        return None

    async def serve(self) -> None:
        """Run the polling loop until stop() is called."""
        self._running = True
        await self.initialize()
        self._logger.info("%s polling service started", self.name)

        loop = asyncio.get_running_loop()

        try:
            while not self._stop_event.is_set():
                cycle_start = loop.time()

                try:
                    await self.poll_once()
                except Exception as e:
                    self.on_poll_error(e)

                # Sleep only the remaining time to maintain consistent intervals
                elapsed = loop.time() - cycle_start
                sleep_time = max(0.0, self.frequency_sec - elapsed)
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=sleep_time
                    )
        finally:
            self._logger.info("Cleaning up resources...")
            await self.cleanup()
            self._running = False
            self._logger.info("%s shutdown complete", self.name)

    async def _serve_with_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_shutdown, sig)
        await self.serve()

    def _handle_shutdown(self, signum: int) -> None:
        """Handle shutdown signals gracefully."""
        signal_name = signal.Signals(signum).name
        self._logger.info("Received %s, initiating graceful shutdown...", signal_name)
        self.stop()

    def run(self) -> None:
        """Run the polling loop as a standalone process.

        Sets up signal handlers for graceful shutdown, then serves until
        SIGTERM or SIGINT.
        """
        asyncio.run(self._serve_with_signals())
