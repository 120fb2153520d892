"""Retry utilities with exponential backoff."""
import asyncio
from collections.abc import Awaitable, Callable
from logging import Logger


async def with_retry[T](
    fn: Callable[[], Awaitable[T]],
    *,
    name: str,
    logger: Logger,
    max_retries: int = 3,
    initial_backoff_sec: float = 2.0,
    retryable_exceptions: tuple[type[Exception], ...] = (OSError,),
) -> T:
    """Await a coroutine function with retry logic and exponential backoff.

    Args:
        fn: The coroutine function to call.
        name: Name for logging purposes.
        logger: Logger instance to use.
        max_retries: Maximum number of attempts.
        initial_backoff_sec: Initial backoff delay in seconds (doubles each retry).
        retryable_exceptions: Exception types that trigger a retry.

    Returns:
        The result of the first successful call.

    Raises:
        The last retryable exception once all attempts are exhausted, or
        any non-retryable exception as soon as it occurs.
    """
    for attempt in range(max_retries):
        try:
            return await fn()
        except retryable_exceptions as e:
            if attempt + 1 >= max_retries:
                logger.error(
                    "%s failed after %d attempts. Last error: %s",
                    name,
                    max_retries,
                    e,
                )
                raise
            backoff = initial_backoff_sec * (2**attempt)
            logger.warning(
                "%s attempt %d/%d failed: %s. Retrying in %.1fs...",
                name,
                attempt + 1,
                max_retries,
                e,
                backoff,
            )
            await asyncio.sleep(backoff)
    raise ValueError(f"max_retries must be at least 1, got {max_retries}")
