"""Tests for the retry helper."""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from airdash.lib.retry import with_retry

logger = logging.getLogger("airdash.test")


class TestWithRetry:
    """Tests for with_retry backoff behaviour."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        fn = AsyncMock(return_value=42)

        result = await with_retry(fn, name="op", logger=logger)

        assert result == 42
        fn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        fn = AsyncMock(side_effect=[OSError("flaky"), OSError("flaky"), "ok"])

        with patch("airdash.lib.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await with_retry(
                fn, name="op", logger=logger, max_retries=3, initial_backoff_sec=1.0
            )

        assert result == "ok"
        assert fn.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self, caplog):
        fn = AsyncMock(side_effect=[OSError("first"), OSError("second")])

        with patch("airdash.lib.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(OSError, match="second"):
                await with_retry(fn, name="op", logger=logger, max_retries=2)

        assert fn.await_count == 2
        assert "op failed after 2 attempts" in caplog.text

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_immediately(self):
        fn = AsyncMock(side_effect=KeyError("bad"))

        with pytest.raises(KeyError):
            await with_retry(fn, name="op", logger=logger)

        fn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_custom_retryable_exceptions(self):
        fn = AsyncMock(side_effect=[ValueError("retry me"), "done"])

        result = await with_retry(
            fn,
            name="op",
            logger=logger,
            initial_backoff_sec=0,
            retryable_exceptions=(ValueError,),
        )

        assert result == "done"

    @pytest.mark.asyncio
    async def test_max_retries_must_be_positive(self):
        fn = AsyncMock()

        with pytest.raises(ValueError, match="at least 1"):
            await with_retry(fn, name="op", logger=logger, max_retries=0)

        fn.assert_not_awaited()
