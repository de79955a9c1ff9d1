"""Unit tests for the retry helpers."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from pria.utils.retry import is_retriable_error, with_exponential_backoff


class TestIsRetriableError:
    """Tests for is_retriable_error."""

    @pytest.mark.parametrize(
        "error",
        [
            Exception("Error code: 429 - Too Many Requests"),
            Exception("Rate limit reached for gpt-4o"),
            Exception("Request timed out"),
            Exception("503 Service Unavailable"),
        ],
    )
    def test_retriable_messages(self, error):
        assert is_retriable_error(error) is True

    def test_transport_error(self):
        assert is_retriable_error(httpx.ConnectError("refused")) is True

    def test_non_retriable(self):
        assert is_retriable_error(ValueError("invalid api key")) is False


class TestWithExponentialBackoff:
    """Tests for with_exponential_backoff."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")

        result = await with_exponential_backoff(func, "prompt", max_retries=3)

        assert result == "ok"
        func.assert_awaited_once_with("prompt")

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        """Test that a rate limited call is retried until it succeeds."""
        func = AsyncMock(side_effect=[Exception("429 rate limit"), "ok"])

        with patch("pria.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await with_exponential_backoff(func, max_retries=3, initial_delay=2.0)

        assert result == "ok"
        assert func.await_count == 2
        sleep.assert_awaited_once_with(2.0)

    @pytest.mark.asyncio
    async def test_raises_non_retriable_immediately(self):
        func = AsyncMock(side_effect=ValueError("bad request"))

        with pytest.raises(ValueError, match="bad request"):
            await with_exponential_backoff(func, max_retries=3)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        func = AsyncMock(side_effect=Exception("503 unavailable"))

        with patch("pria.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(Exception, match="503"):
                await with_exponential_backoff(func, max_retries=3, initial_delay=1.0)

        assert func.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
