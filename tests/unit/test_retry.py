"""Tests for retry with backoff utility."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backlog_readonly_mcp.core.errors import (
    BacklogAuthError,
    BacklogNetworkError,
    BacklogNotFoundError,
    BacklogRateLimitError,
    BacklogServerError,
)
from backlog_readonly_mcp.core.retry import (
    RetryConfig,
    _compute_delay,
    is_retryable,
    retry_with_backoff,
)


def _server_error() -> BacklogServerError:
    return BacklogServerError("HTTP_503", "Service Unavailable", status_code=503)


# ─── RetryConfig ──────────────────────────────────────────────


class TestRetryConfig:
    def test_defaults(self):
        cfg = RetryConfig()
        assert cfg.max_retries == 3
        assert cfg.base_delay == 1.0
        assert cfg.max_delay == 60.0
        assert cfg.jitter is False
        assert cfg.rate_limit_default == 60.0

    def test_frozen(self):
        cfg = RetryConfig()
        with pytest.raises(AttributeError):
            cfg.max_retries = 5  # type: ignore[misc]


# ─── is_retryable ─────────────────────────────────────────────


class TestIsRetryable:
    def test_server_error_is_retryable(self):
        assert is_retryable(_server_error()) is True

    def test_rate_limit_is_retryable(self):
        assert is_retryable(BacklogRateLimitError("HTTP_429", "slow down")) is True

    def test_auth_is_not_retryable(self):
        assert is_retryable(BacklogAuthError("11", "bad key", status_code=401)) is False

    def test_not_found_is_not_retryable(self):
        assert is_retryable(BacklogNotFoundError("6", "nope", status_code=404)) is False

    def test_network_error_is_not_retryable(self):
        assert is_retryable(BacklogNetworkError("timed out")) is False

    def test_generic_exception_is_not_retryable(self):
        assert is_retryable(ValueError("oops")) is False


# ─── _compute_delay ───────────────────────────────────────────


class TestComputeDelay:
    def test_exponential_backoff(self):
        cfg = RetryConfig(base_delay=1.0)
        err = _server_error()
        assert _compute_delay(0, cfg, err) == 1.0
        assert _compute_delay(1, cfg, err) == 2.0
        assert _compute_delay(2, cfg, err) == 4.0

    def test_capped_at_max_delay(self):
        cfg = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert _compute_delay(10, cfg, _server_error()) == 5.0

    def test_jitter_stays_in_range(self):
        cfg = RetryConfig(base_delay=2.0, jitter=True)
        for _ in range(20):
            delay = _compute_delay(0, cfg, _server_error())
            assert 1.0 <= delay <= 3.0

    def test_rate_limit_uses_retry_after(self):
        err = BacklogRateLimitError("HTTP_429", "slow down", retry_after=12)
        assert _compute_delay(0, RetryConfig(), err) == 12

    def test_rate_limit_default_wait(self):
        err = BacklogRateLimitError("HTTP_429", "slow down")
        assert _compute_delay(0, RetryConfig(), err) == 60.0

    def test_rate_limit_wait_is_capped(self):
        err = BacklogRateLimitError("HTTP_429", "slow down", retry_after=3600)
        assert _compute_delay(0, RetryConfig(), err) == 60.0


# ─── retry_with_backoff ───────────────────────────────────────


class TestRetryWithBackoff:
    async def test_success_first_try(self):
        fn = AsyncMock(return_value="ok")
        assert await retry_with_backoff(fn) == "ok"
        assert fn.call_count == 1

    async def test_retries_then_succeeds(self):
        fn = AsyncMock(side_effect=[_server_error(), _server_error(), "ok"])
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as sleep:
            result = await retry_with_backoff(fn, RetryConfig(max_retries=3))
        assert result == "ok"
        assert fn.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    async def test_exhausted_raises_last_error(self):
        fn = AsyncMock(side_effect=_server_error())
        with (
            patch.object(asyncio, "sleep", new_callable=AsyncMock),
            pytest.raises(BacklogServerError),
        ):
            await retry_with_backoff(fn, RetryConfig(max_retries=2))
        assert fn.call_count == 3

    async def test_non_retryable_raises_immediately(self):
        fn = AsyncMock(side_effect=BacklogAuthError("11", "bad key", status_code=401))
        with pytest.raises(BacklogAuthError):
            await retry_with_backoff(fn, RetryConfig(max_retries=3))
        assert fn.call_count == 1

    async def test_zero_retries(self):
        fn = AsyncMock(side_effect=_server_error())
        with pytest.raises(BacklogServerError):
            await retry_with_backoff(fn, RetryConfig(max_retries=0))
        assert fn.call_count == 1

    async def test_on_retry_callback(self):
        err = BacklogRateLimitError("HTTP_429", "slow down", retry_after=5)
        fn = AsyncMock(side_effect=[err, "ok"])
        callback = MagicMock()
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as sleep:
            await retry_with_backoff(fn, RetryConfig(), on_retry=callback)
        callback.assert_called_once_with(1, 5, err)
        sleep.assert_awaited_once_with(5)

    async def test_loop_follows_is_retryable(self):
        fn = AsyncMock(side_effect=[ValueError("flaky"), "ok"])
        with (
            patch("backlog_readonly_mcp.core.retry.is_retryable", return_value=True) as pred,
            patch.object(asyncio, "sleep", new_callable=AsyncMock),
        ):
            assert await retry_with_backoff(fn, RetryConfig(max_retries=1)) == "ok"
        pred.assert_called_once()
        assert fn.call_count == 2

    async def test_plain_exception_is_not_retried(self):
        fn = AsyncMock(side_effect=ValueError("bug"))
        with pytest.raises(ValueError, match="bug"):
            await retry_with_backoff(fn, RetryConfig(max_retries=3))
        assert fn.call_count == 1
