"""Backoff and rate-limit waits for Backlog API calls.

Only answers that say "try again later" are retried: HTTP 5xx
(:class:`BacklogServerError`) and 429 (:class:`BacklogRateLimitError`).
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from backlog_readonly_mcp.core.errors import BacklogRateLimitError, BacklogServerError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """How many times to retry and how long to wait in between."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: bool = False
    # wait used for a 429 that carries no Retry-After / X-RateLimit-Reset
    rate_limit_default: float = 60.0

    def backoff(self, attempt: int) -> float:
        """Exponential delay for a 0-based attempt, capped at max_delay."""
        return min(self.base_delay * 2**attempt, self.max_delay)


def is_retryable(error: Exception) -> bool:
    """True for server errors and rate limits."""
    return isinstance(error, (BacklogServerError, BacklogRateLimitError))


def _compute_delay(attempt: int, config: RetryConfig, error: Exception) -> float:
    """Seconds to sleep before the next attempt."""
    if isinstance(error, BacklogRateLimitError):
        wait = config.rate_limit_default if error.retry_after is None else error.retry_after
        return min(max(wait, 0.0), config.max_delay)
    delay = config.backoff(attempt)
    if config.jitter:
        delay *= random.uniform(0.5, 1.5)
    return delay


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    on_retry: Callable[[int, float, Exception], None] | None = None,
) -> T:
    """Await ``fn()``, retrying transient Backlog failures.

    ``on_retry(attempt, delay, error)`` is called before each sleep, with
    ``attempt`` counting retries from 1. Errors that are not retryable,
    and the last error once ``max_retries`` is used up, propagate as is.
    """
    cfg = config or RetryConfig()
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if not is_retryable(e) or attempt >= cfg.max_retries:
                raise
            delay = _compute_delay(attempt, cfg, e)
            attempt += 1
            if on_retry is not None:
                on_retry(attempt, delay, e)
            await asyncio.sleep(delay)
