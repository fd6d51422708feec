"""
Retry policy for outbound calls.

Only TransientUpstreamError is retried. Terminal faults (NotFoundError, any
other UpstreamFailureError) surface on the first attempt.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pokedex.config import Settings
from pokedex.exceptions import TransientUpstreamError, UpstreamFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    backoff_seconds: float = 0.2
    backoff_max_seconds: float = 2.0
    timeout_seconds: float | None = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            attempts=settings.retry_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
            backoff_max_seconds=settings.retry_backoff_max_seconds,
            timeout_seconds=settings.upstream_timeout_seconds,
        )


async def call_with_retry(
    policy: RetryPolicy,
    operation: str,
    func: Callable[..., Awaitable[T]],
    *args,
    **kwargs,
) -> T:
    """Run ``func`` under ``policy``; the whole call, retries included, is time-bounded."""
    retrying = AsyncRetrying(
        retry=retry_if_exception_type(TransientUpstreamError),
        stop=stop_after_attempt(max(policy.attempts, 1)),
        wait=wait_exponential(multiplier=policy.backoff_seconds, max=policy.backoff_max_seconds),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    async def attempt() -> T:
        return await retrying(func, *args, **kwargs)

    if policy.timeout_seconds is None:
        return await attempt()
    try:
        return await asyncio.wait_for(attempt(), timeout=policy.timeout_seconds)
    except asyncio.TimeoutError:
        logger.error(f"{operation} exceeded {policy.timeout_seconds}s including retries")
        raise UpstreamFailureError(
            f"{operation} timed out after {policy.timeout_seconds}s"
        ) from None
