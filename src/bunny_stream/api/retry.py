"""Retry coordination with exponential backoff and shared rate-limit state.

Bunny.net enforces per-library rate limits. When any caller sees a 429 it
writes a "do not call before T" marker into the shared transient store;
every caller checks that marker before each attempt, so concurrent
requests wait once instead of each discovering the 429 on their own.

The delay between attempts follows:
    delay = base_delay * (exponential_base ** attempt)   # 1s, 2s, 4s, ...

unless the server sent ``Retry-After``, which wins for that attempt.

Example usage:
    coordinator = RetryCoordinator(RetryConfig(), RateLimitState(store))

    result = await coordinator.execute_with_result(
        lambda: executor(request),
        operation_name="GET collections",
    )
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from bunny_stream.api.errors import (
    ApiError,
    ApiResult,
    RateLimitedError,
    RetriesExhaustedError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from bunny_stream.stores.protocol import TransientStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_KEY = "bunny_api_retry_after"


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total attempts per call, first try included (default: 3)
        base_delay: Delay in seconds after the first failure (default: 1.0)
        exponential_base: Growth factor per attempt (default: 2.0)
        max_delay: Cap on computed backoff; server-advised delays are not capped
        jitter_factor: Random jitter as fraction of delay (default: 0.0)
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: float = 60.0
    jitter_factor: float = 0.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base <= 1:
            raise ValueError("exponential_base must be > 1")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError("jitter_factor must be between 0 and 1")


class RateLimitState:
    """Process-visible "next allowed call" marker.

    The marker is a UNIX timestamp stored with a TTL equal to the backoff,
    so it expires by itself once the wait is over. Reads and writes are
    best-effort: two callers racing on a check-then-set cost at most one
    extra 429 round-trip.
    """

    def __init__(
        self,
        store: TransientStore,
        *,
        key: str = RATE_LIMIT_KEY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self.key = key
        self._clock = clock

    async def next_allowed_at(self) -> float | None:
        """Timestamp before which no call should be made, if any."""
        value = await self._store.get(self.key)
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed rate-limit marker: %r", value)
            return None

    async def wait_time(self) -> float:
        """Seconds left until calls are allowed again (0.0 if now)."""
        next_allowed = await self.next_allowed_at()
        if next_allowed is None:
            return 0.0
        return max(0.0, next_allowed - self._clock())

    async def defer(self, delay: float) -> float:
        """Block calls for ``delay`` seconds from now. Returns the new marker."""
        next_allowed = self._clock() + delay
        await self._store.set(self.key, next_allowed, ttl=delay)
        return next_allowed


class RetryCoordinator:
    """Drives repeated attempts of one logical API call.

    Per call: Pending -> Attempting -> {Success, BackoffWait, Exhausted}.
    Errors marked non-retryable end the call at once; anything that is not
    an ApiError is a bug and propagates unchanged.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        rate_limit: RateLimitState | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or RetryConfig()
        self.rate_limit = rate_limit
        self._sleep = sleep

    def calculate_delay(self, attempt: int, retry_after: int | None = None) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Server-advised delay from Retry-After, in seconds

        Returns:
            Delay in seconds
        """
        if retry_after:
            return float(retry_after)

        delay = self.config.base_delay * (self.config.exponential_base**attempt)
        if self.config.jitter_factor:
            delay += delay * self.config.jitter_factor * random.random()  # noqa: S311
        return min(delay, self.config.max_delay)

    async def _wait_for_rate_limit(self, operation_name: str) -> None:
        if self.rate_limit is None:
            return
        wait = await self.rate_limit.wait_time()
        if wait > 0:
            logger.info(
                "%s: upstream rate limit active, waiting %.2fs", operation_name, wait
            )
            await self._sleep(wait)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str = "operation",
        max_attempts: int | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or attempts run out.

        Args:
            operation: Zero-argument async attempt
            operation_name: Name for logging purposes
            max_attempts: Override the configured attempt count

        Returns:
            The value of the first successful attempt

        Raises:
            RetriesExhaustedError: If every attempt failed
            ApiError: A non-retryable error from the operation
        """
        attempts = max_attempts or self.config.max_attempts
        last_error: ApiError | None = None
        total_delay = 0.0

        for attempt in range(attempts):
            logger.debug("%s: attempt %d/%d", operation_name, attempt + 1, attempts)
            await self._wait_for_rate_limit(operation_name)

            try:
                result = await operation()
            except RateLimitedError as e:
                last_error = e
                delay = self.calculate_delay(attempt, e.retry_after)
                if self.rate_limit is not None:
                    await self.rate_limit.defer(delay)
                logger.warning(
                    "%s rate limited (429). Respecting Retry-After: %.0f seconds",
                    operation_name,
                    delay,
                )
            except ApiError as e:
                if not e.retryable:
                    logger.error("%s failed with non-retryable error: %s", operation_name, e)
                    raise
                last_error = e
                delay = self.calculate_delay(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s",
                    operation_name,
                    attempt + 1,
                    attempts,
                    e,
                )
            else:
                if attempt > 0:
                    logger.info(
                        "%s succeeded after %d attempts (total delay: %.2fs)",
                        operation_name,
                        attempt + 1,
                        total_delay,
                    )
                return result

            if attempt + 1 < attempts:
                logger.info("%s: retrying in %.2fs", operation_name, delay)
            total_delay += delay
            await self._sleep(delay)

        logger.error("%s failed after %d attempts", operation_name, attempts)
        raise RetriesExhaustedError(
            "Bunny.net API failed after multiple attempts.",
            attempts=attempts,
            last_error=last_error,
        )

    async def execute_with_result(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str = "operation",
        max_attempts: int | None = None,
    ) -> ApiResult[T]:
        """Like :meth:`execute`, but returns an ApiResult instead of raising."""
        try:
            value = await self.execute(
                operation,
                operation_name=operation_name,
                max_attempts=max_attempts,
            )
        except ApiError as e:
            return ApiResult.err(e)
        return ApiResult.ok(value)
