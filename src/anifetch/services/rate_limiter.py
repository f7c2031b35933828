"""Request spacing rate limiter.

This module provides the process-wide limiter every outbound AniDB
request passes through. It enforces a hard minimum gap between two
grants, paces bursts towards an average interval and forgets the burst
after an idle period.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from anifetch.shared.constants import RateLimitDefaults
from anifetch.shared.errors import ApplicationError, ErrorCode, ErrorContext
from anifetch.shared.logging import log_operation_success

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RequestRateLimiter:
    """Async request gate shared by all callers.

    ``acquire()`` never fails, it only delays. Grants are serialized
    through one ``asyncio.Lock``, so no two grants are ever closer than
    ``min_interval`` regardless of how many tasks wait.

    Within a burst the n-th grant is also held back until
    ``burst_start + n * average_interval``. When no request was granted
    for longer than ``idle_reset`` the burst is forgotten and the next
    caller only waits out what is left of ``min_interval``.

    Args:
        min_interval: Minimum seconds between two grants (default: 3)
        average_interval: Target average seconds between grants (default: 5)
        idle_reset: Idle seconds after which the limiter resets (default: 300)
        clock: Monotonic time source, injectable for tests
        sleep: Coroutine used to wait, injectable for tests
    """

    def __init__(
        self,
        min_interval: float = RateLimitDefaults.MIN_INTERVAL,
        average_interval: float = RateLimitDefaults.AVERAGE_INTERVAL,
        idle_reset: float = RateLimitDefaults.IDLE_RESET,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        context = ErrorContext(
            operation="rate_limiter_init",
            additional_data={
                "min_interval": min_interval,
                "average_interval": average_interval,
                "idle_reset": idle_reset,
            },
        )
        for name, value in (
            ("min_interval", min_interval),
            ("average_interval", average_interval),
            ("idle_reset", idle_reset),
        ):
            if value < 0:
                raise ApplicationError(
                    code=ErrorCode.VALIDATION_ERROR,
                    message=f"{name} must not be negative, got: {value}",
                    context=context,
                )

        self.min_interval = float(min_interval)
        self.average_interval = float(average_interval)
        self.idle_reset = float(idle_reset)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

        self._last_grant: float | None = None
        self._burst_start = 0.0
        self._burst_count = 0

    @property
    def last_grant(self) -> float | None:
        """Clock value of the most recent grant, None before the first."""
        return self._last_grant

    def _next_slot(self, now: float) -> float:
        if self._last_grant is None:
            self._burst_start = now
            self._burst_count = 0
            return now

        if now - self._last_grant > self.idle_reset:
            # min_interval still applies when idle_reset is shorter
            slot = max(now, self._last_grant + self.min_interval)
            self._burst_start = slot
            self._burst_count = 0
            return slot

        return max(
            self._last_grant + self.min_interval,
            self._burst_start + self.average_interval * self._burst_count,
        )

    async def acquire(self) -> float:
        """Wait until the caller may send a request.

        Returns:
            The clock value at which the request was granted.
        """
        async with self._lock:
            start = self._clock()
            earliest = self._next_slot(start)

            now = start
            while now < earliest:
                await self._sleep(earliest - now)
                now = self._clock()

            self._last_grant = now
            self._burst_count += 1

        waited = now - start
        if waited > 0:
            log_operation_success(
                logger=logger,
                operation="rate_limiter_acquire",
                duration_ms=waited * 1000,
                result_info={"burst_count": self._burst_count},
            )
        return now

    def reset(self) -> None:
        """Forget previous grants; the next caller proceeds at once."""
        self._last_grant = None
        self._burst_start = 0.0
        self._burst_count = 0
