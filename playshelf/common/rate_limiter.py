"""Fixed-interval request pacing for async operations."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from .config import RateLimitConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class IntervalRateLimiter:
    """
    Single-interval pacer for outbound provider calls.

    Every dispatch starts at least ``min_interval`` seconds after the start
    of the previous one. Unlike a token bucket there is no burst allowance:
    an idle limiter does not bank capacity. Waiters are served in FIFO
    order because ``asyncio.Lock`` wakes waiters in the order they queued.

    Only the start of a task is paced. Once a task has been dispatched the
    lock is released, so a slow or failing task never holds up the ones
    queued behind it, and its exception is raised to its own caller only.

    Example:
        >>> limiter = IntervalRateLimiter(min_interval=0.25)
        >>> games = await limiter.schedule(lambda: client.post("/games", content=body))

    Attributes:
        min_interval: Seconds between the start of consecutive dispatches
    """

    def __init__(self, min_interval: float = 0.25):
        """
        Initialize the limiter.

        Args:
            min_interval: Minimum seconds between dispatch starts

        Raises:
            ValueError: If min_interval is negative
        """
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")

        self.min_interval = min_interval
        self._last_dispatch: Optional[float] = None
        self._lock = asyncio.Lock()

        logger.debug("rate_limiter_initialized", min_interval=self.min_interval)

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> "IntervalRateLimiter":
        """Create a limiter from a RateLimitConfig."""
        return cls(min_interval=config.min_interval_seconds)

    async def acquire(self) -> None:
        """
        Wait for this caller's dispatch slot.

        Returns once the caller may start its request. The slot is recorded
        as taken at the moment this method returns.
        """
        async with self._lock:
            if self._last_dispatch is not None:
                wait_time = self._last_dispatch + self.min_interval - time.monotonic()
                if wait_time > 0:
                    logger.debug("rate_limit_waiting", wait_seconds=round(wait_time, 3))
                    await asyncio.sleep(wait_time)
            self._last_dispatch = time.monotonic()

    async def schedule(self, task: Callable[[], Awaitable[T]]) -> T:
        """
        Run an async unit of work once its dispatch slot comes up.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Whatever the task returns

        Raises:
            Exception: Whatever the task raises, to this caller only
        """
        await self.acquire()
        return await task()

    async def __aenter__(self) -> "IntervalRateLimiter":
        """Context manager entry - wait for a dispatch slot."""
        await self.acquire()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Context manager exit."""
        pass
