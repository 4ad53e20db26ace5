"""Unit tests for the interval rate limiter."""

import asyncio
import time

import pytest

from playshelf.common.config import RateLimitConfig
from playshelf.common.rate_limiter import IntervalRateLimiter


class TestIntervalRateLimiter:
    """Tests for IntervalRateLimiter class."""

    @pytest.mark.asyncio
    async def test_first_dispatch_is_immediate(self):
        limiter = IntervalRateLimiter(min_interval=0.25)

        start_time = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start_time < 0.1

    @pytest.mark.asyncio
    async def test_dispatch_starts_are_spaced(self):
        """Consecutive starts are at least min_interval apart."""
        limiter = IntervalRateLimiter(min_interval=0.25)
        starts = []

        async def task():
            starts.append(time.monotonic())

        await asyncio.gather(*(limiter.schedule(task) for _ in range(4)))

        assert len(starts) == 4
        for earlier, later in zip(starts, starts[1:]):
            # Small tolerance for timer granularity
            assert later - earlier >= 0.24

    @pytest.mark.asyncio
    async def test_no_burst_after_idle(self):
        """An idle limiter does not bank capacity."""
        limiter = IntervalRateLimiter(min_interval=0.2)
        await limiter.acquire()
        await asyncio.sleep(0.5)

        await limiter.acquire()
        start_wait = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start_wait >= 0.19

    @pytest.mark.asyncio
    async def test_fifo_start_order(self):
        """Tasks start in the order they were scheduled."""
        limiter = IntervalRateLimiter(min_interval=0.05)
        order = []

        def make_task(i):
            async def task():
                order.append(i)
                return i

            return task

        coros = []
        for i in range(6):
            coros.append(asyncio.create_task(limiter.schedule(make_task(i))))
            await asyncio.sleep(0)

        results = await asyncio.gather(*coros)

        assert order == list(range(6))
        assert results == list(range(6))

    @pytest.mark.asyncio
    async def test_task_exception_goes_to_its_caller_only(self):
        limiter = IntervalRateLimiter(min_interval=0.01)

        async def failing():
            raise RuntimeError("boom")

        async def succeeding():
            return "ok"

        results = await asyncio.gather(
            limiter.schedule(failing),
            limiter.schedule(succeeding),
            return_exceptions=True,
        )

        assert isinstance(results[0], RuntimeError)
        assert results[1] == "ok"

    @pytest.mark.asyncio
    async def test_slow_task_does_not_block_next_dispatch(self):
        """Only dispatch starts are paced, not task completion."""
        limiter = IntervalRateLimiter(min_interval=0.05)
        release = asyncio.Event()
        started = []

        async def slow():
            started.append("slow")
            await release.wait()

        async def fast():
            started.append("fast")

        slow_task = asyncio.create_task(limiter.schedule(slow))
        await asyncio.sleep(0)
        await asyncio.wait_for(limiter.schedule(fast), timeout=1.0)

        assert started == ["slow", "fast"]
        release.set()
        await slow_task

    @pytest.mark.asyncio
    async def test_context_manager(self):
        limiter = IntervalRateLimiter(min_interval=0.1)

        start_time = time.monotonic()
        async with limiter:
            pass
        async with limiter:
            pass

        assert time.monotonic() - start_time >= 0.09

    def test_from_config(self):
        limiter = IntervalRateLimiter.from_config(RateLimitConfig(min_interval_seconds=0.5))
        assert limiter.min_interval == 0.5

    def test_default_interval_is_four_per_second(self):
        assert IntervalRateLimiter().min_interval == 0.25

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            IntervalRateLimiter(min_interval=-1)
