"""Tests for ConcurrencyLimiter."""

import asyncio

import pytest

from playshelf.common.concurrency_limiter import ConcurrencyLimiter


class TestConcurrencyLimiter:

    def test_invalid_max_concurrent(self):
        with pytest.raises(ValueError, match="at least 1"):
            ConcurrencyLimiter(max_concurrent=0)

    @pytest.mark.asyncio
    async def test_context_manager_tracks_active(self):
        limiter = ConcurrencyLimiter(max_concurrent=2)

        async with limiter:
            assert limiter.get_active_count() == 1

        assert limiter.get_active_count() == 0

    @pytest.mark.asyncio
    async def test_bounds_concurrency(self):
        limiter = ConcurrencyLimiter(max_concurrent=3)
        peak = 0

        async def work():
            nonlocal peak
            async with limiter:
                peak = max(peak, limiter.get_active_count())
                await asyncio.sleep(0.01)

        await asyncio.gather(*(work() for _ in range(10)))

        assert peak == 3
        assert limiter.get_active_count() == 0

    @pytest.mark.asyncio
    async def test_slot_released_on_error(self):
        limiter = ConcurrencyLimiter(max_concurrent=1)

        with pytest.raises(RuntimeError):
            async with limiter:
                raise RuntimeError("boom")

        async with limiter:
            assert limiter.get_active_count() == 1
