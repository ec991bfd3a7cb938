"""
Tests for the minimum-interval rate gate.
"""

import asyncio
import time

import pytest

from informer.services.news.rate_limiter import RateLimiter


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestRateLimiter:
    def test_first_request_not_delayed(self):
        clock = FakeClock()
        limiter = RateLimiter(1.2, clock=clock, sleep=clock.sleep)

        waited = asyncio.run(limiter.acquire())

        assert waited == 0
        assert clock.sleeps == []

    def test_back_to_back_requests_spaced(self):
        """N sequential acquires span at least (N-1) intervals."""
        clock = FakeClock()
        limiter = RateLimiter(1.2, clock=clock, sleep=clock.sleep)
        start = clock.now

        async def scenario():
            for _ in range(5):
                await limiter.acquire()

        asyncio.run(scenario())

        assert clock.now - start == pytest.approx(4 * 1.2)

    def test_concurrent_callers_get_distinct_slots(self):
        clock = FakeClock()
        sleeps = []

        async def frozen_sleep(seconds):
            # Yield without advancing the clock so every reservation sees the same "now"
            sleeps.append(seconds)
            await asyncio.sleep(0)

        limiter = RateLimiter(1.2, clock=clock, sleep=frozen_sleep)

        async def scenario():
            return await asyncio.gather(*(limiter.acquire() for _ in range(3)))

        waits = asyncio.run(scenario())

        assert sorted(waits) == pytest.approx([0.0, 1.2, 2.4])

    def test_no_wait_after_idle_period(self):
        clock = FakeClock()
        limiter = RateLimiter(1.2, clock=clock, sleep=clock.sleep)

        async def scenario():
            await limiter.acquire()
            clock.now += 5
            return await limiter.acquire()

        assert asyncio.run(scenario()) == 0

    def test_real_time_spacing(self):
        limiter = RateLimiter(0.05)

        async def scenario():
            for _ in range(4):
                await limiter.acquire()

        start = time.monotonic()
        asyncio.run(scenario())

        assert time.monotonic() - start >= 3 * 0.05 - 0.005

    def test_status(self):
        clock = FakeClock()
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

        async def scenario():
            await limiter.acquire()
            await limiter.acquire()

        asyncio.run(scenario())
        status = limiter.get_status()

        assert status["min_interval_seconds"] == 2.0
        assert status["total_requests"] == 2
        assert status["total_wait_seconds"] == 2.0
        assert status["next_slot_in_seconds"] == 2.0

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(-1)
