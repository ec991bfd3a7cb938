"""
Rate limiting for outbound provider requests.

Guarantees a minimum spacing between consecutive calls across the process.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional
import logging

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum-interval request gate.

    Features:
    - One shared "next free slot" timestamp per limiter
    - Async-safe: the lock only guards the slot reservation
    - Callers sleep outside the lock, so waiting never blocks the reservation
      of later slots
    """

    def __init__(
        self,
        min_interval: float = 1.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()
        self._total_requests = 0
        self._total_wait = 0.0

    async def _reserve(self) -> float:
        """Claim the next slot and return how long the caller must wait for it."""
        async with self._lock:
            now = self._clock()
            if self._last_request is None:
                slot = now
            else:
                slot = max(now, self._last_request + self.min_interval)
            self._last_request = slot
            self._total_requests += 1
            return slot - now

    async def acquire(self) -> float:
        """
        Wait until a request may be sent.

        Returns:
            Seconds spent waiting
        """
        wait_seconds = await self._reserve()
        if wait_seconds > 0:
            logger.debug(f"Rate limiting: waiting {wait_seconds:.2f}s before next request")
            self._total_wait += wait_seconds
            await self._sleep(wait_seconds)
        return wait_seconds

    def get_status(self) -> dict:
        """Get current rate limit status."""
        next_free_in = 0.0
        if self._last_request is not None:
            next_free_in = max(0.0, self._last_request + self.min_interval - self._clock())

        return {
            "min_interval_seconds": self.min_interval,
            "next_slot_in_seconds": round(next_free_in, 3),
            "total_requests": self._total_requests,
            "total_wait_seconds": round(self._total_wait, 3),
        }
