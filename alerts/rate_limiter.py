"""
RateLimiter - Keeps outbound Helix probes under the platform rate limit

A single global gate: every probe waits until at least `min_interval`
seconds have passed since the previous probe was released.
Monotonic clock only (wall clock adjustments must not shorten the gap).
"""
import asyncio
import logging
import time
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

# Twitch Helix floor between two requests (seconds)
MIN_REQUEST_INTERVAL = 0.08


class RateLimiter:
    """Minimum-interval gate, callers are released one at a time."""

    def __init__(
        self,
        min_interval: float = MIN_REQUEST_INTERVAL,
        clock: Callable[[], float] = time.monotonic
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._last_acquired: Optional[float] = None
        self._lock = asyncio.Lock()

        LOGGER.debug(f"RateLimiter init: min_interval={min_interval * 1000:.0f}ms")

    @property
    def last_acquired(self) -> Optional[float]:
        return self._last_acquired

    async def acquire(self):
        """Wait for the next free slot, then claim it."""
        async with self._lock:
            if self._last_acquired is not None:
                while True:
                    wait = self._last_acquired + self.min_interval - self._clock()
                    if wait <= 0:
                        break
                    LOGGER.debug(f"⏱️ RateLimiter: waiting {wait * 1000:.1f}ms")
                    await asyncio.sleep(wait)
            self._last_acquired = self._clock()

    def reset(self):
        """Forget the last release (next acquire returns immediately)."""
        self._last_acquired = None
