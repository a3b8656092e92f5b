# src/site_auditor/managers/rate_limit_manager.py
import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from site_auditor.model import RateLimitConfig

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding-window admission control: at most `max_requests` admissions in
    any trailing `window_ms` milliseconds.

    Waiters are admitted in the order they suspended (asyncio.Lock is FIFO).
    The timestamp history is private to the limiter.
    """

    def __init__(
            self,
            config: Optional[RateLimitConfig] = None,
            clock: Callable[[], float] = time.monotonic,
            sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self._lock: Optional[asyncio.Lock] = None

    def configure(self, config: RateLimitConfig) -> None:
        """Applies a new policy to future admissions. History is kept."""
        logger.debug(
            "Rate limit reconfigured: %d requests / %d ms", config.max_requests, config.window_ms
        )
        self.config = config

    def _evict_expired(self, now: float) -> None:
        window = self.config.window_ms / 1000.0
        while self._timestamps and now - self._timestamps[0] >= window:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        """
        Suspends until a slot is free under the current policy, then records
        the admission.
        """
        # Created lazily so the limiter binds to the loop that first uses it
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            while True:
                now = self._clock()
                self._evict_expired(now)

                if len(self._timestamps) < self.config.max_requests:
                    self._timestamps.append(now)
                    return

                oldest = self._timestamps[0]
                wait = self.config.window_ms / 1000.0 - (now - oldest)
                logger.debug("Rate limit reached, waiting %.3fs", wait)
                await self._sleep(max(wait, 0.0))
