# tests/core/test_rate_limiter.py
import asyncio

from site_auditor.managers.rate_limit_manager import RateLimiter
from site_auditor.model import RateLimitConfig


class FakeClock:
    """Manual clock; sleeping advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay


def _admission_times(limiter, clock, count):
    async def main():
        times = []
        for _ in range(count):
            await limiter.acquire()
            times.append(clock.now)
        return times

    return asyncio.run(main())


def test_admits_up_to_max_requests_without_waiting():
    """The first N calls inside one window are admitted immediately."""
    clock = FakeClock()
    limiter = RateLimiter(RateLimitConfig(max_requests=3, window_ms=1000), clock=clock, sleep=clock.sleep)

    times = _admission_times(limiter, clock, 3)

    assert times == [0.0, 0.0, 0.0]
    assert clock.sleeps == []


def test_back_to_back_calls_are_spaced_by_the_window():
    """Issuing 2N calls puts at least W between the N-th and (N+1)-th admission."""
    for n, window_ms in [(1, 100), (2, 500), (5, 1000)]:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitConfig(max_requests=n, window_ms=window_ms), clock=clock, sleep=clock.sleep)

        times = _admission_times(limiter, clock, 2 * n)

        assert times[n] - times[n - 1] >= window_ms / 1000
        # Never more than N admissions inside any trailing window
        for i in range(n, 2 * n):
            assert times[i] - times[i - n] >= window_ms / 1000


def test_wait_is_computed_from_oldest_timestamp():
    clock = FakeClock()
    limiter = RateLimiter(RateLimitConfig(max_requests=2, window_ms=1000), clock=clock, sleep=clock.sleep)

    async def main():
        await limiter.acquire()
        clock.now = 0.4
        await limiter.acquire()
        clock.now = 0.5
        await limiter.acquire()

    asyncio.run(main())

    assert clock.sleeps == [0.5]
    assert clock.now == 1.0


def test_reconfigure_keeps_history():
    """A new policy applies to future calls; already recorded admissions still count."""
    clock = FakeClock()
    limiter = RateLimiter(RateLimitConfig(max_requests=5, window_ms=1000), clock=clock, sleep=clock.sleep)

    _admission_times(limiter, clock, 2)
    limiter.configure(RateLimitConfig(max_requests=2, window_ms=1000))
    times = _admission_times(limiter, clock, 1)

    assert times == [1.0]
    assert clock.sleeps == [1.0]


def test_concurrent_waiters_are_all_admitted():
    clock = FakeClock()
    limiter = RateLimiter(RateLimitConfig(max_requests=2, window_ms=1000), clock=clock, sleep=clock.sleep)
    order = []

    async def worker(i):
        await limiter.acquire()
        order.append(i)

    async def main():
        await asyncio.gather(*(worker(i) for i in range(5)))

    asyncio.run(main())

    assert order == [0, 1, 2, 3, 4]
    assert clock.now >= 2.0
