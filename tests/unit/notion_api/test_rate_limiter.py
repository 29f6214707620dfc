"""Unit tests for notion_api.rate_limiter module."""

import asyncio
import time

import pytest

from src.notion_api.rate_limiter import RateLimiter


def make_tracked_work(key, index, state, delay=0.01):
    """Build a unit of work recording overlap per key and globally."""
    async def work():
        if state['active'].get(key):
            raise AssertionError(f"Two units for {key} overlapped")
        state['active'][key] = True
        state['max_active'] = max(state['max_active'], sum(state['active'].values()))
        state['starts'].append((key, index))
        await asyncio.sleep(delay)
        state['active'][key] = False
        return index
    return work


class TestRateLimiterInit:
    """Test cases for RateLimiter validation."""

    def test_rejects_zero_concurrency(self):
        """RateLimiter should reject max_concurrent below 1."""
        with pytest.raises(ValueError, match="max_concurrent"):
            RateLimiter(max_concurrent=0)

    def test_rejects_zero_window_cap(self):
        """RateLimiter should reject a window cap below 1."""
        with pytest.raises(ValueError, match="max_starts_per_window"):
            RateLimiter(max_starts_per_window=0)

    def test_rejects_non_positive_window(self):
        """RateLimiter should reject a non-positive window length."""
        with pytest.raises(ValueError, match="window_ms"):
            RateLimiter(window_ms=0)


class TestRateLimiterAdmission:
    """Test cases for per-key ordering and the global caps."""

    @pytest.mark.asyncio
    async def test_same_key_serialized_and_global_cap_respected(self):
        """Keys A,A,B,A,B with a cap of 2 never overlap per key nor exceed the cap."""
        limiter = RateLimiter(max_concurrent=2, max_starts_per_window=None)
        state = {'active': {}, 'max_active': 0, 'starts': []}
        submissions = [("A", 0), ("A", 1), ("B", 2), ("A", 3), ("B", 4)]

        results = await asyncio.gather(*(
            limiter.submit(key, make_tracked_work(key, index, state))
            for key, index in submissions
        ))

        assert results == [0, 1, 2, 3, 4]
        assert state['max_active'] <= 2
        assert [i for key, i in state['starts'] if key == "A"] == [0, 1, 3]
        assert [i for key, i in state['starts'] if key == "B"] == [2, 4]
        assert limiter.active_count == 0
        assert limiter.pending_count == 0

    @pytest.mark.asyncio
    async def test_different_keys_run_concurrently(self):
        """Units for different keys should overlap up to the global cap."""
        limiter = RateLimiter(max_concurrent=3, max_starts_per_window=None)
        state = {'active': {}, 'max_active': 0, 'starts': []}

        await asyncio.gather(*(
            limiter.submit(key, make_tracked_work(key, index, state, delay=0.05))
            for index, key in enumerate(["A", "B", "C"])
        ))

        assert state['max_active'] == 3

    @pytest.mark.asyncio
    async def test_window_cap_delays_extra_starts(self):
        """A third start should wait until the first leaves the window."""
        limiter = RateLimiter(max_concurrent=5, max_starts_per_window=2, window_ms=100)
        started = []

        def make_work(key):
            async def work():
                started.append(time.monotonic())
                return key
            return work

        results = await asyncio.gather(*(
            limiter.submit(key, make_work(key)) for key in ["A", "B", "C"]
        ))

        assert results == ["A", "B", "C"]
        assert started[2] - started[0] >= 0.09


class TestRateLimiterErrors:
    """Test cases for error isolation."""

    @pytest.mark.asyncio
    async def test_failure_reaches_only_its_caller(self):
        """A failing unit should not affect other units, even on the same key."""
        limiter = RateLimiter(max_concurrent=2, max_starts_per_window=None)

        async def fail():
            raise ValueError("boom")

        async def succeed():
            return "ok"

        results = await asyncio.gather(
            limiter.submit("A", fail),
            limiter.submit("A", succeed),
            limiter.submit("B", succeed),
            return_exceptions=True,
        )

        assert isinstance(results[0], ValueError)
        assert results[1:] == ["ok", "ok"]
        assert limiter.active_count == 0


class TestThroughput:
    """Test cases for the throughput estimate."""

    @pytest.mark.asyncio
    async def test_counts_starts_in_period(self):
        """throughput should report starts per second over the period."""
        now = [100.0]
        limiter = RateLimiter(max_starts_per_window=None, clock=lambda: now[0])

        async def work():
            return None

        await asyncio.gather(*(limiter.submit(key, work) for key in ["A", "B", "C"]))

        assert limiter.throughput(10.0) == pytest.approx(0.3)
        now[0] = 120.0
        assert limiter.throughput(10.0) == 0.0

    def test_zero_period_returns_zero(self):
        """throughput should return 0 for a non-positive period."""
        assert RateLimiter().throughput(0) == 0.0
