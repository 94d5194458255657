"""Tests for balance refresh throttling."""

import asyncio

import pytest

from moltenflow.exceptions import InfrastructureError
from moltenflow.services.throttle import REFRESH_THROTTLE_MS, RefreshThrottler


class TestShouldRefresh:
    """Tests for the throttle window."""

    def test_window(self):
        """True, then False inside 3000 ms, then True at 3000 ms."""
        throttler = RefreshThrottler()

        assert throttler.should_refresh(now=0) is True
        throttler.mark_refreshed(now=0)
        assert throttler.should_refresh(now=1) is False
        assert throttler.should_refresh(now=2999) is False
        assert throttler.should_refresh(now=REFRESH_THROTTLE_MS) is True

    def test_uses_clock(self):
        now = [10_000.0]
        throttler = RefreshThrottler(interval_ms=500, clock=lambda: now[0])

        throttler.mark_refreshed()
        assert throttler.should_refresh() is False
        now[0] += 500
        assert throttler.should_refresh() is True

    def test_instances_are_independent(self):
        a = RefreshThrottler()
        b = RefreshThrottler()
        a.mark_refreshed(now=0)
        assert b.should_refresh(now=1) is True


class TestRun:
    """Tests for RefreshThrottler.run."""

    @pytest.mark.asyncio
    async def test_marks_after_completion(self):
        throttler = RefreshThrottler()
        calls = []

        async def refresh():
            assert throttler.last_refresh is None
            calls.append(1)

        assert await throttler.run(refresh, now=0) is True
        assert throttler.last_refresh == 0
        assert await throttler.run(refresh, now=100) is False
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_failure_leaves_state_unmarked(self):
        throttler = RefreshThrottler()

        async def refresh():
            raise InfrastructureError("rpc down")

        with pytest.raises(InfrastructureError):
            await throttler.run(refresh, now=0)
        assert throttler.last_refresh is None
        assert throttler.should_refresh(now=1) is True

    @pytest.mark.asyncio
    async def test_concurrent_request_dropped(self):
        throttler = RefreshThrottler()
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_refresh():
            started.set()
            await release.wait()

        first = asyncio.create_task(throttler.run(slow_refresh, now=0))
        await started.wait()

        assert await throttler.run(slow_refresh, now=0) is False
        release.set()
        assert await first is True
