"""Tests for orchestration patterns."""

import asyncio
import time

import pytest

from dashboard.errors import ErrorKind, FetchError
from dashboard.patterns import gather_all, race, resolve_after, settle_all, then, with_fallback

from conftest import INVALID_HOST, NEWS_HOST, WEATHER_HOST


async def fail_after(seconds: float, message: str = "boom"):
    await asyncio.sleep(seconds)
    raise FetchError(ErrorKind.TRANSPORT, message)


class CancelProbe:
    """Sleeps, recording whether it was cancelled."""

    def __init__(self):
        self.cancelled = False
        self.finished = False

    async def run(self, seconds: float, value=None):
        try:
            await asyncio.sleep(seconds)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        return value


class TestGatherAll:

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        """Two 0.2s operations take about 0.2s, not 0.4s."""
        start = time.monotonic()
        results = await gather_all(resolve_after(0.2, "a"), resolve_after(0.2, "b"))
        elapsed = time.monotonic() - start

        assert results == ["a", "b"]
        assert elapsed < 0.35

    @pytest.mark.asyncio
    async def test_keeps_input_order(self):
        results = await gather_all(resolve_after(0.1, "slow"), resolve_after(0.01, "fast"))

        assert results == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_fails_fast_and_cancels_the_rest(self):
        probe = CancelProbe()

        start = time.monotonic()
        with pytest.raises(FetchError, match="boom"):
            await gather_all(probe.run(2.0), fail_after(0.05))

        assert time.monotonic() - start < 1.0
        assert probe.cancelled is True

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await gather_all() == []


class TestRace:

    @pytest.mark.asyncio
    async def test_first_finisher_wins(self):
        result = await race(resolve_after(0.3, "slow"), resolve_after(0.01, "fast"))

        assert result == "fast"

    @pytest.mark.asyncio
    async def test_losers_are_cancelled(self):
        slow = CancelProbe()
        slower = CancelProbe()

        result = await race(slow.run(1.0, "slow"), resolve_after(0.01, "fast"), slower.run(2.0, "slower"))

        assert result == "fast"
        assert slow.cancelled and slower.cancelled
        assert not slow.finished and not slower.finished

    @pytest.mark.asyncio
    async def test_first_failure_wins_too(self):
        with pytest.raises(FetchError):
            await race(fail_after(0.01), resolve_after(0.5, "late"))

    @pytest.mark.asyncio
    async def test_needs_an_awaitable(self):
        with pytest.raises(ValueError):
            await race()


class TestSettleAll:

    @pytest.mark.asyncio
    async def test_reports_every_outcome_in_order(self):
        outcomes = await settle_all(
            resolve_after(0.05, "first"),
            fail_after(0.01),
            resolve_after(0.02, "third"),
        )

        assert [o.status for o in outcomes] == ["fulfilled", "rejected", "fulfilled"]
        assert outcomes[0].value == "first"
        assert outcomes[2].value == "third"
        assert isinstance(outcomes[1].error, FetchError)

    @pytest.mark.asyncio
    async def test_with_real_fetches(self, fetcher, endpoints, upstream):
        outcomes = await settle_all(
            fetcher.fetch_json(endpoints.weather_url),
            fetcher.fetch_json(endpoints.invalid_url),
            fetcher.fetch_json(endpoints.news_url),
        )

        assert [o.ok for o in outcomes] == [True, False, True]
        assert outcomes[1].error.kind is ErrorKind.TRANSPORT
        assert upstream.calls[INVALID_HOST] == 3
        assert upstream.calls[WEATHER_HOST] == 1
        assert upstream.calls[NEWS_HOST] == 1


class TestWithFallback:

    @pytest.mark.asyncio
    async def test_substitutes_on_fetch_error(self):
        assert await with_fallback(fail_after(0), "fallback", label="news") == "fallback"

    @pytest.mark.asyncio
    async def test_passes_value_through(self):
        assert await with_fallback(resolve_after(0, "live"), "fallback") == "live"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def broken():
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await with_fallback(broken(), "fallback")


class TestThen:

    @pytest.mark.asyncio
    async def test_sync_continuation(self):
        assert await then(resolve_after(0, 2), lambda x: x * 10) == 20

    @pytest.mark.asyncio
    async def test_async_continuation(self):
        assert await then(resolve_after(0, 2), lambda x: resolve_after(0, x + 1)) == 3

    @pytest.mark.asyncio
    async def test_error_skips_continuation(self):
        called = []

        with pytest.raises(FetchError):
            await then(fail_after(0), called.append)

        assert called == []
