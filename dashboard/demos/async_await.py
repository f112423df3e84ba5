"""
Async/await implementation: straight-line code for the same fetches, plus
fallbacks, streamed progress and branching on error kind.
"""

import asyncio
import dataclasses
import time
from typing import AsyncIterator, Optional

from ..errors import ErrorKind, FetchError
from ..fetcher import timed
from ..models import AsyncMethod, DashboardData
from ..patterns import gather_all, with_fallback
from ..sources import FALLBACK_NEWS
from .base import Demo

ERROR_EXPLANATIONS = {
    ErrorKind.TRANSPORT: "could not reach the server",
    ErrorKind.STATUS: "server answered with an error status",
    ErrorKind.TIMEOUT: "server did not answer before the deadline",
    ErrorKind.PARSE: "server answered with a malformed body",
}


class AsyncAwaitDemo(Demo):
    method = AsyncMethod.ASYNC_AWAIT

    async def demonstrate_sequential(self) -> DashboardData:
        self.reporter.section("Demonstrating Sequential Await")
        start_time = time.monotonic()

        try:
            self.reporter.info("Fetching weather data...")
            weather = await self.sources.fetch_weather()
            self.reporter.success("Weather data received")

            self.reporter.info("Processing weather data...")
            await asyncio.sleep(self.timings.processing_delay)

            self.reporter.info("Fetching news data...")
            news = await self.sources.fetch_news()
            self.reporter.success("News data received")
        except FetchError as e:
            self.reporter.error(f"Sequential await failed: {e}")
            raise

        self.reporter.timing("Sequential await execution time", (time.monotonic() - start_time) * 1000)
        return DashboardData(weather, news)

    async def demonstrate_concurrent(self) -> DashboardData:
        self.reporter.section("Demonstrating Concurrent Await (gather)")

        try:
            (weather, news), duration = await timed(
                gather_all(self.sources.fetch_weather(), self.sources.fetch_news())
            )
        except FetchError as e:
            self.reporter.error(f"Concurrent await failed: {e}")
            raise

        self.reporter.timing("Concurrent await execution time", duration)
        self.reporter.success("Both requests completed concurrently!")
        return DashboardData(weather, news)

    async def demonstrate_fallback(self) -> DashboardData:
        self.reporter.section("Demonstrating Fallback on Failure")
        fallback_weather = self.sources.fallback_weather()

        weather, news = await gather_all(
            with_fallback(self.sources.fetch_weather(), fallback_weather, label="weather"),
            with_fallback(self.sources.fetch_news(), FALLBACK_NEWS, label="news"),
        )

        if weather is fallback_weather:
            self.reporter.warn("Weather unavailable, using fallback values")
        if news is FALLBACK_NEWS:
            self.reporter.warn("News unavailable, using fallback listing")
        if weather is not fallback_weather and news is not FALLBACK_NEWS:
            self.reporter.success("Live data for both services")
        return DashboardData(weather, news)

    async def narrate(self) -> AsyncIterator[str]:
        """Yield progress milestones as the sequential fetch advances."""
        start_time = time.monotonic()

        yield "Fetching weather data..."
        weather = await self.sources.fetch_weather()
        yield f"Weather for {weather.location.label}: {weather.temperature}°C, {weather.description}"

        yield "Fetching news data..."
        news = await self.sources.fetch_news()
        yield f"Loaded {len(news.articles)} of {news.total} articles"

        yield f"Dashboard ready in {(time.monotonic() - start_time) * 1000:.0f}ms"

    async def demonstrate_streaming(self):
        self.reporter.section("Demonstrating Streamed Progress (async generator)")
        try:
            async for milestone in self.narrate():
                self.reporter.info(milestone)
        except FetchError as e:
            self.reporter.error(f"Streaming stopped: {e}")
            raise

    async def demonstrate_error_handling(self) -> Optional[FetchError]:
        self.reporter.section("Demonstrating Error Handling (try/except)")
        options = dataclasses.replace(self.fetcher.options, max_retries=1)

        try:
            await self.sources.fetch_invalid(options)
        except FetchError as e:
            explanation = ERROR_EXPLANATIONS[e.kind]
            self.reporter.warn(f"Caught {e.kind.value} error after {e.attempts} attempt(s): {explanation}")
            if e.kind is ErrorKind.STATUS:
                self.reporter.data("Status code", e.status_code)
            self.reporter.data("Message", e.message)
            return e

        self.reporter.warn("Invalid endpoint unexpectedly answered")
        return None

    async def run(self):
        self.reporter.header(self.method.value)
        self.reporter.info("Starting async/await weather and news dashboard...")

        try:
            self.reporter.dashboard(await self.demonstrate_sequential())
            self.reporter.separator()

            self.reporter.dashboard(await self.demonstrate_concurrent())
            self.reporter.separator()

            self.reporter.dashboard(await self.demonstrate_fallback())
            self.reporter.separator()

            await self.demonstrate_streaming()
            self.reporter.separator()

            await self.demonstrate_error_handling()
        except FetchError as e:
            self.reporter.error(f"Async/await dashboard failed: {e}")
        finally:
            self.reporter.footer(self.method.value)
