"""
Promise-style implementation: chained futures and the all / race /
all-settled combinators.
"""

import time
from typing import List

from ..errors import FetchError
from ..fetcher import timed
from ..models import AsyncMethod, DashboardData, NewsListing, WeatherSnapshot
from ..patterns import gather_all, race, resolve_after, settle_all, then
from ..result import Outcome
from .base import Demo


class PromiseDemo(Demo):
    method = AsyncMethod.PROMISE

    async def fetch_weather(self) -> WeatherSnapshot:
        self.reporter.info("Fetching weather data...")
        url = self.endpoints.weather_url

        def transform(payload) -> WeatherSnapshot:
            weather = WeatherSnapshot.from_forecast(payload, self.endpoints.location, url=url)
            self.reporter.success("Weather data transformed successfully")
            return weather

        try:
            return await then(self.fetcher.fetch_json(url), transform)
        except FetchError as e:
            self.reporter.error(f"Weather fetch failed: {e}")
            raise

    async def fetch_news(self) -> NewsListing:
        self.reporter.info("Fetching news data...")
        url = self.endpoints.news_url

        def check(payload) -> NewsListing:
            news = NewsListing.from_payload(payload, url=url)
            self.reporter.success("News data fetched successfully")
            return news

        try:
            return await then(self.fetcher.fetch_json(url), check)
        except FetchError as e:
            self.reporter.error(f"News fetch failed: {e}")
            raise

    async def demonstrate_chaining(self) -> DashboardData:
        self.reporter.section("Demonstrating Promise Chaining (Sequential)")

        def after_weather(weather: WeatherSnapshot):
            self.reporter.success("Weather data received")
            self.reporter.info("Processing weather data...")
            return resolve_after(self.timings.processing_delay, weather)

        def fetch_news_with(weather: WeatherSnapshot):
            self.reporter.info("Weather processing complete, fetching news...")
            return then(self.fetch_news(), lambda news: DashboardData(weather, news))

        chain = then(then(self.fetch_weather(), after_weather), fetch_news_with)

        try:
            data, duration = await timed(chain)
        except FetchError as e:
            self.reporter.error(f"Promise chaining failed: {e}")
            raise

        self.reporter.timing("Promise chaining execution time", duration)
        self.reporter.success("Sequential Promise chain completed")
        return data

    async def demonstrate_all(self) -> DashboardData:
        self.reporter.section("Demonstrating Promise.all() (Parallel)")

        try:
            (weather, news), duration = await timed(gather_all(self.fetch_weather(), self.fetch_news()))
        except FetchError as e:
            self.reporter.error(f"Promise.all() failed: {e}")
            raise FetchError(e.kind, f"Parallel execution failed: {e.message}", url=e.url,
                             status_code=e.status_code, elapsed_ms=e.elapsed_ms, attempts=e.attempts) from e

        self.reporter.timing("Promise.all() execution time", duration)
        self.reporter.success("All promises resolved in parallel!")
        return DashboardData(weather, news)

    async def demonstrate_race(self) -> str:
        self.reporter.section("Demonstrating Promise.race() (Fastest Response)")
        start_time = time.monotonic()

        def finished(label: str, result: str):
            def report(_):
                self.reporter.timing(label, (time.monotonic() - start_time) * 1000)
                return result
            return report

        fast = then(resolve_after(self.timings.race_fast_delay, None),
                    finished("Fast promise", "Fast response completed"))
        medium = then(self.fetcher.fetch_json(self.endpoints.news_url),
                      finished("News API promise", "News API response completed"))
        slow = then(resolve_after(self.timings.race_slow_delay, None),
                    finished("Slow promise", "Slow response completed"))

        try:
            winner, duration = await timed(race(fast, medium, slow))
        except FetchError as e:
            self.reporter.error(f"Promise.race() failed: {e}")
            raise

        self.reporter.timing("Promise.race() winner time", duration)
        self.reporter.success(f"Promise.race() winner: {winner}")
        return winner

    async def demonstrate_all_settled(self) -> List[Outcome]:
        self.reporter.section("Demonstrating Promise.allSettled() (Mixed Results)")

        outcomes, duration = await timed(settle_all(
            self.fetch_weather(),
            self.fetcher.fetch_json(self.endpoints.invalid_url),
            self.fetch_news(),
        ))
        self.reporter.timing("Promise.allSettled() execution time", duration)

        for index, outcome in enumerate(outcomes, start=1):
            if outcome.ok:
                self.reporter.success(f"Promise {index}: Fulfilled")
            else:
                self.reporter.error(f"Promise {index}: Rejected - {outcome.error}")

        fulfilled = sum(1 for o in outcomes if o.ok)
        self.reporter.info(f"{fulfilled} out of {len(outcomes)} promises succeeded")
        return outcomes

    async def run(self):
        self.reporter.header(self.method.value)
        self.reporter.info("Starting Promise-based weather and news dashboard...")

        try:
            self.reporter.dashboard(await self.demonstrate_chaining())
            self.reporter.separator()

            self.reporter.dashboard(await self.demonstrate_all())
            self.reporter.separator()

            await self.demonstrate_race()
            self.reporter.separator()

            await self.demonstrate_all_settled()
        except FetchError as e:
            self.reporter.error(f"Promise dashboard failed: {e}")
        finally:
            self.reporter.footer(self.method.value)
