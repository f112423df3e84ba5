"""
Callback-based implementation: nested continuations and a hand-rolled
completion counter for parallel requests.

Nothing here awaits a fetch directly; every step is scheduled with
``fetch_with_callback`` or ``loop.call_later``.
"""

import asyncio
import time
from typing import Callable, Set

from ..errors import FetchError
from ..models import AsyncMethod, DashboardData, NewsListing, WeatherSnapshot
from ..result import Outcome
from .base import Demo

Continuation = Callable[[Outcome], None]


class CallbackDemo(Demo):
    method = AsyncMethod.CALLBACK

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._finished: asyncio.Future = None
        self._pending: Set[asyncio.Task] = set()

    def _guard(self, fn: Callable) -> Callable:
        """Route exceptions raised inside a continuation to the awaiting run()."""
        def wrapper(*args):
            try:
                fn(*args)
            except Exception as e:
                if not self._finished.done():
                    self._finished.set_exception(e)
        return wrapper

    def _later(self, delay: float, fn: Callable[[], None]):
        asyncio.get_running_loop().call_later(delay, self._guard(fn))

    def _track(self, task: asyncio.Task):
        # the loop only holds weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _done(self):
        if not self._finished.done():
            self._finished.set_result(None)

    def fetch_weather(self, callback: Continuation):
        self.reporter.info("Fetching weather data...")
        url = self.endpoints.weather_url

        def on_response(outcome: Outcome):
            if not outcome.ok:
                self.reporter.error(f"Weather API failed: {outcome.error}")
                callback(outcome)
                return

            try:
                weather = WeatherSnapshot.from_forecast(outcome.value, self.endpoints.location, url=url)
            except FetchError as e:
                self.reporter.error(str(e))
                callback(Outcome.failure(e))
                return

            self.reporter.success("Weather data fetched successfully")
            callback(Outcome.success(weather))

        self._track(self.fetcher.fetch_with_callback(url, self._guard(on_response)))

    def fetch_news(self, callback: Continuation):
        self.reporter.info("Fetching news data...")
        url = self.endpoints.news_url

        def on_response(outcome: Outcome):
            if not outcome.ok:
                self.reporter.error(f"News API failed: {outcome.error}")
                callback(outcome)
                return

            try:
                news = NewsListing.from_payload(outcome.value, url=url)
            except FetchError as e:
                self.reporter.error("Invalid news data structure received")
                callback(Outcome.failure(e))
                return

            self.reporter.success("News data fetched successfully")
            callback(Outcome.success(news))

        self._track(self.fetcher.fetch_with_callback(url, self._guard(on_response)))

    def demonstrate_callback_hell(self):
        self.reporter.section("Demonstrating Callback Hell (Sequential Operations)")
        start_time = time.monotonic()

        # Level 1: fetch weather
        def on_weather(weather: Outcome):
            if not weather.ok:
                self.reporter.error(f"Weather fetch failed: {weather.error}")
                self._done()
                return

            self.reporter.success("Weather data received")

            # Level 2: process weather, then fetch news
            def process_weather():
                self.reporter.info("Processing weather data...")

                # Level 3: fetch news after processing weather
                def on_news(news: Outcome):
                    if not news.ok:
                        self.reporter.error(f"News fetch failed: {news.error}")
                        self._done()
                        return

                    self.reporter.success("News data received")

                    # Level 4: process both data sets
                    def process_combined():
                        self.reporter.info("Processing combined data...")

                        # Level 5: final processing and display
                        def display():
                            total_ms = (time.monotonic() - start_time) * 1000
                            self.reporter.timing("Total callback hell execution time", total_ms)
                            self.reporter.dashboard(DashboardData(weather.value, news.value))
                            self.demonstrate_parallel_callbacks()

                        self._later(self.timings.display_delay, display)

                    self._later(self.timings.combine_delay, process_combined)

                self.fetch_news(on_news)

            self._later(self.timings.processing_delay, process_weather)

        self.fetch_weather(on_weather)

    def demonstrate_parallel_callbacks(self):
        self.reporter.section("Demonstrating Parallel Callbacks")
        start_time = time.monotonic()
        results = {}

        def check_completion():
            if len(results) < 2:
                return

            failed = [name for name, outcome in results.items() if not outcome.ok]
            if failed:
                self.reporter.error(f"Parallel callbacks incomplete, failed: {', '.join(failed)}")
            else:
                total_ms = (time.monotonic() - start_time) * 1000
                self.reporter.timing("Parallel callbacks execution time", total_ms)
                self.reporter.success("Both requests completed in parallel!")
                self.reporter.dashboard(DashboardData(results["weather"].value, results["news"].value))
            self._done()

        def on_weather(outcome: Outcome):
            results["weather"] = outcome
            if outcome.ok:
                self.reporter.success("Weather request completed")
            else:
                self.reporter.error(f"Parallel weather fetch failed: {outcome.error}")
            check_completion()

        def on_news(outcome: Outcome):
            results["news"] = outcome
            if outcome.ok:
                self.reporter.success("News request completed")
            else:
                self.reporter.error(f"Parallel news fetch failed: {outcome.error}")
            check_completion()

        # start both requests simultaneously
        self.fetch_weather(on_weather)
        self.fetch_news(on_news)

    async def run(self):
        self.reporter.header(self.method.value)
        self.reporter.info("Starting callback-based weather and news dashboard...")
        self._finished = asyncio.get_running_loop().create_future()

        try:
            self.demonstrate_callback_hell()
            await self._finished
        finally:
            self.reporter.footer(self.method.value)
