"""
Shared pytest fixtures: a scripted upstream behind httpx.MockTransport, a
fetcher and sources wired to it, and a console reporter that records output.
"""

import asyncio
import io
from collections import Counter
from typing import Callable, Dict, List

import httpx
import pytest
import pytest_asyncio
from rich.console import Console

from dashboard.config import DemoTimings, Endpoints
from dashboard.console import ConsoleReporter
from dashboard.fetcher import FetchOptions, RetryingFetcher
from dashboard.models import Location
from dashboard.sources import DashboardSources

WEATHER_HOST = "api.open-meteo.com"
NEWS_HOST = "dummyjson.com"
INVALID_HOST = "invalid-url.example.com"

FORECAST = {
    "latitude": 52.52,
    "longitude": 13.41,
    "current": {
        "time": "2024-05-01T12:00",
        "temperature_2m": 15.2,
        "relative_humidity_2m": 60,
        "wind_speed_10m": 11.5,
    },
}

POSTS = {
    "posts": [
        {
            "id": i,
            "title": f"Post number {i} with a title long enough to need truncating in the dashboard",
            "body": "Lorem ipsum.",
            "tags": ["history", "news"],
            "reactions": {"likes": 10 * i, "dislikes": i},
            "views": 100 * i,
            "userId": 7,
        }
        for i in range(1, 6)
    ],
    "total": 251,
    "skip": 0,
    "limit": 5,
}

Step = Callable[[httpx.Request], object]


def respond(payload=None, status: int = 200, text: str = None) -> Step:
    def step(request: httpx.Request) -> httpx.Response:
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=payload)
    return step


def refuse(message: str = "Name or service not known") -> Step:
    def step(request: httpx.Request):
        raise httpx.ConnectError(message, request=request)
    return step


def stall(seconds: float, then: Step = None) -> Step:
    async def step(request: httpx.Request):
        await asyncio.sleep(seconds)
        return (then or respond({}))(request)
    return step


class Upstream:
    """Scripted stand-in for the weather and news services.

    Each host gets a list of steps; the n-th request to a host runs the n-th
    step, and the last step repeats. Unknown hosts refuse the connection.
    """

    def __init__(self):
        self.calls: Counter = Counter()
        self.routes: Dict[str, List[Step]] = {
            WEATHER_HOST: [respond(FORECAST)],
            NEWS_HOST: [respond(POSTS)],
        }

    def script(self, host: str, *steps: Step):
        self.routes[host] = list(steps)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        self.calls[host] += 1
        steps = self.routes.get(host) or [refuse()]
        step = steps[min(self.calls[host], len(steps)) - 1]
        result = step(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def options() -> FetchOptions:
    return FetchOptions(timeout=1.0, max_retries=2, retry_delay=0.0)


@pytest_asyncio.fixture
async def client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield client


@pytest.fixture
def fetcher(client, options) -> RetryingFetcher:
    return RetryingFetcher(options=options, client=client)


@pytest.fixture
def endpoints() -> Endpoints:
    return Endpoints(
        weather_base_url=f"https://{WEATHER_HOST}/v1/forecast",
        weather_fields="temperature_2m,relative_humidity_2m,wind_speed_10m",
        location=Location(name="Berlin", country="Germany", latitude=52.52, longitude=13.41),
        news_url=f"https://{NEWS_HOST}/posts?limit=5",
        invalid_url=f"https://{INVALID_HOST}/api",
    )


@pytest.fixture
def sources(fetcher, endpoints) -> DashboardSources:
    return DashboardSources(fetcher, endpoints)


@pytest.fixture
def timings() -> DemoTimings:
    return DemoTimings(
        processing_delay=0.01,
        combine_delay=0.01,
        display_delay=0.01,
        race_fast_delay=0.05,
        race_slow_delay=0.5,
        between_demos=0.0,
        invalid_choice_pause=0.0,
    )


@pytest.fixture
def reporter() -> ConsoleReporter:
    console = Console(file=io.StringIO(), width=200, color_system=None, highlight=False)
    return ConsoleReporter(console)


def output_of(reporter: ConsoleReporter) -> str:
    return reporter.console.file.getvalue()
