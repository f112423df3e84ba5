"""
Weather and news fetches built on the retrying fetcher
"""

import structlog

from .config import Endpoints
from .fetcher import FetchOptions, RetryingFetcher
from .models import Location, NewsArticle, NewsListing, WeatherSnapshot

logger = structlog.get_logger(__name__)


def fallback_weather(location: Location) -> WeatherSnapshot:
    return WeatherSnapshot(
        location=location,
        temperature=0.0,
        humidity=0.0,
        wind_speed=0.0,
        description="Unavailable",
    )


FALLBACK_NEWS = NewsListing(
    articles=[
        NewsArticle(
            id=0,
            title="News service unavailable",
            body="",
            tags=[],
            likes=0,
            dislikes=0,
            views=0,
            user_id=0,
        )
    ],
    total=1,
    skip=0,
    limit=1,
)


class DashboardSources:
    """The two upstream services the dashboard reads from."""

    def __init__(self, fetcher: RetryingFetcher, endpoints: Endpoints):
        self.fetcher = fetcher
        self.endpoints = endpoints

    async def fetch_weather(self, options: FetchOptions = None) -> WeatherSnapshot:
        url = self.endpoints.weather_url
        logger.info("fetching_weather", location=self.endpoints.location.label)
        payload = await self.fetcher.fetch_json(url, options)
        snapshot = WeatherSnapshot.from_forecast(payload, self.endpoints.location, url=url)
        logger.info("weather_transformed",
                    temperature=snapshot.temperature,
                    description=snapshot.description)
        return snapshot

    async def fetch_news(self, options: FetchOptions = None) -> NewsListing:
        url = self.endpoints.news_url
        logger.info("fetching_news", url=url)
        payload = await self.fetcher.fetch_json(url, options)
        listing = NewsListing.from_payload(payload, url=url)
        logger.info("news_fetched", articles=len(listing.articles), total=listing.total)
        return listing

    async def fetch_invalid(self, options: FetchOptions = None):
        """Request the configured invalid URL; used to show failure handling."""
        return await self.fetcher.fetch_json(self.endpoints.invalid_url, options)

    def fallback_weather(self) -> WeatherSnapshot:
        return fallback_weather(self.endpoints.location)
