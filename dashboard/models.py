"""Data models for weather snapshots and news listings."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Tuple

from .errors import FetchError


class AsyncMethod(str, Enum):
    CALLBACK = "callback"
    PROMISE = "promise"
    ASYNC_AWAIT = "async/await"


# (upper bound, label); a reading equal to a bound falls in the next bucket
TEMPERATURE_BUCKETS: Tuple[Tuple[float, str], ...] = (
    (0, "Very Cold"),
    (10, "Cold"),
    (20, "Cool"),
    (30, "Warm"),
)


def describe_temperature(temperature: float) -> str:
    """Bucket a Celsius reading into a human-readable description."""
    for upper, label in TEMPERATURE_BUCKETS:
        if temperature < upper:
            return label
    return "Hot"


@dataclass(frozen=True)
class Location:
    name: str
    country: str
    latitude: float
    longitude: float

    @property
    def label(self) -> str:
        return f"{self.name}, {self.country}"


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions for a fixed location."""

    location: Location
    temperature: float
    humidity: float
    wind_speed: float
    description: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_forecast(cls, payload: Dict[str, Any], location: Location, url: str = "") -> "WeatherSnapshot":
        """Build a snapshot from an Open-Meteo ``current`` block.

        Raises:
            FetchError: PARSE kind when the payload lacks the expected fields.
        """
        try:
            current = payload["current"]
            temperature = float(current["temperature_2m"])
            humidity = float(current["relative_humidity_2m"])
            wind_speed = float(current["wind_speed_10m"])
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError.parse(url, f"Weather data transformation failed: missing or invalid {e}")

        return cls(
            location=location,
            temperature=temperature,
            humidity=humidity,
            wind_speed=wind_speed,
            description=describe_temperature(temperature),
        )


@dataclass(frozen=True)
class NewsArticle:
    id: int
    title: str
    body: str
    tags: List[str]
    likes: int
    dislikes: int
    views: int
    user_id: int

    @classmethod
    def from_post(cls, post: Dict[str, Any]) -> "NewsArticle":
        reactions = post.get("reactions") or {}
        if not isinstance(reactions, dict):
            # older listings report reactions as a single count
            reactions = {"likes": reactions, "dislikes": 0}
        return cls(
            id=post.get("id", 0),
            title=post.get("title", ""),
            body=post.get("body", ""),
            tags=list(post.get("tags") or []),
            likes=reactions.get("likes", 0),
            dislikes=reactions.get("dislikes", 0),
            views=post.get("views", 0),
            user_id=post.get("userId", 0),
        )

    def headline(self, width: int = 60) -> str:
        return self.title[:width] + "..."


@dataclass(frozen=True)
class NewsListing:
    """A page of posts plus the upstream pagination metadata."""

    articles: List[NewsArticle]
    total: int
    skip: int
    limit: int

    @classmethod
    def from_payload(cls, payload: Any, url: str = "") -> "NewsListing":
        """Apply the minimal shape check: ``posts`` must be a non-empty list.

        Raises:
            FetchError: PARSE kind when the shape check fails.
        """
        posts = payload.get("posts") if isinstance(payload, dict) else None
        if not isinstance(posts, list) or not posts:
            raise FetchError.parse(url, "Invalid news data structure")

        try:
            articles = [NewsArticle.from_post(post) for post in posts]
        except AttributeError:
            raise FetchError.parse(url, "Invalid news data structure")

        return cls(
            articles=articles,
            total=payload.get("total", len(articles)),
            skip=payload.get("skip", 0),
            limit=payload.get("limit", len(articles)),
        )


@dataclass(frozen=True)
class DashboardData:
    weather: WeatherSnapshot
    news: NewsListing
