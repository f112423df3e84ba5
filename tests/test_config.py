"""Tests for configuration loading."""

import pytest
import yaml

from dashboard.config import ENV_OVERRIDES, Config, DemoTimings
from dashboard.fetcher import FetchOptions


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_bundled_file_matches_fetcher_defaults(self):
        config = Config()

        assert config.fetch_options() == FetchOptions()
        assert config.user_agent == "AsyncDashboard/1.0"

    def test_endpoints(self):
        endpoints = Config().endpoints()

        assert endpoints.location.label == "Berlin, Germany"
        assert endpoints.news_url == "https://dummyjson.com/posts?limit=5"
        assert endpoints.weather_url.startswith("https://api.open-meteo.com/v1/forecast?")
        assert "latitude=52.52" in endpoints.weather_url
        assert "longitude=13.41" in endpoints.weather_url
        assert "timezone=auto" in endpoints.weather_url

    def test_timings(self):
        assert Config().timings() == DemoTimings()

    def test_logging_section(self):
        assert Config().logging == {"level": "INFO", "renderer": "console"}


class TestEnvironmentOverrides:

    def test_numeric_values_are_converted(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_MAX_RETRIES", "5")
        monkeypatch.setenv("DASHBOARD_RETRY_DELAY", "0.25")

        config = Config()

        assert config.get("fetcher", "max_retries") == 5
        assert config.fetch_options().max_retries == 5
        assert config.fetch_options().retry_delay == 0.25

    def test_string_values(self, monkeypatch):
        monkeypatch.setenv("NEWS_API_URL", "https://news.test/posts")
        monkeypatch.setenv("LOG_RENDERER", "json")

        config = Config()

        assert config.endpoints().news_url == "https://news.test/posts"
        assert config.logging["renderer"] == "json"

    def test_override_creates_missing_sections(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("{}\n")
        monkeypatch.setenv("WEATHER_API_URL", "https://weather.test/forecast")

        config = Config(path)

        assert config.get("endpoints", "weather", "url") == "https://weather.test/forecast"
        assert config.endpoints().weather_url.startswith("https://weather.test/forecast?")


class TestFiles:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("fetcher: [unclosed\n")

        with pytest.raises(ValueError):
            Config(path)

    def test_partial_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "fetcher": {"max_retries": 1},
            "timings": {"race_fast_delay": 0.1, "unknown": 3},
        }))

        config = Config(path)

        assert config.fetch_options() == FetchOptions(max_retries=1)
        assert config.timings() == DemoTimings(race_fast_delay=0.1)
        assert config.get("missing", "key", default="fallback") == "fallback"
