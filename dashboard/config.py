"""
load the config from config.yaml and environment variables
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import httpx
import yaml

from .fetcher import FetchOptions
from .models import Location

# environment variable -> config key path
ENV_OVERRIDES = {
    'DASHBOARD_TIMEOUT': ('fetcher', 'timeout'),
    'DASHBOARD_MAX_RETRIES': ('fetcher', 'max_retries'),
    'DASHBOARD_RETRY_DELAY': ('fetcher', 'retry_delay'),
    'DASHBOARD_BACKOFF_FACTOR': ('fetcher', 'backoff_factor'),
    'WEATHER_API_URL': ('endpoints', 'weather', 'url'),
    'NEWS_API_URL': ('endpoints', 'news_url'),
    'LOG_LEVEL': ('logging', 'level'),
    'LOG_RENDERER': ('logging', 'renderer'),
}


@dataclass(frozen=True)
class Endpoints:
    weather_base_url: str
    weather_fields: str
    location: Location
    news_url: str
    invalid_url: str

    @property
    def weather_url(self) -> str:
        """Forecast URL for the configured coordinates."""
        url = httpx.URL(self.weather_base_url, params={
            'latitude': self.location.latitude,
            'longitude': self.location.longitude,
            'current': self.weather_fields,
            'timezone': 'auto',
        })
        return str(url)


@dataclass(frozen=True)
class DemoTimings:
    """Artificial pauses used by the demonstrations, in seconds."""

    processing_delay: float = 0.2
    combine_delay: float = 0.3
    display_delay: float = 0.5
    race_fast_delay: float = 0.8
    race_slow_delay: float = 2.0
    between_demos: float = 1.0
    invalid_choice_pause: float = 2.0


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    def __init__(self, config_path: str = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to config.yaml file. If None, looks for config.yaml
                        in the same directory as this module.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        for env_var, config_path in ENV_OVERRIDES.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                current = config
                for key in config_path[:-1]:
                    if not isinstance(current.get(key), dict):
                        current[key] = {}
                    current = current[key]

                current[config_path[-1]] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str):
        """Convert environment variable string to appropriate Python type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, *keys, default=None):
        """Get configuration value by walking nested keys.

        Args:
            *keys: Configuration keys (e.g., 'fetcher', 'timeout')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def fetcher(self) -> Dict[str, Any]:
        return self.get('fetcher', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        return self.get('logging', default={})

    def fetch_options(self) -> FetchOptions:
        defaults = FetchOptions()
        fetcher = self.fetcher
        return FetchOptions(
            timeout=float(fetcher.get('timeout', defaults.timeout)),
            max_retries=int(fetcher.get('max_retries', defaults.max_retries)),
            retry_delay=float(fetcher.get('retry_delay', defaults.retry_delay)),
            backoff_factor=float(fetcher.get('backoff_factor', defaults.backoff_factor)),
        )

    @property
    def user_agent(self) -> str:
        return self.fetcher.get('user_agent', 'AsyncDashboard/1.0')

    def endpoints(self) -> Endpoints:
        loc = self.get('endpoints', 'weather', 'location', default={})
        return Endpoints(
            weather_base_url=self.get('endpoints', 'weather', 'url',
                                      default='https://api.open-meteo.com/v1/forecast'),
            weather_fields=self.get('endpoints', 'weather', 'fields',
                                    default='temperature_2m,relative_humidity_2m,wind_speed_10m'),
            location=Location(
                name=loc.get('name', 'Berlin'),
                country=loc.get('country', 'Germany'),
                latitude=float(loc.get('latitude', 52.52)),
                longitude=float(loc.get('longitude', 13.41)),
            ),
            news_url=self.get('endpoints', 'news_url', default='https://dummyjson.com/posts?limit=5'),
            invalid_url=self.get('endpoints', 'invalid_url', default='https://invalid-url.example.com/api'),
        )

    def timings(self) -> DemoTimings:
        values = self.get('timings', default={}) or {}
        known = DemoTimings.__dataclass_fields__
        return DemoTimings(**{k: float(v) for k, v in values.items() if k in known})
