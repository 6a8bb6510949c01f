"""Factory helpers for choosing an upstream provider at startup."""

from __future__ import annotations

from functools import partial

from weather_dashboard import config
from weather_dashboard.providers.base import CallableUpstreamProvider, UpstreamProvider
from weather_dashboard.providers.openweather_client import fetch_current, fetch_forecast, geocode
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/factory")


DEFAULT_PROVIDER_NAME = "openweather"


def build_provider(settings: config.Settings | None = None) -> UpstreamProvider:
    """Instantiate the configured upstream provider."""
    settings = settings or config.settings
    name = (settings.provider or DEFAULT_PROVIDER_NAME).lower()

    if name == "openweather":
        if not settings.api_key:
            logger.warning("OpenWeatherMap API key not set (DASHBOARD_API_KEY); upstream calls will fail")
        logger.info("Using OpenWeatherMap provider", extra={"base_url": settings.base_url})
        common = {"api_key": settings.api_key, "timeout": settings.upstream_timeout_seconds}
        return CallableUpstreamProvider(
            current=partial(fetch_current, base_url=settings.base_url, **common),
            forecast=partial(fetch_forecast, base_url=settings.base_url, **common),
            search=partial(geocode, geo_url=settings.geo_url, **common),
        )

    raise ValueError(f"Unknown weather provider '{name}'")
