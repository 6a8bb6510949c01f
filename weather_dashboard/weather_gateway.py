"""Cache-first orchestration of upstream weather calls.

The gateway is the only place that talks to both the upstream provider and
the cache store:

- `get_current_weather` and `get_forecast` serve a cached half when the
  location's combined entry is live, otherwise fetch upstream. They never
  write to the cache.
- `get_complete` is the single writer. On a miss it fetches current and
  forecast concurrently, normalizes both and stores one combined entry whose
  expiry is `now + current_cache_minutes`. The forecast window is configured
  but not used for that entry, so forecasts may be refreshed
  sooner than they strictly need to be.
- `search_locations` always goes upstream; geocoding is not cached.

Provider and store calls block, so they run in worker threads via
`asyncio.to_thread`. Every upstream failure is classified into a
`WeatherServiceError` before it leaves this module. Nothing is retried.
"""
from __future__ import annotations

import asyncio
import datetime as dt
from typing import Callable, List, Optional, TypeVar

from weather_dashboard.cache_store import CacheEntry, CacheStore, location_key
from weather_dashboard.db import utcnow
from weather_dashboard.errors import classify_upstream_error
from weather_dashboard.models import (
    CompleteWeather,
    LocationSearchResult,
    NormalizedCurrent,
    NormalizedForecast,
)
from weather_dashboard.normalize import normalize_current, normalize_forecast, to_search_result
from weather_dashboard.providers import UpstreamProvider
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_gateway")

T = TypeVar("T")

MAX_GEOCODE_RESULTS = 5


class WeatherGateway:
    """Cache-aware facade over an upstream provider."""

    def __init__(
        self,
        provider: UpstreamProvider,
        cache: CacheStore,
        *,
        current_cache_minutes: int = 30,
        forecast_cache_minutes: int = 180,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.current_cache_minutes = current_cache_minutes
        # Not used for expiry; combined entries expire on the current window.
        self.forecast_cache_minutes = forecast_cache_minutes
        self.clock = clock

    async def _upstream(self, func: Callable[..., T], *args) -> T:
        """Run a blocking provider call in a thread and classify any failure."""
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as exc:
            error = classify_upstream_error(exc)
            logger.error(f"Upstream call {getattr(func, '__name__', func)} failed: {error.code}: {exc}")
            raise error from exc

    async def _cached(self, latitude: float, longitude: float) -> Optional[CacheEntry]:
        return await asyncio.to_thread(self.cache.get, location_key(latitude, longitude))

    def combined_expiry(self) -> dt.datetime:
        """Expiry stamped on a combined entry written now."""
        return self.clock() + dt.timedelta(minutes=self.current_cache_minutes)

    async def get_current_weather(self, latitude: float, longitude: float) -> NormalizedCurrent:
        """Current conditions; reads the cache but never writes it."""
        cached = await self._cached(latitude, longitude)
        if cached is not None:
            logger.info("Returning cached current weather", extra={"city_key": cached.key})
            return NormalizedCurrent.model_validate_json(cached.current_weather)

        logger.info("Fetching current weather from upstream")
        observation = await self._upstream(self.provider.fetch_current, latitude, longitude)
        return normalize_current(observation)

    async def get_forecast(self, latitude: float, longitude: float) -> NormalizedForecast:
        """Five-day forecast; reads the cache but never writes it."""
        cached = await self._cached(latitude, longitude)
        if cached is not None:
            logger.info("Returning cached forecast", extra={"city_key": cached.key})
            return NormalizedForecast.model_validate_json(cached.forecast)

        logger.info("Fetching forecast from upstream")
        series = await self._upstream(self.provider.fetch_forecast, latitude, longitude)
        return normalize_forecast(series)

    async def get_complete(self, latitude: float, longitude: float) -> CompleteWeather:
        """Current + forecast, cached together under the location key.

        Both upstream calls must succeed; if either fails the first classified
        error propagates and nothing is written.
        """
        key = location_key(latitude, longitude)
        cached = await self._cached(latitude, longitude)
        if cached is not None:
            logger.info("Returning complete cached weather", extra={"city_key": key})
            return CompleteWeather(
                current=NormalizedCurrent.model_validate_json(cached.current_weather),
                forecast=NormalizedForecast.model_validate_json(cached.forecast),
            )

        logger.info("Fetching complete weather from upstream", extra={"city_key": key})
        observation, series = await asyncio.gather(
            self._upstream(self.provider.fetch_current, latitude, longitude),
            self._upstream(self.provider.fetch_forecast, latitude, longitude),
        )
        current = normalize_current(observation)
        forecast = normalize_forecast(series)

        await asyncio.to_thread(
            self.cache.put,
            key,
            current.model_dump_json(by_alias=True),
            forecast.model_dump_json(by_alias=True),
            self.combined_expiry(),
        )
        return CompleteWeather(current=current, forecast=forecast)

    async def search_locations(self, query: str, limit: int = MAX_GEOCODE_RESULTS) -> List[LocationSearchResult]:
        """Geocode `query`; `limit` is capped at what the provider returns."""
        bounded = max(1, min(limit, MAX_GEOCODE_RESULTS))
        logger.info(f"Searching for locations: {query}")
        results = await self._upstream(self.provider.geocode, query, bounded)
        return [to_search_result(result) for result in results]
