"""Interface and helpers for upstream weather providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Protocol

from weather_dashboard.providers.openweather_client import (
    CurrentObservation,
    ForecastSeries,
    GeocodeResult,
)


class UpstreamProvider(Protocol):
    """Anything that can supply current weather, forecasts and geocoding.

    Implementations are blocking; the gateway runs them in worker threads.
    They raise whatever their transport raises and leave classification to
    the gateway.
    """

    def fetch_current(self, latitude: float, longitude: float) -> CurrentObservation:
        """Return current conditions at the coordinates."""
        ...

    def fetch_forecast(self, latitude: float, longitude: float) -> ForecastSeries:
        """Return the 3-hour forecast series at the coordinates."""
        ...

    def geocode(self, query: str, limit: int) -> List[GeocodeResult]:
        """Return up to `limit` locations matching `query`."""
        ...


@dataclass
class CallableUpstreamProvider(UpstreamProvider):
    """Wrap three callables so backends (or test fakes) can be swapped in."""

    current: Callable[..., CurrentObservation]
    forecast: Callable[..., ForecastSeries]
    search: Callable[..., List[GeocodeResult]]

    def fetch_current(self, latitude: float, longitude: float) -> CurrentObservation:
        """Delegate to the configured current-weather callable."""
        return self.current(latitude, longitude)

    def fetch_forecast(self, latitude: float, longitude: float) -> ForecastSeries:
        """Delegate to the configured forecast callable."""
        return self.forecast(latitude, longitude)

    def geocode(self, query: str, limit: int) -> List[GeocodeResult]:
        """Delegate to the configured geocoding callable."""
        return self.search(query, limit)
