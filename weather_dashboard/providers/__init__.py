"""Upstream weather providers and the factory that picks one."""

from .base import CallableUpstreamProvider, UpstreamProvider
from .factory import build_provider
from .openweather_client import (
    CurrentObservation,
    ForecastSample,
    ForecastSeries,
    GeocodeResult,
)

__all__ = [
    "build_provider",
    "CallableUpstreamProvider",
    "UpstreamProvider",
    "CurrentObservation",
    "ForecastSample",
    "ForecastSeries",
    "GeocodeResult",
]
