"""Helpers for fetching current weather, forecasts and geocoding from OpenWeatherMap."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import requests

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="openweather_client")

# Plain session: geocoding must never be cached and the core does not retry.
session = requests.Session()

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
OPENWEATHER_GEO_URL = "https://api.openweathermap.org/geo/1.0"
DEFAULT_TIMEOUT_SECONDS = 10.0
UNITS = "metric"


@dataclass
class CurrentObservation:
    """Raw current conditions from /weather, still in upstream units (°C, m/s, m)."""
    name: str
    country: str
    lat: float
    lon: float
    weather_main: str
    weather_description: str
    weather_icon: str
    temperature: float
    feels_like: float
    temp_min: float
    temp_max: float
    humidity: float
    pressure: float
    visibility: Optional[float]  # meters
    wind_speed: Optional[float]  # m/s
    wind_direction: Optional[float]
    cloudiness: float
    sunrise: int  # epoch seconds
    sunset: int
    observed_at: int


@dataclass
class ForecastSample:
    """One 3-hour bucket from /forecast."""
    timestamp: int  # epoch seconds, UTC
    temperature: float
    weather_main: str
    weather_description: str
    weather_icon: str
    humidity: float
    pressure: float
    wind_speed: Optional[float]  # m/s


@dataclass
class ForecastSeries:
    """The /forecast city header plus its ordered samples."""
    name: str
    country: str
    lat: float
    lon: float
    samples: List[ForecastSample]


@dataclass
class GeocodeResult:
    """A single match from the direct geocoding endpoint."""
    name: str
    country: str
    state: Optional[str]
    lat: float
    lon: float


def _get_json(url: str, params: dict, timeout: float):
    """GET `url` and return the decoded body, raising for non-2xx statuses."""
    resp = session.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def parse_current(data: dict) -> CurrentObservation:
    """Map a /weather response body onto a CurrentObservation."""
    weather = data["weather"][0]
    main = data["main"]
    wind = data.get("wind") or {}
    sys = data["sys"]
    return CurrentObservation(
        name=data["name"],
        country=sys.get("country", ""),
        lat=data["coord"]["lat"],
        lon=data["coord"]["lon"],
        weather_main=weather["main"],
        weather_description=weather["description"],
        weather_icon=weather["icon"],
        temperature=main["temp"],
        feels_like=main["feels_like"],
        temp_min=main["temp_min"],
        temp_max=main["temp_max"],
        humidity=main["humidity"],
        pressure=main["pressure"],
        visibility=data.get("visibility"),
        wind_speed=wind.get("speed"),
        wind_direction=wind.get("deg"),
        cloudiness=(data.get("clouds") or {}).get("all", 0),
        sunrise=sys["sunrise"],
        sunset=sys["sunset"],
        observed_at=data["dt"],
    )


def parse_forecast(data: dict) -> ForecastSeries:
    """Map a /forecast response body onto a ForecastSeries, keeping sample order."""
    city = data["city"]
    samples: List[ForecastSample] = []
    for item in data.get("list", []):
        weather = item["weather"][0]
        main = item["main"]
        wind = item.get("wind") or {}
        samples.append(
            ForecastSample(
                timestamp=item["dt"],
                temperature=main["temp"],
                weather_main=weather["main"],
                weather_description=weather["description"],
                weather_icon=weather["icon"],
                humidity=main["humidity"],
                pressure=main["pressure"],
                wind_speed=wind.get("speed"),
            )
        )
    return ForecastSeries(
        name=city["name"],
        country=city.get("country", ""),
        lat=city["coord"]["lat"],
        lon=city["coord"]["lon"],
        samples=samples,
    )


def fetch_current(
    latitude: float,
    longitude: float,
    *,
    api_key: str | None,
    base_url: str = OPENWEATHER_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> CurrentObservation:
    """Fetch current conditions for the given coordinates."""
    params = {"lat": latitude, "lon": longitude, "appid": api_key, "units": UNITS}
    logger.debug("Fetching current weather", extra={"lat": latitude, "lon": longitude})
    return parse_current(_get_json(f"{base_url}/weather", params, timeout))


def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    api_key: str | None,
    base_url: str = OPENWEATHER_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ForecastSeries:
    """Fetch the 5-day / 3-hour forecast series for the given coordinates."""
    params = {"lat": latitude, "lon": longitude, "appid": api_key, "units": UNITS}
    logger.debug("Fetching forecast", extra={"lat": latitude, "lon": longitude})
    return parse_forecast(_get_json(f"{base_url}/forecast", params, timeout))


def geocode(
    query: str,
    limit: int,
    *,
    api_key: str | None,
    geo_url: str = OPENWEATHER_GEO_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> List[GeocodeResult]:
    """Resolve a free-text place name to candidate locations."""
    params = {"q": query, "limit": limit, "appid": api_key}
    logger.debug("Geocoding query", extra={"query": query, "limit": limit})
    data = _get_json(f"{geo_url}/direct", params, timeout)
    return [
        GeocodeResult(
            name=item["name"],
            country=item.get("country", ""),
            state=item.get("state"),
            lat=item["lat"],
            lon=item["lon"],
        )
        for item in data
    ]
