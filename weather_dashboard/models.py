"""Normalized weather payloads and saved-city records.

These are the canonical shapes the dashboard serves and caches, independent
of the upstream provider's raw format. Field names are snake_case in Python
and camelCase on the wire (and inside cached blobs).
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Number = Union[int, float]


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(CamelModel):
    name: str
    country: str
    lat: float
    lon: float


class WeatherCondition(CamelModel):
    main: str
    description: str
    icon: str


class CurrentTemperature(CamelModel):
    """Integer-rounded Celsius readings."""
    current: int
    feels_like: int
    min: int
    max: int


class CurrentDetails(CamelModel):
    humidity: Number
    pressure: Number
    visibility: Optional[int] = None  # km; None when upstream omits it
    wind_speed: int  # km/h
    wind_direction: Number
    cloudiness: Number


class SunTimes(CamelModel):
    sunrise: str
    sunset: str


class NormalizedCurrent(CamelModel):
    """Current conditions at one location."""
    location: Location
    weather: WeatherCondition
    temperature: CurrentTemperature
    details: CurrentDetails
    sun: SunTimes
    timestamp: str


class HourlySample(CamelModel):
    """One 3-hour forecast bucket's condition, tagged with its own time."""
    main: str
    description: str
    icon: str
    time: str


class DayTemperature(CamelModel):
    min: int
    max: int
    avg: int


class DayDetails(CamelModel):
    humidity: int
    pressure: int
    wind_speed: int  # km/h


class DaySummary(CamelModel):
    """Aggregate of all forecast samples sharing one UTC date."""
    date: str
    weather: HourlySample
    temperature: DayTemperature
    details: DayDetails
    hourly_data: List[HourlySample]


class NormalizedForecast(CamelModel):
    city: Location
    forecast: List[DaySummary]


class CompleteWeather(CamelModel):
    current: NormalizedCurrent
    forecast: NormalizedForecast


class LocationSearchResult(CamelModel):
    name: str
    country: str
    state: Optional[str] = None
    lat: float
    lon: float
    display_name: str


class UserCity(CamelModel):
    """A city saved by the user."""
    id: int
    name: str
    country: str
    lat: float
    lon: float
    added_at: datetime
