"""Map raw provider records onto the dashboard's canonical payloads."""
from __future__ import annotations

from weather_dashboard.forecast_aggregator import aggregate
from weather_dashboard.models import (
    CurrentDetails,
    CurrentTemperature,
    Location,
    LocationSearchResult,
    NormalizedCurrent,
    NormalizedForecast,
    SunTimes,
    WeatherCondition,
)
from weather_dashboard.providers.openweather_client import CurrentObservation, ForecastSeries, GeocodeResult
from weather_dashboard.units import epoch_to_iso, meters_to_km, ms_to_kmh, round_half_away


def normalize_current(obs: CurrentObservation) -> NormalizedCurrent:
    """Round temperatures, convert wind to km/h and visibility to km."""
    return NormalizedCurrent(
        location=Location(name=obs.name, country=obs.country, lat=obs.lat, lon=obs.lon),
        weather=WeatherCondition(
            main=obs.weather_main,
            description=obs.weather_description,
            icon=obs.weather_icon,
        ),
        temperature=CurrentTemperature(
            current=round_half_away(obs.temperature),
            feels_like=round_half_away(obs.feels_like),
            min=round_half_away(obs.temp_min),
            max=round_half_away(obs.temp_max),
        ),
        details=CurrentDetails(
            humidity=obs.humidity,
            pressure=obs.pressure,
            visibility=meters_to_km(obs.visibility),
            wind_speed=round_half_away(ms_to_kmh(obs.wind_speed)),
            wind_direction=obs.wind_direction if obs.wind_direction is not None else 0,
            cloudiness=obs.cloudiness,
        ),
        sun=SunTimes(sunrise=epoch_to_iso(obs.sunrise), sunset=epoch_to_iso(obs.sunset)),
        timestamp=epoch_to_iso(obs.observed_at),
    )


def normalize_forecast(series: ForecastSeries) -> NormalizedForecast:
    return NormalizedForecast(
        city=Location(name=series.name, country=series.country, lat=series.lat, lon=series.lon),
        forecast=aggregate(series.samples),
    )


def display_name(result: GeocodeResult) -> str:
    """'Springfield, Illinois, US' when a state is known, else 'Paris, FR'."""
    state = f", {result.state}" if result.state else ""
    return f"{result.name}{state}, {result.country}"


def to_search_result(result: GeocodeResult) -> LocationSearchResult:
    return LocationSearchResult(
        name=result.name,
        country=result.country,
        state=result.state,
        lat=result.lat,
        lon=result.lon,
        display_name=display_name(result),
    )
