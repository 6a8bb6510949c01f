import datetime as dt
import unittest

import requests

from weather_dashboard.cache_store import InMemoryCacheStore, location_key
from weather_dashboard.errors import LocationNotFoundError, NetworkUnreachableError, RequestTimeoutError
from weather_dashboard.providers.openweather_client import (
    CurrentObservation,
    ForecastSample,
    ForecastSeries,
    GeocodeResult,
)
from weather_dashboard.weather_gateway import WeatherGateway

T0 = dt.datetime(2024, 1, 1, 12, 0, tzinfo=dt.timezone.utc)


def _observation(lat, lon, temp=12.5):
    return CurrentObservation(
        name="London", country="GB", lat=lat, lon=lon,
        weather_main="Clouds", weather_description="broken clouds", weather_icon="04d",
        temperature=temp, feels_like=11.2, temp_min=10.9, temp_max=13.4,
        humidity=81, pressure=1012, visibility=10000, wind_speed=4.1, wind_direction=240,
        cloudiness=75, sunrise=1704096000, sunset=1704124800, observed_at=1704110400,
    )


def _series(lat, lon):
    samples = [
        ForecastSample(1704110400 + i * 10800, 10.0 + i, "Rain", "light rain", "10d", 80, 1010, 3.0)
        for i in range(8)
    ]
    return ForecastSeries(name="London", country="GB", lat=lat, lon=lon, samples=samples)


class FakeProvider:
    def __init__(self):
        self.calls = []
        self.current_error = None
        self.forecast_error = None
        self.temp = 12.5
        self.places = [
            GeocodeResult(name=f"Springfield {i}", country="US", state="Illinois", lat=39.8, lon=-89.6)
            for i in range(5)
        ]

    def fetch_current(self, lat, lon):
        self.calls.append(("current", lat, lon))
        if self.current_error:
            raise self.current_error
        return _observation(lat, lon, self.temp)

    def fetch_forecast(self, lat, lon):
        self.calls.append(("forecast", lat, lon))
        if self.forecast_error:
            raise self.forecast_error
        return _series(lat, lon)

    def geocode(self, query, limit):
        self.calls.append(("geocode", query, limit))
        return self.places[:limit]


class TestWeatherGateway(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.now = T0
        clock = lambda: self.now
        self.provider = FakeProvider()
        self.cache = InMemoryCacheStore(clock=clock)
        self.gateway = WeatherGateway(
            self.provider, self.cache, current_cache_minutes=30, forecast_cache_minutes=180, clock=clock
        )

    def _count(self, kind):
        return sum(1 for call in self.provider.calls if call[0] == kind)

    async def test_current_and_forecast_never_write_cache(self):
        await self.gateway.get_current_weather(51.5074, -0.1278)
        await self.gateway.get_forecast(51.5074, -0.1278)
        self.assertEqual(len(self.cache), 0)
        await self.gateway.get_current_weather(51.5074, -0.1278)
        self.assertEqual(self._count("current"), 2)

    async def test_complete_writes_one_combined_entry(self):
        result = await self.gateway.get_complete(51.5074, -0.1278)
        self.assertEqual(result.current.temperature.current, 13)
        self.assertEqual([d.date for d in result.forecast.forecast], ["2024-01-01", "2024-01-02"])
        entry = self.cache.get(location_key(51.5074, -0.1278))
        self.assertIsNotNone(entry)
        self.assertEqual(entry.expires_at, T0 + dt.timedelta(minutes=30))

    async def test_complete_hit_skips_upstream(self):
        first = await self.gateway.get_complete(51.5074, -0.1278)
        self.provider.temp = 30.0
        second = await self.gateway.get_complete(51.51, -0.13)
        self.assertEqual(self._count("current"), 1)
        self.assertEqual(self._count("forecast"), 1)
        self.assertEqual(first.model_dump_json(by_alias=True), second.model_dump_json(by_alias=True))

    async def test_halves_served_from_combined_entry(self):
        await self.gateway.get_complete(51.5074, -0.1278)
        current = await self.gateway.get_current_weather(51.5074, -0.1278)
        forecast = await self.gateway.get_forecast(51.5074, -0.1278)
        self.assertEqual(self._count("current"), 1)
        self.assertEqual(self._count("forecast"), 1)
        self.assertEqual(current.location.name, "London")
        self.assertEqual(forecast.forecast[0].weather.main, "Rain")

    async def test_entry_expires_on_current_window(self):
        await self.gateway.get_complete(51.5074, -0.1278)
        self.now = T0 + dt.timedelta(minutes=31)
        await self.gateway.get_forecast(51.5074, -0.1278)
        self.assertEqual(self._count("forecast"), 2)

    async def test_half_failure_writes_nothing(self):
        self.provider.forecast_error = requests.ConnectionError("refused")
        with self.assertRaises(NetworkUnreachableError):
            await self.gateway.get_complete(51.5074, -0.1278)
        self.assertEqual(len(self.cache), 0)

    async def test_upstream_errors_are_classified(self):
        response = type("R", (), {"status_code": 404, "json": lambda self: {"message": "city not found"}})()
        self.provider.current_error = requests.HTTPError("404", response=response)
        with self.assertRaises(LocationNotFoundError):
            await self.gateway.get_current_weather(0.0, 0.0)

        self.provider.current_error = requests.ReadTimeout("slow")
        with self.assertRaises(RequestTimeoutError):
            await self.gateway.get_current_weather(0.0, 0.0)

    async def test_search_clamps_limit(self):
        results = await self.gateway.search_locations("Springfield", 20)
        self.assertEqual(len(results), 5)
        self.assertEqual(self.provider.calls[-1], ("geocode", "Springfield", 5))
        await self.gateway.search_locations("Springfield", 0)
        self.assertEqual(self.provider.calls[-1], ("geocode", "Springfield", 1))
        self.assertEqual(results[0].display_name, "Springfield 0, Illinois, US")

    async def test_search_is_never_cached(self):
        await self.gateway.search_locations("Paris")
        await self.gateway.search_locations("Paris")
        self.assertEqual(self._count("geocode"), 2)
        self.assertEqual(len(self.cache), 0)


if __name__ == "__main__":
    unittest.main()
