import unittest

from weather_dashboard.providers.base import CallableUpstreamProvider
from weather_dashboard.providers.factory import DEFAULT_PROVIDER_NAME, build_provider


class DummySettings:
    def __init__(self, **kwargs):
        self.provider = DEFAULT_PROVIDER_NAME
        self.api_key = "test-key"
        self.base_url = "http://owm"
        self.geo_url = "http://geo"
        self.upstream_timeout_seconds = 3.0
        for k, v in kwargs.items():
            setattr(self, k, v)


class TestProviderFactory(unittest.TestCase):
    def test_build_openweather_default(self):
        provider = build_provider(DummySettings())
        self.assertIsInstance(provider, CallableUpstreamProvider)

    def test_settings_are_bound_into_calls(self):
        provider = build_provider(DummySettings())
        self.assertEqual(provider.current.keywords["base_url"], "http://owm")
        self.assertEqual(provider.current.keywords["api_key"], "test-key")
        self.assertEqual(provider.forecast.keywords["timeout"], 3.0)
        self.assertEqual(provider.search.keywords["geo_url"], "http://geo")

    def test_missing_api_key_still_builds(self):
        provider = build_provider(DummySettings(api_key=None))
        self.assertIsNone(provider.current.keywords["api_key"])

    def test_unknown_provider_raises(self):
        with self.assertRaises(ValueError):
            build_provider(DummySettings(provider="unknown-provider"))

    def test_callable_provider_delegates(self):
        calls = []
        provider = CallableUpstreamProvider(
            current=lambda lat, lon: calls.append(("current", lat, lon)),
            forecast=lambda lat, lon: calls.append(("forecast", lat, lon)),
            search=lambda q, limit: calls.append(("search", q, limit)),
        )
        provider.fetch_current(1.0, 2.0)
        provider.fetch_forecast(3.0, 4.0)
        provider.geocode("Paris", 3)
        self.assertEqual(calls, [("current", 1.0, 2.0), ("forecast", 3.0, 4.0), ("search", "Paris", 3)])


if __name__ == "__main__":
    unittest.main()
