import os
import unittest

from weather_dashboard.config import Settings


class TestConfig(unittest.TestCase):
    def test_settings_defaults(self):
        previous = os.environ.pop("DASHBOARD_CURRENT_CACHE_MINUTES", None)
        try:
            s = Settings()
            self.assertEqual(s.current_cache_minutes, 30)
            self.assertEqual(s.forecast_cache_minutes, 180)
            self.assertEqual(s.cache_backend, "sql")
            self.assertEqual(s.base_url, "https://api.openweathermap.org/data/2.5")
        finally:
            if previous is not None:
                os.environ["DASHBOARD_CURRENT_CACHE_MINUTES"] = previous

    def test_settings_env_override(self):
        previous = os.environ.get("DASHBOARD_BASE_URL")
        try:
            os.environ["DASHBOARD_BASE_URL"] = "http://example.com/weather/"
            s = Settings()
            self.assertEqual(s.base_url, "http://example.com/weather")
        finally:
            if previous is None:
                os.environ.pop("DASHBOARD_BASE_URL", None)
            else:
                os.environ["DASHBOARD_BASE_URL"] = previous

    def test_cache_minutes_override(self):
        previous = os.environ.get("DASHBOARD_CURRENT_CACHE_MINUTES")
        try:
            os.environ["DASHBOARD_CURRENT_CACHE_MINUTES"] = "5"
            s = Settings()
            self.assertEqual(s.current_cache_minutes, 5)
        finally:
            if previous is None:
                os.environ.pop("DASHBOARD_CURRENT_CACHE_MINUTES", None)
            else:
                os.environ["DASHBOARD_CURRENT_CACHE_MINUTES"] = previous


if __name__ == "__main__":
    unittest.main()
