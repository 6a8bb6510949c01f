import datetime as dt
import unittest

from sqlalchemy.exc import IntegrityError

from weather_dashboard.city_registry import DEFAULT_CITIES, CityRegistry
from weather_dashboard.db import build_engine, init_db
from weather_dashboard.errors import DuplicateCityError

T0 = dt.datetime(2024, 1, 1, 12, 0, tzinfo=dt.timezone.utc)


class TestCityRegistry(unittest.TestCase):
    def setUp(self):
        self.now = T0
        engine = build_engine("sqlite://")
        init_db(engine)
        self.registry = CityRegistry(engine, clock=lambda: self.now)

    def _tick(self):
        self.now += dt.timedelta(seconds=1)

    def test_add_returns_saved_city(self):
        city = self.registry.add("London", "GB", 51.5074, -0.1278)
        self.assertGreater(city.id, 0)
        self.assertEqual(city.added_at, T0)
        self.assertEqual(self.registry.get(city.id), city)

    def test_duplicate_name_and_country_rejected(self):
        self.registry.add("London", "GB", 51.5074, -0.1278)
        with self.assertRaises(DuplicateCityError):
            self.registry.add("London", "GB", 51.0, 0.0)
        self.assertEqual(len(self.registry.list_cities()), 1)

    def test_other_integrity_failures_are_not_duplicates(self):
        with self.assertRaises(IntegrityError) as ctx:
            self.registry.add(None, "US", 1.0, 2.0)
        self.assertNotIsInstance(ctx.exception, DuplicateCityError)
        self.assertEqual(self.registry.list_cities(), [])

    def test_same_name_in_other_country_allowed(self):
        self.registry.add("London", "GB", 51.5074, -0.1278)
        city = self.registry.add("London", "CA", 42.98, -81.25)
        self.assertEqual(city.country, "CA")
        self.assertEqual(len(self.registry.list_cities()), 2)

    def test_list_newest_first(self):
        self.registry.add("London", "GB", 51.5, -0.13)
        self._tick()
        self.registry.add("Paris", "FR", 48.85, 2.35)
        self._tick()
        self.registry.add("Tokyo", "JP", 35.68, 139.65)
        self.assertEqual([c.name for c in self.registry.list_cities()], ["Tokyo", "Paris", "London"])

    def test_same_timestamp_ordered_by_id(self):
        first = self.registry.add("London", "GB", 51.5, -0.13)
        second = self.registry.add("Paris", "FR", 48.85, 2.35)
        self.assertEqual([c.id for c in self.registry.list_cities()], [second.id, first.id])

    def test_remove(self):
        city = self.registry.add("London", "GB", 51.5, -0.13)
        self.assertEqual(self.registry.remove(city.id), 1)
        self.assertIsNone(self.registry.get(city.id))
        self.assertEqual(self.registry.remove(city.id), 0)

    def test_remove_unknown_id(self):
        self.assertEqual(self.registry.remove(999), 0)

    def test_seed_defaults_is_idempotent(self):
        self.assertEqual(self.registry.seed_defaults(), len(DEFAULT_CITIES))
        self.assertEqual(self.registry.seed_defaults(), 0)
        names = {c.name for c in self.registry.list_cities()}
        self.assertEqual(names, {"New York", "London", "Tokyo", "Sydney"})


if __name__ == "__main__":
    unittest.main()
