"""Saved cities, persisted in the `user_cities` table."""

from __future__ import annotations

import datetime as dt
from typing import Callable, List, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from weather_dashboard.db import from_db_time, to_db_time, user_cities, utcnow
from weather_dashboard.errors import DuplicateCityError
from weather_dashboard.models import UserCity
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="city_registry")

DEFAULT_CITIES = [
    {"name": "New York", "country": "US", "lat": 40.7128, "lon": -74.0060},
    {"name": "London", "country": "GB", "lat": 51.5074, "lon": -0.1278},
    {"name": "Tokyo", "country": "JP", "lat": 35.6762, "lon": 139.6503},
    {"name": "Sydney", "country": "AU", "lat": -33.8688, "lon": 151.2093},
]


def _row_to_city(row) -> UserCity:
    return UserCity(
        id=row["id"],
        name=row["name"],
        country=row["country"],
        lat=row["lat"],
        lon=row["lon"],
        added_at=from_db_time(row["added_at"]),
    )


class CityRegistry:
    """CRUD over the user's saved cities. (name, country) is unique."""

    def __init__(self, engine: Engine, clock: Callable[[], dt.datetime] = utcnow) -> None:
        self.engine = engine
        self.clock = clock

    def list_cities(self) -> List[UserCity]:
        """Most recently added first; id breaks ties within the same timestamp."""
        query = select(user_cities).order_by(user_cities.c.added_at.desc(), user_cities.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query).mappings().all()
        return [_row_to_city(row) for row in rows]

    def get(self, city_id: int) -> Optional[UserCity]:
        query = select(user_cities).where(user_cities.c.id == city_id)
        with self.engine.connect() as conn:
            row = conn.execute(query).mappings().first()
        return _row_to_city(row) if row is not None else None

    def _exists(self, name: str, country: str) -> bool:
        query = select(user_cities.c.id).where(user_cities.c.name == name, user_cities.c.country == country)
        with self.engine.connect() as conn:
            return conn.execute(query).first() is not None

    def add(self, name: str, country: str, lat: float, lon: float) -> UserCity:
        """Insert a city, raising DuplicateCityError if (name, country) exists."""
        added_at = to_db_time(self.clock())
        stmt = insert(user_cities).values(name=name, country=country, lat=lat, lon=lon, added_at=added_at)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except IntegrityError as exc:
            # Only the (name, country) unique constraint means "duplicate".
            if not self._exists(name, country):
                raise
            logger.info("Rejected duplicate city", extra={"city": name, "country": country})
            raise DuplicateCityError(name, country) from exc
        city_id = result.inserted_primary_key[0]
        logger.info("Added city", extra={"city_id": city_id, "city": name, "country": country})
        return UserCity(id=city_id, name=name, country=country, lat=lat, lon=lon, added_at=from_db_time(added_at))

    def remove(self, city_id: int) -> int:
        """Delete by id and return the number of rows removed (0 or 1)."""
        with self.engine.begin() as conn:
            removed = conn.execute(delete(user_cities).where(user_cities.c.id == city_id)).rowcount or 0
        logger.info("Removed city", extra={"city_id": city_id, "rows": removed})
        return removed

    def seed_defaults(self) -> int:
        """Insert the demo cities that are not already saved; return how many were added."""
        added = 0
        for city in DEFAULT_CITIES:
            try:
                self.add(**city)
            except DuplicateCityError:
                continue
            added += 1
        if added:
            logger.info(f"Seeded {added} default cities")
        return added
