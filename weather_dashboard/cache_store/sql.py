"""Relational weather cache backed by the `weather_cache` table."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine

from weather_dashboard.cache_store.base import CacheEntry, CacheStore
from weather_dashboard.db import from_db_time, to_db_time, upsert_statement, utcnow, weather_cache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store/sql_cache_store")


class SqlCacheStore(CacheStore):
    """One row per location key; expiry is enforced on every read."""

    def __init__(self, engine: Engine, clock: Callable[[], dt.datetime] = utcnow) -> None:
        """Bind to an engine whose schema has already been created."""
        logger.debug("Initializing SqlCacheStore")
        self.engine = engine
        self.clock = clock

    def _now(self) -> dt.datetime:
        return to_db_time(self.clock())

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for `key`; expired rows read as missing."""
        query = select(weather_cache).where(
            weather_cache.c.city_key == key,
            weather_cache.c.expires_at > self._now(),
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).mappings().first()
        if row is None:
            return None
        return CacheEntry(
            key=row["city_key"],
            current_weather=row["current_weather"],
            forecast=row["forecast_data"],
            cached_at=from_db_time(row["cached_at"]),
            expires_at=from_db_time(row["expires_at"]),
        )

    def put(self, key: str, current_weather: str, forecast: str, expires_at: dt.datetime) -> None:
        """Insert or replace the entry for `key` in a single statement."""
        values = {
            "city_key": key,
            "current_weather": current_weather,
            "forecast_data": forecast,
            "cached_at": self._now(),
            "expires_at": to_db_time(expires_at),
        }
        stmt = upsert_statement(self.engine, weather_cache).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[weather_cache.c.city_key],
            set_={name: stmt.excluded[name] for name in values if name != "city_key"},
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)
        logger.debug("Cached weather entry", extra={"city_key": key, "expires_at": values["expires_at"].isoformat()})

    def sweep_expired(self) -> int:
        """Delete rows with expires_at <= now."""
        stmt = delete(weather_cache).where(weather_cache.c.expires_at <= self._now())
        with self.engine.begin() as conn:
            removed = conn.execute(stmt).rowcount or 0
        return removed

    def clear(self) -> None:
        """Delete every cached row."""
        with self.engine.begin() as conn:
            conn.execute(delete(weather_cache))
