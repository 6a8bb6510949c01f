"""In-memory weather cache, intended for development and tests."""

import datetime as dt
import threading
from typing import Callable, Optional

from weather_dashboard.cache_store.base import CacheEntry, CacheStore
from weather_dashboard.db import utcnow

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store/in_memory_cache_store")


class InMemoryCacheStore(CacheStore):
    """Thread-safe dict-backed cache with the same expiry rules as the SQL store."""

    def __init__(self, clock: Callable[[], dt.datetime] = utcnow) -> None:
        logger.debug("Initializing InMemoryCacheStore")
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry, or None if missing/expired. Expired entries stay until swept."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.expires_at <= self.clock():
            return None
        return entry

    def put(self, key: str, current_weather: str, forecast: str, expires_at: dt.datetime) -> None:
        """Replace any entry stored under `key`."""
        entry = CacheEntry(
            key=key,
            current_weather=current_weather,
            forecast=forecast,
            cached_at=self.clock(),
            expires_at=expires_at,
        )
        with self._lock:
            self._entries[key] = entry

    def sweep_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
