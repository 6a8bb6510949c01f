"""Shared protocol and types for weather cache backends."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional, Protocol


def location_key(latitude: float, longitude: float) -> str:
    """Bucket coordinates to 2 decimals (~1 km) so nearby requests share an entry."""
    # + 0.0 folds -0.00 into 0.00
    lat = round(latitude, 2) + 0.0
    lon = round(longitude, 2) + 0.0
    return f"{lat:.2f}_{lon:.2f}"


@dataclass(frozen=True)
class CacheEntry:
    """Combined current + forecast blobs for one location key."""
    key: str
    current_weather: str
    forecast: str
    cached_at: dt.datetime
    expires_at: dt.datetime


class CacheStore(Protocol):
    """Protocol for cache backends. Blobs are opaque strings to the store."""

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for `key`, or None if missing or already expired."""

    def put(self, key: str, current_weather: str, forecast: str, expires_at: dt.datetime) -> None:
        """Insert or replace the entry for `key` (last write wins)."""

    def sweep_expired(self) -> int:
        """Delete entries whose expiry has passed and return how many went."""

    def clear(self) -> None:
        """Remove every entry."""
