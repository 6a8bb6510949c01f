"""Weather cache backends, the location key and the expiry sweeper."""

from sqlalchemy.engine import Engine

from weather_dashboard import config
from utils.logging_utils import get_tagged_logger

from .base import CacheEntry, CacheStore, location_key
from .memory import InMemoryCacheStore
from .sql import SqlCacheStore
from .sweeper import CacheSweeper

logger = get_tagged_logger(__name__, tag="cache_store")


def build_cache_store(settings: config.Settings, engine: Engine) -> CacheStore:
    """Instantiate the configured cache backend."""
    backend = (settings.cache_backend or "sql").lower()
    if backend == "sql":
        logger.info("Using SqlCacheStore")
        return SqlCacheStore(engine)
    if backend == "memory":
        logger.info("Using InMemoryCacheStore")
        return InMemoryCacheStore()
    raise ValueError(f"Unknown cache backend '{backend}'")


__all__ = [
    "build_cache_store",
    "location_key",
    "CacheEntry",
    "CacheStore",
    "CacheSweeper",
    "InMemoryCacheStore",
    "SqlCacheStore",
]
