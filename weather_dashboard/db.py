"""SQLAlchemy schema and engine helpers for the dashboard's local store.

Three tables: `user_cities` (saved locations, unique on name + country),
`weather_cache` (one combined entry per location key) and `api_usage`
(append-only request log). Timestamps are stored as naive UTC.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from utils.logging_utils import get_tagged_logger, mask_db_url

logger = get_tagged_logger(__name__, tag="db")

metadata = MetaData()

user_cities = Table(
    "user_cities",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("country", String(3), nullable=False),
    Column("lat", Float, nullable=False),
    Column("lon", Float, nullable=False),
    Column("added_at", DateTime, nullable=False),
    UniqueConstraint("name", "country", name="uq_user_cities_name_country"),
)

weather_cache = Table(
    "weather_cache",
    metadata,
    Column("city_key", String(32), primary_key=True),
    Column("current_weather", Text, nullable=False),
    Column("forecast_data", Text, nullable=False),
    Column("cached_at", DateTime, nullable=False),
    Column("expires_at", DateTime, nullable=False, index=True),
)

api_usage = Table(
    "api_usage",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("endpoint", String(255), nullable=False),
    Column("timestamp", DateTime, nullable=False),
    Column("ip_address", String(64)),
    Column("response_time", Integer),
)


def utcnow() -> dt.datetime:
    """Timezone-aware current UTC time."""
    return dt.datetime.now(dt.timezone.utc)


def to_db_time(value: dt.datetime) -> dt.datetime:
    """Convert an aware datetime to the naive UTC form stored in the tables."""
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def from_db_time(value: dt.datetime) -> dt.datetime:
    """Re-attach UTC to a naive timestamp read back from the tables."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def upsert_statement(engine: Engine, table: Table):
    """Return the dialect's INSERT that supports ON CONFLICT DO UPDATE."""
    dialect = engine.dialect.name
    if dialect == "sqlite":
        return sqlite.insert(table)
    if dialect == "postgresql":
        return postgresql.insert(table)
    raise ValueError(f"Upserts are not supported on dialect '{dialect}'")


def build_engine(database_url: str) -> Engine:
    """Create an engine for `database_url`.

    SQLite connections are shared with worker threads, and in-memory SQLite
    keeps a single connection so every caller sees the same database.
    """
    kwargs: dict = {"future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    logger.info("Creating database engine", extra={"db_url": mask_db_url(database_url)})
    return create_engine(database_url, **kwargs)


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
    logger.info("Database tables initialized")
