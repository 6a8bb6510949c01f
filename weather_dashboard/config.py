"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the weather dashboard service."""
    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", extra="ignore")

    provider: str = "openweather"  # options: openweather
    api_key: str | None = None
    base_url: str = "https://api.openweathermap.org/data/2.5"
    geo_url: str = "https://api.openweathermap.org/geo/1.0"
    upstream_timeout_seconds: float = 10.0

    # Only current_cache_minutes governs the combined cache entry's expiry.
    current_cache_minutes: int = 30
    forecast_cache_minutes: int = 180

    database_url: str = "sqlite:///./weather.db"
    cache_backend: str = "sql"  # options: sql, memory
    cache_sweep_interval_seconds: int = 3600
    seed_default_cities: bool = True

    frontend_url: str = "http://localhost:3000"

    # Per-IP limit on /api paths, fixed window.
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: int = 900
    gzip_minimum_size: int = 500
    log_level: str = "INFO"

    @field_validator("base_url", "geo_url", "frontend_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'api_key'})}")
