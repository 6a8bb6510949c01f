"""FastAPI application setup for the weather dashboard."""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from sqlalchemy.engine import Engine

from weather_dashboard import config
from weather_dashboard.api import cities_router, weather_router
from weather_dashboard.cache_store import CacheSweeper, build_cache_store
from weather_dashboard.city_registry import CityRegistry
from weather_dashboard.db import build_engine, init_db, utcnow
from weather_dashboard.errors import DuplicateCityError, WeatherServiceError
from weather_dashboard.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from weather_dashboard.providers import UpstreamProvider, build_provider
from weather_dashboard.usage_log import UsageLog
from weather_dashboard.weather_gateway import WeatherGateway
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="server")

USAGE_PATH_PREFIX = "/api/weather"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the cache sweeper on startup and stop it on shutdown."""
    logger.info("Starting weather dashboard API")
    sweeper: CacheSweeper = app.state.sweeper
    sweeper.start()

    yield

    logger.info("Shutting down weather dashboard API")
    await sweeper.stop()


def _error_body(error: str, message: str) -> dict:
    return {"success": False, "error": error, "message": message}


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(WeatherServiceError)
    async def weather_error_handler(request: Request, exc: WeatherServiceError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))

    @app.exception_handler(DuplicateCityError)
    async def duplicate_city_handler(request: Request, exc: DuplicateCityError):
        return JSONResponse(status_code=409, content=_error_body("duplicate_city", str(exc)))

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        error = "not_found" if exc.status_code == 404 else "bad_request" if exc.status_code == 400 else "http_error"
        return JSONResponse(status_code=exc.status_code, content=_error_body(error, str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        content = _error_body("validation_error", "Validation failed")
        content["details"] = details
        return JSONResponse(status_code=400, content=content)


def create_app(
    settings: Optional[config.Settings] = None,
    *,
    provider: Optional[UpstreamProvider] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    """Build the app and its services.

    Services are wired eagerly onto `app.state`, so the app is usable before
    (or without) the lifespan running. Only the cache sweeper waits for startup.
    """
    settings = settings or config.settings
    engine = engine if engine is not None else build_engine(settings.database_url)
    init_db(engine)

    cache = build_cache_store(settings, engine)
    registry = CityRegistry(engine)
    if settings.seed_default_cities:
        registry.seed_defaults()

    app = FastAPI(
        title="Weather Dashboard API",
        description="Current weather, five-day forecasts and saved cities",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.cache = cache
    app.state.registry = registry
    app.state.usage_log = UsageLog(engine)
    app.state.gateway = WeatherGateway(
        provider if provider is not None else build_provider(settings),
        cache,
        current_cache_minutes=settings.current_cache_minutes,
        forecast_cache_minutes=settings.forecast_cache_minutes,
    )
    app.state.sweeper = CacheSweeper(cache, interval_seconds=settings.cache_sweep_interval_seconds)

    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_usage(request: Request, call_next):
        """Time weather requests and append them to the usage log."""
        if not request.url.path.startswith(USAGE_PATH_PREFIX):
            return await call_next(request)
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        client = request.client.host if request.client else None
        try:
            await asyncio.to_thread(app.state.usage_log.record, request.url.path, client, elapsed_ms)
        except Exception as exc:
            logger.warning(f"Failed to record API usage: {exc}")
        return response

    _register_exception_handlers(app)

    app.include_router(weather_router, prefix="/api")
    app.include_router(cities_router, prefix="/api")

    @app.get("/api/health")
    @app.get("/health")
    def health():
        """Liveness probe."""
        return {"status": "OK", "timestamp": utcnow().isoformat(), "service": "Weather Dashboard API"}

    @app.get("/")
    def root():
        return {"message": "Weather Dashboard API is running!", "status": "healthy", "timestamp": utcnow().isoformat()}

    return app
