"""HTTP API for weather lookups and saved cities."""

import asyncio
import math
from typing import List, Optional, Tuple, Union

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import Field, field_validator

from .city_registry import CityRegistry
from .errors import WeatherServiceError
from .models import (
    CamelModel,
    CompleteWeather,
    LocationSearchResult,
    NormalizedCurrent,
    NormalizedForecast,
    UserCity,
)
from .weather_gateway import WeatherGateway
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_dashboard/api")

MAX_BATCH_CITIES = 10
MAX_SEARCH_LIMIT = 20

weather_router = APIRouter(prefix="/weather", tags=["weather"])
cities_router = APIRouter(prefix="/cities", tags=["cities"])


def get_gateway(request: Request) -> WeatherGateway:
    """Gateway built at app startup."""
    return request.app.state.gateway


def get_registry(request: Request) -> CityRegistry:
    """City registry built at app startup."""
    return request.app.state.registry


# ---------------------------------------------------------------------------
# Request / response payloads
# ---------------------------------------------------------------------------


class CurrentWeatherResponse(CamelModel):
    success: bool = True
    data: NormalizedCurrent


class ForecastResponse(CamelModel):
    success: bool = True
    data: NormalizedForecast


class CompleteWeatherResponse(CamelModel):
    success: bool = True
    data: CompleteWeather


class SearchResponse(CamelModel):
    success: bool = True
    data: List[LocationSearchResult]
    query: str
    count: int


class BatchCity(CamelModel):
    """One entry of a batch request; `id` is echoed back as `cityId`."""
    id: Optional[Union[int, str]] = None
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class BatchRequest(CamelModel):
    cities: List[BatchCity] = Field(min_length=1, max_length=MAX_BATCH_CITIES)


class BatchResult(CamelModel):
    success: bool
    city_id: Optional[Union[int, str]] = None
    data: Optional[CompleteWeather] = None
    error: Optional[str] = None


class BatchResponse(CamelModel):
    success: bool = True
    data: List[BatchResult]
    total_cities: int
    successful_cities: int


class CityCreateRequest(CamelModel):
    """Incoming city payload; name and country are trimmed, country upper-cased."""
    name: str
    country: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        v = v.strip()
        if not 1 <= len(v) <= 100:
            raise ValueError("City name must be between 1 and 100 characters")
        return v

    @field_validator("country")
    @classmethod
    def check_country(cls, v: str) -> str:
        v = v.strip().upper()
        if not 2 <= len(v) <= 3:
            raise ValueError("Country code must be 2-3 characters")
        return v


class CityListResponse(CamelModel):
    success: bool = True
    data: List[UserCity]
    count: int


class CityCreatedResponse(CamelModel):
    success: bool = True
    data: UserCity
    message: str = "City added successfully"


class CityDeletedResponse(CamelModel):
    success: bool = True
    message: str = "City removed successfully"
    deleted_id: int


class SearchAndAddRequest(CamelModel):
    query: str


class CitySearchResponse(CamelModel):
    success: bool = True
    data: List[LocationSearchResult]
    message: str = "Cities found. Select one to add to your list."
    count: int


class CityWithWeather(UserCity):
    weather: Optional[NormalizedCurrent] = None
    has_weather: bool
    weather_error: Optional[str] = None


class CitiesWithWeatherResponse(CamelModel):
    success: bool = True
    data: List[CityWithWeather]
    count: int
    successful_weather: int
    message: Optional[str] = None


class CityWeather(CamelModel):
    city: UserCity
    weather: CompleteWeather


class CityWeatherResponse(CamelModel):
    success: bool = True
    data: CityWeather


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def parse_coordinates(lat: str, lon: str) -> Tuple[float, float]:
    """Parse path coordinates, raising 400 unless both are finite and in range."""
    try:
        latitude = float(lat)
        longitude = float(lon)
    except ValueError:
        raise HTTPException(status_code=400, detail="Latitude and longitude must be valid numbers")
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise HTTPException(status_code=400, detail="Latitude and longitude must be valid numbers")
    if not -90 <= latitude <= 90:
        raise HTTPException(status_code=400, detail="Latitude must be between -90 and 90")
    if not -180 <= longitude <= 180:
        raise HTTPException(status_code=400, detail="Longitude must be between -180 and 180")
    return latitude, longitude


def _check_query(query: str) -> str:
    query = (query or "").strip()
    if len(query) < 2:
        raise HTTPException(status_code=400, detail="Search query must be at least 2 characters long")
    return query


def _check_city_id(city_id: int) -> int:
    if city_id < 1:
        raise HTTPException(status_code=400, detail="City ID must be a positive number")
    return city_id


# ---------------------------------------------------------------------------
# Weather routes
# ---------------------------------------------------------------------------


@weather_router.get("/current/{lat}/{lon}", response_model=CurrentWeatherResponse)
async def current_weather(lat: str, lon: str, gateway: WeatherGateway = Depends(get_gateway)):
    """Current conditions at the coordinates."""
    latitude, longitude = parse_coordinates(lat, lon)
    data = await gateway.get_current_weather(latitude, longitude)
    return CurrentWeatherResponse(data=data)


@weather_router.get("/forecast/{lat}/{lon}", response_model=ForecastResponse)
async def forecast(lat: str, lon: str, gateway: WeatherGateway = Depends(get_gateway)):
    """Five-day forecast at the coordinates."""
    latitude, longitude = parse_coordinates(lat, lon)
    data = await gateway.get_forecast(latitude, longitude)
    return ForecastResponse(data=data)


@weather_router.get("/complete/{lat}/{lon}", response_model=CompleteWeatherResponse)
async def complete_weather(lat: str, lon: str, gateway: WeatherGateway = Depends(get_gateway)):
    """Current conditions and forecast together (the cached path)."""
    latitude, longitude = parse_coordinates(lat, lon)
    data = await gateway.get_complete(latitude, longitude)
    return CompleteWeatherResponse(data=data)


@weather_router.get("/search/{query}", response_model=SearchResponse)
async def search(query: str, limit: int = 5, gateway: WeatherGateway = Depends(get_gateway)):
    """Geocode a place name."""
    query = _check_query(query)
    if not 1 <= limit <= MAX_SEARCH_LIMIT:
        raise HTTPException(status_code=400, detail=f"Limit must be a number between 1 and {MAX_SEARCH_LIMIT}")
    results = await gateway.search_locations(query, limit)
    return SearchResponse(data=results, query=query, count=len(results))


@weather_router.post("/batch", response_model=BatchResponse)
async def batch_weather(req: BatchRequest, gateway: WeatherGateway = Depends(get_gateway)):
    """Complete weather for up to ten cities; failures are reported per city."""

    async def _one(city: BatchCity) -> BatchResult:
        try:
            data = await gateway.get_complete(city.lat, city.lon)
        except WeatherServiceError as exc:
            return BatchResult(success=False, city_id=city.id, error=exc.message)
        return BatchResult(success=True, city_id=city.id, data=data)

    results = await asyncio.gather(*(_one(city) for city in req.cities))
    return BatchResponse(
        data=list(results),
        total_cities=len(req.cities),
        successful_cities=sum(1 for r in results if r.success),
    )


# ---------------------------------------------------------------------------
# City routes
# ---------------------------------------------------------------------------


@cities_router.get("", response_model=CityListResponse)
async def list_cities(registry: CityRegistry = Depends(get_registry)):
    """Saved cities, newest first."""
    cities = await asyncio.to_thread(registry.list_cities)
    return CityListResponse(data=cities, count=len(cities))


@cities_router.post("", response_model=CityCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_city(
    req: CityCreateRequest,
    registry: CityRegistry = Depends(get_registry),
    gateway: WeatherGateway = Depends(get_gateway),
):
    """Save a city after confirming the provider knows the coordinates."""
    try:
        await gateway.get_current_weather(req.lat, req.lon)
    except WeatherServiceError as exc:
        logger.info(f"Rejecting city {req.name}: weather lookup failed ({exc.code})")
        raise HTTPException(
            status_code=400,
            detail="Unable to fetch weather data for this location. Please verify coordinates.",
        )
    # DuplicateCityError propagates to the app-level 409 handler.
    city = await asyncio.to_thread(registry.add, req.name, req.country, req.lat, req.lon)
    return CityCreatedResponse(data=city)


@cities_router.delete("/{city_id}", response_model=CityDeletedResponse)
async def remove_city(city_id: int, registry: CityRegistry = Depends(get_registry)):
    """Delete a saved city; 404 when nothing matched."""
    _check_city_id(city_id)
    removed = await asyncio.to_thread(registry.remove, city_id)
    if removed == 0:
        raise HTTPException(status_code=404, detail="No city found with the specified ID")
    return CityDeletedResponse(deleted_id=city_id)


@cities_router.post("/search-and-add", response_model=CitySearchResponse)
async def search_and_add(req: SearchAndAddRequest, gateway: WeatherGateway = Depends(get_gateway)):
    """Search for candidates the client can then POST to /cities."""
    query = _check_query(req.query)
    results = await gateway.search_locations(query)
    if not results:
        raise HTTPException(status_code=404, detail="No cities found matching your search query")
    return CitySearchResponse(data=results, count=len(results))


@cities_router.get("/with-weather", response_model=CitiesWithWeatherResponse)
async def cities_with_weather(
    registry: CityRegistry = Depends(get_registry),
    gateway: WeatherGateway = Depends(get_gateway),
):
    """Every saved city with its current weather, fetched concurrently."""
    cities = await asyncio.to_thread(registry.list_cities)
    if not cities:
        return CitiesWithWeatherResponse(data=[], count=0, successful_weather=0, message="No cities added yet")

    async def _one(city: UserCity) -> CityWithWeather:
        try:
            weather = await gateway.get_current_weather(city.lat, city.lon)
        except WeatherServiceError as exc:
            logger.warning(f"Error fetching weather for {city.name}: {exc.message}")
            return CityWithWeather(**city.model_dump(), has_weather=False, weather_error=exc.message)
        return CityWithWeather(**city.model_dump(), weather=weather, has_weather=True)

    results = list(await asyncio.gather(*(_one(city) for city in cities)))
    return CitiesWithWeatherResponse(
        data=results,
        count=len(results),
        successful_weather=sum(1 for c in results if c.has_weather),
    )


@cities_router.get("/{city_id}/weather", response_model=CityWeatherResponse)
async def city_weather(
    city_id: int,
    registry: CityRegistry = Depends(get_registry),
    gateway: WeatherGateway = Depends(get_gateway),
):
    """Complete weather for one saved city."""
    _check_city_id(city_id)
    city = await asyncio.to_thread(registry.get, city_id)
    if city is None:
        raise HTTPException(status_code=404, detail="No city found with the specified ID")
    weather = await gateway.get_complete(city.lat, city.lon)
    return CityWeatherResponse(data=CityWeather(city=city, weather=weather))
