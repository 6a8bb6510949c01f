"""Error taxonomy for upstream weather failures and city registry conflicts.

Every failure coming out of the upstream provider is classified into exactly
one `WeatherServiceError` subclass before it leaves the gateway. Each class
carries a stable `code`, a user-facing message and the HTTP status the API
answers with, so the routing layer never inspects upstream details itself.
"""

from __future__ import annotations

import requests


class WeatherServiceError(Exception):
    """Base class for classified upstream failures."""

    code = "upstream_error"
    status_code = 502
    default_message = "Failed to fetch weather data. Please try again later."

    def __init__(self, message: str | None = None, *, upstream_status: int | None = None) -> None:
        self.message = message or self.default_message
        self.upstream_status = upstream_status
        super().__init__(self.message)


class InvalidCredentialError(WeatherServiceError):
    code = "invalid_credential"
    status_code = 502
    default_message = "Invalid API key. Please check your OpenWeatherMap API key."


class LocationNotFoundError(WeatherServiceError):
    code = "location_not_found"
    status_code = 404
    default_message = "Location not found. Please check the coordinates."


class RateLimitedError(WeatherServiceError):
    code = "rate_limited"
    status_code = 429
    default_message = "API rate limit exceeded. Please try again later."


class ServiceUnavailableError(WeatherServiceError):
    code = "service_unavailable"
    status_code = 503
    default_message = "Weather service temporarily unavailable. Please try again later."


class RequestTimeoutError(WeatherServiceError):
    code = "request_timeout"
    status_code = 504
    default_message = "Request timeout. Please try again."


class NetworkUnreachableError(WeatherServiceError):
    code = "network_unreachable"
    status_code = 503
    default_message = "Unable to connect to weather service. Please check your internet connection."


class UnknownUpstreamError(WeatherServiceError):
    code = "upstream_error"
    status_code = 502


class DuplicateCityError(Exception):
    """Raised when a (name, country) pair is already in the city registry."""

    def __init__(self, name: str, country: str) -> None:
        self.name = name
        self.country = country
        super().__init__(f"City '{name}' ({country}) is already in your list")


_STATUS_ERRORS: dict[int, type[WeatherServiceError]] = {
    401: InvalidCredentialError,
    404: LocationNotFoundError,
    429: RateLimitedError,
}


def _upstream_message(response: requests.Response | None) -> str | None:
    """Pull the `message` field out of an OpenWeatherMap error body, if any."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None


def classify_upstream_error(exc: BaseException) -> WeatherServiceError:
    """Map any exception raised while talking to the provider onto the taxonomy."""
    if isinstance(exc, WeatherServiceError):
        return exc

    # Timeout must be checked before ConnectionError: ConnectTimeout is both.
    if isinstance(exc, requests.Timeout):
        return RequestTimeoutError()
    if isinstance(exc, requests.ConnectionError):
        return NetworkUnreachableError()

    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        if status in _STATUS_ERRORS:
            return _STATUS_ERRORS[status](upstream_status=status)
        if 500 <= status < 600:
            return ServiceUnavailableError(upstream_status=status)
        detail = _upstream_message(response) or "Unknown error"
        return UnknownUpstreamError(f"Weather API error: {detail}", upstream_status=status)

    return UnknownUpstreamError()
