"""
HTTP middleware for the dashboard API.

- RateLimitMiddleware: fixed-window per-IP limit on `/api` paths, kept in
  process memory (one counter per client per window).
- SecurityHeadersMiddleware: conservative response headers for a JSON API.
"""

import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="middleware")

RATE_LIMITED_PATH_PREFIX = "/api/"
EXEMPT_PATHS = ("/api/health",)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


def _client_key(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class FixedWindowCounter:
    """Thread-safe request counter bucketed into fixed windows per key."""

    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[int, float]:
        """Count one request for `key`; return (count in window, seconds until reset)."""
        now = self.clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
                # drop other stale windows while holding the lock
                self._windows = {
                    k: v for k, v in self._windows.items() if now - v[0] < self.window_seconds
                }
            count += 1
            self._windows[key] = (started, count)
        return count, max(0.0, self.window_seconds - (now - started))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed `max_requests` per window on `/api` paths with 429."""

    def __init__(self, app, *, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        super().__init__(app)
        self.max_requests = max_requests
        self.counter = FixedWindowCounter(window_seconds, clock=clock)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not path.startswith(RATE_LIMITED_PATH_PREFIX) or path in EXEMPT_PATHS:
            return await call_next(request)

        client = _client_key(request)
        count, reset_in = self.counter.hit(client)
        headers = {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(max(0, self.max_requests - count)),
        }
        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {client}")
            headers["Retry-After"] = str(max(1, int(reset_in)))
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "rate_limited",
                    "message": "Too many requests from this IP, please try again later.",
                },
                headers=headers,
            )

        response = await call_next(request)
        for key, value in headers.items():
            response.headers[key] = value
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add SECURITY_HEADERS to every response that does not already set them."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        return response
