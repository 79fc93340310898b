"""Caching and rate limiting middleware backed by Redis."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable, List, Optional
import hashlib

from newsroom.services.logging_service import app_metrics
from newsroom.services.redis_service import api_cache, rate_limiter, is_redis_available


class CacheMiddleware(BaseHTTPMiddleware):
    """
    Cache GET responses for slow-changing endpoints in Redis.

    Only 200 responses are stored. Successful writes under the
    invalidating prefixes drop every cached response.
    """

    def __init__(
        self,
        app,
        default_ttl: int = 300,  # 5 minutes
        cache_prefixes: Optional[List[str]] = None,
        invalidate_prefixes: Optional[List[str]] = None
    ):
        """
        Initialize cache middleware.

        Args:
            app: FastAPI application
            default_ttl: Default TTL in seconds
            cache_prefixes: URL prefixes whose GET responses are cached
            invalidate_prefixes: URL prefixes whose writes clear the cache
        """
        super().__init__(app)
        self.default_ttl = default_ttl
        self.cache_prefixes = cache_prefixes or [
            "/api/categories",
            "/api/locations",
        ]
        self.invalidate_prefixes = invalidate_prefixes or [
            "/api/channels",
            "/api/articles",
        ]

    def _should_cache(self, request: Request) -> bool:
        if request.method != "GET":
            return False

        path = request.url.path
        return any(path.startswith(prefix) for prefix in self.cache_prefixes)

    def _should_invalidate(self, request: Request) -> bool:
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return False

        path = request.url.path
        return any(path.startswith(prefix) for prefix in self.invalidate_prefixes)

    def _make_cache_key(self, request: Request) -> str:
        """Build the cache key from path and query string."""
        key_data = f"{request.url.path}:{request.url.query}"
        key_hash = hashlib.md5(key_data.encode()).hexdigest()

        return f"response:{key_hash}"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not (self._should_cache(request) or self._should_invalidate(request)):
            return await call_next(request)

        if not is_redis_available():
            return await call_next(request)

        if self._should_invalidate(request):
            response = await call_next(request)
            if response.status_code < 400:
                api_cache.delete_pattern("response:*")
            return response

        cache_key = self._make_cache_key(request)
        cached_response = api_cache.get(cache_key)

        if cached_response:
            app_metrics.increment_cache(hit=True)
            return Response(
                content=cached_response["content"],
                status_code=cached_response["status_code"],
                headers={"X-Cache": "HIT"},
                media_type=cached_response["media_type"]
            )

        app_metrics.increment_cache(hit=False)
        response = await call_next(request)

        if response.status_code == 200:
            response_body = b""
            async for chunk in response.body_iterator:
                response_body += chunk

            api_cache.set(cache_key, {
                "content": response_body.decode("utf-8"),
                "status_code": response.status_code,
                "media_type": response.media_type
            }, ttl=self.default_ttl)

            headers = dict(response.headers)
            headers.pop("content-length", None)
            headers["X-Cache"] = "MISS"
            return Response(
                content=response_body,
                status_code=response.status_code,
                headers=headers,
                media_type=response.media_type
            )

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window rate limiting per client IP.

    Passes every request through when Redis is unavailable.
    """

    def __init__(
        self,
        app,
        max_requests: int = 60,
        window_seconds: int = 60,
        exempt_prefixes: Optional[List[str]] = None
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.exempt_prefixes = exempt_prefixes or ["/health", "/api/health"]
        rate_limiter.max_requests = max_requests
        rate_limiter.window_seconds = window_seconds

    def _get_identifier(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _limit_headers(self, remaining: int) -> dict:
        return {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(max(remaining, 0)),
            "X-RateLimit-Reset": str(self.window_seconds),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(request.url.path.startswith(prefix) for prefix in self.exempt_prefixes):
            return await call_next(request)

        if not is_redis_available():
            return await call_next(request)

        remaining = rate_limiter.hit(self._get_identifier(request))

        if remaining < 0:
            app_metrics.increment_rate_limited()
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded", "retry_after": self.window_seconds},
                headers={**self._limit_headers(remaining), "Retry-After": str(self.window_seconds)}
            )

        response = await call_next(request)
        response.headers.update(self._limit_headers(remaining))
        return response
