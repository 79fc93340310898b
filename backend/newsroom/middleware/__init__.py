"""Middleware modules for FastAPI application."""

from newsroom.middleware.cache_middleware import CacheMiddleware, RateLimitMiddleware
from newsroom.middleware.security_middleware import (
    SecurityHeadersMiddleware,
    HTTPSRedirectMiddleware,
    RequestValidationMiddleware,
    AuditLogMiddleware
)

__all__ = [
    "CacheMiddleware",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
    "HTTPSRedirectMiddleware",
    "RequestValidationMiddleware",
    "AuditLogMiddleware"
]
