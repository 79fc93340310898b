"""Security and audit middleware."""

import time
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from newsroom.config import settings
from newsroom.services.logging_service import app_logger, app_metrics


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Implements OWASP recommended security headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # Force HTTPS for 1 year
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # The API only serves JSON; docs pages need the CDN assets
        if not request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=(), payment=()"

        # Tokens travel in auth responses
        if request.url.path.startswith(("/api/auth", "/api/user")):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"

        return response


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """
    Redirect HTTP requests to HTTPS in production.

    Only enforces in the production environment.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if settings.ENVIRONMENT == "production":
            # Behind a proxy the original scheme arrives in X-Forwarded-Proto
            scheme = request.headers.get("x-forwarded-proto", request.url.scheme)
            if scheme == "http":
                https_url = request.url.replace(scheme="https")

                return JSONResponse(
                    status_code=status.HTTP_301_MOVED_PERMANENTLY,
                    content={"detail": "Please use HTTPS"},
                    headers={"Location": str(https_url)}
                )

        return await call_next(request)


class RequestValidationMiddleware(BaseHTTPMiddleware):
    """
    Reject oversized bodies and suspicious paths before routing.
    """

    suspicious_patterns = (
        "../",
        "..\\",
        "<script",
        "javascript:",
        "vbscript:",
    )

    def __init__(self, app, max_content_length: int = 10 * 1024 * 1024):
        """
        Initialize request validation middleware.

        Args:
            app: FastAPI application
            max_content_length: Maximum request body size (default 10MB)
        """
        super().__init__(app)
        self.max_content_length = max_content_length

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"detail": "Invalid Content-Length header"}
                )
            if length > self.max_content_length:
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={"detail": f"Request body too large. Maximum: {self.max_content_length} bytes"}
                )

        path_lower = request.url.path.lower()
        if any(pattern in path_lower for pattern in self.suspicious_patterns):
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "Invalid request path"}
            )

        return await call_next(request)


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Log API requests and feed the request metrics.

    Authentication calls and every write are logged at info level;
    reads only at debug level.
    """

    def __init__(self, app, path_prefix: str = "/api"):
        super().__init__(app)
        self.path_prefix = path_prefix

    @staticmethod
    def _endpoint_template(request: Request) -> str:
        """
        Full path with matched parameters put back as {name}, so
        /api/articles/7 counts under /api/articles/{article_id}.
        """
        names = {str(value): name for name, value in request.path_params.items()}
        segments = request.url.path.split("/")
        return "/".join(f"{{{names[s]}}}" if s in names else s for s in segments)

    def _is_audited(self, path: str, method: str) -> bool:
        if path.startswith("/api/auth"):
            return True
        return method in ("POST", "PUT", "PATCH", "DELETE")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not path.startswith(self.path_prefix):
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        endpoint = f"{request.method} {self._endpoint_template(request)}"
        app_metrics.increment_request(endpoint, success=response.status_code < 400, duration_ms=duration_ms)

        log = app_logger.info if self._is_audited(path, request.method) else app_logger.debug
        log(
            "request",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
            client_ip=request.client.host if request.client else "unknown"
        )

        return response
