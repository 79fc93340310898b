"""FastAPI main application."""

import logging
from fastapi import FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsroom.config import settings
from newsroom.database import init_db
from newsroom.routers import auth, users, channels, articles, comments, notes, taxonomy, health
from newsroom.middleware import (
    CacheMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    HTTPSRedirectMiddleware,
    RequestValidationMiddleware,
    AuditLogMiddleware
)
from newsroom.services.error_tracking import capture_exception
from newsroom.services.logging_service import app_logger, configure_logging
from newsroom.storage import Storage, RecordNotFound, DuplicateRecord, get_storage

configure_logging()
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Newsroom API",
    description="Multi-tenant news and blog publishing API: channels, articles, subscriptions, comments and reactions",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Security middlewares
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(HTTPSRedirectMiddleware)
app.add_middleware(RequestValidationMiddleware, max_content_length=10 * 1024 * 1024)
app.add_middleware(AuditLogMiddleware)

# Redis-backed middlewares pass requests through when Redis is unavailable
app.add_middleware(
    CacheMiddleware,
    default_ttl=300,
    cache_prefixes=["/api/categories", "/api/locations"]
)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=settings.RATE_LIMIT_PER_MINUTE,
    window_seconds=60
)


@app.exception_handler(RecordNotFound)
async def record_not_found_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(DuplicateRecord)
async def duplicate_record_handler(request: Request, exc: DuplicateRecord):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    capture_exception(exc, tags={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    if settings.storage_backend != "memory":
        # Create tables if they don't exist
        init_db()

    if settings.SCHEDULER_ENABLED:
        from newsroom.services.scheduler_service import start_scheduler
        start_scheduler()

    app_logger.info(
        "application started",
        environment=settings.ENVIRONMENT,
        storage_backend=settings.storage_backend,
        scheduler=settings.SCHEDULER_ENABLED
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown."""
    from newsroom.services.scheduler_service import shutdown_scheduler
    shutdown_scheduler()

    app_logger.info("application shutting down")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Newsroom API",
        "version": settings.APP_VERSION,
        "status": "operational",
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs"
    }


@app.get("/api/health", tags=["Health & Monitoring"])
async def api_health(storage: Storage = Depends(get_storage)):
    """Health check under the API prefix, reporting the storage backend."""
    try:
        storage.ping()
        storage_status = "healthy"
    except Exception as e:
        logger.warning("Storage ping failed: %s", e)
        storage_status = "unhealthy"

    return {
        "status": "ok" if storage_status == "healthy" else "degraded",
        "storage": settings.storage_backend,
        "storage_status": storage_status
    }


# Include routers
app.include_router(health.router, tags=["Health & Monitoring"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(channels.router, prefix="/api/channels", tags=["Channels"])
app.include_router(articles.router, prefix="/api/articles", tags=["Articles"])
app.include_router(comments.router, prefix="/api/comments", tags=["Comments"])
app.include_router(notes.router, prefix="/api/notes", tags=["Notes"])
app.include_router(taxonomy.router, prefix="/api", tags=["Taxonomy"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "newsroom.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
