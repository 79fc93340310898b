"""Health check and monitoring endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from datetime import datetime
import logging
import psutil
import os

from newsroom.config import settings
from newsroom.services.logging_service import app_metrics
from newsroom.services.redis_service import is_redis_available, get_redis_client
from newsroom.services.scheduler_service import get_scheduler
from newsroom.storage import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_storage(storage: Storage) -> dict:
    try:
        storage.ping()
        return {"status": "healthy", "backend": settings.storage_backend}
    except Exception as e:
        logger.warning("Storage health check failed: %s", e)
        return {"status": "unhealthy", "backend": settings.storage_backend, "error": str(e)}


def _check_redis() -> dict:
    if not settings.REDIS_URL:
        return {"status": "disabled"}
    if not is_redis_available():
        return {"status": "unavailable", "message": "Redis unreachable"}

    info = get_redis_client().info()
    return {
        "status": "healthy",
        "version": info.get("redis_version", "unknown"),
        "used_memory": info.get("used_memory_human", "unknown")
    }


def _check_scheduler() -> dict:
    if not settings.SCHEDULER_ENABLED:
        return {"status": "disabled"}

    scheduler = get_scheduler()
    if scheduler is not None and scheduler.running:
        return {"status": "healthy", "running": True, "active_jobs": len(scheduler.get_jobs())}
    return {"status": "unhealthy", "running": False}


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.

    Returns 200 if application is running.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness check: the process is up."""
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "pid": os.getpid()
    }


@router.get("/health/ready")
async def readiness_check(storage: Storage = Depends(get_storage)):
    """
    Readiness check.

    Ready when storage answers and, if configured, Redis answers.
    """
    checks = {
        "storage": _check_storage(storage),
        "redis": _check_redis()
    }

    ready = checks["storage"]["status"] == "healthy" and checks["redis"]["status"] in ("healthy", "disabled")

    body = {
        "status": "ready" if ready else "not_ready",
        "checks": checks,
        "timestamp": datetime.utcnow().isoformat()
    }

    if ready:
        return body
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)


@router.get("/health/detailed")
async def detailed_health_check(storage: Storage = Depends(get_storage)):
    """Component status plus host resource usage."""
    components = {
        "storage": _check_storage(storage),
        "redis": _check_redis(),
        "scheduler": _check_scheduler()
    }

    degraded = any(c["status"] in ("unhealthy", "unavailable") for c in components.values())

    try:
        system = {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": psutil.virtual_memory().percent,
            "disk_percent": psutil.disk_usage('/').percent,
            "process_memory_mb": round(psutil.Process(os.getpid()).memory_info().rss / (1024 * 1024), 2)
        }
    except psutil.Error as e:
        system = {"error": f"Unable to gather system metrics: {e}"}

    return {
        "status": "degraded" if degraded else "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "components": components,
        "system": system
    }


@router.get("/health/metrics")
async def application_metrics():
    """Request, cache and background job counters."""
    metrics = app_metrics.get_metrics()

    return {
        **metrics,
        "cache_hit_rate_percent": round(app_metrics.get_cache_hit_rate(), 2),
        "error_rate_percent": round(app_metrics.get_error_rate(), 2),
        "average_duration_ms": round(app_metrics.get_average_duration_ms(), 2)
    }
