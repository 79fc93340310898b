"""APScheduler service for background maintenance jobs."""

import logging
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError

from newsroom.config import settings
from newsroom.database import SessionLocal
from newsroom.services.auth_service import AuthService
from newsroom.services.logging_service import app_metrics

logger = logging.getLogger(__name__)

SESSION_CLEANUP_JOB_ID = "session_cleanup"

# Global scheduler instance
scheduler: Optional[BackgroundScheduler] = None


def get_scheduler() -> Optional[BackgroundScheduler]:
    """Get the global scheduler instance."""
    return scheduler


def session_cleanup_job() -> int:
    """Delete expired sessions from the configured storage backend."""
    from newsroom.storage import SQLStorage, memory_storage

    db = None
    try:
        if settings.storage_backend == "memory":
            storage = memory_storage
        else:
            db = SessionLocal()
            storage = SQLStorage(db)

        removed = AuthService.cleanup_expired_sessions(storage)
        app_metrics.increment_background_job(SESSION_CLEANUP_JOB_ID, success=True)
        return removed

    except Exception:
        logger.exception("Session cleanup job failed")
        app_metrics.increment_background_job(SESSION_CLEANUP_JOB_ID, success=False)
        return 0
    finally:
        if db is not None:
            db.close()


def start_scheduler(interval_minutes: Optional[int] = None) -> BackgroundScheduler:
    """Initialize and start the APScheduler with the session cleanup job."""
    global scheduler

    if scheduler is not None:
        logger.info("Scheduler already running")
        return scheduler

    scheduler = BackgroundScheduler(
        executors={'default': ThreadPoolExecutor(2)},
        job_defaults={'coalesce': True, 'max_instances': 1},
        timezone='UTC'
    )

    scheduler.add_job(
        func=session_cleanup_job,
        trigger='interval',
        minutes=interval_minutes or settings.SESSION_CLEANUP_INTERVAL_MINUTES,
        id=SESSION_CLEANUP_JOB_ID,
        replace_existing=True
    )

    scheduler.start()
    logger.info("APScheduler started successfully")
    return scheduler


def shutdown_scheduler():
    """Shutdown the APScheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("APScheduler shut down successfully")


def get_job_status(job_id: str = SESSION_CLEANUP_JOB_ID) -> Dict[str, Any]:
    """
    Get status of a scheduled job.

    Returns:
        Job status dictionary
    """
    if scheduler is None:
        return {"exists": False, "error": "Scheduler not running"}

    job = scheduler.get_job(job_id)
    if not job:
        return {"exists": False}

    return {
        "exists": True,
        "job_id": job.id,
        "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        "trigger": str(job.trigger)
    }


def remove_job(job_id: str) -> bool:
    """Remove a scheduled job. Returns False if it did not exist."""
    if scheduler is None:
        return False

    try:
        scheduler.remove_job(job_id)
        return True
    except JobLookupError:
        return False
