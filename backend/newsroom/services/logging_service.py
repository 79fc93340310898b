"""Structured logging and in-process application metrics."""

import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from newsroom.config import settings


def configure_logging(level: Optional[str] = None):
    """Configure root logging for module loggers created with logging.getLogger(__name__)."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line, merging the record's context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "environment": settings.ENVIRONMENT
        }
        entry.update(getattr(record, "context", None) or {})

        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    JSON logger for request audit lines and lifecycle events.

    Keyword arguments passed to any level method end up as top-level keys
    of the emitted JSON object.
    """

    def __init__(self, name: str, log_file: Optional[str] = None, level: Optional[str] = None):
        """
        Args:
            name: Logger name
            log_file: Optional file that receives the same JSON lines
            level: Log level name, LOG_LEVEL by default
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))
        self.logger.propagate = False

        # Re-importing must not stack handlers
        if not self.logger.handlers:
            handlers = [logging.StreamHandler()]
            if log_file:
                handlers.append(logging.FileHandler(log_file))

            for handler in handlers:
                handler.setFormatter(JsonFormatter())
                self.logger.addHandler(handler)

    def log(self, level: int, message: str, exc_info=False, **context):
        self.logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def debug(self, message: str, **context):
        self.log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self.log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self.log(logging.WARNING, message, **context)

    def error(self, message: str, **context):
        self.log(logging.ERROR, message, **context)

    def exception(self, message: str, **context):
        """Log at ERROR with the active exception's traceback attached."""
        self.log(logging.ERROR, message, exc_info=True, **context)

class ApplicationMetrics:
    """
    Track application metrics for monitoring.

    Stores metrics in memory for the health check endpoints.
    """

    def __init__(self):
        self.start_time = datetime.utcnow()
        self.reset()

    def reset(self):
        """Zero every counter."""
        self.metrics = {
            "requests": {
                "total": 0,
                "success": 0,
                "error": 0,
                "total_duration_ms": 0.0,
                "by_endpoint": {}
            },
            "background_jobs": {
                "total_runs": 0,
                "successful_runs": 0,
                "failed_runs": 0,
                "by_job": {}
            },
            "cache": {
                "hits": 0,
                "misses": 0
            },
            "rate_limit": {
                "rejected": 0
            },
            "uptime_seconds": 0,
            "last_updated": datetime.utcnow().isoformat()
        }

    def increment_request(self, endpoint: str, success: bool = True, duration_ms: float = 0.0):
        """
        Increment request counter.

        Args:
            endpoint: "METHOD /path" key
            success: Whether the response status was below 400
            duration_ms: Time spent handling the request
        """
        requests = self.metrics["requests"]
        requests["total"] += 1
        requests["total_duration_ms"] += duration_ms
        outcome = "success" if success else "error"
        requests[outcome] += 1

        by_endpoint = requests["by_endpoint"].setdefault(endpoint, {"total": 0, "success": 0, "error": 0})
        by_endpoint["total"] += 1
        by_endpoint[outcome] += 1

        self._update_timestamp()

    def increment_background_job(self, job: str, success: bool = True):
        """Count a background job run."""
        jobs = self.metrics["background_jobs"]
        jobs["total_runs"] += 1
        jobs["successful_runs" if success else "failed_runs"] += 1

        by_job = jobs["by_job"].setdefault(job, {"success": 0, "failed": 0})
        by_job["success" if success else "failed"] += 1

        self._update_timestamp()

    def increment_cache(self, hit: bool = True):
        """Count a cache hit or miss."""
        self.metrics["cache"]["hits" if hit else "misses"] += 1
        self._update_timestamp()

    def increment_rate_limited(self):
        """Count a request rejected by the rate limiter."""
        self.metrics["rate_limit"]["rejected"] += 1
        self._update_timestamp()

    def _update_timestamp(self):
        """Update last_updated timestamp and uptime."""
        self.metrics["last_updated"] = datetime.utcnow().isoformat()
        self.metrics["uptime_seconds"] = (datetime.utcnow() - self.start_time).total_seconds()

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics."""
        self._update_timestamp()
        return self.metrics

    def get_cache_hit_rate(self) -> float:
        """Cache hit rate as a percentage."""
        total = self.metrics["cache"]["hits"] + self.metrics["cache"]["misses"]
        if total == 0:
            return 0.0

        return (self.metrics["cache"]["hits"] / total) * 100

    def get_error_rate(self) -> float:
        """Request error rate as a percentage."""
        total = self.metrics["requests"]["total"]
        if total == 0:
            return 0.0

        return (self.metrics["requests"]["error"] / total) * 100

    def get_average_duration_ms(self) -> float:
        total = self.metrics["requests"]["total"]
        if total == 0:
            return 0.0

        return self.metrics["requests"]["total_duration_ms"] / total


# Global instances
app_logger = StructuredLogger("newsroom")
app_metrics = ApplicationMetrics()
