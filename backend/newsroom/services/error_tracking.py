"""
Error Tracking Service

Reports unhandled API errors to Sentry when SENTRY_DSN is configured.
Without a DSN errors are only logged.
"""

import logging
from typing import Optional, Dict, Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from newsroom.config import settings

logger = logging.getLogger(__name__)

# Events from these paths are dropped
IGNORED_PATHS = ("/health", "/api/health")

# Exceptions the API maps to 4xx responses
EXPECTED_ERRORS = ("HTTPException", "RecordNotFound", "DuplicateRecord", "RequestValidationError")


class ErrorTracker:
    """Sentry client wrapper used by the API's catch-all exception handler."""

    def __init__(self, dsn: Optional[str] = None):
        dsn = dsn if dsn is not None else settings.SENTRY_DSN
        self.sentry_enabled = bool(dsn) and self._initialize_sentry(dsn)

    def _initialize_sentry(self, dsn: str) -> bool:
        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=settings.ENVIRONMENT,
                release=f"newsroom@{settings.APP_VERSION}",
                traces_sample_rate=0.1,
                integrations=[FastApiIntegration(), SqlalchemyIntegration()],
                before_send=self._filter_before_send,
                send_default_pii=False
            )
        except Exception as e:
            logger.error("Sentry disabled, init failed: %s", e)
            return False

        logger.info("Sentry error tracking enabled for %s", settings.ENVIRONMENT)
        return True

    @staticmethod
    def _filter_before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Drop health check traffic and errors the API already answers with a client status."""
        url = event.get("request", {}).get("url", "")
        if any(path in url for path in IGNORED_PATHS):
            return None

        raised = [value.get("type", "") for value in event.get("exception", {}).get("values", [])]
        if any(name in EXPECTED_ERRORS for name in raised):
            return None

        return event

    def capture_exception(
        self,
        exception: Exception,
        tags: Optional[Dict[str, str]] = None,
        user_id: Optional[int] = None
    ):
        """Log the exception and forward it to Sentry with request tags."""
        logger.error("Unhandled %s: %s", type(exception).__name__, exception, exc_info=exception)

        if not self.sentry_enabled:
            return

        with sentry_sdk.new_scope() as scope:
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            if user_id is not None:
                scope.set_user({"id": str(user_id)})
            sentry_sdk.capture_exception(exception)


error_tracker = ErrorTracker()


def capture_exception(exception: Exception, **kwargs):
    error_tracker.capture_exception(exception, **kwargs)
