"""Error-tracking collaborators. Reporting never affects control flow."""

import logging
from typing import Dict, Optional, Protocol

import sentry_sdk

from ..config import config

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    def capture(self, exception: BaseException, tags: Dict[str, str]) -> None:
        ...


class LoggingErrorReporter:
    """Report captured exceptions to the log."""

    def capture(self, exception: BaseException, tags: Dict[str, str]) -> None:
        tag_text = ", ".join(f"{k}={v}" for k, v in sorted(tags.items()))
        logger.warning(f"Captured {type(exception).__name__}: {exception} [{tag_text}]")


class SentryErrorReporter:
    """Report captured exceptions to Sentry as warnings with tags."""

    def capture(self, exception: BaseException, tags: Dict[str, str]) -> None:
        try:
            with sentry_sdk.new_scope() as scope:
                scope.level = "warning"
                for key, value in tags.items():
                    scope.set_tag(key, value)
                sentry_sdk.capture_exception(exception)
        except Exception as e:
            logger.error(f"Failed to report exception to Sentry: {e}")


def init_error_tracking(dsn: Optional[str] = None, environment: Optional[str] = None) -> ErrorReporter:
    """Initialize Sentry when a DSN is configured and return the matching reporter."""
    dsn = dsn or config.SENTRY_DSN
    if not dsn:
        return LoggingErrorReporter()

    sentry_sdk.init(
        dsn=dsn,
        environment=environment or config.SENTRY_ENVIRONMENT,
        send_default_pii=False,
    )
    logger.info(f"Sentry initialized for environment: {environment or config.SENTRY_ENVIRONMENT}")
    return SentryErrorReporter()
