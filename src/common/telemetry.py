"""Out-of-band error reporting for background search and restore attempts."""
from __future__ import annotations

import logging
from typing import Protocol

from common.logging_utils import extra_context

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """Receives exceptions that were swallowed to keep a session alive."""

    def report_error(self, exc: BaseException) -> None:
        """Record ``exc``; must not raise."""


class LoggingErrorReporter:
    """Default reporter: writes the exception and traceback to the log."""

    def report_error(self, exc: BaseException) -> None:
        logger.error(
            "Unexpected error: %s",
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
            extra=extra_context(
                event="anomaly",
                component="telemetry",
                action="report_error",
                outcome=type(exc).__name__,
            ),
        )
