"""Logging helpers shared by registry, restore and CLI modules.

Structured fields are passed through ``extra=extra_context(...)`` so that
handlers and formatters can pick them up without changing message text.
"""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_KEYS = (
    "event",
    "component",
    "action",
    "outcome",
    "target",
    "duration_ms",
    "package_manager",
)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    The level comes from ``level`` when given, otherwise from the
    RESTOREPAD_LOG_LEVEL environment variable, defaulting to INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level_value, format=Constants.LOG_FORMAT)
    root.setLevel(level_value)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    None values are dropped; the well-known keys are always present so
    formatters can reference them safely.
    """
    context: Dict[str, Any] = {key: None for key in _CONTEXT_KEYS}
    context["package_manager"] = "nuget"
    context.update({key: value for key, value in fields.items() if value is not None})
    return context


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: str) -> str:
    """Strip credentials, query string and fragment from a URL for logging."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, host, parts.path, "", ""))


class Timer:
    """Context manager measuring elapsed wall time in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; live while the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
