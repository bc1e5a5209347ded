"""Centralized logging helpers.

Provides one place to configure the root logger, build structured ``extra``
payloads for DEBUG traces, and scrub credentials out of URLs before they are
written to a log.
"""
from __future__ import annotations

import logging
import os
import re
import sys
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
    "package",
    "status_code",
    "duration_ms",
    "count",
)

_SECRET_PATTERN = re.compile(r"(?i)(token|password|secret|key)=([^&\s]+)")


def configure_logging() -> None:
    """Configure the root logger once, honoring SELFUPDATE_LOG_LEVEL."""
    level_name = os.environ.get(Constants.LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would actually be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**kwargs: Any) -> Dict[str, Any]:
    """Build a logging ``extra`` dict, dropping unset values.

    Known keys are passed through as-is; anything else is namespaced with
    ``ctx_`` so it cannot clash with LogRecord attributes.
    """
    ctx: Dict[str, Any] = {}
    for key, value in kwargs.items():
        if value is None:
            continue
        if key in _CONTEXT_KEYS:
            ctx[key] = value
        else:
            ctx[f"ctx_{key}"] = value
    return ctx


def redact(text: Optional[str]) -> str:
    """Mask query-string style secrets in free text."""
    if not text:
        return ""
    return _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}=***", text)


def safe_url(url: Optional[str]) -> str:
    """Strip userinfo and secret query values from a URL."""
    if not url:
        return ""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urllib.parse.urlunsplit(
        (parts.scheme, netloc, parts.path, redact(parts.query), "")
    )


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; usable both inside and after the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
