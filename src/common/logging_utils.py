"""Centralized logging helpers.

Every record goes to the diagnostic log file at DEBUG level. The console
handler only shows INFO lines when running verbose, otherwise warnings and
errors. Structured DEBUG traces carry their fields through ``extra=``.
"""
from __future__ import annotations

import logging
import os
import sys
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from constants import Constants

_CONSOLE_HANDLER_NAME = "classpkg-console"
_FILE_HANDLER_NAME = "classpkg-file"


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    verbose: bool = False,
) -> None:
    """Install the console and diagnostic-log handlers on the root logger.

    Args:
        level: Console level name; falls back to CLASSPKG_LOG_LEVEL, then
            INFO when verbose or WARNING otherwise.
        log_file: Diagnostic log path. None disables the file handler.
        verbose: Whether descriptive INFO lines reach the console.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() in (_CONSOLE_HANDLER_NAME, _FILE_HANDLER_NAME):
            root.removeHandler(handler)
            handler.close()

    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "").upper()
    if level_name:
        console_level = getattr(logging, level_name, logging.INFO)
    else:
        console_level = logging.INFO if verbose else logging.WARNING

    console = logging.StreamHandler(sys.stderr)
    console.set_name(_CONSOLE_HANDLER_NAME)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.set_name(_FILE_HANDLER_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(console_level)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from this logger would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    None values are dropped so records only carry populated fields.
    """
    return {k: v for k, v in fields.items() if v is not None}


def safe_url(url: str) -> str:
    """Strip credentials and query strings from a URL before logging it."""
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if parts.port:
            host = f"{host}:{parts.port}"
        return urlunsplit((parts.scheme, host, parts.path, "", ""))
    except ValueError:
        return "<unparseable url>"


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, up to now if the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
