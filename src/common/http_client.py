"""Shared HTTP helpers used by the remote repository adapter.

Encapsulates common request/timeout error handling so callers avoid
duplicating try/except blocks. Transport failures surface as
RepositoryError; HTTP status handling is left to the caller.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import RepositoryError

logger = logging.getLogger(__name__)

# Methods safe to repeat after a timeout or dropped connection
_RETRYABLE_METHODS = ("GET", "DELETE")


def safe_request(
    method: str,
    url: str,
    *,
    context: str,
    session: Optional[requests.Session] = None,
    **kwargs: Any,
) -> requests.Response:
    """Perform an HTTP request with consistent error handling and DEBUG traces.

    Idempotent methods are retried with exponential backoff on timeouts and
    connection errors; everything else is attempted once.

    Args:
        method: HTTP verb.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "packages").
        session: Optional session carrying auth headers.
        **kwargs: Passed through to requests.

    Returns:
        requests.Response: The HTTP response object.

    Raises:
        RepositoryError: When the request never produced a response.
    """
    method = method.upper()
    safe_target = safe_url(url)
    sender = session if session is not None else requests
    attempts = Constants.HTTP_RETRY_MAX if method in _RETRYABLE_METHODS else 1
    last_exception: Optional[str] = None

    for attempt in range(attempts):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action=method,
                        target=safe_target,
                        context=context,
                        attempt=attempt + 1,
                    ),
                )
            try:
                res = sender.request(method, url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
            except requests.Timeout:
                last_exception = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
                logger.warning("%s request timed out after %s seconds", context, Constants.REQUEST_TIMEOUT)
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.warning("%s connection error: %s", context, exc)
                continue
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action=method,
                        outcome="success",
                        status_code=res.status_code,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                        context=context,
                    ),
                )
            return res

    raise RepositoryError(
        f"{context}: {method} {safe_target} failed after {attempts} attempt(s): {last_exception}"
    )


def safe_get(url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """GET wrapper around safe_request."""
    return safe_request("GET", url, context=context, **kwargs)


def safe_post(url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """POST wrapper around safe_request."""
    return safe_request("POST", url, context=context, **kwargs)


def safe_patch(url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """PATCH wrapper around safe_request."""
    return safe_request("PATCH", url, context=context, **kwargs)


def safe_delete(url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """DELETE wrapper around safe_request."""
    return safe_request("DELETE", url, context=context, **kwargs)
