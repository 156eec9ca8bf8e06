"""Retry decisions and backoff for rate-limited and failing requests.

Pure functions used by the transport:

* :func:`should_retry` -- whether a failed attempt may be repeated.
* :func:`retry_reason` -- the metrics tag for a retried status.
* :func:`compute_backoff` -- how long to wait before the next attempt.

Write conflicts (``409``) are deliberately absent here: the transport
raises them at once and the write executor applies its own fixed-delay
retry policy to them.
"""

from __future__ import annotations

import random

import httpx

# HTTP status codes that are safe to retry at the transport level.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Network-level exceptions that warrant a retry.
_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def is_retryable_status(status_code: int) -> bool:
    return status_code in _RETRYABLE_STATUSES


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status of the response, or ``None`` when no response arrived.
    exception:
        The exception raised while sending, or ``None``.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts, including the first.
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if status_code is not None:
        return is_retryable_status(status_code)

    return False


def retry_reason(status_code: int | None) -> str:
    """Return the ``reason`` tag recorded with a retry."""
    if status_code is None:
        return "network_error"
    if status_code == 429:
        return "rate_limited"
    return "server_error"


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 60.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Compute the delay in seconds before the next attempt.

    A server-provided ``Retry-After`` value wins.  Otherwise the delay is
    ``base * 2**attempt`` capped at *maximum*.  With *jitter* the delay is
    scaled to a random value between 50 % and 100 % of itself.
    """
    if retry_after is not None:
        delay = retry_after
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay
