"""Async HTTP transport for the Notion API.

Request lifecycle:

1. Acquire a token-bucket slot (await if needed).
2. Send the HTTP request with auth and version headers.
3. On ``2xx`` -- return the parsed JSON response.
4. On ``429`` -- honour ``Retry-After``, sleep, and retry.
5. On ``5xx`` / network error -- exponential backoff and retry.
6. On ``409`` -- raise :class:`NotionportConflictError` at once; write
   conflicts are retried by the write executor, not here.
7. On any other ``4xx`` -- raise the matching typed error immediately.
8. On max attempts exceeded -- raise :class:`NotionportRetryExhaustedError`.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from notionport.config import NotionportConfig
from notionport.errors import (
    NotionportAuthError,
    NotionportConflictError,
    NotionportNetworkError,
    NotionportNotFoundError,
    NotionportPermissionError,
    NotionportRetryExhaustedError,
    NotionportValidationError,
)
from notionport.observability import get_logger, resolve_metrics

from .rate_limit import AsyncTokenBucket
from .retries import compute_backoff, is_retryable_status, retry_reason, should_retry

log = get_logger("notionport.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the :class:`NotionportError` subclass matching a non-retryable
    4xx response.
    """
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    notion_message = body.get("message", response.text[:500])
    notion_code = body.get("code", "")
    where = f"{method} {path}"

    if status == 400:
        raise NotionportValidationError(
            message=f"Validation error on {where}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code, "body": body},
        )
    if status == 401:
        raise NotionportAuthError(
            message=f"Authentication failed on {where}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code},
        )
    if status == 403:
        raise NotionportPermissionError(
            message=f"Permission denied on {where}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code, "operation": where},
        )
    if status == 404:
        raise NotionportNotFoundError(
            message=f"Resource not found on {where}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code, "path": path},
        )
    if status == 409:
        raise NotionportConflictError(
            message=f"Conflict on {where}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code},
        )

    raise NotionportValidationError(
        message=f"Client error {status} on {where}: {notion_message}",
        context={"status_code": status, "notion_code": notion_code, "body": body},
    )


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncNotionTransport:
    """Asynchronous HTTP transport with auth, retry, and rate limiting.

    One transport (and so one token bucket) is shared by every branch of
    a migration.

    Parameters
    ----------
    config:
        A :class:`NotionportConfig` controlling all transport behaviour.
    """

    def __init__(self, config: NotionportConfig) -> None:
        self._config = config
        self._bucket = AsyncTokenBucket(rate_rps=config.rate_limit_rps, burst=10)
        self._metrics = resolve_metrics(config.metrics)

        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.notion_version,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    # -- public API --------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute an HTTP request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``PATCH``, ...).
        path:
            API path relative to ``base_url`` (e.g. ``/pages``).
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request` (``json=``,
            ``params=``, ``headers=``).

        Returns
        -------
        dict
            Parsed JSON response body (``{}`` for empty responses).

        Raises
        ------
        NotionportConflictError
            On 409 responses.
        NotionportAuthError
            On 401 responses.
        NotionportPermissionError
            On 403 responses.
        NotionportNotFoundError
            On 404 responses.
        NotionportValidationError
            On 400 and other non-retryable 4xx responses.
        NotionportNetworkError
            On a transport-level failure that may not be retried.
        NotionportRetryExhaustedError
            When every attempt got a retryable failure.
        """
        max_attempts = self._config.retry_max_attempts
        last_exception: Exception | None = None
        last_status: int | None = None
        tags = {"method": method, "path": path}

        for attempt in range(max_attempts):
            wait = await self._bucket.acquire()
            if wait > 0:
                self._metrics.timing("notionport.rate_limit_wait_ms", wait * 1000, tags=tags)

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exception = exc
                last_status = None
                await asyncio.sleep(self._network_backoff(method, path, exc, attempt))
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            last_status = response.status_code
            last_exception = None
            status_tags = {**tags, "status": str(response.status_code)}
            self._metrics.increment("notionport.requests_total", tags=status_tags)
            self._metrics.timing("notionport.request_duration_ms", elapsed_ms, tags=status_tags)

            if 200 <= response.status_code < 300:
                if response.status_code == 204 or not response.content:
                    return {}
                result: dict = response.json()
                return result

            if not is_retryable_status(response.status_code):
                _raise_for_status(response, method, path)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            retry_after: float | None = None
            if response.status_code == 429:
                retry_after = _parse_retry_after(response)
                self._metrics.increment("notionport.rate_limited_total", tags=tags)
                log.warning(
                    "Rate limited by Notion API",
                    extra={
                        "extra_fields": {
                            "op": "request",
                            "method": method,
                            "path": path,
                            "status_code": 429,
                            "retry_after": retry_after,
                            "attempt": attempt + 1,
                        }
                    },
                )

            delay = compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
                retry_after=retry_after,
            )
            self._metrics.increment(
                "notionport.retries_total",
                tags={**tags, "reason": retry_reason(response.status_code)},
            )
            await asyncio.sleep(delay)

        ctx: dict[str, Any] = {
            "attempts": max_attempts,
            "last_status_code": last_status,
        }
        last = f"last error: {last_exception}" if last_exception else f"last status: {last_status}"
        raise NotionportRetryExhaustedError(
            message=f"All {max_attempts} attempts exhausted for {method} {path} ({last})",
            context=ctx,
            cause=last_exception,
        )

    def _network_backoff(
        self,
        method: str,
        path: str,
        exc: Exception,
        attempt: int,
    ) -> float:
        """Return the delay before retrying a network failure.

        Raises :class:`NotionportNetworkError` when no retry is left.
        """
        self._metrics.increment(
            "notionport.requests_total",
            tags={"method": method, "path": path, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        if not should_retry(None, exc, attempt, self._config.retry_max_attempts):
            raise NotionportNetworkError(
                message=f"Network error on {method} {path}: {exc}",
                context={"url": path, "attempt": attempt + 1},
                cause=exc,
            ) from exc

        self._metrics.increment(
            "notionport.retries_total",
            tags={"method": method, "path": path, "reason": retry_reason(None)},
        )
        return compute_backoff(
            attempt,
            base=self._config.retry_base_delay,
            maximum=self._config.retry_max_delay,
            jitter=self._config.retry_jitter,
        )

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
