"""Metrics hook protocol and no-op default implementation.

notionport emits counters and timings at the points that matter for a
long-running import: every HTTP request, every retry, every block written,
every write conflict, and every migrated page.  The default
:class:`NoopMetricsHook` discards them; supply any object satisfying
:class:`MetricsHook` through ``NotionportConfig(metrics=...)`` to route
them to StatsD, Prometheus, or a test spy.

Emitted metric names:

* ``notionport.requests_total``         -- counter
* ``notionport.retries_total``          -- counter
* ``notionport.rate_limited_total``     -- counter
* ``notionport.request_duration_ms``    -- timing
* ``notionport.rate_limit_wait_ms``     -- timing
* ``notionport.writes_total``           -- counter
* ``notionport.conflicts_total``        -- counter
* ``notionport.blocks_created_total``   -- counter
* ``notionport.pages_migrated_total``   -- counter
* ``notionport.pages_failed_total``     -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* is an optional flat ``str -> str`` mapping; backends translate
    it into whatever labelling scheme they use.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default backend that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(hook: object | None) -> MetricsHook:
    """Return *hook*, or a :class:`NoopMetricsHook` when it is ``None``."""
    return hook if hook is not None else NoopMetricsHook()  # type: ignore[return-value]
