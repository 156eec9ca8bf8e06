"""Configuration for notionport.

:class:`NotionportConfig` is a plain dataclass that captures every tuneable
knob: HTTP transport behaviour, the Notion API's structural limits that the
submission planner works around, the write-conflict retry policy, and the
migration fan-out width.  Instances are passed to
:class:`~notionport.async_client.AsyncNotionportClient` and to every
component it builds.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# Notion API limits
# ---------------------------------------------------------------------------

NOTION_MAX_CHILDREN_PER_CALL = 100
"""Maximum number of blocks in one ``append_children`` request."""

NOTION_RICH_TEXT_LIMIT = 2000
"""Maximum length of one rich-text span, in UTF-16 code units."""

DEFAULT_MAX_NESTING = 1
"""Levels of nested children the planner allows below a block in one call."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class NotionportConfig:
    """Complete configuration for a notionport client.

    Every parameter has a sensible default so that the only *required*
    value is ``token``.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL.  Override for proxy or testing environments.
    max_batch_size:
        Largest number of sibling blocks sent in one append call.
    max_nesting:
        How many levels of nested children a block may carry inside one
        write.  A block whose children go deeper is "deep": it is written
        without children and its children follow in their own writes.
    list_flatten_depth:
        List nesting level beyond which a list item's children are
        emitted as its following siblings instead of as its children.
    rich_text_limit:
        Maximum rich-text span length in UTF-16 code units.
    conflict_max_retries:
        How many times a write that got a ``409 Conflict`` is re-sent
        before the conflict becomes a terminal error.
    conflict_retry_delay:
        Fixed delay (seconds) between conflict retries.
    migrate_concurrency:
        Number of sibling pages migrated at the same time.
    retry_max_attempts:
        Maximum attempts per request for 429/5xx/network failures.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Add random jitter to backoff intervals.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~notionport.observability.MetricsHook` backend.
    debug_dump_ast:
        Write the normalised Markdown AST to *stderr* on each conversion.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = "2022-06-28"

    base_url: str = "https://api.notion.com/v1"

    # ── Structural limits ───────────────────────────────────────────────
    max_batch_size: int = NOTION_MAX_CHILDREN_PER_CALL

    max_nesting: int = DEFAULT_MAX_NESTING

    list_flatten_depth: int = 2

    rich_text_limit: int = NOTION_RICH_TEXT_LIMIT

    # ── Write conflicts ─────────────────────────────────────────────────
    conflict_max_retries: int = 5

    conflict_retry_delay: float = 0.2

    # ── Migration ───────────────────────────────────────────────────────
    migrate_concurrency: int = 3

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 5

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = True

    rate_limit_rps: float = 3.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_ast: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if not 1 <= self.max_batch_size <= NOTION_MAX_CHILDREN_PER_CALL:
            raise ValueError(
                f"max_batch_size must be between 1 and {NOTION_MAX_CHILDREN_PER_CALL}, "
                f"got {self.max_batch_size}"
            )
        if self.max_nesting < 0:
            raise ValueError(f"max_nesting must be >= 0, got {self.max_nesting}")
        if self.list_flatten_depth < 1:
            raise ValueError(f"list_flatten_depth must be >= 1, got {self.list_flatten_depth}")
        # Two units are needed to hold a single surrogate pair.
        if self.rich_text_limit < 2:
            raise ValueError(f"rich_text_limit must be >= 2, got {self.rich_text_limit}")
        if self.conflict_max_retries < 0:
            raise ValueError(f"conflict_max_retries must be >= 0, got {self.conflict_max_retries}")
        if self.conflict_retry_delay < 0:
            raise ValueError(f"conflict_retry_delay must be >= 0, got {self.conflict_retry_delay}")
        if self.migrate_concurrency < 1:
            raise ValueError(f"migrate_concurrency must be >= 1, got {self.migrate_concurrency}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionportConfig({', '.join(parts)})"
