"""notionport.notion_api -- Notion API transport and endpoint wrappers.

This sub-package provides:

* :mod:`.rate_limit` -- Async token bucket for request pacing.
* :mod:`.retries` -- Retry decision logic and exponential backoff.
* :mod:`.transport` -- HTTP transport with auth, retries, and rate limiting.
* :mod:`.pages` -- Page creation.
* :mod:`.blocks` -- Appending child blocks.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI, extract_block_ids
from .pages import AsyncPageAPI
from .rate_limit import AsyncTokenBucket
from .retries import compute_backoff, should_retry
from .transport import AsyncNotionTransport

__all__ = [
    "AsyncBlockAPI",
    "AsyncNotionTransport",
    "AsyncPageAPI",
    "AsyncTokenBucket",
    "compute_backoff",
    "extract_block_ids",
    "should_retry",
]
