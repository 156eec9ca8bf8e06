"""notionport: Markdown to Notion conversion and page migration.

Public re-exports
-----------------

* **Client:** :class:`AsyncNotionportClient`
* **Configuration:** :class:`NotionportConfig`
* **Errors:** Every :class:`NotionportError` subclass and :class:`ErrorCode`
* **Models:** Result dataclasses and migration input types
* **Migration:** :class:`Migrator` and :class:`RemapTable`

Usage::

    from notionport import AsyncNotionportClient

    async with AsyncNotionportClient(token="secret_xxx") as client:
        result = await client.create_page_with_markdown(
            parent_id="<page_id>",
            title="My Page",
            markdown="# Hello\\n\\nWorld",
        )
"""

from __future__ import annotations

# ── Client ─────────────────────────────────────────────────────────────
from notionport.async_client import AsyncNotionportClient

# ── Configuration ───────────────────────────────────────────────────────
from notionport.config import NotionportConfig

# ── Converter ───────────────────────────────────────────────────────────
from notionport.converter import MarkdownToNotionConverter

# ── Errors ──────────────────────────────────────────────────────────────
from notionport.errors import (
    ErrorCode,
    NotionportAuthError,
    NotionportConflictError,
    NotionportConversionError,
    NotionportEmptyDocumentError,
    NotionportError,
    NotionportNetworkError,
    NotionportNotFoundError,
    NotionportPermissionError,
    NotionportRetryExhaustedError,
    NotionportSubmissionError,
    NotionportValidationError,
)

# ── Migration ───────────────────────────────────────────────────────────
from notionport.migrate import Migrator, RemapTable

# ── Models ──────────────────────────────────────────────────────────────
from notionport.models import (
    AppendOp,
    AppendResult,
    BranchOutcome,
    PageCreateResult,
    SourcePage,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Client
    "AsyncNotionportClient",
    # Configuration
    "NotionportConfig",
    # Converter
    "MarkdownToNotionConverter",
    # Error base + code enum
    "NotionportError",
    "ErrorCode",
    # API / transport errors
    "NotionportValidationError",
    "NotionportAuthError",
    "NotionportPermissionError",
    "NotionportNotFoundError",
    "NotionportConflictError",
    "NotionportRetryExhaustedError",
    "NotionportNetworkError",
    # Conversion errors
    "NotionportConversionError",
    "NotionportEmptyDocumentError",
    # Submission errors
    "NotionportSubmissionError",
    # Migration
    "Migrator",
    "RemapTable",
    # Models
    "AppendOp",
    "AppendResult",
    "BranchOutcome",
    "PageCreateResult",
    "SourcePage",
]
