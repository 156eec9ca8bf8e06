"""Public data models for notionport.

This module contains the result types, the submission plan item, and the
source-page description consumed by the migrator.  All types are plain
dataclasses with no behaviour beyond structural equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Submission plan
# ---------------------------------------------------------------------------

@dataclass
class AppendOp:
    """One bounded write issued by the submission planner.

    Attributes
    ----------
    parent_id:
        The Notion block or page ID the blocks are appended under.
    after:
        ID of the sibling the blocks are inserted after.  ``None`` means
        the blocks go at the end of a child list that is still empty.
    blocks:
        Ordered sibling blocks, at most ``max_batch_size`` of them, none
        carrying children deeper than the per-call nesting budget.
    """

    parent_id: str
    after: str | None
    blocks: list[dict] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Migration input
# ---------------------------------------------------------------------------

@dataclass
class SourcePage:
    """A page in the source workspace being migrated.

    Attributes
    ----------
    id:
        Stable identifier of the page in the source system.
    url:
        The page's URL in the source system.  Other pages link to it by
        this URL; after migration the URL is rewritten to the Notion one.
    title:
        Page title, used for the Notion ``title`` property.
    content:
        Markdown body.  ``None`` for collections, which only group their
        children.
    children:
        Child pages (only meaningful for collections).
    """

    id: str
    url: str
    title: str
    content: str | None = None
    children: list[SourcePage] = field(default_factory=list)

    @property
    def is_collection(self) -> bool:
        return self.content is None


# ---------------------------------------------------------------------------
# Public result types (returned from client methods)
# ---------------------------------------------------------------------------

@dataclass
class PageCreateResult:
    """Result of :meth:`AsyncNotionportClient.create_page_with_markdown`.

    Attributes
    ----------
    page_id:
        The ID of the newly created Notion page.
    url:
        The URL of the newly created page.
    title:
        The title the page was created with.
    blocks_created:
        Top-level blocks written under the page.
    """

    page_id: str
    url: str
    title: str = ""
    blocks_created: int = 0


@dataclass
class AppendResult:
    """Result of :meth:`AsyncNotionportClient.append_markdown`.

    Attributes
    ----------
    block_ids:
        IDs assigned to the appended top-level blocks, in order.
    """

    block_ids: list[str] = field(default_factory=list)

    @property
    def blocks_appended(self) -> int:
        return len(self.block_ids)


@dataclass
class BranchOutcome:
    """Outcome of migrating one source page (one branch of the walk).

    Attributes
    ----------
    source_id:
        ID of the source page.
    ok:
        Whether the page was created.
    page:
        The created page when *ok* is true.
    error:
        The exception that aborted this branch when *ok* is false.
    """

    source_id: str
    ok: bool
    page: PageCreateResult | None = None
    error: Exception | None = None
