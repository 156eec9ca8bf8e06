"""Concurrent migration of a tree of source pages into Notion.

Each source page is one *branch*.  Siblings are migrated concurrently,
at most ``config.migrate_concurrency`` at a time; a collection's children
form a new level with its own limit, so a collection waiting on its
children never starves them of slots.

Within a branch everything is sequential: the page is created, then its
content is written by the submission planner in order.

A failing branch is recorded as a failed :class:`BranchOutcome` and does
not affect its siblings.
"""

from __future__ import annotations

import asyncio
from typing import Any

from notionport.config import NotionportConfig
from notionport.converter.rich_text import make_page_mention
from notionport.models import BranchOutcome, PageCreateResult, SourcePage
from notionport.observability import get_logger, resolve_metrics

from .remap import RemapTable

log = get_logger("notionport.migrate")


def make_link_block(page: PageCreateResult) -> dict:
    """Build a bulleted list item that links to *page* by mention."""
    return {
        "object": "block",
        "type": "bulleted_list_item",
        "bulleted_list_item": {
            "rich_text": [make_page_mention(page.page_id, page.title or page.url, page.url)],
            "color": "default",
        },
    }


class Migrator:
    """Migrate source pages under a Notion parent page.

    Parameters
    ----------
    client:
        An :class:`~notionport.async_client.AsyncNotionportClient` (or any
        object providing ``create_page``, ``create_page_with_markdown``
        and ``append_blocks`` coroutines).
    config:
        Supplies ``migrate_concurrency`` and the metrics hook.
    remap_table:
        Table of already migrated URLs.  A fresh one is used if omitted;
        pass one in to share it between several migrations.
    """

    def __init__(
        self,
        client: Any,
        config: NotionportConfig,
        remap_table: RemapTable | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._remap = remap_table if remap_table is not None else RemapTable()
        self._metrics = resolve_metrics(config.metrics)

    @property
    def remap_table(self) -> RemapTable:
        return self._remap

    async def migrate(self, pages: list[SourcePage], parent_id: str) -> list[BranchOutcome]:
        """Migrate *pages* (and all their descendants) under *parent_id*.

        Returns
        -------
        list[BranchOutcome]
            One outcome per source page, descendants included.  Each page's
            outcome is followed by those of its descendants; siblings
            appear in the order they finished.
        """
        return await self._migrate_level(pages, parent_id)

    async def _migrate_level(
        self,
        pages: list[SourcePage],
        parent_id: str,
    ) -> list[BranchOutcome]:
        semaphore = asyncio.Semaphore(self._config.migrate_concurrency)
        finished: list[BranchOutcome] = []

        async def run(page: SourcePage) -> None:
            async with semaphore:
                outcomes = await self._migrate_branch(page, parent_id)
            finished.extend(outcomes)

        await asyncio.gather(*(run(page) for page in pages))
        return finished

    async def _migrate_branch(
        self,
        page: SourcePage,
        parent_id: str,
    ) -> list[BranchOutcome]:
        log.info(
            "migrating page",
            extra={"extra_fields": {"source_id": page.id, "title": page.title}},
        )
        try:
            if page.is_collection:
                return await self._migrate_collection(page, parent_id)
            result = await self._migrate_item(page, parent_id)
        except Exception as exc:
            return [self._failed(page, exc)]

        self._metrics.increment("notionport.pages_migrated_total")
        return [BranchOutcome(source_id=page.id, ok=True, page=result)]

    async def _migrate_item(self, page: SourcePage, parent_id: str) -> PageCreateResult:
        markdown = self._remap.remap(page.content or "")
        result = await self._client.create_page_with_markdown(
            parent_id=parent_id,
            title=page.title,
            markdown=markdown,
        )
        self._remap.insert_if_absent(page.url, result.url)
        return result

    async def _migrate_collection(
        self,
        page: SourcePage,
        parent_id: str,
    ) -> list[BranchOutcome]:
        """Create the collection page, migrate its children, then list them.

        Failing to create the collection page fails the branch (raised to
        the caller).  Failing to write the link list marks the collection
        failed but keeps its children's outcomes.
        """
        created = await self._client.create_page(parent_id=parent_id, title=page.title)
        self._remap.insert_if_absent(page.url, created.url)

        descendants = await self._migrate_level(page.children, created.page_id)

        by_source = {o.source_id: o for o in descendants}
        links = [
            make_link_block(outcome.page)
            for child in page.children
            if (outcome := by_source.get(child.id)) is not None
            and outcome.ok
            and outcome.page is not None
        ]

        try:
            if links:
                await self._client.append_blocks(created.page_id, links)
        except Exception as exc:
            failed = self._failed(page, exc)
            failed.page = created
            return [failed, *descendants]

        self._metrics.increment("notionport.pages_migrated_total")
        own = BranchOutcome(source_id=page.id, ok=True, page=created)
        return [own, *descendants]

    def _failed(self, page: SourcePage, exc: Exception) -> BranchOutcome:
        self._metrics.increment("notionport.pages_failed_total")
        log.error(
            "page migration failed",
            extra={
                "extra_fields": {
                    "source_id": page.id,
                    "title": page.title,
                    "error": str(exc),
                }
            },
        )
        return BranchOutcome(source_id=page.id, ok=False, error=exc)
