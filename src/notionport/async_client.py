"""Asynchronous Notion client.

:class:`AsyncNotionportClient` wires the Markdown converter, the
submission planner and the write executor to the HTTP transport.  Every
I/O method is an ``async def`` coroutine.

Usage::

    import asyncio
    from notionport import AsyncNotionportClient

    async def main():
        async with AsyncNotionportClient(token="secret_xxx") as client:
            result = await client.create_page_with_markdown(
                parent_id="<page_id>",
                title="My Page",
                markdown="# Hello\\n\\nWorld",
            )
            print(result.page_id)

    asyncio.run(main())
"""

from __future__ import annotations

from typing import Any

from notionport.config import NotionportConfig
from notionport.converter.md_to_notion import MarkdownToNotionConverter
from notionport.migrate import Migrator, RemapTable
from notionport.models import AppendResult, BranchOutcome, PageCreateResult, SourcePage
from notionport.notion_api.blocks import AsyncBlockAPI
from notionport.notion_api.pages import AsyncPageAPI
from notionport.notion_api.transport import AsyncNotionTransport
from notionport.submit import SubmissionPlanner, WriteExecutor


class AsyncNotionportClient:
    """Asynchronous Notion client.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`NotionportConfig`.
    """

    def __init__(self, token: str, **kwargs: Any) -> None:
        self._config = NotionportConfig(token=token, **kwargs)
        self._transport = AsyncNotionTransport(self._config)
        self._pages = AsyncPageAPI(self._transport)
        self._blocks = AsyncBlockAPI(self._transport)
        self._converter = MarkdownToNotionConverter(self._config)
        self._executor = WriteExecutor(self._pages, self._blocks, self._config)
        self._planner = SubmissionPlanner(self._executor, self._config)

    @property
    def config(self) -> NotionportConfig:
        return self._config

    # ------------------------------------------------------------------
    # Page creation
    # ------------------------------------------------------------------

    async def create_page(
        self,
        parent_id: str,
        title: str,
        properties: dict | None = None,
        parent_type: str = "page",
    ) -> PageCreateResult:
        """Create an empty page titled *title* under *parent_id*.

        Parameters
        ----------
        parent_id:
            ID of the parent page or database.
        title:
            Page title.
        properties:
            Optional extra page properties dict (merged with the generated
            title property).
        parent_type:
            ``"page"`` or ``"database"``.

        Returns
        -------
        PageCreateResult
        """
        if parent_type == "database":
            parent = {"database_id": parent_id}
        else:
            parent = {"page_id": parent_id}

        properties = dict(properties or {})
        properties.setdefault("title", [{"text": {"content": title}}])

        page_id, url = await self._executor.create_root(parent, properties)
        return PageCreateResult(page_id=page_id, url=url, title=title)

    async def create_page_with_markdown(
        self,
        parent_id: str,
        title: str,
        markdown: str,
        properties: dict | None = None,
        parent_type: str = "page",
    ) -> PageCreateResult:
        """Create a new Notion page from Markdown content.

        The Markdown is converted before anything is written, so a
        document that fails to convert creates no page.  The page is then
        created empty and the content appended by the submission planner.

        Returns
        -------
        PageCreateResult

        Raises
        ------
        NotionportEmptyDocumentError
            If *markdown* has no renderable content.
        """
        blocks = self._converter.convert(markdown)
        page = await self.create_page(
            parent_id, title, properties=properties, parent_type=parent_type,
        )
        ids = await self._planner.submit(page.page_id, blocks)
        page.blocks_created = len(ids)
        return page

    # ------------------------------------------------------------------
    # Append
    # ------------------------------------------------------------------

    async def append_markdown(self, target_id: str, markdown: str) -> AppendResult:
        """Convert *markdown* and append it to the page or block *target_id*."""
        blocks = self._converter.convert(markdown)
        return await self.append_blocks(target_id, blocks)

    async def append_blocks(self, target_id: str, blocks: list[dict]) -> AppendResult:
        """Append already rendered *blocks* (of any depth) to *target_id*."""
        ids = await self._planner.submit(target_id, blocks)
        return AppendResult(block_ids=ids)

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    async def migrate(
        self,
        pages: list[SourcePage],
        parent_id: str,
        remap_table: RemapTable | None = None,
    ) -> list[BranchOutcome]:
        """Migrate a tree of source pages under *parent_id*.

        See :class:`~notionport.migrate.Migrator`.  Pass *remap_table* to
        carry link rewrites over from an earlier migration.
        """
        migrator = Migrator(self, self._config, remap_table=remap_table)
        return await migrator.migrate(pages, parent_id)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncNotionportClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
