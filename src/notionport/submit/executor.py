"""Write executor: perform one bounded write, retrying write conflicts.

Notion answers ``409 Conflict`` when two writes touch the same parent at
nearly the same moment.  The conflict is transient, so the executor
re-sends the identical request after a short fixed delay.  Re-sending is
safe: a request that was rejected with 409 created nothing, so the
retried append cannot duplicate content.

Every other error propagates on the first occurrence.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from notionport.config import NotionportConfig
from notionport.errors import NotionportConflictError
from notionport.models import AppendOp
from notionport.notion_api.blocks import extract_block_ids
from notionport.observability import get_logger, resolve_metrics

log = get_logger("notionport.executor")

T = TypeVar("T")


class WriteExecutor:
    """Execute create-root and append-children writes.

    Parameters
    ----------
    page_api:
        An :class:`~notionport.notion_api.pages.AsyncPageAPI` (or any
        object with a compatible ``create`` coroutine).
    block_api:
        An :class:`~notionport.notion_api.blocks.AsyncBlockAPI` (or any
        object with a compatible ``append_children`` coroutine).
    config:
        Supplies ``conflict_max_retries`` and ``conflict_retry_delay``.
    """

    def __init__(self, page_api: Any, block_api: Any, config: NotionportConfig) -> None:
        self._pages = page_api
        self._blocks = block_api
        self._config = config
        self._metrics = resolve_metrics(config.metrics)

    async def create_root(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
    ) -> tuple[str, str]:
        """Create an empty page and return its ``(id, url)``."""
        page = await self._with_conflict_retry(
            "create_root",
            lambda: self._pages.create(parent=parent, properties=properties),
            {"parent": parent},
        )
        return page["id"], page.get("url", "")

    async def append(self, op: AppendOp) -> list[str]:
        """Append ``op.blocks`` under ``op.parent_id`` after ``op.after``.

        Returns
        -------
        list[str]
            The IDs Notion assigned to the appended blocks, in order.  An
            empty batch returns ``[]`` without calling the API.
        """
        if not op.blocks:
            return []

        response = await self._with_conflict_retry(
            "append",
            lambda: self._blocks.append_children(op.parent_id, op.blocks, after=op.after),
            {"parent_id": op.parent_id, "after": op.after, "blocks": len(op.blocks)},
        )
        return extract_block_ids(response)

    async def _with_conflict_retry(
        self,
        op_name: str,
        call: Callable[[], Awaitable[T]],
        context: dict[str, Any],
    ) -> T:
        retries = self._config.conflict_max_retries
        delay = self._config.conflict_retry_delay

        attempt = 0
        while True:
            attempt += 1
            try:
                result = await call()
            except NotionportConflictError as exc:
                self._metrics.increment("notionport.conflicts_total", tags={"op": op_name})
                if attempt > retries:
                    raise NotionportConflictError(
                        message=f"{op_name} still conflicting after {attempt} attempts",
                        context={**exc.context, **context, "attempts": attempt},
                        cause=exc,
                    ) from exc
                log.info(
                    "write conflict, retrying",
                    extra={
                        "extra_fields": {"op": op_name, "attempt": attempt, **context},
                    },
                )
                await asyncio.sleep(delay)
                continue

            self._metrics.increment("notionport.writes_total", tags={"op": op_name})
            return result
