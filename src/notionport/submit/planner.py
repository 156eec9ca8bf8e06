"""Submission planner: write an arbitrarily deep block tree to Notion.

One ``append_children`` call accepts at most 100 blocks, and the blocks
in it may only carry a limited depth of nested children.  The planner
walks the rendered block sequence once and cuts it into legal writes:

1. Take the next pending block.
2. If it is *deep* (see :func:`is_deep`) or *oversize* (see
   :func:`is_oversize`), strip its children, add the stripped block to the
   current batch and flush the batch.  The last ID Notion returns belongs
   to the stripped block; its children are then written under that ID as
   a fresh child list, before any later sibling.  A table cannot be created
   without rows, so it keeps its first ``max_batch_size`` rows inline and
   only the rest are appended under its ID.
3. Otherwise add the block, shallow children and all, to the batch.
4. Flush whenever the batch reaches ``max_batch_size``.
5. Flush what is left when no block is pending.

Every flush inserts after the last ID the previous flush returned for the
same parent (the *anchor*), so splitting never reorders siblings.

The walk keeps an explicit stack of frames rather than recursing, so the
depth of the input tree does not bound the Python call stack.
"""

from __future__ import annotations

import copy
from collections import deque
from dataclasses import dataclass, field

from notionport.config import NotionportConfig
from notionport.errors import NotionportSubmissionError
from notionport.models import AppendOp
from notionport.observability import get_logger, resolve_metrics

log = get_logger("notionport.planner")


# ---------------------------------------------------------------------------
# Block helpers
# ---------------------------------------------------------------------------

def block_children(block: dict) -> list[dict]:
    """Return the nested children of a Notion block dict (``[]`` if none)."""
    body = block.get(block.get("type", ""))
    if not isinstance(body, dict):
        return []
    return body.get("children") or []


def is_deep(block: dict, nesting: int = 0, max_nesting: int = 1) -> bool:
    """Whether *block* carries more nested levels than one write may hold.

    A block at level *nesting* with children is deep once *nesting* has
    reached *max_nesting*; below that it is deep if any child is.  With
    the default budget of 1 a block is deep exactly when it has
    grandchildren.
    """
    children = block_children(block)
    if not children:
        return False
    if nesting >= max_nesting:
        return True
    return any(is_deep(child, nesting + 1, max_nesting) for child in children)


def is_oversize(block: dict, max_batch: int = 100) -> bool:
    """Whether *block* or any descendant has more than *max_batch* children."""
    children = block_children(block)
    if len(children) > max_batch:
        return True
    return any(is_oversize(child, max_batch) for child in children)


def split_block_from_children(block: dict, keep: int = 0) -> tuple[dict, list[dict]]:
    """Return a copy of *block* holding only its first *keep* children,
    and the children left over.
    """
    block_type = block.get("type", "")
    children = block_children(block)
    stripped = copy.copy(block)
    body = dict(stripped.get(block_type) or {})
    if keep > 0 and children:
        body["children"] = list(children[:keep])
    else:
        body.pop("children", None)
    stripped[block_type] = body
    return stripped, list(children[keep:])


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

@dataclass
class _Frame:
    """One child list being written under *parent_id*."""

    parent_id: str
    after: str | None
    pending: deque[dict]
    batch: list[dict] = field(default_factory=list)
    assigned: list[str] | None = None


class SubmissionPlanner:
    """Cut a block tree into bounded writes and run them in order.

    Parameters
    ----------
    executor:
        A :class:`~notionport.submit.executor.WriteExecutor` (or any
        object with a compatible ``append`` coroutine).
    config:
        Supplies ``max_batch_size`` and ``max_nesting``.
    """

    def __init__(self, executor, config: NotionportConfig) -> None:  # type: ignore[no-untyped-def]
        self._executor = executor
        self._config = config
        self._metrics = resolve_metrics(config.metrics)

    async def submit(self, parent_id: str, blocks: list[dict]) -> list[str]:
        """Write *blocks* (with all their descendants) under *parent_id*.

        Writes are issued strictly one after another: each may depend on
        the IDs returned by the one before.

        Returns
        -------
        list[str]
            The IDs assigned to the top-level *blocks*, in order.

        Raises
        ------
        NotionportSubmissionError
            If a write returns no ID for a block whose children still have
            to be attached to it.
        """
        root = _Frame(parent_id, None, deque(blocks), assigned=[])
        stack = [root]
        max_batch = self._config.max_batch_size
        max_nesting = self._config.max_nesting

        while stack:
            frame = stack[-1]

            if not frame.pending:
                await self._flush(frame)
                stack.pop()
                continue

            block = frame.pending.popleft()

            if is_deep(block, max_nesting=max_nesting) or is_oversize(block, max_batch):
                # Table rows are not deep, so a table only lands here oversize.
                keep = max_batch if block.get("type") == "table" else 0
                stripped, children = split_block_from_children(block, keep=keep)
                frame.batch.append(stripped)
                batch_size = len(frame.batch)
                ids = await self._flush(frame)
                if not ids:
                    raise NotionportSubmissionError(
                        "Write returned no block id for a block with pending children",
                        context={"parent_id": frame.parent_id, "batch_size": batch_size},
                    )
                # Children go first so they land before the next sibling's write.
                stack.append(_Frame(ids[-1], None, deque(children)))
                continue

            frame.batch.append(block)
            if len(frame.batch) >= max_batch:
                await self._flush(frame)

        return root.assigned or []

    async def _flush(self, frame: _Frame) -> list[str]:
        if not frame.batch:
            return []

        op = AppendOp(parent_id=frame.parent_id, after=frame.after, blocks=frame.batch)
        frame.batch = []
        ids = await self._executor.append(op)

        log.debug(
            "batch flushed",
            extra={
                "extra_fields": {
                    "op": "append",
                    "parent_id": op.parent_id,
                    "after": op.after,
                    "blocks": len(op.blocks),
                    "assigned": len(ids),
                }
            },
        )
        self._metrics.increment("notionport.blocks_created_total", len(op.blocks))

        if ids:
            frame.after = ids[-1]
        if frame.assigned is not None:
            frame.assigned.extend(ids)
        return ids
