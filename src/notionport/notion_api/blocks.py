"""Block API wrapper for the Notion API."""

from __future__ import annotations

from typing import Any

from .transport import AsyncNotionTransport


def extract_block_ids(response: dict[str, Any]) -> list[str]:
    """Extract block IDs from an ``append_children`` API response.

    Parameters
    ----------
    response:
        The JSON dict returned by ``PATCH /blocks/{id}/children``.

    Returns
    -------
    list[str]
        The ``id`` of each first-level block in ``results``, in order.
    """
    results = response.get("results", [])
    return [r["id"] for r in results if "id" in r]


class AsyncBlockAPI:
    """Asynchronous wrapper for the Notion ``/blocks`` endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
    ) -> dict[str, Any]:
        """Append child blocks to a parent block or page.

        Parameters
        ----------
        block_id:
            The ID of the parent block (or page).
        children:
            Block objects to append.  Notion accepts at most 100 per call
            and at most two levels of nesting inside them.
        after:
            Optional ID of an existing child.  The new blocks are inserted
            immediately after it.  ``None`` appends at the end.

        Returns
        -------
        dict
            The API response listing the created first-level blocks.
        """
        body: dict[str, Any] = {"children": children}
        if after is not None:
            body["after"] = after
        return await self._transport.request(
            "PATCH", f"/blocks/{block_id}/children", json=body
        )
