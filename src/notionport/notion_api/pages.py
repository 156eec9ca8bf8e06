"""Page API wrapper for the Notion API.

notionport only ever creates pages: migrated content is written into a
fresh page, never merged into an existing one.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncNotionTransport


class AsyncPageAPI:
    """Asynchronous wrapper for the Notion ``/pages`` endpoint.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create a new page.

        Parameters
        ----------
        parent:
            The parent reference, e.g. ``{"page_id": "..."}`` or
            ``{"database_id": "..."}``.
        properties:
            Page properties.  A child page of a page needs at least
            ``{"title": [{"text": {"content": "..."}}]}``.
        children:
            Optional initial content blocks (at most 100).

        Returns
        -------
        dict
            The created page object, including ``id`` and ``url``.
        """
        body: dict[str, Any] = {
            "parent": parent,
            "properties": properties,
        }
        if children is not None:
            body["children"] = children
        return await self._transport.request("POST", "/pages", json=body)
