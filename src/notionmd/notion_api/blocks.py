"""Block API wrapper.

Only the read side is needed: listing one page of a block's children.
Draining the cursor chain is left to
:func:`notionmd.pagination.collect_paginated`.
"""

from __future__ import annotations

from typing import Any

from notionmd.models import ListPage
from notionmd.pagination import list_page_from_response

from .transport import AsyncNotionTransport


class AsyncBlockAPI:
    """Async wrapper for ``/blocks`` endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport`.
    page_size:
        ``page_size`` query parameter for listing calls.
    """

    def __init__(self, transport: AsyncNotionTransport, page_size: int = 100) -> None:
        self._transport = transport
        self._page_size = page_size

    async def list_children(
        self,
        block_id: str,
        start_cursor: str | None = None,
    ) -> ListPage[dict[str, Any]]:
        """Fetch one page of the direct children of *block_id*.

        Parameters
        ----------
        block_id:
            UUID of the parent block or page.
        start_cursor:
            ``next_cursor`` of the previous page, or ``None`` for the first.

        Returns
        -------
        ListPage
            Raw block objects, possibly including partial records.
        """
        params: dict[str, Any] = {"page_size": self._page_size}
        if start_cursor is not None:
            params["start_cursor"] = start_cursor
        data = await self._transport.request(
            "GET", f"/blocks/{block_id}/children", params=params
        )
        return list_page_from_response(data)
