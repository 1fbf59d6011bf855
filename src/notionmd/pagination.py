"""Cursor pagination helpers.

Notion list endpoints answer with ``results``, ``has_more`` and
``next_cursor``.  :func:`collect_paginated` drains such an endpoint into
one ordered list given a coroutine that fetches a single page.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from notionmd.models import ListPage
from notionmd.observability import get_logger

T = TypeVar("T")

log = get_logger("notionmd.pagination")

PageFetcher = Callable[[str | None], Awaitable[ListPage[T]]]


def list_page_from_response(data: dict[str, Any]) -> ListPage[dict[str, Any]]:
    """Wrap a raw Notion list response in a :class:`ListPage`."""
    return ListPage(
        items=list(data.get("results") or []),
        has_more=bool(data.get("has_more", False)),
        next_cursor=data.get("next_cursor") or None,
    )


async def collect_paginated(fetch: PageFetcher[T]) -> list[T]:
    """Call *fetch* until the listing is exhausted and return every item.

    *fetch* receives ``None`` for the first page and the previous page's
    ``next_cursor`` afterwards.  Items are concatenated in response order.
    The loop stops when ``has_more`` is false or when no cursor is
    supplied; the latter is logged and treated as the last page.  Errors
    raised by *fetch* propagate unchanged.
    """
    items: list[T] = []
    cursor: str | None = None

    while True:
        page = await fetch(cursor)
        items.extend(page.items)

        if not page.has_more:
            return items
        if not page.next_cursor:
            log.warning(
                "Listing reported more results without a cursor; stopping",
                extra={"extra_fields": {"op": "paginate", "collected": len(items)}},
            )
            return items
        cursor = page.next_cursor
