"""Recursive block-tree fetching.

:class:`BlockTreeFetcher` materializes the complete block tree below a
page or block.  Each parent's children are drained through its cursor
chain sequentially; the subtrees of siblings are then expanded
concurrently.  A failing subtree cancels its still-running siblings and
the error propagates to the caller, so a partially fetched tree is never
returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from notionmd.converter.parse import is_full_block, parse_block
from notionmd.models import Block, BlockType, ListPage
from notionmd.observability import MetricsHook, NoopMetricsHook, get_logger
from notionmd.pagination import collect_paginated

log = get_logger("notionmd.tree")

ListChildren = Callable[[str, str | None], Awaitable[ListPage[dict[str, Any]]]]

# References to other pages or databases; their content is not part of this tree.
_CONTAINER_REFERENCES = frozenset({BlockType.CHILD_PAGE, BlockType.CHILD_DATABASE})


async def gather_or_cancel(aws: list[Awaitable[Any]]) -> list[Any]:
    """Run *aws* concurrently; on the first failure cancel the rest and re-raise.

    Cancelling the awaiting task also cancels every child task.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # Let cancelled tasks unwind before the error leaves this scope.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BlockTreeFetcher:
    """Fetch fully expanded block trees.

    Parameters
    ----------
    list_children:
        Coroutine function ``(block_id, start_cursor) -> ListPage`` that
        fetches one page of raw child blocks, typically
        :meth:`notionmd.notion_api.AsyncBlockAPI.list_children`.
    max_concurrency:
        Upper bound on concurrent *list_children* calls issued by this
        fetcher.  ``None`` means unbounded.
    metrics:
        Optional metrics backend.
    """

    def __init__(
        self,
        list_children: ListChildren,
        max_concurrency: int | None = None,
        metrics: MetricsHook | None = None,
    ) -> None:
        self._list_children = list_children
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def fetch_children(self, parent_id: str) -> list[Block]:
        """Return the direct children of *parent_id*, each fully expanded.

        Partial block records in the listing are dropped.  Child page and
        child database blocks are returned without children.
        """
        raw_blocks = await collect_paginated(lambda cursor: self._fetch_page(parent_id, cursor))

        blocks: list[Block] = []
        dropped = 0
        for raw in raw_blocks:
            if is_full_block(raw):
                blocks.append(parse_block(raw))
            else:
                dropped += 1
        if dropped:
            log.debug(
                "Dropped partial block records",
                extra={"extra_fields": {"parent_id": parent_id, "dropped": dropped}},
            )
        self._metrics.increment("notionmd.blocks_fetched_total", value=len(blocks))

        expandable = [
            b for b in blocks if b.has_children and b.type not in _CONTAINER_REFERENCES
        ]
        if expandable:
            subtrees = await gather_or_cancel([self.fetch_children(b.id) for b in expandable])
            for block, children in zip(expandable, subtrees):
                block.children = children
        return blocks

    async def _fetch_page(self, parent_id: str, cursor: str | None) -> ListPage[dict[str, Any]]:
        # Held for one request only, never across recursion.
        if self._semaphore is None:
            return await self._list_children(parent_id, cursor)
        async with self._semaphore:
            return await self._list_children(parent_id, cursor)
