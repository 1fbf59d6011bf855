"""Database and data-source API wrappers.

Since API version ``2025-09-03`` a database is a container of one or
more data sources, and rows are queried per data source rather than per
database.
"""

from __future__ import annotations

from typing import Any

from notionmd.models import ListPage
from notionmd.pagination import list_page_from_response

from .transport import AsyncNotionTransport


class AsyncDatabaseAPI:
    """Async wrapper for ``/databases`` endpoints."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, database_id: str) -> dict[str, Any]:
        """Retrieve a database object, including its ``data_sources`` list."""
        return await self._transport.request("GET", f"/databases/{database_id}")


class AsyncDataSourceAPI:
    """Async wrapper for ``/data_sources`` endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport`.
    page_size:
        ``page_size`` body field for query calls.
    """

    def __init__(self, transport: AsyncNotionTransport, page_size: int = 100) -> None:
        self._transport = transport
        self._page_size = page_size

    async def query(
        self,
        data_source_id: str,
        start_cursor: str | None = None,
    ) -> ListPage[dict[str, Any]]:
        """Fetch one page of rows from *data_source_id*.

        Returns raw page objects, possibly including partial records.
        """
        body: dict[str, Any] = {"page_size": self._page_size}
        if start_cursor is not None:
            body["start_cursor"] = start_cursor
        data = await self._transport.request(
            "POST", f"/data_sources/{data_source_id}/query", json=body
        )
        return list_page_from_response(data)
