"""notionmd.notion_api -- Notion API transport and read-only endpoint wrappers.

* :mod:`.transport` -- HTTP transport with auth, pacing and retries.
* :mod:`.blocks` -- block children listing.
* :mod:`.databases` -- database retrieval and data-source queries.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI
from .databases import AsyncDatabaseAPI, AsyncDataSourceAPI
from .transport import AsyncNotionTransport

__all__ = [
    "AsyncBlockAPI",
    "AsyncDataSourceAPI",
    "AsyncDatabaseAPI",
    "AsyncNotionTransport",
]
