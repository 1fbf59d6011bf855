"""notionmd -- export a Notion database to Markdown files.

Public re-exports
-----------------

* **Export:** :class:`NotionExporter`, :class:`ExportConfig`
* **Rendering:** :class:`BlockRenderer`, :func:`compose_inline`
* **Naming:** :class:`NameAllocator`, :func:`sanitize_filename`
* **Errors:** every :class:`NotionMdError` subclass and :class:`ErrorCode`
* **Models:** blocks, rich text, pages and export results

Usage::

    import asyncio
    from notionmd import ExportConfig, NotionExporter

    async def main():
        config = ExportConfig(token="secret_xxx", database_id="<database_id>")
        async with NotionExporter(config) as exporter:
            result = await exporter.export_all()
        print(result.written)

    asyncio.run(main())
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from notionmd.config import ExportConfig

# ── Rendering ───────────────────────────────────────────────────────────
from notionmd.converter import BlockRenderer, compose_inline

# ── Errors ──────────────────────────────────────────────────────────────
from notionmd.errors import (
    ErrorCode,
    NotionMdAllocationError,
    NotionMdAuthError,
    NotionMdConfigError,
    NotionMdError,
    NotionMdFetchError,
    NotionMdNetworkError,
    NotionMdNotFoundError,
    NotionMdPermissionError,
    NotionMdRetryExhaustedError,
    NotionMdValidationError,
)

# ── Export ──────────────────────────────────────────────────────────────
from notionmd.exporter import NotionExporter, page_title, render_document

# ── Models ──────────────────────────────────────────────────────────────
from notionmd.models import (
    Annotations,
    Block,
    BlockType,
    ExportFailure,
    ExportJob,
    ExportResult,
    ListPage,
    Page,
    StyledRun,
)

# ── Naming ──────────────────────────────────────────────────────────────
from notionmd.naming import NameAllocator, sanitize_filename
from notionmd.pagination import collect_paginated
from notionmd.tree import BlockTreeFetcher

__all__ = [
    # Export
    "NotionExporter",
    "ExportConfig",
    "page_title",
    "render_document",
    # Core pipeline
    "BlockTreeFetcher",
    "collect_paginated",
    "BlockRenderer",
    "compose_inline",
    "NameAllocator",
    "sanitize_filename",
    # Errors
    "NotionMdError",
    "ErrorCode",
    "NotionMdConfigError",
    "NotionMdFetchError",
    "NotionMdValidationError",
    "NotionMdAuthError",
    "NotionMdPermissionError",
    "NotionMdNotFoundError",
    "NotionMdNetworkError",
    "NotionMdRetryExhaustedError",
    "NotionMdAllocationError",
    # Models
    "Annotations",
    "StyledRun",
    "Block",
    "BlockType",
    "Page",
    "ListPage",
    "ExportJob",
    "ExportFailure",
    "ExportResult",
]
