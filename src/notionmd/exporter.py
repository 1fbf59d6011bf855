"""Database export orchestration.

:class:`NotionExporter` ties the pieces together::

    database -> first data source -> pages
        -> one allocated file name per page (in page order)
        -> per page, concurrently: fetch block tree -> render -> write

Setup failures (output directory, database lookup, page listing, name
allocation) abort the whole run.  After setup, each page's pipeline
fails on its own: the error is logged and recorded in the
:class:`~notionmd.models.ExportResult` while the other pages finish.

Usage::

    import asyncio
    from notionmd import ExportConfig, NotionExporter

    async def main():
        config = ExportConfig.from_env()
        async with NotionExporter(config) as exporter:
            result = await exporter.export_all()
        print(f"Exported {result.exported_count} page(s)")

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from notionmd.config import ExportConfig
from notionmd.converter.inline import compose_inline
from notionmd.converter.parse import is_full_page, parse_page
from notionmd.converter.render import BlockRenderer
from notionmd.errors import NotionMdConfigError
from notionmd.models import Block, ExportFailure, ExportJob, ExportResult, Page
from notionmd.naming import NameAllocator, sanitize_filename
from notionmd.notion_api.blocks import AsyncBlockAPI
from notionmd.notion_api.databases import AsyncDatabaseAPI, AsyncDataSourceAPI
from notionmd.notion_api.transport import AsyncNotionTransport
from notionmd.observability import NoopMetricsHook, get_logger
from notionmd.pagination import collect_paginated
from notionmd.tree import BlockTreeFetcher
from notionmd.writer import ArtifactWriter

log = get_logger("notionmd.exporter")


def page_title(page: Page) -> str:
    """Inline-rendered, trimmed page title; ``Untitled-<id>`` when empty."""
    title = compose_inline(page.title).strip()
    return title or f"Untitled-{page.id}"


def render_document(page: Page, body: str) -> str:
    """Wrap a rendered body in the front matter block.

    ``Written`` is the date part of the page's ``created_time``.
    """
    frontmatter = f"---\nWritten: {page.created_time[:10]}\n---"
    return f"{frontmatter}\n\n{body}\n"


class NotionExporter:
    """Export every page of one Notion database to Markdown files.

    Parameters
    ----------
    config:
        Export configuration.
    transport:
        Optional pre-built transport; one is created from *config*
        otherwise.  A transport created here is closed by :meth:`close`.
    writer:
        Optional artifact writer; defaults to one rooted at
        ``config.output_dir``.
    """

    def __init__(
        self,
        config: ExportConfig,
        transport: AsyncNotionTransport | None = None,
        writer: ArtifactWriter | None = None,
    ) -> None:
        self._config = config
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else AsyncNotionTransport(config)
        self._databases = AsyncDatabaseAPI(self._transport)
        self._data_sources = AsyncDataSourceAPI(self._transport, page_size=config.page_size)
        self._blocks = AsyncBlockAPI(self._transport, page_size=config.page_size)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._fetcher = BlockTreeFetcher(
            lambda block_id, cursor: self._blocks.list_children(block_id, cursor),
            max_concurrency=config.max_concurrency,
            metrics=self._metrics,
        )
        self._renderer = BlockRenderer()
        self._writer = writer if writer is not None else ArtifactWriter(config.output_dir)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def resolve_data_source(self) -> str:
        """Return the id of the database's first data source.

        Raises
        ------
        NotionMdConfigError
            If the database exposes no queryable data source.
        """
        database_id = self._config.database_id
        database = await self._databases.retrieve(database_id)
        data_sources = database.get("data_sources")
        if not data_sources:
            raise NotionMdConfigError(
                f"Database {database_id} has no data sources to query.",
                context={"database_id": database_id},
            )
        first = data_sources[0]
        if not isinstance(first, dict) or not first.get("id"):
            raise NotionMdConfigError(
                f"Database {database_id} has no queryable primary data source.",
                context={"database_id": database_id},
            )
        return first["id"]

    async def list_pages(self) -> list[Page]:
        """Return every full page record of the database, in query order."""
        data_source_id = await self.resolve_data_source()
        raw_pages = await collect_paginated(
            lambda cursor: self._data_sources.query(data_source_id, cursor)
        )
        pages = [parse_page(raw) for raw in raw_pages if is_full_page(raw)]
        log.info(
            "Listed pages",
            extra={
                "extra_fields": {
                    "op": "list_pages",
                    "data_source_id": data_source_id,
                    "pages": len(pages),
                    "dropped": len(raw_pages) - len(pages),
                }
            },
        )
        return pages

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def plan_jobs(self, pages: list[Page], allocator: NameAllocator | None = None) -> list[ExportJob]:
        """Allocate a unique file name for each page, in page order."""
        allocator = allocator or NameAllocator(untitled=self._config.untitled_name)
        return [
            ExportJob(
                page=page,
                file_name=allocator.allocate(
                    sanitize_filename(page_title(page), self._config.max_name_length)
                ),
            )
            for page in pages
        ]

    async def render_page(self, page: Page) -> str:
        """Fetch the block tree of *page* and return the full file content."""
        blocks: list[Block] = await self._fetcher.fetch_children(page.id)
        return render_document(page, self._renderer.render_blocks(blocks))

    async def export_job(self, job: ExportJob) -> str:
        """Run one page's fetch-render-write pipeline; returns the file name."""
        t0 = time.monotonic()
        content = await self.render_page(job.page)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._writer.write, job.file_name, content)
        elapsed_ms = (time.monotonic() - t0) * 1000

        self._metrics.increment("notionmd.pages_exported_total")
        self._metrics.timing("notionmd.page_export_duration_ms", elapsed_ms)
        log.info(
            "Page exported",
            extra={
                "extra_fields": {
                    "op": "export_page",
                    "page_id": job.page.id,
                    "file_name": job.file_name,
                    "duration_ms": round(elapsed_ms, 1),
                }
            },
        )
        return job.file_name

    async def export_all(self) -> ExportResult:
        """Export every page of the configured database.

        Returns
        -------
        ExportResult
            Written file names and per-page failures.

        Raises
        ------
        NotionMdConfigError
            If the database has no data source.
        NotionMdFetchError
            If the database lookup or page listing fails.
        NotionMdAllocationError
            If a unique file name cannot be found.
        OSError
            If the output directory cannot be created.
        """
        output_dir = self._writer.prepare()
        pages = await self.list_pages()
        jobs = self.plan_jobs(pages)

        outcomes: list[Any] = await asyncio.gather(
            *(self.export_job(job) for job in jobs),
            return_exceptions=True,
        )

        result = ExportResult(output_dir=str(output_dir))
        for job, outcome in zip(jobs, outcomes):
            if not isinstance(outcome, BaseException):
                result.written.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            self._metrics.increment("notionmd.page_export_failures_total")
            log.error(
                "Page export failed",
                exc_info=outcome,
                extra={
                    "extra_fields": {
                        "op": "export_page",
                        "page_id": job.page.id,
                        "file_name": job.file_name,
                        "error": str(outcome),
                    }
                },
            )
            result.failures.append(
                ExportFailure(page_id=job.page.id, file_name=job.file_name, error=outcome)
            )
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> NotionExporter:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
