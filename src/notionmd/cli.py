"""Command-line entry point: ``notionmd`` / ``python -m notionmd``.

Reads ``NOTION_API_KEY`` and ``NOTION_DATABASE_ID`` (from the
environment or a ``.env`` file in the working directory), exports every
page of the database and prints a summary.  Exit status is ``0`` when
every page was written and ``1`` otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from notionmd.config import ExportConfig
from notionmd.errors import NotionMdError
from notionmd.exporter import NotionExporter
from notionmd.models import ExportResult
from notionmd.observability import get_logger, set_level

log = get_logger("notionmd.cli")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="notionmd",
        description="Export the pages of a Notion database to Markdown files.",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        help="Directory to write Markdown files to (default: $NOTION_EXPORT_DIR or ./exports)",
    )
    parser.add_argument(
        "--database-id",
        help="Database to export (default: $NOTION_DATABASE_ID)",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        help="Maximum concurrent listing requests (default: 8)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Structured log level on stderr (default: WARNING)",
    )
    return parser


async def run_export(config: ExportConfig) -> ExportResult:
    async with NotionExporter(config) as exporter:
        return await exporter.export_all()


def main(argv: list[str] | None = None) -> int:
    """Run the exporter and return the process exit code."""
    args = create_parser().parse_args(argv)
    set_level(args.log_level)
    load_dotenv(override=False)

    try:
        config = ExportConfig.from_env(
            database_id=args.database_id,
            output_dir=args.output_dir,
            max_concurrency=args.max_concurrency,
        )
        result = asyncio.run(run_export(config))
    except NotionMdError as exc:
        log.error("Export aborted", extra={"extra_fields": {"code": str(exc.code)}})
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except Exception as exc:
        log.error("Export aborted", exc_info=exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Exported {result.exported_count} page(s) to {result.output_dir}")
    if not result.ok:
        for failure in result.failures:
            print(f"Failed: {failure.file_name} ({failure.page_id}): {failure.error}", file=sys.stderr)
        return 1
    return 0
