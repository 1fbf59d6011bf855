"""Notion blocks to Markdown conversion.

Public API:

- :class:`BlockRenderer` -- block trees to Markdown.
- :func:`compose_inline` -- styled runs to inline Markdown.
- :func:`parse_block` / :func:`parse_page` -- raw API objects to models.
"""

from notionmd.converter.inline import compose_inline, render_run
from notionmd.converter.parse import (
    is_full_block,
    is_full_page,
    parse_block,
    parse_page,
    parse_rich_text,
)
from notionmd.converter.render import BlockRenderer

__all__ = [
    "BlockRenderer",
    "compose_inline",
    "is_full_block",
    "is_full_page",
    "parse_block",
    "parse_page",
    "parse_rich_text",
    "render_run",
]
