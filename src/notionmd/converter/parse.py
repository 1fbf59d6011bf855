"""Raw Notion API objects to :mod:`notionmd.models` types.

Listing endpoints may return partial records (``{"object": "block",
"id": ...}`` with no type payload) for content the integration cannot
read.  :func:`is_full_block` and :func:`is_full_page` identify the
complete ones; callers drop the rest.
"""

from __future__ import annotations

from typing import Any

from notionmd.models import Annotations, Block, BlockType, Page, StyledRun

# Kinds whose payload is a ``rich_text`` array.
_TEXT_TYPES: frozenset[BlockType] = frozenset({
    BlockType.PARAGRAPH,
    BlockType.HEADING_1,
    BlockType.HEADING_2,
    BlockType.HEADING_3,
    BlockType.TO_DO,
    BlockType.TOGGLE,
    BlockType.QUOTE,
    BlockType.CALLOUT,
    BlockType.CODE,
    BlockType.BULLETED_LIST_ITEM,
    BlockType.NUMBERED_LIST_ITEM,
})

# Kinds whose payload is a Notion file object (external or hosted).
_FILE_OBJECT_TYPES: frozenset[BlockType] = frozenset({
    BlockType.IMAGE,
    BlockType.FILE,
    BlockType.VIDEO,
    BlockType.AUDIO,
    BlockType.PDF,
})


def is_full_block(raw: dict[str, Any]) -> bool:
    return raw.get("object") == "block" and "type" in raw


def is_full_page(raw: dict[str, Any]) -> bool:
    return raw.get("object") == "page" and "properties" in raw


def parse_rich_text(segments: list[dict[str, Any]] | None) -> list[StyledRun]:
    """Convert a Notion ``rich_text`` array to a list of :class:`StyledRun`."""
    runs: list[StyledRun] = []
    for seg in segments or []:
        ann = seg.get("annotations") or {}
        seg_type = seg.get("type", "text")
        runs.append(
            StyledRun(
                plain_text=seg.get("plain_text", "") or "",
                annotations=Annotations(
                    bold=bool(ann.get("bold")),
                    italic=bool(ann.get("italic")),
                    strikethrough=bool(ann.get("strikethrough")),
                    underline=bool(ann.get("underline")),
                    code=bool(ann.get("code")),
                ),
                href=seg.get("href") or None,
                type=seg_type,
                expression=(seg.get("equation") or {}).get("expression", "")
                if seg_type == "equation"
                else "",
            )
        )
    return runs


def resolve_file_url(file_object: dict[str, Any]) -> str:
    """Return the URL of a Notion file object, preferring ``external``."""
    if file_object.get("type") == "external":
        return (file_object.get("external") or {}).get("url", "")
    return (file_object.get("file") or {}).get("url", "")


def parse_block(raw: dict[str, Any]) -> Block:
    """Convert a full raw block object to a :class:`Block` (without children)."""
    raw_type = raw.get("type", "")
    block_type = BlockType.parse(raw_type)
    data: dict[str, Any] = raw.get(raw_type) or {}

    block = Block(
        id=raw.get("id", ""),
        type=block_type,
        has_children=bool(raw.get("has_children", False)),
    )

    if block_type in _TEXT_TYPES:
        block.rich_text = parse_rich_text(data.get("rich_text"))

    if block_type is BlockType.TO_DO:
        block.checked = bool(data.get("checked", False))
    elif block_type is BlockType.CODE:
        block.language = data.get("language") or None
    elif block_type is BlockType.CALLOUT:
        icon = data.get("icon") or {}
        if icon.get("type") == "emoji":
            block.icon = icon.get("emoji") or None
    elif block_type is BlockType.EQUATION:
        block.expression = data.get("expression", "")
    elif block_type in _FILE_OBJECT_TYPES:
        block.url = resolve_file_url(data)
        block.caption = parse_rich_text(data.get("caption"))
    elif block_type in (BlockType.BOOKMARK, BlockType.LINK_PREVIEW):
        block.url = data.get("url", "")
    elif block_type in (BlockType.CHILD_PAGE, BlockType.CHILD_DATABASE):
        block.title = data.get("title", "")

    return block


def parse_page(raw: dict[str, Any]) -> Page:
    """Convert a full raw page object to a :class:`Page`.

    The title is read from whichever property has ``type == "title"``;
    a database has exactly one such property but its name varies.
    """
    title: list[StyledRun] = []
    for prop in (raw.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            title = parse_rich_text(prop.get("title"))
            break
    return Page(
        id=raw.get("id", ""),
        created_time=raw.get("created_time", ""),
        title=title,
    )
