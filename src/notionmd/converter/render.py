"""Block tree to Markdown renderer.

Renders fully fetched :class:`~notionmd.models.Block` trees.  Each kind
maps to exactly one template; nested blocks are indented two spaces per
level and appended below their parent's line.  Sibling blocks are
separated by a blank line.

Usage::

    from notionmd.converter.render import BlockRenderer

    md = BlockRenderer().render_blocks(blocks)
"""

from __future__ import annotations

from collections.abc import Callable as _Callable
from collections.abc import Iterable

from notionmd.models import Block, BlockType
from notionmd.observability import get_logger

from .inline import compose_inline

log = get_logger("notionmd.render")

INDENT = "  "
TOC_PLACEHOLDER = "[Table of Contents]"

_HEADING_PREFIX: dict[BlockType, str] = {
    BlockType.HEADING_1: "#",
    BlockType.HEADING_2: "##",
    BlockType.HEADING_3: "###",
}


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n")


class BlockRenderer:
    """Stateless renderer from :class:`Block` trees to Markdown.

    Rendering is pure: the same tree always yields the same string.
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render_blocks(self, blocks: Iterable[Block], depth: int = 0) -> str:
        """Render sibling blocks at *depth*, separated by blank lines.

        Blocks whose output is blank are dropped before joining.
        """
        parts = (normalize_newlines(self.render_block(b, depth)) for b in blocks)
        return "\n\n".join(p for p in parts if p.strip())

    def render_block(self, block: Block, depth: int = 0) -> str:
        """Render one block (and its children) at *depth*.

        Unknown kinds render as an empty string.
        """
        if depth < 0:
            raise ValueError(f"depth must be >= 0, got {depth}")
        renderer = _BLOCK_RENDERERS.get(block.type)  # type: ignore[arg-type]
        if renderer is None:
            log.debug(
                "Skipping unsupported block",
                extra={"extra_fields": {"block_id": block.id, "block_type": str(block.type)}},
            )
            return ""
        return renderer(self, block, depth)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _nested(self, block: Block, depth: int) -> str:
        """Children rendered one level deeper, prefixed with a newline."""
        if not block.children:
            return ""
        rendered = self.render_blocks(block.children, depth + 1)
        return f"\n{rendered}" if rendered else ""

    @staticmethod
    def _line(depth: int, text: str) -> str:
        return f"{INDENT * depth}{text}"

    # ------------------------------------------------------------------
    # Block type renderers
    # ------------------------------------------------------------------

    def _render_paragraph(self, block: Block, depth: int) -> str:
        text = compose_inline(block.rich_text)
        nested = self._nested(block, depth)
        if not text and not nested:
            return ""
        return self._line(depth, text) + nested

    def _render_heading(self, block: Block, depth: int) -> str:
        prefix = _HEADING_PREFIX[block.type]  # type: ignore[index]
        return self._line(depth, f"{prefix} {compose_inline(block.rich_text)}")

    def _render_to_do(self, block: Block, depth: int) -> str:
        mark = "x" if block.checked else " "
        text = compose_inline(block.rich_text)
        return self._line(depth, f"- [{mark}] {text}") + self._nested(block, depth)

    def _render_bulleted(self, block: Block, depth: int) -> str:
        # Toggles share the bullet template.
        text = compose_inline(block.rich_text)
        return self._line(depth, f"- {text}") + self._nested(block, depth)

    def _render_numbered(self, block: Block, depth: int) -> str:
        # Every numbered item is "1.".
        text = compose_inline(block.rich_text)
        return self._line(depth, f"1. {text}") + self._nested(block, depth)

    def _render_quote(self, block: Block, depth: int) -> str:
        text = compose_inline(block.rich_text)
        return self._line(depth, f"> {text}") + self._nested(block, depth)

    def _render_callout(self, block: Block, depth: int) -> str:
        icon = f"{block.icon} " if block.icon else ""
        text = compose_inline(block.rich_text)
        return self._line(depth, f"> {icon}{text}") + self._nested(block, depth)

    def _render_code(self, block: Block, depth: int) -> str:
        language = block.language or "text"
        body = compose_inline(block.rich_text)
        fence = self._line(depth, "```")
        return f"{fence}{language}\n{body}\n{fence}"

    def _render_divider(self, block: Block, depth: int) -> str:
        return self._line(depth, "---")

    def _render_equation(self, block: Block, depth: int) -> str:
        return self._line(depth, f"$${block.expression}$$")

    def _render_image(self, block: Block, depth: int) -> str:
        alt = compose_inline(block.caption) or "image"
        return self._line(depth, f"![{alt}]({block.url})")

    def _render_link(self, block: Block, depth: int) -> str:
        return self._line(depth, f"[{block.url}]({block.url})")

    def _render_file(self, block: Block, depth: int) -> str:
        label = compose_inline(block.caption) or "file"
        return self._line(depth, f"[{label}]({block.url})")

    def _render_video(self, block: Block, depth: int) -> str:
        return self._line(depth, f"[video]({block.url})")

    def _render_audio(self, block: Block, depth: int) -> str:
        return self._line(depth, f"[audio]({block.url})")

    def _render_child_reference(self, block: Block, depth: int) -> str:
        return self._line(depth, f"## {block.title}")

    def _render_table_of_contents(self, block: Block, depth: int) -> str:
        return self._line(depth, TOC_PLACEHOLDER)


# ------------------------------------------------------------------
# Block renderer dispatch table
# ------------------------------------------------------------------

_BlockRenderer = _Callable[["BlockRenderer", Block, int], str]

_BLOCK_RENDERERS: dict[BlockType, _BlockRenderer] = {
    BlockType.PARAGRAPH: BlockRenderer._render_paragraph,
    BlockType.HEADING_1: BlockRenderer._render_heading,
    BlockType.HEADING_2: BlockRenderer._render_heading,
    BlockType.HEADING_3: BlockRenderer._render_heading,
    BlockType.TO_DO: BlockRenderer._render_to_do,
    BlockType.TOGGLE: BlockRenderer._render_bulleted,
    BlockType.QUOTE: BlockRenderer._render_quote,
    BlockType.CALLOUT: BlockRenderer._render_callout,
    BlockType.CODE: BlockRenderer._render_code,
    BlockType.DIVIDER: BlockRenderer._render_divider,
    BlockType.EQUATION: BlockRenderer._render_equation,
    BlockType.IMAGE: BlockRenderer._render_image,
    BlockType.BOOKMARK: BlockRenderer._render_link,
    BlockType.LINK_PREVIEW: BlockRenderer._render_link,
    BlockType.FILE: BlockRenderer._render_file,
    BlockType.PDF: BlockRenderer._render_file,
    BlockType.VIDEO: BlockRenderer._render_video,
    BlockType.AUDIO: BlockRenderer._render_audio,
    BlockType.CHILD_PAGE: BlockRenderer._render_child_reference,
    BlockType.CHILD_DATABASE: BlockRenderer._render_child_reference,
    BlockType.TABLE_OF_CONTENTS: BlockRenderer._render_table_of_contents,
    BlockType.BULLETED_LIST_ITEM: BlockRenderer._render_bulleted,
    BlockType.NUMBERED_LIST_ITEM: BlockRenderer._render_numbered,
}

_unhandled = set(BlockType) - set(_BLOCK_RENDERERS)
if _unhandled:
    raise RuntimeError(
        f"No renderer registered for block types: {sorted(t.value for t in _unhandled)}"
    )
