"""Data models for notionmd.

Every type here is a plain dataclass.  Rich-text runs and annotations
are frozen; blocks are mutable only so the fetcher can attach children
after the listing call that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Notion block kinds that have a Markdown rendering."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    QUOTE = "quote"
    CALLOUT = "callout"
    CODE = "code"
    DIVIDER = "divider"
    EQUATION = "equation"
    IMAGE = "image"
    BOOKMARK = "bookmark"
    FILE = "file"
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"
    LINK_PREVIEW = "link_preview"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    TABLE_OF_CONTENTS = "table_of_contents"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"

    @classmethod
    def parse(cls, value: str) -> BlockType | str:
        """Return the enum member for *value*, or *value* unchanged if unknown."""
        try:
            return cls(value)
        except ValueError:
            return value


# ---------------------------------------------------------------------------
# Rich text
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Annotations:
    """Inline style flags of one rich-text run."""

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False


@dataclass(frozen=True)
class StyledRun:
    """One rich-text run.

    ``type`` is ``"text"``, ``"mention"`` or ``"equation"``.  Equation
    runs carry their LaTeX source in ``expression``; ``plain_text`` is
    kept for completeness but not rendered.
    """

    plain_text: str
    annotations: Annotations = field(default_factory=Annotations)
    href: str | None = None
    type: str = "text"
    expression: str = ""

    @property
    def is_equation(self) -> bool:
        return self.type == "equation"


# ---------------------------------------------------------------------------
# Blocks and pages
# ---------------------------------------------------------------------------

@dataclass
class Block:
    """A Notion block with its type-specific payload flattened.

    Only the fields relevant to :attr:`type` are populated:

    * ``rich_text`` -- text-bearing kinds and code.
    * ``checked`` -- ``to_do``.
    * ``language`` -- ``code``.
    * ``icon`` -- ``callout`` (emoji only; other icon kinds are dropped).
    * ``expression`` -- ``equation``.
    * ``url`` -- media kinds, bookmark and link preview.
    * ``caption`` -- media kinds only; bookmark captions are not rendered.
    * ``title`` -- ``child_page`` / ``child_database``.

    ``children`` is filled by :class:`~notionmd.tree.BlockTreeFetcher`
    when ``has_children`` is set.
    """

    id: str
    type: BlockType | str
    has_children: bool = False
    rich_text: list[StyledRun] = field(default_factory=list)
    checked: bool = False
    language: str | None = None
    icon: str | None = None
    expression: str = ""
    url: str = ""
    caption: list[StyledRun] = field(default_factory=list)
    title: str = ""
    children: list[Block] = field(default_factory=list)


@dataclass(frozen=True)
class Page:
    """A database page (the unit that becomes one Markdown file)."""

    id: str
    created_time: str
    title: list[StyledRun] = field(default_factory=list)


@dataclass(frozen=True)
class ListPage(Generic[T]):
    """One response of a cursor-paginated listing endpoint."""

    items: list[T]
    has_more: bool = False
    next_cursor: str | None = None


# ---------------------------------------------------------------------------
# Export bookkeeping
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExportJob:
    """One page paired with the file name allocated for it."""

    page: Page
    file_name: str


@dataclass
class ExportFailure:
    """A page whose fetch-render-write pipeline raised."""

    page_id: str
    file_name: str
    error: BaseException


@dataclass
class ExportResult:
    """Outcome of one export batch.

    ``written`` lists file names in page order; ``failures`` lists the
    pipelines that raised.  Pages listed in neither were never scheduled.
    """

    output_dir: str
    written: list[str] = field(default_factory=list)
    failures: list[ExportFailure] = field(default_factory=list)

    @property
    def exported_count(self) -> int:
        return len(self.written)

    @property
    def ok(self) -> bool:
        return not self.failures
