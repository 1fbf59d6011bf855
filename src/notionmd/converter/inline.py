"""Inline rendering: styled runs to a Markdown string.

Runs are rendered independently and concatenated.  Annotations wrap the
text in a fixed order, innermost first::

    code -> bold -> italic -> strikethrough -> underline -> link

so a bold, italic, linked run always comes out as ``[***text***](url)``.
Existing exports depend on this order; do not reorder the wrappers.
Payload text is emitted verbatim (no Markdown escaping).
"""

from __future__ import annotations

from collections.abc import Iterable

from notionmd.models import StyledRun


def render_run(run: StyledRun) -> str:
    """Render one run."""
    if run.is_equation:
        return f"${run.expression}$"

    text = run.plain_text
    if not text and not run.href:
        return ""

    ann = run.annotations
    if ann.code:
        text = f"`{text}`"
    if ann.bold:
        text = f"**{text}**"
    if ann.italic:
        text = f"*{text}*"
    if ann.strikethrough:
        text = f"~~{text}~~"
    if ann.underline:
        text = f"<u>{text}</u>"
    if run.href:
        text = f"[{text}]({run.href})"
    return text


def compose_inline(runs: Iterable[StyledRun]) -> str:
    """Render a sequence of runs to one Markdown string."""
    return "".join(render_run(run) for run in runs)
