"""File name sanitizing and collision-free allocation.

Page titles are user-authored and arbitrary.  :func:`sanitize_filename`
turns one into a stem that is safe on every mainstream filesystem and
:class:`NameAllocator` makes stems unique within a batch by appending
``" (2)"``, ``" (3)"``, ... before the extension.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Set

from notionmd.errors import NotionMdAllocationError

EXTENSION = ".md"
DEFAULT_UNTITLED = "Untitled"
MAX_STEM_LENGTH = 180
MAX_PROBES = 10_000

_UNSAFE_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_filename(title: str, max_length: int = MAX_STEM_LENGTH) -> str:
    """Return a filesystem-safe stem for *title*.

    Reserved characters ``<>:"/\\|?*`` and control characters become
    ``-``; whitespace runs collapse to one space; the result is trimmed
    and cut to *max_length* characters.

    >>> sanitize_filename('My/Note:<Test>*')
    'My-Note--Test--'
    """
    stem = _UNSAFE_RE.sub("-", title)
    stem = _WHITESPACE_RE.sub(" ", stem).strip()
    return stem[:max_length]


class NameAllocator:
    """Hands out unique ``<stem>.md`` names for one export batch.

    Parameters
    ----------
    untitled:
        Stem used when the requested stem is empty.
    max_probes:
        How many suffixed variants to try before giving up.
    """

    def __init__(self, untitled: str = DEFAULT_UNTITLED, max_probes: int = MAX_PROBES) -> None:
        self._untitled = untitled
        self._max_probes = max_probes
        self._used: set[str] = set()
        self._lock = threading.Lock()

    @property
    def reserved(self) -> Set[str]:
        """Names handed out so far (read-only view)."""
        return frozenset(self._used)

    def allocate(self, stem: str) -> str:
        """Reserve and return the first free name for *stem*.

        Tries ``<stem>.md`` then ``<stem> (2).md``, ``<stem> (3).md``, ...

        Raises
        ------
        NotionMdAllocationError
            If all ``max_probes`` suffixed variants are taken.
        """
        base = stem or self._untitled
        with self._lock:
            candidate = f"{base}{EXTENSION}"
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate

            for index in range(2, self._max_probes + 2):
                candidate = f"{base} ({index}){EXTENSION}"
                if candidate not in self._used:
                    self._used.add(candidate)
                    return candidate

        raise NotionMdAllocationError(
            f"Could not allocate unique filename for {base}",
            context={"stem": base, "attempts": self._max_probes},
        )
