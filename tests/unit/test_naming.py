"""Tests for file name sanitizing and allocation."""

from __future__ import annotations

import threading

import pytest

from notionmd.errors import ErrorCode, NotionMdAllocationError
from notionmd.naming import MAX_PROBES, NameAllocator, sanitize_filename

FORBIDDEN = set('<>:"/\\|?*') | {chr(c) for c in range(0x20)}


class TestSanitize:
    def test_reserved_characters_replaced(self):
        assert sanitize_filename("My/Note:<Test>*") == "My-Note--Test--"

    def test_all_reserved_characters(self):
        assert sanitize_filename('a<>:"/\\|?*b') == "a---------b"

    def test_control_characters_replaced(self):
        assert sanitize_filename("a\x00b\x1fc") == "a-b-c"

    def test_whitespace_collapsed_and_trimmed(self):
        assert sanitize_filename("  Daily   Note   ") == "Daily Note"

    def test_tabs_and_newlines_become_hyphens(self):
        # Tab and newline are control characters, replaced before collapsing.
        assert sanitize_filename("a\tb\nc") == "a-b-c"

    def test_truncated_to_180(self):
        assert sanitize_filename("x" * 500) == "x" * 180

    def test_custom_max_length(self):
        assert sanitize_filename("abcdef", max_length=3) == "abc"

    def test_empty(self):
        assert sanitize_filename("") == ""

    def test_unicode_kept(self):
        assert sanitize_filename("Café ☕ notes") == "Café ☕ notes"

    def test_result_is_safe(self):
        title = "".join(chr(c) for c in range(0x00, 0x80))
        assert not FORBIDDEN & set(sanitize_filename(title))


class TestAllocate:
    def test_first_name_unsuffixed(self):
        assert NameAllocator().allocate("Trip") == "Trip.md"

    def test_duplicates_numbered_in_order(self):
        alloc = NameAllocator()
        names = [alloc.allocate("Daily Note") for _ in range(3)]
        assert names == ["Daily Note.md", "Daily Note (2).md", "Daily Note (3).md"]

    def test_empty_stem_uses_fallback(self):
        alloc = NameAllocator()
        assert alloc.allocate("") == "Untitled.md"
        assert alloc.allocate("") == "Untitled (2).md"

    def test_custom_fallback(self):
        assert NameAllocator(untitled="Unnamed").allocate("") == "Unnamed.md"

    def test_suffixed_title_does_not_collide(self):
        alloc = NameAllocator()
        assert alloc.allocate("A (2)") == "A (2).md"
        assert alloc.allocate("A") == "A.md"
        assert alloc.allocate("A") == "A (3).md"

    def test_reserved_view(self):
        alloc = NameAllocator()
        alloc.allocate("x")
        assert alloc.reserved == {"x.md"}

    def test_exhaustion_raises(self):
        alloc = NameAllocator(max_probes=3)
        for _ in range(4):
            alloc.allocate("Same")
        with pytest.raises(NotionMdAllocationError) as exc_info:
            alloc.allocate("Same")
        assert exc_info.value.code == ErrorCode.ALLOCATION_EXHAUSTED
        assert exc_info.value.context == {"stem": "Same", "attempts": 3}

    def test_last_probe_uses_highest_suffix(self):
        alloc = NameAllocator(max_probes=2)
        assert [alloc.allocate("n") for _ in range(3)] == ["n.md", "n (2).md", "n (3).md"]

    def test_default_bound(self):
        assert MAX_PROBES == 10_000

    def test_concurrent_allocation_is_unique(self):
        alloc = NameAllocator()
        results: list[str] = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                name = alloc.allocate("Race")
                with lock:
                    results.append(name)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(results) == len(set(results)) == 400
