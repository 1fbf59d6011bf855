"""Metrics hook protocol and no-op default.

notionmd reports counters and timings at the request, block-tree and
page level.  Without a configured backend a :class:`NoopMetricsHook` is
used, so call sites never check for ``None``.

Emitted metric names:

* ``notionmd.requests_total``             -- counter
* ``notionmd.retries_total``              -- counter
* ``notionmd.request_duration_ms``        -- timing
* ``notionmd.rate_limit_wait_ms``         -- timing
* ``notionmd.blocks_fetched_total``       -- counter
* ``notionmd.pages_exported_total``       -- counter
* ``notionmd.page_export_failures_total`` -- counter
* ``notionmd.page_export_duration_ms``    -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol a metrics backend must satisfy.

    *tags* is an optional ``str -> str`` mapping that backends translate
    into their own labelling scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
