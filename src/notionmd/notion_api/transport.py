"""Async HTTP transport for the Notion API.

Request lifecycle:

1. Wait for the pacer's next start slot.
2. Send the request with bearer auth and ``Notion-Version`` headers.
3. ``2xx`` -- return the decoded JSON object.
4. ``429`` / ``5xx`` / timeout / connection error -- back off and retry
   while attempts remain (``Retry-After`` is honoured for 429).
5. Other ``4xx`` -- raise the matching typed error immediately.
6. Out of attempts -- raise :class:`NotionMdRetryExhaustedError` (or
   :class:`NotionMdNetworkError` when the last failure was a network
   error).

Only this module retries.  The pagination, tree-fetching and export
layers above it treat any error that escapes :meth:`request` as final.
"""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any

import httpx

from notionmd.config import ExportConfig
from notionmd.errors import (
    NotionMdAuthError,
    NotionMdFetchError,
    NotionMdNetworkError,
    NotionMdNotFoundError,
    NotionMdPermissionError,
    NotionMdRetryExhaustedError,
    NotionMdValidationError,
)
from notionmd.observability import NoopMetricsHook, get_logger

log = get_logger("notionmd.transport")

_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Requests that may start back to back before pacing kicks in.
_BURST = 10


class _RequestPacer:
    """Spaces request starts ``1 / rate_rps`` seconds apart.

    Up to *burst* requests may start together; later ones are pushed to
    the next free slot.  Slots are reserved before awaiting, so two
    callers never share one.
    """

    def __init__(self, rate_rps: float, burst: int = _BURST) -> None:
        self._interval = 1.0 / rate_rps
        self._tolerance = (burst - 1) * self._interval
        self._next_slot = time.monotonic()

    async def wait(self) -> float:
        """Sleep until this caller's slot; return the seconds waited."""
        now = time.monotonic()
        slot = max(self._next_slot, now)
        self._next_slot = slot + self._interval
        delay = slot - now - self._tolerance
        if delay <= 0:
            return 0.0
        await asyncio.sleep(delay)
        return delay


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable ``4xx`` response."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    notion_message = body.get("message", response.text[:500])
    context = {"status_code": status, "notion_code": body.get("code", ""), "path": path}

    if status == 401:
        raise NotionMdAuthError(
            f"Authentication failed on {method} {path}: {notion_message}",
            context=context,
        )
    if status == 403:
        raise NotionMdPermissionError(
            f"Permission denied on {method} {path}: {notion_message}",
            context=context,
        )
    if status == 404:
        raise NotionMdNotFoundError(
            f"Resource not found on {method} {path}: {notion_message}",
            context=context,
        )
    raise NotionMdValidationError(
        f"Client error {status} on {method} {path}: {notion_message}",
        context=context,
    )


def _decode_body(response: httpx.Response, method: str, path: str) -> dict[str, Any]:
    """Return the JSON object of a ``2xx`` response (``{}`` when empty)."""
    if response.status_code == 204 or not response.content:
        return {}
    context = {"status_code": response.status_code, "path": path}
    try:
        body = response.json()
    except ValueError as exc:
        raise NotionMdFetchError(
            message=f"Malformed JSON body on {method} {path}",
            context=context,
            cause=exc,
        ) from exc
    if not isinstance(body, dict):
        raise NotionMdFetchError(
            message=f"Expected a JSON object on {method} {path}, got {type(body).__name__}",
            context=context,
        )
    return body


class AsyncNotionTransport:
    """Paced, retrying ``httpx.AsyncClient`` wrapper.

    Parameters
    ----------
    config:
        Supplies the token, API version, base URL, timeout, proxy and the
        retry/pacing knobs.
    """

    def __init__(self, config: ExportConfig) -> None:
        self._config = config
        self._pacer = _RequestPacer(config.rate_limit_rps)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.notion_version,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send one API call and return its decoded JSON body.

        *kwargs* are forwarded to :meth:`httpx.AsyncClient.request`
        (``json=`` for bodies, ``params=`` for query strings).

        Raises
        ------
        NotionMdAuthError
            On 401 responses.
        NotionMdPermissionError
            On 403 responses.
        NotionMdNotFoundError
            On 404 responses.
        NotionMdValidationError
            On 400 and other non-retryable 4xx responses.
        NotionMdNetworkError
            On protocol or proxy failures, and on timeouts and connection
            errors once attempts run out.
        NotionMdRetryExhaustedError
            When every attempt ended in a retryable status.
        NotionMdFetchError
            When a ``2xx`` body is not a JSON object.
        """
        max_attempts = self._config.retry_max_attempts
        last_status: int | None = None
        tags = {"method": method, "path": path}

        for attempt in range(max_attempts):
            last_attempt = attempt + 1 >= max_attempts

            waited = await self._pacer.wait()
            if waited > 0:
                self._metrics.timing("notionmd.rate_limit_wait_ms", waited * 1000, tags=tags)

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                self._metrics.increment(
                    "notionmd.requests_total", tags={**tags, "status": "error"}
                )
                log.warning(
                    "Request network error",
                    extra={"extra_fields": {**tags, "attempt": attempt + 1, "error": str(exc)}},
                )
                if last_attempt:
                    raise self._network_error(method, path, attempt, exc) from exc
                await self._sleep_before_retry(attempt, tags, "network_error")
                continue
            except httpx.TransportError as exc:
                # Protocol, proxy and URL scheme failures are not retried.
                self._metrics.increment(
                    "notionmd.requests_total", tags={**tags, "status": "error"}
                )
                raise self._network_error(method, path, attempt, exc) from exc

            last_status = response.status_code
            status_tags = {**tags, "status": str(last_status)}
            self._metrics.increment("notionmd.requests_total", tags=status_tags)
            self._metrics.timing(
                "notionmd.request_duration_ms",
                (time.monotonic() - t0) * 1000,
                tags=status_tags,
            )

            if 200 <= last_status < 300:
                return _decode_body(response, method, path)

            if last_status not in _RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if last_attempt:
                break

            retry_after = None
            reason = "server_error"
            if last_status == 429:
                retry_after = response.headers.get("retry-after")
                reason = "rate_limited"
                log.warning(
                    "Rate limited by Notion API",
                    extra={
                        "extra_fields": {
                            **tags,
                            "retry_after": retry_after,
                            "attempt": attempt + 1,
                        }
                    },
                )
            await self._sleep_before_retry(attempt, tags, reason, retry_after)

        raise NotionMdRetryExhaustedError(
            f"All {max_attempts} attempts exhausted for {method} {path} "
            f"(last status: {last_status})",
            context={"attempts": max_attempts, "last_status_code": last_status},
        )

    @staticmethod
    def _network_error(
        method: str, path: str, attempt: int, exc: httpx.TransportError
    ) -> NotionMdNetworkError:
        return NotionMdNetworkError(
            f"Network error on {method} {path}: {exc}",
            context={"url": path, "attempt": attempt + 1},
            cause=exc,
        )

    async def _sleep_before_retry(
        self,
        attempt: int,
        tags: dict[str, str],
        reason: str,
        retry_after: str | None = None,
    ) -> float:
        """Back off after failed attempt *attempt* (0-indexed).

        A numeric ``Retry-After`` value wins.  Otherwise the delay is
        ``retry_base_delay * 2**attempt`` capped at ``retry_max_delay``.
        With ``retry_jitter`` the result is scaled to 50-100 %.  Returns
        the seconds slept.
        """
        config = self._config
        delay: float | None = None
        if retry_after is not None:
            try:
                delay = float(retry_after)
            except ValueError:
                delay = None
        if delay is None:
            delay = min(config.retry_base_delay * (2 ** attempt), config.retry_max_delay)
        if config.retry_jitter:
            delay *= random.uniform(0.5, 1.0)

        self._metrics.increment("notionmd.retries_total", tags={**tags, "reason": reason})
        await asyncio.sleep(delay)
        return delay

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
