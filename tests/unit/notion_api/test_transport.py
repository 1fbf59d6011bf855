"""Unit tests for notionmd/notion_api/transport.py.

Covers:
- _RequestPacer
- _raise_for_status
- AsyncNotionTransport.request (success, 4xx errors, retry logic, malformed bodies)
- AsyncNotionTransport._sleep_before_retry (backoff delays)
- AsyncNotionTransport.close / context manager
"""

from __future__ import annotations

import asyncio
import json
import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from notionmd.config import ExportConfig
from notionmd.errors import (
    ErrorCode,
    NotionMdAuthError,
    NotionMdFetchError,
    NotionMdNetworkError,
    NotionMdNotFoundError,
    NotionMdPermissionError,
    NotionMdRetryExhaustedError,
    NotionMdValidationError,
)
from notionmd.notion_api.transport import (
    AsyncNotionTransport,
    _raise_for_status,
    _RequestPacer,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_response(
    status_code: int = 200,
    body: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    """Build a minimal httpx.Response with a request attached."""
    content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
    return resp


class _MockPacer:
    """Pacer stand-in that always reports a fixed wait time."""

    def __init__(self, wait: float = 0.0):
        self._wait = wait

    async def wait(self) -> float:
        return self._wait


@pytest.fixture
async def transport(config):
    t = AsyncNotionTransport(config)
    t._pacer = _MockPacer()
    yield t
    await t.close()


# ---------------------------------------------------------------------------
# _RequestPacer
# ---------------------------------------------------------------------------


class TestRequestPacer:
    async def test_burst_starts_immediately(self):
        pacer = _RequestPacer(rate_rps=1.0, burst=3)
        assert [await pacer.wait() for _ in range(3)] == [0.0, 0.0, 0.0]

    async def test_waits_once_burst_used(self):
        pacer = _RequestPacer(rate_rps=100.0, burst=1)
        assert await pacer.wait() == 0.0
        t0 = time.monotonic()
        waited = await pacer.wait()
        assert 0 < waited <= 0.01
        assert time.monotonic() - t0 >= waited * 0.5

    async def test_concurrent_callers_get_distinct_slots(self):
        pacer = _RequestPacer(rate_rps=200.0, burst=1)
        waits = await asyncio.gather(*(pacer.wait() for _ in range(4)))
        assert sorted(waits)[0] == 0.0
        assert len(set(waits)) == 4


# ---------------------------------------------------------------------------
# Backoff delays
# ---------------------------------------------------------------------------


def backoff_config(**overrides) -> ExportConfig:
    values = dict(
        token="test_token_1234",
        database_id="db-1",
        retry_base_delay=1.0,
        retry_max_delay=60.0,
        retry_jitter=False,
    )
    values.update(overrides)
    return ExportConfig(**values)


class TestBackoff:
    async def _delays(self, config, calls):
        t = AsyncNotionTransport(config)
        with patch("notionmd.notion_api.transport.asyncio.sleep", new=AsyncMock()):
            delays = [await t._sleep_before_retry(*call) for call in calls]
        await t.close()
        return delays

    async def test_exponential(self):
        calls = [(a, {}, "server_error") for a in range(4)]
        assert await self._delays(backoff_config(), calls) == [1.0, 2.0, 4.0, 8.0]

    async def test_capped(self):
        calls = [(10, {}, "server_error")]
        assert await self._delays(backoff_config(retry_max_delay=5.0), calls) == [5.0]

    async def test_retry_after_wins(self):
        calls = [(3, {}, "rate_limited", "9"), (0, {}, "rate_limited", "2.5")]
        assert await self._delays(backoff_config(retry_max_delay=2.0), calls) == [9.0, 2.5]

    async def test_unparseable_retry_after_falls_back(self):
        calls = [(2, {}, "rate_limited", "soon")]
        assert await self._delays(backoff_config(), calls) == [4.0]

    async def test_jitter_scales_delay(self):
        config = backoff_config(retry_jitter=True)
        with patch("notionmd.notion_api.transport.random.uniform", return_value=0.5) as uniform:
            assert await self._delays(config, [(2, {}, "server_error")]) == [2.0]
        uniform.assert_called_once_with(0.5, 1.0)


# ---------------------------------------------------------------------------
# _raise_for_status
# ---------------------------------------------------------------------------


class TestRaiseForStatus:
    @pytest.mark.parametrize(
        ("status", "error_cls", "code"),
        [
            (401, NotionMdAuthError, ErrorCode.AUTH_ERROR),
            (403, NotionMdPermissionError, ErrorCode.PERMISSION_ERROR),
            (404, NotionMdNotFoundError, ErrorCode.NOT_FOUND),
            (400, NotionMdValidationError, ErrorCode.VALIDATION_ERROR),
            (409, NotionMdValidationError, ErrorCode.VALIDATION_ERROR),
        ],
    )
    def test_status_mapping(self, status, error_cls, code):
        resp = make_response(status, {"code": "some_code", "message": "nope"})
        with pytest.raises(error_cls) as exc_info:
            _raise_for_status(resp, "GET", "/blocks/x/children")
        err = exc_info.value
        assert err.code == code
        assert err.context == {
            "status_code": status,
            "notion_code": "some_code",
            "path": "/blocks/x/children",
        }
        assert "nope" in err.message

    def test_non_json_body(self):
        resp = httpx.Response(400, content=b"<html>bad</html>")
        resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
        with pytest.raises(NotionMdValidationError) as exc_info:
            _raise_for_status(resp, "GET", "/x")
        assert "<html>bad</html>" in exc_info.value.message
        assert exc_info.value.context["notion_code"] == ""


# ---------------------------------------------------------------------------
# AsyncNotionTransport.request
# ---------------------------------------------------------------------------


class TestRequest:
    async def test_success_returns_json(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(200, {"ok": True}))
        assert await transport.request("GET", "/databases/db") == {"ok": True}
        transport._client.request.assert_awaited_once_with("GET", "/databases/db")

    async def test_kwargs_forwarded(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(200, {}))
        await transport.request("POST", "/data_sources/ds/query", json={"page_size": 100})
        transport._client.request.assert_awaited_once_with(
            "POST", "/data_sources/ds/query", json={"page_size": 100}
        )

    async def test_empty_body_returns_empty_dict(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(200))
        assert await transport.request("GET", "/x") == {}

    async def test_204_returns_empty_dict(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(204))
        assert await transport.request("GET", "/x") == {}

    async def test_404_not_retried(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(404, {"message": "gone"}))
        with pytest.raises(NotionMdNotFoundError):
            await transport.request("GET", "/x")
        assert transport._client.request.await_count == 1

    async def test_401_not_retried(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(401, {}))
        with pytest.raises(NotionMdAuthError):
            await transport.request("GET", "/x")
        assert transport._client.request.await_count == 1

    async def test_retry_then_success(self, transport):
        transport._client.request = AsyncMock(
            side_effect=[make_response(503), make_response(200, {"done": 1})]
        )
        assert await transport.request("GET", "/x") == {"done": 1}
        assert transport._client.request.await_count == 2

    async def test_429_honours_retry_after(self, transport):
        transport._client.request = AsyncMock(
            side_effect=[
                make_response(429, headers={"retry-after": "7"}),
                make_response(200, {}),
            ]
        )
        with patch("notionmd.notion_api.transport.asyncio.sleep", new=AsyncMock()) as sleep:
            await transport.request("GET", "/x")
        sleep.assert_awaited_once_with(7.0)

    async def test_retries_exhausted(self, transport):
        transport._client.request = AsyncMock(return_value=make_response(500))
        with pytest.raises(NotionMdRetryExhaustedError) as exc_info:
            await transport.request("GET", "/x")
        # config fixture allows three attempts
        assert transport._client.request.await_count == 3
        assert exc_info.value.context == {"attempts": 3, "last_status_code": 500}

    async def test_network_error_retried(self, transport):
        transport._client.request = AsyncMock(
            side_effect=[httpx.ConnectError("refused"), make_response(200, {"a": 1})]
        )
        assert await transport.request("GET", "/x") == {"a": 1}

    async def test_network_error_exhausted(self, transport):
        exc = httpx.ConnectError("refused")
        transport._client.request = AsyncMock(side_effect=exc)
        with pytest.raises(NotionMdNetworkError) as exc_info:
            await transport.request("GET", "/x")
        assert exc_info.value.cause is exc
        assert exc_info.value.context == {"url": "/x", "attempt": 3}

    async def test_protocol_error_wrapped_without_retry(self, transport):
        exc = httpx.RemoteProtocolError("peer closed connection")
        transport._client.request = AsyncMock(side_effect=exc)
        with pytest.raises(NotionMdNetworkError) as exc_info:
            await transport.request("GET", "/x")
        assert transport._client.request.await_count == 1
        assert exc_info.value.cause is exc
        assert exc_info.value.context == {"url": "/x", "attempt": 1}

    async def test_proxy_error_wrapped(self, transport):
        transport._client.request = AsyncMock(side_effect=httpx.ProxyError("bad proxy"))
        with pytest.raises(NotionMdNetworkError):
            await transport.request("GET", "/x")

    async def test_malformed_json_body(self, transport):
        resp = httpx.Response(200, content=b"{not json")
        resp.request = httpx.Request("GET", "https://api.notion.com/v1/x")
        transport._client.request = AsyncMock(return_value=resp)
        with pytest.raises(NotionMdFetchError) as exc_info:
            await transport.request("GET", "/x")
        assert exc_info.value.code == ErrorCode.FETCH_ERROR
        assert exc_info.value.context == {"status_code": 200, "path": "/x"}
        assert isinstance(exc_info.value.cause, ValueError)

    async def test_non_object_json_body(self, transport):
        resp = httpx.Response(200, content=b"[1, 2]")
        resp.request = httpx.Request("GET", "https://api.notion.com/v1/x")
        transport._client.request = AsyncMock(return_value=resp)
        with pytest.raises(NotionMdFetchError, match="Expected a JSON object"):
            await transport.request("GET", "/x")

    async def test_metrics_emitted(self, config):
        metrics = MagicMock()
        config.metrics = metrics
        t = AsyncNotionTransport(config)
        t._pacer = _MockPacer(wait=0.5)
        t._client.request = AsyncMock(side_effect=[make_response(502), make_response(200, {})])
        await t.request("GET", "/x")
        await t.close()

        metrics.increment.assert_any_call(
            "notionmd.requests_total", tags={"method": "GET", "path": "/x", "status": "502"}
        )
        metrics.increment.assert_any_call(
            "notionmd.retries_total", tags={"method": "GET", "path": "/x", "reason": "server_error"}
        )
        metrics.timing.assert_any_call(
            "notionmd.rate_limit_wait_ms", 500.0, tags={"method": "GET", "path": "/x"}
        )


# ---------------------------------------------------------------------------
# Client construction and lifecycle
# ---------------------------------------------------------------------------


class TestClient:
    async def test_headers(self, transport, config):
        headers = transport._client.headers
        assert headers["Authorization"] == f"Bearer {config.token}"
        assert headers["Notion-Version"] == "2025-09-03"
        assert headers["Content-Type"] == "application/json"

    async def test_base_url(self, transport):
        assert str(transport._client.base_url).rstrip("/") == "https://api.notion.com/v1"

    async def test_context_manager_closes(self, config):
        async with AsyncNotionTransport(config) as t:
            t._client.aclose = AsyncMock()
        t._client.aclose.assert_awaited_once()
