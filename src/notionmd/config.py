"""Export configuration for notionmd.

:class:`ExportConfig` captures every tuneable knob of an export run.  It
is built once (by the CLI, or by the caller in library use) and passed
explicitly to the transport, the block-tree fetcher and the exporter.
Nothing below the CLI reads the process environment.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from notionmd.errors import NotionMdConfigError

ENV_TOKEN = "NOTION_API_KEY"
ENV_DATABASE_ID = "NOTION_DATABASE_ID"
ENV_OUTPUT_DIR = "NOTION_EXPORT_DIR"


@dataclass
class ExportConfig:
    """Complete configuration for one export run.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    database_id:
        The database whose pages are exported.  **Required.**
    output_dir:
        Directory the Markdown files are written to.  Created on demand.
    notion_version:
        Value of the ``Notion-Version`` header.  Data-source queries need
        ``2025-09-03`` or later.
    base_url:
        API root URL.  Override for proxy or testing environments.
    page_size:
        ``page_size`` sent with every paginated listing call (1-100).
    max_concurrency:
        Upper bound on in-flight listing requests across all pages.
    retry_max_attempts:
        Maximum attempts per request for retryable HTTP errors.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Randomly scale backoff delays to between 50 % and 100 %.
    rate_limit_rps:
        Target requests per second for client-side pacing.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~notionmd.observability.MetricsHook` backend.
    untitled_name:
        File stem used when a sanitized title is empty.
    max_name_length:
        Sanitized titles are truncated to this many characters.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    database_id: str = ""

    output_dir: str = "exports"

    notion_version: str = "2025-09-03"

    base_url: str = "https://api.notion.com/v1"

    # ── Fetching ────────────────────────────────────────────────────────
    page_size: int = 100

    max_concurrency: int = 8

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 5

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = True

    rate_limit_rps: float = 3.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Naming ──────────────────────────────────────────────────────────
    untitled_name: str = "Untitled"

    max_name_length: int = 180

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.token:
            raise NotionMdConfigError(
                "Notion integration token is required.",
                context={"field": "token"},
            )
        if not self.database_id:
            raise NotionMdConfigError(
                "Notion database id is required.",
                context={"field": "database_id"},
            )

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise NotionMdConfigError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing.",
                context={"field": "base_url"},
            )

        _require(1 <= self.page_size <= 100, "page_size", self.page_size, "between 1 and 100")
        _require(self.max_concurrency >= 1, "max_concurrency", self.max_concurrency, ">= 1")
        _require(self.retry_max_attempts >= 1, "retry_max_attempts", self.retry_max_attempts, ">= 1")
        _require(self.retry_base_delay >= 0, "retry_base_delay", self.retry_base_delay, ">= 0")
        _require(self.retry_max_delay >= 0, "retry_max_delay", self.retry_max_delay, ">= 0")
        _require(self.rate_limit_rps > 0, "rate_limit_rps", self.rate_limit_rps, "> 0")
        _require(self.timeout_seconds > 0, "timeout_seconds", self.timeout_seconds, "> 0")
        _require(self.max_name_length >= 1, "max_name_length", self.max_name_length, ">= 1")
        _require(bool(self.untitled_name.strip()), "untitled_name", self.untitled_name, "non-blank")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ExportConfig:
        """Build a config from environment variables plus explicit overrides.

        ``NOTION_API_KEY`` and ``NOTION_DATABASE_ID`` are required unless
        supplied in *overrides*; ``NOTION_EXPORT_DIR`` is optional.
        Overrides whose value is ``None`` are ignored.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "token": env.get(ENV_TOKEN, ""),
            "database_id": env.get(ENV_DATABASE_ID, ""),
        }
        if env.get(ENV_OUTPUT_DIR):
            values["output_dir"] = env[ENV_OUTPUT_DIR]
        values.update({k: v for k, v in overrides.items() if v is not None})

        missing = [
            name
            for name, key in ((ENV_TOKEN, "token"), (ENV_DATABASE_ID, "database_id"))
            if not values.get(key)
        ]
        if missing:
            raise NotionMdConfigError(
                f"Missing required env vars. Set {' and '.join(missing)}.",
                context={"missing": missing},
            )
        return cls(**values)

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ExportConfig({', '.join(parts)})"


def _require(ok: bool, name: str, value: Any, constraint: str) -> None:
    if not ok:
        raise NotionMdConfigError(
            f"{name} must be {constraint}, got {value!r}",
            context={"field": name, "value": value, "constraint": constraint},
        )
