"""Shared test fixtures for the notionmd test suite."""

from __future__ import annotations

import pytest

from notionmd.config import ExportConfig
from notionmd.converter.render import BlockRenderer


@pytest.fixture
def config(tmp_path) -> ExportConfig:
    """Fast, deterministic configuration writing into a temp directory."""
    return ExportConfig(
        token="test_token_1234",
        database_id="db-1",
        output_dir=str(tmp_path / "exports"),
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
        rate_limit_rps=10_000.0,
    )


@pytest.fixture
def renderer() -> BlockRenderer:
    return BlockRenderer()
