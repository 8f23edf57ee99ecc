"""Shared test fixtures for backlog-readonly-mcp."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from backlog_readonly_mcp.client import BacklogClient
from backlog_readonly_mcp.config.schema import BacklogConfig
from backlog_readonly_mcp.core.retry import RetryConfig
from tests.fixtures.backlog import API_KEY, FakeBacklog

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def make_config() -> Any:
    """Factory fixture for BacklogConfig with sensible defaults."""

    def _make(**overrides: Any) -> BacklogConfig:
        defaults: dict[str, Any] = {
            "domain": "example.backlog.com",
            "api_key": API_KEY,
            "default_project": None,
        }
        defaults.update(overrides)
        return BacklogConfig(**defaults)

    return _make


@pytest.fixture
def config(make_config: Any) -> BacklogConfig:
    return make_config()


@pytest.fixture
def fake_backlog() -> FakeBacklog:
    return FakeBacklog()


@pytest.fixture
async def client(
    config: BacklogConfig, fake_backlog: FakeBacklog
) -> AsyncIterator[BacklogClient]:
    """BacklogClient talking to the fake API with zero-delay retries."""
    async with BacklogClient(
        config,
        transport=fake_backlog.transport,
        retry=RetryConfig(max_retries=2, base_delay=0.0),
    ) as c:
        yield c
