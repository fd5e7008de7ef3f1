"""Shared pytest fixtures for the livyctl test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from fakes import HDFS_URL, LIVY_URL, RecordingSink

from livyctl.auth.resolver import AuthConfig, AuthResolver
from livyctl.config import Settings
from livyctl.livy.transport import HttpTransport


@pytest.fixture()
def settings() -> Settings:
    """Return a Settings instance with test defaults."""
    return Settings(
        server_url=LIVY_URL,
        hdfs_base_url=HDFS_URL,
        username="alice",
        poll_interval_seconds=0,
        session_poll_interval_seconds=0,
    )


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
async def transport() -> AsyncIterator[HttpTransport]:
    async with HttpTransport(AuthResolver(AuthConfig())) as t:
        yield t


@pytest.fixture()
def mock_client() -> AsyncMock:
    """Mock ``ExecutionService``."""
    client = AsyncMock()
    client.list_sessions.return_value = []
    client.cancel_statement.return_value = None
    client.delete_session.return_value = None
    return client
