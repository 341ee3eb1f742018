"""Shared test fixtures for gitlab-mcp-bridge."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import pytest
import respx
from fastmcp import Client, FastMCP

from gitlab_mcp_bridge.client import GitLabClient
from gitlab_mcp_bridge.config import GitLabConfig
from gitlab_mcp_bridge.servers import (  # noqa: F401 - registers tools
    discussions,
    epics,
    events,
    issues,
    jobs,
    merge_requests,
    repository,
    snippets,
    todos,
    users,
)
from gitlab_mcp_bridge.servers.gitlab import mcp

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"
API_URL = f"{TEST_URL}/api/v4"
CURRENT_USER = "alice"


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
def client(config: GitLabConfig) -> GitLabClient:
    return GitLabClient(config)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url=API_URL) as router:
        yield router


def _swap_lifespan(*, read_only: bool = False) -> Any:
    """Replace the server lifespan with one that skips the startup user lookup."""
    config = GitLabConfig(url=TEST_URL, token=TEST_TOKEN, read_only=read_only)
    gitlab = GitLabClient(config)

    @asynccontextmanager
    async def mock_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {"client": gitlab, "config": config, "current_user": CURRENT_USER}
        finally:
            await gitlab.close()

    original_lifespan = mcp._lifespan
    mcp._lifespan = mock_lifespan
    return original_lifespan


@pytest.fixture
async def tool_client():
    """FastMCP test client with mocked lifespan and respx-mocked HTTP."""
    original_lifespan = _swap_lifespan()
    with respx.mock(base_url=API_URL) as router:
        async with Client(mcp) as client:
            yield client, router
    mcp._lifespan = original_lifespan


@pytest.fixture
async def readonly_client():
    """FastMCP test client in read-only mode."""
    original_lifespan = _swap_lifespan(read_only=True)
    with respx.mock(base_url=API_URL) as router:
        async with Client(mcp) as client:
            yield client, router
    mcp._lifespan = original_lifespan
