"""Pytest configuration and fixtures."""

import os
import pytest
from typing import Any, Dict
from unittest.mock import AsyncMock
from dotenv import load_dotenv

# Load test environment variables
load_dotenv()

# Set test environment
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")

from app.models.tool import RawTool


def make_raw_tool(name: str, result: Any = None, description: str = None) -> RawTool:
    """RawTool whose execute is an AsyncMock returning ``result``."""
    return RawTool(
        name=name,
        description=description,
        input_schema={"type": "object"},
        execute=AsyncMock(return_value=result if result is not None else {"ok": name}),
    )


class FakeProviderClient:
    """Stands in for MCPToolClient: only tools() is used by the adapter."""

    def __init__(self, raw_tools: Dict[str, RawTool] = None, error: Exception = None):
        self.raw_tools = raw_tools or {}
        self.error = error
        self.closed = False

    async def tools(self) -> Dict[str, RawTool]:
        if self.error:
            raise self.error
        return self.raw_tools

    async def close(self):
        self.closed = True


class FakeRegistry:
    """Stands in for ProviderRegistry with fixed clients."""

    def __init__(self, search=None, assets=None, content=None, error: Exception = None):
        self.clients = {"search": search, "assets": assets, "content": content}
        self.error = error
        self.forgotten = []

    async def connect_all(self):
        if self.error:
            raise self.error
        return dict(self.clients)

    def forget(self, provider):
        self.forgotten.append(provider)

    def state(self):
        return {name: "connected" if client else "failed" for name, client in self.clients.items()}

    async def close(self):
        pass


@pytest.fixture
def search_client():
    return FakeProviderClient({
        "search": make_raw_tool("search", {"results": [{"id": "doc-1"}]}),
        "fetch": make_raw_tool("fetch", {"id": "doc-1", "text": "full"}),
    })


@pytest.fixture
def asset_client():
    return FakeProviderClient({
        name: make_raw_tool(name)
        for name in ["search-assets", "list-images", "list-videos", "get-asset-details", "delete-asset"]
    })


@pytest.fixture
def content_client():
    return FakeProviderClient({
        name: make_raw_tool(name)
        for name in [
            "wpengine--create-post",
            "wpengine--update-post",
            "wpengine--get-post",
            "wpengine--list-posts",
            "wpengine--get-current-site-info",
        ]
    })
