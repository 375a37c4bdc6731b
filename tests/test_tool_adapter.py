"""Tests for the tool schema adapter."""

import pytest
from unittest.mock import AsyncMock

from app.infra.error_handler import ToolValidationError
from app.models.tool import PassthroughArgs
from app.services.tool_adapter import (
    CONTENT_EXTRA_ALIASES,
    AssetSearchArgs,
    CreatePostArgs,
    SearchArgs,
    add_separator_aliases,
    build_stable_asset_tools,
    build_stable_content_tools,
    build_stable_search_tools,
    load_tools_safely,
)
from conftest import FakeProviderClient, make_raw_tool


class TestSearchTools:
    """Search / fetch wrappers."""

    def test_only_known_operations_are_exposed(self):
        raw = {
            "search": make_raw_tool("search"),
            "fetch": make_raw_tool("fetch"),
            "reindex": make_raw_tool("reindex"),
        }
        tools = build_stable_search_tools(raw)
        assert set(tools) == {"search", "fetch"}
        assert tools["search"].args_model is SearchArgs
        assert tools["search"].provider == "search"

    def test_description_falls_back_to_default(self):
        tools = build_stable_search_tools({
            "search": make_raw_tool("search"),
            "fetch": make_raw_tool("fetch", description="Provider fetch text"),
        })
        assert tools["search"].description == "Search for relevant information and return ranked results."
        assert tools["fetch"].description == "Provider fetch text"

    @pytest.mark.asyncio
    async def test_invoke_forwards_validated_args_and_returns_result_unchanged(self):
        raw = make_raw_tool("search", {"results": ["a", "b"]})
        tools = build_stable_search_tools({"search": raw})

        result = await tools["search"].invoke({"query": "mountains", "limit": 5})

        assert result == {"results": ["a", "b"]}
        raw.execute.assert_awaited_once_with({"query": "mountains", "limit": 5})

    @pytest.mark.asyncio
    async def test_empty_query_rejected_before_remote_call(self):
        raw = make_raw_tool("search")
        tools = build_stable_search_tools({"search": raw})

        with pytest.raises(ToolValidationError):
            await tools["search"].invoke({"query": ""})

        raw.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_requires_id(self):
        raw = make_raw_tool("fetch")
        tools = build_stable_search_tools({"fetch": raw})

        with pytest.raises(ToolValidationError) as exc_info:
            await tools["fetch"].invoke({})

        assert "fetch" in str(exc_info.value)
        raw.execute.assert_not_awaited()


class TestAssetTools:
    """Cloudinary wrappers."""

    def test_fixed_name_list(self, asset_client):
        tools = build_stable_asset_tools(asset_client.raw_tools)
        assert set(tools) == {"search-assets", "list-images", "list-videos", "get-asset-details"}
        assert "delete-asset" not in tools

    def test_generic_operations_get_permissive_schema(self, asset_client):
        tools = build_stable_asset_tools(asset_client.raw_tools)
        assert tools["list-images"].args_model is PassthroughArgs
        assert tools["list-images"].description == "Cloudinary tool: list-images"
        assert tools["search-assets"].args_model is AssetSearchArgs

    @pytest.mark.asyncio
    async def test_search_assets_wraps_query_in_request(self):
        raw = make_raw_tool("search-assets")
        tools = build_stable_asset_tools({"search-assets": raw})

        await tools["search-assets"].invoke({"query": "mountains", "max_results": 10})

        raw.execute.assert_awaited_once_with({"request": {"expression": "mountains", "max_results": 10}})

    @pytest.mark.asyncio
    async def test_search_assets_expression_wins_over_query(self):
        raw = make_raw_tool("search-assets")
        tools = build_stable_asset_tools({"search-assets": raw})

        await tools["search-assets"].invoke({"query": "cats", "expression": "tags=cat", "next_cursor": "abc"})

        raw.execute.assert_awaited_once_with({"request": {"expression": "tags=cat", "next_cursor": "abc"}})

    @pytest.mark.asyncio
    async def test_search_assets_without_terms_sends_empty_expression(self):
        raw = make_raw_tool("search-assets")
        tools = build_stable_asset_tools({"search-assets": raw})

        await tools["search-assets"].invoke(None)

        raw.execute.assert_awaited_once_with({"request": {"expression": ""}})

    @pytest.mark.asyncio
    async def test_passthrough_forwards_any_object(self):
        raw = make_raw_tool("list-images")
        tools = build_stable_asset_tools({"list-images": raw})

        await tools["list-images"].invoke({"max_results": 5, "prefix": "travel/"})

        raw.execute.assert_awaited_once_with({"max_results": 5, "prefix": "travel/"})

    @pytest.mark.asyncio
    async def test_passthrough_keeps_explicit_nulls(self):
        raw = make_raw_tool("get-asset-details")
        tools = build_stable_asset_tools({"get-asset-details": raw})

        await tools["get-asset-details"].invoke({"asset_id": "abc123", "resource_type": None})

        raw.execute.assert_awaited_once_with({"asset_id": "abc123", "resource_type": None})


class TestContentTools:
    """WordPress wrappers."""

    def test_schemas(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)
        assert tools["wpengine--create-post"].args_model is CreatePostArgs
        assert tools["wpengine--get-current-site-info"].args_model is PassthroughArgs
        assert "cloudinary_url" in tools["wpengine--create-post"].description

    @pytest.mark.asyncio
    async def test_create_post_with_asset_id_but_no_url_is_rejected(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)
        raw = content_client.raw_tools["wpengine--create-post"]

        with pytest.raises(ToolValidationError) as exc_info:
            await tools["wpengine--create-post"].invoke({
                "title": "Mountains",
                "content": "A gallery",
                "cloudinary_public_id": "samples/mountain",
            })

        assert "cloudinary_url is required" in str(exc_info.value)
        raw.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_post_with_asset_id_and_url(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)
        raw = content_client.raw_tools["wpengine--create-post"]
        args = {
            "title": "Mountains",
            "content": "A gallery",
            "status": "draft",
            "cloudinary_url": "https://res.cloudinary.com/demo/mountain.jpg",
            "cloudinary_public_id": "samples/mountain",
        }

        await tools["wpengine--create-post"].invoke(args)

        raw.execute.assert_awaited_once_with(args)

    @pytest.mark.asyncio
    async def test_create_post_rejects_unknown_status(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)

        with pytest.raises(ToolValidationError):
            await tools["wpengine--create-post"].invoke({"title": "T", "content": "C", "status": "archived"})

    @pytest.mark.asyncio
    async def test_get_post_requires_numeric_id(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)

        with pytest.raises(ToolValidationError):
            await tools["wpengine--get-post"].invoke({"post_id": "latest"})


class TestAliases:
    """Underscore alias expansion."""

    def test_every_hyphenated_name_gets_an_alias(self, asset_client):
        tools = build_stable_asset_tools(asset_client.raw_tools)
        aliased = add_separator_aliases(tools)

        for name in tools:
            alias = name.replace("-", "_")
            assert alias in aliased
            assert aliased[alias] is aliased[name]

    @pytest.mark.asyncio
    async def test_alias_invokes_same_tool(self):
        raw = make_raw_tool("list-images", {"images": []})
        aliased = add_separator_aliases(build_stable_asset_tools({"list-images": raw}))

        assert await aliased["list_images"].invoke({}) == {"images": []}
        raw.execute.assert_awaited_once()

    def test_canonical_name_is_never_overwritten(self):
        hyphen = build_stable_asset_tools({"list-images": make_raw_tool("list-images")})["list-images"]
        underscore = hyphen.model_copy(update={"name": "list_images"})
        tools = {"list-images": hyphen, "list_images": underscore}

        aliased = add_separator_aliases(tools)

        assert aliased["list_images"] is underscore
        assert aliased["list-images"] is hyphen

    def test_extra_alias_maps_to_create_post(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)
        aliased = add_separator_aliases(tools, CONTENT_EXTRA_ALIASES)

        assert aliased["post"] is tools["wpengine--create-post"]
        assert aliased["wpengine__create_post"] is tools["wpengine--create-post"]

    def test_extra_alias_skipped_without_canonical(self):
        aliased = add_separator_aliases({}, CONTENT_EXTRA_ALIASES)
        assert "post" not in aliased

    def test_extra_alias_does_not_overwrite_existing_key(self, content_client):
        tools = build_stable_content_tools(content_client.raw_tools)
        existing = tools["wpengine--list-posts"]
        tools = {**tools, "post": existing}

        aliased = add_separator_aliases(tools, CONTENT_EXTRA_ALIASES)

        assert aliased["post"] is existing


class TestLoadToolsSafely:
    """Discovery failures never escape."""

    @pytest.mark.asyncio
    async def test_no_client(self):
        assert await load_tools_safely(None, build_stable_search_tools, "search") == {}

    @pytest.mark.asyncio
    async def test_discovery_failure_gives_empty_set(self):
        client = FakeProviderClient(error=RuntimeError("catalog unavailable"))
        assert await load_tools_safely(client, build_stable_asset_tools, "assets") == {}

    @pytest.mark.asyncio
    async def test_empty_catalog(self):
        client = FakeProviderClient({})
        assert await load_tools_safely(client, build_stable_content_tools, "content") == {}

    @pytest.mark.asyncio
    async def test_builds_tools(self, search_client):
        tools = await load_tools_safely(search_client, build_stable_search_tools, "search")
        assert set(tools) == {"search", "fetch"}

    @pytest.mark.asyncio
    async def test_client_tools_is_awaited(self):
        client = AsyncMock()
        client.tools.return_value = {"search": make_raw_tool("search")}

        tools = await load_tools_safely(client, build_stable_search_tools, "search")

        client.tools.assert_awaited_once()
        assert "search" in tools
