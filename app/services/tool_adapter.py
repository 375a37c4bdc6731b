"""Wrap discovered provider tools in stable, explicitly declared schemas.

Providers report free-form argument shapes, and Gemini rejects some of them
(unions at the top level, empty objects with ``additionalProperties``). Every
exposed tool therefore gets an argument model chosen here: a hand-authored one
for the operations we know, a permissive object for everything else.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from app.infra.error_handler import ToolValidationError
from app.infra.metrics import tool_discovery_total
from app.models.tool import PassthroughArgs, RawTool, ToolDefinition

logger = logging.getLogger(__name__)


# Search / retrieval

class SearchArgs(BaseModel):
    query: str = Field(..., min_length=1, description="Search query text")
    filter: Optional[str] = Field(None, description="Optional filter expression")
    limit: Optional[int] = Field(None, description="Maximum number of results")
    offset: Optional[int] = Field(None, description="Number of results to skip")


class FetchArgs(BaseModel):
    id: str = Field(..., min_length=1, description="Document ID returned by search")


# Asset management

class AssetSearchArgs(BaseModel):
    model_config = ConfigDict(extra="allow")

    query: Optional[str] = Field(None, description="Plain search text")
    expression: Optional[str] = Field(None, description="Advanced search expression")
    max_results: Optional[int] = None
    next_cursor: Optional[str] = None


# Content management

class CreatePostArgs(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    status: Optional[Literal["publish", "draft", "pending"]] = None
    cloudinary_url: Optional[str] = Field(None, description="Secure URL of the image to embed")
    cloudinary_public_id: Optional[str] = None


class UpdatePostArgs(BaseModel):
    post_id: int
    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = None


class GetPostArgs(BaseModel):
    post_id: int


class ListPostsArgs(BaseModel):
    limit: Optional[int] = None
    status: Optional[str] = None


def check_create_post_args(args: Dict[str, Any]) -> Dict[str, Any]:
    """An asset id alone cannot be embedded; the secure URL must come with it."""
    if args.get("cloudinary_public_id") and not args.get("cloudinary_url"):
        raise ToolValidationError(
            "cloudinary_url is required to embed the image when cloudinary_public_id is provided.",
            tool_name=CREATE_POST,
        )
    return args


def build_asset_search_request(args: Dict[str, Any]) -> Dict[str, Any]:
    """Reshape flat search arguments into the provider's request envelope."""
    request: Dict[str, Any] = {"expression": args.get("expression") or args.get("query") or ""}
    if args.get("max_results"):
        request["max_results"] = args["max_results"]
    if args.get("next_cursor"):
        request["next_cursor"] = args["next_cursor"]
    return {"request": request}


@dataclass(frozen=True)
class OperationSpec:
    """Declared shape of a known provider operation."""
    args_model: Type[BaseModel]
    description: str
    prepare: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None


CREATE_POST = "wpengine--create-post"
CREATE_POST_DESCRIPTION = (
    "Create a WordPress post. If including a Cloudinary image, ALWAYS pass "
    "cloudinary_url (secure URL) so the image is embedded."
)

SEARCH_OPERATIONS: Dict[str, OperationSpec] = {
    "search": OperationSpec(SearchArgs, "Search for relevant information and return ranked results."),
    "fetch": OperationSpec(FetchArgs, "Fetch a document by ID and return its full content."),
}

ASSET_TOOL_NAMES = [
    "search-assets",
    "list-images",
    "list-videos",
    "list-files",
    "get-asset-details",
    "list-tags",
    "visual-search-assets",
    "transform-asset",
    "get-tx-reference",
]
ASSET_OPERATIONS: Dict[str, OperationSpec] = {
    "search-assets": OperationSpec(
        AssetSearchArgs,
        "Search Cloudinary assets. Supports plain query text and advanced request payload.",
        prepare=build_asset_search_request,
    ),
}

CONTENT_TOOL_NAMES = [
    "wpengine--get-current-site-info",
    "wpengine--purge-cache",
    CREATE_POST,
    "wpengine--update-post",
    "wpengine--get-post",
    "wpengine--list-posts",
    "wpengine--index-cloudinary-asset",
    "wpengine--bulk-index-cloudinary-assets",
]
CONTENT_OPERATIONS: Dict[str, OperationSpec] = {
    CREATE_POST: OperationSpec(CreatePostArgs, CREATE_POST_DESCRIPTION, prepare=check_create_post_args),
    "wpengine--update-post": OperationSpec(UpdatePostArgs, "Update an existing WordPress post."),
    "wpengine--get-post": OperationSpec(GetPostArgs, "Get details of a WordPress post by ID."),
    "wpengine--list-posts": OperationSpec(ListPostsArgs, "List WordPress posts."),
}

# Extra short names the model tends to use
CONTENT_EXTRA_ALIASES = {"post": CREATE_POST}


def build_tool(
    name: str,
    spec: OperationSpec,
    provider: str,
    call: Callable[[Dict[str, Any]], Awaitable[Any]],
    description: Optional[str] = None,
) -> ToolDefinition:
    """Create a ToolDefinition whose execute step applies ``spec.prepare`` before ``call``."""
    async def execute(args: Dict[str, Any]) -> Any:
        if spec.prepare is not None:
            args = spec.prepare(args)
        return await call(args)

    return ToolDefinition(
        name=name,
        description=description or spec.description,
        args_model=spec.args_model,
        provider=provider,
        execute=execute,
    )


def _build_group(
    raw_tools: Dict[str, RawTool],
    names,
    operations: Dict[str, OperationSpec],
    provider: str,
    generic_description: str,
) -> Dict[str, ToolDefinition]:
    stable_tools: Dict[str, ToolDefinition] = {}
    for name in names:
        raw = raw_tools.get(name)
        if raw is None:
            continue
        spec = operations.get(name) or OperationSpec(PassthroughArgs, generic_description.format(name=name))
        stable_tools[name] = build_tool(name, spec, provider, raw.execute, description=raw.description)
    return stable_tools


def build_stable_search_tools(raw_tools: Dict[str, RawTool]) -> Dict[str, ToolDefinition]:
    return _build_group(raw_tools, SEARCH_OPERATIONS, SEARCH_OPERATIONS, "search", "Search tool: {name}")


def build_stable_asset_tools(raw_tools: Dict[str, RawTool]) -> Dict[str, ToolDefinition]:
    return _build_group(raw_tools, ASSET_TOOL_NAMES, ASSET_OPERATIONS, "assets", "Cloudinary tool: {name}")


def build_stable_content_tools(raw_tools: Dict[str, RawTool]) -> Dict[str, ToolDefinition]:
    return _build_group(raw_tools, CONTENT_TOOL_NAMES, CONTENT_OPERATIONS, "content", "WordPress tool: {name}")


def add_separator_aliases(
    tools: Dict[str, ToolDefinition],
    extra_aliases: Optional[Dict[str, str]] = None,
) -> Dict[str, ToolDefinition]:
    """
    Add underscore aliases for hyphenated tool names.

    Canonical names always win: an alias is only inserted when the key is
    free. Extra aliases are merged the same way and only when their canonical
    target exists.
    """
    with_aliases = dict(tools)
    for name, tool in tools.items():
        alias = name.replace("-", "_")
        if alias not in with_aliases:
            with_aliases[alias] = tool

    for alias, canonical_name in (extra_aliases or {}).items():
        if canonical_name in with_aliases and alias not in with_aliases:
            with_aliases[alias] = with_aliases[canonical_name]

    return with_aliases


async def load_tools_safely(
    client,
    builder: Callable[[Dict[str, RawTool]], Dict[str, ToolDefinition]],
    provider: str,
) -> Dict[str, ToolDefinition]:
    """Discover and adapt a provider's tools; any failure means no tools from it."""
    if client is None:
        return {}

    try:
        raw_tools = await client.tools()
        stable_tools = builder(raw_tools or {})
    except Exception as e:
        tool_discovery_total.labels(provider=provider, status="failure").inc()
        logger.warning(f"Tool discovery failed for provider '{provider}': {e}", exc_info=True)
        return {}

    tool_discovery_total.labels(provider=provider, status="success").inc()
    logger.debug(f"Discovered {len(stable_tools)} tools from provider '{provider}'")
    return stable_tools
