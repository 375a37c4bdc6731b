"""Direct JSON-RPC fallback for the WordPress content tools."""

import time
import logging
from typing import Any, Dict, Optional

import httpx

from app.infra.config import config
from app.infra.error_handler import ToolOperationError, TransportFormatError
from app.models.tool import PassthroughArgs, ToolDefinition
from app.services.tool_adapter import CONTENT_OPERATIONS, OperationSpec, build_tool

logger = logging.getLogger(__name__)

SITE_INFO = "wpengine--get-current-site-info"

FALLBACK_OPERATIONS = [
    "wpengine--create-post",
    "wpengine--update-post",
    "wpengine--get-post",
    "wpengine--list-posts",
]

# Direct calls describe get-post in their own words
FALLBACK_DESCRIPTIONS = {
    "wpengine--get-post": "Get details of a specific WordPress post.",
}


class WordPressDirectClient:
    """Calls WordPress MCP tools with a single JSON-RPC POST per call."""

    def __init__(self, endpoint: str, token: str, timeout: Optional[float] = None):
        self.endpoint = endpoint
        self.token = token
        self.timeout = timeout or config.DIRECT_CALL_TIMEOUT

    async def call_tool(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute one tool via a direct tools/call request.

        Returns:
            The JSON-RPC ``result`` field, or the whole payload when it has none

        Raises:
            TransportFormatError: If the body is not JSON
            ToolOperationError: If the HTTP status is a failure or the body carries ``error``
        """
        jsonrpc_request = {
            "jsonrpc": "2.0",
            "id": int(time.time() * 1000),
            "method": "tools/call",
            "params": {
                "name": name,
                "arguments": args or {},
            },
        }
        headers = {
            "Content-Type": "application/json",
            "x-mcp-token": self.token,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.endpoint, json=jsonrpc_request, headers=headers)

        try:
            payload = response.json()
        except ValueError:
            raise TransportFormatError(
                f"WordPress MCP returned non-JSON response (status {response.status_code})",
                status_code=response.status_code,
            )

        error = payload.get("error") if isinstance(payload, dict) else None
        if not response.is_success or error:
            message = error.get("message") if isinstance(error, dict) else None
            raise ToolOperationError(
                message or f"WordPress MCP request failed (status {response.status_code})",
                status_code=response.status_code,
            )

        if isinstance(payload, dict) and payload.get("result") is not None:
            return payload["result"]
        return payload


def build_direct_wordpress_fallback_tools(
    wordpress_mcp_url: Optional[str],
    wordpress_mcp_token: Optional[str],
) -> Dict[str, ToolDefinition]:
    """Build the minimal content tool set that talks to the endpoint directly.

    Returns an empty dict unless both the URL and the token are configured.
    """
    if not wordpress_mcp_url or not wordpress_mcp_token:
        return {}

    client = WordPressDirectClient(wordpress_mcp_url, wordpress_mcp_token)

    def direct_call(name: str):
        async def call(args: Dict[str, Any]) -> Any:
            return await client.call_tool(name, args)
        return call

    tools: Dict[str, ToolDefinition] = {
        name: build_tool(
            name,
            CONTENT_OPERATIONS[name],
            "content",
            direct_call(name),
            description=FALLBACK_DESCRIPTIONS.get(name),
        )
        for name in FALLBACK_OPERATIONS
    }

    async def site_info(args: Dict[str, Any]) -> Any:
        return await client.call_tool(SITE_INFO, {})

    tools[SITE_INFO] = build_tool(
        SITE_INFO,
        OperationSpec(PassthroughArgs, "Get information about the current WordPress site."),
        "content",
        site_info,
    )

    logger.info(f"Using direct WordPress fallback tools at {wordpress_mcp_url}")
    return tools
