"""MCP (Model Context Protocol) client for tool discovery and execution."""

import asyncio
import logging
from functools import partial
from typing import Dict, Any, Optional

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client

from app.infra.error_handler import ProviderConnectionError
from app.models.tool import RawTool

logger = logging.getLogger(__name__)


def _root_cause(error: BaseException) -> BaseException:
    """Unwrap anyio exception groups down to the first real error."""
    while getattr(error, "exceptions", None):
        error = error.exceptions[0]
    return error


class MCPToolClient:
    """Client for one MCP server over the Streamable HTTP transport.

    The session lives inside a dedicated background task so it can be
    shared by later requests after the request that opened it has finished.
    """

    def __init__(
        self,
        name: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        connect_timeout: float = 30.0,
    ):
        self.name = name
        self.url = url
        self.headers = headers or {}
        self.connect_timeout = connect_timeout
        self._session: Optional[ClientSession] = None
        self._runner: Optional[asyncio.Task] = None
        self._closed = asyncio.Event()

    @property
    def connected(self) -> bool:
        return self._session is not None and self._runner is not None and not self._runner.done()

    async def connect(self) -> "MCPToolClient":
        """
        Open the transport and run the MCP initialize handshake.

        Raises:
            ProviderConnectionError: If the handshake fails or times out
        """
        loop = asyncio.get_running_loop()
        ready: asyncio.Future = loop.create_future()
        self._runner = asyncio.create_task(self._run(ready), name=f"mcp-{self.name}")

        try:
            self._session = await asyncio.wait_for(ready, timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            self._runner.cancel()
            raise ProviderConnectionError(
                f"MCP server '{self.name}' did not complete the handshake within {self.connect_timeout}s",
                provider=self.name,
            )
        except Exception as e:
            cause = _root_cause(e)
            raise ProviderConnectionError(
                f"MCP server '{self.name}' connection failed: {cause}",
                provider=self.name,
            ) from cause

        logger.info(f"Connected to MCP server '{self.name}' at {self.url}")
        return self

    async def _run(self, ready: asyncio.Future) -> None:
        try:
            async with streamablehttp_client(self.url, headers=self.headers) as (read_stream, write_stream, _):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    if not ready.done():
                        ready.set_result(session)
                    await self._closed.wait()
        except asyncio.CancelledError:
            if not ready.done():
                ready.cancel()
            raise
        except Exception as e:
            if not ready.done():
                ready.set_exception(e)
            else:
                logger.warning(f"MCP session '{self.name}' ended: {_root_cause(e)}")
        finally:
            self._session = None

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise ProviderConnectionError(f"MCP server '{self.name}' is not connected", provider=self.name)
        return self._session

    async def tools(self) -> Dict[str, RawTool]:
        """Discover the server's current tool catalog."""
        session = self._require_session()
        result = await session.list_tools()
        return {
            tool.name: RawTool(
                name=tool.name,
                description=tool.description,
                input_schema=tool.inputSchema or {},
                execute=partial(self.call_tool, tool.name),
            )
            for tool in result.tools
        }

    async def call_tool(self, tool_name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a tool on the server.

        Returns:
            The CallToolResult as a plain dict (content, structuredContent, isError)
        """
        session = self._require_session()
        result = await session.call_tool(tool_name, arguments=args or {})
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def close(self) -> None:
        """Close the session and its transport."""
        self._closed.set()
        if self._runner is not None and not self._runner.done():
            try:
                await asyncio.wait_for(self._runner, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning(f"Timeout closing MCP server '{self.name}'")
            except Exception as e:
                logger.warning(f"Error closing MCP server '{self.name}': {_root_cause(e)}")
        self._session = None
