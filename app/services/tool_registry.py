"""Process-wide registry of tool provider connections."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from app.adapters.mcp_client import MCPToolClient
from app.infra.config import config
from app.infra.error_handler import ProviderConnectionError
from app.infra.metrics import provider_connections_total

logger = logging.getLogger(__name__)

SEARCH = "search"
ASSETS = "assets"
CONTENT = "content"
PROVIDERS = (SEARCH, ASSETS, CONTENT)

ClientFactory = Callable[[str], Awaitable[Optional[MCPToolClient]]]


def cloudinary_headers() -> Dict[str, str]:
    """Credential headers for the asset provider; each only when configured."""
    headers = {
        "Accept": "application/json, text/event-stream",
        "Content-Type": "application/json",
    }
    if config.CLOUDINARY_CLOUD_NAME:
        headers["cloudinary-cloud-name"] = config.CLOUDINARY_CLOUD_NAME
    if config.CLOUDINARY_API_KEY:
        headers["cloudinary-api-key"] = config.CLOUDINARY_API_KEY
    if config.CLOUDINARY_API_SECRET:
        headers["cloudinary-api-secret"] = config.CLOUDINARY_API_SECRET
    return headers


async def connect_provider(provider: str) -> Optional[MCPToolClient]:
    """
    Open an MCP connection for a provider using the current configuration.

    Returns None when the provider is not configured.

    Raises:
        ProviderConnectionError: If the handshake fails
    """
    if provider == SEARCH:
        client = MCPToolClient(SEARCH, config.AI_TOOLKIT_MCP_URL, connect_timeout=config.MCP_CONNECT_TIMEOUT)
    elif provider == ASSETS:
        client = MCPToolClient(
            ASSETS,
            config.CLOUDINARY_MCP_URL,
            headers=cloudinary_headers(),
            connect_timeout=config.MCP_CONNECT_TIMEOUT,
        )
    elif provider == CONTENT:
        if not config.wordpress_configured:
            return None
        client = MCPToolClient(
            CONTENT,
            config.WORDPRESS_MCP_URL,
            headers={
                "Accept": "application/json, text/event-stream",
                "Content-Type": "application/json",
                "x-mcp-token": config.WORDPRESS_MCP_TOKEN,
            },
            connect_timeout=config.MCP_CONNECT_TIMEOUT,
        )
    else:
        raise ValueError(f"Unknown provider: {provider}")

    return await client.connect()


class ProviderRegistry:
    """Lazily connects to each provider once and caches the outcome.

    A cached slot is reused for the process lifetime, whether it holds a
    client or None. The search provider is mandatory: its failure is raised
    and not cached, so the next request tries again.
    """

    def __init__(self, factory: ClientFactory = connect_provider):
        self._factory = factory
        self._clients: Dict[str, Optional[MCPToolClient]] = {}
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in PROVIDERS}

    def is_resolved(self, provider: str) -> bool:
        return provider in self._clients

    def state(self) -> Dict[str, str]:
        """'uninitialized' | 'connected' | 'failed' per provider."""
        states = {}
        for name in PROVIDERS:
            if name not in self._clients:
                states[name] = "uninitialized"
            elif self._clients[name] is None:
                states[name] = "failed"
            else:
                states[name] = "connected"
        return states

    async def get_or_connect(self, provider: str) -> Optional[MCPToolClient]:
        """
        Return the cached client for a provider, connecting on first use.

        Raises:
            ProviderConnectionError: Only for the search provider
        """
        if provider in self._clients:
            return self._clients[provider]

        async with self._locks[provider]:
            # Another caller may have finished while we waited
            if provider in self._clients:
                return self._clients[provider]

            try:
                client = await self._factory(provider)
            except Exception as e:
                provider_connections_total.labels(provider=provider, status="failure").inc()
                if provider == SEARCH:
                    logger.error(f"Search provider unreachable: {e}")
                    if isinstance(e, ProviderConnectionError):
                        raise
                    raise ProviderConnectionError(f"Search provider unreachable: {e}", provider=SEARCH) from e
                logger.warning(f"Provider '{provider}' unavailable, continuing without its tools: {e}")
                client = None
            else:
                status = "success" if client is not None else "disabled"
                provider_connections_total.labels(provider=provider, status=status).inc()

            self._clients[provider] = client
            return client

    async def connect_all(self) -> Dict[str, Optional[MCPToolClient]]:
        """Resolve all three provider slots, the optional ones concurrently after search."""
        search = await self.get_or_connect(SEARCH)
        assets, content = await asyncio.gather(
            self.get_or_connect(ASSETS),
            self.get_or_connect(CONTENT),
        )
        return {SEARCH: search, ASSETS: assets, CONTENT: content}

    def forget(self, provider: str) -> None:
        """Drop a cached slot so the next caller connects again.

        The dropped client is not closed; its session has already ended.
        """
        if self._clients.pop(provider, None) is not None:
            logger.warning(f"Dropped cached connection for provider '{provider}'")

    async def close(self) -> None:
        """Close every open connection."""
        for name, client in list(self._clients.items()):
            if client is not None:
                await client.close()
        self._clients.clear()


_registry: Optional[ProviderRegistry] = None


def get_registry() -> ProviderRegistry:
    """Get or create the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry (for testing)."""
    global _registry
    _registry = None
