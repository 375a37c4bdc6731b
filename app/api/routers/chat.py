"""Chat API router."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from app.infra.config import config
from app.infra.error_handler import ProviderConnectionError
from app.infra.metrics import chat_requests_total
from app.models.message import ChatRequest
from app.services.chat_engine import assemble_tools, stream_chat
from app.services.stream_protocol import STREAM_HEADERS, STREAM_MEDIA_TYPE
from app.services.tool_registry import ProviderRegistry, get_registry

logger = logging.getLogger(__name__)

router = APIRouter()


def get_intent_routing() -> Optional[bool]:
    """Whether to filter tool groups by the latest user message."""
    return config.INTENT_ROUTING_ENABLED


@router.post("/api/chat", tags=["Chat"])
async def chat(
    request: ChatRequest,
    registry: ProviderRegistry = Depends(get_registry),
    intent_routing: bool = Depends(get_intent_routing),
):
    """
    Stream an assistant reply for the given conversation.

    Assembles the active tool set (search, asset and content providers plus
    the built-in weather tool), then relays the model's streamed text, tool
    calls and tool results as data stream lines.

    **Example Request:**
    ```json
    {"messages": [{"role": "user", "content": "show me images of mountains"}]}
    ```

    Returns 503 when the search provider cannot be reached. Errors after
    streaming has started are delivered in-band as an error part.
    """
    try:
        tools = await assemble_tools(request.messages, registry=registry, intent_routing=intent_routing)
    except ProviderConnectionError as e:
        chat_requests_total.labels(status="rejected").inc()
        raise HTTPException(status_code=503, detail=f"Search provider unavailable: {e.message}")

    logger.info(f"Exposing {len(tools)} tools", extra={"tools": sorted(tools)})
    return StreamingResponse(
        stream_chat(request.messages, tools),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )
