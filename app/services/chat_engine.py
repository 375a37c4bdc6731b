"""Chat engine: assemble the per-request tool set and stream the model's answer."""

import uuid
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from app.adapters.vendor_adapter_gemini import extract_parts, extract_usage, stream_gemini
from app.infra.config import config
from app.infra.error_handler import ProviderConnectionError, classify_error, describe_error
from app.infra.metrics import chat_requests_total, llm_calls_total, tool_calls_total, tool_discovery_total
from app.models.message import ChatMessage
from app.models.tool import ToolDefinition
from app.services import stream_protocol
from app.services.builtin_tools import builtin_tools
from app.services.fallback_tools import build_direct_wordpress_fallback_tools
from app.services.intent_router import IntentDecision, detect_intent, latest_user_text
from app.services.prompt_builder import build_messages
from app.services.tool_adapter import (
    CONTENT_EXTRA_ALIASES,
    add_separator_aliases,
    build_stable_asset_tools,
    build_stable_content_tools,
    build_stable_search_tools,
    load_tools_safely,
)
from app.services.tool_registry import ASSETS, CONTENT, SEARCH, ProviderRegistry, get_registry

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content-filter",
    "RECITATION": "content-filter",
    "BLOCKLIST": "content-filter",
    "PROHIBITED_CONTENT": "content-filter",
}


async def load_search_tools(registry: ProviderRegistry, client) -> Dict[str, ToolDefinition]:
    """
    Discover the mandatory search tools.

    Unlike the optional groups, a failure here fails the request. The cached
    client is dropped so the next request reconnects.

    Raises:
        ProviderConnectionError: If discovery fails on the search provider
    """
    try:
        raw_tools = await client.tools()
    except Exception as e:
        tool_discovery_total.labels(provider=SEARCH, status="failure").inc()
        registry.forget(SEARCH)
        logger.error(f"Search tool discovery failed: {describe_error(e)}")
        if isinstance(e, ProviderConnectionError):
            raise
        raise ProviderConnectionError(f"Search tool discovery failed: {describe_error(e)}", provider=SEARCH) from e

    tool_discovery_total.labels(provider=SEARCH, status="success").inc()
    return build_stable_search_tools(raw_tools or {})


async def assemble_tools(
    messages: List[ChatMessage],
    registry: Optional[ProviderRegistry] = None,
    intent_routing: Optional[bool] = None,
) -> Dict[str, ToolDefinition]:
    """
    Build the active tool set for one request.

    Flow:
    1. Resolve provider connections (cached after the first request)
    2. Decide the optional tool groups (intent routing, or all of them)
    3. Discover and adapt each group's tools; content falls back to direct calls
    4. Add underscore aliases and merge with search and built-in tools

    Raises:
        ProviderConnectionError: If the search provider cannot be reached
    """
    registry = registry or get_registry()
    if intent_routing is None:
        intent_routing = config.INTENT_ROUTING_ENABLED

    clients = await registry.connect_all()

    if intent_routing:
        decision = detect_intent(latest_user_text(messages))
        logger.info(
            "Intent routing decision",
            extra={"assets": decision.assets, "content": decision.content},
        )
    else:
        decision = IntentDecision(assets=True, content=True)

    search_tools = await load_search_tools(registry, clients[SEARCH])

    asset_tools: Dict[str, ToolDefinition] = {}
    if decision.assets:
        asset_tools = add_separator_aliases(
            await load_tools_safely(clients[ASSETS], build_stable_asset_tools, ASSETS)
        )

    content_tools: Dict[str, ToolDefinition] = {}
    if decision.content:
        content_tools = await load_tools_safely(clients[CONTENT], build_stable_content_tools, CONTENT)
        if not content_tools:
            content_tools = build_direct_wordpress_fallback_tools(
                config.WORDPRESS_MCP_URL,
                config.WORDPRESS_MCP_TOKEN,
            )
        content_tools = add_separator_aliases(content_tools, CONTENT_EXTRA_ALIASES)

    return {
        **asset_tools,
        **content_tools,
        **search_tools,
        **builtin_tools(),
    }


async def execute_tool_call(tools: Dict[str, ToolDefinition], name: str, args: Dict[str, Any]) -> Any:
    """
    Invoke one tool requested by the model.

    Failures, including unknown names and argument validation errors, are
    returned as ``{"error": message}`` so the model can react to them.
    """
    tool = tools.get(name)
    if tool is None:
        tool_calls_total.labels(tool_name=name, provider="unknown", status="not_found").inc()
        logger.warning(f"Model requested unknown tool: {name}")
        return {"error": f"Tool {name} not found"}

    try:
        result = await tool.invoke(args)
    except Exception as e:
        category, _ = classify_error(e)
        tool_calls_total.labels(tool_name=tool.name, provider=tool.provider, status="failure").inc()
        logger.warning(
            f"Tool {name} failed: {describe_error(e)}",
            extra={"tool_name": tool.name, "provider": tool.provider, "category": category.value},
        )
        return {"error": describe_error(e)}

    tool_calls_total.labels(tool_name=tool.name, provider=tool.provider, status="success").inc()
    return result


async def stream_chat(
    messages: List[ChatMessage],
    tools: Dict[str, ToolDefinition],
    max_steps: Optional[int] = None,
    model: Optional[str] = None,
) -> AsyncIterator[str]:
    """
    Stream the model's answer as data stream lines.

    Each step is one streaming model call; tool calls requested in a step are
    executed and fed back before the next step. Stops at the first step
    without tool calls or after ``max_steps`` steps. Any error ends the
    stream with a single error part.
    """
    max_steps = max_steps or config.MAX_TOOL_STEPS
    model_name = model or config.GEMINI_MODEL
    llm_messages = build_messages(messages)
    total_usage = {"promptTokens": 0, "completionTokens": 0}
    finish_reason = "unknown"

    try:
        for step in range(max_steps):
            logger.debug(f"Model step {step + 1}/{max_steps}")
            yield stream_protocol.start_step(f"msg-{uuid.uuid4().hex}")

            text_chunks: List[str] = []
            calls: List[Dict[str, Any]] = []
            step_usage = None
            step_finish = None

            try:
                async for chunk in stream_gemini(llm_messages, tools, model_name):
                    parts, reason = extract_parts(chunk)
                    for part in parts:
                        if part.get("text"):
                            text_chunks.append(part["text"])
                            yield stream_protocol.text_delta(part["text"])
                        elif "functionCall" in part:
                            function_call = part["functionCall"]
                            call = {
                                "id": function_call.get("id") or f"call_{uuid.uuid4().hex[:24]}",
                                "name": function_call.get("name", ""),
                                "args": function_call.get("args") or {},
                            }
                            calls.append(call)
                            yield stream_protocol.tool_call(call["id"], call["name"], call["args"])
                    step_finish = reason or step_finish
                    step_usage = extract_usage(chunk) or step_usage
            except Exception:
                llm_calls_total.labels(model=model_name, status="failure").inc()
                raise
            llm_calls_total.labels(model=model_name, status="success").inc()

            if step_usage:
                total_usage["promptTokens"] += step_usage["promptTokens"]
                total_usage["completionTokens"] += step_usage["completionTokens"]

            if not calls:
                finish_reason = _FINISH_REASONS.get(step_finish, "other") if step_finish else "unknown"
                if text_chunks:
                    llm_messages.append({"role": "assistant", "content": "".join(text_chunks)})
                yield stream_protocol.finish_step(finish_reason, step_usage)
                break

            llm_messages.append({"role": "assistant", "content": "".join(text_chunks), "tool_calls": calls})
            for call in calls:
                result = await execute_tool_call(tools, call["name"], call["args"])
                yield stream_protocol.tool_result(call["id"], result)
                llm_messages.append({
                    "role": "tool",
                    "tool_call_id": call["id"],
                    "name": call["name"],
                    "content": result,
                })

            finish_reason = "tool-calls"
            yield stream_protocol.finish_step(finish_reason, step_usage)

        yield stream_protocol.finish_message(finish_reason, total_usage)
        chat_requests_total.labels(status="completed").inc()

    except Exception as e:
        chat_requests_total.labels(status="errored").inc()
        logger.error(f"Streaming failed: {e}", exc_info=True)
        yield stream_protocol.error(f"Stream error: {describe_error(e)}")
