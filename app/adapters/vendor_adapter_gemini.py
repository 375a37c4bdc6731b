"""Gemini vendor adapter for streaming function-calling completions."""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from app.infra.config import config
from app.infra.error_handler import ConfigurationError, ModelAPIError
from app.models.tool import ToolDefinition

logger = logging.getLogger(__name__)

# JSON Schema keywords the Gemini function declaration format accepts
_ALLOWED_SCHEMA_KEYS = {"type", "description", "enum", "format", "properties", "required", "items", "nullable", "minLength"}


def to_gemini_schema(schema: Dict[str, Any], defs: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """
    Reduce a JSON Schema to the OpenAPI subset Gemini accepts.

    - ``$ref`` into ``$defs`` is inlined
    - ``anyOf [X, null]`` becomes ``X`` with ``nullable: true``
    - unsupported keywords (title, default, additionalProperties, ...) are dropped
    - an object with no properties returns None; callers substitute a bare object

    Returns:
        Converted schema, or None for an empty object schema
    """
    if defs is None:
        defs = schema.get("$defs", {})

    ref = schema.get("$ref")
    if ref:
        schema = {**defs.get(ref.split("/")[-1], {}), **{k: v for k, v in schema.items() if k != "$ref"}}

    nullable = False
    any_of = schema.get("anyOf")
    if any_of:
        variants = [s for s in any_of if s.get("type") != "null"]
        nullable = len(variants) < len(any_of)
        if len(variants) == 1:
            merged = {k: v for k, v in schema.items() if k != "anyOf"}
            schema = {**variants[0], **merged}
        else:
            # Real unions cannot be expressed; fall back to an untyped string
            schema = {"type": "string", "description": schema.get("description", "")}

    if "enum" in schema and "type" not in schema:
        schema = {**schema, "type": "string"}

    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key not in _ALLOWED_SCHEMA_KEYS:
            continue
        if key == "properties":
            properties = {}
            for name, prop in value.items():
                prop_schema = to_gemini_schema(prop, defs)
                properties[name] = prop_schema if prop_schema is not None else {"type": "object"}
            converted["properties"] = properties
        elif key == "items":
            converted["items"] = to_gemini_schema(value, defs) or {"type": "object"}
        elif key == "required":
            if value:
                converted["required"] = list(value)
        else:
            converted[key] = value

    if nullable:
        converted["nullable"] = True

    if converted.get("type") == "object" and not converted.get("properties"):
        return None
    return converted


def build_gemini_tools(tools: Dict[str, ToolDefinition]) -> List[Dict[str, Any]]:
    """
    Convert the active tool set to Gemini function declarations.

    Args:
        tools: Mapping of exposed name (aliases included) to ToolDefinition

    Returns:
        Gemini ``tools`` array, empty when there are no tools
    """
    declarations = []
    for name, tool in tools.items():
        declaration: Dict[str, Any] = {"name": name, "description": tool.description}
        # Catch-all schemas still declare an object so any arguments can be passed
        declaration["parameters"] = to_gemini_schema(tool.parameters_schema) or {"type": "object"}
        declarations.append(declaration)
    return [{"functionDeclarations": declarations}] if declarations else []


def build_gemini_contents(messages: List[Dict[str, Any]]) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Convert provider-neutral messages to Gemini ``systemInstruction`` and ``contents``.

    System messages are collected into the system instruction; consecutive
    tool results are merged into one user turn of function responses.
    """
    system_parts = []
    contents: List[Dict[str, Any]] = []

    for msg in messages:
        role = msg.get("role")
        content = msg.get("content")

        if role == "system":
            if content:
                system_parts.append({"text": content})
        elif role == "user":
            contents.append({"role": "user", "parts": [{"text": content}]})
        elif role == "assistant":
            parts = []
            if content:
                parts.append({"text": content})
            for call in msg.get("tool_calls") or []:
                parts.append({"functionCall": {"name": call["name"], "args": call.get("args") or {}}})
            if parts:
                contents.append({"role": "model", "parts": parts})
        elif role == "tool":
            part = {
                "functionResponse": {
                    "name": msg["name"],
                    "response": {"name": msg["name"], "content": content},
                }
            }
            last = contents[-1] if contents else None
            if last and last["role"] == "user" and all("functionResponse" in p for p in last["parts"]):
                last["parts"].append(part)
            else:
                contents.append({"role": "user", "parts": [part]})

    system_instruction = {"parts": system_parts} if system_parts else None
    return system_instruction, contents


def _error_message(body: bytes) -> str:
    try:
        return json.loads(body).get("error", {}).get("message") or body.decode(errors="replace")
    except (ValueError, AttributeError):
        return body.decode(errors="replace")


async def stream_gemini(
    messages: List[Dict[str, Any]],
    tools: Dict[str, ToolDefinition],
    model: Optional[str] = None,
) -> AsyncIterator[Dict[str, Any]]:
    """
    Call Gemini ``streamGenerateContent`` and yield each SSE chunk as a dict.

    Args:
        messages: Provider-neutral message dicts (see prompt_builder.build_messages)
        tools: Active tool set
        model: Model id, defaults to config.GEMINI_MODEL

    Raises:
        ConfigurationError: If no API key is configured
        ModelAPIError: If the API answers with an error status
    """
    if not config.GEMINI_API_KEY:
        raise ConfigurationError("GOOGLE_GENERATIVE_AI_API_KEY not configured")

    model_name = (model or config.GEMINI_MODEL).removeprefix("models/")
    system_instruction, contents = build_gemini_contents(messages)

    payload: Dict[str, Any] = {"contents": contents}
    if system_instruction:
        payload["systemInstruction"] = system_instruction
    gemini_tools = build_gemini_tools(tools)
    if gemini_tools:
        payload["tools"] = gemini_tools

    url = f"{config.GEMINI_API_BASE}/models/{model_name}:streamGenerateContent"
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": config.GEMINI_API_KEY,
    }

    async with httpx.AsyncClient(timeout=config.LLM_CALL_TIMEOUT) as client:
        async with client.stream("POST", url, params={"alt": "sse"}, json=payload, headers=headers) as response:
            if response.status_code >= 400:
                body = await response.aread()
                raise ModelAPIError(
                    f"Gemini API error ({response.status_code}): {_error_message(body)}",
                    status_code=response.status_code,
                )

            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                if not data:
                    continue
                yield json.loads(data)


def extract_parts(chunk: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Return (parts, finish_reason) of the first candidate in a stream chunk."""
    candidates = chunk.get("candidates") or []
    if not candidates:
        return [], None
    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    return parts, candidate.get("finishReason")


def extract_usage(chunk: Dict[str, Any]) -> Optional[Dict[str, int]]:
    usage = chunk.get("usageMetadata")
    if not usage:
        return None
    return {
        "promptTokens": usage.get("promptTokenCount", 0),
        "completionTokens": usage.get("candidatesTokenCount", 0),
    }
