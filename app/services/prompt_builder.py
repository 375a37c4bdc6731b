"""Prompt builder: system instruction plus the normalized conversation."""

from typing import Any, Dict, List
from app.models.message import ChatMessage


SYSTEM_PROMPT = """You are a helpful AI assistant with access to tools for searching data.

CRITICAL INSTRUCTIONS:
1. When users ask about Cloudinary, images, videos, media, or assets:
   - You MUST use Cloudinary tools (search-assets, list-images, list-videos, etc.)
   - NEVER respond without calling a Cloudinary tool first
   - Example queries: "show images", "find assets", "list videos", "search for tag"

2. When users ask about TV shows or knowledge retrieval:
   - You MUST use the 'search' tool
   - NEVER respond without calling the search tool first

3. When users ask about WordPress posts, publishing, drafts, site info, or cache:
   - You MUST use WordPress tools (wpengine--create-post, wpengine--list-posts, etc.)
   - NEVER respond without calling a WordPress tool first
   - If creating a post with a Cloudinary image, you MUST include cloudinary_url in wpengine--create-post arguments

4. When users ask about weather:
   - You MUST use the weatherTool

NEVER make up data. ALWAYS call the appropriate tool before responding."""


def build_messages(messages: List[ChatMessage]) -> List[Dict[str, Any]]:
    """
    Normalize the inbound conversation into provider-neutral message dicts.

    Order:
    1. SYSTEM_PROMPT (system)
    2. Conversation in order; system entries are kept as extra system messages
       and completed tool invocations on assistant messages become an
       assistant ``tool_calls`` entry followed by one ``tool`` message per result

    Returns:
        List of dicts: {"role": "system"|"user"|"assistant"|"tool", "content": ...}
    """
    normalized: List[Dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]

    for message in messages:
        text = message.text

        if message.role in ("system", "user"):
            if text:
                normalized.append({"role": message.role, "content": text})
            continue

        # assistant
        invocations = [inv for inv in (message.tool_invocations or []) if inv.state == "result"]
        if not text and not invocations:
            continue

        assistant_msg: Dict[str, Any] = {"role": "assistant", "content": text}
        if invocations:
            assistant_msg["tool_calls"] = [
                {"id": inv.tool_call_id, "name": inv.tool_name, "args": inv.args}
                for inv in invocations
            ]
        normalized.append(assistant_msg)

        for inv in invocations:
            normalized.append({
                "role": "tool",
                "tool_call_id": inv.tool_call_id,
                "name": inv.tool_name,
                "content": inv.result,
            })

    return normalized
