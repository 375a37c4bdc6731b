"""Line-oriented data stream format consumed by the browser chat client.

Each part is ``<code>:<json>\\n``.
"""

import json
from typing import Any, Dict, Optional

STREAM_HEADERS = {
    "x-vercel-ai-data-stream": "v1",
    "X-Accel-Buffering": "no",
    "Cache-Control": "no-cache",
}
STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"


def _part(code: str, value: Any) -> str:
    return f"{code}:{json.dumps(value, separators=(',', ':'), ensure_ascii=False, default=str)}\n"


def start_step(message_id: str) -> str:
    return _part("f", {"messageId": message_id})


def text_delta(text: str) -> str:
    return _part("0", text)


def tool_call(tool_call_id: str, tool_name: str, args: Dict[str, Any]) -> str:
    return _part("9", {"toolCallId": tool_call_id, "toolName": tool_name, "args": args})


def tool_result(tool_call_id: str, result: Any) -> str:
    return _part("a", {"toolCallId": tool_call_id, "result": result})


def error(message: str) -> str:
    return _part("3", message)


def _usage(usage: Optional[Dict[str, int]]) -> Dict[str, int]:
    usage = usage or {}
    return {
        "promptTokens": usage.get("promptTokens", 0),
        "completionTokens": usage.get("completionTokens", 0),
    }


def finish_step(finish_reason: str, usage: Optional[Dict[str, int]] = None, is_continued: bool = False) -> str:
    return _part("e", {"finishReason": finish_reason, "usage": _usage(usage), "isContinued": is_continued})


def finish_message(finish_reason: str, usage: Optional[Dict[str, int]] = None) -> str:
    return _part("d", {"finishReason": finish_reason, "usage": _usage(usage)})
