from .message import ChatMessage, ChatRequest, ToolInvocation
from .tool import PassthroughArgs, RawTool, ToolDefinition

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ToolInvocation",
    "PassthroughArgs",
    "RawTool",
    "ToolDefinition",
]
