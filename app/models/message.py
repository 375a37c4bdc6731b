"""Chat message models as sent by the browser chat client."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Union


class ToolInvocation(BaseModel):
    """A tool call recorded on an earlier assistant message."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    state: str = Field(default="result", description="'partial-call' | 'call' | 'result'")
    tool_call_id: str = Field(default="", alias="toolCallId")
    tool_name: str = Field(..., alias="toolName")
    args: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None


class ChatMessage(BaseModel):
    """One entry of the ordered conversation."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    role: Literal["user", "assistant", "system"] = Field(..., description="Message author")
    content: Union[str, List[Dict[str, Any]]] = Field(default="", description="Text or structured parts")
    tool_invocations: Optional[List[ToolInvocation]] = Field(None, alias="toolInvocations")

    @property
    def text(self) -> str:
        """Plain text of the message, joining text parts when content is structured."""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            part.get("text", "") for part in self.content
            if isinstance(part, dict) and part.get("type", "text") == "text"
        )


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    messages: List[ChatMessage] = Field(..., description="Ordered conversation, oldest first")
