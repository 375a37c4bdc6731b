"""Tool definition models."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.infra.error_handler import ToolValidationError

ToolExecutor = Callable[[Dict[str, Any]], Awaitable[Any]]


class PassthroughArgs(BaseModel):
    """Accepts any object. Used for operations without a hand-authored schema."""
    model_config = ConfigDict(extra="allow")


@dataclass(frozen=True)
class RawTool:
    """A tool as reported by a provider's discovery call."""
    name: str
    execute: ToolExecutor
    description: Optional[str] = None
    input_schema: Dict[str, Any] = field(default_factory=dict)


class ToolDefinition(BaseModel):
    """Stable tool exposed to the model.

    The argument shape is declared by ``args_model`` regardless of what the
    provider reported; ``invoke`` validates against it before delegating.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Canonical tool name")
    description: str = Field(..., description="Description shown to the model")
    args_model: Type[BaseModel] = Field(default=PassthroughArgs, description="Accepted arguments")
    provider: str = Field(..., description="'search' | 'assets' | 'content' | 'builtin'")
    execute: ToolExecutor = Field(..., description="Invocation function", exclude=True)

    @property
    def parameters_schema(self) -> Dict[str, Any]:
        """JSON Schema for the accepted arguments."""
        return self.args_model.model_json_schema()

    def validate_args(self, args: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate raw arguments.

        Declared optional fields left empty are dropped; catch-all arguments
        are forwarded as given, explicit nulls included.
        """
        try:
            validated = self.args_model.model_validate(args or {})
        except ValidationError as e:
            raise ToolValidationError(
                f"Invalid arguments for {self.name}: {e.errors(include_url=False)}",
                tool_name=self.name,
            )
        if issubclass(self.args_model, PassthroughArgs):
            return validated.model_dump()
        return validated.model_dump(exclude_none=True)

    async def invoke(self, args: Optional[Dict[str, Any]]) -> Any:
        """Validate arguments and forward them to the invocation function."""
        return await self.execute(self.validate_args(args))
