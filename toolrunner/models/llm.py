"""LLM-related data models (provider-agnostic)."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from toolrunner.models.messages import Message

if TYPE_CHECKING:
    from toolrunner.tools.base import Tool


class ToolSchema(BaseModel):
    """Tool definition as advertised to a model backend."""

    name: str
    description: str
    input_schema: dict[str, Any]

    @classmethod
    def from_tool(cls, tool: "Tool") -> "ToolSchema":
        return cls(name=tool.name, description=tool.description, input_schema=tool.get_json_schema())


@dataclass(frozen=True)
class AgentRunResult:
    """Result from a completed agent run."""

    text: str
    messages: tuple[Message, ...]
    rounds: int
