"""Tools registry for dispatching tool calls by name."""

from collections.abc import Iterable

from toolrunner.exceptions import ToolDefinitionError, UnknownToolError
from toolrunner.models.llm import ToolSchema
from toolrunner.models.messages import ToolCallRequest
from toolrunner.tools.base import Tool


class ToolsRegistry:
    """Registry mapping tool names to tools.

    Filled once when an agent is built and only read afterwards, so concurrent
    dispatch needs no locking.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for t in tools:
            self.register_tool(t)

    def register_tool(self, tool: Tool) -> None:
        """Register a new tool in the registry.

        Raises:
            ToolDefinitionError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ToolDefinitionError(f"tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Tool:
        """Look up a tool by name.

        Raises:
            UnknownToolError: If no tool with that name is registered
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    async def execute(self, request: ToolCallRequest) -> str:
        """Dispatch a tool call request to the named tool."""
        return await self.get_tool(request.call.name).execute(request.args)

    def get_tool_schemas(self) -> list[ToolSchema]:
        """Get the advertised definition of every registered tool."""
        return [ToolSchema.from_tool(t) for t in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
