"""Model client port used by the agent."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from toolrunner.models.messages import Message
from toolrunner.tools.base import Tool


@runtime_checkable
class ModelClient(Protocol):
    """A language-model backend.

    Implementations map the transcript onto a vendor API. ``call`` must return
    an ``AssistantMessage`` or a ``ToolRequestMessage``. Every tool is
    registered with ``register_tool`` before the first ``call``.
    """

    async def call(self, history: Sequence[Message]) -> Message: ...

    def register_tool(self, tool: Tool) -> None: ...
