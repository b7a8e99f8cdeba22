"""Shared fixtures and fakes for tests."""

from collections.abc import Sequence

import pytest

from toolrunner.models.messages import (
    AssistantMessage,
    Message,
    ToolCall,
    ToolCallRequest,
    ToolRequestMessage,
)
from toolrunner.tools.base import Tool


class ScriptedModel:
    """Model client replaying a fixed list of turns.

    The last scripted turn repeats forever. Exceptions in the script are raised.
    """

    def __init__(self, responses: Sequence[Message | Exception]):
        self.responses = list(responses)
        self.calls: list[tuple[Message, ...]] = []
        self.registered: list[str] = []

    async def call(self, history: Sequence[Message]) -> Message:
        self.calls.append(tuple(history))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def register_tool(self, tool: Tool) -> None:
        self.registered.append(tool.name)


def tool_request(*calls: tuple[str, str, str]) -> ToolRequestMessage:
    """Build a tool request message from ``(id, name, args)`` triples."""
    return ToolRequestMessage(
        requests=tuple(ToolCallRequest(call=ToolCall(id=id_, name=name), args=args) for id_, name, args in calls)
    )


@pytest.fixture
def answer() -> AssistantMessage:
    return AssistantMessage(content="All done.")
