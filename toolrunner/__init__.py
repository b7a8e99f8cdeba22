"""Conversational tool-calling orchestrator."""

from toolrunner.models.messages import (
    AssistantMessage,
    Message,
    MessageType,
    SystemMessage,
    ToolCall,
    ToolCallRequest,
    ToolCallResponse,
    ToolRequestMessage,
    ToolResponseMessage,
    UserMessage,
)
from toolrunner.services.agent import Agent, AgentConfig, ToolErrorPolicy
from toolrunner.tools.base import NoArgs, Tool, ToolArgs, tool
from toolrunner.tools.params import Param, ParamType, no_params

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "AgentConfig",
    "AssistantMessage",
    "Message",
    "MessageType",
    "NoArgs",
    "Param",
    "ParamType",
    "SystemMessage",
    "Tool",
    "ToolArgs",
    "ToolCall",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolErrorPolicy",
    "ToolRequestMessage",
    "ToolResponseMessage",
    "UserMessage",
    "__version__",
    "no_params",
    "tool",
]
