"""Tools the orchestrator can dispatch."""

from toolrunner.tools.add_numbers import create_add_numbers_tool
from toolrunner.tools.base import NoArgs, Tool, ToolArgs, tool
from toolrunner.tools.params import Param, ParamType, no_params
from toolrunner.tools.random_number import create_random_number_tool
from toolrunner.tools.registry import ToolsRegistry
from toolrunner.tools.time_reporter import create_time_reporter_tool


def default_tools() -> list[Tool]:
    """Example tool set: addition, random numbers and the clock."""
    return [
        create_add_numbers_tool(),
        create_random_number_tool(),
        create_time_reporter_tool(),
    ]


__all__ = [
    "NoArgs",
    "Param",
    "ParamType",
    "Tool",
    "ToolArgs",
    "ToolsRegistry",
    "create_add_numbers_tool",
    "create_random_number_tool",
    "create_time_reporter_tool",
    "default_tools",
    "no_params",
    "tool",
]
