"""Integer addition tool."""

from toolrunner.tools.base import Tool, ToolArgs, tool
from toolrunner.tools.params import Param, ParamType


class AddArgs(ToolArgs):
    """Input schema for the add_numbers tool."""

    a: int
    b: int


def create_add_numbers_tool() -> Tool[AddArgs]:
    @tool(
        "add_numbers",
        "Adds two integers together and returns the result.",
        params=[
            Param(name="a", type=ParamType.INTEGER, description="First number to add", required=True),
            Param(name="b", type=ParamType.INTEGER, description="Second number to add", required=True),
        ],
        args_schema=AddArgs,
    )
    def add_numbers(args: AddArgs) -> str:
        return str(args.a + args.b)

    return add_numbers
