"""Random integer tool."""

import random

from pydantic import Field

from toolrunner.tools.base import Tool, ToolArgs, tool
from toolrunner.tools.params import Param, ParamType


class RandomArgs(ToolArgs):
    """Input schema for the random_number tool."""

    minimum: int = Field(alias="min")
    maximum: int = Field(alias="max")


def create_random_number_tool(rng: random.Random | None = None) -> Tool[RandomArgs]:
    """Create the random_number tool.

    Args:
        rng: Random source (defaults to a fresh ``random.Random``)
    """
    rng = rng or random.Random()

    @tool(
        "random_number",
        "Generates a random integer number between min and max (inclusive).",
        params=[
            Param(name="min", type=ParamType.INTEGER, description="Minimum value (inclusive)", required=True),
            Param(name="max", type=ParamType.INTEGER, description="Maximum value (inclusive)", required=True),
        ],
        args_schema=RandomArgs,
    )
    def random_number(args: RandomArgs) -> str:
        if args.minimum > args.maximum:
            raise ValueError(f"min greater than max ({args.minimum} > {args.maximum})")
        return str(rng.randint(args.minimum, args.maximum))

    return random_number
