"""Current time tool."""

from collections.abc import Callable
from datetime import UTC, datetime

from toolrunner.tools.base import NoArgs, Tool, tool
from toolrunner.tools.params import no_params


def create_time_reporter_tool(clock: Callable[[], datetime] | None = None) -> Tool[NoArgs]:
    """Create the time_reporter tool.

    Args:
        clock: Returns the current time (defaults to the local time zone)
    """
    clock = clock or (lambda: datetime.now(UTC).astimezone())

    @tool(
        "time_reporter",
        "Returns the current server time in RFC3339 format.",
        params=no_params(),
        args_schema=NoArgs,
    )
    def time_reporter(_: NoArgs) -> str:
        return clock().isoformat(timespec="seconds")

    return time_reporter
