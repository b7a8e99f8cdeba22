"""Tests for tools, the example tools and the tools registry."""

import random
import threading
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import BaseModel, Field

from toolrunner.exceptions import ToolDefinitionError, ToolExecutionError, UnknownToolError
from toolrunner.models.messages import ToolCall, ToolCallRequest
from toolrunner.tools import (
    NoArgs,
    Param,
    ParamType,
    Tool,
    ToolArgs,
    ToolsRegistry,
    create_add_numbers_tool,
    create_random_number_tool,
    create_time_reporter_tool,
    default_tools,
    tool,
)
from toolrunner.tools.base import zero_payload


class EchoArgs(ToolArgs):
    """Arguments covering the zero value of several field kinds."""

    text: str
    times: int
    loud: bool
    tags: list[str]
    suffix: str | None
    separator: str = " "


def echo(args: EchoArgs) -> str:
    return args.separator.join([args.text] * args.times)


ECHO_PARAMS = [
    Param(name="text", type=ParamType.STRING, required=True),
    Param(name="times", type=ParamType.INTEGER, required=True),
]


class CountArgs(ToolArgs):
    """Arguments whose zero value fails validation."""

    count: int = Field(ge=1)


class TestToolConstruction:
    """Tests for registration-time validation of tools."""

    def test_properties(self):
        """A tool exposes its descriptor and compiled schema."""
        echo_tool = Tool("echo", "Repeats text", ECHO_PARAMS, EchoArgs, echo)

        assert echo_tool.name == "echo"
        assert echo_tool.description == "Repeats text"
        assert [p.name for p in echo_tool.params] == ["text", "times"]
        assert echo_tool.args_schema is EchoArgs
        assert echo_tool.get_json_schema()["required"] == ["text", "times"]

    def test_param_name_must_match_field(self):
        """Unknown parameter names fail construction with the tool and model named."""
        with pytest.raises(ToolDefinitionError, match=r"echo.*'count'.*EchoArgs"):
            Tool("echo", "Repeats text", [Param(name="count", type=ParamType.INTEGER)], EchoArgs, echo)

    def test_constrained_model_registers(self):
        """A model whose zero value breaks its own constraints is still a valid tool."""
        repeat = Tool("repeat", "Repeats", [Param(name="count", type=ParamType.INTEGER)], CountArgs, str)

        assert repeat.parse_input("not json").count == 0

    def test_plain_model_rejected(self):
        """Argument models must be ToolArgs so field names follow the JSON naming rule."""

        class PlainArgs(BaseModel):
            Min: int

        with pytest.raises(ToolDefinitionError, match="must subclass ToolArgs"):
            Tool("plain", "Plain", [Param(name="min", type=ParamType.INTEGER)], PlainArgs, str)

    def test_decorator(self):
        """The decorator builds a tool from its action."""

        @tool("shout", "Uppercases text", params=[Param(name="text", type=ParamType.STRING)], args_schema=EchoArgs)
        def shout(args: EchoArgs) -> str:
            return args.text.upper()

        assert isinstance(shout, Tool)
        assert shout.name == "shout"

    def test_zero_payload(self):
        """Only required fields get zero values, keyed by their alias."""
        assert zero_payload(EchoArgs) == {"text": "", "times": 0, "loud": False, "tags": [], "suffix": None}


class TestToolExecution:
    """Tests for executing tools on raw JSON."""

    @pytest.fixture
    def echo_tool(self) -> Tool[EchoArgs]:
        return Tool("echo", "Repeats text", ECHO_PARAMS, EchoArgs, echo)

    @pytest.mark.asyncio
    async def test_execute(self, echo_tool):
        """Raw JSON is parsed into the argument model and passed to the action."""
        assert await echo_tool.execute('{"text": "hi", "times": 3}') == "hi hi hi"

    @pytest.mark.asyncio
    async def test_missing_fields_default_to_zero(self, echo_tool):
        """Missing fields take their zero value."""
        assert await echo_tool.execute('{"text": "hi"}') == ""
        assert echo_tool.parse_input('{"times": 2}').text == ""

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"times": "many"}', "", None])
    def test_lenient_parsing_falls_back_to_zero(self, echo_tool, raw):
        """Malformed, non-object or ill-typed arguments yield the zero value."""
        args = echo_tool.parse_input(raw)

        assert args.text == ""
        assert args.times == 0
        assert args.separator == " "

    def test_ill_typed_field_keeps_the_others(self, echo_tool):
        """Only the rejected field is reset to its zero value."""
        args = echo_tool.parse_input('{"text": "hi", "times": "many", "loud": true}')

        assert args.text == "hi"
        assert args.times == 0
        assert args.loud is True

    def test_lax_coercion(self, echo_tool):
        """Numeric strings are accepted for integer fields."""
        assert echo_tool.parse_input('{"text": "hi", "times": "2"}').times == 2

    @pytest.mark.asyncio
    async def test_constrained_model_fallback(self):
        """Values breaking a constraint fall back to the unvalidated zero value."""
        repeat = Tool(
            "repeat", "Repeats", [Param(name="count", type=ParamType.INTEGER)], CountArgs, lambda a: a.count
        )

        assert await repeat.execute('{"count": 3}') == "3"
        assert await repeat.execute('{"count": -1}') == "0"
        assert await repeat.execute("[]") == "0"

    @pytest.mark.asyncio
    async def test_sync_action_runs_off_the_event_loop(self):
        """Blocking actions run in a worker thread."""
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def where(args: NoArgs) -> str:
            seen.append(threading.get_ident())
            return "ok"

        assert await Tool("where", "Reports its thread", [], NoArgs, where).execute("{}") == "ok"
        assert seen and seen[0] != loop_thread

    @pytest.mark.asyncio
    async def test_async_action(self):
        """Async actions are awaited."""

        async def fetch(args: NoArgs) -> str:
            return "fetched"

        fetch_tool = Tool("fetch", "Fetches", [], NoArgs, fetch)
        assert await fetch_tool.execute("{}") == "fetched"

    @pytest.mark.asyncio
    async def test_non_string_result_converted(self):
        """Results are always text."""
        answer_tool = Tool("answer", "Answers", [], NoArgs, lambda _: 42)
        assert await answer_tool.execute(None) == "42"

    @pytest.mark.asyncio
    async def test_action_error_wrapped(self):
        """Action failures surface as ToolExecutionError chained to the cause."""

        def broken(args: NoArgs) -> str:
            raise RuntimeError("disk on fire")

        broken_tool = Tool("broken", "Fails", [], NoArgs, broken)
        with pytest.raises(ToolExecutionError, match="call tool broken: disk on fire") as exc_info:
            await broken_tool.execute("{}")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.name == "broken"


class TestExampleTools:
    """Tests for the bundled example tools."""

    @pytest.mark.asyncio
    async def test_add_numbers(self):
        """Adding 2 and 3 returns "5"."""
        assert await create_add_numbers_tool().execute('{"a": 2, "b": 3}') == "5"

    def test_add_numbers_schema(self):
        """The add_numbers schema requires both integers."""
        schema = create_add_numbers_tool().get_json_schema()

        assert schema["required"] == ["a", "b"]
        assert schema["properties"]["a"]["type"] == "integer"

    @pytest.mark.asyncio
    async def test_random_number_in_range(self):
        """Random numbers stay inside the inclusive range."""
        random_tool = create_random_number_tool(random.Random(7))

        results = {int(await random_tool.execute('{"min": 10, "max": 12}')) for _ in range(50)}
        assert results <= {10, 11, 12}

    @pytest.mark.asyncio
    async def test_random_number_min_greater_than_max(self):
        """An inverted range fails without emitting a number."""
        with pytest.raises(ToolExecutionError, match="min greater than max"):
            await create_random_number_tool().execute('{"min": 10, "max": 5}')

    @pytest.mark.asyncio
    async def test_time_reporter(self):
        """The clock is reported in RFC 3339 form."""
        fixed = datetime(2024, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=2)))
        reporter = create_time_reporter_tool(clock=lambda: fixed)

        assert await reporter.execute("{}") == "2024-03-01T09:30:00+02:00"

    @pytest.mark.asyncio
    async def test_time_reporter_default_clock_has_offset(self):
        """The default clock includes a UTC offset."""
        reported = datetime.fromisoformat(await create_time_reporter_tool().execute("{}"))
        assert reported.utcoffset() is not None
        assert abs(reported - datetime.now(UTC)) < timedelta(minutes=1)


class TestToolsRegistry:
    """Tests for the tools registry."""

    @pytest.fixture
    def registry(self) -> ToolsRegistry:
        return ToolsRegistry(default_tools())

    def test_lookup(self, registry):
        """Registered tools are found by name."""
        assert registry.get_tool_names() == ["add_numbers", "random_number", "time_reporter"]
        assert registry.has_tool("add_numbers")
        assert "time_reporter" in registry
        assert len(registry) == 3
        assert registry.get_tool("add_numbers").name == "add_numbers"

    def test_unknown_tool(self, registry):
        """Unknown names raise a typed error."""
        with pytest.raises(UnknownToolError, match="unknown tool 'subtract'"):
            registry.get_tool("subtract")

    def test_duplicate_registration(self, registry):
        """A name can only be registered once."""
        with pytest.raises(ToolDefinitionError, match="already registered"):
            registry.register_tool(create_add_numbers_tool())

    @pytest.mark.asyncio
    async def test_execute_dispatches_by_name(self, registry):
        """Requests are dispatched to the named tool."""
        request = ToolCallRequest(call=ToolCall(id="1", name="add_numbers"), args={"a": 40, "b": 2})
        assert await registry.execute(request) == "42"

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self, registry):
        """Dispatching an unknown name raises instead of doing nothing."""
        request = ToolCallRequest(call=ToolCall(id="1", name="subtract"))
        with pytest.raises(UnknownToolError):
            await registry.execute(request)

    def test_tool_schemas(self, registry):
        """Schemas carry name, description and compiled input schema."""
        schemas = {s.name: s for s in registry.get_tool_schemas()}

        assert schemas["random_number"].input_schema["required"] == ["min", "max"]
        assert schemas["time_reporter"].input_schema["properties"] == {}


class TestAliasedArgs:
    """Tests for argument models using explicit aliases."""

    class RangeArgs(ToolArgs):
        low: int = Field(alias="from")
        high: int = Field(alias="to")

    @pytest.mark.asyncio
    async def test_alias_is_read(self):
        """Arguments are read under their alias."""
        span = Tool(
            "span",
            "Width of a range",
            [Param(name="from", type=ParamType.INTEGER), Param(name="to", type=ParamType.INTEGER)],
            self.RangeArgs,
            lambda args: args.high - args.low,
        )
        assert await span.execute('{"from": 3, "to": 10}') == "7"
