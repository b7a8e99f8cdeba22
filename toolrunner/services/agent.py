"""Agent orchestrating model calls and tool executions over one transcript."""

import asyncio
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from toolrunner.clients.base import ModelClient
from toolrunner.exceptions import (
    ModelCallError,
    RoundLimitExceededError,
    ToolExecutionError,
    UnexpectedMessageError,
    UnknownToolError,
)
from toolrunner.models.llm import AgentRunResult
from toolrunner.models.messages import (
    AssistantMessage,
    BaseMessage,
    Message,
    SystemMessage,
    ToolCallRequest,
    ToolRequestMessage,
    ToolResponseMessage,
    UserMessage,
)
from toolrunner.tools.base import Tool
from toolrunner.tools.registry import ToolsRegistry
from toolrunner.utils.logging import get_logger, log_transcript

logger = get_logger(__name__)

TranscriptSink = Callable[[Sequence[Message]], None]


class ToolErrorPolicy(StrEnum):
    """What the agent does when a tool fails or is unknown."""

    REPORT = "report"  # "Error: ..." goes into the transcript as the tool result
    RAISE = "raise"  # the run aborts with the error


@dataclass
class AgentConfig:
    """Configuration for an agent."""

    max_rounds: int = 10
    parallel_tool_calls: bool = True
    tool_error_policy: ToolErrorPolicy = ToolErrorPolicy.REPORT
    debug: bool = False

    def __post_init__(self) -> None:
        if self.max_rounds < 1:
            raise ValueError(f"max_rounds must be at least 1, got {self.max_rounds}")


def build_system_prompt(base: str, appends: Iterable[str] = ()) -> str:
    """Join the base prompt and per-call fragments, one per line, dropping empty parts."""
    parts = [s for s in (part.strip() for part in (base, *appends)) if s]
    return "\n".join(parts)


def initial_history(user_message: str, system_prompt: str) -> list[Message]:
    """Seed a transcript with the optional system prompt and the user's message."""
    if not system_prompt:
        return [UserMessage(content=user_message)]
    return [SystemMessage(content=system_prompt), UserMessage(content=user_message)]


class Agent:
    """Conversational agent driving a model client and a set of tools.

    Each :meth:`run` owns a fresh transcript. The model is called until it
    answers with text or ``config.max_rounds`` calls have been made.
    """

    def __init__(
        self,
        model: ModelClient,
        tools: Iterable[Tool] = (),
        system_prompt: str = "",
        config: AgentConfig | None = None,
        transcript_sink: TranscriptSink | None = None,
    ):
        """Initialize agent and register its tools.

        Args:
            model: Model client the transcript is sent to
            tools: Tools registered locally and advertised to the model
            system_prompt: Base system prompt for every run
            config: Agent configuration
            transcript_sink: Receives the full transcript once per run; defaults
                to :func:`log_transcript` when ``config.debug`` is set

        Raises:
            ToolDefinitionError: If two tools share a name
        """
        self.model = model
        self.config = config or AgentConfig()
        self.system_prompt = system_prompt
        self.tools_registry = ToolsRegistry()

        if transcript_sink is None and self.config.debug:
            transcript_sink = log_transcript
        self.transcript_sink = transcript_sink

        for t in tools:
            self.tools_registry.register_tool(t)
            self.model.register_tool(t)

        logger.info(f"Agent initialized with tools: {self.tools_registry.get_tool_names()}")

    async def send_message(self, user_message: str, *, system_prompt_appends: Iterable[str] = ()) -> str:
        """Run a conversation for ``user_message`` and return the final answer text."""
        result = await self.run(user_message, system_prompt_appends=system_prompt_appends)
        return result.text

    async def run(self, user_message: str, *, system_prompt_appends: Iterable[str] = ()) -> AgentRunResult:
        """Execute the model/tool loop until the model answers with text.

        Args:
            user_message: The user's message
            system_prompt_appends: Extra system prompt fragments for this run only

        Returns:
            Final text, full transcript and number of model calls

        Raises:
            ModelCallError: If the model client fails
            UnexpectedMessageError: If the model returns neither text nor tool requests
            RoundLimitExceededError: If ``config.max_rounds`` calls produce no answer
            ToolExecutionError: Under ``ToolErrorPolicy.RAISE``
            UnknownToolError: Under ``ToolErrorPolicy.RAISE``
        """
        system_prompt = build_system_prompt(self.system_prompt, system_prompt_appends)
        history = initial_history(user_message, system_prompt)
        max_rounds = self.config.max_rounds

        try:
            for round_number in range(1, max_rounds + 1):
                logger.debug(f"Agent round {round_number}/{max_rounds}, {len(history)} messages")

                response = await self._call_model(history)

                match response:
                    case AssistantMessage(content=text):
                        history.append(response)
                        logger.info(f"Agent run completed in {round_number} rounds")
                        return AgentRunResult(text=text, messages=tuple(history), rounds=round_number)
                    case ToolRequestMessage(requests=requests):
                        history.append(response)
                        logger.info(f"Model requested {len(requests)} tools: {[r.call.name for r in requests]}")
                        history.extend(await self._execute_tools(requests))
                    case BaseMessage(type=message_type):
                        raise UnexpectedMessageError(
                            f"model returned a {message_type} message, expected assistant or tool_request"
                        )
                    case _:
                        raise UnexpectedMessageError(
                            f"model returned {type(response).__name__}, expected assistant or tool_request"
                        )

            logger.warning(f"Agent run reached max rounds ({max_rounds})")
            raise RoundLimitExceededError(max_rounds)
        finally:
            if self.transcript_sink is not None:
                self.transcript_sink(tuple(history))

    async def _call_model(self, history: list[Message]) -> Message:
        try:
            return await self.model.call(tuple(history))
        except Exception as e:
            raise ModelCallError(f"call model: {e}") from e

    async def _execute_tools(self, requests: Sequence[ToolCallRequest]) -> list[ToolResponseMessage]:
        """Execute a batch of tool calls, returning responses in request order."""
        if not self.config.parallel_tool_calls or len(requests) == 1:
            return [await self._execute_tool(request) for request in requests]

        tasks = [asyncio.ensure_future(self._execute_tool(request)) for request in requests]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _execute_tool(self, request: ToolCallRequest) -> ToolResponseMessage:
        call = request.call
        logger.debug(f"Executing tool: {call.name} with args: {request.args}")

        try:
            content = await self.tools_registry.execute(request)
        except (UnknownToolError, ToolExecutionError) as e:
            if self.config.tool_error_policy == ToolErrorPolicy.RAISE:
                raise
            logger.error(f"Tool {call.name} failed: {e}")
            content = f"Error: {e}"
        else:
            logger.debug(f"Tool {call.name} succeeded: {content[:100]}")

        return ToolResponseMessage.from_result(call, content)
