"""Anthropic model client with rate limiting and retries."""

import asyncio
import json
import os
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import tiktoken
from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from pydantic import BaseModel

from toolrunner.exceptions import ToolRegistrationError
from toolrunner.models.llm import ToolSchema
from toolrunner.models.messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ToolCall,
    ToolCallRequest,
    ToolRequestMessage,
    ToolResponseMessage,
    UserMessage,
)
from toolrunner.tools.base import Tool
from toolrunner.utils.logging import get_logger

logger = get_logger(__name__)


# Content block types
class TextBlock(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """Tool use content block."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any]


class ToolResultBlock(BaseModel):
    """Tool result content block."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock


class AnthropicMessage(BaseModel):
    """Message format for Anthropic API."""

    role: Literal["user", "assistant"]
    content: str | list[ContentBlock]


@dataclass
class AnthropicConfig:
    """Configuration for Anthropic API client."""

    model: str = "claude-sonnet-4-5"
    max_tokens: int = 1024
    temperature: float = 0.1
    max_retries: int = 3
    retry_delay: float = 1.0

    requests_per_minute: int = 50
    tokens_per_minute: int = 40_000


class AnthropicRateLimiter:
    """Moving-window limiter on requests and estimated tokens per minute."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "anthropic") -> None:
        """Wait until the request fits both limits."""
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")

        if not self.limiter.hit(self.request_limit, identifier):
            await self._wait_for_reset(self.request_limit, identifier, "Request")

        token_identifier = f"{identifier}_tokens"
        if not self.limiter.hit(self.token_limit, token_identifier, cost=max(1, estimated_tokens)):
            await self._wait_for_reset(self.token_limit, token_identifier, "Token")

    async def _wait_for_reset(self, limit, identifier: str, kind: str) -> None:
        window_stats = self.limiter.get_window_stats(limit, identifier)
        wait_time = max(0.0, window_stats.reset_time - time.time())
        if wait_time > 0:
            logger.warning(f"{kind} rate limit exceeded, waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time)


class AnthropicClient:
    """Model client backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        config: AnthropicConfig | None = None,
        client: AsyncAnthropic | None = None,
    ):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            config: Client configuration
            client: Preconfigured SDK client, mainly for tests
        """
        self.config = config or AnthropicConfig()

        if client is None:
            anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
            if not anthropic_api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable is required")
            # Retries are handled by _request_with_retries
            client = AsyncAnthropic(api_key=anthropic_api_key, max_retries=0)

        self.client = client
        self.rate_limiter = AnthropicRateLimiter(self.config.requests_per_minute, self.config.tokens_per_minute)
        self.tools: list[ToolSchema] = []
        self.tokenizer: tiktoken.Encoding | None = None
        self._tokenizer_loaded = False
        self._called = False

    def register_tool(self, tool: Tool) -> None:
        """Advertise a tool to the model.

        Raises:
            ToolRegistrationError: After the first call, or for a duplicate name
        """
        if self._called:
            raise ToolRegistrationError(f"cannot register tool {tool.name!r} after the first model call")
        if any(t.name == tool.name for t in self.tools):
            raise ToolRegistrationError(f"tool {tool.name!r} is already registered")
        self.tools.append(ToolSchema.from_tool(tool))

    async def call(self, history: Sequence[Message]) -> Message:
        """Send the transcript and return the model's next turn."""
        self._called = True
        system_prompt, messages = self.convert_history(history)

        estimated_tokens = self._estimate_tokens(system_prompt, messages)
        logger.debug(f"Estimated tokens: {estimated_tokens}")
        await self.rate_limiter.check_rate_limit(estimated_tokens)

        request_params: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [msg.model_dump() for msg in messages],
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if self.tools:
            request_params["tools"] = [t.model_dump() for t in self.tools]

        logger.debug(f"Making Anthropic API call with model: {self.config.model}, {len(messages)} messages")
        response = await self._request_with_retries(lambda: self.client.messages.create(**request_params))
        logger.debug(f"Response received - Stop reason: {response.stop_reason}")

        return self.parse_response(response)

    def convert_history(self, history: Sequence[Message]) -> tuple[str, list[AnthropicMessage]]:
        """Map a transcript onto the Anthropic system prompt and message list.

        Consecutive tool responses are merged into one user message, as the API
        expects every result for a batch of tool_use blocks in the next turn.
        """
        system_parts: list[str] = []
        messages: list[AnthropicMessage] = []

        for message in history:
            match message:
                case SystemMessage(content=text):
                    system_parts.append(text)
                case UserMessage(content=text):
                    messages.append(AnthropicMessage(role="user", content=text))
                case AssistantMessage(content=text):
                    messages.append(AnthropicMessage(role="assistant", content=text))
                case ToolRequestMessage(requests=requests):
                    blocks: list[ContentBlock] = [
                        ToolUseBlock(id=r.call.id, name=r.call.name, input=_decode_args(r.args)) for r in requests
                    ]
                    messages.append(AnthropicMessage(role="assistant", content=blocks))
                case ToolResponseMessage(response=response):
                    block = ToolResultBlock(tool_use_id=response.call.id, content=response.result)
                    last = messages[-1] if messages else None
                    if last is not None and last.role == "user" and _is_tool_results(last.content):
                        last.content.append(block)
                    else:
                        messages.append(AnthropicMessage(role="user", content=[block]))

        return "\n".join(system_parts), messages

    def parse_response(self, response: Any) -> Message:
        """Convert an API response into an assistant or tool request message."""
        requests = [
            ToolCallRequest(call=ToolCall(id=block.id, name=block.name), args=json.dumps(block.input or {}))
            for block in response.content
            if block.type == "tool_use"
        ]
        if requests:
            return ToolRequestMessage(requests=tuple(requests))

        text = "".join(block.text for block in response.content if block.type == "text")
        return AssistantMessage(content=text)

    async def _request_with_retries[T](self, call: Callable[[], Awaitable[T]]) -> T:
        """Execute Anthropic API request with retry logic."""
        for attempt in range(self.config.max_retries):
            last_attempt = attempt == self.config.max_retries - 1
            try:
                return await call()

            except APIStatusError as e:
                if e.status_code == 429 and not last_attempt:  # Rate limit exceeded
                    retry_after = int(e.response.headers.get("retry-after", 60))
                    if retry_after < 120:
                        logger.warning(f"Rate limited by API, retrying in {retry_after}s")
                        await asyncio.sleep(retry_after)
                        continue

                elif e.status_code >= 500 and not last_attempt:
                    await asyncio.sleep(self.config.retry_delay * (2**attempt))
                    continue

                raise

            except APIConnectionError:
                if not last_attempt:
                    await asyncio.sleep(self.config.retry_delay * (2**attempt))
                    continue
                raise

        raise RuntimeError(f"Failed to complete request after {self.config.max_retries} attempts")

    def _estimate_tokens(self, system_prompt: str, messages: list[AnthropicMessage]) -> int:
        """Estimate token count for rate limiting."""
        text_content = system_prompt + "".join(json.dumps(msg.model_dump()) for msg in messages)

        tokenizer = self._load_tokenizer()
        if tokenizer is None:
            # Roughly 4 characters per token
            return len(text_content) // 4
        return len(tokenizer.encode(text_content))

    def _load_tokenizer(self) -> tiktoken.Encoding | None:
        if self.tokenizer is None and not self._tokenizer_loaded:
            self._tokenizer_loaded = True
            try:
                # Close approximation for Claude
                self.tokenizer = tiktoken.get_encoding("cl100k_base")
            except Exception as e:
                logger.warning(f"Tokenizer unavailable, estimating by characters: {e}")
        return self.tokenizer


def _decode_args(raw_args: str) -> dict[str, Any]:
    try:
        decoded = json.loads(raw_args) if raw_args else {}
    except ValueError:
        logger.warning(f"Tool arguments are not valid JSON, sending empty input: {raw_args!r}")
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _is_tool_results(content: str | list[ContentBlock]) -> bool:
    return isinstance(content, list) and all(isinstance(block, ToolResultBlock) for block in content)

