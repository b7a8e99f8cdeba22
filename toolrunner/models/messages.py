"""Message data model: the five turn variants of a transcript."""

import json
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from toolrunner.exceptions import NoTextContentError, NotToolCallRequestsError, NotToolCallResponseError

TEXT_PREVIEW_LIMIT = 50


class MessageType(StrEnum):
    """Conversational role of a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_REQUEST = "tool_request"
    TOOL_RESPONSE = "tool_response"


class ToolCall(BaseModel):
    """Identity of a single tool invocation."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model.

    ``args`` holds raw JSON text; only the target tool interprets it.
    """

    model_config = ConfigDict(frozen=True)

    call: ToolCall
    args: str = "{}"

    @field_validator("args", mode="before")
    @classmethod
    def serialize_args(cls, v: Any) -> Any:
        """Accept already-decoded JSON values and bytes as raw JSON text."""
        if isinstance(v, bytes | bytearray):
            return bytes(v).decode("utf-8")
        if isinstance(v, dict | list):
            return json.dumps(v)
        return v


class ToolCallResponse(BaseModel):
    """Textual result of a tool invocation, correlated by the original call."""

    model_config = ConfigDict(frozen=True)

    call: ToolCall
    result: str


class BaseMessage(BaseModel):
    """Common accessors shared by every message variant.

    The accessors raise a :class:`~toolrunner.exceptions.MessageVariantError`
    subclass unless the variant carries the requested payload.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str

    @property
    def message_type(self) -> MessageType:
        return MessageType(self.type)

    def text(self) -> str:
        raise NoTextContentError(f"message has no text content (type={self.type})")

    def tool_call_requests(self) -> tuple[ToolCallRequest, ...]:
        raise NotToolCallRequestsError(f"message is not a tool call request (type={self.type})")

    def tool_call_response(self) -> ToolCallResponse:
        raise NotToolCallResponseError(f"message is not a tool call response (type={self.type})")

    def must_text(self) -> str:
        """Return the text, treating a wrong variant as a programming error."""
        try:
            return self.text()
        except NoTextContentError as e:
            raise AssertionError(str(e)) from e

    def must_tool_call_requests(self) -> tuple[ToolCallRequest, ...]:
        try:
            return self.tool_call_requests()
        except NotToolCallRequestsError as e:
            raise AssertionError(str(e)) from e

    def must_tool_call_response(self) -> ToolCallResponse:
        try:
            return self.tool_call_response()
        except NotToolCallResponseError as e:
            raise AssertionError(str(e)) from e

    def as_record(self) -> dict[str, Any]:
        """Render the message as ``{type, text?, tool_call_requests?, tool_call_response?}``."""
        raise NotImplementedError

    def to_json_line(self) -> str:
        return json.dumps(self.as_record(), ensure_ascii=False)


class _TextMessage(BaseMessage):
    content: str

    def text(self) -> str:
        return self.content

    def as_record(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.content}

    def __str__(self) -> str:
        text = self.content
        if len(text) > TEXT_PREVIEW_LIMIT:
            text = text[:TEXT_PREVIEW_LIMIT] + "..."
        return f"{self.type}: {text}"


class SystemMessage(_TextMessage):
    """System prompt."""

    type: Literal["system"] = "system"


class UserMessage(_TextMessage):
    """Message typed by the user."""

    type: Literal["user"] = "user"


class AssistantMessage(_TextMessage):
    """Final textual answer from the model."""

    type: Literal["assistant"] = "assistant"

    def __str__(self) -> str:
        return f"{self.type}: \n{self.content}"


class ToolRequestMessage(BaseMessage):
    """A model turn requesting one or more tool invocations, in order."""

    type: Literal["tool_request"] = "tool_request"
    requests: tuple[ToolCallRequest, ...] = Field(min_length=1)

    def tool_call_requests(self) -> tuple[ToolCallRequest, ...]:
        return self.requests

    def as_record(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "tool_call_requests": [request.model_dump() for request in self.requests],
        }

    def __str__(self) -> str:
        calls = "".join(f"\n\t{request.call.name}({request.args})" for request in self.requests)
        return f"{self.type}: {calls}"


class ToolResponseMessage(BaseMessage):
    """Result of one tool invocation."""

    type: Literal["tool_response"] = "tool_response"
    response: ToolCallResponse

    @classmethod
    def from_result(cls, call: ToolCall, result: str) -> "ToolResponseMessage":
        return cls(response=ToolCallResponse(call=call, result=result))

    def tool_call_response(self) -> ToolCallResponse:
        return self.response

    def as_record(self) -> dict[str, Any]:
        return {"type": self.type, "tool_call_response": self.response.model_dump()}

    def __str__(self) -> str:
        return f"{self.type}: {self.response.result}"


Message = Annotated[
    SystemMessage | UserMessage | AssistantMessage | ToolRequestMessage | ToolResponseMessage,
    Field(discriminator="type"),
]

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(data: dict[str, Any]) -> Message:
    """Validate a dict into the matching message variant.

    Accepts both the model's own field names and the record form produced by
    :meth:`BaseMessage.as_record`.
    """
    payload = dict(data)
    if "text" in payload:
        payload["content"] = payload.pop("text")
    if "tool_call_requests" in payload:
        payload["requests"] = payload.pop("tool_call_requests")
    if "tool_call_response" in payload:
        payload["response"] = payload.pop("tool_call_response")
    return _message_adapter.validate_python(payload)
