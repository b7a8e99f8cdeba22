"""Exception hierarchy for the orchestrator, tools and model clients."""


class ToolRunnerError(Exception):
    """Base class for all toolrunner errors."""


# ---------------------------------------------------------------------------
# Message variant access
# ---------------------------------------------------------------------------


class MessageVariantError(ToolRunnerError):
    """Raised when a payload is requested from the wrong message variant."""


class NoTextContentError(MessageVariantError):
    """Raised when text is requested from a message that carries none."""


class NotToolCallRequestsError(MessageVariantError):
    """Raised when tool call requests are read from a non tool_request message."""


class NotToolCallResponseError(MessageVariantError):
    """Raised when a tool call response is read from a non tool_response message."""


# ---------------------------------------------------------------------------
# Construction / registration time
# ---------------------------------------------------------------------------


class ToolDefinitionError(ToolRunnerError):
    """Raised when a tool's declared parameters do not fit its argument model."""


class UnknownParamTypeError(ToolDefinitionError):
    """Raised by the schema compiler for a parameter type it cannot map."""


class ToolRegistrationError(ToolRunnerError):
    """Raised when a model client rejects a tool registration."""


# ---------------------------------------------------------------------------
# Run time
# ---------------------------------------------------------------------------


class UnknownToolError(ToolRunnerError):
    """Raised when the model requests a tool absent from the registry."""

    def __init__(self, name: str):
        super().__init__(f"unknown tool {name!r}")
        self.name = name


class ToolExecutionError(ToolRunnerError):
    """Raised when a tool's action fails."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"call tool {name}: {cause}")
        self.name = name
        self.cause = cause


class ModelCallError(ToolRunnerError):
    """Raised when the model client fails to produce the next turn."""


class UnexpectedMessageError(ToolRunnerError):
    """Raised when the model client returns a variant other than assistant or tool_request."""


class RoundLimitExceededError(ToolRunnerError):
    """Raised when the model keeps requesting tools past the round limit."""

    def __init__(self, max_rounds: int):
        super().__init__(f"max tool call rounds exceeded ({max_rounds})")
        self.max_rounds = max_rounds
