"""Base types and definitions for tools."""

import asyncio
import inspect
import json
import types
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, ValidationError

from toolrunner.exceptions import ToolDefinitionError, ToolExecutionError
from toolrunner.tools.params import Param
from toolrunner.tools.schema import JsonSchema, build_schema, default_json_name, validate_params
from toolrunner.utils.logging import get_logger

logger = get_logger(__name__)

type ToolAction[ArgsT] = Callable[[ArgsT], str | Awaitable[str]]


class ToolArgs(BaseModel):
    """Base class for tool argument models.

    Field names are exposed under :func:`default_json_name`, so ``Min`` is read
    from ``"min"`` and ``URL`` from ``"URL"``. An explicit ``Field(alias=...)``
    wins over the generated name.
    """

    model_config = ConfigDict(alias_generator=default_json_name, populate_by_name=True)


class NoArgs(ToolArgs):
    """Argument model of a tool that takes no arguments."""


class Tool[ArgsT: ToolArgs]:
    """A named capability the model can call.

    Binds a typed argument model to an action. The declared ``params`` are
    checked against the argument model on construction, so any schema
    advertised to the model deserializes into ``args_schema``.
    """

    def __init__(
        self,
        name: str,
        description: str,
        params: Iterable[Param],
        args_schema: type[ArgsT],
        action: ToolAction[ArgsT],
    ):
        """Initialize and validate a tool.

        Args:
            name: Unique tool name
            description: What the tool does, shown to the model
            params: Parameter tree advertised to the model
            args_schema: Pydantic model the raw JSON arguments are parsed into
            action: Sync or async callable taking the parsed arguments

        Raises:
            ToolDefinitionError: If ``args_schema`` is not a :class:`ToolArgs` or the
                parameters do not fit it
        """
        self._name = name
        self._description = description
        self._params = tuple(params)
        self._args_schema = args_schema
        self._action = action

        if not (isinstance(args_schema, type) and issubclass(args_schema, ToolArgs)):
            raise ToolDefinitionError(f"validate tool {name}: args_schema {args_schema!r} must subclass ToolArgs")

        try:
            validate_params(self._params, args_schema)
            self._json_schema = build_schema(self._params)
        except ToolDefinitionError as e:
            raise ToolDefinitionError(f"validate tool {name}: {e}") from e

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def params(self) -> tuple[Param, ...]:
        return self._params

    @property
    def args_schema(self) -> type[ArgsT]:
        return self._args_schema

    def get_json_schema(self) -> JsonSchema:
        """Get the compiled object schema for this tool's input."""
        return self._json_schema

    def parse_input(self, raw_args: str | bytes | None) -> ArgsT:
        """Parse raw JSON arguments into the argument model.

        Parsing is lenient. Malformed or non-object JSON yields the model's zero
        value. Missing fields take their zero value, and a top-level field whose
        value the model rejects is reset to its zero value while the other
        fields are kept. If the result still does not validate (a zero value
        breaking a field constraint, or a model-level validator failing), the
        unvalidated zero value is returned.

        Values go through pydantic's lax mode, so ``"2"`` is accepted for an
        ``int`` field.
        """
        model = self._args_schema
        try:
            payload = json.loads(raw_args) if raw_args else {}
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed arguments for tool {self.name}, using zero value: {e}")
            return zero_args(model)

        if not isinstance(payload, dict):
            logger.warning(f"Arguments for tool {self.name} are not a JSON object, using zero value")
            return zero_args(model)

        zeros = zero_payload(model)
        try:
            return model.model_validate({**zeros, **payload})
        except ValidationError as e:
            rejected = {err["loc"][0] for err in e.errors() if err["loc"]}
            logger.warning(f"Arguments for tool {self.name} do not fit {model.__name__}, resetting {rejected}: {e}")

        if rejected:
            kept = {key: value for key, value in payload.items() if key not in rejected}
            try:
                return model.model_validate({**zeros, **kept})
            except ValidationError as e:
                logger.warning(f"Arguments for tool {self.name} still do not fit {model.__name__}: {e}")

        return zero_args(model)

    async def execute(self, raw_args: str | bytes | None) -> str:
        """Run the tool on raw JSON arguments and return its textual result.

        Coroutine actions are awaited on the event loop. Other actions run in a
        worker thread, so blocking tools neither stall the loop nor serialize a
        parallel batch.

        Raises:
            ToolExecutionError: If the action raises
        """
        args = self.parse_input(raw_args)
        try:
            if inspect.iscoroutinefunction(self._action):
                result = await self._action(args)
            else:
                result = await asyncio.to_thread(self._action, args)
                if inspect.isawaitable(result):
                    result = await result
        except Exception as e:
            raise ToolExecutionError(self.name, e) from e

        return result if isinstance(result, str) else str(result)

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r}, params={[p.name for p in self.params]})"


def tool[ArgsT: ToolArgs](
    name: str,
    description: str,
    *,
    params: Iterable[Param],
    args_schema: type[ArgsT],
) -> Callable[[ToolAction[ArgsT]], Tool[ArgsT]]:
    """Decorator building a :class:`Tool` from its action."""

    def decorator(action: ToolAction[ArgsT]) -> Tool[ArgsT]:
        return Tool(name, description, params, args_schema, action)

    return decorator


# ---------------------------------------------------------------------------
# Zero values
# ---------------------------------------------------------------------------

_SCALAR_ZEROS: dict[Any, Any] = {int: 0, float: 0.0, str: "", bool: False, bytes: b""}


def zero_payload(model: type[BaseModel]) -> dict[str, Any]:
    """Input dict, keyed by alias, that fills every required field of ``model`` with its zero value."""
    payload: dict[str, Any] = {}
    for field_name, info in model.model_fields.items():
        if not info.is_required():
            continue
        key = info.validation_alias if isinstance(info.validation_alias, str) else info.alias or field_name
        payload[key] = zero_value(info.annotation)
    return payload


def zero_value(annotation: Any) -> Any:
    """Zero value for a type annotation: 0, "", False, empty containers, None for optionals."""
    if annotation in _SCALAR_ZEROS:
        return _SCALAR_ZEROS[annotation]

    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        return None if type(None) in get_args(annotation) else zero_value(get_args(annotation)[0])
    if origin is Literal:
        return get_args(annotation)[0]
    if origin in (list, set, frozenset) or annotation in (list, set, frozenset):
        return []
    if origin is tuple or annotation is tuple:
        return ()
    if origin is dict or annotation is dict:
        return {}

    if isinstance(annotation, type):
        if issubclass(annotation, Enum):
            return next(iter(annotation)).value
        if issubclass(annotation, BaseModel):
            return zero_payload(annotation)

    return None


def zero_args[ModelT: BaseModel](model: type[ModelT]) -> ModelT:
    """Unvalidated instance of ``model`` with every required field at its zero value.

    Built with ``model_construct``, so field constraints such as ``ge=1`` do not
    apply. Nested models are zero instances themselves.
    """
    values: dict[str, Any] = {}
    for field_name, info in model.model_fields.items():
        if info.is_required():
            values[field_name] = _constructed_zero(info.annotation)
    return model.model_construct(**values)


def _constructed_zero(annotation: Any) -> Any:
    if isinstance(annotation, type):
        if issubclass(annotation, BaseModel):
            return zero_args(annotation)
        if issubclass(annotation, Enum):
            return next(iter(annotation))
    origin = get_origin(annotation)
    if origin in (set, frozenset) or annotation in (set, frozenset):
        return (origin or annotation)()
    return zero_value(annotation)
