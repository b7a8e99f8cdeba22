"""Compile parameter trees into object schemas and check them against argument models."""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from toolrunner.exceptions import ToolDefinitionError, UnknownParamTypeError
from toolrunner.tools.params import Param, ParamType

JsonSchema = dict[str, Any]

_JSON_TYPES: dict[ParamType, str] = {
    ParamType.STRING: "string",
    ParamType.INTEGER: "integer",
    ParamType.NUMBER: "number",
    ParamType.BOOLEAN: "boolean",
    ParamType.OBJECT: "object",
    ParamType.ARRAY: "array",
}


def json_type(param_type: ParamType) -> str:
    """Map a parameter type to its JSON schema type name."""
    try:
        return _JSON_TYPES[param_type]
    except (KeyError, TypeError) as e:
        raise UnknownParamTypeError(f"unknown param type: {param_type!r}") from e


def build_schema(params: Iterable[Param]) -> JsonSchema:
    """Compile a tool's top-level parameters into an object schema."""
    params = list(params)
    _check_unique_names(params)

    return {
        "type": "object",
        "properties": {p.name: build_param_schema(p) for p in params},
        "required": [p.name for p in params if p.required],
        "additionalProperties": False,
    }


def build_param_schema(param: Param) -> JsonSchema:
    """Compile a single parameter, recursing into array items and object properties."""
    schema: JsonSchema = {
        "type": json_type(param.type),
        "description": param.description,
    }

    if param.enum:
        schema["enum"] = list(param.enum)

    if param.type == ParamType.ARRAY and param.items is not None:
        schema["items"] = build_param_schema(param.items)
    elif param.type == ParamType.OBJECT:
        schema["properties"] = _build_nested_properties(param.properties)
        if required := [name for name, sub in param.properties.items() if sub.required]:
            schema["required"] = required
        schema["additionalProperties"] = False

    return schema


def _build_nested_properties(properties: Mapping[str, Param]) -> JsonSchema:
    return {name: build_param_schema(sub) for name, sub in properties.items()}


def _check_unique_names(params: list[Param]) -> None:
    seen: set[str] = set()
    for p in params:
        if p.name in seen:
            raise ToolDefinitionError(f"duplicate Param.name {p.name!r}")
        seen.add(p.name)


# ---------------------------------------------------------------------------
# Argument model validation
# ---------------------------------------------------------------------------


def default_json_name(field_name: str) -> str:
    """Default external name of an argument field.

    Lowercases the first letter, unless the name starts with two or more
    uppercase letters (``URL`` stays ``URL``, ``Min`` becomes ``min``).
    """
    if not field_name:
        return ""
    if len(field_name) > 1 and field_name[0].isupper() and field_name[1].isupper():
        return field_name
    return field_name[0].lower() + field_name[1:]


def visible_fields(model: type[BaseModel]) -> dict[str, str]:
    """Map each externally visible JSON name of ``model`` to its field name.

    The JSON name is the explicit validation alias if it is a plain string,
    else the alias (explicit or generated), else the field name. Fields marked
    ``exclude=True`` are not visible.
    """
    names: dict[str, str] = {}
    for field_name, info in model.model_fields.items():
        if info.exclude:
            continue
        if isinstance(info.validation_alias, str):
            names[info.validation_alias] = field_name
        else:
            names[info.alias or field_name] = field_name
    return names


def validate_params(params: Iterable[Param], model: type[BaseModel]) -> None:
    """Check that every declared parameter name is a visible field of ``model``.

    Object parameters whose field is itself a pydantic model are checked
    recursively against that model.

    Raises:
        ToolDefinitionError: On the first parameter that does not match
    """
    fields = visible_fields(model)

    for p in params:
        if p.name not in fields:
            raise ToolDefinitionError(
                f"Param.name {p.name!r} does not match any JSON field (alias or default) in {model.__name__}"
            )

        nested_model = model.model_fields[fields[p.name]].annotation
        if p.type == ParamType.OBJECT and p.properties and _is_model(nested_model):
            validate_params(
                [sub.model_copy(update={"name": name}) for name, sub in p.properties.items()],
                nested_model,
            )


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)
