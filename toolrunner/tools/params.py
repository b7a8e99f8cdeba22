"""Declarative parameter tree describing a tool's arguments."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ParamType(StrEnum):
    """JSON type of a tool parameter."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class Param(BaseModel):
    """A node of a tool's parameter tree.

    ``name`` must match a visible field of the tool's argument model (its alias,
    or the name produced by the model's alias generator). Nested object
    properties are keyed by their mapping key, so their own ``name`` may be left
    empty; the same holds for array ``items``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    type: ParamType
    description: str = ""
    required: bool = False
    enum: tuple[Any, ...] | None = None
    items: "Param | None" = None
    properties: dict[str, "Param"] = Field(default_factory=dict)


def no_params() -> list[Param]:
    """Parameter list of a tool that takes no arguments."""
    return []
