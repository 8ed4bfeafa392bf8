"""
Pydantic models for schema documents, the contract with the schema generator.

A schema document is a tree of JsonType nodes. Each node carries boolean
flags describing what kind of position it is, an ordered list of refinement
tags, and a polymorphic ``children`` payload (literal scalar, alternative
list, or nested property map).

Flags are not mutually exclusive on the wire. ``JsonType.kind`` resolves
them into exactly one NodeKind using a fixed precedence, so the validator
never has to reason about flag combinations.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import SchemaParseError

Scalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]
SCALAR_TYPES = (bool, int, float, str, type(None))


class _Missing:
    """Marker for a property that is absent from its parent object."""

    _instance: Optional[_Missing] = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def is_absent(value: Any) -> bool:
    """True for the two absence markers: a missing key and an explicit null."""
    return value is MISSING or value is None


# ─── Node Kinds ──────────────────────────────────────────────────────


class NodeKind(str, Enum):
    """The single shape a node is validated as, after precedence is applied."""

    OPTIONAL = "optional"  # Optional wrapper around a fallback node
    LITERAL = "literal"
    PRIMITIVE = "primitive"
    ARRAY = "array"
    INTERSECTION = "intersection"
    UNION = "union"
    OBJECT = "object"
    OPAQUE = "opaque"  # Nothing checkable (callables, unchecked types)


# ─── Tags ────────────────────────────────────────────────────────────


class Tag(BaseModel):
    """One ``@name argument`` refinement directive."""

    model_config = ConfigDict(frozen=True)

    name: str
    argument: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        # Wire form is a [name, argument] pair; argument may be missing or null.
        if isinstance(data, (list, tuple)):
            if not 1 <= len(data) <= 2:
                raise ValueError(f"tag must be a [name, argument] pair, got {len(data)} items")
            data = {"name": data[0], "argument": data[1] if len(data) == 2 else None}
        if isinstance(data, dict):
            argument = data.get("argument")
            if argument is None:
                argument = ""
            elif not isinstance(argument, str):
                argument = json.dumps(argument)
            data = {**data, "argument": argument}
        return data

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        name = value.strip().lstrip("@")
        if not name:
            raise ValueError("tag name must not be empty")
        return name

    @field_validator("argument")
    @classmethod
    def _trim_argument(cls, value: str) -> str:
        return value.strip()


# ─── Schema Node ─────────────────────────────────────────────────────


class JsonType(BaseModel):
    """A tagged description of one type position in the schema tree."""

    model_config = ConfigDict(populate_by_name=True)

    type_name: str = Field(
        validation_alias=AliasChoices("type", "typeName", "type_name"),
        serialization_alias="type",
    )
    optional: bool = False
    union: bool = False
    intersection: bool = False
    literal: bool = False
    array: bool = False
    primitive: bool = False
    tags: list[Tag] = Field(default_factory=list)
    children: Union[dict[str, JsonType], list[Union[JsonType, Scalar]], Scalar] = None
    fallback: list[JsonType] = Field(default_factory=list)

    @property
    def kind(self) -> NodeKind:
        """Resolve the flags into one NodeKind (first matching rule wins)."""
        if self.optional and self.fallback:
            return NodeKind.OPTIONAL
        if self.literal:
            return NodeKind.LITERAL
        if self.primitive:
            return NodeKind.PRIMITIVE
        if self.array:
            return NodeKind.ARRAY
        if self.intersection:
            return NodeKind.INTERSECTION
        if self.union and self.alternatives:
            return NodeKind.UNION
        if isinstance(self.children, dict):
            return NodeKind.OBJECT
        return NodeKind.OPAQUE

    @property
    def alternatives(self) -> list[Union[JsonType, Any]]:
        """Child list of a union, intersection or array node."""
        return self.children if isinstance(self.children, list) else []

    @property
    def properties(self) -> dict[str, JsonType]:
        """Property map of an object node."""
        return self.children if isinstance(self.children, dict) else {}

    @property
    def required_keys(self) -> list[str]:
        return [key for key, child in self.properties.items() if not child.optional]


JsonType.model_rebuild()

JsonSchema = dict[str, JsonType]


# ─── Parsing ─────────────────────────────────────────────────────────


def parse_schema(text: str | bytes) -> JsonType:
    """Parse a JSON schema document into its root node.

    Args:
        text: JSON text; either a single node or a top-level property map.

    Raises:
        SchemaParseError: invalid JSON, wrong root type, or broken node invariants.
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise SchemaParseError(
            f"Schema is not valid JSON: {exc}",
            {"reason": str(exc)},
        ) from exc
    return load_schema(document)


def load_schema(document: Any) -> JsonType:
    """Build the root node from JSON text, a decoded mapping, or a node.

    A node instance is returned unchanged: programmatically built trees are
    trusted here and guarded at validation time instead.
    """
    if isinstance(document, JsonType):
        return document
    if isinstance(document, (str, bytes)):
        return parse_schema(document)
    if not isinstance(document, dict):
        raise SchemaParseError(
            f"Schema root must be a JSON object, got {type(document).__name__}",
            {"root_type": type(document).__name__},
        )

    raw = document if _looks_like_node(document) else {"type": "object", "children": document}
    try:
        node = JsonType.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise SchemaParseError(
            f"Invalid schema node at '{location}': {first['msg']}",
            {"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc

    _check_invariants(node, ())
    return node


def _looks_like_node(document: dict[str, Any]) -> bool:
    # A property map may contain a property called "type", but its value is a node, never a string.
    return isinstance(document.get("type", document.get("typeName")), str)


def _check_invariants(node: JsonType, path: tuple[Any, ...]) -> None:
    """Reject flag combinations whose discriminant payload is missing."""
    where = "/".join(str(part) for part in path) or "<root>"

    if node.literal and not isinstance(node.children, SCALAR_TYPES):
        raise SchemaParseError(
            f"Literal node at '{where}' must carry a single scalar value",
            {"path": list(path)},
        )
    if node.intersection and len(node.alternatives) < 2:
        raise SchemaParseError(
            f"Intersection node at '{where}' needs at least 2 members, got {len(node.alternatives)}",
            {"path": list(path), "arity": len(node.alternatives)},
        )
    if node.array and node.children is not None and not isinstance(node.children, list):
        raise SchemaParseError(
            f"Array node at '{where}' must carry a list of element schemas",
            {"path": list(path)},
        )

    for key, child in node.properties.items():
        _check_invariants(child, path + (key,))
    for index, child in enumerate(node.alternatives):
        if isinstance(child, JsonType):
            _check_invariants(child, path + (index,))
    for child in node.fallback:
        _check_invariants(child, path)
