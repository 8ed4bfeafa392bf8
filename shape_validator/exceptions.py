"""
Custom exception hierarchy for schema validation.

Two families live here:
  - SchemaError: the schema document itself is broken (authoring errors).
  - ValidationFailure: the schema is fine, the input value does not match it.

Every exception carries a machine-readable code and a details dict so the
HTTP layer and callers can report failures without parsing messages.
"""

from __future__ import annotations

from typing import Any, Sequence

Path = tuple[Any, ...]


class ShapeValidatorError(Exception):
    """Base exception for all shape validator failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ─── Schema Authoring Errors ─────────────────────────────────────────


class SchemaError(ShapeValidatorError):
    """The schema document is malformed; no input can be judged against it."""


class SchemaParseError(SchemaError):
    """The schema text is not valid JSON or violates the node invariants."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("SCHEMA_PARSE_ERROR", message, details)


class SchemaCycleError(SchemaError):
    """The recursion depth guard tripped; the schema graph contains a cycle."""

    def __init__(self, max_depth: int, path: Path = ()):
        self.max_depth = max_depth
        self.path = tuple(path)
        super().__init__(
            "SCHEMA_CYCLE",
            f"Schema nesting exceeded {max_depth} levels; the schema is probably cyclic",
            {"max_depth": max_depth, "path": list(self.path)},
        )


class IntersectionArityError(SchemaError):
    """An intersection node declares fewer than two members."""

    def __init__(self, arity: int, path: Path = ()):
        self.arity = arity
        self.path = tuple(path)
        super().__init__(
            "INTERSECTION_ARITY",
            f"Intersection requires at least 2 members, got {arity}",
            {"arity": arity, "path": list(self.path)},
        )


# ─── Data Errors ─────────────────────────────────────────────────────


class ValidationFailure(ShapeValidatorError):
    """The input value does not satisfy the schema."""

    def __init__(
        self,
        code: str,
        message: str,
        value: Any,
        path: Path = (),
        details: dict | None = None,
    ):
        self.value = value
        self.path = tuple(path)
        merged = {"path": list(self.path)}
        merged.update(details or {})
        super().__init__(code, message, merged)


class TypeMismatchError(ValidationFailure):
    """The value is not of the expected primitive or structural type."""

    def __init__(self, expected: str, value: Any, message: str, path: Path = ()):
        self.expected = expected
        super().__init__("TYPE_MISMATCH", message, value, path, {"expected": expected})


class TagViolationError(ValidationFailure):
    """A named refinement rule (e.g. @max 99) rejected the value."""

    def __init__(self, tag: str, argument: str, value: Any, message: str, path: Path = ()):
        self.tag = tag
        self.argument = argument
        super().__init__(
            "TAG_VIOLATION",
            message,
            value,
            path,
            {"tag": tag, "argument": argument},
        )


class LiteralMismatchError(ValidationFailure):
    """The value matched no literal (or no union alternative)."""

    def __init__(self, expected: Sequence[Any], value: Any, message: str, path: Path = ()):
        self.expected = list(expected)
        super().__init__("LITERAL_MISMATCH", message, value, path, {"expected": self.expected})


class RequiredPropertyMissingError(ValidationFailure):
    """An object is missing a property the schema marks as required."""

    def __init__(self, key: str, value: Any, message: str, path: Path = ()):
        self.key = key
        super().__init__("REQUIRED_PROPERTY_MISSING", message, value, path, {"property": key})
