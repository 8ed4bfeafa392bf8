"""
Shape Validator: schema-driven validation for decoded values.

Architecture: Schema document → Tag registry → Recursive validator → Report
Philosophy:  Check the value. Never convert it.
"""

from .exceptions import (
    IntersectionArityError,
    LiteralMismatchError,
    RequiredPropertyMissingError,
    SchemaCycleError,
    SchemaError,
    SchemaParseError,
    ShapeValidatorError,
    TagViolationError,
    TypeMismatchError,
    ValidationFailure,
)
from .directives import parse_tag_directives
from .models import JsonType, NodeKind, Tag, load_schema, parse_schema
from .registry import TagRegistry, create_validator_for
from .validator import SchemaValidator, ValidatorFactory, make_validator, validate

__version__ = "1.0.0"

__all__ = [
    "IntersectionArityError",
    "JsonType",
    "LiteralMismatchError",
    "NodeKind",
    "RequiredPropertyMissingError",
    "SchemaCycleError",
    "SchemaError",
    "SchemaParseError",
    "SchemaValidator",
    "ShapeValidatorError",
    "Tag",
    "TagRegistry",
    "TagViolationError",
    "TypeMismatchError",
    "ValidationFailure",
    "ValidatorFactory",
    "create_validator_for",
    "load_schema",
    "make_validator",
    "parse_tag_directives",
    "parse_schema",
    "validate",
]
