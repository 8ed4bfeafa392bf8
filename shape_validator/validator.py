"""
Recursive validation engine. Walks a schema tree against one input value.

Flow:
  make_validator(overrides, throw)      ← build the frozen tag registry once
        │
  factory(schema_document)              ← parse / bind one schema
        │
  validator(value) -> bool              ← fresh recursive walk per call

Node precedence (first matching rule wins):
  1. optional + absent value     → pass
  2. optional + fallback child   → validate the fallback
  3. literal                     → strict equality
  4. primitive                   → registry combinator (unknown type passes)
  5. array                       → validate_array
  6. intersection                → every member must pass
  7. union                       → validate_union
  8. property map                → validate_object
  9. anything else               → pass

Design principles:
  - Values are checked, never converted.
  - Validation short-circuits: the first failure decides the outcome.
  - No state survives a call; everything a walk needs rides in ValidationContext.
  - Schema authoring errors (bad intersections, cycles) are raised from the walk
    and collapsed to False at the top only in boolean mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Optional, Sequence

from .exceptions import (
    IntersectionArityError,
    LiteralMismatchError,
    RequiredPropertyMissingError,
    SchemaCycleError,
    SchemaError,
    TypeMismatchError,
    ValidationFailure,
)
from .models import JsonType, NodeKind, is_absent, load_schema
from .registry import TagOverrides, TagRegistry
from .reporting import (
    describe_alternative,
    literal_mismatch_message,
    required_property_message,
    type_mismatch_message,
    union_mismatch_message,
)

logger = logging.getLogger(__name__)

# Each schema level costs a few interpreter frames; stay well below the default recursion limit.
DEFAULT_MAX_DEPTH = 128


# ─── Context ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ValidationContext:
    """Everything one recursive walk needs, threaded explicitly through every call."""

    registry: TagRegistry
    throw_on_failure: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    depth: int = 0
    path: tuple[Any, ...] = ()

    def enter(self) -> ValidationContext:
        """One level deeper in the schema; trips the cycle guard."""
        if self.depth >= self.max_depth:
            raise SchemaCycleError(self.max_depth, self.path)
        return replace(self, depth=self.depth + 1)

    def at(self, segment: Any) -> ValidationContext:
        """Same depth, one step deeper in the input value."""
        return replace(self, path=self.path + (segment,))

    def probing(self) -> ValidationContext:
        """A context whose failures are reported as False, never raised."""
        return replace(self, throw_on_failure=False)

    def fail(self, build_error: Callable[[], ValidationFailure]) -> bool:
        if self.throw_on_failure:
            raise build_error()
        return False


# ─── Equality ────────────────────────────────────────────────────────


def strict_equal(expected: Any, actual: Any) -> bool:
    """Equality without cross-type coercion: 1 != True, "1" != 1, 1 == 1.0."""
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected == actual
    if isinstance(expected, (int, float)) and isinstance(actual, (int, float)):
        return expected == actual
    if expected is None or actual is None:
        return expected is actual
    return type(expected) is type(actual) and expected == actual


def _is_literal_alternative(alternative: Any) -> bool:
    return not isinstance(alternative, JsonType) or alternative.literal


def _literal_value(alternative: Any) -> Any:
    return alternative.children if isinstance(alternative, JsonType) else alternative


# ─── Node Dispatch ───────────────────────────────────────────────────


def validate_node(
    node: JsonType,
    value: Any,
    ctx: ValidationContext,
    from_union_probe: bool = False,
) -> bool:
    """Validate ``value`` against one schema node."""
    ctx = ctx.enter()

    if node.optional and is_absent(value):
        return True

    handler = _HANDLERS[node.kind]
    return handler(node, value, ctx, from_union_probe)


def _validate_member(
    member: Any,
    value: Any,
    ctx: ValidationContext,
    from_union_probe: bool = False,
) -> bool:
    """Validate against a child-list entry, which may be a node or a bare literal."""
    if isinstance(member, JsonType):
        return validate_node(member, value, ctx, from_union_probe)
    if strict_equal(member, value):
        return True
    if from_union_probe:
        return False
    return ctx.fail(lambda: LiteralMismatchError(
        [member], value, literal_mismatch_message(member, value), ctx.path,
    ))


def _validate_optional(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    return validate_node(node.fallback[0], value, ctx, from_union_probe)


def _validate_literal(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    expected = node.children
    if strict_equal(expected, value):
        return True
    if from_union_probe:
        return False
    logger.debug("Literal mismatch at %s: expected %r", list(ctx.path), expected)
    return ctx.fail(lambda: LiteralMismatchError(
        [expected], value, literal_mismatch_message(expected, value), ctx.path,
    ))


def _validate_primitive(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    combinator = ctx.registry.lookup(node.type_name)
    if combinator is None:
        # Unknown primitive names are deliberately unchecked
        return True
    return combinator(value, node.tags, ctx.throw_on_failure, ctx.path)


def _validate_array_node(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    return validate_array(node.alternatives, value, ctx, from_union_probe)


def _validate_intersection(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    members = node.alternatives
    if len(members) < 2:
        raise IntersectionArityError(len(members), ctx.path)
    return all(_validate_member(member, value, ctx, from_union_probe) for member in members)


def _validate_union_node(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    return validate_union(node.alternatives, value, ctx, from_union_probe)


def _validate_object_node(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    return validate_object(node.properties, value, ctx, from_union_probe)


def _validate_opaque(node: JsonType, value: Any, ctx: ValidationContext, from_union_probe: bool) -> bool:
    return True


_HANDLERS: Mapping[NodeKind, Callable[[JsonType, Any, ValidationContext, bool], bool]] = {
    NodeKind.OPTIONAL: _validate_optional,
    NodeKind.LITERAL: _validate_literal,
    NodeKind.PRIMITIVE: _validate_primitive,
    NodeKind.ARRAY: _validate_array_node,
    NodeKind.INTERSECTION: _validate_intersection,
    NodeKind.UNION: _validate_union_node,
    NodeKind.OBJECT: _validate_object_node,
    NodeKind.OPAQUE: _validate_opaque,
}


# ─── Structural Validators ───────────────────────────────────────────


def validate_array(
    schemas: Sequence[Any],
    value: Any,
    ctx: ValidationContext,
    from_union_probe: bool = False,
) -> bool:
    """Every element must match the element schema (or the union of several)."""
    if not isinstance(value, (list, tuple)):
        return ctx.fail(lambda: TypeMismatchError(
            "array", value, type_mismatch_message("array", value), ctx.path,
        ))
    if not schemas:
        return True

    for index, element in enumerate(value):
        element_ctx = ctx.at(index)
        if len(schemas) == 1:
            passed = _validate_member(schemas[0], element, element_ctx, from_union_probe)
        else:
            passed = validate_union(schemas, element, element_ctx, from_union_probe)
        if not passed:
            return False
    return True


def validate_union(
    schemas: Sequence[Any],
    value: Any,
    ctx: ValidationContext,
    from_union_probe: bool = False,
) -> bool:
    """Pass if any alternative passes; failures stay silent until all are tried."""
    for alternative in schemas:
        if _is_literal_alternative(alternative) and strict_equal(_literal_value(alternative), value):
            return True

    probe_ctx = ctx.probing()
    for alternative in schemas:
        if isinstance(alternative, JsonType) and validate_node(alternative, value, probe_ctx, True):
            return True

    logger.debug("No union alternative matched at %s", list(ctx.path))
    return ctx.fail(lambda: LiteralMismatchError(
        [describe_alternative(alternative) for alternative in schemas],
        value,
        union_mismatch_message(schemas, value),
        ctx.path,
    ))


def validate_object(
    properties: Mapping[str, JsonType],
    value: Any,
    ctx: ValidationContext,
    from_union_probe: bool = False,
) -> bool:
    """Required keys must exist; declared keys must match; unknown keys are ignored."""
    if not isinstance(value, Mapping):
        return ctx.fail(lambda: TypeMismatchError(
            "object", value, type_mismatch_message("object", value), ctx.path,
        ))

    for key, child in properties.items():
        if not child.optional and key not in value:
            logger.debug("Missing required property %r at %s", key, list(ctx.path))
            return ctx.fail(lambda: RequiredPropertyMissingError(
                key, value, required_property_message(key), ctx.path + (key,),
            ))

    for key, item in value.items():
        child = properties.get(key)
        if child is None:
            continue
        if not validate_node(child, item, ctx.at(key), from_union_probe):
            return False
    return True


# ─── Public API ──────────────────────────────────────────────────────


class SchemaValidator:
    """A validator bound to one schema; safe to call concurrently.

    Usage:
        person = make_validator()(schema_json)
        if not person({"name": "Some", "employees": 10}):
            ...
    """

    def __init__(
        self,
        schema: JsonType,
        registry: TagRegistry,
        throw_on_failure: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.schema = schema
        self.registry = registry
        self.throw_on_failure = throw_on_failure
        self.max_depth = max_depth

    def __call__(self, value: Any) -> bool:
        ctx = ValidationContext(
            registry=self.registry,
            throw_on_failure=self.throw_on_failure,
            max_depth=self.max_depth,
        )
        try:
            try:
                return validate_node(self.schema, value, ctx)
            except RecursionError as exc:
                raise SchemaCycleError(self.max_depth) from exc
        except SchemaError as exc:
            if self.throw_on_failure:
                raise
            logger.warning("Schema error collapsed to False: [%s] %s", exc.code, exc)
            return False

    def check(self, value: Any) -> Optional[ValidationFailure]:
        """Run in throwing mode and return the failure instead of raising it."""
        strict = SchemaValidator(self.schema, self.registry, True, self.max_depth)
        try:
            strict(value)
        except ValidationFailure as exc:
            return exc
        return None


class ValidatorFactory:
    """Holds the frozen registry and mode; turns schema documents into validators."""

    def __init__(
        self,
        tag_overrides: Optional[TagOverrides] = None,
        throw_on_failure: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.registry = TagRegistry.build(tag_overrides)
        self.throw_on_failure = throw_on_failure
        self.max_depth = max_depth
        logger.info(
            "Validator factory ready (mode=%s, max_depth=%d)",
            "throw" if throw_on_failure else "boolean",
            max_depth,
        )

    def __call__(self, schema: Any) -> SchemaValidator:
        """Bind a schema (JSON text, decoded mapping, or JsonType).

        Raises:
            SchemaParseError: the document is malformed.
        """
        return SchemaValidator(load_schema(schema), self.registry, self.throw_on_failure, self.max_depth)


def make_validator(
    tag_overrides: Optional[TagOverrides] = None,
    throw_on_failure: bool = False,
    max_depth: Optional[int] = None,
) -> ValidatorFactory:
    """Build a validator factory.

    Args:
        tag_overrides: Per primitive kind, extra or replacement rules,
            e.g. ``{"number": {"between": between}}``.
        throw_on_failure: Raise a ValidationFailure instead of returning False.
        max_depth: Schema nesting limit before SchemaCycleError.
    """
    return ValidatorFactory(
        tag_overrides,
        throw_on_failure,
        DEFAULT_MAX_DEPTH if max_depth is None else max_depth,
    )


validate = make_validator()
