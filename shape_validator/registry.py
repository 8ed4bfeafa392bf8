"""
Tag registry: per-primitive refinement rules.

A rule is a plain function ``(value, argument) -> bool`` where ``argument`` is
the raw text that followed the tag in the documentation comment:

    /** @max 99 */   →   NUMBER_RULES["max"](value, "99")

Rules NEVER coerce the value. The type predicate runs first, so a rule only
ever sees values of its own primitive kind.

Callers extend the tables at factory construction. Supplied rules replace
same-named built-ins; every other built-in stays available. Once built, a
registry is read-only.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

from .exceptions import SchemaParseError, TagViolationError, TypeMismatchError
from .models import Tag
from .reporting import tag_violation_message, type_mismatch_message

logger = logging.getLogger(__name__)

Rule = Callable[[Any, str], bool]
TagCombinator = Callable[..., bool]
TagOverrides = Mapping[str, Mapping[str, Rule]]


# ─── Type Predicates ─────────────────────────────────────────────────


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_number(value: Any) -> bool:
    # bool is an int subclass in Python, but never a number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


# ─── Argument Parsing ────────────────────────────────────────────────

_REGEX_LITERAL = re.compile(r"^/(?P<pattern>.*)/(?P<flags>[ims]*)$", re.DOTALL)
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}

EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)*"
)
ALPHANUMERIC_PATTERN = re.compile(r"[a-zA-Z0-9]+")


@lru_cache(maxsize=256)
def compile_pattern(argument: str) -> re.Pattern[str]:
    """Compile ``/pattern/flags`` (or a bare pattern) from a @regex tag."""
    match = _REGEX_LITERAL.match(argument)
    pattern, flags = argument, 0
    if match:
        pattern = match.group("pattern")
        for flag in match.group("flags"):
            flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise SchemaParseError(
            f"Invalid @regex pattern {argument!r}: {exc}",
            {"pattern": argument},
        ) from exc


def _to_int(argument: str) -> Optional[int]:
    try:
        return int(argument)
    except ValueError:
        return None


def _to_number(argument: str) -> Optional[float]:
    try:
        return float(argument)
    except ValueError:
        return None


# ─── Built-in Rules ──────────────────────────────────────────────────


def _string_regex(value: str, argument: str) -> bool:
    return compile_pattern(argument).search(value) is not None


def _string_alphanumeric(value: str, argument: str) -> bool:
    return ALPHANUMERIC_PATTERN.fullmatch(value) is not None


def _string_max(value: str, argument: str) -> bool:
    limit = _to_int(argument)
    return limit is not None and len(value) <= limit


def _string_min(value: str, argument: str) -> bool:
    limit = _to_int(argument)
    return limit is not None and len(value) >= limit


def _string_email(value: str, argument: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value) is not None


def _number_max(value: float, argument: str) -> bool:
    limit = _to_number(argument)
    return limit is not None and value <= limit


def _number_min(value: float, argument: str) -> bool:
    limit = _to_number(argument)
    return limit is not None and value >= limit


STRING_RULES: Mapping[str, Rule] = MappingProxyType({
    "regex": _string_regex,
    "alphanumeric": _string_alphanumeric,
    "max": _string_max,
    "min": _string_min,
    "email": _string_email,
})

NUMBER_RULES: Mapping[str, Rule] = MappingProxyType({
    "min": _number_min,
    "max": _number_max,
})

BOOLEAN_RULES: Mapping[str, Rule] = MappingProxyType({})

PRIMITIVE_KINDS: Mapping[str, tuple[Callable[[Any], bool], Mapping[str, Rule]]] = MappingProxyType({
    "string": (is_string, STRING_RULES),
    "number": (is_number, NUMBER_RULES),
    "boolean": (is_boolean, BOOLEAN_RULES),
})


# ─── Combinator ──────────────────────────────────────────────────────


def create_validator_for(
    name: str,
    type_predicate: Callable[[Any], bool],
    rules: Mapping[str, Rule],
) -> TagCombinator:
    """Build the checker for one primitive kind.

    The returned function ``(value, tags, should_throw=False, path=())``
    applies the type predicate, then every tag that has a rule, in order.
    The first failure returns False, or raises when ``should_throw`` is set.
    Tags without a rule (e.g. ``@error``, ``@deprecated``) are ignored.
    """
    table = MappingProxyType(dict(rules))

    def check(
        value: Any,
        tags: Iterable[Tag | tuple[str, str] | list[str]],
        should_throw: bool = False,
        path: tuple[Any, ...] = (),
    ) -> bool:
        if not type_predicate(value):
            logger.debug("Type mismatch at %s: expected %s", list(path), name)
            if should_throw:
                raise TypeMismatchError(name, value, type_mismatch_message(name, value), path)
            return False

        tag_list = [tag if isinstance(tag, Tag) else Tag.model_validate(tag) for tag in tags]
        for tag in tag_list:
            rule = table.get(tag.name)
            if rule is None:
                continue
            if not rule(value, tag.argument):
                logger.debug("Tag @%s %s failed at %s", tag.name, tag.argument, list(path))
                if should_throw:
                    raise TagViolationError(
                        tag.name,
                        tag.argument,
                        value,
                        tag_violation_message(tag_list, tag, value),
                        path,
                    )
                return False
        return True

    check.__name__ = f"validate_{name}"
    return check


# ─── Registry ────────────────────────────────────────────────────────


class TagRegistry:
    """Frozen lookup from primitive type name to its tag combinator.

    Usage:
        registry = TagRegistry.build({"number": {"between": between_rule}})
        checker = registry.lookup("number")
        checker(42, [Tag(name="between", argument="1 100")])
    """

    def __init__(self, rules: Mapping[str, Mapping[str, Rule]]):
        self._rules = MappingProxyType({
            kind: MappingProxyType(dict(table)) for kind, table in rules.items()
        })
        self._combinators = MappingProxyType({
            kind: create_validator_for(kind, PRIMITIVE_KINDS[kind][0], table)
            for kind, table in self._rules.items()
        })

    @classmethod
    def build(cls, overrides: Optional[TagOverrides] = None) -> TagRegistry:
        """Merge caller rules over the built-ins, per primitive kind.

        Raises:
            ValueError: an override names a primitive kind that does not exist.
        """
        overrides = overrides or {}
        unknown = sorted(set(overrides) - set(PRIMITIVE_KINDS))
        if unknown:
            raise ValueError(
                f"Cannot override rules for unknown primitive kind(s): {', '.join(unknown)}. "
                f"Known kinds: {', '.join(PRIMITIVE_KINDS)}"
            )

        merged = {
            kind: {**builtins, **(overrides.get(kind) or {})}
            for kind, (_, builtins) in PRIMITIVE_KINDS.items()
        }
        for kind, table in overrides.items():
            if table:
                logger.info("Registered %s rule(s): %s", kind, ", ".join(sorted(table)))
        return cls(merged)

    def lookup(self, type_name: str) -> Optional[TagCombinator]:
        """The combinator for a primitive type, or None for unchecked types."""
        return self._combinators.get(type_name)

    def rules_for(self, type_name: str) -> Mapping[str, Rule]:
        return self._rules.get(type_name, MappingProxyType({}))

    def rule_names(self) -> dict[str, list[str]]:
        return {kind: sorted(self.rules_for(kind)) for kind in self._rules}
