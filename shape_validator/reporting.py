"""
Deterministic message construction for validation failures.

Every function here is pure: the same (tags, value) always produce the same
text, so callers can assert on exact messages.

Custom messages come from an ``@error`` tag on the failing node:
  - plain text  → used for any failing tag, ``[value]`` is substituted
  - JSON object → ``{"max": "too old", "min": "too young"}``, used only when
                  the failing tag is one of its keys
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Sequence, Union

from .models import MISSING, JsonType, Tag

ERROR_TAG = "error"
VALUE_PLACEHOLDER = "[value]"

ErrorTemplate = Union[str, dict[str, str]]


# ─── Value Rendering ─────────────────────────────────────────────────


def format_value(value: Any) -> str:
    """Text form of a value: ``null``, ``true``, ``150``, ``Some``, ``{"a":1}``."""
    if value is MISSING:
        return "undefined"
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    except ValueError:
        # Circular containers
        return repr(value)


def quote_value(value: Any) -> str:
    """Like format_value, but strings are double-quoted so "1" and 1 differ."""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return format_value(value)


def describe_alternative(alternative: Any) -> str:
    """How a union alternative is listed: its literal value or its type name."""
    if isinstance(alternative, JsonType):
        if alternative.literal:
            return format_value(alternative.children)
        return alternative.type_name
    return format_value(alternative)


# ─── @error Templates ────────────────────────────────────────────────


def find_error_template(tags: Iterable[Tag]) -> Optional[ErrorTemplate]:
    """Return the node's ``@error`` template, decoded if it is a JSON object."""
    for tag in tags:
        if tag.name != ERROR_TAG:
            continue
        text = tag.argument
        if text.startswith("{"):
            try:
                mapping = json.loads(text)
            except ValueError:
                return text
            if isinstance(mapping, dict):
                return {str(key): str(message) for key, message in mapping.items()}
        return text
    return None


def apply_template(template: str, value: Any) -> str:
    return template.replace(VALUE_PLACEHOLDER, format_value(value))


def custom_message(tags: Sequence[Tag], failing_tag: str, value: Any) -> Optional[str]:
    """The ``@error`` message for a failing tag, or None to use the default."""
    template = find_error_template(tags)
    if not template:
        return None
    if isinstance(template, dict):
        if failing_tag not in template:
            return None
        return apply_template(template[failing_tag], value)
    return apply_template(template, value)


# ─── Default Messages ────────────────────────────────────────────────


def tag_violation_message(tags: Sequence[Tag], tag: Tag, value: Any) -> str:
    custom = custom_message(tags, tag.name, value)
    if custom is not None:
        return custom
    directive = f"@{tag.name} {tag.argument}" if tag.argument else f"@{tag.name}"
    return f"Value {quote_value(value)} failed tag {directive}"


def type_mismatch_message(expected: str, value: Any) -> str:
    return f"Expected {expected} but received {quote_value(value)}"


def literal_mismatch_message(expected: Any, value: Any) -> str:
    return f"Expected {quote_value(expected)} but received {quote_value(value)}"


def union_mismatch_message(alternatives: Sequence[Any], value: Any) -> str:
    listed = ",".join(describe_alternative(option) for option in alternatives)
    return f"Expected one of [{listed}] but received {quote_value(value)}"


def required_property_message(key: str) -> str:
    return f'Missing required property "{key}"'
