"""
Tests for the tag registry: built-in rules, combinators and overrides.
"""

from __future__ import annotations

import pytest

from shape_validator.exceptions import SchemaParseError, TagViolationError, TypeMismatchError
from shape_validator.models import Tag
from shape_validator.registry import (
    NUMBER_RULES,
    STRING_RULES,
    TagRegistry,
    create_validator_for,
    is_boolean,
    is_number,
    is_string,
)


def _check(kind: str, value, *tags: tuple[str, str]) -> bool:
    combinator = TagRegistry.build().lookup(kind)
    return combinator(value, [Tag(name=name, argument=argument) for name, argument in tags])


# ═══════════════════════════════════════════════════════════════════════
# TYPE PREDICATES
# ═══════════════════════════════════════════════════════════════════════


class TestPredicates:
    def test_string(self):
        assert is_string("")
        assert not is_string(b"bytes")

    def test_number_excludes_bool(self):
        assert is_number(3)
        assert is_number(3.5)
        assert not is_number(True)
        assert not is_number("3")

    def test_boolean(self):
        assert is_boolean(False)
        assert not is_boolean(0)


# ═══════════════════════════════════════════════════════════════════════
# STRING RULES
# ═══════════════════════════════════════════════════════════════════════


class TestStringRules:
    REGEX = r"/^[a-zA-Z0-9.!#]+\w{1,10}$/"

    @pytest.mark.parametrize("text", ["fsa31!#f1", ".1!#f1##_"])
    def test_regex_matches(self, text):
        assert _check("string", text, ("regex", self.REGEX)) is True

    @pytest.mark.parametrize("text", ["312321*", "-fsfs", "", "!_stringtoolong"])
    def test_regex_rejects(self, text):
        assert _check("string", text, ("regex", self.REGEX)) is False

    def test_regex_without_delimiters(self):
        assert _check("string", "abc", ("regex", "^a")) is True

    def test_regex_flags(self):
        assert _check("string", "ABC", ("regex", "/^abc$/i")) is True
        assert _check("string", "ABC", ("regex", "/^abc$/")) is False

    def test_invalid_regex_is_a_schema_error(self):
        with pytest.raises(SchemaParseError, match="Invalid @regex"):
            _check("string", "x", ("regex", "/([/"))

    @pytest.mark.parametrize("text, expected", [
        ("abc123", True),
        ("ABC1234567890", True),
        ("_", False),
        ("*", False),
        ("-", False),
        ("/", False),
        ("@", False),
        ("", False),
    ])
    def test_alphanumeric(self, text, expected):
        assert _check("string", text, ("alphanumeric", "")) is expected

    @pytest.mark.parametrize("text, expected", [("abc", True), ("", True), ("+!~", True), ("1234", False), ("abc#", False)])
    def test_max_length(self, text, expected):
        assert _check("string", text, ("max", "3")) is expected

    @pytest.mark.parametrize("text, expected", [("abcd", True), ("+!~*", True), ("", False), ("123", False)])
    def test_min_length(self, text, expected):
        assert _check("string", text, ("min", "4")) is expected

    @pytest.mark.parametrize("text, expected", [
        ("someone@example.com", True),
        ("first.last+tag@mail.example.org", True),
        ("not-an-email", False),
        ("two@@example.com", False),
        ("", False),
    ])
    def test_email(self, text, expected):
        assert _check("string", text, ("email", "")) is expected

    @pytest.mark.parametrize("rule, text", [
        ("alphanumeric", "abc\n"),
        ("alphanumeric", "\nabc"),
        ("email", "a@b.com\n"),
        ("email", "a@b.com\nx@y.org"),
    ])
    def test_anchored_rules_reject_surrounding_newlines(self, rule, text):
        assert _check("string", text, (rule, "")) is False

    def test_unparseable_length_fails(self):
        assert _check("string", "abc", ("max", "three")) is False


# ═══════════════════════════════════════════════════════════════════════
# NUMBER RULES
# ═══════════════════════════════════════════════════════════════════════


class TestNumberRules:
    def test_bounds_are_inclusive(self):
        assert _check("number", 0, ("min", "0"), ("max", "99")) is True
        assert _check("number", 99, ("min", "0"), ("max", "99")) is True

    def test_out_of_bounds(self):
        assert _check("number", -1, ("min", "0")) is False
        assert _check("number", 100, ("max", "99")) is False

    def test_fractional_bounds(self):
        assert _check("number", 0.25, ("min", "0.2")) is True
        assert _check("number", 0.1, ("min", "0.2")) is False

    def test_unparseable_bound_fails(self):
        assert _check("number", 5, ("max", "lots")) is False

    def test_boolean_has_no_rules(self):
        assert _check("boolean", True, ("max", "0")) is True


# ═══════════════════════════════════════════════════════════════════════
# COMBINATOR
# ═══════════════════════════════════════════════════════════════════════


class TestCreateValidatorFor:
    def test_type_predicate_runs_first(self):
        calls: list[str] = []
        check = create_validator_for("number", is_number, {"seen": lambda v, a: calls.append(a) or True})
        assert check("5", [Tag(name="seen", argument="x")]) is False
        assert calls == []

    def test_type_mismatch_raises_when_asked(self):
        check = create_validator_for("number", is_number, {})
        with pytest.raises(TypeMismatchError) as info:
            check("5", [], True)
        assert info.value.expected == "number"

    def test_first_failing_tag_short_circuits(self):
        calls: list[str] = []

        def record(result: bool):
            def rule(value, argument):
                calls.append(argument)
                return result
            return rule

        check = create_validator_for("string", is_string, {"ok": record(True), "bad": record(False)})
        tags = [Tag(name="ok", argument="1"), Tag(name="bad", argument="2"), Tag(name="ok", argument="3")]
        assert check("x", tags) is False
        assert calls == ["1", "2"]

    def test_tag_violation_raises_with_path(self):
        check = create_validator_for("string", is_string, STRING_RULES)
        with pytest.raises(TagViolationError) as info:
            check("abcd", [Tag(name="max", argument="3")], True, ("name",))
        assert info.value.tag == "max"
        assert info.value.argument == "3"
        assert info.value.path == ("name",)

    def test_unknown_tags_are_ignored(self):
        check = create_validator_for("string", is_string, STRING_RULES)
        assert check("x", [Tag(name="deprecated"), Tag(name="error", argument="nope")]) is True

    def test_pairs_are_accepted_as_tags(self):
        check = create_validator_for("number", is_number, NUMBER_RULES)
        assert check(5, [["min", "1"], ("max", "9")]) is True
        assert check(50, [["min", "1"], ("max", "9")]) is False

    def test_rules_are_copied(self):
        rules = {"never": lambda v, a: False}
        check = create_validator_for("string", is_string, rules)
        rules.clear()
        assert check("x", [Tag(name="never")]) is False


# ═══════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════


class TestTagRegistry:
    def test_builtin_rule_names(self):
        assert TagRegistry.build().rule_names() == {
            "string": ["alphanumeric", "email", "max", "min", "regex"],
            "number": ["max", "min"],
            "boolean": [],
        }

    def test_override_merges_with_builtins(self):
        registry = TagRegistry.build({"number": {"between": lambda v, a: True}})
        assert registry.rule_names()["number"] == ["between", "max", "min"]
        assert registry.rule_names()["string"] == ["alphanumeric", "email", "max", "min", "regex"]

    def test_override_replaces_same_name(self):
        lenient = lambda v, a: True  # noqa: E731
        registry = TagRegistry.build({"string": {"email": lenient}})
        assert registry.rules_for("string")["email"] is lenient

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValueError, match="unknown primitive kind"):
            TagRegistry.build({"date": {"after": lambda v, a: True}})

    def test_registry_is_read_only(self):
        registry = TagRegistry.build()
        with pytest.raises(TypeError):
            registry.rules_for("number")["sneaky"] = lambda v, a: True  # type: ignore[index]

    def test_lookup(self):
        registry = TagRegistry.build()
        assert registry.lookup("string") is not None
        assert registry.lookup("Date") is None
        assert registry.rules_for("Date") == {}
