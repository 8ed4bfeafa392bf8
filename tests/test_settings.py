"""
Tests for environment-driven configuration.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from shape_validator.exceptions import TagViolationError
from shape_validator.settings import ENV_MAX_DEPTH, ENV_THROW, ValidatorSettings, load_settings
from shape_validator.validator import DEFAULT_MAX_DEPTH


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.throw_on_failure is False
        assert settings.max_depth == DEFAULT_MAX_DEPTH
        assert settings.max_depth == 128

    @pytest.mark.parametrize("raw, expected", [("1", True), ("true", True), ("YES", True), ("0", False), ("off", False)])
    def test_throw_flag(self, raw, expected):
        assert load_settings({ENV_THROW: raw}).throw_on_failure is expected

    def test_max_depth(self):
        assert load_settings({ENV_MAX_DEPTH: " 16 "}).max_depth == 16

    def test_blank_max_depth_uses_default(self):
        assert load_settings({ENV_MAX_DEPTH: ""}).max_depth == DEFAULT_MAX_DEPTH

    @pytest.mark.parametrize("raw", ["0", "-3", "deep"])
    def test_invalid_max_depth(self, raw):
        with pytest.raises(ValidationError):
            load_settings({ENV_MAX_DEPTH: raw})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv(ENV_THROW, "true")
        assert load_settings().throw_on_failure is True


class TestBuildFactory:
    def test_factory_follows_settings(self):
        factory = ValidatorSettings(throw_on_failure=True, max_depth=8).build_factory()
        assert factory.throw_on_failure is True
        assert factory.max_depth == 8
        schema = {"age": {"type": "number", "primitive": True, "tags": [["max", "99"]]}}
        with pytest.raises(TagViolationError):
            factory(schema)({"age": 150})

    def test_factory_accepts_overrides(self):
        factory = ValidatorSettings().build_factory({"number": {"even": lambda v, a: v % 2 == 0}})
        schema = {"n": {"type": "number", "primitive": True, "tags": [["even", ""]]}}
        assert factory(schema)({"n": 4}) is True
        assert factory(schema)({"n": 3}) is False
