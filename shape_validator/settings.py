"""
Runtime configuration read from the environment.

    SHAPE_VALIDATOR_THROW       "1"/"true"/"yes" → throwing mode (default: boolean mode)
    SHAPE_VALIDATOR_MAX_DEPTH   schema nesting limit before SchemaCycleError

The throw flag sets the mode of factories built from these settings, i.e. the
validators library callers get back. The HTTP endpoint ignores it: /validate
always uses SchemaValidator.check() so it can report the first failure.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .registry import TagOverrides
from .validator import DEFAULT_MAX_DEPTH, ValidatorFactory

ENV_THROW = "SHAPE_VALIDATOR_THROW"
ENV_MAX_DEPTH = "SHAPE_VALIDATOR_MAX_DEPTH"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class ValidatorSettings(BaseModel):
    """Factory settings; validated so a bad env var fails at startup, not per request."""

    throw_on_failure: bool = False
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)

    def build_factory(self, tag_overrides: Optional[TagOverrides] = None) -> ValidatorFactory:
        return ValidatorFactory(tag_overrides, self.throw_on_failure, self.max_depth)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ValidatorSettings:
    """Read settings from ``environ`` (defaults to ``os.environ``).

    Raises:
        pydantic.ValidationError: SHAPE_VALIDATOR_MAX_DEPTH is not a positive integer.
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}

    throw = env.get(ENV_THROW)
    if throw is not None:
        values["throw_on_failure"] = throw.strip().lower() in _TRUTHY

    max_depth = env.get(ENV_MAX_DEPTH)
    if max_depth is not None and max_depth.strip():
        values["max_depth"] = max_depth.strip()

    return ValidatorSettings.model_validate(values)
