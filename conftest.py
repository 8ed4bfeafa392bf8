"""Pytest configuration: ensures the project root is importable."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))


@pytest.fixture(autouse=True)
def _clean_validator_env(monkeypatch):
    """Keep a developer's SHAPE_VALIDATOR_* variables out of the suite."""
    monkeypatch.delenv("SHAPE_VALIDATOR_THROW", raising=False)
    monkeypatch.delenv("SHAPE_VALIDATOR_MAX_DEPTH", raising=False)
    yield
