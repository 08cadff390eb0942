"""Shared pytest fixtures for eval-nix tests."""

import pytest

from evalnix.core.environment import EXECUTABLE_VAR, MAX_DEPTH_VAR, STRICT_VAR


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test with the default eval-nix settings."""
    for var in (EXECUTABLE_VAR, MAX_DEPTH_VAR, STRICT_VAR):
        monkeypatch.delenv(var, raising=False)
