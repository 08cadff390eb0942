"""Version lookup for eval-nix."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

DISTRIBUTION = "eval-nix"

# Source checkout root when running from src/ (editable installs, tests).
_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _pyproject_version(pyproject: Path) -> str | None:
    """Read [project].version from a pyproject.toml naming this distribution."""
    if not pyproject.is_file():
        return None
    with open(pyproject, "rb") as f:
        project = tomllib.load(f).get("project", {})
    if project.get("name") != DISTRIBUTION:
        return None
    return project.get("version")


def get_version(pyproject: Path = _PYPROJECT) -> str:
    """Version from the source checkout if present, else from installed metadata."""
    version = _pyproject_version(pyproject)
    if version:
        return version
    try:
        return _metadata_version(DISTRIBUTION)
    except PackageNotFoundError:
        return "0.0.0"
