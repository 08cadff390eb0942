"""
Environment configuration for eval-nix.

Settings are read from environment variables each time ``load_settings()``
is called, so tests and callers can change them with ``monkeypatch.setenv``.

Environment variables:
    - EVAL_NIX_INSTANTIATE: evaluator executable (default: nix-instantiate)
    - EVAL_NIX_MAX_DEPTH: maximum list/set nesting the parser accepts (default: 256)
    - EVAL_NIX_STRICT: reject stray characters, duplicate keys and trailing
      tokens when set to 1/true/yes (default: off)

Usage:
    from evalnix.core.environment import load_settings

    settings = load_settings()
    settings.executable  # "nix-instantiate"
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

EXECUTABLE_VAR = "EVAL_NIX_INSTANTIATE"
MAX_DEPTH_VAR = "EVAL_NIX_MAX_DEPTH"
STRICT_VAR = "EVAL_NIX_STRICT"

DEFAULT_EXECUTABLE = "nix-instantiate"
# Each level of nesting costs two Python frames in the parser.
DEFAULT_MAX_DEPTH = 256

_TRUTHY = {"1", "true", "yes", "on"}


class EvalNixSettings(BaseModel):
    """Process-wide settings for invoking the evaluator and parsing its output."""

    executable: str = Field(default=DEFAULT_EXECUTABLE, description="Evaluator executable")
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, description="Parser nesting limit")
    strict: bool = Field(default=False, description="Reject input the permissive scan skips")

    model_config = ConfigDict(frozen=True)


def get_executable() -> str:
    """Get the evaluator executable from EVAL_NIX_INSTANTIATE."""
    return os.environ.get(EXECUTABLE_VAR, "").strip() or DEFAULT_EXECUTABLE


def get_max_depth() -> int:
    """Get the parser nesting limit from EVAL_NIX_MAX_DEPTH.

    Unknown or non-positive values fall back to the default with a warning.
    """
    raw = os.environ.get(MAX_DEPTH_VAR, "").strip()
    if not raw:
        return DEFAULT_MAX_DEPTH
    try:
        depth = int(raw)
    except ValueError:
        depth = 0
    if depth < 1:
        logger.warning(
            "Invalid %s value '%s'. Expected a positive integer. Defaulting to %d.",
            MAX_DEPTH_VAR,
            raw,
            DEFAULT_MAX_DEPTH,
        )
        return DEFAULT_MAX_DEPTH
    return depth


def is_strict() -> bool:
    """Check if strict parsing is enabled via EVAL_NIX_STRICT."""
    return os.environ.get(STRICT_VAR, "").lower().strip() in _TRUTHY


def load_settings() -> EvalNixSettings:
    """Build settings from the current environment."""
    return EvalNixSettings(
        executable=get_executable(),
        max_depth=get_max_depth(),
        strict=is_strict(),
    )
