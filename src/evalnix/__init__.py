"""
eval-nix - typed access to ``nix-instantiate --eval`` output.

Runs the Nix evaluator and parses what it prints into a tree of values,
so tools such as derivation builders do not have to scrape text.
"""

from __future__ import annotations

from ._version import get_version

# Re-export commonly used types for convenience
from .core import ir
from .core.errors import EvalNixError, InstantiationError, ParseError
from .core.instantiate import InstantiationResult, exec_nix_instantiate
from .core.nix_output import parse_nix_instantiate

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "EvalNixError",
    "ParseError",
    "InstantiationError",
    "InstantiationResult",
    "exec_nix_instantiate",
    "parse_nix_instantiate",
]
