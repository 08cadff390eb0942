"""Core eval-nix functionality: value IR, output tokenizer and parser, evaluator invocation."""

from . import ir
from .environment import EvalNixSettings, load_settings
from .errors import (
    DuplicateKey,
    ErrorContext,
    EvalNixError,
    EvaluationError,
    EvaluatorStartError,
    InstantiationError,
    InstantiationParseError,
    NestingTooDeep,
    NumberOutOfRange,
    ParseError,
    UndecodableOutput,
    UnexpectedCharacter,
    UnexpectedEndOfInput,
    UnexpectedToken,
    UnparsableEvaluationError,
)
from .instantiate import (
    InstantiationResult,
    ProcessOutput,
    ProcessRunner,
    SubprocessRunner,
    exec_nix_instantiate,
)
from .nix_output import parse_nix_instantiate

__all__ = [
    "ir",
    "EvalNixSettings",
    "load_settings",
    "EvalNixError",
    "ErrorContext",
    "ParseError",
    "UnexpectedEndOfInput",
    "UnexpectedToken",
    "NumberOutOfRange",
    "NestingTooDeep",
    "DuplicateKey",
    "UnexpectedCharacter",
    "UndecodableOutput",
    "InstantiationError",
    "InstantiationParseError",
    "EvaluationError",
    "UnparsableEvaluationError",
    "EvaluatorStartError",
    "InstantiationResult",
    "ProcessOutput",
    "ProcessRunner",
    "SubprocessRunner",
    "exec_nix_instantiate",
    "parse_nix_instantiate",
]
