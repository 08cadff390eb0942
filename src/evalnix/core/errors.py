"""
Error types for eval-nix tokenizing, parsing, and evaluator invocation.

Two levels:

- ``ParseError`` and its subclasses are raised by the tokenizer and parser
  when the evaluator output does not fit the grammar.
- ``InstantiationError`` and its subclasses describe why a call to the
  evaluator did not produce a value. The invocation adapter returns these
  inside an ``InstantiationResult`` instead of raising them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evalnix.core.nix_output.tokenizer import Token


class EvalNixError(Exception):
    """Base exception for all eval-nix errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


@dataclass
class ErrorContext:
    """
    Location of an error within the evaluator output.

    Attributes:
        pos: Character offset (0-indexed) into the parsed text
        snippet: Optional excerpt of the text around the offset
    """

    pos: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "at offset 12 near '{x 1;}'"
        """
        location = f"at offset {self.pos}"
        if self.snippet:
            return f"{location} near {self.snippet!r}"
        return location


# ---------------------------------------------------------------------------
# Parse level
# ---------------------------------------------------------------------------


class ParseError(EvalNixError):
    """
    Raised when evaluator output cannot be parsed into a value.

    Examples:
    - Output ends in the middle of a list or set
    - A token that does not fit the grammar at its position
    - Nesting deeper than the configured limit
    """

    pass


class UnexpectedEndOfInput(ParseError):
    """A required token was requested but the token stream is exhausted."""

    def __init__(self, expected: str = "a value"):
        self.expected = expected
        super().__init__(f"Unexpected end of input, expected {expected}")


class UnexpectedToken(ParseError):
    """The next token does not satisfy the current grammar position."""

    def __init__(self, token: Token, expected: str | None = None):
        self.token = token
        self.expected = expected
        message = f"Unexpected token {token.kind} ({token.text!r})"
        if expected:
            message += f", expected {expected}"
        super().__init__(message, ErrorContext(pos=token.pos))


class NumberOutOfRange(UnexpectedToken):
    """An integer literal does not fit in a signed 64-bit integer."""

    def __init__(self, token: Token):
        super().__init__(token, expected="an integer in the signed 64-bit range")


class NestingTooDeep(ParseError):
    """Lists and sets are nested deeper than the parser allows."""

    def __init__(self, max_depth: int, pos: int):
        self.max_depth = max_depth
        super().__init__(
            f"Nesting exceeds the maximum depth of {max_depth}",
            ErrorContext(pos=pos),
        )


class DuplicateKey(ParseError):
    """A set literal binds the same key twice (strict mode only)."""

    def __init__(self, key: str, pos: int):
        self.key = key
        super().__init__(f"Duplicate key {key!r} in set", ErrorContext(pos=pos))


class UnexpectedCharacter(ParseError):
    """Text between tokens that is not whitespace (strict mode only)."""

    def __init__(self, char: str, pos: int, snippet: str | None = None):
        self.char = char
        self.pos = pos
        super().__init__(
            f"Unexpected character {char!r}",
            ErrorContext(pos=pos, snippet=snippet),
        )


class UndecodableOutput(ParseError):
    """Evaluator stdout is not valid UTF-8."""

    def __init__(self, reason: str):
        super().__init__(f"Evaluator output is not valid UTF-8: {reason}")


# ---------------------------------------------------------------------------
# Invocation level
# ---------------------------------------------------------------------------


class InstantiationError(EvalNixError):
    """
    Raised (or returned) when evaluating an expression did not yield a value.

    Examples:
    - The evaluator succeeded but printed something unparsable
    - The evaluator exited non-zero
    - The evaluator executable could not be started
    """

    kind: str = "InstantiationError"

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "message": self.message}


class InstantiationParseError(InstantiationError):
    """The evaluator exited successfully but its stdout did not parse."""

    kind = "ParseError"

    def __init__(self, inner: ParseError):
        self.inner = inner
        super().__init__(f"Could not parse evaluator output: {inner}")

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data["error"] = type(self.inner).__name__
        return data


class EvaluationError(InstantiationError):
    """The evaluator exited non-zero; ``message`` is its diagnostic text."""

    kind = "EvaluationError"

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data["returncode"] = self.returncode
        return data


class UnparsableEvaluationError(InstantiationError):
    """The evaluator exited non-zero and its stderr is not valid text."""

    kind = "UnparsableEvaluationError"

    def __init__(self, returncode: int | None = None):
        self.returncode = returncode
        super().__init__("Evaluator failed and its error output is not valid UTF-8")


class EvaluatorStartError(InstantiationError):
    """The evaluator process could not be started at all."""

    kind = "EvaluatorStartError"

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Could not start {executable}: {reason}")

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data["executable"] = self.executable
        return data
