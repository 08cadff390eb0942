"""
Tokenizer for ``nix-instantiate --eval`` output.

Scans the complete output text into a sequence of typed tokens. Text that
matches no token (whitespace included) is skipped, unless ``strict`` is set.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum, auto

from evalnix.core.errors import UnexpectedCharacter


class TokenKind(StrEnum):
    """Token types found in evaluator output."""

    # Literals
    NULL = auto()
    BOOL = auto()
    NUMBER = auto()
    STRING = auto()
    PATH = auto()

    # Markers for values the evaluator does not print
    UNEVALUATED = auto()  # <CODE>, <CYCLE>
    FUNCTION = auto()  # <LAMBDA>, <PRIMOP>

    # Punctuation
    EQUALS = auto()
    SEMICOLON = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LCURLY = auto()
    RCURLY = auto()

    IDENT = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A single token from the output tokenizer.

    ``value`` is the decoded payload: a bool, an int, the unescaped string
    contents, the path, or ``None`` for tokens without one.
    """

    kind: TokenKind
    text: str
    value: bool | int | str | None = None
    pos: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.text!r}, pos={self.pos})"


# Alternatives are tried in order at each position; the first that matches wins.
_TOKEN_RE = re.compile(
    r"""
      (?P<number>-?[0-9]+)
    | (?P<ident>[A-Za-z][A-Za-z0-9_'\-]*)  # no leading "_"; permissive scan drops it
    | (?P<string>"(?:\\.|[^"\\])*")
    | (?P<path>/[^;]*)
    | (?P<marker><CODE>|<CYCLE>|<LAMBDA>|<PRIMOP>)
    | (?P<punct>[\[\]{}()=;])
    """,
    re.VERBOSE | re.DOTALL,
)

_KEYWORDS: dict[str, tuple[TokenKind, bool | None]] = {
    "null": (TokenKind.NULL, None),
    "true": (TokenKind.BOOL, True),
    "false": (TokenKind.BOOL, False),
}

_MARKERS: dict[str, TokenKind] = {
    "<CODE>": TokenKind.UNEVALUATED,
    "<CYCLE>": TokenKind.UNEVALUATED,
    "<LAMBDA>": TokenKind.FUNCTION,
    "<PRIMOP>": TokenKind.FUNCTION,
}

_PUNCTUATION: dict[str, TokenKind] = {
    "=": TokenKind.EQUALS,
    ";": TokenKind.SEMICOLON,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "{": TokenKind.LCURLY,
    "}": TokenKind.RCURLY,
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def unescape(body: str) -> str:
    """Decode backslash escapes in the body of a string literal.

    ``\\n``, ``\\t`` and ``\\r`` become control characters; any other escaped
    character stands for itself (``\\"``, ``\\\\``, ``\\$``).
    """
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def _make_token(match: re.Match[str]) -> Token:
    text = match.group(0)
    pos = match.start()
    group = match.lastgroup

    if group == "number":
        return Token(TokenKind.NUMBER, text, int(text), pos)
    if group == "ident":
        if text in _KEYWORDS:
            kind, value = _KEYWORDS[text]
            return Token(kind, text, value, pos)
        return Token(TokenKind.IDENT, text, text, pos)
    if group == "string":
        return Token(TokenKind.STRING, text, unescape(text[1:-1]), pos)
    if group == "path":
        return Token(TokenKind.PATH, text, text.rstrip(), pos)
    if group == "marker":
        return Token(_MARKERS[text], text, None, pos)
    return Token(_PUNCTUATION[text], text, None, pos)


def _check_gap(source: str, start: int, end: int) -> None:
    """Reject non-whitespace text between two tokens."""
    for offset in range(start, end):
        if not source[offset].isspace():
            raise UnexpectedCharacter(
                source[offset], offset, snippet=source[max(0, offset - 10) : offset + 10]
            )


def iter_tokens(source: str, strict: bool = False) -> Iterator[Token]:
    """Lazily yield the tokens of ``source`` in scan order.

    Args:
        source: Complete evaluator output.
        strict: Raise ``UnexpectedCharacter`` for skipped non-whitespace text
            instead of dropping it.
    """
    last_end = 0
    for match in _TOKEN_RE.finditer(source):
        if strict:
            _check_gap(source, last_end, match.start())
        last_end = match.end()
        yield _make_token(match)
    if strict:
        _check_gap(source, last_end, len(source))


def tokenize(source: str, strict: bool = False) -> list[Token]:
    """Tokenize evaluator output into a list of tokens."""
    return list(iter_tokens(source, strict=strict))


class TokenStream:
    """Token cursor with one token of lookahead."""

    _EMPTY = object()

    def __init__(self, source: str, strict: bool = False) -> None:
        self._tokens = iter_tokens(source, strict=strict)
        self._lookahead: Token | None | object = self._EMPTY

    def peek(self) -> Token | None:
        """Return the next token without consuming it, or None at the end."""
        if self._lookahead is self._EMPTY:
            self._lookahead = next(self._tokens, None)
        return self._lookahead  # type: ignore[return-value]

    def next(self) -> Token | None:
        """Consume and return the next token, or None at the end."""
        tok = self.peek()
        self._lookahead = self._EMPTY
        return tok

    def __iter__(self) -> Iterator[Token]:
        while (tok := self.next()) is not None:
            yield tok
