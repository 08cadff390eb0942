"""
Recursive descent parser for ``nix-instantiate --eval`` output.

Grammar:
    value   → NULL | BOOL | NUMBER | STRING | PATH
            | UNEVALUATED | FUNCTION | list | set
    list    → "[" value* "]"
    set     → "{" (IDENT "=" value ";")* "}"

A parse consumes tokens until exactly one value is complete. Anything left
over is ignored unless ``strict`` is set.
"""

from __future__ import annotations

from evalnix.core.environment import load_settings
from evalnix.core.errors import (
    DuplicateKey,
    NestingTooDeep,
    NumberOutOfRange,
    UnexpectedEndOfInput,
    UnexpectedToken,
)
from evalnix.core.ir.values import (
    INT64_MAX,
    INT64_MIN,
    BoolValue,
    DerivationValue,
    FunctionValue,
    ListValue,
    MapValue,
    NullValue,
    NumberValue,
    PathValue,
    StringValue,
    UnevaluatedValue,
    Value,
)
from evalnix.core.nix_output.tokenizer import Token, TokenKind, TokenStream


class _Parser:
    """Recursive descent parser over a token stream."""

    def __init__(
        self,
        tokens: TokenStream,
        *,
        strict: bool,
        max_depth: int,
        derivations: bool,
    ) -> None:
        self.tokens = tokens
        self.strict = strict
        self.max_depth = max_depth
        self.derivations = derivations
        self.depth = 0
        self.opener_pos = 0

    def advance(self, expected: str = "a value") -> Token:
        tok = self.tokens.next()
        if tok is None:
            raise UnexpectedEndOfInput(expected)
        return tok

    def peek(self, expected: str) -> Token:
        tok = self.tokens.peek()
        if tok is None:
            raise UnexpectedEndOfInput(expected)
        return tok

    def expect(self, kind: TokenKind, expected: str) -> Token:
        tok = self.advance(expected)
        if tok.kind != kind:
            raise UnexpectedToken(tok, expected)
        return tok

    # -- Grammar rules --

    def parse_value(self) -> Value:
        tok = self.advance()
        match tok.kind:
            case TokenKind.NULL:
                return NullValue()
            case TokenKind.BOOL:
                return BoolValue(value=tok.value)
            case TokenKind.NUMBER:
                if not INT64_MIN <= tok.value <= INT64_MAX:
                    raise NumberOutOfRange(tok)
                return NumberValue(value=tok.value)
            case TokenKind.STRING:
                return StringValue(value=tok.value)
            case TokenKind.PATH:
                return PathValue(value=tok.value)
            case TokenKind.UNEVALUATED:
                return UnevaluatedValue()
            case TokenKind.FUNCTION:
                return FunctionValue()
            case TokenKind.LBRACKET:
                return self.parse_list(tok)
            case TokenKind.LCURLY:
                return self.parse_set(tok)
        raise UnexpectedToken(tok, "a value")

    def enter(self, opener: Token) -> None:
        if self.depth >= self.max_depth:
            raise NestingTooDeep(self.max_depth, opener.pos)
        self.depth += 1
        self.opener_pos = opener.pos

    def parse_list(self, opener: Token) -> ListValue:
        """value* "]" (the opening bracket is already consumed)"""
        self.enter(opener)
        items: list[Value] = []
        while self.peek("']'").kind != TokenKind.RBRACKET:
            items.append(self.parse_value())
        self.advance()
        self.depth -= 1
        return ListValue(items=items)

    def parse_set(self, opener: Token) -> Value:
        """(IDENT "=" value ";")* "}" (the opening brace is already consumed)"""
        self.enter(opener)
        entries: dict[str, Value] = {}
        while self.peek("an attribute name or '}'").kind != TokenKind.RCURLY:
            name = self.expect(TokenKind.IDENT, "an attribute name or '}'")
            self.expect(TokenKind.EQUALS, "'='")
            value = self.parse_value()
            self.expect(TokenKind.SEMICOLON, "';'")
            if self.strict and name.text in entries:
                raise DuplicateKey(name.text, name.pos)
            entries[name.text] = value
        self.advance()
        self.depth -= 1

        if self.derivations:
            drv = _as_derivation(entries)
            if drv is not None:
                return drv
        return MapValue(entries=entries)


def _as_derivation(entries: dict[str, Value]) -> DerivationValue | None:
    """Collapse a set carrying ``type = "derivation"`` and a known drvPath."""
    if entries.get("type") != StringValue(value="derivation"):
        return None
    match entries.get("drvPath"):
        case StringValue(value=drv_path) | PathValue(value=drv_path):
            return DerivationValue(drv_path=drv_path)
    return None


def parse_nix_instantiate(
    output: str,
    *,
    strict: bool | None = None,
    max_depth: int | None = None,
    derivations: bool = True,
) -> Value:
    """Parse the output of ``nix-instantiate --eval`` into a value.

    Args:
        output: Complete stdout of the evaluator.
        strict: Reject stray characters, duplicate keys and trailing tokens.
            Defaults to the ``EVAL_NIX_STRICT`` setting.
        max_depth: Maximum nesting of lists and sets. Defaults to the
            ``EVAL_NIX_MAX_DEPTH`` setting.
        derivations: Collapse derivation-shaped sets into ``DerivationValue``.

    Returns:
        The first complete value in the output.

    Raises:
        ParseError: If the output does not contain a well-formed value.
    """
    if strict is None or max_depth is None:
        settings = load_settings()
        strict = settings.strict if strict is None else strict
        max_depth = settings.max_depth if max_depth is None else max_depth

    tokens = TokenStream(output, strict=strict)
    parser = _Parser(tokens, strict=strict, max_depth=max_depth, derivations=derivations)
    try:
        value = parser.parse_value()
    except RecursionError:
        # max_depth is set beyond what the interpreter stack holds
        raise NestingTooDeep(parser.depth, parser.opener_pos) from None

    if strict:
        trailing = tokens.peek()
        if trailing is not None:
            raise UnexpectedToken(trailing, "end of input")

    return value
