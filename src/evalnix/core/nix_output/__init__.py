"""
Reader for ``nix-instantiate --eval`` output.

Tokenizer and recursive descent parser turning the evaluator's printed
value into the IR in ``evalnix.core.ir``.

Usage:
    from evalnix.core.nix_output import parse_nix_instantiate

    value = parse_nix_instantiate("{ x = 1; y = [ true <CODE> ]; }")
"""

from evalnix.core.nix_output.parser import parse_nix_instantiate
from evalnix.core.nix_output.tokenizer import Token, TokenKind, TokenStream, tokenize

__all__ = ["Token", "TokenKind", "TokenStream", "parse_nix_instantiate", "tokenize"]
