"""
eval-nix intermediate representation.

Values printed by the Nix evaluator, as frozen pydantic models.
"""

from .values import (
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
    to_plain,
)

__all__ = [
    "Value",
    "NullValue",
    "BoolValue",
    "NumberValue",
    "StringValue",
    "PathValue",
    "FunctionValue",
    "UnevaluatedValue",
    "DerivationValue",
    "ListValue",
    "MapValue",
    "to_plain",
]
