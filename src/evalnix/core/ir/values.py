"""
Value types parsed from ``nix-instantiate --eval`` output.

This is the subset of Nix values the evaluator can print: primitives,
lists, attribute sets, plus opaque markers for functions and for values
the evaluator declined to force. Derivations get their own placeholder
type holding the path of the ``.drv`` file.

Supports:
- Primitives: null, true/false, integers, strings, paths
- Containers: [ ... ] lists, { name = value; ... } sets
- Markers: <CODE>/<CYCLE> (unevaluated), <LAMBDA>/<PRIMOP> (function)
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Key used to tag values that have no JSON counterpart.
SENTINEL_KEY = "__nix__"

# Characters escaped when rendering a string literal; "${" is handled separately.
_STRING_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"})


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


class NullValue(BaseModel):
    """The singleton null value."""

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "null"


class BoolValue(BaseModel):
    """Boolean values (true/false)."""

    value: bool

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "true" if self.value else "false"


class NumberValue(BaseModel):
    """Integers, limited to the signed 64-bit range Nix uses."""

    value: int = Field(ge=INT64_MIN, le=INT64_MAX)

    model_config = ConfigDict(frozen=True, strict=True)

    def __str__(self) -> str:
        return str(self.value)


class StringValue(BaseModel):
    """Strings, with escapes already decoded."""

    value: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        escaped = self.value.translate(_STRING_ESCAPES).replace("${", "\\${")
        return f'"{escaped}"'


class PathValue(BaseModel):
    """An absolute filesystem path literal."""

    value: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Opaque values
# ---------------------------------------------------------------------------


class FunctionValue(BaseModel):
    """A function (lambda or primop), which we do not inspect further."""

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "<LAMBDA>"


class UnevaluatedValue(BaseModel):
    """
    Code which is not yet evaluated.

    Nix prints this for thunks it did not force and for circular references,
    which avoids evaluating large or infinite structures.
    """

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "<CODE>"


class DerivationValue(BaseModel):
    """
    A derivation, which Nix prints as a set but we represent specially.

    For now this only records the path to the ``.drv`` file.
    """

    drv_path: str = Field(description="Store path of the .drv file")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"«derivation {self.drv_path}»"


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


class ListValue(BaseModel):
    """Lists of values, in output order."""

    items: list[Value] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "[ " + "".join(f"{item} " for item in self.items) + "]"

    def __len__(self) -> int:
        return len(self.items)


class MapValue(BaseModel):
    """Attribute sets: mappings from names to values, keys unique."""

    entries: dict[str, Value] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "{ " + "".join(f"{k} = {v}; " for k, v in self.entries.items()) + "}"

    def __getitem__(self, key: str) -> Value:
        return self.entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Value = (
    NullValue
    | BoolValue
    | NumberValue
    | StringValue
    | PathValue
    | FunctionValue
    | UnevaluatedValue
    | DerivationValue
    | ListValue
    | MapValue
)

# Rebuild models for recursive forward references
ListValue.model_rebuild()
MapValue.model_rebuild()


def to_plain(value: Value) -> Any:
    """Convert a value tree into JSON-serializable data.

    Lists and sets map onto arrays and objects, primitives onto their JSON
    counterparts. Functions, unevaluated code and derivations become objects
    tagged with ``"__nix__"`` so they stay distinguishable from plain sets.
    """
    match value:
        case NullValue():
            return None
        case BoolValue(value=b):
            return b
        case NumberValue(value=n):
            return n
        case StringValue(value=s) | PathValue(value=s):
            return s
        case FunctionValue():
            return {SENTINEL_KEY: "function"}
        case UnevaluatedValue():
            return {SENTINEL_KEY: "unevaluated"}
        case DerivationValue(drv_path=drv_path):
            return {SENTINEL_KEY: "derivation", "drvPath": drv_path}
        case ListValue(items=items):
            return [to_plain(item) for item in items]
        case MapValue(entries=entries):
            return {key: to_plain(item) for key, item in entries.items()}
    raise TypeError(f"Not a Nix value: {value!r}")
