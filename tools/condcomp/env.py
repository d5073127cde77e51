"""
Variable environment for conditional compilation.

Bindings are name -> raw string. The type of a binding is derived from its
text, in this order:

    "true" / "false"        bool
    integer literal         int
    float literal           float
    anything else           string

An Env is built once per run (built-ins, then custom overrides on top) and is
never mutated afterwards; independent runs share no state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Tuple
import re
import struct
import sys

BOOL = "bool"
INT = "int"
FLOAT = "float"
STRING = "string"

COMPILER_VERSION = "0.3.0"
OCAML_VERSION = "4.06.1"
OCAML_PATCH = "BS"

_INT_RE = re.compile(r"[+-]?(0[xX][0-9a-fA-F][0-9a-fA-F_]*|0[oO][0-7][0-7_]*|0[bB][01][01_]*|[0-9][0-9_]*)")
_FLOAT_RE = re.compile(r"[+-]?[0-9][0-9_]*(\.[0-9_]*)?([eE][+-]?[0-9][0-9_]*)?")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_']*")


@dataclass(frozen=True)
class Value:
    ty: str       # BOOL, INT, FLOAT or STRING
    value: object
    raw: str


def parse_int_literal(text: str) -> int:
    """OCaml-style integer text: optional sign, 0x/0o/0b prefix, '_' separators."""
    s = text.replace("_", "")
    sign = 1
    if s[:1] in ("+", "-"):
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    base = 10
    if s[:2].lower() in ("0x", "0o", "0b"):
        base = {"x": 16, "o": 8, "b": 2}[s[1].lower()]
        s = s[2:]
    return sign * int(s, base)


def coerce(raw: str) -> Value:
    """Type a raw binding value."""
    if raw == "true" or raw == "false":
        return Value(BOOL, raw == "true", raw)
    if _INT_RE.fullmatch(raw):
        return Value(INT, parse_int_literal(raw), raw)
    if _FLOAT_RE.fullmatch(raw):
        return Value(FLOAT, float(raw.replace("_", "")), raw)
    return Value(STRING, raw, raw)


def is_valid_name(name: str) -> bool:
    return _NAME_RE.fullmatch(name) is not None


def _os_type() -> str:
    if sys.platform == "win32":
        return "Win32"
    if sys.platform == "cygwin":
        return "Cygwin"
    return "Unix"


def builtin_variables() -> Dict[str, str]:
    """Built-in bindings describing the compiler and the host platform."""
    return {
        "BS": "true",
        "BS_VERSION": COMPILER_VERSION,
        "OCAML_VERSION": OCAML_VERSION,
        "OCAML_PATCH": OCAML_PATCH,
        "OS_TYPE": _os_type(),
        "WORD_SIZE": str(struct.calcsize("P") * 8),
        "BIG_ENDIAN": "true" if sys.byteorder == "big" else "false",
    }


class Env:
    """Read-only typed view of the conditional variables."""

    def __init__(self, bindings: Mapping[str, str]):
        self._raw: Dict[str, str] = dict(bindings)
        self._typed: Dict[str, Value] = {name: coerce(raw) for name, raw in self._raw.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._raw

    def __len__(self) -> int:
        return len(self._raw)

    def __iter__(self) -> Iterator[str]:
        return iter(self._raw)

    def raw(self, name: str) -> Optional[str]:
        return self._raw.get(name)

    def lookup(self, name: str) -> Optional[Value]:
        return self._typed.get(name)

    def type_of(self, name: str) -> Optional[str]:
        v = self._typed.get(name)
        return v.ty if v is not None else None


def build_env(custom: Optional[Mapping[str, str]] = None,
              builtins: Optional[Mapping[str, str]] = None) -> Env:
    """Built-ins first, then custom bindings; custom ones win on a name clash."""
    bindings: Dict[str, str] = dict(builtin_variables() if builtins is None else builtins)
    if custom:
        for name, raw in custom.items():
            if not is_valid_name(name):
                raise ValueError(f"invalid conditional variable name {name!r}")
            bindings[name] = raw
    return Env(bindings)


def parse_define(text: str) -> Tuple[str, str]:
    """NAME=VALUE -> (NAME, VALUE); a bare NAME means NAME=true."""
    name, sep, raw = text.partition("=")
    name = name.strip()
    if not is_valid_name(name):
        raise ValueError(f"invalid define {text!r}: expected NAME or NAME=VALUE")
    if not sep:
        raw = "true"
    return name, raw


def list_variables(env: Env) -> List[Tuple[str, str, str]]:
    """(name, raw value, type) for every binding, sorted by name."""
    return [(name, env.raw(name), env.type_of(name)) for name in sorted(env)]


def format_variables(env: Env) -> str:
    rows = list_variables(env)
    if not rows:
        return ""
    width = max(len(name) for name, _, _ in rows)
    return "\n".join(f"{name.ljust(width)} = {raw} : {ty}" for name, raw, ty in rows) + "\n"
