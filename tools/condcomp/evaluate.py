from __future__ import annotations
from typing import Tuple

from .env import Env, Value, BOOL, INT, FLOAT, STRING
from .errors import DirectiveNameError, DirectiveTypeError
from .parser import (
    Atom, AInt, AFloat, AString, ABool, AVar,
    Cond, CAnd, COr, CCompare, CDefined, CUndefined,
)
from .versions import satisfies


def atom_value(atom: Atom, env: Env) -> Value:
    """Typed value of an atom. Variables are looked up here, not at parse time."""
    if isinstance(atom, AInt):
        return Value(INT, atom.value, str(atom.value))
    if isinstance(atom, AFloat):
        return Value(FLOAT, atom.value, repr(atom.value))
    if isinstance(atom, AString):
        return Value(STRING, atom.value, atom.value)
    if isinstance(atom, ABool):
        return Value(BOOL, atom.value, "true" if atom.value else "false")
    if isinstance(atom, AVar):
        v = env.lookup(atom.name)
        if v is None:
            raise DirectiveNameError(atom.loc, atom.name)
        return v
    raise AssertionError(f"unknown atom {atom!r}")


def check_operands(c: CCompare, lhs: Value, rhs: Value) -> None:
    if c.op == "=~":
        if lhs.ty != STRING or rhs.ty != STRING:
            raise DirectiveTypeError(
                c.loc,
                f"operator '=~' expects string operands, got {lhs.ty} and {rhs.ty}",
                lhs.ty, rhs.ty, c.op)
        return
    if lhs.ty != rhs.ty:
        raise DirectiveTypeError(
            c.loc,
            f"cannot compare {lhs.ty} with {rhs.ty} using '{c.op}'",
            lhs.ty, rhs.ty, c.op)


def _compare(op: str, a, b) -> bool:
    if op == "=":
        return a == b
    if op == "<>":
        return a != b
    if op == "<":
        return a < b
    if op == ">":
        return a > b
    if op == "<=":
        return a <= b
    if op == ">=":
        return a >= b
    raise AssertionError(f"unhandled comparison {op!r}")


def compare_values(c: CCompare, env: Env) -> Tuple[Value, Value]:
    lhs = atom_value(c.lhs, env)
    rhs = atom_value(c.rhs, env)
    check_operands(c, lhs, rhs)
    return lhs, rhs


def evaluate(cond: Cond, env: Env) -> bool:
    """Reduce a condition to a bool.

    `&&` and `||` short-circuit, so `defined X && X = "v"` never looks X up
    when it is unbound.
    """
    if isinstance(cond, CAnd):
        if not evaluate(cond.lhs, env):
            return False
        return evaluate(cond.rhs, env)

    if isinstance(cond, COr):
        if evaluate(cond.lhs, env):
            return True
        return evaluate(cond.rhs, env)

    if isinstance(cond, CDefined):
        return cond.name in env

    if isinstance(cond, CUndefined):
        return cond.name not in env

    if isinstance(cond, CCompare):
        lhs, rhs = compare_values(cond, env)
        if cond.op == "=~":
            return satisfies(lhs.value, rhs.value, cond.loc)
        # natural order of the shared type (False < True for bool)
        return _compare(cond.op, lhs.value, rhs.value)

    raise AssertionError(f"unknown condition {cond!r}")
