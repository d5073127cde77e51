"""
Errors raised by the conditional-compilation stage.

Every error is fatal to the current run and carries the source location of
the offending token. The host decides how to report them.
"""

from __future__ import annotations
from typing import Optional


class PreprocessError(Exception):
    kind = "preprocessor"

    def __init__(self, loc, msg: str):
        self.loc = loc
        self.msg = msg
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.loc is None:
            return f"{self.kind} error: {self.msg}"
        return f"{self.loc.at()}: {self.kind} error: {self.msg}"


class DirectiveSyntaxError(PreprocessError):
    kind = "syntax"


class DirectiveTypeError(PreprocessError):
    kind = "type"

    def __init__(self, loc, msg: str, lhs_ty: Optional[str] = None,
                 rhs_ty: Optional[str] = None, op: Optional[str] = None):
        self.lhs_ty = lhs_ty
        self.rhs_ty = rhs_ty
        self.op = op
        super().__init__(loc, msg)


class DirectiveNameError(PreprocessError):
    kind = "name"

    def __init__(self, loc, name: str):
        self.name = name
        super().__init__(loc, f"unbound conditional variable '{name}'")


class VersionFormatError(PreprocessError):
    kind = "format"

    def __init__(self, loc, text: str, msg: Optional[str] = None):
        self.text = text
        super().__init__(loc, msg or f"illegal semantic version {text!r}")
