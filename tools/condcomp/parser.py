from __future__ import annotations
from dataclasses import dataclass
import re

from .errors import DirectiveSyntaxError
from .env import parse_int_literal
from .lexer import Token, SrcLoc
from .scanner import Scanner


# -------------------------
# Errors
# -------------------------

def _got(tok: Token) -> str:
    if tok.kind == "EOF":
        return "end of input"
    return f"{tok.kind} {tok.lexeme!r}"


class ParseError(DirectiveSyntaxError):
    def __init__(self, tok: Token, msg: str):
        self.tok = tok
        super().__init__(tok.loc, f"{msg} (got {_got(tok)})")


# -------------------------
# Atoms
# -------------------------

@dataclass
class Atom:
    loc: SrcLoc

@dataclass
class AInt(Atom):
    value: int

@dataclass
class AFloat(Atom):
    value: float

@dataclass
class AString(Atom):
    value: str  # unescaped

@dataclass
class ABool(Atom):
    value: bool

@dataclass
class AVar(Atom):
    name: str  # resolved against the environment at evaluation time


# -------------------------
# Conditions
# -------------------------

@dataclass
class Cond:
    loc: SrcLoc

@dataclass
class CAnd(Cond):
    lhs: Cond
    rhs: Cond

@dataclass
class COr(Cond):
    lhs: Cond
    rhs: Cond

@dataclass
class CCompare(Cond):
    op: str  # "=", "<>", "<", ">", "<=", ">=", "=~"
    lhs: Atom
    rhs: Atom

@dataclass
class CDefined(Cond):
    name: str

@dataclass
class CUndefined(Cond):
    name: str


COMPARE_OPS = {"=", "<>", "<", ">", "<=", ">=", "=~"}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "\\": "\\", '"': '"', "'": "'", " ": " "}

_ESCAPE_RE = re.compile(
    r"\\(?:(?P<simple>[\\\"'ntbr ])|(?P<dec>[0-9]{3})|x(?P<hex>[0-9a-fA-F]{2})"
    r"|o(?P<oct>[0-7]{3})|u\{(?P<uni>[0-9a-fA-F]+)\}|(?P<cont>\r?\n[ \t]*))")

def _unescape_one(m) -> str:
    if m.group("simple") is not None:
        return _ESCAPES[m.group("simple")]
    if m.group("dec") is not None:
        return chr(int(m.group("dec")))
    if m.group("hex") is not None:
        return chr(int(m.group("hex"), 16))
    if m.group("oct") is not None:
        return chr(int(m.group("oct"), 8))
    if m.group("uni") is not None:
        return chr(int(m.group("uni"), 16))
    return ""  # line continuation

def unescape(raw: str) -> str:
    """"a\\tb\\065" (with quotes) -> a<TAB>bA"""
    return _ESCAPE_RE.sub(_unescape_one, raw[1:-1])

# -------------------------
# Parser
# -------------------------

class ConditionParser:
    """
    Recursive descent over the header of an #if/#elif directive.

        cond    := conj ('||' conj)*
        conj    := pred ('&&' pred)*
        pred    := '(' cond ')' | 'defined' IDENT | 'undefined' IDENT
                 | atom (op atom)?
        op      := '=' | '<>' | '<' | '>' | '<=' | '>=' | '=~'
        atom    := IDENT | ['-'] INT | ['-'] FLOAT | STRING | 'true' | 'false'

    The header ends at 'then', or at the end of the directive's line.
    """

    def __init__(self, scanner: Scanner, directive: Token):
        self.sc = scanner
        self.directive = directive
        self._eof = Token("EOF", "", directive.loc)

    # ---- token helpers ----

    def at_header_end(self) -> bool:
        return self.sc.at_eof() or self.sc.at_bol()

    def peek(self) -> Token:
        if self.at_header_end():
            tok = self.sc.peek()
            if tok is not None and tok.kind == "EOF":
                return tok
            return self._eof if tok is None else Token("NEWLINE", "\n", tok.loc)
        return self.sc.peek()

    def advance(self) -> Token:
        if self.at_header_end():
            raise ParseError(self.peek(), "unexpected end of directive")
        return self.sc.advance()

    def match(self, *kinds: str):
        if self.peek().kind in kinds:
            return self.advance()
        return None

    def expect(self, kind: str, msg: str) -> Token:
        t = self.peek()
        if t.kind != kind:
            raise ParseError(t, msg)
        return self.advance()

    # -------------------------
    # Entry point
    # -------------------------

    def parse_header(self) -> Cond:
        if self.at_header_end():
            raise ParseError(self.peek(), f"expected condition after '{self.directive.lexeme}'")
        cond = self.parse_or()
        if self.match("KW_THEN") is None and not self.at_header_end():
            raise ParseError(self.peek(), "expected 'then' after condition")
        return cond

    def parse_or(self) -> Cond:
        left = self.parse_and()
        while True:
            op = self.match("||")
            if op is None:
                return left
            right = self.parse_and()
            left = COr(loc=op.loc, lhs=left, rhs=right)

    def parse_and(self) -> Cond:
        left = self.parse_pred()
        while True:
            op = self.match("&&")
            if op is None:
                return left
            right = self.parse_pred()
            left = CAnd(loc=op.loc, lhs=left, rhs=right)

    def parse_pred(self) -> Cond:
        t = self.peek()

        if t.kind == "(":
            self.advance()
            inner = self.parse_or()
            self.expect(")", "expected ')' to close condition")
            return inner

        if t.kind in ("KW_DEFINED", "KW_UNDEFINED"):
            self.advance()
            name = self.expect("IDENT", f"expected variable name after '{t.lexeme}'")
            if t.kind == "KW_DEFINED":
                return CDefined(loc=t.loc, name=name.lexeme)
            return CUndefined(loc=t.loc, name=name.lexeme)

        lhs = self.parse_atom()
        op = self.peek()
        if op.kind in COMPARE_OPS:
            self.advance()
            rhs = self.parse_atom()
            return CCompare(loc=op.loc, op=op.kind, lhs=lhs, rhs=rhs)

        # bare atom: must turn out to be a boolean
        return CCompare(loc=lhs.loc, op="=", lhs=lhs, rhs=ABool(loc=lhs.loc, value=True))

    def parse_atom(self) -> Atom:
        t = self.peek()
        k = t.kind

        if k == "-":
            # negative literal: '-' glued to a number
            self.advance()
            num = self.peek()
            if num.kind not in ("INT", "FLOAT") or num.loc.index != t.loc.index + 1:
                raise ParseError(num, "expected number after '-'")
            atom = self.parse_atom()
            if isinstance(atom, AInt):
                return AInt(loc=t.loc, value=-atom.value)
            return AFloat(loc=t.loc, value=-atom.value)

        if k == "INT":
            self.advance()
            try:
                v = parse_int_literal(t.lexeme)
            except ValueError:
                raise ParseError(t, "invalid integer literal")
            return AInt(loc=t.loc, value=v)

        if k == "FLOAT":
            self.advance()
            try:
                v = float(t.lexeme.replace("_", ""))
            except ValueError:
                raise ParseError(t, "invalid float literal")
            return AFloat(loc=t.loc, value=v)

        if k == "STRING":
            self.advance()
            return AString(loc=t.loc, value=unescape(t.lexeme))

        if k == "KW_TRUE":
            self.advance()
            return ABool(loc=t.loc, value=True)

        if k == "KW_FALSE":
            self.advance()
            return ABool(loc=t.loc, value=False)

        if k == "IDENT":
            self.advance()
            return AVar(loc=t.loc, name=t.lexeme)

        raise ParseError(t, "expected variable or literal in condition")


def parse_condition(scanner: Scanner, directive: Token) -> Cond:
    """Parse the header following an already consumed #if/#elif token."""
    return ConditionParser(scanner, directive).parse_header()
