from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
import re

from .errors import PreprocessError


@dataclass(frozen=True)
class SrcLoc:
    file: str
    index: int   # 0-based absolute index
    line: int    # 1-based
    col: int     # 1-based
    length: int  # token length

    def at(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


@dataclass(frozen=True)
class Token:
    kind: str     # "IDENT", "INT", "FLOAT", "STRING", "HASH_WORD", "EOF", "KW_THEN", "<=", "=~", ...
    lexeme: str
    loc: SrcLoc

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.lexeme!r}, {self.loc.at()})"


class LexError(PreprocessError):
    kind = "lex"

    def __init__(self, loc: SrcLoc, msg: str, line_text: Optional[str] = None):
        self.line_text = line_text
        super().__init__(loc, msg)

    def __str__(self) -> str:
        s = super().__str__()
        if self.line_text is not None:
            caret = " " * max(0, self.loc.col - 1) + "^"
            s += "\n" + self.line_text.rstrip("\n") + "\n" + caret
        return s


# Words the condition grammar cares about. Elsewhere they pass through untouched.
KEYWORDS = {
    "then": "KW_THEN",
    "true": "KW_TRUE",
    "false": "KW_FALSE",
    "defined": "KW_DEFINED",
    "undefined": "KW_UNDEFINED",
}

# longest-first (max munch)
MULTI = [
    "=~", "<>", "<=", ">=", "==", "!=",
    "&&", "||", "->", "<-", ":=", "::", ";;", "|>", "@@",
]

SINGLE = set("()[]{},;:.=+-*/%<>&|^~!@?$\\`")

HEX_DIGITS = "0123456789abcdefABCDEF"

# 'x', '\n', '\065', '\x41', '\o101'
_CHAR_RE = re.compile(r"""'(?:\\(?:[\\"'ntbr ]|[0-9]{3}|x[0-9a-fA-F]{2}|o[0-3][0-7]{2})|[^\\'\n])'""")

def is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"

def is_ident_part(ch: str) -> bool:
    return ch.isalnum() or ch in ("_", "'")


class Lexer:
    def __init__(self, source: str, file: str = "<input>"):
        self.src = source
        self.file = file
        self.n = len(source)
        self.i = 0
        self.line = 1
        self.col = 1

        self._lines = source.splitlines(True)
        self._line_no = 1
        self._line_text = self._lines[0] if self._lines else ""

    def _peek(self, k: int = 0) -> str:
        j = self.i + k
        return self.src[j] if j < self.n else "\0"

    def _advance(self) -> str:
        ch = self._peek(0)
        if ch == "\0":
            return ch
        self.i += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
            self._line_no += 1
            self._line_text = self._lines[self._line_no - 1] if (self._line_no - 1) < len(self._lines) else ""
        else:
            self.col += 1
        return ch

    def _loc_from(self, start_i: int, start_line: int, start_col: int) -> SrcLoc:
        return SrcLoc(self.file, start_i, start_line, start_col, self.i - start_i)

    def _error_here(self, msg: str) -> None:
        loc = SrcLoc(self.file, self.i, self.line, self.col, 1)
        raise LexError(loc, msg, self._line_text)

    def _skip_spaces_and_comments(self) -> None:
        """Skips whitespace and (possibly nested) (* ... *) comments."""
        while True:
            ch = self._peek(0)

            if ch in (" ", "\t", "\r", "\n", "\f"):
                self._advance()
                continue

            if ch == "(" and self._peek(1) == "*" and self._peek(2) != ")":
                self._skip_comment()
                continue

            break

    def _skip_comment(self) -> None:
        start_i, start_line, start_col = self.i, self.line, self.col
        line_text = self._line_text
        depth = 0
        while True:
            ch = self._peek(0)
            if ch == "\0":
                raise LexError(self._loc_from(start_i, start_line, start_col), "unterminated comment", line_text)
            if ch == "(" and self._peek(1) == "*":
                self._advance(); self._advance()
                depth += 1
                continue
            if ch == "*" and self._peek(1) == ")":
                self._advance(); self._advance()
                depth -= 1
                if depth == 0:
                    return
                continue
            # "*)" inside a string or char literal does not close the comment
            if ch == '"':
                self._lex_string()
                continue
            if ch == "'" and _CHAR_RE.match(self.src, self.i):
                self._lex_quote()
                continue
            self._advance()

    def _lex_ident_or_kw(self) -> Token:
        start_i, start_line, start_col = self.i, self.line, self.col
        self._advance()
        while is_ident_part(self._peek(0)):
            self._advance()
        lex = self.src[start_i:self.i]
        kind = KEYWORDS.get(lex, "IDENT")
        return Token(kind, lex, self._loc_from(start_i, start_line, start_col))

    def _lex_hash_word(self) -> Token:
        # '#' glued to an identifier: #if, #elif, #else, #end, #load, ...
        start_i, start_line, start_col = self.i, self.line, self.col
        self._advance()  # '#'
        while is_ident_part(self._peek(0)):
            self._advance()
        lex = self.src[start_i:self.i]
        return Token("HASH_WORD", lex, self._loc_from(start_i, start_line, start_col))

    def _lex_number(self) -> Token:
        start_i, start_line, start_col = self.i, self.line, self.col

        # Hex / octal / binary literal: 0x.., 0o.., 0b..
        if self._peek(0) == "0" and self._peek(1) in ("x", "X", "o", "O", "b", "B"):
            digits = {
                "x": HEX_DIGITS,
                "o": "01234567",
                "b": "01",
            }[self._peek(1).lower()]
            self._advance()  # '0'
            self._advance()  # 'x' / 'o' / 'b'
            if not self._peek(0) in digits:
                self._error_here("expected digit after integer prefix")
            while self._peek(0) in digits + "_":
                self._advance()
            lex = self.src[start_i:self.i]
            return Token("INT", lex, self._loc_from(start_i, start_line, start_col))

        while self._peek(0).isdigit() or self._peek(0) == "_":
            self._advance()

        is_float = False

        # fraction: '.' then optional digits; "1." is a float, "1.x" and "1.." are not
        if self._peek(0) == "." and self._peek(1) != "." and not is_ident_start(self._peek(1)):
            is_float = True
            self._advance()
            while self._peek(0).isdigit() or self._peek(0) == "_":
                self._advance()

        # exponent part
        if self._peek(0) in ("e", "E"):
            j = 1
            if self._peek(j) in ("+", "-"):
                j += 1
            if not self._peek(j).isdigit():
                self._error_here("malformed float exponent")
            is_float = True
            self._advance()
            if self._peek(0) in ("+", "-"):
                self._advance()
            while self._peek(0).isdigit():
                self._advance()

        lex = self.src[start_i:self.i]
        kind = "FLOAT" if is_float else "INT"
        return Token(kind, lex, self._loc_from(start_i, start_line, start_col))

    def _lex_escape(self) -> None:
        """Consume one escape sequence; the backslash is the current char."""
        self._advance()  # '\'
        esc = self._peek(0)
        if esc in ("n", "t", "r", "b", "\\", '"', "'", " "):
            self._advance()
            return
        if esc.isdigit():
            # \ddd, decimal
            for _ in range(3):
                if not self._peek(0).isdigit():
                    self._error_here("expected three decimal digits in escape")
                self._advance()
            return
        if esc == "x":
            self._advance()
            for _ in range(2):
                if self._peek(0) not in HEX_DIGITS:
                    self._error_here("expected two hex digits after '\\x'")
                self._advance()
            return
        if esc == "o":
            self._advance()
            for digits in ("0123", "01234567", "01234567"):
                if self._peek(0) not in digits:
                    self._error_here("expected octal escape '\\o000'..'\\o377'")
                self._advance()
            return
        if esc == "u" and self._peek(1) == "{":
            self._advance(); self._advance()
            if self._peek(0) not in HEX_DIGITS:
                self._error_here("expected hex digits in '\\u{...}'")
            while self._peek(0) in HEX_DIGITS:
                self._advance()
            if self._peek(0) != "}":
                self._error_here("expected '}' to close '\\u{...}'")
            self._advance()
            return
        if esc == "\n" or (esc == "\r" and self._peek(1) == "\n"):
            # line continuation: newline and leading blanks are skipped
            if esc == "\r":
                self._advance()
            self._advance()
            while self._peek(0) in (" ", "\t"):
                self._advance()
            return
        self._error_here(f"unknown escape '\\{esc}'")

    def _lex_string(self) -> Token:
        """Lex a double-quoted string literal; it may span lines."""
        start_i, start_line, start_col = self.i, self.line, self.col
        line_text = self._line_text
        self._advance()  # consume opening quote

        while True:
            ch = self._peek(0)
            if ch == "\0":
                raise LexError(self._loc_from(start_i, start_line, start_col), "unterminated string literal", line_text)
            if ch == '"':
                self._advance()
                break
            if ch == "\\":
                self._lex_escape()
                continue
            self._advance()

        lex = self.src[start_i:self.i]
        return Token("STRING", lex, self._loc_from(start_i, start_line, start_col))

    def _lex_quote(self) -> Token:
        """Char literal 'x' / '\\n' / '\\065', or a lone quote (type variables like 'a)."""
        start_i, start_line, start_col = self.i, self.line, self.col
        m = _CHAR_RE.match(self.src, self.i)
        if m is not None:
            for _ in range(m.end() - m.start()):
                self._advance()
            lex = self.src[start_i:self.i]
            return Token("CHAR", lex, self._loc_from(start_i, start_line, start_col))
        self._advance()
        return Token("'", "'", self._loc_from(start_i, start_line, start_col))

    def _lex_op_or_punct(self) -> Token:
        start_i, start_line, start_col = self.i, self.line, self.col

        for op in MULTI:
            if self.src.startswith(op, self.i):
                for _ in op:
                    self._advance()
                return Token(op, op, self._loc_from(start_i, start_line, start_col))

        ch = self._peek(0)
        if ch in SINGLE or ch == "#":
            self._advance()
            return Token(ch, ch, self._loc_from(start_i, start_line, start_col))

        self._error_here(f"unexpected character {ch!r}")

    def tokenize(self) -> List[Token]:
        out: List[Token] = []
        while True:
            self._skip_spaces_and_comments()

            if self.i >= self.n:
                out.append(Token("EOF", "", SrcLoc(self.file, self.i, self.line, self.col, 0)))
                return out

            ch = self._peek(0)

            if is_ident_start(ch):
                out.append(self._lex_ident_or_kw())
                continue

            if ch.isdigit():
                out.append(self._lex_number())
                continue

            if ch == "#" and is_ident_start(self._peek(1)):
                out.append(self._lex_hash_word())
                continue

            if ch == '"':
                out.append(self._lex_string())
                continue

            if ch == "'":
                out.append(self._lex_quote())
                continue

            out.append(self._lex_op_or_punct())


def tokenize(source: str, file: str = "<input>") -> List[Token]:
    return Lexer(source, file=file).tokenize()
