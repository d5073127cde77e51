"""
Directive-aware view over a raw token stream.

The scanner hands tokens through unchanged. On top of that it reports which
tokens are directive markers: `#if`, `#elif`, `#else` or `#end` appearing as
the first token of a source line. The test is purely positional; a line that
starts with `#elif` is always a directive, whatever surrounds it.
"""

from __future__ import annotations
from typing import Iterable, Iterator, Optional

from .lexer import Token

IF = "#if"
ELIF = "#elif"
ELSE = "#else"
END = "#end"

DIRECTIVES = frozenset((IF, ELIF, ELSE, END))


class Scanner:
    """Single-pass cursor with one token of lookahead.

    Works on any iterable of tokens; an "EOF" token, if present, is handed
    through like any other token and marks the end of input.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._it: Iterator[Token] = iter(tokens)
        self._next: Optional[Token] = None
        self._next_bol = False
        self._last_line = 0  # line on which the last pulled token ends
        self._fill()

    def _fill(self) -> None:
        tok = next(self._it, None)
        self._next = tok
        if tok is None:
            self._next_bol = False
            return
        self._next_bol = tok.loc.line > self._last_line
        # a string literal may span lines; the next token is compared with its last line
        self._last_line = tok.loc.line + tok.lexeme.count("\n")

    # ---- token helpers ----

    def peek(self) -> Optional[Token]:
        return self._next

    def at_end(self) -> bool:
        return self._next is None

    def at_eof(self) -> bool:
        """True at end of input or in front of the trailing EOF token."""
        return self._next is None or self._next.kind == "EOF"

    def at_bol(self) -> bool:
        """True if the next token is the first token on its line."""
        return self._next_bol

    def advance(self) -> Token:
        tok = self._next
        assert tok is not None, "advance() past end of token stream"
        self._fill()
        return tok

    def directive(self) -> Optional[str]:
        """Directive keyword of the next token, or None if it is ordinary."""
        tok = self._next
        if tok is None or not self._next_bol:
            return None
        if tok.kind == "HASH_WORD" and tok.lexeme in DIRECTIVES:
            return tok.lexeme
        return None


def classify(tokens: Iterable[Token]) -> Iterator[tuple]:
    """Yield (token, directive-or-None) pairs for a token stream."""
    sc = Scanner(tokens)
    while not sc.at_end():
        d = sc.directive()
        yield sc.advance(), d
