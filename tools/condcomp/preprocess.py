"""
Conditional compilation over a token stream.

Runs between the lexer and the parser. Directive lines select which tokens
reach the parser; nothing else is touched.

Directives (each must be the first token on its line):
    #if COND [then]       Keep the following tokens if COND holds
    #elif COND [then]     Else-if branch
    #else                 Else branch
    #end                  End conditional block

COND is a comparison (`=`, `<>`, `<`, `>`, `<=`, `>=`, `=~`), `defined NAME`,
`undefined NAME`, or a boolean atom, combined with `&&` / `||` and
parentheses. The first branch whose condition holds wins; conditions after it
are never evaluated.

Tokens of taken branches come out unchanged; directive tokens and tokens of
other branches are dropped.
"""

from __future__ import annotations
from typing import Iterable, Iterator, List, Mapping, Optional

from .env import Env, build_env
from .errors import DirectiveSyntaxError
from .evaluate import evaluate
from .lexer import Token, Lexer
from .parser import parse_condition
from .scanner import Scanner, IF, ELIF, ELSE, END


class StreamFilter:
    """Lazy single pass over `tokens`; iterate it to get the kept tokens."""

    def __init__(self, tokens: Iterable[Token], env: Env):
        self.sc = Scanner(tokens)
        self.env = env

    def __iter__(self) -> Iterator[Token]:
        sc = self.sc
        while not sc.at_end():
            d = sc.directive()
            if d is None:
                yield sc.advance()
            elif d == IF:
                yield from self._block()
            else:
                tok = sc.advance()
                raise DirectiveSyntaxError(tok.loc, f"'{d}' without matching '#if'")

    # -------------------------
    # Blocks
    # -------------------------

    def _block(self) -> Iterator[Token]:
        sc = self.sc
        kw_if = sc.advance()
        taken = evaluate(parse_condition(sc, kw_if), self.env)
        if taken:
            yield from self._emit_body(kw_if)
        else:
            self._skip_body(kw_if)

        seen_else = False
        while True:
            d = sc.directive()
            tok = sc.advance()

            if d == ELIF:
                if seen_else:
                    raise DirectiveSyntaxError(tok.loc, "'#elif' after '#else'")
                # after a taken branch the header is skipped, not parsed
                if not taken:
                    taken = evaluate(parse_condition(sc, tok), self.env)
                    if taken:
                        yield from self._emit_body(kw_if)
                        continue
                self._skip_body(kw_if)

            elif d == ELSE:
                if seen_else:
                    raise DirectiveSyntaxError(tok.loc, "duplicate '#else'")
                seen_else = True
                if taken:
                    self._skip_body(kw_if)
                else:
                    taken = True
                    yield from self._emit_body(kw_if)

            else:  # END
                return

    def _emit_body(self, kw_if: Token) -> Iterator[Token]:
        """Forward tokens up to the next #elif/#else/#end of this block."""
        sc = self.sc
        while True:
            if sc.at_eof():
                raise _unterminated(kw_if)
            d = sc.directive()
            if d in (ELIF, ELSE, END):
                return
            if d == IF:
                yield from self._block()
                continue
            yield sc.advance()

    def _skip_body(self, kw_if: Token) -> None:
        """Drop tokens up to the next #elif/#else/#end of this block."""
        sc = self.sc
        depth = 0
        while True:
            if sc.at_eof():
                raise _unterminated(kw_if)
            d = sc.directive()
            if depth == 0 and d in (ELIF, ELSE, END):
                return
            if d == IF:
                depth += 1
            elif d == END:
                depth -= 1
            sc.advance()


def _unterminated(kw_if: Token) -> DirectiveSyntaxError:
    return DirectiveSyntaxError(kw_if.loc, "unterminated '#if' block (missing '#end')")


def filter_tokens(tokens: Iterable[Token], env: Env) -> Iterator[Token]:
    return iter(StreamFilter(tokens, env))


def preprocess(source: str, file: str = "<input>",
               defines: Optional[Mapping[str, str]] = None,
               builtins: Optional[Mapping[str, str]] = None) -> List[Token]:
    """Lex `source` and return the tokens that survive conditional compilation."""
    env = build_env(defines, builtins)
    toks = Lexer(source, file=file).tokenize()
    return list(filter_tokens(toks, env))


def unparse(tokens: Iterable[Token]) -> str:
    """Lay tokens back out at their original line and column.

    Dropped lines come out blank, so surviving tokens keep their line numbers.
    Comments are not tokens and do not survive.
    """
    out: List[str] = []
    line, col = 1, 1
    for tok in tokens:
        if tok.kind == "EOF":
            break
        if tok.loc.line > line:
            out.append("\n" * (tok.loc.line - line))
            line, col = tok.loc.line, 1
        if tok.loc.col > col:
            out.append(" " * (tok.loc.col - col))
            col = tok.loc.col
        elif col > 1:
            out.append(" ")
            col += 1
        out.append(tok.lexeme)
        if "\n" in tok.lexeme:
            line += tok.lexeme.count("\n")
            col = len(tok.lexeme) - tok.lexeme.rfind("\n")
        else:
            col += len(tok.lexeme)
    if out:
        out.append("\n")
    return "".join(out)
