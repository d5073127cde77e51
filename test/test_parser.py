import pytest

from condcomp.errors import DirectiveSyntaxError
from condcomp.lexer import tokenize
from condcomp.parser import (
    ParseError, parse_condition, unescape,
    AInt, AFloat, AString, ABool, AVar,
    CAnd, COr, CCompare, CDefined, CUndefined,
)
from condcomp.scanner import Scanner


def parse(header):
    """Parse `#if <header>` and return (condition, scanner after the header)."""
    sc = Scanner(tokenize("#if " + header))
    kw = sc.advance()
    return parse_condition(sc, kw), sc


def cond(header):
    return parse(header)[0]


def test_comparison_with_then():
    c, sc = parse('OS_TYPE = "Unix" then\nbody')
    assert isinstance(c, CCompare)
    assert c.op == "="
    assert isinstance(c.lhs, AVar) and c.lhs.name == "OS_TYPE"
    assert isinstance(c.rhs, AString) and c.rhs.value == "Unix"
    assert sc.peek().lexeme == "body"


def test_header_may_end_at_end_of_line():
    c, sc = parse("WORD_SIZE >= 64\nbody")
    assert c.op == ">="
    assert isinstance(c.rhs, AInt) and c.rhs.value == 64
    assert sc.peek().lexeme == "body"


@pytest.mark.parametrize("op", ["=", "<>", "<", ">", "<=", ">=", "=~"])
def test_all_operators(op):
    assert cond(f'A {op} "1.0.0" then').op == op


def test_literals():
    c = cond("1.5 < -2.5 then")
    assert isinstance(c.lhs, AFloat) and c.lhs.value == 1.5
    assert isinstance(c.rhs, AFloat) and c.rhs.value == -2.5
    c = cond("0x10 = -3 then")
    assert c.lhs.value == 16 and c.rhs.value == -3
    c = cond("true <> false then")
    assert isinstance(c.lhs, ABool) and c.lhs.value is True
    assert isinstance(c.rhs, ABool) and c.rhs.value is False


def test_bare_atom_is_compared_with_true():
    c = cond("BS then")
    assert isinstance(c, CCompare) and c.op == "="
    assert isinstance(c.lhs, AVar) and c.lhs.name == "BS"
    assert isinstance(c.rhs, ABool) and c.rhs.value is True


def test_defined_and_undefined():
    c = cond("defined FOO && undefined BAR then")
    assert isinstance(c, CAnd)
    assert isinstance(c.lhs, CDefined) and c.lhs.name == "FOO"
    assert isinstance(c.rhs, CUndefined) and c.rhs.name == "BAR"


def test_and_binds_tighter_than_or():
    c = cond("A || B && C then")
    assert isinstance(c, COr)
    assert isinstance(c.rhs, CAnd)
    c = cond("A && B || C then")
    assert isinstance(c, COr)
    assert isinstance(c.lhs, CAnd)


def test_left_associative():
    c = cond("A || B || C then")
    assert isinstance(c, COr) and isinstance(c.lhs, COr)
    assert c.rhs.lhs.name == "C"


def test_parentheses_group():
    c = cond("(A || B) && C then")
    assert isinstance(c, CAnd) and isinstance(c.lhs, COr)


def test_missing_then():
    with pytest.raises(ParseError, match="expected 'then'"):
        cond("A = 1 B")


def test_missing_condition():
    with pytest.raises(DirectiveSyntaxError, match="expected condition"):
        cond("\nbody")


def test_missing_right_operand_at_end_of_line():
    with pytest.raises(DirectiveSyntaxError) as exc:
        cond("A =\n1")
    assert exc.value.loc.line == 2


def test_unexpected_token_location():
    with pytest.raises(ParseError) as exc:
        cond("A = ( then")
    assert exc.value.loc.line == 1 and exc.value.loc.col == 9
    assert str(exc.value).startswith("<input>:1:9: syntax error:")


def test_defined_needs_a_name():
    with pytest.raises(ParseError, match="expected variable name after 'defined'"):
        cond("defined 1 then")


def test_unclosed_parenthesis():
    with pytest.raises(ParseError, match="expected '\\)'"):
        cond("(A && B then")


def test_detached_minus_is_not_a_literal():
    with pytest.raises(ParseError, match="expected number after '-'"):
        cond("A = - 1 then")


def test_unescape():
    assert unescape('"a\\tb\\"c"') == 'a\tb"c'


@pytest.mark.parametrize("raw,expected", [
    (r'"\065\x42\o103"', "ABC"),
    (r'"\u{e9}"', "é"),
    ('"ab\\\n   cd"', "abcd"),
    (r'"\\065"', "\\065"),
])
def test_unescape_numeric_and_continuation(raw, expected):
    assert unescape(raw) == expected


def test_trailing_dot_float_literal():
    c = cond("X = 1. then")
    assert isinstance(c.rhs, AFloat) and c.rhs.value == 1.0
