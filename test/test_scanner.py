from condcomp.lexer import tokenize
from condcomp.scanner import Scanner, classify


def directives(src):
    return [(tok.lexeme, d) for tok, d in classify(tokenize(src)) if tok.kind == "HASH_WORD"]


def test_tokens_pass_through_unchanged():
    toks = tokenize("let x = 1\nlet y = 2\n")
    assert [tok for tok, _ in classify(toks)] == toks


def test_directive_only_at_beginning_of_line():
    src = "#if A then\nx #if y\n  #else\n#end z #end\n"
    assert directives(src) == [
        ("#if", "#if"),
        ("#if", None),
        ("#else", "#else"),
        ("#end", "#end"),
        ("#end", None),
    ]


def test_elif_at_line_start_is_always_a_directive():
    assert directives("let a = 1\n#elif\n") == [("#elif", "#elif")]


def test_other_hash_words_are_not_directives():
    assert directives("#load\n#If\n#endif\n") == [
        ("#load", None), ("#If", None), ("#endif", None)]


def test_first_token_of_input_is_at_bol():
    sc = Scanner(tokenize("#end"))
    assert sc.at_bol()
    assert sc.directive() == "#end"


def test_comment_before_token_does_not_hide_bol():
    assert directives("x\n(* note *) #else\n") == [("#else", "#else")]


def test_cursor():
    sc = Scanner(tokenize("a b"))
    assert sc.peek().lexeme == "a"
    assert sc.advance().lexeme == "a"
    assert not sc.at_bol()
    sc.advance()
    assert sc.at_eof() and not sc.at_end()
    assert sc.advance().kind == "EOF"
    assert sc.at_end() and sc.peek() is None


def test_works_on_plain_iterables_without_eof():
    toks = [t for t in tokenize("a\nb") if t.kind != "EOF"]
    sc = Scanner(iter(toks))
    sc.advance()
    assert sc.at_bol()
    sc.advance()
    assert sc.at_end() and sc.at_eof()


def test_token_after_multiline_string_is_not_at_bol():
    assert directives('let s = "a\nb" #elif\n#else\n') == [("#elif", None), ("#else", "#else")]
