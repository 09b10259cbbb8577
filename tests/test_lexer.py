"""Tests for the token source."""

from diagnostics import DiagnosticSink
from lexer import Lexer, TokenType, tokenize


def types(code):
    return [t.type for t in tokenize(code)]


def test_keywords_and_identifiers():
    assert types("program int bool char if else while print true false foo") == [
        TokenType.PROGRAM, TokenType.INT, TokenType.BOOL, TokenType.CHAR,
        TokenType.IF, TokenType.ELSE, TokenType.WHILE, TokenType.PRINT,
        TokenType.TRUE, TokenType.FALSE, TokenType.ID, TokenType.EOF,
    ]


def test_reserved_words_are_keywords():
    assert types("proc const for read")[:-1] == [
        TokenType.PROC, TokenType.CONST, TokenType.FOR, TokenType.READ,
    ]


def test_two_char_operators_win():
    assert types("== != <= >= && || = < > !")[:-1] == [
        TokenType.EQEQ, TokenType.NEQ, TokenType.LE, TokenType.GE,
        TokenType.ANDAND, TokenType.OROR, TokenType.ASSIGN, TokenType.LT,
        TokenType.GT, TokenType.NOT,
    ]


def test_number_value():
    tok = tokenize("42")[0]
    assert tok.type is TokenType.NUM
    assert tok.value == 42
    assert tok.lexeme == "42"


def test_char_literals_and_escapes():
    toks = tokenize(r"'A' '\n' '\t' '\'' '\\' '\q'")
    assert [t.value for t in toks[:-1]] == ['A', '\n', '\t', "'", '\\', 'q']
    assert all(t.type is TokenType.CHAR_LIT for t in toks[:-1])


def test_positions_and_comments():
    toks = tokenize("program {\n  // a comment\n  int x;\n}")
    int_tok = toks[2]
    assert int_tok.type is TokenType.INT
    assert (int_tok.line, int_tok.column) == (3, 3)
    assert (toks[3].line, toks[3].column) == (3, 7)


def test_eof_is_idempotent():
    lex = Lexer("x")
    assert lex.next_token().type is TokenType.ID
    for _ in range(3):
        assert lex.next_token().type is TokenType.EOF


def test_unknown_character_becomes_error_token():
    sink = DiagnosticSink()
    toks = tokenize("x # y", sink)
    assert [t.type for t in toks] == [TokenType.ID, TokenType.ERROR, TokenType.ID, TokenType.EOF]
    assert sink.count('lexical') == 1
    assert sink.items[0].column == 3


def test_unterminated_char_literal():
    sink = DiagnosticSink()
    toks = tokenize("'A", sink)
    assert toks[0].type is TokenType.ERROR
    assert sink.count('lexical') == 1


def test_integer_out_of_range():
    sink = DiagnosticSink()
    toks = tokenize("2147483647 2147483648", sink)
    assert toks[0].type is TokenType.NUM
    assert toks[1].type is TokenType.ERROR
    assert "out of range" in sink.items[0].message


def test_lexer_without_sink_does_not_fail():
    assert types("@")[0] is TokenType.ERROR


def test_token_str_for_dump():
    assert str(tokenize("7")[0]) == "1:1  NUM         7  (value=7)"
