"""
lexer.py
Token source for the mini language: turns source text into tokens, one
`next_token()` call at a time. Lexical errors come back inline as ERROR
tokens (and are reported to the diagnostics sink when one is attached).
"""

import logging
import re
from collections import namedtuple
from enum import Enum

logger = logging.getLogger(__name__)

INT_MAX = 2**31 - 1


class TokenType(Enum):
    # keywords
    PROGRAM = 'program'
    PROC = 'proc'
    CONST = 'const'
    INT = 'int'
    BOOL = 'bool'
    CHAR = 'char'
    IF = 'if'
    ELSE = 'else'
    WHILE = 'while'
    FOR = 'for'
    PRINT = 'print'
    READ = 'read'
    TRUE = 'true'
    FALSE = 'false'
    # identifiers & literals
    ID = 'identifier'
    NUM = 'number'
    CHAR_LIT = 'char literal'
    # operators
    ASSIGN = '='
    PLUS = '+'
    MINUS = '-'
    STAR = '*'
    SLASH = '/'
    MOD = '%'
    EQEQ = '=='
    NEQ = '!='
    LT = '<'
    LE = '<='
    GT = '>'
    GE = '>='
    ANDAND = '&&'
    OROR = '||'
    NOT = '!'
    # punctuation
    LPAREN = '('
    RPAREN = ')'
    LBRACE = '{'
    RBRACE = '}'
    SEMI = ';'
    COMMA = ','
    # special
    EOF = 'end of input'
    ERROR = 'error'


KEYWORDS = {t.value: t for t in (
    TokenType.PROGRAM, TokenType.PROC, TokenType.CONST, TokenType.INT,
    TokenType.BOOL, TokenType.CHAR, TokenType.IF, TokenType.ELSE,
    TokenType.WHILE, TokenType.FOR, TokenType.PRINT, TokenType.READ,
    TokenType.TRUE, TokenType.FALSE,
)}

# two-char operators first so '==' never lexes as '=' '='
OPERATORS = {t.value: t for t in (
    TokenType.EQEQ, TokenType.NEQ, TokenType.LE, TokenType.GE,
    TokenType.ANDAND, TokenType.OROR,
    TokenType.ASSIGN, TokenType.PLUS, TokenType.MINUS, TokenType.STAR,
    TokenType.SLASH, TokenType.MOD, TokenType.LT, TokenType.GT, TokenType.NOT,
    TokenType.LPAREN, TokenType.RPAREN, TokenType.LBRACE, TokenType.RBRACE,
    TokenType.SEMI, TokenType.COMMA,
)}

ESCAPES = {'n': '\n', 't': '\t', "'": "'", '\\': '\\'}


class Token(namedtuple('Token', ['type', 'lexeme', 'value', 'line', 'column'])):
    __slots__ = ()

    def __str__(self):
        # one line of tokens.txt
        if self.value is not None:
            return f"{self.line}:{self.column}  {self.type.name:<10}  {self.lexeme}  (value={self.value!r})"
        return f"{self.line}:{self.column}  {self.type.name:<10}  {self.lexeme}"


class Lexer:
    token_specification = [
        ("NEWLINE",   r'\n'),
        ("SKIP",      r'[ \t\r\f\v]+'),
        ("COMMENT",   r'//[^\n]*'),
        ("NUMBER",    r'\d+'),
        ("ID",        r'[A-Za-z_]\w*'),
        ("CHAR",      r"'(?:\\[^\n]|[^'\\\n])'"),
        ("BADCHAR",   r"'(?:\\[^\n]?|[^'\\\n])?"),
        ("OP",        '|'.join(re.escape(op) for op in OPERATORS)),
        ("MISMATCH",  r'.'),
    ]
    tok_regex = '|'.join(f'(?P<{n}>{p})' for n, p in token_specification)
    master_re = re.compile(tok_regex)

    def __init__(self, code, diagnostics=None):
        self.code = code
        self.diagnostics = diagnostics
        self.pos = 0
        self.lineno = 1
        self.line_start = 0

    def next_token(self):
        while True:
            if self.pos >= len(self.code):
                return Token(TokenType.EOF, '<EOF>', None, self.lineno, self._column(self.pos))
            mo = self.master_re.match(self.code, self.pos)
            kind = mo.lastgroup
            val = mo.group()
            start = self.pos
            self.pos = mo.end()
            if kind == "NEWLINE":
                self.lineno += 1
                self.line_start = self.pos
                continue
            if kind in ("SKIP", "COMMENT"):
                continue
            return self._make_token(kind, val, self.lineno, self._column(start))

    def _column(self, pos):
        return pos - self.line_start + 1

    def _make_token(self, kind, val, line, col):
        if kind == "ID":
            return Token(KEYWORDS.get(val, TokenType.ID), val, None, line, col)
        if kind == "NUMBER":
            number = int(val)
            if number > INT_MAX:
                return self._error(val, line, col, f"integer literal out of range: {val}")
            return Token(TokenType.NUM, val, number, line, col)
        if kind == "CHAR":
            body = val[1:-1]
            if body.startswith('\\'):
                value = ESCAPES.get(body[1], body[1])
            else:
                value = body
            return Token(TokenType.CHAR_LIT, val, value, line, col)
        if kind == "BADCHAR":
            return self._error(val, line, col, "invalid or unterminated char literal")
        if kind == "OP":
            return Token(OPERATORS[val], val, None, line, col)
        return self._error(val, line, col, f"unrecognized character {val!r}")

    def _error(self, val, line, col, msg):
        logger.debug("lexical error at %d:%d: %s", line, col, msg)
        if self.diagnostics is not None:
            self.diagnostics.report(line, col, msg, kind='lexical')
        return Token(TokenType.ERROR, val, None, line, col)


def tokenize(code, diagnostics=None):
    """Scan the whole source; the returned list always ends with EOF."""
    lex = Lexer(code, diagnostics)
    tokens = []
    while True:
        tok = lex.next_token()
        tokens.append(tok)
        if tok.type is TokenType.EOF:
            return tokens
