"""
translator.py
Syntax-directed translator: a recursive-descent parser that, in the same
walk over the tokens, checks declarations and types against the scope table
and emits three-address code into the IR builder.

Every expression procedure returns an ExprResult (type, place) where place
is the temporary or variable name holding the value. Semantic errors turn
the type into Type.ERROR, which later checks accept silently so each mistake
is reported once. Syntax errors are handled in panic mode: report, skip to
the expected token, ';' or '}', and carry on.

Grammar:
    program  := 'program' block EOF
    block    := '{' decl* stmt* '}'
    decl     := type ID ';'
    stmt     := assign ';' | print ';' | if | while | block
    assign   := ID '=' expr
    print    := 'print' '(' expr ')'
    if       := 'if' '(' expr ')' stmt [ 'else' stmt ]
    while    := 'while' '(' expr ')' stmt
    expr     := or
    or       := and ( '||' and )*
    and      := eq ( '&&' eq )*
    eq       := rel ( ('=='|'!=') rel )*
    rel      := add ( ('<'|'<='|'>'|'>=') add )*
    add      := mul ( ('+'|'-') mul )*
    mul      := unary ( ('*'|'/'|'%') unary )*
    unary    := ('!'|'-') unary | primary
    primary  := NUM | CHAR_LIT | 'true' | 'false' | ID | '(' expr ')'
"""

import logging
from collections import namedtuple

from diagnostics import DiagnosticSink
from ir import FALSE, TRUE, IRBuilder
from lexer import Lexer, TokenType
from symtab import ScopeTable, Type

logger = logging.getLogger(__name__)

TYPE_TOKENS = {
    TokenType.INT: Type.INT,
    TokenType.BOOL: Type.BOOL,
    TokenType.CHAR: Type.CHAR,
}
STMT_START = {TokenType.ID, TokenType.PRINT, TokenType.IF, TokenType.WHILE, TokenType.LBRACE}

ADD_OPS = {TokenType.PLUS: 'add', TokenType.MINUS: 'sub'}
MUL_OPS = {TokenType.STAR: 'mul', TokenType.SLASH: 'div', TokenType.MOD: 'mod'}
EQ_JUMPS = {TokenType.EQEQ: 'ifeq', TokenType.NEQ: 'ifne'}
REL_JUMPS = {
    TokenType.LT: 'iflt',
    TokenType.LE: 'ifle',
    TokenType.GT: 'ifgt',
    TokenType.GE: 'ifge',
}
# tokens an invalid operand is skipped up to (left for the caller to match)
EXPR_SYNC = {TokenType.SEMI, TokenType.RPAREN, TokenType.RBRACE, TokenType.EOF}


class ExprResult(namedtuple('ExprResult', ['type', 'place'])):
    __slots__ = ()


class _Resync(Exception):
    """Unwinds to the enclosing statement once recovery has left it."""


class Translator:
    def __init__(self, tokens, diagnostics, symbols=None, ir=None):
        self.tokens = tokens
        self.diagnostics = diagnostics
        self.symbols = symbols if symbols is not None else ScopeTable()
        self.ir = ir if ir is not None else IRBuilder()
        self.used = False
        self.lookahead = None
        self.advance()

    def translate(self):
        if self.used:
            raise RuntimeError("a Translator can only translate once")
        self.used = True
        self.program()
        logger.debug("translated: %d declarations, %d instructions",
                     len(self.symbols.history), len(self.ir))
        return self.symbols, self.ir

    # -------------------------------------------------
    # token helpers
    # -------------------------------------------------
    def advance(self):
        self.lookahead = self.tokens.next_token()
        # bad characters were already reported by the lexer
        while self.lookahead.type is TokenType.ERROR:
            self.lookahead = self.tokens.next_token()

    def check(self, *ttypes):
        return self.lookahead.type in ttypes

    def match(self, ttype, msg):
        if self.check(ttype):
            tok = self.lookahead
            self.advance()
            return tok
        self.syntax_error(msg)
        tok = self.recover(ttype)
        if tok is None:
            raise _Resync()
        return tok

    def recover(self, expected):
        """Skip to `expected`, ';' or '}'; consume it unless it is '}'.

        Braces opened while skipping are skipped as a whole group so the
        scope table never sees half a block; the group's closing '}' ends
        the failed construct. Returns the expected token when it was found,
        else None.
        """
        depth = 0
        skipped = 0
        while not self.check(TokenType.EOF):
            t = self.lookahead.type
            if depth == 0 and (t is expected or t is TokenType.SEMI or t is TokenType.RBRACE):
                break
            self.advance()
            skipped += 1
            if t is TokenType.LBRACE:
                depth += 1
            elif t is TokenType.RBRACE:
                depth -= 1
                if depth == 0:
                    logger.debug("recovery skipped %d tokens through a block", skipped)
                    return None
        logger.debug("recovery skipped %d tokens, stopped at %s", skipped, self.lookahead.type.name)
        tok = self.lookahead
        if expected is not None and tok.type is expected:
            self.advance()
            return tok
        if tok.type is TokenType.SEMI:
            self.advance()
        return None

    def describe(self, tok):
        if tok.type is TokenType.EOF:
            return "end of input"
        return f"{tok.type.name} '{tok.lexeme}'"

    def syntax_error(self, msg):
        tok = self.lookahead
        self.diagnostics.report(tok.line, tok.column, f"{msg} (found {self.describe(tok)})", kind='syntax')

    def semantic_error(self, tok, msg):
        self.diagnostics.report(tok.line, tok.column, msg, kind='semantic')

    # -------------------------------------------------
    # program structure
    # -------------------------------------------------
    def program(self):
        if self.check(TokenType.PROGRAM):
            self.advance()
        else:
            self.syntax_error("expected 'program'")
            while not self.check(TokenType.LBRACE, TokenType.EOF):
                self.advance()
            if self.check(TokenType.EOF):
                return
        self.block()
        if not self.check(TokenType.EOF):
            self.syntax_error("expected end of input after the program block")
            while not self.check(TokenType.EOF):
                self.advance()

    def block(self):
        # a missing '{' is reported and the block parsed as if it were there
        if self.check(TokenType.LBRACE):
            self.advance()
        else:
            self.syntax_error("expected '{'")
        self.symbols.enter_scope()
        while self.lookahead.type in TYPE_TOKENS:
            self.declaration()
        while not self.check(TokenType.RBRACE, TokenType.EOF):
            if self.lookahead.type in TYPE_TOKENS:
                self.syntax_error("declarations must come before statements")
                self.declaration()
            else:
                self.statement()
        self.symbols.exit_scope()
        if self.check(TokenType.RBRACE):
            self.advance()
        else:
            self.syntax_error("expected '}'")

    def declaration(self):
        try:
            typ = TYPE_TOKENS[self.lookahead.type]
            self.advance()
            name_tok = self.match(TokenType.ID, "expected an identifier in declaration")
            if not self.symbols.declare(name_tok.lexeme, typ):
                self.semantic_error(name_tok, f"'{name_tok.lexeme}' is already declared in this scope")
            self.match(TokenType.SEMI, "missing ';' after declaration")
        except _Resync:
            pass

    # -------------------------------------------------
    # statements
    # -------------------------------------------------
    def statement(self):
        try:
            t = self.lookahead.type
            if t is TokenType.ID:
                self.assignment()
                self.match(TokenType.SEMI, "missing ';' after assignment")
            elif t is TokenType.PRINT:
                self.print_stmt()
                self.match(TokenType.SEMI, "missing ';' after print")
            elif t is TokenType.IF:
                self.if_stmt()
            elif t is TokenType.WHILE:
                self.while_stmt()
            elif t is TokenType.LBRACE:
                self.block()
            else:
                self.syntax_error("invalid start of statement")
                self.recover(None)
        except _Resync:
            pass

    def assignment(self):
        name_tok = self.lookahead
        name = name_tok.lexeme
        self.advance()
        var_type = self.symbols.lookup(name)
        if var_type is None:
            self.semantic_error(name_tok, f"undeclared variable '{name}'")
            var_type = Type.ERROR
        self.match(TokenType.ASSIGN, "expected '=' in assignment")
        value = self.expression()
        if Type.ERROR not in (var_type, value.type) and var_type is not value.type:
            self.semantic_error(
                name_tok,
                f"incompatible assignment: cannot assign {value.type} to '{name}' of type {var_type}")
        self.ir.emit('copy', value.place, None, name)

    def print_stmt(self):
        self.advance()  # 'print'
        self.match(TokenType.LPAREN, "expected '(' after print")
        value = self.expression()
        self.match(TokenType.RPAREN, "expected ')' in print")
        self.ir.emit('print', value.place)

    def condition(self, keyword_tok):
        self.match(TokenType.LPAREN, f"expected '(' after {keyword_tok.lexeme}")
        cond = self.expression()
        if cond.type not in (Type.BOOL, Type.ERROR):
            self.semantic_error(
                keyword_tok, f"'{keyword_tok.lexeme}' condition must be BOOL, got {cond.type}")
        self.match(TokenType.RPAREN, f"expected ')' after {keyword_tok.lexeme} condition")
        return cond

    def if_stmt(self):
        if_tok = self.lookahead
        self.advance()
        cond = self.condition(if_tok)
        l_else = self.ir.new_label()
        self.ir.emit('ifeq', cond.place, FALSE, l_else)
        self.statement()
        if self.check(TokenType.ELSE):
            self.advance()
            l_end = self.ir.new_label()
            self.ir.emit('goto', None, None, l_end)
            self.ir.emit_label(l_else)
            self.statement()
            self.ir.emit_label(l_end)
        else:
            self.ir.emit_label(l_else)

    def while_stmt(self):
        while_tok = self.lookahead
        self.advance()
        l_start = self.ir.new_label()
        l_end = self.ir.new_label()
        self.ir.emit_label(l_start)
        cond = self.condition(while_tok)
        self.ir.emit('ifeq', cond.place, FALSE, l_end)
        self.statement()
        self.ir.emit('goto', None, None, l_start)
        self.ir.emit_label(l_end)

    # -------------------------------------------------
    # expressions
    # -------------------------------------------------
    def expression(self):
        return self.or_expr()

    def or_expr(self):
        left = self.and_expr()
        while self.check(TokenType.OROR):
            op_tok = self.lookahead
            self.advance()
            right = self.and_expr()
            left = self.binary(op_tok, 'or', left, right, Type.BOOL, Type.BOOL)
        return left

    def and_expr(self):
        left = self.eq_expr()
        while self.check(TokenType.ANDAND):
            op_tok = self.lookahead
            self.advance()
            right = self.eq_expr()
            left = self.binary(op_tok, 'and', left, right, Type.BOOL, Type.BOOL)
        return left

    def eq_expr(self):
        left = self.rel_expr()
        while self.lookahead.type in EQ_JUMPS:
            op_tok = self.lookahead
            self.advance()
            right = self.rel_expr()
            typ = Type.BOOL
            if Type.ERROR in (left.type, right.type):
                typ = Type.ERROR
            elif left.type is not right.type:
                self.semantic_error(
                    op_tok, f"operator '{op_tok.lexeme}' compares {left.type} with {right.type}")
                typ = Type.ERROR
            left = self.compare(EQ_JUMPS[op_tok.type], left, right, typ)
        return left

    def rel_expr(self):
        left = self.add_expr()
        while self.lookahead.type in REL_JUMPS:
            op_tok = self.lookahead
            self.advance()
            right = self.add_expr()
            typ = self.check_operands(op_tok, (left.type, right.type), Type.INT, Type.BOOL)
            left = self.compare(REL_JUMPS[op_tok.type], left, right, typ)
        return left

    def add_expr(self):
        left = self.mul_expr()
        while self.lookahead.type in ADD_OPS:
            op_tok = self.lookahead
            self.advance()
            right = self.mul_expr()
            left = self.binary(op_tok, ADD_OPS[op_tok.type], left, right, Type.INT, Type.INT)
        return left

    def mul_expr(self):
        left = self.unary()
        while self.lookahead.type in MUL_OPS:
            op_tok = self.lookahead
            self.advance()
            right = self.unary()
            left = self.binary(op_tok, MUL_OPS[op_tok.type], left, right, Type.INT, Type.INT)
        return left

    def unary(self):
        if self.check(TokenType.NOT, TokenType.MINUS):
            op_tok = self.lookahead
            self.advance()
            operand = self.unary()
            if op_tok.type is TokenType.NOT:
                mnemonic, required = 'not', Type.BOOL
            else:
                mnemonic, required = 'neg', Type.INT
            typ = self.check_operands(op_tok, (operand.type,), required, required)
            dest = self.ir.new_temp()
            self.ir.emit(mnemonic, operand.place, None, dest)
            return ExprResult(typ, dest)
        return self.primary()

    def primary(self):
        tok = self.lookahead
        t = tok.type
        if t is TokenType.NUM:
            self.advance()
            return self.literal(tok.value, Type.INT)
        if t is TokenType.CHAR_LIT:
            self.advance()
            return self.literal(ord(tok.value), Type.CHAR)
        if t is TokenType.TRUE or t is TokenType.FALSE:
            self.advance()
            return self.literal(TRUE if t is TokenType.TRUE else FALSE, Type.BOOL)
        if t is TokenType.ID:
            self.advance()
            typ = self.symbols.lookup(tok.lexeme)
            if typ is None:
                self.semantic_error(tok, f"undeclared variable '{tok.lexeme}'")
                typ = Type.ERROR
            return ExprResult(typ, tok.lexeme)
        if t is TokenType.LPAREN:
            self.advance()
            inner = self.expression()
            self.match(TokenType.RPAREN, "expected ')'")
            return inner
        self.syntax_error("expected an expression")
        depth = 0
        while not (depth == 0 and self.lookahead.type in EXPR_SYNC) and not self.check(TokenType.EOF):
            if self.check(TokenType.LBRACE, TokenType.LPAREN):
                depth += 1
            elif self.check(TokenType.RBRACE, TokenType.RPAREN):
                depth -= 1
            self.advance()
        return ExprResult(Type.ERROR, str(FALSE))

    # -------------------------------------------------
    # code generation helpers
    # -------------------------------------------------
    def check_operands(self, op_tok, types, required, result):
        if Type.ERROR in types:
            return Type.ERROR
        if any(typ is not required for typ in types):
            got = ' and '.join(str(typ) for typ in types)
            self.semantic_error(op_tok, f"operator '{op_tok.lexeme}' requires {required} operands, got {got}")
            return Type.ERROR
        return result

    def literal(self, value, typ):
        dest = self.ir.new_temp()
        self.ir.emit('copy', value, None, dest)
        return ExprResult(typ, dest)

    def binary(self, op_tok, mnemonic, left, right, required, result):
        typ = self.check_operands(op_tok, (left.type, right.type), required, result)
        dest = self.ir.new_temp()
        self.ir.emit(mnemonic, left.place, right.place, dest)
        return ExprResult(typ, dest)

    def compare(self, jump, left, right, typ):
        """Lower a relation to jumps: there is no boolean-producing compare."""
        l_true = self.ir.new_label()
        l_end = self.ir.new_label()
        dest = self.ir.new_temp()
        self.ir.emit(jump, left.place, right.place, l_true)
        self.ir.emit('copy', FALSE, None, dest)
        self.ir.emit('goto', None, None, l_end)
        self.ir.emit_label(l_true)
        self.ir.emit('copy', TRUE, None, dest)
        self.ir.emit_label(l_end)
        return ExprResult(typ, dest)


def translate(source, diagnostics=None, symbols=None, ir=None):
    """Translate a program in one pass.

    `source` is either program text or a token source with `next_token()`.
    Returns the scope table (with its declaration log) and the IR builder;
    problems end up in `diagnostics`.
    """
    if diagnostics is None:
        diagnostics = DiagnosticSink()
    tokens = Lexer(source, diagnostics) if isinstance(source, str) else source
    return Translator(tokens, diagnostics, symbols, ir).translate()
