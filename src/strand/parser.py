"""Strand parser — recursive descent over the on-demand token stream."""

from __future__ import annotations

from strand.ast import (
    Assign,
    Binary,
    Block,
    BoolLiteral,
    Call,
    CharLiteral,
    Expr,
    ExprStmt,
    FloatLiteral,
    Identifier,
    If,
    Index,
    IntLiteral,
    Let,
    Script,
    Stmt,
    StringLiteral,
    Unary,
    While,
)
from strand.errors import MaxNestingExceeded, ParseError
from strand.lexer import Lexer
from strand.scanner import DEFAULT_MAX_DEPTH, BlockParser, LiteralScanner
from strand.tokens import Cursor, DelimiterKind, Source, Span, Token, TokenType

DEFAULT_MAX_EXPR_DEPTH = 32
_I64_MAX = 2**63 - 1


class DepthBudget:
    """Expression nesting counter shared by every parser of one top-level parse."""

    def __init__(self, limit: int = DEFAULT_MAX_EXPR_DEPTH) -> None:
        self.limit = limit
        self.depth = 0

    def enter(self, span: Span, source: Source) -> None:
        if self.depth >= self.limit:
            raise MaxNestingExceeded(self.limit, span, source.text)
        self.depth += 1

    def leave(self) -> None:
        self.depth -= 1


class Parser:
    """Recursive descent parser for Strand statements and expressions.

    Only one token of lookahead is ever held, so a parser started inside an
    interpolation stops on the closing '}' without reading past it.
    """

    def __init__(self, cursor: Cursor, scanner: LiteralScanner, budget: DepthBudget) -> None:
        self._source = cursor.source
        self._start = cursor.offset
        self._lexer = Lexer(cursor, scanner)
        self._budget = budget
        self._current: Token | None = None
        self._last: Token | None = None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self) -> Token:
        if self._current is None:
            self._current = self._lexer.next_token()
        return self._current

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _advance(self) -> Token:
        tok = self._peek()
        if tok.type != TokenType.EOF:
            self._current = None
        self._last = tok
        return tok

    def _expect(self, tt: TokenType, message: str) -> Token:
        tok = self._peek()
        if tok.type != tt:
            raise self._error(message, tok.span)
        return self._advance()

    def _error(self, message: str, span: Span | None = None) -> ParseError:
        if span is None:
            span = self._peek().span
        return ParseError(message, span, self._source.text)

    def _here(self) -> Span:
        """Span of the next token if already read, else the bare lexer position."""
        if self._current is not None:
            return self._current.span
        offset = self._lexer.offset
        return self._source.span(offset, offset)

    def _span_from(self, start: Span) -> Span:
        end = self._last.span.end if self._last is not None else start.end
        return Span(start.start, end)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse_script(self) -> Script:
        statements = self._parse_statements()
        if self._at(TokenType.RBRACE):
            raise self._error("unmatched '}'")
        return Script(tuple(statements), self._source.span(self._start, len(self._source)))

    def parse_block_body(self) -> tuple[Block, Cursor]:
        """Parse statements up to the first unmatched '}' (or end of input).

        Returns the block and a cursor on that '}', which is left unconsumed.
        """
        self._budget.enter(self._here(), self._source)
        try:
            statements = self._parse_statements()
        finally:
            self._budget.leave()
        end = self._peek().span.start.offset
        block = Block(tuple(statements), self._source.span(self._start, end))
        return block, Cursor(self._source, end)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_statements(self) -> list[Stmt]:
        statements: list[Stmt] = []
        while not self._at(TokenType.RBRACE, TokenType.EOF):
            if self._at(TokenType.SEMICOLON):
                self._advance()  # empty statement
                continue
            statements.append(self._parse_statement())
        return statements

    def _parse_statement(self) -> Stmt:
        if self._at(TokenType.LET, TokenType.CONST):
            return self._parse_let()
        if self._at(TokenType.WHILE):
            return self._parse_while()

        start = self._peek().span
        expr = self._parse_expression()

        if self._at(TokenType.ASSIGN):
            if not isinstance(expr, (Identifier, Index)):
                raise self._error("invalid assignment target", expr.span)
            self._advance()  # consume '='
            value = self._parse_expression()
            self._end_statement()
            return Assign(expr, value, self._span_from(start))

        if self._at(TokenType.SEMICOLON):
            self._advance()
            return ExprStmt(expr, True, self._span_from(start))
        if self._at(TokenType.RBRACE, TokenType.EOF) or isinstance(expr, (Block, If)):
            return ExprStmt(expr, False, expr.span)
        raise self._error("expected ';' after expression")

    def _end_statement(self) -> None:
        if self._at(TokenType.SEMICOLON):
            self._advance()
        elif not self._at(TokenType.RBRACE, TokenType.EOF):
            raise self._error("expected ';' after statement")

    def _parse_let(self) -> Let:
        keyword = self._advance()
        constant = keyword.type == TokenType.CONST
        name = self._expect(TokenType.IDENTIFIER, f"expected variable name after '{keyword.value}'")

        value: Expr | None = None
        if self._at(TokenType.ASSIGN):
            self._advance()
            value = self._parse_expression()
        elif constant:
            raise self._error("constant must be initialized")

        self._end_statement()
        return Let(name.value, value, constant, self._span_from(keyword.span))

    def _parse_while(self) -> While:
        keyword = self._advance()
        condition = self._parse_expression()
        body = self._parse_block()
        return While(condition, body, self._span_from(keyword.span))

    def _parse_block(self) -> Block:
        open_tok = self._expect(TokenType.LBRACE, "expected '{'")
        statements = self._parse_statements()
        self._expect(TokenType.RBRACE, "expected closing '}'")
        return Block(tuple(statements), self._span_from(open_tok.span))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self) -> Expr:
        self._budget.enter(self._here(), self._source)
        try:
            return self._parse_binary(0)
        finally:
            self._budget.leave()

    def _parse_binary(self, level: int) -> Expr:
        if level == len(_BINARY_LEVELS):
            return self._parse_unary()
        ops = _BINARY_LEVELS[level]
        left = self._parse_binary(level + 1)
        while self._peek().type in ops:
            op = ops[self._advance().type]
            right = self._parse_binary(level + 1)
            left = Binary(op, left, right, Span(left.span.start, right.span.end))
        return left

    def _parse_unary(self) -> Expr:
        # Each prefix operator nests its operand one level deeper.
        ops: list[Token] = []
        try:
            while self._at(TokenType.MINUS, TokenType.NOT):
                self._budget.enter(self._peek().span, self._source)
                ops.append(self._advance())
            expr = self._parse_postfix()
        finally:
            for _ in ops:
                self._budget.leave()
        for tok in reversed(ops):
            expr = Unary(tok.value, expr, Span(tok.span.start, expr.span.end))
        return expr

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        charged = 0
        try:
            while True:
                if self._at(TokenType.LBRACKET):
                    self._budget.enter(self._peek().span, self._source)
                    charged += 1
                    self._advance()
                    index = self._parse_expression()
                    self._expect(TokenType.RBRACKET, "expected closing ']'")
                    expr = Index(expr, index, self._span_from(expr.span))
                elif self._at(TokenType.LPAREN) and isinstance(expr, Identifier):
                    self._advance()
                    args = self._parse_args()
                    expr = Call(expr.name, tuple(args), self._span_from(expr.span))
                else:
                    return expr
        finally:
            for _ in range(charged):
                self._budget.leave()

    def _parse_args(self) -> list[Expr]:
        args: list[Expr] = []
        if self._at(TokenType.RPAREN):
            self._advance()
            return args
        while True:
            args.append(self._parse_expression())
            if self._at(TokenType.COMMA):
                self._advance()
                continue
            self._expect(TokenType.RPAREN, "expected ',' or ')' in argument list")
            return args

    def _parse_primary(self) -> Expr:
        tok = self._peek()

        if tok.type == TokenType.INT:
            self._advance()
            value = int(tok.value)
            if value > _I64_MAX:
                raise self._error(f"integer literal {tok.value} does not fit in 64 bits", tok.span)
            return IntLiteral(value, tok.span)
        if tok.type == TokenType.FLOAT:
            self._advance()
            return FloatLiteral(float(tok.value), tok.span)
        if tok.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return BoolLiteral(tok.type == TokenType.TRUE, tok.span)
        if tok.type == TokenType.CHAR:
            self._advance()
            return CharLiteral(tok.value, tok.span)
        if tok.type == TokenType.STRING:
            self._advance()
            return StringLiteral(tok.segments, DelimiterKind(tok.raw[0]), tok.span)
        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(tok.value, tok.span)
        if tok.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN, "expected closing ')'")
            return expr
        if tok.type == TokenType.LBRACE:
            return self._parse_block()
        if tok.type == TokenType.IF:
            return self._parse_if()

        if tok.type == TokenType.EOF:
            raise self._error("unexpected end of input, expected expression", tok.span)
        raise self._error(f"expected expression, found '{tok.raw}'", tok.span)

    def _parse_if(self) -> If:
        keyword = self._advance()
        self._budget.enter(keyword.span, self._source)
        try:
            condition = self._parse_expression()
            then_branch = self._parse_block()
            else_branch: Block | If | None = None
            if self._at(TokenType.ELSE):
                self._advance()
                if self._at(TokenType.IF):
                    else_branch = self._parse_if()
                else:
                    else_branch = self._parse_block()
        finally:
            self._budget.leave()
        return If(condition, then_branch, else_branch, self._span_from(keyword.span))


_BINARY_LEVELS: tuple[dict[TokenType, str], ...] = (
    {TokenType.OR: "||"},
    {TokenType.AND: "&&"},
    {TokenType.EQ: "==", TokenType.NE: "!="},
    {TokenType.LT: "<", TokenType.LE: "<=", TokenType.GT: ">", TokenType.GE: ">="},
    {TokenType.PLUS: "+", TokenType.MINUS: "-"},
    {TokenType.STAR: "*", TokenType.SLASH: "/", TokenType.PERCENT: "%"},
)


def block_parser(budget: DepthBudget) -> BlockParser:
    """Return the parse_block capability used by the literal scanner."""

    def parse_block(cursor: Cursor, scanner: LiteralScanner) -> tuple[Block, Cursor]:
        return Parser(cursor, scanner, budget).parse_block_body()

    return parse_block


def parse(
    source: str,
    *,
    max_depth: int = DEFAULT_MAX_EXPR_DEPTH,
    max_context_depth: int = DEFAULT_MAX_DEPTH,
) -> Script:
    """Convenience function: parse source text and return a Script AST."""
    buffer = Source(source)
    budget = DepthBudget(max_depth)
    scanner = LiteralScanner(block_parser(budget), max_context_depth)
    return Parser(buffer.cursor(), scanner, budget).parse_script()
