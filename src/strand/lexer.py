"""Strand lexer — produces script tokens one at a time on demand.

Tokens are produced lazily so that a block parser working inside ``${...}``
never reads beyond the '}' that hands control back to the literal scanner.
String literals are not tokenized here: the lexer passes the cursor to the
shared LiteralScanner and wraps the segments it returns.
"""

from __future__ import annotations

from strand.errors import LexError
from strand.escapes import Scalar, decode_escape
from strand.scanner import LiteralScanner
from strand.tokens import (
    KEYWORDS,
    Cursor,
    DelimiterKind,
    Source,
    Token,
    TokenType,
    is_ident_char,
    is_ident_start,
)

# Longest match first
_OPERATORS: tuple[tuple[str, TokenType], ...] = (
    ("==", TokenType.EQ),
    ("!=", TokenType.NE),
    ("<=", TokenType.LE),
    (">=", TokenType.GE),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
    ("{", TokenType.LBRACE),
    ("}", TokenType.RBRACE),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
    (";", TokenType.SEMICOLON),
    (",", TokenType.COMMA),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.STAR),
    ("/", TokenType.SLASH),
    ("%", TokenType.PERCENT),
    ("=", TokenType.ASSIGN),
    ("<", TokenType.LT),
    (">", TokenType.GT),
    ("!", TokenType.NOT),
)


class Lexer:
    """Tokenize Strand source starting at a cursor."""

    def __init__(self, cursor: Cursor, scanner: LiteralScanner) -> None:
        self._source: Source = cursor.source
        self._text = cursor.source.text
        self._pos = cursor.offset
        self._scanner = scanner

    @property
    def offset(self) -> int:
        return self._pos

    def next_token(self) -> Token:
        """Skip trivia and return the next token (EOF at end of input)."""
        self._skip_trivia()

        if self._pos >= len(self._text):
            return self._make(TokenType.EOF, "", self._pos)

        ch = self._text[self._pos]

        if ch == "\0":
            raise self._error("NUL character in source", self._pos)

        if _is_digit(ch):
            return self._lex_number()

        if is_ident_start(ch):
            return self._lex_identifier()

        if ch == "'":
            return self._lex_char()

        if ch in ('"', "`"):
            return self._lex_string(DelimiterKind(ch))

        for text, tt in _OPERATORS:
            if self._text.startswith(text, self._pos):
                start = self._pos
                self._pos += len(text)
                return self._make(tt, text, start)

        raise self._error(f"unexpected character {ch!r}", self._pos)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        return self._source.char_at(self._pos + offset)

    def _make(self, tt: TokenType, value: str, start: int) -> Token:
        raw = self._text[start : self._pos]
        return Token(tt, value, raw, self._source.span(start, self._pos))

    def _error(self, message: str, start: int, end: int | None = None) -> LexError:
        if end is None:
            end = start + 1
        return LexError(message, self._source.span(start, end), self._text)

    def _skip_trivia(self) -> None:
        while self._pos < len(self._text):
            ch = self._text[self._pos]
            if ch in " \t\r\n":
                self._pos += 1
            elif ch == "/" and self._peek(1) == "/":
                while self._pos < len(self._text) and self._text[self._pos] != "\n":
                    self._pos += 1
            elif ch == "/" and self._peek(1) == "*":
                start = self._pos
                end = self._text.find("*/", self._pos + 2)
                if end < 0:
                    raise self._error("unterminated block comment", start, start + 2)
                self._pos = end + 2
            else:
                return

    # ------------------------------------------------------------------
    # Token kinds
    # ------------------------------------------------------------------

    def _lex_number(self) -> Token:
        start = self._pos
        while _is_digit(self._peek()):
            self._pos += 1
        if self._peek() == "." and _is_digit(self._peek(1)):
            self._pos += 1
            while _is_digit(self._peek()):
                self._pos += 1
            return self._make(TokenType.FLOAT, self._text[start : self._pos], start)
        return self._make(TokenType.INT, self._text[start : self._pos], start)

    def _lex_identifier(self) -> Token:
        start = self._pos
        while is_ident_char(self._peek()):
            self._pos += 1
        word = self._text[start : self._pos]
        return self._make(KEYWORDS.get(word, TokenType.IDENTIFIER), word, start)

    def _lex_char(self) -> Token:
        start = self._pos
        self._pos += 1  # opening quote
        ch = self._peek()
        if ch in ("", "'", "\n", "\r"):
            raise self._error("empty or unterminated char literal", start, self._pos)
        if ch == "\\":
            result, after = decode_escape(Cursor(self._source, self._pos + 1))
            if not isinstance(result, Scalar):
                raise self._error("char literal must hold exactly one character", start, after.offset)
            value = result.char
            self._pos = after.offset
        else:
            value = ch
            self._pos += 1
        if self._peek() != "'":
            raise self._error("char literal must hold exactly one character", start, self._pos)
        self._pos += 1
        return self._make(TokenType.CHAR, value, start)

    def _lex_string(self, kind: DelimiterKind) -> Token:
        start = self._pos
        segments, end = self._scanner.scan(Cursor(self._source, start), kind)
        self._pos = end.offset
        raw = self._text[start : self._pos]
        return Token(
            TokenType.STRING,
            raw,
            raw,
            self._source.span(start, self._pos),
            segments=segments,
            delimiter=kind,
        )


def _is_digit(ch: str) -> bool:
    return len(ch) == 1 and "0" <= ch <= "9"
