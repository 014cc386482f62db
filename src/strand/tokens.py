"""Source buffers, cursors, token types, and character classification helpers."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum, auto


class TokenType(Enum):
    # Literals
    INT = auto()
    FLOAT = auto()
    CHAR = auto()  # value is the resolved character
    STRING = auto()  # segments carry the scanned literal
    IDENTIFIER = auto()

    # Keywords
    LET = auto()
    CONST = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    TRUE = auto()
    FALSE = auto()

    # Punctuation
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    SEMICOLON = auto()  # ;
    COMMA = auto()  # ,

    # Operators
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /
    PERCENT = auto()  # %
    ASSIGN = auto()  # =
    EQ = auto()  # ==
    NE = auto()  # !=
    LT = auto()  # <
    LE = auto()  # <=
    GT = auto()  # >
    GE = auto()  # >=
    AND = auto()  # &&
    OR = auto()  # ||
    NOT = auto()  # !

    EOF = auto()


KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "const": TokenType.CONST,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}


class DelimiterKind(Enum):
    """Opening/closing delimiter of a string literal."""

    DOUBLE_QUOTED = '"'
    BACKTICK_MULTILINE = "`"

    @property
    def is_multiline(self) -> bool:
        return self is DelimiterKind.BACKTICK_MULTILINE


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based code point offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position


class Source:
    """Immutable buffer of Unicode scalar values with O(1) indexed access.

    Offsets count code points, never bytes or UTF-16 units. Line starts are
    precomputed so any offset can be turned into a line/column position.
    """

    __slots__ = ("text", "_line_starts")

    def __init__(self, text: str) -> None:
        self.text = text
        starts = [0]
        for idx, ch in enumerate(text):
            if ch == "\n":
                starts.append(idx + 1)
        self._line_starts = starts

    def __len__(self) -> int:
        return len(self.text)

    def char_at(self, offset: int) -> str:
        """Return the character at offset, or '' past either end."""
        if 0 <= offset < len(self.text):
            return self.text[offset]
        return ""

    def position(self, offset: int) -> Position:
        line = bisect_right(self._line_starts, offset)
        column = offset - self._line_starts[line - 1] + 1
        return Position(line, column, offset)

    def span(self, start: int, end: int) -> Span:
        return Span(self.position(start), self.position(end))

    def cursor(self, offset: int = 0) -> Cursor:
        return Cursor(self, offset)


@dataclass(frozen=True, slots=True)
class Cursor:
    """A read position within a Source."""

    source: Source = field(compare=False)
    offset: int

    def __post_init__(self) -> None:
        if not 0 <= self.offset <= len(self.source):
            raise ValueError(f"cursor offset {self.offset} outside buffer of length {len(self.source)}")

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.source)

    def peek(self, ahead: int = 0) -> str:
        return self.source.char_at(self.offset + ahead)

    def advance(self, count: int = 1) -> Cursor:
        return Cursor(self.source, min(self.offset + count, len(self.source)))

    def position(self) -> Position:
        return self.source.position(self.offset)


@dataclass(frozen=True, slots=True)
class Token:
    """A single script token with resolved value and original source text."""

    type: TokenType
    value: str
    raw: str
    span: Span
    segments: tuple = ()  # STRING only: the scanned literal segments
    delimiter: DelimiterKind | None = None  # STRING only


_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch != "" and ch in _HEX_DIGITS


def is_ident_start(ch: str) -> bool:
    return ch != "" and (ch.isalpha() or ch == "_")


def is_ident_char(ch: str) -> bool:
    """Return True if ch may continue an identifier."""
    return ch != "" and (ch.isalnum() or ch == "_")


def is_horizontal_ws(ch: str) -> bool:
    return ch in (" ", "\t")
