"""Backslash escape decoding shared by string and char literals."""

from __future__ import annotations

from dataclasses import dataclass

from strand.errors import InvalidEscapeSequence, UnterminatedStringLiteral
from strand.strings import line_break_width
from strand.tokens import Cursor, is_hex_digit


@dataclass(frozen=True, slots=True)
class Scalar:
    """A single decoded Unicode scalar value."""

    codepoint: int

    @property
    def char(self) -> str:
        return chr(self.codepoint)


@dataclass(frozen=True, slots=True)
class LineContinuation:
    """Backslash immediately before a line break."""


@dataclass(frozen=True, slots=True)
class LiteralDollarBrace:
    """The escaped sequence '\\${': the two characters '$' '{', no interpolation."""

    text = "${"


EscapeResult = Scalar | LineContinuation | LiteralDollarBrace

_SIMPLE: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "`": "`",
}

# escape letter -> exact number of hex digits
_HEX_WIDTH: dict[str, int] = {"x": 2, "u": 4, "U": 8}


def decode_escape(cursor: Cursor) -> tuple[EscapeResult, Cursor]:
    """Decode one escape form.

    ``cursor`` sits on the character right after the backslash. Returns the
    decoded result and a cursor just past the escape. Line continuation only
    consumes the line break itself; skipping the indentation that follows is
    left to the caller.
    """
    source = cursor.source
    start = cursor.offset - 1  # the backslash

    if cursor.at_end:
        raise UnterminatedStringLiteral(
            "unexpected end of input in escape sequence",
            source.span(start, cursor.offset),
            source.text,
        )

    ch = cursor.peek()

    width = line_break_width(source.text, cursor.offset)
    if width:
        return LineContinuation(), cursor.advance(width)

    if ch in _SIMPLE:
        return Scalar(ord(_SIMPLE[ch])), cursor.advance()

    if ch == "$":
        if cursor.peek(1) == "{":
            return LiteralDollarBrace(), cursor.advance(2)
        return Scalar(ord("$")), cursor.advance()

    if ch in _HEX_WIDTH:
        return _decode_hex(cursor.advance(), _HEX_WIDTH[ch], start)

    raise InvalidEscapeSequence(
        f"invalid escape sequence '\\{ch}'",
        source.span(start, cursor.offset + 1),
        source.text,
    )


def _decode_hex(cursor: Cursor, count: int, start: int) -> tuple[Scalar, Cursor]:
    """Read exactly ``count`` hex digits and return the scalar they name."""
    source = cursor.source
    digits = []
    for i in range(count):
        ch = cursor.peek()
        if ch == "":
            raise InvalidEscapeSequence(
                f"incomplete escape: expected {count} hex digits, got {i}",
                source.span(start, cursor.offset),
                source.text,
            )
        if not is_hex_digit(ch):
            raise InvalidEscapeSequence(
                f"invalid hex digit {ch!r} in escape sequence",
                source.span(start, cursor.offset + 1),
                source.text,
            )
        digits.append(ch)
        cursor = cursor.advance()

    hex_str = "".join(digits)
    codepoint = int(hex_str, 16)
    if codepoint > 0x10FFFF:
        raise InvalidEscapeSequence(
            f"Unicode codepoint U+{hex_str} is out of range",
            source.span(start, cursor.offset),
            source.text,
        )
    if 0xD800 <= codepoint <= 0xDFFF:
        raise InvalidEscapeSequence(
            f"U+{codepoint:04X} is a surrogate, not a Unicode scalar value",
            source.span(start, cursor.offset),
            source.text,
        )
    return Scalar(codepoint), cursor
