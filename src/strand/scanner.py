"""String literal scanner — turns literal source text into segments.

A literal body alternates between escape-decoded text runs and ``${...}``
interpolations. Interpolation code is handed to an injected block parser,
which calls back into the same scanner for every string literal it meets.
The explicit context stack records which mode each nesting level is in and
bounds how deep that mutual recursion may go.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from strand.ast import Interpolated, Literal, Segment
from strand.errors import (
    InterpolationParseError,
    LexError,
    MaxNestingExceeded,
    ParseError,
    UnterminatedInterpolation,
    UnterminatedStringLiteral,
)
from strand.escapes import LiteralDollarBrace, Scalar, decode_escape
from strand.strings import line_break_width, skip_continuation_indent
from strand.tokens import Cursor, DelimiterKind

DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True, slots=True)
class LiteralText:
    """Scanning the body of a literal closed by ``delimiter``."""

    delimiter: DelimiterKind

    @property
    def is_multiline(self) -> bool:
        return self.delimiter.is_multiline


@dataclass(frozen=True, slots=True)
class InterpolationCode:
    """Inside ``${...}``; scanning resumes in a literal closed by ``return_delimiter``."""

    return_delimiter: DelimiterKind


ScanMode = LiteralText | InterpolationCode


class BlockParser(Protocol):
    """Capability: parse statements at cursor up to the first unmatched '}'.

    Returns an opaque handle (stored in the Interpolated segment) and a cursor
    positioned on that '}' (or at end of input if there is none). String
    literals found along the way must be scanned with ``scanner.scan``.
    """

    def __call__(self, cursor: Cursor, scanner: LiteralScanner) -> tuple[Any, Cursor]: ...


class ContextStack:
    """Stack of scan modes; depth is the current literal/interpolation nesting."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self._modes: list[ScanMode] = []

    def __len__(self) -> int:
        return len(self._modes)

    @property
    def depth(self) -> int:
        return len(self._modes)

    @property
    def top(self) -> ScanMode | None:
        return self._modes[-1] if self._modes else None

    def push(self, mode: ScanMode, cursor: Cursor) -> None:
        if len(self._modes) >= self.max_depth:
            source = cursor.source
            raise MaxNestingExceeded(
                self.max_depth,
                source.span(cursor.offset, cursor.offset),
                source.text,
            )
        self._modes.append(mode)

    def pop(self) -> ScanMode:
        return self._modes.pop()


class LiteralScanner:
    """Scan string literals, recursing through interpolations.

    One scanner (and so one context stack) belongs to one top-level parse.
    """

    def __init__(self, parse_block: BlockParser, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._parse_block = parse_block
        self.context = ContextStack(max_depth)

    def scan(self, cursor: Cursor, kind: DelimiterKind) -> tuple[tuple[Segment, ...], Cursor]:
        """Scan the literal whose opening delimiter is at cursor.

        Returns the segments and a cursor just past the closing delimiter.
        """
        if cursor.peek() != kind.value:
            raise ValueError(f"expected opening {kind.value!r} at offset {cursor.offset}")

        self.context.push(LiteralText(kind), cursor)
        try:
            return self._scan_body(cursor, kind)
        finally:
            self.context.pop()

    # ------------------------------------------------------------------
    # Literal text
    # ------------------------------------------------------------------

    def _scan_body(
        self, open_cursor: Cursor, kind: DelimiterKind
    ) -> tuple[tuple[Segment, ...], Cursor]:
        source = open_cursor.source
        text = source.text
        closing = kind.value
        pos = open_cursor.offset + 1

        segments: list[Segment] = []
        chars: list[str] = []
        text_start = pos

        def flush(end: int) -> None:
            if chars:
                segments.append(Literal("".join(chars), source.span(text_start, end)))
                chars.clear()

        while True:
            if pos >= len(text):
                raise UnterminatedStringLiteral(
                    "unterminated string literal",
                    source.span(open_cursor.offset, pos),
                    text,
                )

            ch = text[pos]

            if ch == closing:
                flush(pos)
                if not segments:
                    segments.append(Literal("", source.span(pos, pos)))
                return tuple(segments), Cursor(source, pos + 1)

            if ch == "\\":
                if not chars:
                    text_start = pos
                result, after = decode_escape(Cursor(source, pos + 1))
                if isinstance(result, Scalar):
                    chars.append(result.char)
                    pos = after.offset
                elif isinstance(result, LiteralDollarBrace):
                    chars.append(result.text)
                    pos = after.offset
                else:  # line continuation
                    pos = skip_continuation_indent(text, after.offset)
                continue

            if ch == "$" and pos + 1 < len(text) and text[pos + 1] == "{":
                flush(pos)
                segment, after = self._scan_interpolation(Cursor(source, pos), kind)
                segments.append(segment)
                pos = after.offset
                continue

            if not kind.is_multiline and line_break_width(text, pos):
                raise UnterminatedStringLiteral(
                    "line break in string literal (use a backtick literal or '\\' to continue)",
                    source.span(open_cursor.offset, pos),
                    text,
                )

            if not chars:
                text_start = pos
            chars.append(ch)
            pos += 1

    # ------------------------------------------------------------------
    # Interpolation
    # ------------------------------------------------------------------

    def _scan_interpolation(
        self, open_cursor: Cursor, kind: DelimiterKind
    ) -> tuple[Interpolated, Cursor]:
        """Delegate the code after '${' to the block parser and check the closing '}'."""
        source = open_cursor.source
        code_start = open_cursor.advance(2)

        self.context.push(InterpolationCode(kind), code_start)
        try:
            try:
                handle, end = self._parse_block(code_start, self)
            except (LexError, ParseError) as exc:
                raise InterpolationParseError(exc) from exc
        finally:
            self.context.pop()

        if end.peek() != "}":
            raise UnterminatedInterpolation(
                "unterminated interpolation (expected '}')",
                source.span(open_cursor.offset, code_start.offset),
                source.text,
            )

        after = end.advance()
        return Interpolated(handle, source.span(open_cursor.offset, after.offset)), after


def parse_string_literal(
    cursor: Cursor,
    kind: DelimiterKind,
    parse_block: BlockParser,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[tuple[Segment, ...], Cursor]:
    """Convenience function: scan one literal with a fresh context stack."""
    return LiteralScanner(parse_block, max_depth).scan(cursor, kind)
