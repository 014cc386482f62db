"""Error types with formatted source context."""

from __future__ import annotations

from strand.tokens import Position, Span


class StrandError(Exception):
    """Base class for every scanning, parsing, and runtime failure."""

    def __init__(self, message: str, span: Span | None, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    @property
    def position(self) -> Position | None:
        return self.span.start if self.span is not None else None

    def format(self, filename: str = "<script>") -> str:
        if self.span is None:
            return f"error: {self.message}"

        lines = self.source.splitlines(keepends=True)
        line_idx = self.span.start.line - 1
        col = self.span.start.column

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        # Underline the full span when on one line, otherwise to end of line
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = max(1, len(source_line) - col + 1)

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(self.span.start.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"error: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{self.span.start.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )


# ---------------------------------------------------------------------------
# Embedding language
# ---------------------------------------------------------------------------


class LexError(StrandError):
    """Raised on the first invalid script token."""


class ParseError(StrandError):
    """Raised on the first statement or expression the parser cannot accept."""


class EvalError(StrandError):
    """Raised on runtime failures while evaluating a script."""


class IndexOutOfRange(EvalError):
    """Indexed string access or assignment outside 0 <= index < length."""

    def __init__(
        self,
        index: int,
        length: int,
        span: Span | None = None,
        source: str = "",
    ) -> None:
        self.index = index
        self.length = length
        super().__init__(
            f"string index {index} out of bounds for length {length}", span, source
        )


# ---------------------------------------------------------------------------
# String literal engine
# ---------------------------------------------------------------------------


class ScanError(StrandError):
    """Failure while scanning a string literal or composing its segments."""

    @property
    def offset(self) -> int:
        return self.span.start.offset if self.span is not None else 0


class InvalidEscapeSequence(ScanError):
    """Malformed escape: unknown letter, bad hex digits, or out-of-range value."""


class UnterminatedStringLiteral(ScanError):
    """Input ended before the closing delimiter, or a quoted literal hit a raw line break."""


class UnterminatedInterpolation(ScanError):
    """No '}' closes a '${' before the end of input."""


class InterpolationParseError(ScanError):
    """The embedded statement parser rejected the code inside '${...}'."""

    def __init__(self, cause: LexError | ParseError) -> None:
        self.cause = cause
        super().__init__(f"invalid interpolation: {cause.message}", cause.span, cause.source)


class MaxNestingExceeded(ScanError):
    """Nesting depth guard tripped."""

    def __init__(self, limit: int, span: Span | None, source: str) -> None:
        self.limit = limit
        super().__init__(f"nesting depth limit ({limit}) exceeded", span, source)
