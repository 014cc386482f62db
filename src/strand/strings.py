"""Line-break and whitespace rules for string literals."""

from __future__ import annotations

from strand.tokens import is_horizontal_ws


def line_break_width(text: str, offset: int) -> int:
    """Return the length of the line break starting at offset.

    CRLF is 2, LF or a lone CR is 1, anything else is 0.
    """
    ch = text[offset] if offset < len(text) else ""
    if ch == "\n":
        return 1
    if ch == "\r":
        return 2 if text[offset + 1 : offset + 2] == "\n" else 1
    return 0


def skip_continuation_indent(text: str, offset: int) -> int:
    """Skip the indentation of a continued line.

    Called with offset just past the line break of a line continuation.
    Every space and tab is discarded up to the first other character, so
    indentation that only aligns source code adds nothing to the string. A
    second line break ends the skip; blank lines are not swallowed.
    """
    while offset < len(text) and is_horizontal_ws(text[offset]):
        offset += 1
    return offset
