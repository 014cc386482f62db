"""Runtime values — the mutable string type and display coercion."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator

from strand.errors import IndexOutOfRange


class Ordering(Enum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


class StringValue:
    """Mutable, index-addressable sequence of Unicode scalar values.

    Length and indices count scalar values. Indexed assignment replaces one
    value in place and never changes the length; concatenation always builds
    a new StringValue.
    """

    __slots__ = ("_chars",)

    def __init__(self, text: str = "") -> None:
        self._chars: list[str] = list(text)

    @classmethod
    def _from_chars(cls, chars: list[str]) -> StringValue:
        value = cls()
        value._chars = chars
        return value

    def __len__(self) -> int:
        return len(self._chars)

    def length(self) -> int:
        return len(self._chars)

    def __iter__(self) -> Iterator[str]:
        return iter(self._chars)

    def __str__(self) -> str:
        return "".join(self._chars)

    def __repr__(self) -> str:
        return f"StringValue({str(self)!r})"

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._chars):
            raise IndexOutOfRange(index, len(self._chars))

    def get(self, index: int) -> str:
        self._check_index(index)
        return self._chars[index]

    def set(self, index: int, char: str) -> None:
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        self._check_index(index)
        self._chars[index] = char

    def copy(self) -> StringValue:
        return StringValue._from_chars(list(self._chars))

    def concat(self, other: StringValue) -> StringValue:
        return StringValue._from_chars(self._chars + other._chars)

    def compare(self, other: StringValue) -> Ordering:
        """Per-scalar lexicographic order; a proper prefix sorts first."""
        if self._chars < other._chars:
            return Ordering.LESS
        if self._chars > other._chars:
            return Ordering.GREATER
        return Ordering.EQUAL

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StringValue):
            return self._chars == other._chars
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __lt__(self, other: StringValue) -> bool:
        return self.compare(other) is Ordering.LESS

    def __le__(self, other: StringValue) -> bool:
        return self.compare(other) is not Ordering.GREATER

    def __gt__(self, other: StringValue) -> bool:
        return self.compare(other) is Ordering.GREATER

    def __ge__(self, other: StringValue) -> bool:
        return self.compare(other) is not Ordering.LESS


def concat(a: StringValue, b: StringValue) -> StringValue:
    return a.concat(b)


def compare(a: StringValue, b: StringValue) -> Ordering:
    return a.compare(b)


def type_name(value: Any) -> str:
    """Script-level type name of a runtime value."""
    if value is None:
        return "()"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "i64"
    if isinstance(value, float):
        return "f64"
    if isinstance(value, str):
        return "char"
    if isinstance(value, StringValue):
        return "string"
    return type(value).__name__


def display_text(value: Any) -> str:
    """Textual form of a value as print() shows it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def debug_text(value: Any) -> str:
    """Textual form of a value as debug() shows it: strings and chars quoted."""
    if isinstance(value, StringValue):
        return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'
    if isinstance(value, str):
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
    if value is None:
        return "()"
    return display_text(value)


def to_display_string(value: Any) -> StringValue:
    """Coerce any value to a new StringValue (strings are copied, never aliased)."""
    if isinstance(value, StringValue):
        return value.copy()
    return StringValue(display_text(value))


def string_add(left: Any, right: Any) -> StringValue:
    """``+`` with at least one string-like operand.

    The non-string side is display-coerced first; operand order is kept.
    """
    lhs = left if isinstance(left, StringValue) else to_display_string(left)
    rhs = right if isinstance(right, StringValue) else to_display_string(right)
    return lhs.concat(rhs)
