"""Runtime half of interpolation: splice evaluated segments into one string."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from strand.ast import Interpolated, Literal, Segment
from strand.values import StringValue, to_display_string


def compose(segments: Iterable[Segment], evaluate: Callable[[Any], Any]) -> StringValue:
    """Build a fresh StringValue from literal segments.

    Interpolated handles are passed to ``evaluate`` in source order and the
    results display-coerced. Nested literals inside an interpolation are
    composed while that interpolation is evaluated, so the innermost value
    is always ready before the enclosing text is joined.
    """
    result = StringValue()
    for segment in segments:
        if isinstance(segment, Literal):
            result = result.concat(StringValue(segment.text))
        elif isinstance(segment, Interpolated):
            result = result.concat(to_display_string(evaluate(segment.handle)))
        else:
            raise TypeError(f"unexpected segment {type(segment).__name__}")
    return result
