"""Strand scripting language — string literals with nested interpolation."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

__version__ = "0.1.0"


def run(
    source: str,
    env: dict[str, str] | None = None,
    on_print: Callable[[str], None] | None = None,
    on_debug: Callable[[str], None] | None = None,
) -> Any:
    """Parse and evaluate Strand source, returning the script's final value."""
    from strand.eval import evaluate
    from strand.parser import parse

    script = parse(source)
    return evaluate(script, source, env=env, on_print=on_print, on_debug=on_debug)
