"""Builtin function registry — names, arities, and implementations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from strand.values import StringValue, debug_text, display_text, to_display_string, type_name


class Host(Protocol):
    """Output hooks a builtin may write to."""

    on_print: Callable[[str], None]
    on_debug: Callable[[str], None]


class ArgumentError(Exception):
    """A builtin received an argument of the wrong type."""


@dataclass(frozen=True, slots=True)
class BuiltinDef:
    """Definition of a builtin function."""

    name: str
    arity: int
    func: Callable[[Host, list[Any]], Any]


def _print(host: Host, args: list[Any]) -> None:
    host.on_print(display_text(args[0]))


def _debug(host: Host, args: list[Any]) -> None:
    host.on_debug(debug_text(args[0]))


def _len(host: Host, args: list[Any]) -> int:
    value = args[0]
    if not isinstance(value, StringValue):
        raise ArgumentError(f"len() expects a string, got {type_name(value)}")
    return value.length()


def _type_of(host: Host, args: list[Any]) -> StringValue:
    return StringValue(type_name(args[0]))


def _to_string(host: Host, args: list[Any]) -> StringValue:
    return to_display_string(args[0])


def _make_builtins() -> dict[str, BuiltinDef]:
    defs: dict[str, BuiltinDef] = {}

    def d(name: str, arity: int, func: Callable[[Host, list[Any]], Any]) -> None:
        defs[name] = BuiltinDef(name, arity, func)

    # Output
    d("print", 1, _print)
    d("debug", 1, _debug)

    # Strings and introspection
    d("len", 1, _len)
    d("type_of", 1, _type_of)
    d("to_string", 1, _to_string)

    return defs


BUILTINS: dict[str, BuiltinDef] = _make_builtins()
