"""Shared test fixtures and helpers."""

from __future__ import annotations

from typing import Any

import pytest

from strand.ast import Interpolated, Literal, Script, Segment
from strand.eval import evaluate
from strand.lexer import Lexer
from strand.parser import parse
from strand.scanner import DEFAULT_MAX_DEPTH, LiteralScanner
from strand.tokens import Cursor, DelimiterKind, Source, Token, TokenType


def stub_block_parser(cursor: Cursor, scanner: LiteralScanner) -> tuple[str, Cursor]:
    """Block parser stand-in: the handle is the raw code up to the next '}'.

    Nested string literals are not recognised, which keeps scanner tests
    independent of the real parser.
    """
    text = cursor.source.text
    end = text.find("}", cursor.offset)
    if end < 0:
        end = len(text)
    return text[cursor.offset : end], Cursor(cursor.source, end)


@pytest.fixture
def scan():
    """Return a helper that scans one literal starting at offset 0 of source."""

    def _scan(
        source: str,
        parse_block: Any = stub_block_parser,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> tuple[tuple[Segment, ...], Cursor]:
        buffer = Source(source)
        scanner = LiteralScanner(parse_block, max_depth)
        return scanner.scan(buffer.cursor(), DelimiterKind(source[0]))

    return _scan


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        scanner = LiteralScanner(stub_block_parser)
        lexer = Lexer(Source(source).cursor(), scanner)
        tokens = []
        while True:
            tok = lexer.next_token()
            if tok.type == TokenType.EOF:
                return tokens
            tokens.append(tok)

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a Script."""

    def _parse(source: str, **kwargs: Any) -> Script:
        return parse(source, **kwargs)

    return _parse


@pytest.fixture
def run_source():
    """Return a helper that runs source and returns (printed lines, final value)."""

    def _run(source: str, env: dict[str, str] | None = None) -> tuple[list[str], Any]:
        printed: list[str] = []
        script = parse(source)
        result = evaluate(script, source, env=env, on_print=printed.append, on_debug=printed.append)
        return printed, result

    return _run


def literal_texts(segments: tuple[Segment, ...]) -> list[str | None]:
    """Return segment texts, None standing in for each interpolation."""
    return [s.text if isinstance(s, Literal) else None for s in segments]


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def single_interpolation(segments: tuple[Segment, ...]) -> Interpolated:
    """Assert exactly one Interpolated segment and return it."""
    found = [s for s in segments if isinstance(s, Interpolated)]
    assert len(found) == 1, f"Expected one interpolation, got {len(found)}"
    return found[0]
