"""Test literal scanning: segments, continuation, delimiters, and the context stack."""

import pytest

from strand.ast import Interpolated, Literal
from strand.errors import (
    InvalidEscapeSequence,
    MaxNestingExceeded,
    UnterminatedInterpolation,
    UnterminatedStringLiteral,
)
from strand.scanner import (
    ContextStack,
    InterpolationCode,
    LiteralScanner,
    LiteralText,
    parse_string_literal,
)
from strand.tokens import Cursor, DelimiterKind, Source

from .conftest import literal_texts, single_interpolation, stub_block_parser


class TestPlainLiterals:
    def test_simple(self, scan):
        segments, end = scan('"hello"')
        assert literal_texts(segments) == ["hello"]
        assert end.offset == 7

    def test_empty(self, scan):
        segments, end = scan('""')
        assert literal_texts(segments) == [""]
        assert end.offset == 2

    def test_stops_at_closing_quote(self, scan):
        segments, end = scan('"ab" + "cd"')
        assert literal_texts(segments) == ["ab"]
        assert end.offset == 4

    def test_escapes_decoded(self, scan):
        segments, _ = scan('"a\\tb\\x40\\u2764"')
        assert literal_texts(segments) == ["a\tb@❤"]

    def test_escaped_quote(self, scan):
        segments, _ = scan('"say \\"hi\\""')
        assert literal_texts(segments) == ['say "hi"']

    def test_backtick_in_quoted(self, scan):
        segments, _ = scan('"a`b"')
        assert literal_texts(segments) == ["a`b"]

    def test_literal_span(self, scan):
        segments, _ = scan('"abc"')
        assert segments[0].span.start.offset == 1
        assert segments[0].span.end.offset == 4

    def test_scan_from_middle_of_source(self):
        source = Source('let x = "mid";')
        segments, end = LiteralScanner(stub_block_parser).scan(
            source.cursor(8), DelimiterKind.DOUBLE_QUOTED
        )
        assert literal_texts(segments) == ["mid"]
        assert source.char_at(end.offset) == ";"

    def test_cursor_not_on_delimiter(self):
        source = Source("abc")
        with pytest.raises(ValueError):
            LiteralScanner(stub_block_parser).scan(source.cursor(), DelimiterKind.DOUBLE_QUOTED)


class TestMultiline:
    def test_raw_newline_kept(self, scan):
        segments, _ = scan("`line one\nline two`")
        assert literal_texts(segments) == ["line one\nline two"]

    def test_double_quote_inside(self, scan):
        segments, _ = scan('`say "hi"`')
        assert literal_texts(segments) == ['say "hi"']

    def test_escaped_backtick(self, scan):
        segments, _ = scan("`a\\`b`")
        assert literal_texts(segments) == ["a`b"]

    def test_raw_newline_in_quoted_rejected(self, scan):
        with pytest.raises(UnterminatedStringLiteral, match="line break"):
            scan('"line one\nline two"')

    def test_raw_crlf_in_quoted_rejected(self, scan):
        with pytest.raises(UnterminatedStringLiteral):
            scan('"line one\r\nline two"')

    def test_raw_lone_cr_in_quoted_rejected(self, scan):
        with pytest.raises(UnterminatedStringLiteral, match="line break"):
            scan('"line one\rline two"')

    def test_lone_cr_kept_in_multiline(self, scan):
        segments, _ = scan("`line one\rline two`")
        assert literal_texts(segments) == ["line one\rline two"]


class TestLineContinuation:
    def test_joins_lines(self, scan):
        segments, _ = scan('"one, \\\ntwo"')
        assert literal_texts(segments) == ["one, two"]

    def test_skips_indentation(self, scan):
        segments, _ = scan('"one, \\\n    \t two"')
        assert literal_texts(segments) == ["one, two"]

    def test_crlf(self, scan):
        segments, _ = scan('"one, \\\r\n  two"')
        assert literal_texts(segments) == ["one, two"]

    def test_lone_cr(self, scan):
        segments, _ = scan('"one, \\\r  two"')
        assert literal_texts(segments) == ["one, two"]

    def test_in_multiline(self, scan):
        segments, _ = scan("`one \\\n   two\nthree`")
        assert literal_texts(segments) == ["one two\nthree"]

    def test_blank_line_not_swallowed(self, scan):
        segments, _ = scan("`a\\\n\nb`")
        assert literal_texts(segments) == ["a\nb"]

    def test_at_end_of_literal(self, scan):
        segments, _ = scan('"abc\\\n"')
        assert literal_texts(segments) == ["abc"]


class TestInterpolationSegments:
    def test_single(self, scan):
        segments, end = scan('"a ${x} b"')
        assert literal_texts(segments) == ["a ", None, " b"]
        interp = single_interpolation(segments)
        assert interp.handle == "x"
        assert end.offset == 10

    def test_interpolation_span(self, scan):
        segments, _ = scan('"a ${x} b"')
        interp = single_interpolation(segments)
        assert interp.span.start.offset == 3
        assert interp.span.end.offset == 7

    def test_only_interpolation(self, scan):
        segments, _ = scan('"${x}"')
        assert literal_texts(segments) == [None]

    def test_adjacent_interpolations(self, scan):
        segments, _ = scan('"${a}${b}"')
        assert [s.handle for s in segments] == ["a", "b"]

    def test_order_preserved(self, scan):
        segments, _ = scan('"1${a}2${b}3"')
        assert literal_texts(segments) == ["1", None, "2", None, "3"]
        assert all(isinstance(s, (Literal, Interpolated)) for s in segments)

    def test_escaped_dollar_brace(self, scan):
        segments, _ = scan('"cost: \\${x}"')
        assert literal_texts(segments) == ["cost: ${x}"]

    def test_lone_dollar(self, scan):
        segments, _ = scan('"$5 and $ {x}"')
        assert literal_texts(segments) == ["$5 and $ {x}"]

    def test_interpolation_in_multiline(self, scan):
        segments, _ = scan("`a\n${x}\nb`")
        assert literal_texts(segments) == ["a\n", None, "\nb"]


class TestScanErrors:
    def test_unterminated(self, scan):
        with pytest.raises(UnterminatedStringLiteral) as exc_info:
            scan('"abc')
        assert exc_info.value.offset == 0

    def test_unterminated_multiline(self, scan):
        with pytest.raises(UnterminatedStringLiteral):
            scan("`abc\ndef")

    def test_invalid_escape(self, scan):
        with pytest.raises(InvalidEscapeSequence) as exc_info:
            scan('"ab\\qcd"')
        assert exc_info.value.offset == 3

    def test_unterminated_interpolation(self, scan):
        with pytest.raises(UnterminatedInterpolation):
            scan('"a ${x')

    def test_closing_quote_is_not_a_closing_brace(self):
        # Block parser that consumes everything it is given
        def greedy(cursor, scanner):
            return None, Cursor(cursor.source, len(cursor.source))

        with pytest.raises(UnterminatedInterpolation):
            parse_string_literal(Source('"a ${x"').cursor(), DelimiterKind.DOUBLE_QUOTED, greedy)


def nesting_block_parser(cursor, scanner):
    """Block parser that scans one nested literal if the code starts with one."""
    delim = cursor.peek()
    if delim in ('"', "`"):
        segments, end = scanner.scan(cursor, DelimiterKind(delim))
        return segments, end
    return stub_block_parser(cursor, scanner)


class TestContextStack:
    def test_push_pop(self):
        stack = ContextStack(4)
        cursor = Source("x").cursor()
        stack.push(LiteralText(DelimiterKind.DOUBLE_QUOTED), cursor)
        stack.push(InterpolationCode(DelimiterKind.DOUBLE_QUOTED), cursor)
        assert stack.depth == 2
        assert stack.top == InterpolationCode(DelimiterKind.DOUBLE_QUOTED)
        assert stack.pop() == InterpolationCode(DelimiterKind.DOUBLE_QUOTED)
        assert stack.top == LiteralText(DelimiterKind.DOUBLE_QUOTED)
        assert not stack.top.is_multiline

    def test_empty_top(self):
        assert ContextStack().top is None

    def test_push_past_limit(self):
        stack = ContextStack(1)
        cursor = Source("x").cursor()
        stack.push(LiteralText(DelimiterKind.BACKTICK_MULTILINE), cursor)
        with pytest.raises(MaxNestingExceeded) as exc_info:
            stack.push(InterpolationCode(DelimiterKind.BACKTICK_MULTILINE), cursor)
        assert exc_info.value.limit == 1

    def test_balanced_after_scan(self):
        scanner = LiteralScanner(nesting_block_parser)
        scanner.scan(Source('"a${"b${x}c"}d"').cursor(), DelimiterKind.DOUBLE_QUOTED)
        assert scanner.context.depth == 0

    def test_balanced_after_error(self):
        scanner = LiteralScanner(nesting_block_parser)
        with pytest.raises(UnterminatedStringLiteral):
            scanner.scan(Source('"a${"b').cursor(), DelimiterKind.DOUBLE_QUOTED)
        assert scanner.context.depth == 0

    def test_depth_during_nested_scan(self):
        seen = []

        def recording(cursor, scanner):
            seen.append(scanner.context.depth)
            return nesting_block_parser(cursor, scanner)

        scanner = LiteralScanner(recording)
        scanner.scan(Source('"${"${x}"}"').cursor(), DelimiterKind.DOUBLE_QUOTED)
        assert seen == [2, 4]

    def test_mode_records_return_delimiter(self):
        modes = []

        def recording(cursor, scanner):
            modes.append(scanner.context.top)
            return stub_block_parser(cursor, scanner)

        scanner = LiteralScanner(recording)
        scanner.scan(Source("`${x}`").cursor(), DelimiterKind.BACKTICK_MULTILINE)
        assert modes == [InterpolationCode(DelimiterKind.BACKTICK_MULTILINE)]


class TestNestingLimit:
    @staticmethod
    def nested(levels: int) -> str:
        text = "x"
        for _ in range(levels):
            text = '"${' + text + '}"'
        return text

    def test_within_limit(self, scan):
        segments, _ = scan(self.nested(3), nesting_block_parser, max_depth=6)
        assert len(segments) == 1

    def test_over_limit(self, scan):
        with pytest.raises(MaxNestingExceeded):
            scan(self.nested(4), nesting_block_parser, max_depth=6)

    def test_deep_input_fails_cleanly(self, scan):
        with pytest.raises(MaxNestingExceeded):
            scan(self.nested(500), nesting_block_parser)
