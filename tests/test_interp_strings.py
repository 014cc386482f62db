"""Test interpolated strings end to end: composition order, nesting, and display."""

import pytest

from strand.ast import Interpolated, Literal
from strand.compose import compose
from strand.errors import EvalError
from strand.values import StringValue


class TestCompose:
    def test_literals_only(self):
        result = compose([Literal("ab", None), Literal("cd", None)], lambda h: None)
        assert result == StringValue("abcd")

    def test_no_segments(self):
        assert compose([], lambda h: None).length() == 0

    def test_handles_evaluated_in_order(self):
        calls = []

        def evaluate(handle):
            calls.append(handle)
            return handle * 10

        segments = [
            Literal("<", None),
            Interpolated(1, None),
            Literal("|", None),
            Interpolated(2, None),
            Literal(">", None),
        ]
        result = compose(segments, evaluate)
        assert calls == [1, 2]
        assert str(result) == "<10|20>"

    def test_string_result_not_aliased(self):
        shared = StringValue("xy")
        result = compose([Interpolated("h", None)], lambda h: shared)
        result.set(0, "Z")
        assert str(shared) == "xy"

    def test_unit_displays_empty(self):
        result = compose([Literal("[", None), Interpolated("h", None), Literal("]", None)], lambda h: None)
        assert str(result) == "[]"

    def test_evaluate_error_propagates(self):
        def evaluate(handle):
            raise EvalError("boom", None, "")

        with pytest.raises(EvalError, match="boom"):
            compose([Literal("a", None), Interpolated("h", None)], evaluate)


class TestInterpolation:
    def test_variable(self, run_source):
        _, result = run_source('let name = "world"; "hello, ${name}!"')
        assert result == StringValue("hello, world!")

    def test_expression(self, run_source):
        _, result = run_source('"1 + 2 = ${1 + 2}"')
        assert result == StringValue("1 + 2 = 3")

    def test_statements_last_value_wins(self, run_source):
        _, result = run_source('"${ let a = 2; let b = 3; a * b }"')
        assert result == StringValue("6")

    def test_trailing_semicolon_gives_empty(self, run_source):
        _, result = run_source('"[${ 1 + 1; }]"')
        assert result == StringValue("[]")

    def test_empty_interpolation(self, run_source):
        _, result = run_source('"[${}]"')
        assert result == StringValue("[]")

    def test_display_of_values(self, run_source):
        _, result = run_source("\"${true} ${2.5} ${'c'} ${-3}\"")
        assert result == StringValue("true 2.5 c -3")

    def test_nested_literal(self, run_source):
        _, result = run_source('let x = "X"; "a${"b${x}c"}d"')
        assert result == StringValue("abXcd")

    def test_nested_with_statements(self, run_source):
        _, result = run_source(
            'let greeting = "outer ${ let inner = "in${"ne" + "r"}most"; inner + "!" } done"; greeting'
        )
        assert result == StringValue("outer innermost! done")

    def test_interpolation_scope_is_local(self, run_source):
        with pytest.raises(EvalError, match="undefined variable 'tmp'"):
            run_source('let s = "${ let tmp = 1; tmp }"; tmp')

    def test_interpolation_sees_outer_bindings(self, run_source):
        _, result = run_source('let n = 1; { let n = 2; "${n}" }')
        assert result == StringValue("2")

    def test_side_effects_in_order(self, run_source):
        printed, _ = run_source('let s = "${ print("first"); 1 }-${ print("second"); 2 }"; print(s);')
        assert printed == ["first", "second", "1-2"]

    def test_interpolation_mutates_outer(self, run_source):
        _, result = run_source('let count = 0; let s = "${ count = count + 1; }${ count = count + 1; }"; count')
        assert result == 2

    def test_if_expression(self, run_source):
        _, result = run_source('let n = 1; "${n} item${ if n == 1 { "" } else { "s" } }"')
        assert result == StringValue("1 item")

    def test_multiline(self, run_source):
        _, result = run_source('let who = "you"; `dear ${who},\n  hello`')
        assert str(result) == "dear you,\n  hello"

    def test_escaped_dollar_brace_stays_literal(self, run_source):
        _, result = run_source('let name = "x"; "\\${name}"')
        assert result == StringValue("${name}")

    def test_continuation(self, run_source):
        _, result = run_source('"one, \\\n     two"')
        assert result == StringValue("one, two")

    def test_continuation_in_nested_literal(self, run_source):
        _, result = run_source('let x = "v"; "a ${ "b \\\n      c${x}" } d"')
        assert result == StringValue("a b cv d")

    def test_runtime_error_inside_interpolation(self, run_source):
        with pytest.raises(EvalError, match="undefined variable 'missing'"):
            run_source('"value: ${missing}"')

    def test_deep_but_allowed_nesting(self, run_source):
        source = "1"
        for _ in range(8):
            source = '"${' + source + '}"'
        _, result = run_source(source)
        assert result == StringValue("1")
