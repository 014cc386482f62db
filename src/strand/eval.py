"""Tree-walking evaluator for Strand scripts."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from strand.ast import (
    Assign,
    Binary,
    Block,
    BoolLiteral,
    Call,
    CharLiteral,
    Expr,
    ExprStmt,
    FloatLiteral,
    Identifier,
    If,
    Index,
    IntLiteral,
    Let,
    Script,
    Stmt,
    StringLiteral,
    Unary,
    While,
)
from strand.builtins import BUILTINS, ArgumentError
from strand.compose import compose
from strand.errors import EvalError, IndexOutOfRange
from strand.tokens import Span
from strand.values import StringValue, string_add, type_name

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


def _stdout(text: str) -> None:
    print(text)


@dataclass
class Binding:
    """A named value in a scope."""

    value: Any
    constant: bool = False


@dataclass
class EvalContext:
    """State carried through evaluation."""

    source: str
    scopes: list[dict[str, Binding]] = field(default_factory=lambda: [{}])
    on_print: Callable[[str], None] = _stdout
    on_debug: Callable[[str], None] = _stdout
    max_steps: int | None = None
    steps: int = 0


def evaluate(
    script: Script,
    source: str,
    env: dict[str, str] | None = None,
    on_print: Callable[[str], None] | None = None,
    on_debug: Callable[[str], None] | None = None,
    max_steps: int | None = None,
) -> Any:
    """Run a parsed script and return the value of its final expression.

    *max_steps* caps the total number of loop iterations across the run;
    None means no cap.
    """
    ctx = EvalContext(source=source, max_steps=max_steps)
    if on_print is not None:
        ctx.on_print = on_print
    if on_debug is not None:
        ctx.on_debug = on_debug
    if env:
        for name, value in env.items():
            ctx.scopes[0][name] = Binding(StringValue(value), constant=True)
    return _run_statements(script.statements, ctx)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def _run_statements(statements: tuple[Stmt, ...], ctx: EvalContext) -> Any:
    """Execute statements in order; the result is the trailing unterminated expression."""
    result: Any = None
    for stmt in statements:
        result = _exec_stmt(stmt, ctx)
    if statements and isinstance(statements[-1], ExprStmt) and not statements[-1].terminated:
        return result
    return None


def _eval_block(block: Block, ctx: EvalContext) -> Any:
    ctx.scopes.append({})
    try:
        return _run_statements(block.statements, ctx)
    finally:
        ctx.scopes.pop()


def _exec_stmt(stmt: Stmt, ctx: EvalContext) -> Any:
    if isinstance(stmt, ExprStmt):
        return _eval_expr(stmt.expr, ctx)

    if isinstance(stmt, Let):
        value = _eval_expr(stmt.value, ctx) if stmt.value is not None else None
        ctx.scopes[-1][stmt.name] = Binding(_owned(value), stmt.constant)
        return None

    if isinstance(stmt, Assign):
        _exec_assign(stmt, ctx)
        return None

    if isinstance(stmt, While):
        while _condition(stmt.condition, ctx):
            _count_step(stmt, ctx)
            _eval_block(stmt.body, ctx)
        return None

    raise EvalError(f"unsupported statement {type(stmt).__name__}", stmt.span, ctx.source)


def _count_step(stmt: While, ctx: EvalContext) -> None:
    ctx.steps += 1
    if ctx.max_steps is not None and ctx.steps > ctx.max_steps:
        raise EvalError(f"loop iteration limit ({ctx.max_steps}) exceeded", stmt.span, ctx.source)


def _exec_assign(stmt: Assign, ctx: EvalContext) -> None:
    target = stmt.target

    if isinstance(target, Identifier):
        binding = _lookup(target, ctx)
        _check_mutable(binding, target, ctx)
        binding.value = _owned(_eval_expr(stmt.value, ctx))
        return

    # name[index] = char
    if not isinstance(target.target, Identifier):
        raise EvalError("indexed assignment needs a variable on the left", target.span, ctx.source)
    binding = _lookup(target.target, ctx)
    _check_mutable(binding, target.target, ctx)
    if not isinstance(binding.value, StringValue):
        raise EvalError(
            f"cannot index into {type_name(binding.value)}", target.target.span, ctx.source
        )
    index = _index_value(target.index, ctx)
    value = _eval_expr(stmt.value, ctx)
    if not isinstance(value, str):
        raise EvalError(
            f"string element must be a char, got {type_name(value)}", stmt.value.span, ctx.source
        )
    _check_bounds(binding.value, index, target.span, ctx)
    binding.value.set(index, value)


def _owned(value: Any) -> Any:
    """Strings are copied on binding so no two names share one buffer."""
    if isinstance(value, StringValue):
        return value.copy()
    return value


def _lookup(ident: Identifier, ctx: EvalContext) -> Binding:
    for scope in reversed(ctx.scopes):
        if ident.name in scope:
            return scope[ident.name]
    raise EvalError(f"undefined variable '{ident.name}'", ident.span, ctx.source)


def _check_mutable(binding: Binding, ident: Identifier, ctx: EvalContext) -> None:
    if binding.constant:
        raise EvalError(f"cannot assign to constant '{ident.name}'", ident.span, ctx.source)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def _eval_expr(expr: Expr, ctx: EvalContext) -> Any:
    if isinstance(expr, (IntLiteral, FloatLiteral, BoolLiteral, CharLiteral)):
        return expr.value

    if isinstance(expr, StringLiteral):
        return compose(expr.segments, lambda block: _eval_block(block, ctx))

    if isinstance(expr, Identifier):
        return _lookup(expr, ctx).value

    if isinstance(expr, Unary):
        return _eval_unary(expr, ctx)

    if isinstance(expr, Binary):
        return _eval_binary(expr, ctx)

    if isinstance(expr, Index):
        target = _eval_expr(expr.target, ctx)
        if not isinstance(target, StringValue):
            raise EvalError(f"cannot index into {type_name(target)}", expr.target.span, ctx.source)
        index = _index_value(expr.index, ctx)
        _check_bounds(target, index, expr.span, ctx)
        return target.get(index)

    if isinstance(expr, Call):
        return _eval_call(expr, ctx)

    if isinstance(expr, Block):
        return _eval_block(expr, ctx)

    if isinstance(expr, If):
        return _eval_if(expr, ctx)

    raise EvalError(f"unsupported expression {type(expr).__name__}", expr.span, ctx.source)


def _index_value(expr: Expr, ctx: EvalContext) -> int:
    index = _eval_expr(expr, ctx)
    if isinstance(index, bool) or not isinstance(index, int):
        raise EvalError(f"string index must be an integer, got {type_name(index)}", expr.span, ctx.source)
    return index


def _check_bounds(value: StringValue, index: int, span: Span, ctx: EvalContext) -> None:
    if not 0 <= index < value.length():
        raise IndexOutOfRange(index, value.length(), span, ctx.source)


def _condition(expr: Expr, ctx: EvalContext) -> bool:
    return _as_bool(_eval_expr(expr, ctx), expr, ctx)


def _as_bool(value: Any, expr: Expr, ctx: EvalContext) -> bool:
    if not isinstance(value, bool):
        raise EvalError(f"condition must be a bool, got {type_name(value)}", expr.span, ctx.source)
    return value


def _eval_if(expr: If, ctx: EvalContext) -> Any:
    if _condition(expr.condition, ctx):
        return _eval_block(expr.then_branch, ctx)
    if isinstance(expr.else_branch, Block):
        return _eval_block(expr.else_branch, ctx)
    if isinstance(expr.else_branch, If):
        return _eval_if(expr.else_branch, ctx)
    return None


def _eval_call(expr: Call, ctx: EvalContext) -> Any:
    builtin = BUILTINS.get(expr.name)
    if builtin is None:
        raise EvalError(f"unknown function '{expr.name}'", expr.span, ctx.source)
    if len(expr.args) != builtin.arity:
        raise EvalError(
            f"{expr.name}() takes {builtin.arity} argument(s), got {len(expr.args)}",
            expr.span,
            ctx.source,
        )
    args = [_eval_expr(arg, ctx) for arg in expr.args]
    try:
        return builtin.func(ctx, args)
    except ArgumentError as exc:
        raise EvalError(str(exc), expr.span, ctx.source) from exc


def _eval_unary(expr: Unary, ctx: EvalContext) -> Any:
    value = _eval_expr(expr.operand, ctx)
    if expr.op == "!":
        if not isinstance(value, bool):
            raise EvalError(f"'!' expects a bool, got {type_name(value)}", expr.span, ctx.source)
        return not value
    if not _is_number(value):
        raise EvalError(f"'-' expects a number, got {type_name(value)}", expr.span, ctx.source)
    return _checked(-value, expr.span, ctx)


def _eval_binary(expr: Binary, ctx: EvalContext) -> Any:
    # Operator chains parse left-deep; fold along the left spine so a long
    # chain costs no recursion per operand.
    spine: list[Binary] = []
    node: Expr = expr
    while isinstance(node, Binary):
        spine.append(node)
        node = node.left
    value = _eval_expr(node, ctx)
    for binary in reversed(spine):
        value = _apply_binary(binary, value, ctx)
    return value


def _apply_binary(expr: Binary, left: Any, ctx: EvalContext) -> Any:
    op = expr.op

    if op in ("&&", "||"):
        left = _as_bool(left, expr.left, ctx)
        if op == "&&" and not left:
            return False
        if op == "||" and left:
            return True
        return _condition(expr.right, ctx)

    right = _eval_expr(expr.right, ctx)

    if op == "+" and (_is_text(left) or _is_text(right)):
        return string_add(left, right)

    if op == "==":
        return _equals(left, right)
    if op == "!=":
        return not _equals(left, right)

    if op in ("<", "<=", ">", ">="):
        return _ordered(op, left, right, expr, ctx)

    if not (_is_number(left) and _is_number(right)):
        raise EvalError(
            f"unsupported operand types for '{op}': {type_name(left)} and {type_name(right)}",
            expr.span,
            ctx.source,
        )
    return _arithmetic(op, left, right, expr, ctx)


def _is_text(value: Any) -> bool:
    return isinstance(value, (StringValue, str))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equals(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def _ordered(op: str, left: Any, right: Any, expr: Binary, ctx: EvalContext) -> bool:
    comparable = (
        (_is_number(left) and _is_number(right))
        or (isinstance(left, StringValue) and isinstance(right, StringValue))
        or (isinstance(left, str) and isinstance(right, str))
    )
    if not comparable:
        raise EvalError(
            f"cannot compare {type_name(left)} with {type_name(right)}", expr.span, ctx.source
        )
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    return left >= right


def _arithmetic(op: str, left: Any, right: Any, expr: Binary, ctx: EvalContext) -> Any:
    if op in ("/", "%") and right == 0:
        raise EvalError("division by zero", expr.span, ctx.source)

    both_int = isinstance(left, int) and isinstance(right, int)
    if op == "+":
        result = left + right
    elif op == "-":
        result = left - right
    elif op == "*":
        result = left * right
    elif op == "/":
        result = _int_div(left, right) if both_int else left / right
    elif op == "%":
        result = left - right * _int_div(left, right) if both_int else _float_rem(left, right)
    else:
        raise EvalError(f"unknown operator '{op}'", expr.span, ctx.source)
    return _checked(result, expr.span, ctx)


def _int_div(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def _float_rem(left: float, right: float) -> float:
    return math.fmod(left, right)


def _checked(value: Any, span: Span, ctx: EvalContext) -> Any:
    if isinstance(value, int) and not _I64_MIN <= value <= _I64_MAX:
        raise EvalError("integer overflow", span, ctx.source)
    return value
