"""AST node types for parsed Strand scripts and string literals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from strand.tokens import DelimiterKind, Span

# ---------------------------------------------------------------------------
# String literal segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Literal:
    """Escape-decoded literal text."""

    text: str
    span: Span


@dataclass(frozen=True, slots=True)
class Interpolated:
    """An embedded ``${...}`` region; handle is whatever the block parser returned."""

    handle: Any
    span: Span


Segment = Literal | Interpolated


@dataclass(frozen=True, slots=True)
class StringLiteral:
    """Quoted or backtick string literal, in source order."""

    segments: tuple[Segment, ...]
    delimiter: DelimiterKind
    span: Span


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IntLiteral:
    value: int
    span: Span


@dataclass(frozen=True, slots=True)
class FloatLiteral:
    value: float
    span: Span


@dataclass(frozen=True, slots=True)
class BoolLiteral:
    value: bool
    span: Span


@dataclass(frozen=True, slots=True)
class CharLiteral:
    """Single resolved character."""

    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class Identifier:
    name: str
    span: Span


@dataclass(frozen=True, slots=True)
class Unary:
    op: str
    operand: Expr
    span: Span


@dataclass(frozen=True, slots=True)
class Binary:
    """Binary operator; '&&' and '||' short-circuit."""

    op: str
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True, slots=True)
class Index:
    """``target[index]``."""

    target: Expr
    index: Expr
    span: Span


@dataclass(frozen=True, slots=True)
class Call:
    """Call of a builtin by name."""

    name: str
    args: tuple[Expr, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Block:
    """Braced statement sequence; also the body of an interpolation.

    The value of a block is the value of its last statement when that is an
    expression statement without a trailing ';', otherwise unit.
    """

    statements: tuple[Stmt, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class If:
    condition: Expr
    then_branch: Block
    else_branch: Block | If | None
    span: Span


Expr = (
    StringLiteral
    | IntLiteral
    | FloatLiteral
    | BoolLiteral
    | CharLiteral
    | Identifier
    | Unary
    | Binary
    | Index
    | Call
    | Block
    | If
)

# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Let:
    """``let name = value;`` or ``const name = value;``."""

    name: str
    value: Expr | None
    constant: bool
    span: Span


@dataclass(frozen=True, slots=True)
class Assign:
    """``name = value;`` or ``name[index] = value;``."""

    target: Identifier | Index
    value: Expr
    span: Span


@dataclass(frozen=True, slots=True)
class While:
    condition: Expr
    body: Block
    span: Span


@dataclass(frozen=True, slots=True)
class ExprStmt:
    expr: Expr
    terminated: bool  # followed by ';'
    span: Span


Stmt = Let | Assign | While | ExprStmt


@dataclass(frozen=True, slots=True)
class Script:
    """Root node."""

    statements: tuple[Stmt, ...]
    span: Span
