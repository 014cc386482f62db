"""--debug AST dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from strand.ast import (
    Assign,
    Binary,
    Block,
    BoolLiteral,
    Call,
    CharLiteral,
    ExprStmt,
    FloatLiteral,
    Identifier,
    If,
    Index,
    Interpolated,
    IntLiteral,
    Let,
    Literal,
    Script,
    StringLiteral,
    Unary,
    While,
)


def dump_ast(script: Script, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable AST tree to *file*."""
    file.write("Script\n")
    for stmt in script.statements:
        _dump_node(stmt, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(node: object, depth: int, f: TextIO) -> None:
    pad = _indent(depth)

    if isinstance(node, (IntLiteral, FloatLiteral, BoolLiteral, CharLiteral)):
        f.write(f"{pad}{type(node).__name__}({node.value!r})\n")
    elif isinstance(node, Identifier):
        f.write(f"{pad}Identifier({node.name})\n")
    elif isinstance(node, StringLiteral):
        f.write(f"{pad}StringLiteral {node.delimiter.value}\n")
        for segment in node.segments:
            _dump_segment(segment, depth + 1, f)
    elif isinstance(node, Unary):
        f.write(f"{pad}Unary {node.op}\n")
        _dump_node(node.operand, depth + 1, f)
    elif isinstance(node, Binary):
        _dump_binary(node, depth, f)
    elif isinstance(node, Index):
        f.write(f"{pad}Index\n")
        _dump_node(node.target, depth + 1, f)
        _dump_node(node.index, depth + 1, f)
    elif isinstance(node, Call):
        f.write(f"{pad}Call {node.name}\n")
        for arg in node.args:
            _dump_node(arg, depth + 1, f)
    elif isinstance(node, Block):
        f.write(f"{pad}Block\n")
        for stmt in node.statements:
            _dump_node(stmt, depth + 1, f)
    elif isinstance(node, If):
        f.write(f"{pad}If\n")
        _dump_node(node.condition, depth + 1, f)
        _dump_node(node.then_branch, depth + 1, f)
        if node.else_branch is not None:
            f.write(f"{pad}Else\n")
            _dump_node(node.else_branch, depth + 1, f)
    elif isinstance(node, Let):
        keyword = "Const" if node.constant else "Let"
        f.write(f"{pad}{keyword} {node.name}\n")
        if node.value is not None:
            _dump_node(node.value, depth + 1, f)
    elif isinstance(node, Assign):
        f.write(f"{pad}Assign\n")
        _dump_node(node.target, depth + 1, f)
        _dump_node(node.value, depth + 1, f)
    elif isinstance(node, While):
        f.write(f"{pad}While\n")
        _dump_node(node.condition, depth + 1, f)
        _dump_node(node.body, depth + 1, f)
    elif isinstance(node, ExprStmt):
        _dump_node(node.expr, depth, f)
    else:
        f.write(f"{pad}{type(node).__name__}\n")


def _dump_binary(node: Binary, depth: int, f: TextIO) -> None:
    # Same layout as a recursive dump, walked along the left spine so long
    # operator chains do not recurse per operand.
    spine: list[Binary] = []
    left: object = node
    while isinstance(left, Binary):
        f.write(f"{_indent(depth + len(spine))}Binary {left.op}\n")
        spine.append(left)
        left = left.left
    _dump_node(left, depth + len(spine), f)
    for level in range(len(spine) - 1, -1, -1):
        _dump_node(spine[level].right, depth + level + 1, f)


def _dump_segment(segment: Literal | Interpolated, depth: int, f: TextIO) -> None:
    if isinstance(segment, Literal):
        f.write(f"{_indent(depth)}Literal({segment.text!r})\n")
    else:
        f.write(f"{_indent(depth)}Interpolated\n")
        _dump_node(segment.handle, depth + 1, f)
