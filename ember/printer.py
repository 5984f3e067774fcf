"""Render Ember ASTs back to source text.

The output uses two-space indentation and parses back to an equal AST:
`let` and `;` sequences that appear in expression position are wrapped
in `begin ... end`, and a lambda in callee position is parenthesized.
Literals print in their source form, with character escapes restored.
"""

from __future__ import annotations

from typing import List

from .ast import (
    Node, Program, ExternDecl, DataDecl, TypeDecl, FunDecl, Param,
    Literal, UnitLiteral, Var, Call, IntrinsicCall, DirectiveCall, Construct,
    Case, Let, Seq, Lambda, Block,
    Pattern, PatternVar, PatternWild, PatternLit, PatternCtor,
)
from .recursion import recursion_limit
from .types import TypeSpec


INDENT = '  '

CHAR_ESCAPES = {'\n': '\\n', '\r': '\\r', '\t': '\\t', '\0': '\\0', '\\': '\\\\', "'": "\\'"}


def _type_params(names: List[str]) -> str:
    return f"[{', '.join(names)}]" if names else ''


def _format_param(param: Param) -> str:
    if param.type_spec is None:
        return param.name
    return f"{param.name}: {param.type_spec!r}"


def format_literal(value, kind: str) -> str:
    if kind == 'Bool':
        return 'true' if value else 'false'
    if kind == 'Char':
        return f"'{CHAR_ESCAPES.get(value, value)}'"
    return repr(value)


def format_program(program: Program) -> str:
    with recursion_limit():
        return _format_program(program)


def _format_program(program: Program) -> str:
    lines = ['begin']
    for decl in program.declarations:
        lines.append(format_declaration(decl, 1))
    lines.append('in')
    lines.append(format_sequence(program.body, 1))
    lines.append('end')
    return '\n'.join(lines) + '\n'


def format_declaration(decl: Node, indent: int = 0) -> str:
    pad = INDENT * indent
    if isinstance(decl, ExternDecl):
        signature = TypeSpec.function(tuple(decl.param_types), decl.return_type)
        return f"{pad}extern {decl.name}{_type_params(decl.type_params)} : {signature!r};"
    if isinstance(decl, DataDecl):
        lines = [f"{pad}data {decl.name}{_type_params(decl.type_params)} ="]
        for ctor in decl.constructors:
            fields = f"({', '.join(repr(t) for t in ctor.field_types)})" if ctor.field_types else ''
            lines.append(f"{pad}{INDENT}| {ctor.name}{fields}")
        lines.append(f"{pad}end;")
        return '\n'.join(lines)
    if isinstance(decl, TypeDecl):
        return f"{pad}type {decl.name}{_type_params(decl.type_params)} = {decl.type_spec!r};"
    if isinstance(decl, FunDecl):
        params = ', '.join(_format_param(p) for p in decl.params)
        ret = f" -> {decl.return_type!r}" if decl.return_type is not None else ''
        header = f"{pad}fun {decl.name}{_type_params(decl.type_params)}({params}){ret} =>"
        return f"{header} {{\n{format_sequence(decl.body, indent + 1)}\n{pad}}}"
    raise TypeError(f"format_declaration: unexpected node type {type(decl).__name__}")


def format_sequence(node: Node, indent: int = 0) -> str:
    """Format `node` as the items of a sequence, one per line."""
    pad = INDENT * indent
    lines: List[str] = []
    while True:
        if isinstance(node, Let):
            annotation = f": {node.type_spec!r}" if node.type_spec is not None else ''
            lines.append(f"{pad}let {node.name}{annotation} = {format_expr(node.value, indent)};")
            node = node.body
        elif isinstance(node, Seq):
            lines.append(f"{pad}{format_expr(node.first, indent)};")
            node = node.rest
        else:
            lines.append(f"{pad}{format_expr(node, indent)}")
            return '\n'.join(lines)


def _format_args(args: List[Node], indent: int) -> str:
    return ', '.join([format_expr(a, indent) for a in args])


def _format_body(body: Node, indent: int) -> str:
    # Arm and lambda bodies: a bare expression, or a braced sequence.
    if isinstance(body, (Let, Seq)):
        return f"{{\n{format_sequence(body, indent + 1)}\n{INDENT * indent}}}"
    return format_expr(body, indent)


def format_expr(node: Node, indent: int = 0) -> str:
    """Format an expression; continuation lines are indented by `indent`."""
    pad = INDENT * indent
    if isinstance(node, Literal):
        return format_literal(node.value, node.kind)
    if isinstance(node, UnitLiteral):
        return '()'
    if isinstance(node, Var):
        return node.name
    if isinstance(node, Construct):
        if not node.args:
            return node.constructor
        return f"{node.constructor}({_format_args(node.args, indent)})"
    if isinstance(node, Call):
        callee = format_expr(node.callee, indent)
        if isinstance(node.callee, Lambda):
            callee = f"({callee})"
        return f"{callee}({_format_args(node.args, indent)})"
    if isinstance(node, IntrinsicCall):
        return f"@{node.op}({_format_args(node.args, indent)})"
    if isinstance(node, DirectiveCall):
        return f"#{node.name}({_format_args(node.args, indent)})"
    if isinstance(node, Case):
        lines = [f"case {format_expr(node.scrutinee, indent)} of"]
        for arm in node.arms:
            body = _format_body(arm.body, indent + 1)
            lines.append(f"{pad}{INDENT}| {format_pattern(arm.pattern)} => {body}")
        lines.append(f"{pad}end")
        return '\n'.join(lines)
    if isinstance(node, (Let, Seq)):
        return f"begin\n{format_sequence(node, indent + 1)}\n{pad}end"
    if isinstance(node, Lambda):
        return f"fn({', '.join(node.params)}) => {_format_body(node.body, indent)}"
    if isinstance(node, Block):
        lines = ['begin']
        for decl in node.declarations:
            lines.append(format_declaration(decl, indent + 1))
        lines.append(f"{pad}in")
        lines.append(format_sequence(node.body, indent + 1))
        lines.append(f"{pad}end")
        return '\n'.join(lines)
    raise TypeError(f"format_expr: unexpected node type {type(node).__name__}")


def format_pattern(pattern: Pattern) -> str:
    if isinstance(pattern, PatternWild):
        return '_'
    if isinstance(pattern, PatternVar):
        return pattern.name
    if isinstance(pattern, PatternLit):
        return format_literal(pattern.value, pattern.kind)
    if isinstance(pattern, PatternCtor):
        return f"{pattern.constructor}({', '.join([format_pattern(p) for p in pattern.args])})"
    raise TypeError(f"format_pattern: unexpected pattern type {type(pattern).__name__}")
