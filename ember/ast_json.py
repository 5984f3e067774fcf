"""JSON serialization/deserialization for Ember AST.

This module converts between Ember AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. It supports a full
round-trip for all node types and `TypeSpec`. Source positions are kept
under a `"pos"` key as `[line, column]` so that errors raised while
running a deserialized program still point at the original source.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .ast import (
    Program,
    ExternDecl,
    DataDecl,
    ConstructorDecl,
    TypeDecl,
    Param,
    FunDecl,
    Literal,
    UnitLiteral,
    Var,
    Call,
    IntrinsicCall,
    DirectiveCall,
    Construct,
    Arm,
    Case,
    Let,
    Seq,
    Lambda,
    Block,
    PatternVar,
    PatternWild,
    PatternLit,
    PatternCtor,
)
from .errors import SourcePosition
from .recursion import recursion_limit
from .types import TypeSpec


def typespec_to_obj(t: TypeSpec) -> Dict[str, Any]:
    return {"kind": t.kind, "args": [typespec_to_obj(a) for a in t.args]}


def typespec_from_obj(o: Dict[str, Any]) -> TypeSpec:
    return TypeSpec(o["kind"], tuple(typespec_from_obj(x) for x in o.get("args", [])))


def _node(type_name: str, node: Any, **entries: Any) -> Dict[str, Any]:
    obj: Dict[str, Any] = {"type": type_name}
    obj.update(entries)
    if node.position is not None:
        obj["pos"] = [node.position.line, node.position.column]
    return obj


def _pos(obj: Dict[str, Any]) -> Optional[SourcePosition]:
    pos = obj.get("pos")
    if pos is None:
        return None
    return SourcePosition(int(pos[0]), int(pos[1]))


def ast_to_obj(node: Any) -> Any:
    with recursion_limit():
        return _to_obj(node)


def ast_from_obj(obj: Any) -> Any:
    with recursion_limit():
        return _from_obj(obj)


def _literal(kind: str, value: Any) -> Any:
    if kind == "Int":
        return int(value)
    if kind == "Real":
        return float(value)
    if kind == "Bool":
        return bool(value)
    if kind == "Char":
        return str(value)
    raise ValueError(f"Unknown literal kind: {kind}")


def _to_obj(node: Any) -> Any:
    # Primitives
    if node is None:
        return None
    if isinstance(node, (int, float, str, bool)):
        return node

    # TypeSpec
    if isinstance(node, TypeSpec):
        return {"__type__": "TypeSpec", "value": typespec_to_obj(node)}

    # Declarations
    if isinstance(node, Program):
        return _node("Program", node,
                     declarations=[_to_obj(d) for d in node.declarations],
                     body=_to_obj(node.body))
    if isinstance(node, ExternDecl):
        return _node("ExternDecl", node,
                     name=node.name,
                     type_params=list(node.type_params),
                     param_types=[_to_obj(t) for t in node.param_types],
                     return_type=_to_obj(node.return_type))
    if isinstance(node, DataDecl):
        return _node("DataDecl", node,
                     name=node.name,
                     type_params=list(node.type_params),
                     constructors=[_to_obj(c) for c in node.constructors])
    if isinstance(node, ConstructorDecl):
        return _node("ConstructorDecl", node,
                     name=node.name,
                     field_types=[_to_obj(t) for t in node.field_types])
    if isinstance(node, TypeDecl):
        return _node("TypeDecl", node,
                     name=node.name,
                     type_params=list(node.type_params),
                     type_spec=_to_obj(node.type_spec))
    if isinstance(node, Param):
        return _node("Param", node, name=node.name, type_spec=_to_obj(node.type_spec))
    if isinstance(node, FunDecl):
        return _node("FunDecl", node,
                     name=node.name,
                     type_params=list(node.type_params),
                     params=[_to_obj(p) for p in node.params],
                     return_type=_to_obj(node.return_type),
                     body=_to_obj(node.body))

    # Expressions
    if isinstance(node, Literal):
        return _node("Literal", node, value=node.value, kind=node.kind)
    if isinstance(node, UnitLiteral):
        return _node("UnitLiteral", node)
    if isinstance(node, Var):
        return _node("Var", node, name=node.name)
    if isinstance(node, Call):
        return _node("Call", node, callee=_to_obj(node.callee), args=[_to_obj(a) for a in node.args])
    if isinstance(node, IntrinsicCall):
        return _node("IntrinsicCall", node, op=node.op, args=[_to_obj(a) for a in node.args])
    if isinstance(node, DirectiveCall):
        return _node("DirectiveCall", node, name=node.name, args=[_to_obj(a) for a in node.args])
    if isinstance(node, Construct):
        return _node("Construct", node, constructor=node.constructor, args=[_to_obj(a) for a in node.args])
    if isinstance(node, Arm):
        return _node("Arm", node, pattern=_to_obj(node.pattern), body=_to_obj(node.body))
    if isinstance(node, Case):
        return _node("Case", node, scrutinee=_to_obj(node.scrutinee), arms=[_to_obj(a) for a in node.arms])
    if isinstance(node, Let):
        return _node("Let", node,
                     name=node.name,
                     type_spec=_to_obj(node.type_spec),
                     value=_to_obj(node.value),
                     body=_to_obj(node.body))
    if isinstance(node, Seq):
        return _node("Seq", node, first=_to_obj(node.first), rest=_to_obj(node.rest))
    if isinstance(node, Lambda):
        return _node("Lambda", node, params=list(node.params), body=_to_obj(node.body))
    if isinstance(node, Block):
        return _node("Block", node,
                     declarations=[_to_obj(d) for d in node.declarations],
                     body=_to_obj(node.body))

    # Patterns
    if isinstance(node, PatternVar):
        return _node("PatternVar", node, name=node.name)
    if isinstance(node, PatternWild):
        return _node("PatternWild", node)
    if isinstance(node, PatternLit):
        return _node("PatternLit", node, value=node.value, kind=node.kind)
    if isinstance(node, PatternCtor):
        return _node("PatternCtor", node, constructor=node.constructor, args=[_to_obj(a) for a in node.args])

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def _from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (int, float, str, bool)):
        return obj
    if isinstance(obj, dict) and obj.get("__type__") == "TypeSpec":
        return typespec_from_obj(obj["value"])
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    pos = _pos(obj)
    if t == "Program":
        return Program(
            declarations=[_from_obj(d) for d in obj["declarations"]],
            body=_from_obj(obj["body"]),
            position=pos,
        )
    if t == "ExternDecl":
        return ExternDecl(
            name=obj["name"],
            param_types=[_from_obj(x) for x in obj["param_types"]],
            return_type=_from_obj(obj["return_type"]),
            type_params=list(obj.get("type_params", [])),
            position=pos,
        )
    if t == "DataDecl":
        return DataDecl(
            name=obj["name"],
            type_params=list(obj.get("type_params", [])),
            constructors=[_from_obj(c) for c in obj["constructors"]],
            position=pos,
        )
    if t == "ConstructorDecl":
        return ConstructorDecl(name=obj["name"], field_types=[_from_obj(x) for x in obj["field_types"]],
                               position=pos)
    if t == "TypeDecl":
        return TypeDecl(
            name=obj["name"],
            type_params=list(obj.get("type_params", [])),
            type_spec=_from_obj(obj["type_spec"]),
            position=pos,
        )
    if t == "Param":
        return Param(name=obj["name"], type_spec=_from_obj(obj.get("type_spec")), position=pos)
    if t == "FunDecl":
        return FunDecl(
            name=obj["name"],
            params=[_from_obj(p) for p in obj["params"]],
            body=_from_obj(obj["body"]),
            return_type=_from_obj(obj.get("return_type")),
            type_params=list(obj.get("type_params", [])),
            position=pos,
        )
    if t == "Literal":
        kind = obj.get("kind", "Int")
        return Literal(value=_literal(kind, obj["value"]), kind=kind, position=pos)
    if t == "UnitLiteral":
        return UnitLiteral(position=pos)
    if t == "Var":
        return Var(name=obj["name"], position=pos)
    if t == "Call":
        return Call(callee=_from_obj(obj["callee"]), args=[_from_obj(a) for a in obj["args"]], position=pos)
    if t == "IntrinsicCall":
        return IntrinsicCall(op=obj["op"], args=[_from_obj(a) for a in obj["args"]], position=pos)
    if t == "DirectiveCall":
        return DirectiveCall(name=obj["name"], args=[_from_obj(a) for a in obj["args"]], position=pos)
    if t == "Construct":
        return Construct(constructor=obj["constructor"], args=[_from_obj(a) for a in obj["args"]], position=pos)
    if t == "Arm":
        return Arm(pattern=_from_obj(obj["pattern"]), body=_from_obj(obj["body"]), position=pos)
    if t == "Case":
        return Case(scrutinee=_from_obj(obj["scrutinee"]), arms=[_from_obj(a) for a in obj["arms"]],
                    position=pos)
    if t == "Let":
        return Let(
            name=obj["name"],
            value=_from_obj(obj["value"]),
            body=_from_obj(obj["body"]),
            type_spec=_from_obj(obj.get("type_spec")),
            position=pos,
        )
    if t == "Seq":
        return Seq(first=_from_obj(obj["first"]), rest=_from_obj(obj["rest"]), position=pos)
    if t == "Lambda":
        return Lambda(params=list(obj["params"]), body=_from_obj(obj["body"]), position=pos)
    if t == "Block":
        return Block(
            declarations=[_from_obj(d) for d in obj["declarations"]],
            body=_from_obj(obj["body"]),
            position=pos,
        )
    if t == "PatternVar":
        return PatternVar(name=obj["name"], position=pos)
    if t == "PatternWild":
        return PatternWild(position=pos)
    if t == "PatternLit":
        kind = obj.get("kind", "Int")
        return PatternLit(value=_literal(kind, obj["value"]), kind=kind, position=pos)
    if t == "PatternCtor":
        return PatternCtor(constructor=obj["constructor"], args=[_from_obj(a) for a in obj["args"]],
                           position=pos)

    raise ValueError(f"Unknown AST node type: {t}")
