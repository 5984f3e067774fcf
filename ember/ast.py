"""Abstract Syntax Tree (AST) definitions for the Ember language.

The AST classes defined in this module represent the syntactic structure
of parsed Ember programs: top-level declarations, expressions and case
patterns. Each node corresponds to a construct in the Ember grammar and
may carry the source position it was parsed from. Positions never take
part in node equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, Optional

from .errors import SourcePosition
from .types import TypeSpec


@dataclass
class Node:
    """Base class for all AST nodes."""
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False, kw_only=True)


###############################################################################
# Declarations
###############################################################################


@dataclass
class ExternDecl(Node):
    name: str
    param_types: List[TypeSpec]
    return_type: TypeSpec
    type_params: List[str] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.param_types)


@dataclass
class ConstructorDecl(Node):
    name: str
    field_types: List[TypeSpec]

    @property
    def arity(self) -> int:
        return len(self.field_types)


@dataclass
class DataDecl(Node):
    name: str
    type_params: List[str]
    constructors: List[ConstructorDecl]


@dataclass
class TypeDecl(Node):
    """`type Name[T] = type;`, an alias kept for documentation only."""
    name: str
    type_params: List[str]
    type_spec: TypeSpec


@dataclass
class Param(Node):
    name: str
    type_spec: Optional[TypeSpec] = None  # documentation only


@dataclass
class FunDecl(Node):
    name: str
    params: List[Param]
    body: Node
    return_type: Optional[TypeSpec] = None
    type_params: List[str] = field(default_factory=list)

    @property
    def param_names(self) -> List[str]:
        return [p.name for p in self.params]


@dataclass
class Program(Node):
    declarations: List[Node]
    body: Node

    @property
    def externs(self) -> Dict[str, ExternDecl]:
        return {d.name: d for d in self.declarations if isinstance(d, ExternDecl)}

    @property
    def data_decls(self) -> List[DataDecl]:
        return [d for d in self.declarations if isinstance(d, DataDecl)]

    @property
    def functions(self) -> List[FunDecl]:
        return [d for d in self.declarations if isinstance(d, FunDecl)]


###############################################################################
# Expressions
###############################################################################


@dataclass
class Literal(Node):
    value: Any
    kind: str = 'Int'  # Int, Real, Bool or Char


@dataclass
class UnitLiteral(Node):
    pass


@dataclass
class Var(Node):
    name: str


@dataclass
class Call(Node):
    callee: Node
    args: List[Node]


@dataclass
class IntrinsicCall(Node):
    op: str
    args: List[Node]


@dataclass
class DirectiveCall(Node):
    name: str
    args: List[Node]


@dataclass
class Construct(Node):
    constructor: str
    args: List[Node]


@dataclass
class Arm(Node):
    pattern: 'Pattern'
    body: Node


@dataclass
class Case(Node):
    scrutinee: Node
    arms: List[Arm]


@dataclass
class Let(Node):
    name: str
    value: Node
    body: Node
    type_spec: Optional[TypeSpec] = None  # documentation only


@dataclass
class Seq(Node):
    """`first; rest`: evaluate `first` for its effects, yield `rest`."""
    first: Node
    rest: Node


@dataclass
class Lambda(Node):
    params: List[str]
    body: Node


@dataclass
class Block(Node):
    """`begin decl* in sequence end`: local declarations scoped over `body`.

    The block's functions are mutually recursive and see each other,
    the enclosing scope and the block's own data constructors.
    """
    declarations: List[Node]
    body: Node

    @property
    def functions(self) -> List[FunDecl]:
        return [d for d in self.declarations if isinstance(d, FunDecl)]


###############################################################################
# Patterns
###############################################################################


@dataclass
class Pattern(Node):
    pass


@dataclass
class PatternVar(Pattern):
    name: str


@dataclass
class PatternWild(Pattern):
    pass


@dataclass
class PatternLit(Pattern):
    value: Any
    kind: str = 'Int'


@dataclass
class PatternCtor(Pattern):
    constructor: str
    args: List[Pattern]


def walk(node: Node) -> Iterator[Node]:
    """Yield `node` and every node below it, parents before children."""
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        children: List[Node] = []
        for f in fields(current):
            value = getattr(current, f.name)
            if isinstance(value, Node):
                children.append(value)
            elif isinstance(value, list):
                children.extend(v for v in value if isinstance(v, Node))
        stack.extend(reversed(children))
