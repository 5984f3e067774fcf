"""Pattern-match compilation for `case` expressions.

Every `case` of a program is compiled once, before evaluation starts.
Compilation validates each arm against the constructor table and turns
the arm list into a dispatch strategy: a mapping from a scrutinee's tag
(constructor name, or literal kind and value) to the indices of the
arms that can match it, in source order. Catch-all arms (`_` or a
variable) appear in every list at their source position, so the first
arm that matches in source order is always the one selected. Arms are
not required to be exhaustive; a value that matches no arm is a
run-time `NonExhaustiveMatchError`.

A bare identifier in a pattern is a constructor pattern when the table
knows it as a constructor, and a variable pattern otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .ast import (
    Case, Node, Pattern, PatternCtor, PatternLit, PatternVar, PatternWild, Program, walk,
)
from .constructors import ConstructorTable
from .errors import ArityError, DuplicateBindingError
from .types import LITERAL_TYPES, DataValue, Tag, Value, literal_key, tag_of


@dataclass(frozen=True)
class CompiledArm:
    index: int
    pattern: Pattern
    body: Node
    bindings: Tuple[str, ...]


@dataclass(frozen=True)
class CompiledCase:
    arms: Tuple[CompiledArm, ...]
    dispatch: Dict[Tag, Tuple[int, ...]]
    fallback: Tuple[int, ...]

    def candidates(self, value: Value) -> Tuple[int, ...]:
        return self.dispatch.get(tag_of(value), self.fallback)


def arm_key(pattern: Pattern) -> Optional[Tag]:
    """Dispatch key of a resolved top-level pattern; None for catch-alls."""
    if isinstance(pattern, PatternCtor):
        return pattern.constructor
    if isinstance(pattern, PatternLit):
        return literal_key(pattern.kind, pattern.value)
    return None


class MatchCompiler:
    def __init__(self, table: ConstructorTable):
        self.table = table

    def compile_program(self, program: Program) -> Dict[int, CompiledCase]:
        """Compile every case expression of a program, keyed by node id."""
        compiled: Dict[int, CompiledCase] = {}
        roots: List[Node] = list(program.functions) + [program.body]
        for root in roots:
            for node in walk(root):
                if isinstance(node, Case):
                    compiled[id(node)] = self.compile(node)
        return compiled

    def compile(self, case: Case) -> CompiledCase:
        arms: List[CompiledArm] = []
        dispatch: Dict[Tag, List[int]] = {}
        fallback: List[int] = []
        for index, arm in enumerate(case.arms):
            names: List[str] = []
            pattern = self.resolve_pattern(arm.pattern, names)
            arms.append(CompiledArm(index, pattern, arm.body, tuple(names)))
            key = arm_key(pattern)
            if key is None:
                fallback.append(index)
                for indices in dispatch.values():
                    indices.append(index)
            else:
                if key not in dispatch:
                    dispatch[key] = list(fallback)
                dispatch[key].append(index)
        return CompiledCase(
            tuple(arms),
            {key: tuple(indices) for key, indices in dispatch.items()},
            tuple(fallback),
        )

    def resolve_pattern(self, pattern: Pattern, names: List[str]) -> Pattern:
        if isinstance(pattern, PatternVar):
            descriptor = self.table.get(pattern.name)
            if descriptor is not None:
                if descriptor.arity != 0:
                    raise ArityError(pattern.name, descriptor.arity, 0, pattern.position)
                return PatternCtor(pattern.name, [], position=pattern.position)
            if pattern.name in names:
                raise DuplicateBindingError(pattern.name, pattern.position)
            names.append(pattern.name)
            return pattern
        if isinstance(pattern, PatternCtor):
            descriptor = self.table.lookup_constructor(pattern.constructor, pattern.position)
            if len(pattern.args) != descriptor.arity:
                raise ArityError(pattern.constructor, descriptor.arity, len(pattern.args), pattern.position)
            args = [self.resolve_pattern(sub, names) for sub in pattern.args]
            return PatternCtor(pattern.constructor, args, position=pattern.position)
        return pattern


def match_pattern(pattern: Pattern, value: Value, bindings: Dict[str, Value]) -> bool:
    """Match a resolved pattern, adding variable bindings on success."""
    if isinstance(pattern, PatternWild):
        return True
    if isinstance(pattern, PatternVar):
        bindings[pattern.name] = value
        return True
    if isinstance(pattern, PatternLit):
        return isinstance(value, LITERAL_TYPES[pattern.kind]) and value.value == pattern.value
    if isinstance(pattern, PatternCtor):
        if not isinstance(value, DataValue) or value.constructor != pattern.constructor:
            return False
        for sub, field_value in zip(pattern.args, value.fields):
            if not match_pattern(sub, field_value, bindings):
                return False
        return True
    return False
