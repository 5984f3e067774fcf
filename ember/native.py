"""The native bridge between Ember programs and their host.

Externs are declared in the program with a signature and no body; the
host supplies their implementations as `NativeFunction`s (or plain
callables) keyed by extern name. The bridge also owns the intrinsic
table behind `@iadd`, `@rmul`, `@band` and friends, and records every
extern and directive call as an `Effect`, in evaluation order, before
the host code runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .ast import ExternDecl
from .errors import (
    ArityError, DivisionByZeroError, IntrinsicArityError, SourcePosition,
    TypeMismatchError, UnknownIntrinsicError, UnresolvedExternError,
)
from .types import (
    LITERAL_TYPES, UNIT, BoolValue, CharValue, ClosureValue, DataValue, IntValue, RealValue, UnitValue,
    Value, type_name,
)


@dataclass
class NativeFunction:
    name: str
    arity: Optional[int]
    fn: Callable[[List[Value]], Any]

    def __repr__(self) -> str:
        return f"<native {self.name}>"


@dataclass(frozen=True)
class Effect:
    """One observable native call: its name and evaluated arguments."""
    name: str
    args: Tuple[Value, ...]
    directive: bool = False


def to_value(result: Any, name: str = '', position: Optional[SourcePosition] = None) -> Value:
    """Coerce a host return value into a runtime value."""
    if isinstance(result, (IntValue, RealValue, BoolValue, CharValue, DataValue, ClosureValue, UnitValue)):
        return result
    if result is None:
        return UNIT
    if isinstance(result, bool):
        return BoolValue(result)
    if isinstance(result, int):
        return IntValue(result)
    if isinstance(result, float):
        return RealValue(result)
    if isinstance(result, str) and len(result) == 1:
        return CharValue(result)
    raise TypeMismatchError(f"native {name} returned unsupported value {result!r}", position)


###############################################################################
# Intrinsics
###############################################################################


@dataclass(frozen=True)
class Intrinsic:
    name: str
    arity: int
    fn: Callable[..., Any]
    operand: str = 'Int'


def _truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


class IntrinsicTable:
    """Extensible mapping from intrinsic name to a fixed-arity operation.

    Every operand of an intrinsic has the same literal kind (`Int`,
    `Real`, `Bool` or `Char`). Operations take and return plain Python
    values; the table unwraps the operands and wraps the result with
    `to_value`, so a `bool` result becomes a `Bool`.
    """
    def __init__(self, intrinsics: Sequence[Intrinsic] = ()):
        self._intrinsics: Dict[str, Intrinsic] = {}
        for intrinsic in intrinsics:
            self.register(intrinsic.name, intrinsic.arity, intrinsic.fn, intrinsic.operand)

    def register(self, name: str, arity: int, fn: Callable[..., Any], operand: str = 'Int'):
        if operand not in LITERAL_TYPES:
            raise ValueError(f"intrinsic operands must be one of {', '.join(LITERAL_TYPES)}")
        self._intrinsics[name] = Intrinsic(name, arity, fn, operand)

    def __contains__(self, name: str) -> bool:
        return name in self._intrinsics

    def __iter__(self) -> Iterator[str]:
        return iter(self._intrinsics)

    def copy(self) -> 'IntrinsicTable':
        return IntrinsicTable(list(self._intrinsics.values()))

    def apply(self, name: str, args: Sequence[Value], position: Optional[SourcePosition] = None) -> Value:
        intrinsic = self._intrinsics.get(name)
        if intrinsic is None:
            raise UnknownIntrinsicError(name, tuple(self._intrinsics), position)
        if len(args) != intrinsic.arity:
            raise IntrinsicArityError(name, intrinsic.arity, len(args), position)
        operand_type = LITERAL_TYPES[intrinsic.operand]
        operands = []
        for i, arg in enumerate(args):
            if not isinstance(arg, operand_type):
                raise TypeMismatchError(
                    f"@{name} operand {i + 1} must be {intrinsic.operand}, got {type_name(arg)}", position)
            operands.append(arg.value)
        try:
            result = intrinsic.fn(*operands)
        except ZeroDivisionError:
            raise DivisionByZeroError(name, position) from None
        return to_value(result, f"@{name}", position)


def default_intrinsics() -> IntrinsicTable:
    """Integer and real arithmetic, comparisons and boolean logic.

    Comparisons return `Bool`; `band`, `bor` and `bnot` take `Bool`s.
    """
    table = IntrinsicTable()
    table.register('iadd', 2, lambda a, b: a + b)
    table.register('isub', 2, lambda a, b: a - b)
    table.register('imul', 2, lambda a, b: a * b)
    table.register('idiv', 2, _truncating_div)
    table.register('irem', 2, lambda a, b: a - b * _truncating_div(a, b))
    table.register('ineg', 1, lambda a: -a)
    table.register('radd', 2, lambda a, b: a + b, 'Real')
    table.register('rsub', 2, lambda a, b: a - b, 'Real')
    table.register('rmul', 2, lambda a, b: a * b, 'Real')
    table.register('rdiv', 2, lambda a, b: a / b, 'Real')
    for prefix, operand in (('icmp', 'Int'), ('rcmp', 'Real')):
        table.register(prefix + 'eq', 2, lambda a, b: a == b, operand)
        table.register(prefix + 'ne', 2, lambda a, b: a != b, operand)
        table.register(prefix + 'gr', 2, lambda a, b: a > b, operand)
        table.register(prefix + 'ge', 2, lambda a, b: a >= b, operand)
        table.register(prefix + 'ls', 2, lambda a, b: a < b, operand)
        table.register(prefix + 'le', 2, lambda a, b: a <= b, operand)
    table.register('band', 2, lambda a, b: a and b, 'Bool')
    table.register('bor', 2, lambda a, b: a or b, 'Bool')
    table.register('bnot', 1, lambda a: not a, 'Bool')
    return table


###############################################################################
# Bridge
###############################################################################


class NativeBridge:
    """Resolves extern calls to host natives and applies intrinsics.

    `natives` maps extern names to `NativeFunction`s or plain callables
    taking the list of evaluated arguments. `observer`, when given, is
    called with each `Effect` as it happens.
    """
    def __init__(self,
                 externs: Mapping[str, ExternDecl],
                 natives: Optional[Mapping[str, Any]] = None,
                 intrinsics: Optional[IntrinsicTable] = None,
                 observer: Optional[Callable[[Effect], None]] = None):
        self.externs = dict(externs)
        self.natives: Dict[str, NativeFunction] = {}
        for name, impl in (natives or {}).items():
            if not isinstance(impl, NativeFunction):
                impl = NativeFunction(name, None, impl)
            self.natives[name] = impl
        self.intrinsics = intrinsics if intrinsics is not None else default_intrinsics()
        self.observer = observer
        self.effects: List[Effect] = []

    def is_extern(self, name: str) -> bool:
        return name in self.externs

    def call_extern(self, name: str, args: Sequence[Value],
                    position: Optional[SourcePosition] = None, directive: bool = False) -> Value:
        decl = self.externs.get(name)
        if decl is None:
            raise UnresolvedExternError(name, position, 'no extern declaration')
        native = self.natives.get(name)
        if native is None:
            raise UnresolvedExternError(name, position, 'no native implementation provided')
        if native.arity is not None and native.arity != decl.arity:
            raise UnresolvedExternError(
                name, position, f'native takes {native.arity} argument(s), declared with {decl.arity}')
        if len(args) != decl.arity:
            raise ArityError(name, decl.arity, len(args), position)
        effect = Effect(name, tuple(args), directive)
        self.effects.append(effect)
        if self.observer is not None:
            self.observer(effect)
        return to_value(native.fn(list(args)), name, position)

    def call_intrinsic(self, op: str, args: Sequence[Value], position: Optional[SourcePosition] = None) -> Value:
        return self.intrinsics.apply(op, args, position)
