"""Type annotations and runtime values for Ember.

`TypeSpec` records the type annotations written in a program. The engine
never checks them; they are kept so that declarations can be printed and
serialized faithfully. Generic parameters such as the `T` of `List[T]`
are erased at run time.

Runtime values form a closed set: the literal kinds `IntValue`,
`RealValue`, `BoolValue` and `CharValue`, plus `DataValue`,
`ClosureValue` and `UnitValue`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Tuple, Union

if TYPE_CHECKING:
    from .ast import Node
    from .environment import Environment


@dataclass(frozen=True)
class TypeSpec:
    """Represents an Ember type annotation.

    A type is described by its `kind` and optionally type arguments. For
    example `List[T]` becomes
    `TypeSpec(kind='List', args=(TypeSpec(kind='T'),))`. The unit type
    `()` has kind `'()'`, and a function type `fun(A, B) -> R` has kind
    `'fun'` with the result type as its last argument.
    """
    kind: str
    args: Tuple['TypeSpec', ...] = ()

    def __repr__(self) -> str:
        if self.kind == 'fun':
            params = ", ".join(repr(a) for a in self.args[:-1])
            return f"fun({params}) -> {self.args[-1]!r}"
        if not self.args:
            return self.kind
        inner = ", ".join(repr(a) for a in self.args)
        return f"{self.kind}[{inner}]"

    @property
    def is_function(self) -> bool:
        return self.kind == 'fun'

    @property
    def param_types(self) -> Tuple['TypeSpec', ...]:
        return self.args[:-1] if self.is_function else ()

    @property
    def result_type(self) -> 'TypeSpec':
        return self.args[-1] if self.is_function else self

    # Convenience constructors
    @staticmethod
    def integer() -> 'TypeSpec':
        return TypeSpec('Int')

    @staticmethod
    def real() -> 'TypeSpec':
        return TypeSpec('Real')

    @staticmethod
    def boolean() -> 'TypeSpec':
        return TypeSpec('Bool')

    @staticmethod
    def char() -> 'TypeSpec':
        return TypeSpec('Char')

    @staticmethod
    def unit() -> 'TypeSpec':
        return TypeSpec('()')

    @staticmethod
    def function(params: Tuple['TypeSpec', ...], result: 'TypeSpec') -> 'TypeSpec':
        return TypeSpec('fun', tuple(params) + (result,))


@dataclass(frozen=True)
class IntValue:
    value: int

    def __repr__(self) -> str:
        return f"IntValue({self.value})"


@dataclass(frozen=True)
class RealValue:
    value: float

    def __repr__(self) -> str:
        return f"RealValue({self.value!r})"


@dataclass(frozen=True)
class BoolValue:
    value: bool

    def __repr__(self) -> str:
        return f"BoolValue({self.value})"


@dataclass(frozen=True)
class CharValue:
    value: str

    def __repr__(self) -> str:
        return f"CharValue({self.value!r})"


@dataclass(frozen=True)
class DataValue:
    """A constructor applied to its fields.

    Instances are built through `ConstructorTable.construct`, which checks
    that `len(fields)` equals the constructor's declared arity.
    """
    constructor: str
    fields: Tuple['Value', ...] = ()

    def __repr__(self) -> str:
        return f"DataValue({self.constructor!r}, {self.fields!r})"


@dataclass(frozen=True, eq=False)
class ClosureValue:
    """A callable value: declared functions and `fn` lambdas.

    Declared functions capture the global declaration scope; lambdas
    capture the scope they were evaluated in. Closures compare by
    identity.
    """
    params: Tuple[str, ...]
    body: 'Node'
    env: 'Environment'
    name: str = '<fn>'

    def __repr__(self) -> str:
        return f"<closure {self.name}({', '.join(self.params)})>"


class UnitValue:
    """Marker object for the Ember unit value `()`."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UnitValue'

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UnitValue)

    def __hash__(self) -> int:
        return hash('()')


UNIT = UnitValue()

Value = Union[IntValue, RealValue, BoolValue, CharValue, DataValue, ClosureValue, UnitValue]

# Literal kinds and the runtime value class of each.
LITERAL_TYPES: Dict[str, type] = {
    'Int': IntValue,
    'Real': RealValue,
    'Bool': BoolValue,
    'Char': CharValue,
}

Tag = Union[str, int, Tuple[str, Any]]


def type_name(value: Any) -> str:
    """Return the Ember kind name of a runtime value."""
    for kind, cls in LITERAL_TYPES.items():
        if isinstance(value, cls):
            return kind
    if isinstance(value, DataValue):
        return value.constructor
    if isinstance(value, ClosureValue):
        return 'closure'
    if isinstance(value, UnitValue):
        return '()'
    return type(value).__name__


def literal_key(kind: str, value: Any) -> Tag:
    # Integers key on their value; other kinds are qualified so that
    # `true`, `1` and `1.0` never share a dispatch slot.
    if kind == 'Int':
        return value
    return (kind, value)


def tag_of(value: Any) -> Tag:
    """Dispatch key of a value in a case expression.

    Data values dispatch on their constructor name and literals on their
    kind and value; anything else only matches catch-all arms.
    """
    if isinstance(value, DataValue):
        return value.constructor
    if isinstance(value, (IntValue, RealValue, BoolValue, CharValue)):
        return literal_key(type_name(value), value.value)
    return type_name(value)


def to_string(value: Any) -> str:
    """Convert an Ember value to its printed form.

    Data values print in constructor syntax, e.g. `Cons(1, Nil)`;
    booleans print as `true`/`false` and characters as themselves.
    """
    if isinstance(value, IntValue):
        return str(value.value)
    if isinstance(value, RealValue):
        return repr(value.value)
    if isinstance(value, BoolValue):
        return 'true' if value.value else 'false'
    if isinstance(value, CharValue):
        return value.value
    if isinstance(value, UnitValue):
        return '()'
    if isinstance(value, ClosureValue):
        return repr(value)
    if isinstance(value, DataValue):
        # Iterative so that long lists do not exhaust the Python stack.
        parts = []
        stack: list = [value]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, DataValue):
                if not item.fields:
                    parts.append(item.constructor)
                    continue
                parts.append(item.constructor + '(')
                pending: list = [')']
                for i, f in enumerate(reversed(item.fields)):
                    pending.append(f)
                    if i < len(item.fields) - 1:
                        pending.append(', ')
                stack.extend(pending)
            else:
                parts.append(to_string(item))
        return ''.join(parts)
    return str(value)
