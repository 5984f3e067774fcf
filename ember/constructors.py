"""The type/constructor table.

Built once per run from every `data` declaration of a program. It fixes,
for each constructor, the data type that owns it and its field arity,
and it is the only place where `DataValue`s are built so that the arity
invariant holds for every value in the heap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .ast import DataDecl
from .errors import (
    ArityError, DuplicateConstructorError, DuplicateDeclarationError, SourcePosition,
    UnknownConstructorError,
)
from .types import DataValue, Value


@dataclass(frozen=True)
class ConstructorDescriptor:
    name: str
    type_name: str
    arity: int


class ConstructorTable:
    def __init__(self):
        self._constructors: Dict[str, ConstructorDescriptor] = {}
        self._by_type: Dict[str, List[ConstructorDescriptor]] = {}
        self._nullary: Dict[str, DataValue] = {}

    @classmethod
    def from_declarations(cls, decls: Iterable[DataDecl]) -> 'ConstructorTable':
        table = cls()
        for decl in decls:
            table.declare(decl)
        return table

    def declare(self, decl: DataDecl):
        if decl.name in self._by_type:
            raise DuplicateDeclarationError(decl.name, decl.position)
        descriptors = []
        for ctor in decl.constructors:
            if ctor.name in self._constructors or any(d.name == ctor.name for d in descriptors):
                raise DuplicateConstructorError(ctor.name, ctor.position)
            descriptors.append(ConstructorDescriptor(ctor.name, decl.name, ctor.arity))
        self._by_type[decl.name] = descriptors
        for d in descriptors:
            self._constructors[d.name] = d
            if d.arity == 0:
                self._nullary[d.name] = DataValue(d.name, ())

    def __contains__(self, name: str) -> bool:
        return name in self._constructors

    def __len__(self) -> int:
        return len(self._constructors)

    def get(self, name: str) -> Optional[ConstructorDescriptor]:
        return self._constructors.get(name)

    def lookup_constructor(self, name: str, position: Optional[SourcePosition] = None) -> ConstructorDescriptor:
        descriptor = self._constructors.get(name)
        if descriptor is None:
            raise UnknownConstructorError(name, position)
        return descriptor

    def constructors_of(self, type_name: str) -> Tuple[ConstructorDescriptor, ...]:
        return tuple(self._by_type.get(type_name, ()))

    @property
    def type_names(self) -> Tuple[str, ...]:
        return tuple(self._by_type)

    def construct(self, name: str, fields: Sequence[Value], position: Optional[SourcePosition] = None) -> DataValue:
        descriptor = self.lookup_constructor(name, position)
        if len(fields) != descriptor.arity:
            raise ArityError(name, descriptor.arity, len(fields), position)
        if descriptor.arity == 0:
            return self._nullary[name]
        return DataValue(name, tuple(fields))
