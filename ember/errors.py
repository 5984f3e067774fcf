"""Error taxonomy for the Ember engine.

Every failure the engine reports derives from `EmberError`. Errors carry
a short `name`, a human readable message and, where one is known, the
source position of the offending token or node. Nothing is retried: an
error ends the current run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class SourcePosition:
    """1-based line and column of a token in the program text."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class EmberError(Exception):
    """Base class of every error the engine raises."""

    def __init__(self, message: str, position: Optional[SourcePosition] = None):
        self.message = message
        self.position = position
        # Native calls performed before the failure, when raised by a run.
        self.effects: list = []
        super().__init__(self._format_error())

    @property
    def name(self) -> str:
        return type(self).__name__

    def _format_error(self) -> str:
        if self.position is not None:
            return f"{self.name} at {self.position}: {self.message}"
        return f"{self.name}: {self.message}"


class LexError(EmberError):
    def __init__(self, char: str, position: Optional[SourcePosition] = None):
        self.char = char
        super().__init__(f"unexpected character {char!r}", position)


class ParseError(EmberError):
    def __init__(self, expected: Any, found: str, position: Optional[SourcePosition] = None):
        if isinstance(expected, str):
            expected = (expected,)
        self.expected = tuple(expected)
        self.found = found
        super().__init__(f"expected {' or '.join(self.expected)}, found {found}", position)


class DuplicateConstructorError(EmberError):
    def __init__(self, constructor: str, position: Optional[SourcePosition] = None):
        self.constructor = constructor
        super().__init__(f"constructor {constructor} is already declared", position)


class DuplicateDeclarationError(EmberError):
    def __init__(self, declaration: str, position: Optional[SourcePosition] = None):
        self.declaration = declaration
        super().__init__(f"{declaration} is already declared", position)


class NestingDepthError(EmberError):
    def __init__(self, position: Optional[SourcePosition] = None):
        super().__init__("program nesting is too deep to parse", position)


class UnboundVariableError(EmberError):
    def __init__(self, variable: str, position: Optional[SourcePosition] = None):
        self.variable = variable
        super().__init__(f"unbound variable {variable}", position)


class UnresolvedExternError(EmberError):
    def __init__(self, extern: str, position: Optional[SourcePosition] = None, reason: str = ''):
        self.extern = extern
        message = f"unresolved extern {extern}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, position)


class ArityError(EmberError):
    def __init__(self, callee: str, expected: int, got: int, position: Optional[SourcePosition] = None):
        self.callee = callee
        self.expected = expected
        self.got = got
        super().__init__(f"{callee} expects {expected} argument(s), got {got}", position)


class IntrinsicArityError(ArityError):
    def __init__(self, op: str, expected: int, got: int, position: Optional[SourcePosition] = None):
        super().__init__(f"@{op}", expected, got, position)
        self.op = op


class TypeMismatchError(EmberError):
    pass


class NonExhaustiveMatchError(EmberError):
    def __init__(self, scrutinee_tag: str, position: Optional[SourcePosition] = None):
        self.scrutinee_tag = scrutinee_tag
        super().__init__(f"no case arm matches {scrutinee_tag}", position)


class UnknownConstructorError(EmberError):
    def __init__(self, constructor: str, position: Optional[SourcePosition] = None):
        self.constructor = constructor
        super().__init__(f"unknown constructor {constructor}", position)


class UnknownIntrinsicError(EmberError):
    def __init__(self, op: str, known: Sequence[str] = (), position: Optional[SourcePosition] = None):
        self.op = op
        message = f"unknown intrinsic @{op}"
        if known:
            message += f" (known: {', '.join(sorted(known))})"
        super().__init__(message, position)


class DuplicateBindingError(EmberError):
    def __init__(self, binding: str, position: Optional[SourcePosition] = None):
        self.binding = binding
        super().__init__(f"{binding} is bound twice in one pattern", position)


class DivisionByZeroError(EmberError):
    def __init__(self, op: str, position: Optional[SourcePosition] = None):
        self.op = op
        super().__init__(f"@{op} by zero", position)
