"""Interpreter for the Ember language.

This module ties the engine together: a program parsed by
`ember.parser` is loaded (constructor table, compiled case expressions,
native bridge, global declaration scope) and its `in ... end` body is
evaluated by a strict, eager tree walk. The result is an
`ExecutionResult` holding the final value and the ordered list of native
and directive calls the program performed.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from .ast import (
    Node, Program, Literal, UnitLiteral, Var, Call, IntrinsicCall, DirectiveCall,
    Construct, Case, Let, Seq, Lambda, Block, walk,
)
from .constructors import ConstructorTable
from .environment import Environment
from .errors import (
    ArityError, EmberError, NonExhaustiveMatchError, SourcePosition, TypeMismatchError,
    UnknownIntrinsicError,
)
from .matching import CompiledCase, MatchCompiler, match_pattern
from .native import Effect, IntrinsicTable, NativeBridge
from .parser import check_program, parse_program
from .recursion import recursion_limit
from .types import (
    LITERAL_TYPES, UNIT, ClosureValue, DataValue, Value, to_string, type_name,
)


# Maximum depth of nested Ember calls in one run.
DEFAULT_MAX_DEPTH = 50_000

# Python frames used by one level of Ember call nesting, with headroom.
FRAMES_PER_CALL = 10


@dataclass
class ExecutionResult:
    value: Value
    effects: List[Effect]


class Interpreter:
    """Core interpreter that evaluates Ember ASTs.

    `natives` maps extern names to host implementations. Each call to
    `run` builds a fresh constructor table and global scope, so running
    the same program twice yields the same value and the same effects.
    `max_depth` bounds the nesting of Ember calls, not Python frames.
    """
    def __init__(self,
                 natives: Optional[Mapping[str, Any]] = None,
                 observer: Optional[Callable[[Effect], None]] = None,
                 intrinsics: Optional[IntrinsicTable] = None,
                 debug_level: int = 0,
                 debug_file: str = 'debug.txt',
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.natives = dict(natives or {})
        self.observer = observer
        self.intrinsics = intrinsics
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None
        self.max_depth = max_depth
        self.table = ConstructorTable()
        self.bridge = NativeBridge({}, self.natives, intrinsics, observer)
        self.cases: Dict[int, CompiledCase] = {}
        self.global_env = Environment()
        self.call_depth = 0

    @property
    def effects(self) -> List[Effect]:
        """Native calls observed by the current or last run, in order."""
        return self.bridge.effects

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    # Loading

    def load(self, program: Program):
        """Process declarations once, before the body is evaluated."""
        intrinsics = self.intrinsics.copy() if self.intrinsics is not None else None
        self.bridge = NativeBridge(program.externs, self.natives, intrinsics, self.observer)
        self.table = check_program(program)
        for node in walk(program):
            if isinstance(node, IntrinsicCall) and node.op not in self.bridge.intrinsics:
                raise UnknownIntrinsicError(node.op, tuple(self.bridge.intrinsics), node.position)
        self.cases = MatchCompiler(self.table).compile_program(program)
        self.global_env = Environment()
        self.define_functions(program.functions, self.global_env)
        if self.debug_level >= 1:
            for type_name_ in self.table.type_names:
                ctors = ', '.join(f"{d.name}/{d.arity}" for d in self.table.constructors_of(type_name_))
                self.debug(f"define data {type_name_} = {ctors}")
            for name in program.externs:
                status = 'bound' if name in self.natives else 'unbound'
                self.debug(f"declare extern {name} ({status})")
            self.debug(f"compiled {len(self.cases)} case expression(s)")

    def define_functions(self, functions, env: Environment):
        # Every closure captures `env` itself, so the functions of one
        # scope can call each other recursively.
        for decl in functions:
            closure = ClosureValue(tuple(decl.param_names), decl.body, env, decl.name)
            env.define(decl.name, closure)
            if self.debug_level >= 1:
                self.debug(f"define function {decl.name}({', '.join(decl.param_names)})")

    # Public API

    def run(self, program: Program) -> ExecutionResult:
        if self.debug_level > 0 and self.debug_fp is None:
            self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
        frames = sys.getrecursionlimit() + self.max_depth * FRAMES_PER_CALL
        try:
            with recursion_limit(frames):
                self.load(program)
                self.call_depth = 0
                value = self.evaluate(program.body, self.global_env)
            if self.debug_level >= 1:
                self.debug(f"result {to_string(value)}")
            return ExecutionResult(value, list(self.effects))
        except EmberError as e:
            e.effects = list(self.effects)
            raise
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    # Evaluation

    def evaluate(self, node: Node, env: Environment) -> Value:
        if self.debug_level >= 4:
            self.debug(f"eval {type(node).__name__}")
        if isinstance(node, Literal):
            return LITERAL_TYPES[node.kind](node.value)
        if isinstance(node, Var):
            return env.get(node.name, node.position)
        if isinstance(node, Call):
            return self.evaluate_call(node, env)
        if isinstance(node, Case):
            return self.evaluate_case(node, env)
        if isinstance(node, IntrinsicCall):
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.bridge.call_intrinsic(node.op, args, node.position)
        if isinstance(node, Construct):
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.table.construct(node.constructor, args, node.position)
        if isinstance(node, Let):
            value = self.evaluate(node.value, env)
            return self.evaluate(node.body, env.child(((node.name, value),)))
        if isinstance(node, Seq):
            self.evaluate(node.first, env)
            return self.evaluate(node.rest, env)
        if isinstance(node, DirectiveCall):
            args = [self.evaluate(arg, env) for arg in node.args]
            if self.debug_level >= 2:
                self.debug(f"directive #{node.name}({', '.join(to_string(a) for a in args)})")
            # The directive's own result is not part of the program's value.
            self.bridge.call_extern(node.name, args, node.position, directive=True)
            return UNIT
        if isinstance(node, UnitLiteral):
            return UNIT
        if isinstance(node, Lambda):
            return ClosureValue(tuple(node.params), node.body, env)
        if isinstance(node, Block):
            block_env = env.child()
            self.define_functions(node.functions, block_env)
            return self.evaluate(node.body, block_env)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node).__name__}")

    def evaluate_call(self, node: Call, env: Environment) -> Value:
        args = [self.evaluate(arg, env) for arg in node.args]
        callee = node.callee
        if isinstance(callee, Var) and not env.is_bound(callee.name) and self.bridge.is_extern(callee.name):
            if self.debug_level >= 2:
                self.debug(f"extern {callee.name}({', '.join(to_string(a) for a in args)})")
            return self.bridge.call_extern(callee.name, args, node.position)
        func = self.evaluate(callee, env)
        return self.call_function(func, args, node.position)

    def call_function(self, func: Any, args: List[Value], position: Optional[SourcePosition] = None) -> Value:
        if not isinstance(func, ClosureValue):
            raise TypeMismatchError(f"{type_name(func)} is not callable", position)
        if len(args) != len(func.params):
            raise ArityError(func.name, len(func.params), len(args), position)
        # Functions see the scope they were declared in, never the caller's locals.
        call_env = func.env.child(zip(func.params, args))
        if self.debug_level >= 2:
            self.debug(f"{'  ' * min(self.call_depth, 40)}call {func.name}"
                       f"({', '.join(to_string(a) for a in args)})")
        self.call_depth += 1
        try:
            return self.evaluate(func.body, call_env)
        finally:
            self.call_depth -= 1

    def evaluate_case(self, node: Case, env: Environment) -> Value:
        value = self.evaluate(node.scrutinee, env)
        compiled = self.cases[id(node)]
        for index in compiled.candidates(value):
            arm = compiled.arms[index]
            bindings: Dict[str, Value] = {}
            if match_pattern(arm.pattern, value, bindings):
                if self.debug_level >= 3:
                    self.debug(f"case {scrutinee_tag(value)} -> arm {index}")
                return self.evaluate(arm.body, env.child(bindings.items()))
        raise NonExhaustiveMatchError(scrutinee_tag(value), node.position)


def scrutinee_tag(value: Value) -> str:
    """How a scrutinee is named in traces and match errors."""
    if isinstance(value, DataValue):
        return value.constructor
    return to_string(value)


def run_program(source: str,
                natives: Optional[Mapping[str, Any]] = None,
                debug_level: int = 0,
                **options: Any) -> ExecutionResult:
    """Convenience function to parse and run an Ember program from source."""
    program = parse_program(source)
    interpreter = Interpreter(natives=natives, debug_level=debug_level, **options)
    return interpreter.run(program)


def run_file(file_path: str,
             natives: Optional[Mapping[str, Any]] = None,
             debug_level: int = 0,
             **options: Any) -> ExecutionResult:
    """Parse and run an Ember source file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, natives, debug_level, **options)
