# Ember language package
# This package provides a parser and interpreter for the Ember language.
from .errors import EmberError
from .interpreter import run_program, run_file, Interpreter, ExecutionResult
from .native import Effect, NativeFunction
from .parser import parse_program

__all__ = [
    'parse_program',
    'run_program',
    'run_file',
    'Interpreter',
    'ExecutionResult',
    'Effect',
    'NativeFunction',
    'EmberError',
]
