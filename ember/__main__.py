"""CLI entry point for the Ember interpreter.

Usage:
    python -m ember [-v|-vv|-vvv|-vvvv] [--max-depth N] <program_file>
    python -m ember [-v...] --emit-ast <program_file>
    python -m ember [-v...] --ast <ast_json_file>
    python -m ember --pretty <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --max-depth   Maximum depth of nested Ember calls during a run
  --emit-ast    Parse the given .ember file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file
  --pretty      Parse the given .ember file and print it back formatted

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. The `std.io` natives (`print_int`,
`print`, `print_unit`, `read_int`) are available to every program that
declares them as externs. The final value is printed unless it is `()`.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .ast_json import ast_to_obj, ast_from_obj
from .errors import EmberError
from .interpreter import DEFAULT_MAX_DEPTH, ExecutionResult, Interpreter, run_file
from .parser import parse_program
from .printer import format_program
from .std.io import populate_io_natives
from .types import UNIT, to_string


def _require_file(path: Path) -> None:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)


def _read_source(path: Path) -> str:
    _require_file(path)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _report(result: ExecutionResult) -> None:
    if result.value != UNIT:
        print(to_string(result.value))


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Ember language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_DEPTH, metavar='N',
                        help=f'maximum depth of nested Ember calls (default {DEFAULT_MAX_DEPTH})')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='EMBER_FILE', help='emit AST JSON for the given .ember file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    group.add_argument('--pretty', metavar='EMBER_FILE', help='print the given .ember file formatted')
    parser.add_argument('program', nargs='?', help='Ember program file (.ember) to execute')
    args = parser.parse_args(argv)

    try:
        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            ast_program = parse_program(_read_source(program_file))
            obj = ast_to_obj(ast_program)
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(obj, out, ensure_ascii=False, indent=2)
            print(str(out_path))
            return

        # Pretty-print mode
        if args.pretty:
            print(format_program(parse_program(_read_source(Path(args.pretty)))), end='')
            return

        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            data = json.loads(_read_source(ast_path))
            ast_program = ast_from_obj(data)
            interpreter = Interpreter(natives=populate_io_natives(), debug_level=args.v,
                                      max_depth=args.max_depth)
            _report(interpreter.run(ast_program))
            return

        # Default: execute source file
        if not args.program:
            parser.error('missing program file; or use --emit-ast/--ast/--pretty')
        program_file = Path(args.program)
        _require_file(program_file)
        _report(run_file(str(program_file), populate_io_natives(), args.v, max_depth=args.max_depth))
    except EmberError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except RecursionError:
        print(f"Error: evaluation exceeded the maximum call depth of {args.max_depth}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
