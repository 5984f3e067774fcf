import json

import pytest

from ember.ast_json import ast_from_obj, ast_to_obj
from ember.interpreter import Interpreter, parse_program
from ember.std.io import populate_io_natives


@pytest.mark.parametrize('name', ['program_3', 'program_4', 'program_8', 'program_9', 'program_10'])
def test_ast_json_round_trip(name):
    with open(f'examples/{name}.ember', 'r', encoding='utf-8') as f:
        program = parse_program(f.read())
    data = json.loads(json.dumps(ast_to_obj(program)))
    restored = ast_from_obj(data)
    assert restored == program
    assert restored.body.position == program.body.position


def test_restored_program_runs(capsys):
    with open('examples/program_4.ember', 'r', encoding='utf-8') as f:
        program = parse_program(f.read())
    restored = ast_from_obj(json.loads(json.dumps(ast_to_obj(program))))
    Interpreter(natives=populate_io_natives()).run(restored)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['Cons(2, Cons(3, Cons(4, Nil)))', '120']


def test_type_specs_are_tagged():
    program = parse_program('begin extern f : fun(List[Int]) -> (); in 0 end')
    obj = ast_to_obj(program)
    extern = obj['declarations'][0]
    assert extern['type'] == 'ExternDecl'
    assert extern['param_types'][0] == {
        '__type__': 'TypeSpec',
        'value': {'kind': 'List', 'args': [{'kind': 'Int', 'args': []}]},
    }


def test_unknown_node_type():
    with pytest.raises(ValueError):
        ast_from_obj({'type': 'While'})


def test_literal_kinds_are_tagged():
    program = parse_program("begin in f(1, 0.5, true, 'c') end")
    args = json.loads(json.dumps(ast_to_obj(program)))['body']['args']
    assert [(a['kind'], a['value']) for a in args] == [('Int', 1), ('Real', 0.5), ('Bool', True), ('Char', 'c')]
    assert ast_from_obj(args[1]).value == 0.5


def test_deeply_nested_program_round_trips(capsys):
    depth = 1000
    nested = 'Cons(0, ' * depth + 'Nil' + ')' * depth
    source = f"""
        begin
            extern print_int : fun(Int) -> ();
            data List = Cons(Int, List) | Nil end;
            fun length(xs) => {{
                case xs of
                | Cons(_, rest) => @iadd(length(rest), 1)
                | Nil => 0
                end
            }}
        in
            #print_int(length({nested}))
        end
    """
    restored = ast_from_obj(ast_to_obj(parse_program(source)))
    Interpreter(natives=populate_io_natives()).run(restored)
    assert capsys.readouterr().out.strip() == str(depth)
