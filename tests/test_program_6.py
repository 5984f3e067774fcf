import pytest

from ember.errors import NonExhaustiveMatchError
from ember.interpreter import parse_program, Interpreter
from ember.std.io import populate_io_natives


def test_program_6_non_exhaustive(capsys):
    with open('examples/program_6.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(natives=populate_io_natives())
    with pytest.raises(NonExhaustiveMatchError) as excinfo:
        interp.run(ast)
    assert excinfo.value.scrutinee_tag == 'Point'
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['12', '9']
    assert [e.name for e in interp.effects] == ['print_int', 'print_int']
