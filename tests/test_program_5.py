from ember.interpreter import parse_program, Interpreter
from ember.std.io import populate_io_natives


def test_program_5_shadowing(capsys):
    with open('examples/program_5.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(natives=populate_io_natives())
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    # The local `twice` hides the declared function; `x` is unchanged by it.
    assert out_lines == ['1', '2', '6', '20', '2']
