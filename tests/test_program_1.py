from ember.interpreter import parse_program, Interpreter
from ember.std.io import populate_io_natives


def test_program_1_length(capsys):
    with open('examples/program_1.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(natives=populate_io_natives())
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '5'
