from ember.interpreter import parse_program, Interpreter
from ember.std.io import populate_io_natives


def test_program_3_build_and_sum(capsys):
    with open('examples/program_3.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(natives=populate_io_natives())
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['5050', '55']
