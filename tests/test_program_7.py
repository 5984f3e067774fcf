import builtins
from ember.interpreter import parse_program, Interpreter
from ember.std.io import populate_io_natives


def test_program_7_factorial(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '5')
    with open('examples/program_7.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(natives=populate_io_natives())
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '120'
