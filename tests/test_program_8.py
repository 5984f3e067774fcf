from ember.interpreter import parse_program, Interpreter
from ember.types import to_string


def test_program_8_final_value(capsys):
    with open('examples/program_8.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    result = interp.run(ast)
    # Program 8 declares no externs; its result is the body's value
    assert capsys.readouterr().out == ''
    assert to_string(result.value) == 'Pair(55, 17)'
    assert result.effects == []
