from ember.interpreter import parse_program, Interpreter
from ember.std.io import populate_io_natives


def test_program_4_higher_order(capsys):
    with open('examples/program_4.ember', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(natives=populate_io_natives())
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    # map(adder(1), [1, 2, 3]), then the product of map(adder(3), [1, 2, 3])
    assert out_lines == ['Cons(2, Cons(3, Cons(4, Nil)))', '120']
