import sys

import pytest

from ember.errors import (
    ArityError, DuplicateDeclarationError, NonExhaustiveMatchError, TypeMismatchError,
    UnboundVariableError, UnknownIntrinsicError, UnresolvedExternError,
)
from ember.interpreter import Interpreter, parse_program, run_program
from ember.native import Effect, default_intrinsics
from ember.types import UNIT, BoolValue, CharValue, ClosureValue, DataValue, IntValue, RealValue


PRELUDE = """
    data List[T] =
    | Cons(T, List[T])
    | Nil
    end
    fun length(xs) => {
        case xs of
        | Cons(x, rest) => { @iadd(length(rest), 1) }
        | Nil => { 0 }
        end
    }
"""


def run(body, decls='', **options):
    return run_program(f'begin {PRELUDE} {decls} in {body} end', **options)


def test_length_of_five_elements():
    result = run('length(Cons(1, Cons(2, Cons(3, Cons(4, Cons(5, Nil))))))')
    assert result.value == IntValue(5)


def test_length_of_nil():
    assert run('length(Nil)').value == IntValue(0)


def test_deep_recursion_over_built_list():
    decls = """
        fun build(n) => {
            case n of
            | 0 => Nil
            | _ => Cons(n, build(@isub(n, 1)))
            end
        }
    """
    limit = sys.getrecursionlimit()
    assert run('length(build(10000))', decls).value == IntValue(10000)
    assert sys.getrecursionlimit() == limit


def test_deep_recursion_over_host_list():
    def make(args):
        xs = DataValue('Nil')
        for i in range(args[0].value):
            xs = DataValue('Cons', (IntValue(i), xs))
        return xs

    result = run('length(make(10000))', 'extern make : fun(Int) -> List[Int];', natives={'make': make})
    assert result.value == IntValue(10000)
    assert len(result.effects) == 1


def test_non_exhaustive_match():
    decls = 'fun head(xs) => { case xs of | Cons(x, _) => x end }'
    with pytest.raises(NonExhaustiveMatchError) as excinfo:
        run('head(Nil)', decls)
    assert excinfo.value.scrutinee_tag == 'Nil'


def test_first_matching_arm_wins():
    decls = """
        fun classify(n) => {
            case n of
            | 0 => 100
            | _ => 200
            | 1 => 300
            end
        }
    """
    assert run('Cons(classify(0), Cons(classify(1), Nil))', decls).value == DataValue(
        'Cons', (IntValue(100), DataValue('Cons', (IntValue(200), DataValue('Nil')))))


def test_repeated_runs_are_deterministic():
    source = f"""
        begin {PRELUDE}
            extern log : fun(Int) -> ();
        in
            #log(length(Cons(1, Nil)));
            #log(2);
            Cons(3, Nil)
        end
    """
    program = parse_program(source)
    interp = Interpreter(natives={'log': lambda args: None})
    first = interp.run(program)
    second = interp.run(program)
    assert first == second
    assert first.effects == [Effect('log', (IntValue(1),), True), Effect('log', (IntValue(2),), True)]


def test_effects_stop_at_unresolved_extern():
    source = """
        begin
            extern log : fun(Int) -> ();
            extern missing : fun(Int) -> ();
        in
            #log(1);
            #missing(2);
            #log(3)
        end
    """
    observed = []
    interp = Interpreter(natives={'log': lambda args: None}, observer=observed.append)
    with pytest.raises(UnresolvedExternError):
        interp.run(parse_program(source))
    assert interp.effects == [Effect('log', (IntValue(1),), True)]
    assert observed == interp.effects


def test_let_shadowing():
    assert run('let x = 1; let x = 2; x').value == IntValue(2)
    assert run('let x = 1; let y = begin let x = 5; x end; x').value == IntValue(1)


def test_functions_do_not_see_caller_locals():
    with pytest.raises(UnboundVariableError) as excinfo:
        run('let secret = 1; peek()', 'fun peek() = secret')
    assert excinfo.value.variable == 'secret'


def test_closures_capture_their_scope():
    decls = 'fun adder(n) = fn(x) => @iadd(x, n);'
    assert run('let add2 = adder(2); let n = 100; add2(5)', decls).value == IntValue(7)
    assert isinstance(run('adder(1)', decls).value, ClosureValue)


def test_call_arity_is_checked():
    with pytest.raises(ArityError) as excinfo:
        run('length(Nil, Nil)')
    assert excinfo.value.callee == 'length'


def test_constructor_arity_is_checked():
    with pytest.raises(ArityError):
        run('Cons(1)')


def test_calling_a_non_function():
    with pytest.raises(TypeMismatchError):
        run('let x = 1; x(2)')


def test_externs_are_not_values():
    with pytest.raises(UnboundVariableError):
        run('let f = log; 0', 'extern log : fun(Int) -> ();', natives={'log': lambda args: None})


def test_plain_extern_call_returns_host_value():
    result = run('@iadd(twice(4), 1)', 'extern twice : fun(Int) -> Int;',
                 natives={'twice': lambda args: args[0].value * 2})
    assert result.value == IntValue(9)
    assert result.effects == [Effect('twice', (IntValue(4),))]


def test_directive_value_is_unit():
    result = run('#twice(4)', 'extern twice : fun(Int) -> Int;',
                 natives={'twice': lambda args: args[0].value * 2})
    assert result.value is UNIT


def test_unknown_intrinsic_is_rejected_before_running():
    observed = []
    with pytest.raises(UnknownIntrinsicError):
        run('#log(1); 0', 'extern log : fun(Int) -> (); fun never() = @fadd(1, 2)',
            natives={'log': observed.append})
    assert observed == []


def test_custom_intrinsics():
    table = default_intrinsics()
    table.register('imax', 2, max)
    assert run('@imax(3, 9)', intrinsics=table).value == IntValue(9)


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    run('length(Cons(1, Nil))', debug_level=3, debug_file=str(debug_file))
    trace = debug_file.read_text(encoding='utf-8')
    assert 'define function length(xs)' in trace
    assert 'call length(Cons(1, Nil))' in trace
    assert 'case Nil -> arm 1' in trace


def test_deeply_nested_constructor_literal_runs():
    depth = 1000
    nested = ''.join(f'Cons({i}, ' for i in range(depth)) + 'Nil' + ')' * depth
    limit = sys.getrecursionlimit()
    assert run(f'length({nested})').value == IntValue(depth)
    assert sys.getrecursionlimit() == limit


def test_max_depth_counts_ember_calls():
    def make(args):
        xs = DataValue('Nil')
        for i in range(args[0].value):
            xs = DataValue('Cons', (IntValue(i), xs))
        return xs

    decls = 'extern make : fun(Int) -> List[Int];'
    result = run('length(make(10000))', decls, natives={'make': make}, max_depth=10000)
    assert result.value == IntValue(10000)
    with pytest.raises(RecursionError):
        run('length(make(3000))', decls, natives={'make': make}, max_depth=100)


def test_failed_load_clears_previous_effects():
    source = f'begin {PRELUDE} extern log : fun(Int) -> (); in #log(1); 0 end'
    interp = Interpreter(natives={'log': lambda args: None})
    interp.run(parse_program(source))
    assert interp.effects == [Effect('log', (IntValue(1),), True)]
    broken = parse_program(source)
    broken.declarations.append(broken.declarations[0])
    with pytest.raises(DuplicateDeclarationError):
        interp.run(broken)
    assert interp.effects == []


def test_errors_carry_the_effects_of_the_run():
    decls = 'extern log : fun(Int) -> (); fun head(xs) => { case xs of | Cons(x, _) => x end }'
    with pytest.raises(NonExhaustiveMatchError) as excinfo:
        run('#log(1); #log(2); head(Nil)', decls, natives={'log': lambda args: None})
    assert excinfo.value.effects == [
        Effect('log', (IntValue(1),), True), Effect('log', (IntValue(2),), True),
    ]


def test_literal_kinds_evaluate_to_their_values():
    result = run("Cons(1.5, Cons(true, Cons('q', Nil)))")
    assert result.value == DataValue('Cons', (RealValue(1.5), DataValue(
        'Cons', (BoolValue(True), DataValue('Cons', (CharValue('q'), DataValue('Nil')))))))


def test_matching_on_booleans_and_characters():
    decls = """
        fun describe(c) => {
            case @icmpeq(c, 0) of
            | true => 'z'
            | false => 'n'
            end
        }
    """
    assert run('describe(0)', decls).value == CharValue('z')
    assert run('describe(3)', decls).value == CharValue('n')
    with pytest.raises(NonExhaustiveMatchError) as excinfo:
        run("case 'x' of | 'y' => 1 end")
    assert excinfo.value.scrutinee_tag == 'x'


def test_block_functions_are_mutually_recursive():
    body = """
        begin
            fun even(n) => { case n of | 0 => true | _ => odd(@isub(n, 1)) end }
            fun odd(n) => { case n of | 0 => false | _ => even(@isub(n, 1)) end }
        in
            Cons(even(10), Cons(odd(7), Nil))
        end
    """
    assert run(body).value == DataValue('Cons', (BoolValue(True), DataValue(
        'Cons', (BoolValue(True), DataValue('Nil')))))


def test_block_functions_see_the_enclosing_scope():
    body = """
        let k = 10;
        begin
            fun scale(x) = @imul(x, k)
        in
            let k = 0;
            scale(3)
        end
    """
    assert run(body).value == IntValue(30)


def test_block_scope_ends_with_the_block():
    with pytest.raises(UnboundVariableError) as excinfo:
        run('let a = begin fun hidden() = 1 in hidden() end; hidden()')
    assert excinfo.value.variable == 'hidden'


def test_block_shadows_outer_functions():
    body = 'Cons(begin fun length(xs) = 99 in length(Nil) end, Cons(length(Nil), Nil))'
    assert run(body).value == DataValue('Cons', (IntValue(99), DataValue(
        'Cons', (IntValue(0), DataValue('Nil')))))


def test_local_data_declarations():
    body = """
        begin
            data Shape = Square(Int) | Rect(Int, Int) end;
            type Area = Int;
            fun area(s) -> Area => {
                case s of
                | Square(n) => @imul(n, n)
                | Rect(w, h) => @imul(w, h)
                end
            }
        in
            @iadd(area(Square(3)), area(Rect(2, 5)))
        end
    """
    assert run(body).value == IntValue(19)
