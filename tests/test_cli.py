import json
import shutil

import pytest

from ember.__main__ import main


def test_run_program_file(capsys):
    main(['examples/program_1.ember'])
    assert capsys.readouterr().out.strip() == '5'


def test_final_value_is_printed(capsys):
    main(['examples/program_8.ember'])
    assert capsys.readouterr().out.strip() == 'Pair(55, 17)'


def test_runtime_error_exits_with_status_1(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(['examples/program_6.ember'])
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out.strip().split('\n') == ['12', '9']
    assert captured.err.startswith('Error: NonExhaustiveMatchError at line 6')


def test_missing_file(capsys):
    with pytest.raises(SystemExit):
        main(['examples/no_such_program.ember'])
    assert 'not found' in capsys.readouterr().err


def test_emit_ast_then_run(tmp_path, capsys):
    source = tmp_path / 'length.ember'
    shutil.copy('examples/program_1.ember', source)
    main(['--emit-ast', str(source)])
    out_path = capsys.readouterr().out.strip()
    assert out_path == str(tmp_path / 'length.ember.ast.json')
    with open(out_path, 'r', encoding='utf-8') as f:
        assert json.load(f)['type'] == 'Program'
    main(['--ast', out_path])
    assert capsys.readouterr().out.strip() == '5'


def test_pretty(capsys):
    main(['--pretty', 'examples/program_2.ember'])
    out = capsys.readouterr().out
    assert out.startswith('begin\n  extern print_int : fun(Int) -> ();\n')
    assert out.endswith('in\n  #print_int(length(Nil))\nend\n')


def test_max_depth_help_names_ember_calls(capsys):
    with pytest.raises(SystemExit):
        main(['--help'])
    assert 'maximum depth of nested Ember calls' in capsys.readouterr().out
