import pytest

from ember.ast import ConstructorDecl, DataDecl
from ember.constructors import ConstructorTable
from ember.errors import ArityError, DuplicateConstructorError, DuplicateDeclarationError, UnknownConstructorError
from ember.types import DataValue, IntValue, TypeSpec


T = TypeSpec('T')


def list_decl(name='List', cons='Cons', nil='Nil'):
    return DataDecl(name, ['T'], [
        ConstructorDecl(cons, [T, TypeSpec(name, (T,))]),
        ConstructorDecl(nil, []),
    ])


def test_declare_and_lookup():
    table = ConstructorTable.from_declarations([list_decl()])
    assert 'Cons' in table and 'Nil' in table
    assert len(table) == 2
    cons = table.lookup_constructor('Cons')
    assert (cons.type_name, cons.arity) == ('List', 2)
    assert [d.name for d in table.constructors_of('List')] == ['Cons', 'Nil']
    assert table.type_names == ('List',)


def test_construct_checks_arity():
    table = ConstructorTable.from_declarations([list_decl()])
    nil = table.construct('Nil', [])
    value = table.construct('Cons', [IntValue(1), nil])
    assert value == DataValue('Cons', (IntValue(1), DataValue('Nil')))
    with pytest.raises(ArityError) as excinfo:
        table.construct('Cons', [IntValue(1)])
    assert (excinfo.value.expected, excinfo.value.got) == (2, 1)


def test_nullary_values_are_shared():
    table = ConstructorTable.from_declarations([list_decl()])
    assert table.construct('Nil', []) is table.construct('Nil', [])


def test_unknown_constructor():
    table = ConstructorTable()
    with pytest.raises(UnknownConstructorError):
        table.construct('Some', [IntValue(1)])


def test_duplicate_constructor_across_types():
    with pytest.raises(DuplicateConstructorError):
        ConstructorTable.from_declarations([list_decl(), list_decl(name='Stream')])


def test_duplicate_type_name():
    with pytest.raises(DuplicateDeclarationError):
        ConstructorTable.from_declarations([list_decl(), list_decl(cons='More', nil='Done')])
