import pytest

from minilisp.minilisp_datatypes import (
    VARIADIC, Function, VariadicFunction, OverloadSet, Registry,
    StringRef, SymbolRef, ListNode, ValueKind, kind_of, type_matches,
    EvaluationError, UnexpectedEndOfInput, MiniLispError
)


@pytest.mark.parametrize("value, kind", [
    (1, ValueKind.INTEGER),
    (-7, ValueKind.INTEGER),
    (True, ValueKind.BOOLEAN),
    (None, ValueKind.NULL),
    ("s", ValueKind.STRING),
    (object(), ValueKind.OBJECT),
    ([1], ValueKind.OBJECT),
])
def test_kind_of(value, kind):
    assert kind_of(value) is kind


@pytest.mark.parametrize("value, expected, ok", [
    (1, int, True),
    (True, int, False),
    (True, bool, True),
    (1, bool, False),
    ("a", str, True),
    (None, object, False),
    (None, type(None), True),
    (None, int, False),
    (1, object, True),
    ("a", object, True),
])
def test_type_matches(value, expected, ok):
    assert type_matches(value, expected) is ok


def test_function_arity_and_invoke():
    fn = Function(lambda a, b: a + b, int, int)
    assert fn.arity == 2
    assert not fn.is_variadic
    assert fn.try_invoke([1, 2]) == (True, 3)
    assert fn.try_invoke([1, "2"]) == (False, None)
    assert fn.try_invoke([1]) == (False, None)


def test_function_does_not_call_on_mismatch():
    calls = []
    fn = Function(lambda a: calls.append(a), str)
    assert fn.try_invoke([1]) == (False, None)
    assert calls == []


def test_typed_variadic_requires_uniform_arguments():
    fn = VariadicFunction(sum, int)
    assert fn.arity == VARIADIC
    assert fn.is_variadic
    assert fn.try_invoke([]) == (True, 0)
    assert fn.try_invoke([1, 2, 3]) == (True, 6)
    assert fn.try_invoke([1, True]) == (False, None)


def test_untyped_variadic_always_invokes():
    fn = VariadicFunction(len)
    assert fn.try_invoke([None, "a", 1]) == (True, 3)


def test_variadic_receives_a_copy_of_arguments():
    seen = []
    fn = VariadicFunction(lambda args: seen.append(args) or args)
    args = [1, 2]
    fn.try_invoke(args)
    assert seen[0] == args and seen[0] is not args


def test_registry_is_additive_and_ordered():
    reg = Registry()
    a, b = Function(lambda: 1), Function(lambda: 2)
    reg.register("x", a)
    reg.register("y", b)
    reg.register("x", b)
    assert "x" in reg and "z" not in reg
    assert reg.symbols() == ["x", "y"]
    assert len(reg) == 2
    overloads = reg.lookup("x")
    assert isinstance(overloads, OverloadSet)
    assert overloads.name == "x"
    assert list(overloads) == [a, b]
    assert reg.lookup("z") is None


def test_string_ref_unescapes_every_backslash():
    source = '"a\\"b\\\\c\\d"'
    ref = StringRef(1, len(source) - 2)
    assert ref.raw(source) == 'a\\"b\\\\c\\d'
    assert ref.text(source) == 'a"b\\cd'


def test_refs_compare_by_span_and_kind():
    assert SymbolRef(1, 2) == SymbolRef(1, 2)
    assert SymbolRef(1, 2) != SymbolRef(1, 3)
    assert SymbolRef(1, 2) != StringRef(1, 2)
    assert SymbolRef(3, 4).end == 7


def test_list_node_is_a_sequence():
    node = ListNode([SymbolRef(1, 1), SymbolRef(3, 1)], start=0)
    assert len(node) == 2
    assert node[1] == SymbolRef(3, 1)
    assert node == ListNode([SymbolRef(1, 1), SymbolRef(3, 1)])


def test_error_hierarchy():
    eoi = UnexpectedEndOfInput(position=4)
    assert isinstance(eoi, MiniLispError) and isinstance(eoi, EOFError)
    assert eoi.position == 4
    assert str(eoi) == "Data ended unexpectedly."

    err = EvaluationError("Unknown function 'f'", position=1, symbol="f")
    assert isinstance(err, MiniLispError)
    assert (err.message, err.position, err.symbol) == ("Unknown function 'f'", 1, "f")
