from __future__ import annotations

import pytest

from refinterp import (
    ArgumentValueError,
    Interpreter,
    Kind,
    NumericOverflowError,
    OperandTypeError,
    RefInterpError,
    ValueNotFoundError,
)
from refinterp.bridge import from_python, to_python
from refinterp.display import format_value


def test_emit_and_print_route_through_the_host_callable(run_interpreter, emitted):
    source = """
emit('a', 1, 2.5, None, True)
print([1, 'two', {'k': [None]}])
print()
"""
    run_interpreter(source, emit=emitted.append)
    assert emitted == ["a 1 2.5 None True", "[1, 'two', {'k': [None]}]", ""]


def test_default_emit_writes_to_stdout(capsys):
    Interpreter().run("print('hi', 3)").raise_for_exception()
    assert capsys.readouterr().out == "hi 3\n"


def test_self_referencing_list_displays_with_ellipsis(run_interpreter, emitted):
    run_interpreter("L = [1]\nL.append(L)\nprint(L)\nD = {}\nD['me'] = D\nprint(D)\n", emit=emitted.append)
    assert emitted == ["[1, [...]]", "{'me': {...}}"]


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("R = len('abc')", 3),
        ("R = len({'a': 1})", 1),
        ("R = range(3)", [0, 1, 2]),
        ("R = range(1, 10, 4)", [1, 5, 9]),
        ("R = range(3, 0, -1)", [3, 2, 1]),
        ("R = list('ab')", ["a", "b"]),
        ("R = list({'x': 1, 'y': 2})", ["x", "y"]),
        ("R = str([1, 'a'])", "[1, 'a']"),
        ("R = int('42') + int(3.9)", 45),
        ("R = float('1.5')", 1.5),
        ("R = bool([]) or bool('x')", True),
        ("R = kind({})", "dict"),
        ("R = kind(1.0)", "float"),
        ("R = sum([1, 2, 3.5])", 6.5),
        ("R = sum([])", 0),
    ],
)
def test_builtin_functions(run_interpreter, source, expected):
    assert run_interpreter(source).read("R") == expected


def test_id_reports_the_identity(run_interpreter):
    result = run_interpreter("L = []\nM = L\nSAME = id(L) == id(M)\nOTHER = id(L) == id([])\n")
    assert result.read("SAME") is True
    assert result.read("OTHER") is False


@pytest.mark.parametrize(
    ("source", "error"),
    [
        ("len()", OperandTypeError),
        ("len([], [])", OperandTypeError),
        ("range(1, 2, 0)", OperandTypeError),
        ("range('a')", OperandTypeError),
        ("int('x')", OperandTypeError),
        ("sum(['a'])", OperandTypeError),
        ("[1].index(2)", ValueNotFoundError),
        ("[1].remove(2)", ValueNotFoundError),
        ("[].pop()", IndexError),
        ("'a,b'.join([1])", OperandTypeError),
        ("{}.update([])", OperandTypeError),
        ("{}.pop('k')", KeyError),
        ("'x'.append(1)", OperandTypeError),
        ("'a,b'.split('')", ArgumentValueError),
        ("float(10 ** 400)", NumericOverflowError),
        ("int(1e308 * 10)", NumericOverflowError),
    ],
)
def test_builtin_errors(source, error):
    result = Interpreter().run(source)
    assert isinstance(result.exception, error)
    assert isinstance(result.exception, RefInterpError)


def test_list_methods(run_interpreter):
    source = """
L = [3, 1]
L.append(4)
L.extend([1, 5])
L.insert(0, 9)
last = L.pop()
first = L.pop(0)
where = L.index(4)
L.remove(1)
ones = L.count(1)
alias = L
dup = L.copy()
L.clear()
"""
    result = run_interpreter(source)
    assert result.read("last") == 5
    assert result.read("first") == 9
    assert result.read("where") == 2
    assert result.read("ones") == 1
    assert result.read("alias") == []
    assert result.read("dup") == [3, 4, 1]


def test_mapping_methods(run_interpreter):
    source = """
D = {'a': 1}
D.update({'b': 2, 'a': 10})
got = D.get('a')
fallback = D.get('zzz', 'none')
missing = D.get('zzz')
keys = D.keys()
values = D.values()
items = D.items()
popped = D.pop('a')
default = D.pop('a', 0)
snapshot = D.copy()
D.clear()
"""
    result = run_interpreter(source)
    assert result.read("got") == 10
    assert result.read("fallback") == "none"
    assert result.read("missing") is None
    assert result.read("keys") == ["a", "b"]
    assert result.read("values") == [10, 2]
    assert result.read("items") == [["a", 10], ["b", 2]]
    assert result.read("popped") == 10
    assert result.read("default") == 0
    assert result.read("snapshot") == {"b": 2}
    assert result.read("D") == {}


def test_text_methods(run_interpreter):
    source = """
words = '  Hello World  '.strip().lower().split()
csv = 'a,b,,c'.split(',')
joined = '-'.join(words)
shout = joined.upper()
"""
    result = run_interpreter(source)
    assert result.read("words") == ["hello", "world"]
    assert result.read("csv") == ["a", "b", "", "c"]
    assert result.read("shout") == "HELLO-WORLD"


def test_builtin_calls_do_not_leak_values():
    interpreter = Interpreter(cache_small_scalars=False)
    frame = interpreter.new_frame()
    source = """
L = range(5)
L.extend(list('abc'))
D = {'k': L.copy()}
D.update({'j': D.items()})
n = len(L) + sum(range(3))
s = str(D)
emit(s)
"""
    interpreter.emit = lambda line: None
    interpreter.run(source, frame=frame).raise_for_exception()
    frame.unbind_frame()
    assert interpreter.store.live_count() == 0


def test_bridge_preserves_shared_and_cyclic_structure():
    interpreter = Interpreter()
    store = interpreter.store
    shared = [1]
    outer = [shared, shared]
    outer.append(outer)
    identity = from_python(store, outer)

    value = store.get(identity)
    assert value.kind is Kind.LIST
    assert value.content[0] == value.content[1]
    assert value.content[2] == identity
    assert format_value(store, identity) == "[[1], [1], [...]]"

    exported = to_python(store, identity)
    assert exported[0] is exported[1]
    assert exported[2] is exported


def test_bridge_imports_tuples_as_lists_and_rejects_unknown_objects():
    store = Interpreter().store
    assert to_python(store, from_python(store, (1, ("a", None)))) == [1, ["a", None]]
    with pytest.raises(TypeError):
        from_python(store, object())


def test_failed_bridge_import_releases_partial_work():
    store = Interpreter(cache_small_scalars=False).store
    with pytest.raises(TypeError):
        from_python(store, {1: object()})
    with pytest.raises(TypeError):
        from_python(store, {(1, 2): 3})
    with pytest.raises(TypeError):
        from_python(store, {"ok": [1.5], "bad": [object()]})
    assert store.live_count() == 0
