from __future__ import annotations

import pytest

from refinterp import Kind, UnhashableKeyError, ValueStore
from refinterp.bridge import from_python
from refinterp.equality import key_form, same_identity, value_equal


@pytest.fixture
def store():
    return ValueStore(cache_small_scalars=False)


def test_nested_structures_compare_by_value(store):
    a = from_python(store, [1, [2, 3], {"k": "v"}])
    b = from_python(store, [1, [2, 3], {"k": "v"}])
    assert value_equal(store, a, b)
    assert value_equal(store, b, a)
    assert value_equal(store, a, a)
    assert not same_identity(store, a, b)


def test_same_identity_implies_value_equal(store):
    a = from_python(store, [1.5, "x"])
    alias = store.retain(a)
    assert same_identity(store, a, alias)
    assert value_equal(store, a, alias)


def test_list_order_matters_but_mapping_order_does_not(store):
    assert not value_equal(store, from_python(store, [1, 2]), from_python(store, [2, 1]))
    assert value_equal(store, from_python(store, {"a": 1, "b": 2}), from_python(store, {"b": 2, "a": 1}))
    assert not value_equal(store, from_python(store, {"a": 1}), from_python(store, {"a": 2}))
    assert not value_equal(store, from_python(store, {"a": 1}), from_python(store, {"b": 1}))


def test_numbers_compare_across_integer_and_float(store):
    assert value_equal(store, store.allocate(Kind.INTEGER, 2), store.allocate(Kind.FLOAT, 2.0))
    assert not value_equal(store, store.allocate(Kind.INTEGER, 2), store.allocate(Kind.TEXT, "2"))


def test_booleans_only_equal_booleans(store):
    assert not value_equal(store, store.allocate(Kind.BOOLEAN, True), store.allocate(Kind.INTEGER, 1))
    assert value_equal(store, store.allocate(Kind.BOOLEAN, False), store.allocate(Kind.BOOLEAN, False))


def test_equality_does_not_depend_on_scalar_sharing():
    cached = ValueStore(cache_small_scalars=True)
    uncached = ValueStore(cache_small_scalars=False)
    for store in (cached, uncached):
        assert value_equal(store, store.allocate(Kind.INTEGER, 7), store.allocate(Kind.INTEGER, 7))
        assert value_equal(store, store.allocate(Kind.NIL, None), store.allocate(Kind.NIL, None))


def test_self_referential_lists_compare_without_recursing_forever(store):
    a = from_python(store, [])
    b = from_python(store, [])
    store.mutate_in_place(a, lambda items: items.append(store.retain(a)))
    store.mutate_in_place(b, lambda items: items.append(store.retain(b)))
    assert value_equal(store, a, b)

    c = from_python(store, [1])
    store.mutate_in_place(c, lambda items: items.append(store.retain(c)))
    assert not value_equal(store, a, c)


def test_key_form_unifies_equal_numbers_and_rejects_mutables(store):
    assert key_form(store, store.allocate(Kind.INTEGER, 1)) == key_form(store, store.allocate(Kind.FLOAT, 1.0))
    assert key_form(store, store.allocate(Kind.BOOLEAN, True)) != key_form(store, store.allocate(Kind.INTEGER, 1))
    with pytest.raises(UnhashableKeyError, match="unhashable type: 'list'"):
        key_form(store, store.allocate(Kind.LIST, []))
