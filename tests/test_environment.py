from __future__ import annotations

import pytest

from refinterp import Frame, Kind, UnboundNameError, ValueStore


@pytest.fixture
def store():
    return ValueStore(cache_small_scalars=False)


def test_bind_and_resolve(store):
    frame = Frame(store)
    identity = store.allocate(Kind.INTEGER, 3)
    frame.bind("a", identity)
    store.release(identity)
    assert frame.resolve("a") == identity
    assert store.refcount(identity) == 1


def test_resolving_an_absent_name_fails(store):
    with pytest.raises(UnboundNameError) as info:
        Frame(store).resolve("nope")
    assert info.value.name == "nope"
    assert str(info.value) == "name 'nope' is not defined"


def test_rebinding_releases_the_old_value(store):
    frame = Frame(store)
    old = store.allocate(Kind.TEXT, "old")
    frame.bind("x", old)
    store.release(old)
    new = store.allocate(Kind.TEXT, "new")
    frame.bind("x", new)
    store.release(new)
    assert not store.is_live(old)
    assert store.refcount(new) == 1


def test_rebinding_a_name_to_its_own_value_keeps_it_alive(store):
    frame = Frame(store)
    identity = store.allocate(Kind.LIST, [])
    frame.bind("L", identity)
    store.release(identity)
    frame.bind("L", frame.resolve("L"))
    assert store.is_live(identity)
    assert store.refcount(identity) == 1


def test_reads_fall_through_to_parents_but_writes_stay_local(store):
    root = Frame(store)
    child = root.new_child("child")
    value = store.allocate(Kind.INTEGER, 1)
    root.bind("shared", value)
    store.release(value)
    assert child.resolve("shared") == value

    shadow = store.allocate(Kind.INTEGER, 2)
    child.bind("shared", shadow)
    store.release(shadow)
    assert child.resolve("shared") == shadow
    assert root.resolve("shared") == value
    assert child.root is root


def test_unbind_frame_releases_every_binding(store):
    frame = Frame(store)
    for name in ("a", "b", "c"):
        identity = store.allocate(Kind.FLOAT, 0.5)
        frame.bind(name, identity)
        store.release(identity)
    assert store.live_count() == 3
    frame.unbind_frame()
    assert store.live_count() == 0
    assert frame.closed
    with pytest.raises(RuntimeError):
        frame.bind("a", store.allocate(Kind.NIL, None))


def test_shared_value_survives_until_its_last_binding_goes(store):
    root = Frame(store)
    child = root.new_child()
    identity = store.allocate(Kind.LIST, [])
    root.bind("a", identity)
    child.bind("b", identity)
    store.release(identity)

    child.unbind_frame()
    assert store.is_live(identity)
    root.unbind("a")
    assert not store.is_live(identity)


def test_unbind_of_absent_name_fails(store):
    with pytest.raises(UnboundNameError):
        Frame(store).unbind("ghost")


def test_global_declaration_targets_the_root(store):
    root = Frame(store)
    child = root.new_child()
    child.declare_global("g")
    identity = store.allocate(Kind.INTEGER, 9)
    child.bind("g", identity)
    store.release(identity)
    assert "g" in root
    assert "g" not in child
    assert child.resolve("g") == identity


def test_global_after_assignment_is_a_syntax_error(store):
    child = Frame(store).new_child()
    identity = store.allocate(Kind.INTEGER, 9)
    child.bind("g", identity)
    with pytest.raises(SyntaxError):
        child.declare_global("g")


def test_nonlocal_declaration_targets_the_nearest_enclosing_binding(store):
    root = Frame(store)
    outer = root.new_child("outer")
    middle = outer.new_child("middle")
    inner = middle.new_child("inner")
    original = store.allocate(Kind.INTEGER, 1)
    outer.bind("n", original)
    store.release(original)

    inner.declare_nonlocal("n")
    updated = store.allocate(Kind.INTEGER, 2)
    inner.bind("n", updated)
    store.release(updated)
    assert outer.resolve("n") == updated
    assert "n" not in middle
    assert "n" not in inner


def test_nonlocal_never_reaches_the_root(store):
    root = Frame(store)
    identity = store.allocate(Kind.INTEGER, 1)
    root.bind("n", identity)
    child = root.new_child()
    with pytest.raises(UnboundNameError):
        child.declare_nonlocal("n")


def test_child_frames_must_share_the_store(store):
    with pytest.raises(ValueError):
        Frame(ValueStore(), Frame(store))
