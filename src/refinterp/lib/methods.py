from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List

from .. import containers
from ..equality import value_equal
from ..errors import ArgumentValueError, OperandTypeError, ValueNotFoundError
from ..values import Kind
from .builtins import Builtin

if TYPE_CHECKING:
    from ..main import Interpreter

# kind -> method name -> Builtin; impl receives [receiver, *args].
METHODS: Dict[Kind, Dict[str, Builtin]] = {kind: {} for kind in Kind}


def method(kind: Kind, name: str, min_args: int, max_args: int):
    def register(impl: Callable[["Interpreter", List[int]], int]):
        METHODS[kind][name] = Builtin(f"{kind.value}.{name}", min_args, max_args, impl)
        return impl

    return register


def lookup_method(kind: Kind, name: str) -> Builtin:
    found = METHODS[kind].get(name)
    if found is None:
        raise OperandTypeError(f"'{kind.value}' object has no method '{name}'")
    return found


def _nil(interp: "Interpreter") -> int:
    return interp.store.allocate(Kind.NIL, None)


def _new_list(interp: "Interpreter", owned_items: List[int]) -> int:
    try:
        return interp.store.allocate(Kind.LIST, owned_items)
    finally:
        interp.store.release_all(owned_items)


# ----------------------------
# List
# ----------------------------


@method(Kind.LIST, "append", 1, 1)
def _list_append(interp: "Interpreter", args: List[int]) -> int:
    containers.list_append(interp.store, args[0], args[1])
    return _nil(interp)


@method(Kind.LIST, "extend", 1, 1)
def _list_extend(interp: "Interpreter", args: List[int]) -> int:
    items = interp._materialize(args[1])
    try:
        containers.list_extend(interp.store, args[0], items)
    finally:
        interp.store.release_all(items)
    return _nil(interp)


@method(Kind.LIST, "insert", 2, 2)
def _list_insert(interp: "Interpreter", args: List[int]) -> int:
    index = interp._as_int(args[1], "list.insert()")
    containers.list_insert(interp.store, args[0], index, args[2])
    return _nil(interp)


@method(Kind.LIST, "pop", 0, 1)
def _list_pop(interp: "Interpreter", args: List[int]) -> int:
    index = interp._as_int(args[1], "list.pop()") if len(args) > 1 else -1
    return containers.list_pop(interp.store, args[0], index)


@method(Kind.LIST, "copy", 0, 0)
def _list_copy(interp: "Interpreter", args: List[int]) -> int:
    return interp._shallow_copy(args[0])


@method(Kind.LIST, "clear", 0, 0)
def _list_clear(interp: "Interpreter", args: List[int]) -> int:
    containers.list_clear(interp.store, args[0])
    return _nil(interp)


def _find(interp: "Interpreter", list_id: int, item: int) -> int:
    for position, candidate in enumerate(list(interp.store.content_of(list_id))):
        if value_equal(interp.store, candidate, item):
            return position
    return -1


@method(Kind.LIST, "index", 1, 1)
def _list_index(interp: "Interpreter", args: List[int]) -> int:
    position = _find(interp, args[0], args[1])
    if position < 0:
        raise ValueNotFoundError("list.index(x): x not in list")
    return interp.store.allocate(Kind.INTEGER, position)


@method(Kind.LIST, "remove", 1, 1)
def _list_remove(interp: "Interpreter", args: List[int]) -> int:
    position = _find(interp, args[0], args[1])
    if position < 0:
        raise ValueNotFoundError("list.remove(x): x not in list")
    containers.list_delete_item(interp.store, args[0], position)
    return _nil(interp)


@method(Kind.LIST, "count", 1, 1)
def _list_count(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    total = sum(1 for candidate in list(store.content_of(args[0])) if value_equal(store, candidate, args[1]))
    return store.allocate(Kind.INTEGER, total)


# ----------------------------
# Mapping
# ----------------------------


@method(Kind.MAPPING, "get", 1, 2)
def _map_get(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    if containers.map_contains(store, args[0], args[1]):
        return store.retain(containers.map_get(store, args[0], args[1]))
    return store.retain(args[2]) if len(args) > 2 else _nil(interp)


@method(Kind.MAPPING, "keys", 0, 0)
def _map_keys(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.LIST, containers.map_keys(interp.store, args[0]))


@method(Kind.MAPPING, "values", 0, 0)
def _map_values(interp: "Interpreter", args: List[int]) -> int:
    pairs = containers.map_items(interp.store, args[0])
    return interp.store.allocate(Kind.LIST, [value for _, value in pairs])


@method(Kind.MAPPING, "items", 0, 0)
def _map_items(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    pairs = [store.allocate(Kind.LIST, pair) for pair in containers.map_items(store, args[0])]
    return _new_list(interp, pairs)


@method(Kind.MAPPING, "pop", 1, 2)
def _map_pop(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    if len(args) > 2 and not containers.map_contains(store, args[0], args[1]):
        return store.retain(args[2])
    key, value = containers.map_pop_entry(store, args[0], args[1])
    store.release(key)
    return value


@method(Kind.MAPPING, "copy", 0, 0)
def _map_copy(interp: "Interpreter", args: List[int]) -> int:
    return interp._shallow_copy(args[0])


@method(Kind.MAPPING, "clear", 0, 0)
def _map_clear(interp: "Interpreter", args: List[int]) -> int:
    containers.map_clear(interp.store, args[0])
    return _nil(interp)


@method(Kind.MAPPING, "update", 1, 1)
def _map_update(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    if store.kind_of(args[1]) is not Kind.MAPPING:
        raise OperandTypeError(f"dict.update() argument must be a dict, not '{store.kind_of(args[1]).value}'")
    for key, value in containers.map_items(store, args[1]):
        containers.map_set(store, args[0], key, value)
    return _nil(interp)


# ----------------------------
# Text
# ----------------------------


def _text(interp: "Interpreter", identity: int) -> str:
    return interp.store.content_of(identity)


@method(Kind.TEXT, "upper", 0, 0)
def _text_upper(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.TEXT, _text(interp, args[0]).upper())


@method(Kind.TEXT, "lower", 0, 0)
def _text_lower(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.TEXT, _text(interp, args[0]).lower())


@method(Kind.TEXT, "strip", 0, 0)
def _text_strip(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.TEXT, _text(interp, args[0]).strip())


@method(Kind.TEXT, "split", 0, 1)
def _text_split(interp: "Interpreter", args: List[int]) -> int:
    separator = None
    if len(args) > 1:
        if interp.store.kind_of(args[1]) is not Kind.TEXT:
            raise OperandTypeError("str.split() separator must be a str")
        separator = _text(interp, args[1])
        if not separator:
            raise ArgumentValueError("empty separator")
    parts = _text(interp, args[0]).split(separator)
    return _new_list(interp, [interp.store.allocate(Kind.TEXT, part) for part in parts])


@method(Kind.TEXT, "join", 1, 1)
def _text_join(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    items = interp._materialize(args[1])
    try:
        for item in items:
            if store.kind_of(item) is not Kind.TEXT:
                raise OperandTypeError(
                    f"str.join() expected str items, found '{store.kind_of(item).value}'"
                )
        joined = _text(interp, args[0]).join(store.content_of(item) for item in items)
    finally:
        store.release_all(items)
    return store.allocate(Kind.TEXT, joined)
