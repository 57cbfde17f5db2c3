"""
In-place List and Mapping operations.

Every change goes through `ValueStore.mutate_in_place`. Identities that start
being referenced are retained inside the mutation; identities that stop being
referenced are released after it, once the container is consistent again.

Returned identities are borrowed unless the docstring says "owned".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Tuple

from .equality import key_form
from .errors import IndexOutOfRangeError, MissingKeyError, SliceSizeError
from .values import Kind

if TYPE_CHECKING:
    from .store import ValueStore


def normalize_index(index: int, length: int, what: str = "list") -> int:
    if index < 0:
        index += length
    if not 0 <= index < length:
        raise IndexOutOfRangeError(f"{what} index out of range")
    return index


def _check_live(store: "ValueStore", identities: Sequence[int]) -> None:
    for identity in identities:
        store.get(identity)


# ----------------------------
# List
# ----------------------------


def list_get_item(store: "ValueStore", list_id: int, index: int) -> int:
    items = store.content_of(list_id)
    return items[normalize_index(index, len(items))]


def list_set_item(store: "ValueStore", list_id: int, index: int, item: int) -> None:
    store.get(item)

    def op(items: List[int]) -> int:
        position = normalize_index(index, len(items), "list assignment")
        old = items[position]
        items[position] = store.retain(item)
        return old

    store.release(store.mutate_in_place(list_id, op))


def list_delete_item(store: "ValueStore", list_id: int, index: int) -> None:
    def op(items: List[int]) -> int:
        return items.pop(normalize_index(index, len(items), "list assignment"))

    store.release(store.mutate_in_place(list_id, op))


def list_append(store: "ValueStore", list_id: int, item: int) -> None:
    list_extend(store, list_id, [item])


def list_extend(store: "ValueStore", list_id: int, new_items: Sequence[int]) -> None:
    new_items = list(new_items)
    _check_live(store, new_items)

    def op(items: List[int]) -> None:
        for item in new_items:
            store.retain(item)
        items.extend(new_items)

    store.mutate_in_place(list_id, op)


def list_insert(store: "ValueStore", list_id: int, index: int, item: int) -> None:
    store.get(item)

    def op(items: List[int]) -> None:
        items.insert(index, store.retain(item))

    store.mutate_in_place(list_id, op)


def list_pop(store: "ValueStore", list_id: int, index: int = -1) -> int:
    """Remove and return an item; the list's reference becomes the caller's (owned)."""

    def op(items: List[int]) -> int:
        if not items:
            raise IndexOutOfRangeError("pop from empty list")
        return items.pop(normalize_index(index, len(items), "pop"))

    return store.mutate_in_place(list_id, op)


def list_repeat_in_place(store: "ValueStore", list_id: int, count: int) -> None:
    """`L *= n`: the list ends up holding its own items n times, one level deep."""

    def op(items: List[int]) -> List[int]:
        if count <= 0:
            removed = list(items)
            items.clear()
            return removed
        added = list(items) * (count - 1)
        for item in added:
            store.retain(item)
        items.extend(added)
        return []

    store.release_all(store.mutate_in_place(list_id, op))


def list_clear(store: "ValueStore", list_id: int) -> None:
    def op(items: List[int]) -> List[int]:
        removed = list(items)
        items.clear()
        return removed

    store.release_all(store.mutate_in_place(list_id, op))


def list_get_slice(store: "ValueStore", list_id: int, window: slice) -> int:
    """Owned: a new list sharing the selected item identities."""
    return store.allocate(Kind.LIST, store.content_of(list_id)[window])


def list_set_slice(store: "ValueStore", list_id: int, window: slice, new_items: Sequence[int]) -> None:
    """
    Replace a slice. A step of 1 may change the list's length (`L[1:2] = []`
    deletes, `L[1:1] = [x]` inserts); extended slices must match in length.
    """
    new_items = list(new_items)
    _check_live(store, new_items)

    def op(items: List[int]) -> List[int]:
        if window.step not in (None, 1):
            selected = range(*window.indices(len(items)))
            if len(selected) != len(new_items):
                raise SliceSizeError(
                    f"attempt to assign sequence of size {len(new_items)} "
                    f"to extended slice of size {len(selected)}"
                )
        removed = items[window]
        for item in new_items:
            store.retain(item)
        items[window] = new_items
        return removed

    store.release_all(store.mutate_in_place(list_id, op))


def list_delete_slice(store: "ValueStore", list_id: int, window: slice) -> None:
    def op(items: List[int]) -> List[int]:
        removed = items[window]
        del items[window]
        return removed

    store.release_all(store.mutate_in_place(list_id, op))


# ----------------------------
# Mapping
# ----------------------------

Entries = Dict[Any, Tuple[int, int]]


def _missing(store: "ValueStore", key_id: int) -> MissingKeyError:
    from .display import format_value

    return MissingKeyError(format_value(store, key_id, quote=True))


def _keys_changed(store: "ValueStore", map_id: int) -> None:
    store.get(map_id).key_generation += 1


def map_contains(store: "ValueStore", map_id: int, key_id: int) -> bool:
    return key_form(store, key_id) in store.content_of(map_id)


def map_get(store: "ValueStore", map_id: int, key_id: int) -> int:
    entry = store.content_of(map_id).get(key_form(store, key_id))
    if entry is None:
        raise _missing(store, key_id)
    return entry[1]


def map_set(store: "ValueStore", map_id: int, key_id: int, value_id: int) -> None:
    """Update in place when the key exists, otherwise append the pair at the end."""
    form = key_form(store, key_id)
    store.get(value_id)

    def op(entries: Entries) -> int | None:
        existing = entries.get(form)
        store.retain(value_id)
        if existing is None:
            entries[form] = (store.retain(key_id), value_id)
            return None
        entries[form] = (existing[0], value_id)
        return existing[1]

    old_value = store.mutate_in_place(map_id, op)
    if old_value is None:
        _keys_changed(store, map_id)
    else:
        store.release(old_value)


def map_delete(store: "ValueStore", map_id: int, key_id: int) -> None:
    store.release_all(map_pop_entry(store, map_id, key_id))


def map_pop_entry(store: "ValueStore", map_id: int, key_id: int) -> Tuple[int, int]:
    """Remove a pair; both references become the caller's (owned)."""
    form = key_form(store, key_id)
    entry = store.mutate_in_place(map_id, lambda entries: entries.pop(form, None))
    if entry is None:
        raise _missing(store, key_id)
    _keys_changed(store, map_id)
    return entry


def map_clear(store: "ValueStore", map_id: int) -> None:
    def op(entries: Entries) -> List[int]:
        removed = [child for pair in entries.values() for child in pair]
        entries.clear()
        return removed

    removed = store.mutate_in_place(map_id, op)
    _keys_changed(store, map_id)
    store.release_all(removed)


def map_keys(store: "ValueStore", map_id: int) -> List[int]:
    return [key for key, _ in store.content_of(map_id).values()]


def map_items(store: "ValueStore", map_id: int) -> List[Tuple[int, int]]:
    return list(store.content_of(map_id).values())
