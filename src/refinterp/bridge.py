"""
Conversion between store values and native Python objects.

This is the seam a host uses to persist or inspect values: `to_python`
exports a value (lists and dicts are rebuilt, shared and cyclic structure is
preserved), `from_python` imports one and returns an owned identity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from .containers import map_set
from .values import Kind, kind_for_native

if TYPE_CHECKING:
    from .store import ValueStore


def to_python(store: "ValueStore", identity: int) -> Any:
    return _export(store, identity, {})


def _export(store: "ValueStore", identity: int, memo: Dict[int, Any]) -> Any:
    value = store.get(identity)
    if not value.kind.mutable:
        return value.content
    if identity in memo:
        return memo[identity]

    if value.kind is Kind.LIST:
        out_list: List[Any] = []
        memo[identity] = out_list
        out_list.extend(_export(store, item, memo) for item in value.content)
        return out_list

    out_dict: Dict[Any, Any] = {}
    memo[identity] = out_dict
    for key, val in list(value.content.values()):
        out_dict[_export(store, key, memo)] = _export(store, val, memo)
    return out_dict


def from_python(store: "ValueStore", obj: Any) -> int:
    """Import a native object; tuples become lists. Returns an owned identity."""
    return _import(store, obj, {})


def _import(store: "ValueStore", obj: Any, memo: Dict[int, int]) -> int:
    kind = kind_for_native(obj)
    if not kind.mutable:
        return store.allocate(kind, obj)
    if id(obj) in memo:
        return store.retain(memo[id(obj)])

    if kind is Kind.LIST:
        identity = store.allocate(Kind.LIST, [])
        memo[id(obj)] = identity
        items: List[int] = []
        try:
            for item in obj:
                items.append(_import(store, item, memo))
        except BaseException:
            store.release_all(items)
            store.release(identity)
            raise
        # The imported references move into the list as they are.
        store.mutate_in_place(identity, lambda content: content.extend(items))
        return identity

    identity = store.allocate(Kind.MAPPING, [])
    memo[id(obj)] = identity
    try:
        for key, val in obj.items():
            key_id = _import(store, key, memo)
            try:
                value_id = _import(store, val, memo)
            except BaseException:
                store.release(key_id)
                raise
            try:
                map_set(store, identity, key_id, value_id)
            finally:
                store.release(key_id)
                store.release(value_id)
    except BaseException:
        store.release(identity)
        raise
    return identity
