"""
Equality and identity predicates over store identities.

`value_equal` is structural; `same_identity` is the `is` operator.
Scalar caching in the store is an optimization only: nothing here may
depend on whether two equal immutable values share an identity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Set, Tuple

from .errors import UnhashableKeyError
from .values import Kind

if TYPE_CHECKING:
    from .store import ValueStore


def same_identity(store: "ValueStore", a: int, b: int) -> bool:
    store.get(a)
    store.get(b)
    return a == b


def value_equal(store: "ValueStore", a: int, b: int) -> bool:
    return _equal(store, a, b, set())


def _equal(store: "ValueStore", a: int, b: int, in_progress: Set[Tuple[int, int]]) -> bool:
    if a == b:
        return True
    left = store.get(a)
    right = store.get(b)

    if left.kind.numeric and right.kind.numeric:
        return left.content == right.content
    if left.kind is not right.kind:
        return False
    if not left.kind.mutable:
        return left.content == right.content

    # A pair already being compared further up is assumed equal; this is what
    # lets two distinct self-referential structures compare without recursing forever.
    pair = (a, b)
    if pair in in_progress:
        return True
    in_progress.add(pair)
    try:
        if left.kind is Kind.LIST:
            if len(left.content) != len(right.content):
                return False
            for x, y in zip(list(left.content), list(right.content)):
                if not _equal(store, x, y, in_progress):
                    return False
            return True

        if left.content.keys() != right.content.keys():
            return False
        for form, (_, left_value) in list(left.content.items()):
            right_value = right.content[form][1]
            if not _equal(store, left_value, right_value, in_progress):
                return False
        return True
    finally:
        in_progress.discard(pair)


def key_form(store: "ValueStore", identity: int) -> Any:
    """Hashable stand-in for an immutable value, used to index mapping entries."""
    value = store.get(identity)
    kind = value.kind
    if kind.numeric:
        # int and float of equal value hash and compare equal, so 1 and 1.0 share a slot.
        return ("number", value.content)
    if kind is Kind.TEXT:
        return ("text", value.content)
    if kind is Kind.BOOLEAN:
        return ("bool", value.content)
    if kind is Kind.NIL:
        return ("nil",)
    raise UnhashableKeyError(f"unhashable type: '{kind.value}'")
