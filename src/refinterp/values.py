from __future__ import annotations

from enum import Enum
from typing import Any, Iterator


class Kind(Enum):
    INTEGER = "int"
    FLOAT = "float"
    TEXT = "str"
    BOOLEAN = "bool"
    NIL = "NoneType"
    LIST = "list"
    MAPPING = "dict"

    @property
    def mutable(self) -> bool:
        return self in (Kind.LIST, Kind.MAPPING)

    @property
    def numeric(self) -> bool:
        return self in (Kind.INTEGER, Kind.FLOAT)


IMMUTABLE_KINDS = frozenset(kind for kind in Kind if not kind.mutable)

# Native content type expected for each immutable kind.
_SCALAR_TYPES = {
    Kind.INTEGER: int,
    Kind.FLOAT: float,
    Kind.TEXT: str,
    Kind.BOOLEAN: bool,
    Kind.NIL: type(None),
}


class Value:
    """
    A heap cell owned by the ValueStore.

    `content` is the native payload for scalars, a list of identities for
    LIST, and a dict of key_form -> (key identity, value identity) for MAPPING.
    `key_generation` counts key insertions and removals on a MAPPING.
    """

    __slots__ = ("identity", "kind", "content", "refcount", "key_generation")

    def __init__(self, identity: int, kind: Kind, content: Any):
        self.identity = identity
        self.kind = kind
        self.content = content
        self.refcount = 1
        self.key_generation = 0

    def children(self) -> Iterator[int]:
        """Identities this value holds a reference to."""
        if self.kind is Kind.LIST:
            yield from self.content
        elif self.kind is Kind.MAPPING:
            for key_id, value_id in self.content.values():
                yield key_id
                yield value_id

    def __repr__(self) -> str:
        if self.kind.mutable:
            return f"<Value #{self.identity} {self.kind.value} len={len(self.content)} rc={self.refcount}>"
        return f"<Value #{self.identity} {self.kind.value} {self.content!r} rc={self.refcount}>"


def check_scalar_content(kind: Kind, content: Any) -> None:
    expected = _SCALAR_TYPES[kind]
    # bool is a subclass of int; keep the two kinds apart.
    if type(content) is not expected:
        raise TypeError(f"{kind.value} value cannot hold {type(content).__name__} content")


def kind_for_native(obj: Any) -> Kind:
    """Kind that a native Python scalar maps to."""
    if obj is None:
        return Kind.NIL
    if type(obj) is bool:
        return Kind.BOOLEAN
    if type(obj) is int:
        return Kind.INTEGER
    if type(obj) is float:
        return Kind.FLOAT
    if type(obj) is str:
        return Kind.TEXT
    if isinstance(obj, (list, tuple)):
        return Kind.LIST
    if isinstance(obj, dict):
        return Kind.MAPPING
    raise TypeError(f"no value kind for {type(obj).__name__}")
