from __future__ import annotations

from typing import TYPE_CHECKING, Set

from .values import Kind

if TYPE_CHECKING:
    from .store import ValueStore


def format_value(store: "ValueStore", identity: int, *, quote: bool = False) -> str:
    """
    Render a value the way `print` shows it.

    quote=False -> top-level text is shown raw (str())
    quote=True  -> text is quoted (repr()), as it is inside containers
    """
    return _format(store, identity, quote, set())


def _format(store: "ValueStore", identity: int, quote: bool, active: Set[int]) -> str:
    value = store.get(identity)
    kind = value.kind
    if kind is Kind.TEXT:
        return repr(value.content) if quote else value.content
    if not kind.mutable:
        return repr(value.content)

    if identity in active:
        return "[...]" if kind is Kind.LIST else "{...}"
    active.add(identity)
    try:
        if kind is Kind.LIST:
            return "[" + ", ".join(_format(store, item, True, active) for item in value.content) + "]"
        parts = [
            f"{_format(store, key, True, active)}: {_format(store, val, True, active)}"
            for key, val in value.content.values()
        ]
        return "{" + ", ".join(parts) + "}"
    finally:
        active.discard(identity)
