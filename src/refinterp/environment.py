from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterator, Set

from .errors import UnboundNameError

if TYPE_CHECKING:
    from .store import ValueStore

logger = logging.getLogger(__name__)


class Frame:
    """
    One lexical scope: name -> value identity.

    Bindings hold references, they never own values; every binding accounts
    for exactly one reference count on the value it names.

    Lookup:
      - declared global   -> the root frame only
      - declared nonlocal -> the nearest enclosing non-root frame binding the name
      - otherwise         -> this frame, then parents outward
    Stores go to this frame unless the name was declared global or nonlocal.
    """

    def __init__(self, store: "ValueStore", parent: "Frame | None" = None, *, name: str = "<module>"):
        if parent is not None and parent.store is not store:
            raise ValueError("a child frame must share its parent's store")
        self.store = store
        self.parent = parent
        self.name = name
        self.bindings: Dict[str, int] = {}
        self.declared_globals: Set[str] = set()
        self.declared_nonlocals: Set[str] = set()
        self.closed = False

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self.bindings)} bindings"
        return f"<Frame {self.name} {state}>"

    @property
    def root(self) -> "Frame":
        frame = self
        while frame.parent is not None:
            frame = frame.parent
        return frame

    def new_child(self, name: str = "<local>") -> "Frame":
        self._check_open()
        return Frame(self.store, self, name=name)

    def _check_open(self) -> None:
        if self.closed:
            raise RuntimeError(f"frame {self.name} has already been unbound")

    # ----- declarations -----

    def declare_global(self, name: str) -> None:
        self._check_open()
        if self.parent is None:
            return
        if name in self.bindings:
            raise SyntaxError(f"name '{name}' is assigned to before global declaration")
        self.declared_globals.add(name)

    def declare_nonlocal(self, name: str) -> None:
        self._check_open()
        if name in self.bindings:
            raise SyntaxError(f"name '{name}' is assigned to before nonlocal declaration")
        self._nonlocal_owner(name)
        self.declared_nonlocals.add(name)

    def _nonlocal_owner(self, name: str) -> "Frame":
        frame = self.parent
        while frame is not None and frame.parent is not None:
            if name in frame.bindings:
                return frame
            frame = frame.parent
        raise UnboundNameError(name, f"no binding for nonlocal '{name}' found")

    def _store_target(self, name: str) -> "Frame":
        if name in self.declared_globals:
            return self.root
        if name in self.declared_nonlocals:
            return self._nonlocal_owner(name)
        return self

    # ----- bindings -----

    def bind(self, name: str, identity: int) -> None:
        """Create or overwrite `name`; the old value loses one reference, the new one gains one."""
        target = self._store_target(name)
        target._check_open()
        # Retain first so rebinding a name to its own value never drops it to zero.
        target.store.retain(identity)
        old = target.bindings.get(name)
        target.bindings[name] = identity
        if old is not None:
            target.store.release(old)

    def resolve(self, name: str) -> int:
        if name in self.declared_globals:
            return self.root._resolve_local(name)
        if name in self.declared_nonlocals:
            return self._nonlocal_owner(name)._resolve_local(name)
        frame: Frame | None = self
        while frame is not None:
            identity = frame.bindings.get(name)
            if identity is not None:
                return identity
            frame = frame.parent
        raise UnboundNameError(name)

    def _resolve_local(self, name: str) -> int:
        identity = self.bindings.get(name)
        if identity is None:
            raise UnboundNameError(name)
        return identity

    def unbind(self, name: str) -> None:
        """Remove one binding (the `del name` statement)."""
        target = self._store_target(name)
        target._check_open()
        identity = target.bindings.pop(name, None)
        if identity is None:
            raise UnboundNameError(name)
        target.store.release(identity)

    def unbind_frame(self) -> None:
        """Scope exit: release every binding and close the frame."""
        if self.closed:
            return
        bindings = list(self.bindings.values())
        self.bindings.clear()
        self.closed = True
        self.store.release_all(bindings)
        logger.debug(f"unbound frame {self.name} ({len(bindings)} bindings released)")

    # ----- inspection -----

    def names(self) -> Iterator[str]:
        return iter(list(self.bindings))

    def __contains__(self, name: str) -> bool:
        return name in self.bindings
