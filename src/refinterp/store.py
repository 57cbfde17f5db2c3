from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Set, Tuple, TypeVar

from .equality import key_form
from .errors import ImmutableTargetError, UseAfterFreeError
from .values import Kind, Value, check_scalar_content

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_GC_THRESHOLD = 700
SMALL_INT_RANGE = range(-5, 257)


class ValueStore:
    """
    Owns every Value behind an integer identity.

    Reference counting reclaims values eagerly; `cycle_scan` is the separate,
    batched pass that reclaims self-referential containers.

    gc_threshold:
      - 0    -> never scan automatically (call `cycle_scan` yourself)
      - N    -> `maybe_collect` scans once N allocations happened since the last scan
    cache_small_scalars:
      - share identities for None, booleans, "" and small integers
    """

    def __init__(
        self,
        *,
        gc_threshold: int = DEFAULT_GC_THRESHOLD,
        cache_small_scalars: bool = True,
    ):
        if gc_threshold < 0:
            raise ValueError("gc_threshold must be >= 0")
        self.gc_threshold = gc_threshold
        self.cache_small_scalars = bool(cache_small_scalars)

        self._values: Dict[int, Value] = {}
        self._next_identity = 1
        self._scalar_cache: Dict[Tuple[Kind, Any], int] = {}

        self._allocations = 0
        self._allocations_since_scan = 0
        self._reclaimed = 0
        self._cycle_scans = 0
        self._cycle_reclaimed = 0

    # ----- lookup -----

    def get(self, identity: int) -> Value:
        value = self._values.get(identity)
        if value is not None:
            return value
        if isinstance(identity, int) and 0 < identity < self._next_identity:
            raise UseAfterFreeError(identity)
        raise LookupError(f"unknown value identity {identity!r}")

    def is_live(self, identity: int) -> bool:
        return identity in self._values

    def kind_of(self, identity: int) -> Kind:
        return self.get(identity).kind

    def content_of(self, identity: int) -> Any:
        return self.get(identity).content

    def refcount(self, identity: int) -> int:
        return self.get(identity).refcount

    def live_count(self) -> int:
        return len(self._values)

    def stats(self) -> Dict[str, int]:
        return {
            "live": len(self._values),
            "cached": len(self._scalar_cache),
            "allocations": self._allocations,
            "reclaimed": self._reclaimed,
            "cycle_scans": self._cycle_scans,
            "cycle_reclaimed": self._cycle_reclaimed,
        }

    # ----- allocation -----

    def _cache_key(self, kind: Kind, content: Any) -> Tuple[Kind, Any] | None:
        if not self.cache_small_scalars:
            return None
        if kind in (Kind.NIL, Kind.BOOLEAN):
            return (kind, content)
        if kind is Kind.INTEGER and content in SMALL_INT_RANGE:
            return (kind, content)
        if kind is Kind.TEXT and content == "":
            return (kind, content)
        return None

    def _new_value(self, kind: Kind, content: Any) -> Value:
        identity = self._next_identity
        self._next_identity += 1
        value = Value(identity, kind, content)
        self._values[identity] = value
        self._allocations += 1
        self._allocations_since_scan += 1
        return value

    def allocate(self, kind: Kind, initial_content: Any = None) -> int:
        """
        Create a value and return an owned reference to it.

        LIST content is an iterable of identities and MAPPING content an
        iterable of (key identity, value identity) pairs; every referenced
        identity is retained by the new container.
        """
        if kind is Kind.LIST:
            items = list(initial_content or ())
            for item in items:
                self.get(item)
            value = self._new_value(kind, items)
            for item in items:
                self.retain(item)
            return value.identity

        if kind is Kind.MAPPING:
            pairs: Dict[Any, Tuple[int, int]] = {}
            for key_id, value_id in initial_content or ():
                form = key_form(self, key_id)
                self.get(value_id)
                existing = pairs.get(form)
                # A repeated key keeps its first key identity and its last value.
                pairs[form] = (existing[0] if existing else key_id, value_id)
            value = self._new_value(kind, pairs)
            for child in value.children():
                self.retain(child)
            return value.identity

        check_scalar_content(kind, initial_content)
        cache_key = self._cache_key(kind, initial_content)
        if cache_key is not None:
            cached = self._scalar_cache.get(cache_key)
            if cached is not None:
                self._values[cached].refcount += 1
                return cached
            value = self._new_value(kind, initial_content)
            # The cache keeps its own reference so shared scalars stay alive.
            value.refcount += 1
            self._scalar_cache[cache_key] = value.identity
            return value.identity
        return self._new_value(kind, initial_content).identity

    # ----- reference counting -----

    def retain(self, identity: int) -> int:
        self.get(identity).refcount += 1
        return identity

    def release(self, identity: int) -> None:
        pending = [identity]
        while pending:
            current = self.get(pending.pop())
            current.refcount -= 1
            if current.refcount > 0:
                continue
            pending.extend(current.children())
            self._reclaim(current)

    def release_all(self, identities: Iterable[int]) -> None:
        for identity in identities:
            self.release(identity)

    def _reclaim(self, value: Value) -> None:
        del self._values[value.identity]
        value.content = None
        value.refcount = 0
        self._reclaimed += 1
        logger.debug(f"reclaimed #{value.identity} ({value.kind.value})")

    # ----- mutation -----

    def mutate_in_place(self, identity: int, operation: Callable[[Any], T]) -> T:
        """Apply `operation` to the content of a LIST or MAPPING value."""
        value = self.get(identity)
        if not value.kind.mutable:
            raise ImmutableTargetError(
                f"'{value.kind.value}' object does not support in-place mutation"
            )
        return operation(value.content)

    # ----- cycle collection -----

    def maybe_collect(self) -> int:
        if self.gc_threshold and self._allocations_since_scan >= self.gc_threshold:
            return self.cycle_scan()
        return 0

    def cycle_scan(self) -> int:
        """
        Reclaim containers that are only reachable from other unreachable containers.

        Returns the number of containers reclaimed.
        """
        self._cycle_scans += 1
        self._allocations_since_scan = 0

        containers = {i: v for i, v in self._values.items() if v.kind.mutable}
        external = {i: v.refcount for i, v in containers.items()}
        for value in containers.values():
            for child in value.children():
                if child in external:
                    external[child] -= 1

        reachable: Set[int] = set()
        pending = [i for i, count in external.items() if count > 0]
        while pending:
            identity = pending.pop()
            if identity in reachable:
                continue
            reachable.add(identity)
            for child in containers[identity].children():
                if child in containers and child not in reachable:
                    pending.append(child)

        garbage = [containers[i] for i in containers if i not in reachable]
        if not garbage:
            return 0

        garbage_ids = {value.identity for value in garbage}
        outgoing: list[int] = []
        for value in garbage:
            outgoing.extend(child for child in value.children() if child not in garbage_ids)
        for value in garbage:
            self._reclaim(value)
        self.release_all(outgoing)

        self._cycle_reclaimed += len(garbage)
        logger.info(f"cycle scan reclaimed {len(garbage)} unreachable containers")
        return len(garbage)
