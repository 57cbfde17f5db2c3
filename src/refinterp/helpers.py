from __future__ import annotations

import ast
import operator
from typing import Any, Callable, List, Tuple

from . import containers
from .environment import Frame
from .equality import key_form, same_identity, value_equal
from .errors import (
    DivisionByZeroError,
    ImmutableTargetError,
    IterationMutationError,
    MultipleStarTargetsError,
    NumericOverflowError,
    OperandTypeError,
    SliceSizeError,
    UnpackArityError,
)
from .values import Kind, Value, kind_for_native

_ARITHMETIC = {
    ast.Add: ("+", operator.add),
    ast.Sub: ("-", operator.sub),
    ast.Mult: ("*", operator.mul),
    ast.Div: ("/", operator.truediv),
    ast.FloorDiv: ("//", operator.floordiv),
    ast.Mod: ("%", operator.mod),
    ast.Pow: ("**", operator.pow),
}

_ORDERING = {
    ast.Lt: ("<", operator.lt),
    ast.LtE: ("<=", operator.le),
    ast.Gt: (">", operator.gt),
    ast.GtE: (">=", operator.ge),
}


class HelperMixin:
    # ----------------------------
    # small value helpers
    # ----------------------------

    def _new_bool(self, flag: bool) -> int:
        return self.store.allocate(Kind.BOOLEAN, bool(flag))

    def _new_nil(self) -> int:
        return self.store.allocate(Kind.NIL, None)

    def _kind_name(self, identity: int) -> str:
        return self.store.kind_of(identity).value

    def _truthy(self, identity: int) -> bool:
        value = self.store.get(identity)
        if value.kind is Kind.NIL:
            return False
        if value.kind.mutable:
            return len(value.content) > 0
        return bool(value.content)

    def _as_int(self, identity: int, context: str) -> int:
        value = self.store.get(identity)
        if value.kind is not Kind.INTEGER:
            raise OperandTypeError(f"{context} expects an integer, not '{value.kind.value}'")
        return value.content

    def _materialize(self, identity: int) -> List[int]:
        """Owned references to the items of an iterable value (text yields one-character texts)."""
        store = self.store
        value = store.get(identity)
        if value.kind is Kind.LIST:
            return [store.retain(item) for item in list(value.content)]
        if value.kind is Kind.TEXT:
            return [store.allocate(Kind.TEXT, char) for char in value.content]
        if value.kind is Kind.MAPPING:
            return [store.retain(key) for key in containers.map_keys(store, identity)]
        raise OperandTypeError(f"'{value.kind.value}' object is not iterable")

    def _shallow_copy(self, identity: int) -> int:
        store = self.store
        value = store.get(identity)
        if value.kind is Kind.LIST:
            return store.allocate(Kind.LIST, value.content)
        if value.kind is Kind.MAPPING:
            return store.allocate(Kind.MAPPING, containers.map_items(store, identity))
        return store.retain(identity)

    # ----------------------------
    # assignment targets
    # ----------------------------

    def _unpack_sequence_target(self, target: ast.Tuple | ast.List, identity: int) -> List[Tuple[ast.AST, int]]:
        """Pair each target element with an owned item reference."""
        kind = self.store.kind_of(identity)
        if kind not in (Kind.LIST, Kind.TEXT):
            raise OperandTypeError(f"cannot unpack non-sequence {kind.value}")
        items = self._materialize(identity)
        try:
            return self._pair_targets(target, items)
        except BaseException:
            self.store.release_all(items)
            raise

    def _pair_targets(self, target: ast.Tuple | ast.List, items: List[int]) -> List[Tuple[ast.AST, int]]:
        elts = list(target.elts)
        star_indexes = [index for index, elt in enumerate(elts) if isinstance(elt, ast.Starred)]

        if not star_indexes:
            expected = len(elts)
            got = len(items)
            if got < expected:
                raise UnpackArityError(f"not enough values to unpack (expected {expected}, got {got})")
            if got > expected:
                raise UnpackArityError(f"too many values to unpack (expected {expected})")
            return list(zip(elts, items))

        if len(star_indexes) > 1:
            raise MultipleStarTargetsError("multiple starred expressions in assignment")

        star_index = star_indexes[0]
        head = elts[:star_index]
        tail = elts[star_index + 1 :]
        expected = len(head) + len(tail)
        got = len(items)
        if got < expected:
            raise UnpackArityError(
                f"not enough values to unpack (expected at least {expected}, got {got})"
            )

        middle = items[len(head) : got - len(tail)]
        # The starred name always gets a fresh list, whatever kind was unpacked.
        star_list = self.store.allocate(Kind.LIST, middle)
        self.store.release_all(middle)

        assignments: List[Tuple[ast.AST, int]] = list(zip(head, items))
        assignments.append((elts[star_index].value, star_list))
        assignments.extend(zip(tail, items[got - len(tail) :]))
        return assignments

    def _assign_target(self, target: ast.AST, identity: int, frame: Frame) -> None:
        if isinstance(target, ast.Name):
            frame.bind(target.id, identity)
            return
        if isinstance(target, (ast.Tuple, ast.List)):
            assignments = self._unpack_sequence_target(target, identity)
            try:
                for elt, item in assignments:
                    self._assign_target(elt, item, frame)
            finally:
                self.store.release_all(item for _, item in assignments)
            return
        if isinstance(target, ast.Subscript):
            obj = self.eval_expr(target.value, frame)
            try:
                if isinstance(target.slice, ast.Slice):
                    self._set_slice(obj, self._eval_slice(target.slice, frame), identity)
                else:
                    key = self.eval_expr(target.slice, frame)
                    try:
                        self._set_item(obj, key, identity)
                    finally:
                        self.store.release(key)
            finally:
                self.store.release(obj)
            return
        raise NotImplementedError(f"Assignment target not supported: {target.__class__.__name__}")

    def _delete_target(self, target: ast.AST, frame: Frame) -> None:
        if isinstance(target, ast.Name):
            frame.unbind(target.id)
            return
        if isinstance(target, (ast.Tuple, ast.List)):
            for elt in target.elts:
                self._delete_target(elt, frame)
            return
        if isinstance(target, ast.Subscript):
            obj = self.eval_expr(target.value, frame)
            try:
                if isinstance(target.slice, ast.Slice):
                    self._delete_slice(obj, self._eval_slice(target.slice, frame))
                else:
                    key = self.eval_expr(target.slice, frame)
                    try:
                        self._delete_item(obj, key)
                    finally:
                        self.store.release(key)
            finally:
                self.store.release(obj)
            return
        raise NotImplementedError(f"del target not supported: {target.__class__.__name__}")

    def _resolve_augassign_target(
        self, target: ast.expr, frame: Frame
    ) -> Tuple[int, Callable[[int], None], List[int]]:
        """Returns (owned current value, store callback, owned references to release afterwards)."""
        if isinstance(target, ast.Name):
            name = target.id
            old = self.store.retain(frame.resolve(name))

            def store(identity: int) -> None:
                frame.bind(name, identity)

            return old, store, []

        if isinstance(target, ast.Subscript):
            obj = self.eval_expr(target.value, frame)
            held = [obj]
            try:
                if isinstance(target.slice, ast.Slice):
                    window = self._eval_slice(target.slice, frame)
                    old = self._get_slice(obj, window)

                    def store(identity: int) -> None:
                        self._set_slice(obj, window, identity)

                    return old, store, held

                key = self.eval_expr(target.slice, frame)
                held.append(key)
                old = self._get_item(obj, key)
            except BaseException:
                self.store.release_all(held)
                raise

            def store(identity: int) -> None:
                self._set_item(obj, key, identity)

            return old, store, held

        raise NotImplementedError(f"AugAssign target not supported: {target.__class__.__name__}")

    # ----------------------------
    # subscripts
    # ----------------------------

    def _eval_slice(self, node: ast.Slice, frame: Frame) -> slice:
        bounds = []
        for part in (node.lower, node.upper, node.step):
            if part is None:
                bounds.append(None)
                continue
            identity = self.eval_expr(part, frame)
            try:
                if self.store.kind_of(identity) is Kind.NIL:
                    bounds.append(None)
                else:
                    bounds.append(self._as_int(identity, "slice"))
            finally:
                self.store.release(identity)
        if bounds[2] == 0:
            raise SliceSizeError("slice step cannot be zero")
        return slice(*bounds)

    def _get_item(self, obj: int, key: int) -> int:
        store = self.store
        kind = store.kind_of(obj)
        if kind is Kind.LIST:
            return store.retain(containers.list_get_item(store, obj, self._as_int(key, "list indices")))
        if kind is Kind.MAPPING:
            return store.retain(containers.map_get(store, obj, key))
        if kind is Kind.TEXT:
            text = store.content_of(obj)
            index = containers.normalize_index(self._as_int(key, "string indices"), len(text), "string")
            return store.allocate(Kind.TEXT, text[index])
        raise OperandTypeError(f"'{kind.value}' object is not subscriptable")

    def _get_slice(self, obj: int, window: slice) -> int:
        store = self.store
        kind = store.kind_of(obj)
        if kind is Kind.LIST:
            return containers.list_get_slice(store, obj, window)
        if kind is Kind.TEXT:
            return store.allocate(Kind.TEXT, store.content_of(obj)[window])
        raise OperandTypeError(f"'{kind.value}' object cannot be sliced")

    def _set_item(self, obj: int, key: int, identity: int) -> None:
        store = self.store
        kind = store.kind_of(obj)
        if kind is Kind.LIST:
            containers.list_set_item(store, obj, self._as_int(key, "list indices"), identity)
            return
        if kind is Kind.MAPPING:
            containers.map_set(store, obj, key, identity)
            return
        raise ImmutableTargetError(f"'{kind.value}' object does not support item assignment")

    def _set_slice(self, obj: int, window: slice, identity: int) -> None:
        store = self.store
        kind = store.kind_of(obj)
        if kind is not Kind.LIST:
            if not kind.mutable:
                raise ImmutableTargetError(f"'{kind.value}' object does not support item assignment")
            raise OperandTypeError(f"'{kind.value}' object cannot be sliced")
        items = self._materialize(identity)
        try:
            containers.list_set_slice(store, obj, window, items)
        finally:
            store.release_all(items)

    def _delete_item(self, obj: int, key: int) -> None:
        store = self.store
        kind = store.kind_of(obj)
        if kind is Kind.LIST:
            containers.list_delete_item(store, obj, self._as_int(key, "list indices"))
            return
        if kind is Kind.MAPPING:
            containers.map_delete(store, obj, key)
            return
        raise ImmutableTargetError(f"'{kind.value}' object doesn't support item deletion")

    def _delete_slice(self, obj: int, window: slice) -> None:
        kind = self.store.kind_of(obj)
        if kind is Kind.LIST:
            containers.list_delete_slice(self.store, obj, window)
            return
        if not kind.mutable:
            raise ImmutableTargetError(f"'{kind.value}' object doesn't support item deletion")
        raise OperandTypeError(f"'{kind.value}' object cannot be sliced")

    # ----------------------------
    # operators
    # ----------------------------

    def _unsupported(self, symbol: str, left: int, right: int) -> OperandTypeError:
        return OperandTypeError(
            f"unsupported operand type(s) for {symbol}: "
            f"'{self._kind_name(left)}' and '{self._kind_name(right)}'"
        )

    def _new_number(self, number: Any) -> int:
        return self.store.allocate(kind_for_native(number), number)

    def _apply_binop(self, op: ast.operator, left: int, right: int) -> int:
        entry = _ARITHMETIC.get(type(op))
        if entry is None:
            raise NotImplementedError(f"BinOp {op.__class__.__name__} not supported")
        symbol, fn = entry
        store = self.store
        lhs = store.get(left)
        rhs = store.get(right)

        if lhs.kind.numeric and rhs.kind.numeric:
            try:
                result = fn(lhs.content, rhs.content)
            except ZeroDivisionError as exc:
                raise DivisionByZeroError(str(exc)) from None
            except OverflowError as exc:
                raise NumericOverflowError(str(exc)) from None
            if isinstance(result, complex):
                raise OperandTypeError("negative number cannot be raised to a fractional power")
            return self._new_number(result)

        if isinstance(op, ast.Add):
            if lhs.kind is Kind.TEXT and rhs.kind is Kind.TEXT:
                return store.allocate(Kind.TEXT, lhs.content + rhs.content)
            if lhs.kind is Kind.LIST and rhs.kind is Kind.LIST:
                return store.allocate(Kind.LIST, lhs.content + rhs.content)

        if isinstance(op, ast.Mult):
            if lhs.kind in (Kind.TEXT, Kind.LIST) and rhs.kind is Kind.INTEGER:
                return self._repeat(left, rhs.content)
            if lhs.kind is Kind.INTEGER and rhs.kind in (Kind.TEXT, Kind.LIST):
                return self._repeat(right, lhs.content)

        if isinstance(op, ast.Mod) and lhs.kind is Kind.TEXT:
            raise OperandTypeError("text formatting with % is not supported")

        raise self._unsupported(symbol, left, right)

    def _repeat(self, sequence: int, count: int) -> int:
        """Text or list repetition; repeated lists share their item identities."""
        value = self.store.get(sequence)
        return self.store.allocate(value.kind, value.content * max(count, 0))

    def _apply_augop(self, op: ast.operator, left: int, right: int) -> int:
        """Returns an owned result; lists are extended or repeated in place and returned as is."""
        store = self.store
        if store.kind_of(left) is Kind.LIST:
            if isinstance(op, ast.Add):
                items = self._materialize(right)
                try:
                    containers.list_extend(store, left, items)
                finally:
                    store.release_all(items)
                return store.retain(left)
            if isinstance(op, ast.Mult):
                containers.list_repeat_in_place(store, left, self._as_int(right, "list repetition"))
                return store.retain(left)
        return self._apply_binop(op, left, right)

    def _apply_unaryop(self, op: ast.unaryop, operand: int) -> int:
        if isinstance(op, ast.Not):
            return self._new_bool(not self._truthy(operand))
        value = self.store.get(operand)
        if not value.kind.numeric:
            symbol = "-" if isinstance(op, ast.USub) else "+"
            raise OperandTypeError(f"bad operand type for unary {symbol}: '{value.kind.value}'")
        if isinstance(op, ast.USub):
            return self._new_number(-value.content)
        if isinstance(op, ast.UAdd):
            return self._new_number(+value.content)
        raise NotImplementedError(f"UnaryOp {op.__class__.__name__} not supported")

    def _apply_compare(self, op: ast.cmpop, left: int, right: int) -> bool:
        if isinstance(op, ast.Eq):
            return value_equal(self.store, left, right)
        if isinstance(op, ast.NotEq):
            return not value_equal(self.store, left, right)
        if isinstance(op, ast.Is):
            return same_identity(self.store, left, right)
        if isinstance(op, ast.IsNot):
            return not same_identity(self.store, left, right)
        if isinstance(op, ast.In):
            return self._contains(right, left)
        if isinstance(op, ast.NotIn):
            return not self._contains(right, left)
        entry = _ORDERING.get(type(op))
        if entry is None:
            raise NotImplementedError(f"Compare {op.__class__.__name__} not supported")
        return self._ordered(entry, left, right)

    def _contains(self, container: int, item: int) -> bool:
        store = self.store
        kind = store.kind_of(container)
        if kind is Kind.LIST:
            return any(value_equal(store, candidate, item) for candidate in list(store.content_of(container)))
        if kind is Kind.MAPPING:
            return containers.map_contains(store, container, item)
        if kind is Kind.TEXT:
            if store.kind_of(item) is not Kind.TEXT:
                raise OperandTypeError(
                    f"'in <string>' requires string as left operand, not {self._kind_name(item)}"
                )
            return store.content_of(item) in store.content_of(container)
        raise OperandTypeError(f"argument of type '{kind.value}' is not iterable")

    def _ordered(self, entry: Tuple[str, Callable[[Any, Any], bool]], left: int, right: int) -> bool:
        symbol, fn = entry
        store = self.store
        lhs = store.get(left)
        rhs = store.get(right)
        if lhs.kind.numeric and rhs.kind.numeric:
            return fn(lhs.content, rhs.content)
        if lhs.kind is rhs.kind and lhs.kind in (Kind.TEXT, Kind.BOOLEAN):
            return fn(lhs.content, rhs.content)
        if lhs.kind is Kind.LIST and rhs.kind is Kind.LIST:
            # Lexicographic: the first unequal pair decides, otherwise the lengths do.
            for x, y in zip(list(lhs.content), list(rhs.content)):
                if not value_equal(store, x, y):
                    return self._ordered(entry, x, y)
            return fn(len(lhs.content), len(rhs.content))
        raise OperandTypeError(
            f"'{symbol}' not supported between instances of "
            f"'{lhs.kind.value}' and '{rhs.kind.value}'"
        )

    # ----------------------------
    # iteration
    # ----------------------------

    def _iterate(self, iterable: int):
        """Yield owned item references; lists are walked live, like a Python list iterator."""
        store = self.store
        kind = store.kind_of(iterable)
        if kind is Kind.LIST:
            position = 0
            while True:
                items = store.content_of(iterable)
                if position >= len(items):
                    return
                yield store.retain(items[position])
                position += 1
        elif kind is Kind.TEXT:
            for char in store.content_of(iterable):
                yield store.allocate(Kind.TEXT, char)
        elif kind is Kind.MAPPING:
            mapping = store.get(iterable)
            entries = mapping.content
            size = len(entries)
            generation = mapping.key_generation
            for form in list(entries):
                self._check_unchanged(mapping, size, generation)
                yield store.retain(entries[form][0])
            self._check_unchanged(mapping, size, generation)
        else:
            raise OperandTypeError(f"'{kind.value}' object is not iterable")

    def _check_unchanged(self, mapping: Value, size: int, generation: int) -> None:
        if len(mapping.content) != size:
            raise IterationMutationError("dictionary changed size during iteration")
        # Same size but a key was removed and another (or the same) one added.
        if mapping.key_generation != generation:
            raise IterationMutationError("dictionary keys changed during iteration")

    def _check_key(self, identity: int) -> None:
        key_form(self.store, identity)
