from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List

from ..bridge import to_python
from ..containers import map_set
from ..display import format_value
from ..errors import ArgumentValueError, NumericOverflowError, OperandTypeError
from ..values import Kind

if TYPE_CHECKING:
    from ..main import Interpreter


@dataclass(frozen=True)
class Builtin:
    """
    A callable name of the language.

    `impl(interpreter, args)` receives borrowed identities and returns an
    owned identity.
    """

    name: str
    min_args: int
    max_args: int | None
    impl: Callable[["Interpreter", List[int]], int]

    def check_arity(self, arg_count: int) -> None:
        if arg_count < self.min_args or (self.max_args is not None and arg_count > self.max_args):
            if self.max_args is None:
                expected = f"at least {self.min_args}"
            elif self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise OperandTypeError(
                f"{self.name}() takes {expected} arguments ({arg_count} given)"
            )


BUILTINS: Dict[str, Builtin] = {}


def builtin(name: str, min_args: int, max_args: int | None):
    def register(impl: Callable[["Interpreter", List[int]], int]):
        BUILTINS[name] = Builtin(name, min_args, max_args, impl)
        return impl

    return register


def _nil(interp: "Interpreter") -> int:
    return interp.store.allocate(Kind.NIL, None)


@builtin("emit", 0, None)
def _emit(interp: "Interpreter", args: List[int]) -> int:
    interp.emit(" ".join(format_value(interp.store, arg) for arg in args))
    return _nil(interp)


BUILTINS["print"] = Builtin("print", 0, None, _emit)


@builtin("len", 1, 1)
def _len(interp: "Interpreter", args: List[int]) -> int:
    value = interp.store.get(args[0])
    if value.kind not in (Kind.LIST, Kind.MAPPING, Kind.TEXT):
        raise OperandTypeError(f"object of type '{value.kind.value}' has no len()")
    return interp.store.allocate(Kind.INTEGER, len(value.content))


@builtin("copy", 1, 1)
def _copy(interp: "Interpreter", args: List[int]) -> int:
    return interp._shallow_copy(args[0])


@builtin("deepcopy", 1, 1)
def _deepcopy(interp: "Interpreter", args: List[int]) -> int:
    return _deep_copy(interp, args[0], {})


def _deep_copy(interp: "Interpreter", identity: int, memo: Dict[int, int]) -> int:
    store = interp.store
    value = store.get(identity)
    if not value.kind.mutable:
        return store.retain(identity)
    if identity in memo:
        return store.retain(memo[identity])

    if value.kind is Kind.LIST:
        out = store.allocate(Kind.LIST, [])
        memo[identity] = out
        for item in list(value.content):
            copied = _deep_copy(interp, item, memo)
            # The copied reference moves into the new list.
            store.mutate_in_place(out, lambda items: items.append(copied))
        return out

    out = store.allocate(Kind.MAPPING, [])
    memo[identity] = out
    for key, item in list(value.content.values()):
        copied = _deep_copy(interp, item, memo)
        try:
            map_set(store, out, key, copied)
        finally:
            store.release(copied)
    return out


@builtin("range", 1, 3)
def _range(interp: "Interpreter", args: List[int]) -> int:
    bounds = [interp._as_int(arg, "range()") for arg in args]
    if len(bounds) == 3 and bounds[2] == 0:
        raise OperandTypeError("range() arg 3 must not be zero")
    store = interp.store
    items = [store.allocate(Kind.INTEGER, n) for n in range(*bounds)]
    try:
        return store.allocate(Kind.LIST, items)
    finally:
        store.release_all(items)


@builtin("list", 0, 1)
def _list(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    items = interp._materialize(args[0]) if args else []
    try:
        return store.allocate(Kind.LIST, items)
    finally:
        store.release_all(items)


@builtin("str", 0, 1)
def _str(interp: "Interpreter", args: List[int]) -> int:
    text = format_value(interp.store, args[0]) if args else ""
    return interp.store.allocate(Kind.TEXT, text)


@builtin("int", 0, 1)
def _int(interp: "Interpreter", args: List[int]) -> int:
    if not args:
        return interp.store.allocate(Kind.INTEGER, 0)
    value = interp.store.get(args[0])
    if value.kind is Kind.TEXT:
        try:
            number = int(value.content.strip())
        except ValueError:
            raise OperandTypeError(f"invalid literal for int(): {value.content!r}") from None
    elif value.kind in (Kind.INTEGER, Kind.FLOAT, Kind.BOOLEAN):
        try:
            number = int(value.content)
        except OverflowError as exc:
            raise NumericOverflowError(str(exc)) from None
        except ValueError as exc:
            raise ArgumentValueError(str(exc)) from None
    else:
        raise OperandTypeError(f"int() argument must be a string or a number, not '{value.kind.value}'")
    return interp.store.allocate(Kind.INTEGER, number)


@builtin("float", 0, 1)
def _float(interp: "Interpreter", args: List[int]) -> int:
    if not args:
        return interp.store.allocate(Kind.FLOAT, 0.0)
    value = interp.store.get(args[0])
    if value.kind is Kind.TEXT:
        try:
            number = float(value.content.strip())
        except ValueError:
            raise OperandTypeError(f"could not convert string to float: {value.content!r}") from None
    elif value.kind in (Kind.INTEGER, Kind.FLOAT, Kind.BOOLEAN):
        try:
            number = float(value.content)
        except OverflowError as exc:
            raise NumericOverflowError(str(exc)) from None
    else:
        raise OperandTypeError(f"float() argument must be a string or a number, not '{value.kind.value}'")
    return interp.store.allocate(Kind.FLOAT, number)


@builtin("bool", 0, 1)
def _bool(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.BOOLEAN, bool(args) and interp._truthy(args[0]))


@builtin("id", 1, 1)
def _id(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.INTEGER, args[0])


@builtin("kind", 1, 1)
def _kind(interp: "Interpreter", args: List[int]) -> int:
    return interp.store.allocate(Kind.TEXT, interp.store.kind_of(args[0]).value)


@builtin("sum", 1, 1)
def _sum(interp: "Interpreter", args: List[int]) -> int:
    store = interp.store
    items = interp._materialize(args[0])
    try:
        for item in items:
            if not store.kind_of(item).numeric:
                raise OperandTypeError(
                    f"unsupported operand type for sum(): '{store.kind_of(item).value}'"
                )
        total = sum(to_python(store, item) for item in items)
        return store.allocate(Kind.FLOAT if isinstance(total, float) else Kind.INTEGER, total)
    finally:
        store.release_all(items)


def make_builtins() -> Dict[str, Builtin]:
    """A fresh name -> Builtin table for one interpreter."""
    return dict(BUILTINS)
