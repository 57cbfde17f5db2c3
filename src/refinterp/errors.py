from __future__ import annotations


class RefInterpError(Exception):
    """Base class for all errors raised by the evaluator core."""


class UnboundNameError(RefInterpError, NameError):
    """Raised when a name is read before it is bound in any reachable frame."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"name '{name}' is not defined")
        self.name = name


class UnpackArityError(RefInterpError, ValueError):
    """Raised when a sequence assignment has the wrong number of values."""


class MultipleStarTargetsError(RefInterpError, SyntaxError):
    """Raised when an assignment has more than one starred target."""


class UnsupportedSyntaxError(RefInterpError, SyntaxError):
    """Raised when a program uses syntax outside the supported subset."""


class ImmutableTargetError(RefInterpError, TypeError):
    """Raised on an attempt to mutate an immutable value in place."""


class UseAfterFreeError(RefInterpError, RuntimeError):
    """Raised when an identity is used after its value was reclaimed."""

    def __init__(self, identity: int):
        super().__init__(f"value #{identity} has been reclaimed")
        self.identity = identity


class OperandTypeError(RefInterpError, TypeError):
    """Raised when an operation is not defined for the kinds involved."""


class UnhashableKeyError(RefInterpError, TypeError):
    """Raised when a mutable value is used as a mapping key."""


class IndexOutOfRangeError(RefInterpError, IndexError):
    pass


class MissingKeyError(RefInterpError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class SliceSizeError(RefInterpError, ValueError):
    pass


class DivisionByZeroError(RefInterpError, ZeroDivisionError):
    pass


class IterationMutationError(RefInterpError, RuntimeError):
    """Raised when a mapping changes size while a for loop walks it."""


class ValueNotFoundError(RefInterpError, ValueError):
    """Raised by list.index() and list.remove() when no item is equal."""


class NumericOverflowError(RefInterpError, OverflowError):
    """Raised when a numeric result does not fit in a float."""


class ArgumentValueError(RefInterpError, ValueError):
    """Raised when a built-in or method gets an argument of the right kind but an unusable value."""
