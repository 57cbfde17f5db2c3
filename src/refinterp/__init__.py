from .code import ProgramCode
from .core import RunResult
from .environment import Frame
from .errors import (
    ArgumentValueError,
    DivisionByZeroError,
    ImmutableTargetError,
    IndexOutOfRangeError,
    IterationMutationError,
    MissingKeyError,
    MultipleStarTargetsError,
    NumericOverflowError,
    OperandTypeError,
    RefInterpError,
    SliceSizeError,
    UnboundNameError,
    UnhashableKeyError,
    UnpackArityError,
    UnsupportedSyntaxError,
    UseAfterFreeError,
    ValueNotFoundError,
)
from .main import Interpreter
from .store import ValueStore
from .values import Kind

__all__ = [
    "ArgumentValueError",
    "DivisionByZeroError",
    "Frame",
    "ImmutableTargetError",
    "IndexOutOfRangeError",
    "Interpreter",
    "IterationMutationError",
    "Kind",
    "MissingKeyError",
    "MultipleStarTargetsError",
    "NumericOverflowError",
    "OperandTypeError",
    "ProgramCode",
    "RefInterpError",
    "RunResult",
    "SliceSizeError",
    "UnboundNameError",
    "UnhashableKeyError",
    "UnpackArityError",
    "UnsupportedSyntaxError",
    "UseAfterFreeError",
    "ValueNotFoundError",
    "ValueStore",
]
