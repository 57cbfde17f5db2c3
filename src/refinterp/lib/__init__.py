from .builtins import BUILTINS, Builtin, make_builtins
from .methods import METHODS, lookup_method

__all__ = [
    "BUILTINS",
    "Builtin",
    "METHODS",
    "lookup_method",
    "make_builtins",
]
