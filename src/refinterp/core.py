from __future__ import annotations

import ast
import logging
import sys
from typing import Any, Callable, Dict, Optional

from .bridge import from_python, to_python
from .code import ProgramCode
from .environment import Frame
from .errors import UnsupportedSyntaxError
from .lib.builtins import make_builtins
from .store import DEFAULT_GC_THRESHOLD, ValueStore

logger = logging.getLogger(__name__)


def _write_line(text: str) -> None:
    sys.stdout.write(text + "\n")


class RunResult:
    """Outcome of one program run: the frame it ran in and the error, if any."""

    def __init__(self, interpreter: "InterpreterCore", frame: Frame, exception: BaseException | None = None):
        self.interpreter = interpreter
        self.frame = frame
        self.exception = exception

    def __repr__(self) -> str:
        state = "ok" if self.ok else f"failed: {self.exception!r}"
        return f"<RunResult {self.frame.name} {state}>"

    @property
    def ok(self) -> bool:
        return self.exception is None

    def raise_for_exception(self) -> None:
        if self.exception is not None:
            raise self.exception

    def read(self, name: str) -> Any:
        """The native Python form of the value bound to `name`."""
        return to_python(self.interpreter.store, self.frame.resolve(name))

    @property
    def globals(self) -> Dict[str, Any]:
        store = self.interpreter.store
        return {name: to_python(store, self.frame.bindings[name]) for name in self.frame.names()}


class InterpreterCore:
    def __init__(
        self,
        store: Optional[ValueStore] = None,
        *,
        emit: Optional[Callable[[str], None]] = None,
        gc_threshold: int = DEFAULT_GC_THRESHOLD,
        cache_small_scalars: bool = True,
    ):
        """
        store:
          - None -> a fresh ValueStore built from gc_threshold/cache_small_scalars
          - a ValueStore -> shared with the host (the two keyword options are ignored)
        emit:
          - receives one line of text per `emit(...)`/`print(...)` call;
            defaults to writing to standard output
        """
        if store is None:
            store = ValueStore(gc_threshold=gc_threshold, cache_small_scalars=cache_small_scalars)
        self.store = store
        self.emit = emit if emit is not None else _write_line
        self.builtins = make_builtins()

    # ----- frames -----

    def new_frame(self, name: str = "<module>") -> Frame:
        return Frame(self.store, name=name)

    def define(self, frame: Frame, name: str, obj: Any) -> int:
        """Bind `name` to a Value imported from a native Python object; returns its identity."""
        identity = from_python(self.store, obj)
        try:
            frame.bind(name, identity)
        finally:
            self.store.release(identity)
        return identity

    # ----- run -----

    def load(self, source: str, filename: str = "<refinterp>") -> ProgramCode:
        return ProgramCode(source, filename)

    def run(self, source: str, frame: Optional[Frame] = None, filename: str = "<refinterp>") -> RunResult:
        """
        Load and execute `source`.

        Syntax problems are raised here, before anything runs; errors raised
        while executing are captured in the returned RunResult.
        """
        return self.execute(self.load(source, filename), frame)

    def execute(self, code: ProgramCode, frame: Optional[Frame] = None) -> RunResult:
        if frame is None:
            frame = self.new_frame()
        if frame.parent is None and code.nonlocal_declarations:
            raise UnsupportedSyntaxError(
                "nonlocal declaration not allowed at module level",
                code.location(code.nonlocal_declarations[0]),
            )
        logger.debug(f"running {code.filename} ({len(code.body)} statements)")
        try:
            self.exec_module(code.tree, frame)
        except Exception as exc:
            logger.debug(f"{code.filename} failed: {exc!r}")
            return RunResult(self, frame, exc)
        logger.debug(f"finished {code.filename}; {self.store.live_count()} live values")
        return RunResult(self, frame)

    # ----- dispatch -----

    def exec_module(self, node: ast.Module, frame: Frame) -> None:
        self.exec_block(node.body, frame)

    def exec_block(self, stmts: list[ast.stmt], frame: Frame) -> None:
        for stmt in stmts:
            self.exec_stmt(stmt, frame)
            self.store.maybe_collect()

    def exec_stmt(self, node: ast.AST, frame: Frame) -> None:
        m = getattr(self, f"exec_{node.__class__.__name__}", None)
        if m is None:
            raise NotImplementedError(f"Statement not supported: {node.__class__.__name__}")
        m(node, frame)

    def eval_expr(self, node: ast.AST, frame: Frame) -> int:
        m = getattr(self, f"eval_{node.__class__.__name__}", None)
        if m is None:
            raise NotImplementedError(f"Expression not supported: {node.__class__.__name__}")
        return m(node, frame)
