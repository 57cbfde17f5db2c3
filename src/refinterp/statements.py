from __future__ import annotations

import ast

from .common import BreakSignal, ContinueSignal
from .display import format_value
from .environment import Frame


class StatementMixin:
    def exec_Expr(self, node: ast.Expr, frame: Frame) -> None:
        self.store.release(self.eval_expr(node.value, frame))

    def exec_Pass(self, node: ast.Pass, frame: Frame) -> None:
        return

    def exec_Assign(self, node: ast.Assign, frame: Frame) -> None:
        value = self.eval_expr(node.value, frame)
        try:
            # `a = b = expr` binds every target to the same identity.
            for target in node.targets:
                self._assign_target(target, value, frame)
        finally:
            self.store.release(value)

    def exec_AugAssign(self, node: ast.AugAssign, frame: Frame) -> None:
        old, store_result, held = self._resolve_augassign_target(node.target, frame)
        try:
            right = self.eval_expr(node.value, frame)
            try:
                result = self._apply_augop(node.op, old, right)
            finally:
                self.store.release(right)
            try:
                store_result(result)
            finally:
                self.store.release(result)
        finally:
            self.store.release(old)
            self.store.release_all(held)

    def exec_Delete(self, node: ast.Delete, frame: Frame) -> None:
        for target in node.targets:
            self._delete_target(target, frame)

    def exec_Global(self, node: ast.Global, frame: Frame) -> None:
        for name in node.names:
            frame.declare_global(name)

    def exec_Nonlocal(self, node: ast.Nonlocal, frame: Frame) -> None:
        for name in node.names:
            frame.declare_nonlocal(name)

    def exec_Assert(self, node: ast.Assert, frame: Frame) -> None:
        if self._test(node.test, frame):
            return
        if node.msg is None:
            raise AssertionError
        message = self.eval_expr(node.msg, frame)
        try:
            raise AssertionError(format_value(self.store, message))
        finally:
            self.store.release(message)

    # ----- control flow -----

    def exec_If(self, node: ast.If, frame: Frame) -> None:
        if self._test(node.test, frame):
            self.exec_block(node.body, frame)
        else:
            self.exec_block(node.orelse, frame)

    def exec_Break(self, node: ast.Break, frame: Frame) -> None:
        raise BreakSignal()

    def exec_Continue(self, node: ast.Continue, frame: Frame) -> None:
        raise ContinueSignal()

    def exec_While(self, node: ast.While, frame: Frame) -> None:
        broke = False
        while self._test(node.test, frame):
            try:
                self.exec_block(node.body, frame)
            except ContinueSignal:
                continue
            except BreakSignal:
                broke = True
                break
        if (not broke) and node.orelse:
            self.exec_block(node.orelse, frame)

    def exec_For(self, node: ast.For, frame: Frame) -> None:
        iterable = self.eval_expr(node.iter, frame)
        broke = False
        try:
            for item in self._iterate(iterable):
                try:
                    self._assign_target(node.target, item, frame)
                finally:
                    self.store.release(item)
                try:
                    self.exec_block(node.body, frame)
                except ContinueSignal:
                    continue
                except BreakSignal:
                    broke = True
                    break
        finally:
            self.store.release(iterable)
        if (not broke) and node.orelse:
            self.exec_block(node.orelse, frame)
