from __future__ import annotations

import ast
from typing import List, Tuple

from .environment import Frame
from .errors import OperandTypeError, UnboundNameError
from .lib.methods import lookup_method
from .values import Kind, kind_for_native


class ExpressionMixin:
    """
    Every `eval_*` handler returns an owned identity: the caller either binds
    it somewhere (which retains) and releases its own reference, or releases it.
    """

    def eval_Constant(self, node: ast.Constant, frame: Frame) -> int:
        return self.store.allocate(kind_for_native(node.value), node.value)

    def eval_Name(self, node: ast.Name, frame: Frame) -> int:
        return self.store.retain(frame.resolve(node.id))

    def eval_BinOp(self, node: ast.BinOp, frame: Frame) -> int:
        left = self.eval_expr(node.left, frame)
        try:
            right = self.eval_expr(node.right, frame)
            try:
                return self._apply_binop(node.op, left, right)
            finally:
                self.store.release(right)
        finally:
            self.store.release(left)

    def eval_UnaryOp(self, node: ast.UnaryOp, frame: Frame) -> int:
        operand = self.eval_expr(node.operand, frame)
        try:
            return self._apply_unaryop(node.op, operand)
        finally:
            self.store.release(operand)

    def eval_BoolOp(self, node: ast.BoolOp, frame: Frame) -> int:
        if isinstance(node.op, ast.And):
            stop_when = False
        elif isinstance(node.op, ast.Or):
            stop_when = True
        else:
            raise NotImplementedError
        result = self.eval_expr(node.values[0], frame)
        for value in node.values[1:]:
            if self._truthy(result) is stop_when:
                return result
            self.store.release(result)
            result = self.eval_expr(value, frame)
        return result

    def eval_Compare(self, node: ast.Compare, frame: Frame) -> int:
        left = self.eval_expr(node.left, frame)
        try:
            for op, comparator in zip(node.ops, node.comparators):
                right = self.eval_expr(comparator, frame)
                try:
                    outcome = self._apply_compare(op, left, right)
                except BaseException:
                    self.store.release(right)
                    raise
                self.store.release(left)
                left = right
                if not outcome:
                    return self._new_bool(False)
            return self._new_bool(True)
        finally:
            self.store.release(left)

    def eval_IfExp(self, node: ast.IfExp, frame: Frame) -> int:
        return self.eval_expr(node.body if self._test(node.test, frame) else node.orelse, frame)

    def _test(self, node: ast.expr, frame: Frame) -> bool:
        identity = self.eval_expr(node, frame)
        try:
            return self._truthy(identity)
        finally:
            self.store.release(identity)

    # ----- displays -----

    def _eval_elements(self, elts: List[ast.expr], frame: Frame) -> List[int]:
        """Owned identities for a display's elements, with `*x` spliced in."""
        out: List[int] = []
        try:
            for elt in elts:
                if isinstance(elt, ast.Starred):
                    source = self.eval_expr(elt.value, frame)
                    try:
                        out.extend(self._materialize(source))
                    finally:
                        self.store.release(source)
                else:
                    out.append(self.eval_expr(elt, frame))
        except BaseException:
            self.store.release_all(out)
            raise
        return out

    def eval_List(self, node: ast.List, frame: Frame) -> int:
        items = self._eval_elements(node.elts, frame)
        try:
            return self.store.allocate(Kind.LIST, items)
        finally:
            self.store.release_all(items)

    # Tuple displays build Lists; there is no tuple kind.
    eval_Tuple = eval_List

    def eval_Dict(self, node: ast.Dict, frame: Frame) -> int:
        held: List[int] = []
        pairs: List[Tuple[int, int]] = []
        try:
            for key_node, value_node in zip(node.keys, node.values):
                key = self.eval_expr(key_node, frame)
                held.append(key)
                self._check_key(key)
                value = self.eval_expr(value_node, frame)
                held.append(value)
                pairs.append((key, value))
            return self.store.allocate(Kind.MAPPING, pairs)
        finally:
            self.store.release_all(held)

    # ----- subscripts -----

    def eval_Subscript(self, node: ast.Subscript, frame: Frame) -> int:
        obj = self.eval_expr(node.value, frame)
        try:
            if isinstance(node.slice, ast.Slice):
                return self._get_slice(obj, self._eval_slice(node.slice, frame))
            key = self.eval_expr(node.slice, frame)
            try:
                return self._get_item(obj, key)
            finally:
                self.store.release(key)
        finally:
            self.store.release(obj)

    # ----- calls -----

    def eval_Call(self, node: ast.Call, frame: Frame) -> int:
        func = node.func
        if isinstance(func, ast.Attribute):
            return self._call_method(func, node.args, frame)
        if isinstance(func, ast.Name):
            return self._call_builtin(func.id, node.args, frame)
        raise OperandTypeError("only built-in functions and methods can be called")

    def _call_builtin(self, name: str, arg_nodes: List[ast.expr], frame: Frame) -> int:
        try:
            bound = frame.resolve(name)
        except UnboundNameError:
            bound = None
        if bound is not None:
            raise OperandTypeError(f"'{self._kind_name(bound)}' object is not callable")
        fn = self.builtins.get(name)
        if fn is None:
            raise UnboundNameError(name)

        args = self._eval_elements(arg_nodes, frame)
        try:
            fn.check_arity(len(args))
            return fn.impl(self, args)
        finally:
            self.store.release_all(args)

    def _call_method(self, func: ast.Attribute, arg_nodes: List[ast.expr], frame: Frame) -> int:
        receiver = self.eval_expr(func.value, frame)
        try:
            fn = lookup_method(self.store.kind_of(receiver), func.attr)
            args = self._eval_elements(arg_nodes, frame)
            try:
                fn.check_arity(len(args))
                return fn.impl(self, [receiver, *args])
            finally:
                self.store.release_all(args)
        finally:
            self.store.release(receiver)
