from __future__ import annotations

import ast
from typing import Tuple

from .errors import MultipleStarTargetsError, UnsupportedSyntaxError

_STATEMENTS = (
    ast.Module,
    ast.Expr,
    ast.Assign,
    ast.AugAssign,
    ast.If,
    ast.While,
    ast.For,
    ast.Break,
    ast.Continue,
    ast.Pass,
    ast.Delete,
    ast.Global,
    ast.Nonlocal,
    ast.Assert,
)

_EXPRESSIONS = (
    ast.Constant,
    ast.Name,
    ast.BinOp,
    ast.UnaryOp,
    ast.BoolOp,
    ast.Compare,
    ast.IfExp,
    ast.List,
    ast.Tuple,
    ast.Dict,
    ast.Subscript,
    ast.Slice,
    ast.Call,
    ast.Attribute,
    ast.Starred,
)

_OPERATORS = (
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.FloorDiv,
    ast.Mod,
    ast.Pow,
    ast.UAdd,
    ast.USub,
    ast.Not,
    ast.And,
    ast.Or,
    ast.Eq,
    ast.NotEq,
    ast.Lt,
    ast.LtE,
    ast.Gt,
    ast.GtE,
    ast.Is,
    ast.IsNot,
    ast.In,
    ast.NotIn,
    ast.Load,
    ast.Store,
    ast.Del,
)

_SUPPORTED = _STATEMENTS + _EXPRESSIONS + _OPERATORS
_CONSTANT_TYPES = (int, float, str, bool, type(None))


class _SubsetValidator(ast.NodeVisitor):
    """
    Rejects everything outside the supported statement/expression subset.

    Runs once when a program is loaded, so syntax problems (including a
    second starred target) surface before any statement executes.
    """

    def __init__(self, code: "ProgramCode"):
        self.code = code
        self.loop_depth = 0

    def fail(self, node: ast.AST, message: str, error: type = UnsupportedSyntaxError) -> None:
        raise error(message, self.code.location(node))

    def visit(self, node: ast.AST) -> None:
        if not isinstance(node, _SUPPORTED):
            self.fail(node, f"{node.__class__.__name__} is not supported")
        super().visit(node)

    # ----- statements -----

    def visit_Assign(self, node: ast.Assign) -> None:
        for target in node.targets:
            self._check_target(target)
        self.visit(node.value)

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        if not isinstance(node.target, (ast.Name, ast.Subscript)):
            self.fail(node.target, "augmented assignment target must be a name or subscript")
        self.visit(node.target)
        self.visit(node.op)
        self.visit(node.value)

    def visit_Delete(self, node: ast.Delete) -> None:
        for target in node.targets:
            self._check_delete_target(target)

    def visit_For(self, node: ast.For) -> None:
        if node.type_comment:
            self.fail(node, "type comments are not supported")
        self._check_target(node.target)
        self.visit(node.iter)
        self._visit_loop(node.body, node.orelse)

    def visit_While(self, node: ast.While) -> None:
        self.visit(node.test)
        self._visit_loop(node.body, node.orelse)

    def _visit_loop(self, body: list[ast.stmt], orelse: list[ast.stmt]) -> None:
        self.loop_depth += 1
        try:
            for stmt in body:
                self.visit(stmt)
        finally:
            self.loop_depth -= 1
        # `else` belongs to the enclosing loop as far as break/continue go.
        for stmt in orelse:
            self.visit(stmt)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self.code.nonlocal_declarations.append(node)

    def visit_Break(self, node: ast.Break) -> None:
        if not self.loop_depth:
            self.fail(node, "'break' outside loop")

    def visit_Continue(self, node: ast.Continue) -> None:
        if not self.loop_depth:
            self.fail(node, "'continue' not properly in loop")

    # ----- expressions -----

    def visit_Constant(self, node: ast.Constant) -> None:
        if type(node.value) not in _CONSTANT_TYPES:
            self.fail(node, f"{type(node.value).__name__} literals are not supported")

    def visit_Dict(self, node: ast.Dict) -> None:
        for key in node.keys:
            if key is None:
                self.fail(node, "dict unpacking is not supported")
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        if node.keywords:
            self.fail(node, "keyword arguments are not supported")
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                self.fail(arg, "starred call arguments are not supported")
            self.visit(arg)
        if isinstance(node.func, ast.Attribute):
            self.visit(node.func.value)
        elif isinstance(node.func, ast.Name):
            self.visit(node.func)
        else:
            self.fail(node.func, "only named functions and methods can be called")

    def visit_Subscript(self, node: ast.Subscript) -> None:
        self.visit(node.value)
        if isinstance(node.slice, ast.Slice):
            self.generic_visit(node.slice)
        else:
            self.visit(node.slice)
        self.visit(node.ctx)

    def visit_Slice(self, node: ast.Slice) -> None:
        # Reached only for a slice nested inside another expression, e.g. `L[0:1, 0]`.
        self.fail(node, "a slice is only supported as the whole subscript")

    def visit_Attribute(self, node: ast.Attribute) -> None:
        # Reached only for attribute access that is not a method call.
        self.fail(node, "attribute access is only supported for method calls")

    # ----- targets -----

    def _check_target(self, target: ast.expr) -> None:
        if isinstance(target, (ast.Name, ast.Subscript)):
            self.visit(target)
            return
        if isinstance(target, (ast.Tuple, ast.List)):
            starred = [elt for elt in target.elts if isinstance(elt, ast.Starred)]
            if len(starred) > 1:
                self.fail(starred[1], "multiple starred expressions in assignment", MultipleStarTargetsError)
            for elt in target.elts:
                self._check_target(elt.value if isinstance(elt, ast.Starred) else elt)
            return
        if isinstance(target, ast.Starred):
            self.fail(target, "starred assignment target must be in a list or tuple")
        self.fail(target, f"cannot assign to {target.__class__.__name__}")

    def _check_delete_target(self, target: ast.expr) -> None:
        if isinstance(target, (ast.Name, ast.Subscript)):
            self.visit(target)
            return
        if isinstance(target, (ast.Tuple, ast.List)):
            for elt in target.elts:
                self._check_delete_target(elt)
            return
        self.fail(target, f"cannot delete {target.__class__.__name__}")


class ProgramCode:
    """
    Holds:
      - source text and filename
      - the parsed AST, already checked against the supported subset
    """

    def __init__(self, source: str, filename: str = "<refinterp>"):
        self.source = source
        self.filename = filename
        self.tree = ast.parse(source, filename=filename, mode="exec")
        self._lines = source.splitlines()
        # Legal only when the program runs in a child frame; checked by the interpreter.
        self.nonlocal_declarations: list[ast.Nonlocal] = []
        _SubsetValidator(self).visit(self.tree)

    @property
    def body(self) -> list[ast.stmt]:
        return self.tree.body

    def location(self, node: ast.AST) -> Tuple[str, int | None, int | None, str | None]:
        lineno = getattr(node, "lineno", None)
        col = getattr(node, "col_offset", None)
        text = None
        if lineno is not None and 0 < lineno <= len(self._lines):
            text = self._lines[lineno - 1]
        return (self.filename, lineno, None if col is None else col + 1, text)
