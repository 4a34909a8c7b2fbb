from __future__ import annotations
from enum import Enum, auto
from .errors import Diagnostics, LoxInternalError
from .lexer import Token
from . import ast_nodes as ast


class FunctionKind(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassKind(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class LoopKind(Enum):
    NONE = auto()
    LOOP = auto()


class Resolver:
    """Static pass computing how many scopes out each local reference lives.

    Every scope opened here corresponds to exactly one Environment the
    interpreter pushes at runtime: blocks, function calls, the frame holding a
    named function expression's own name, and the ``super`` and ``this``
    frames around methods. Names not found in any scope are left out of the
    table and looked up as globals at runtime.
    """

    def __init__(self, diagnostics: Diagnostics | None = None):
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        # name -> True once the initializer has been resolved
        self.scopes: list[dict[str, bool]] = []
        self.locals: dict[object, int] = {}
        self.current_function = FunctionKind.NONE
        self.current_class = ClassKind.NONE
        self.current_loop = LoopKind.NONE

    def resolve(self, statements: list) -> dict[object, int]:
        for stmt in statements:
            self._resolve_stmt(stmt)
        return self.locals

    def resolve_expression(self, expr) -> dict[object, int]:
        self._resolve_expr(expr)
        return self.locals

    def _error(self, token: Token, msg: str):
        self.diagnostics.error(token, msg)

    # ---- scopes ----

    def _begin_scope(self):
        self.scopes.append({})

    def _end_scope(self):
        self.scopes.pop()

    def _declare(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self._error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def _define(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, node, name: str):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name in scope:
                self.locals[node] = depth
                return

    def _resolve_function(self, func: ast.FunctionDecl, kind: FunctionKind):
        enclosing_function = self.current_function
        enclosing_loop = self.current_loop
        self.current_function = kind
        self.current_loop = LoopKind.NONE

        self._begin_scope()
        for param in func.params:
            self._declare(param)
            self._define(param)
        for stmt in func.body:
            self._resolve_stmt(stmt)
        self._end_scope()

        self.current_function = enclosing_function
        self.current_loop = enclosing_loop

    # ---- statements ----

    def _resolve_stmt(self, stmt):
        if isinstance(stmt, ast.Expression):
            self._resolve_expr(stmt.expression)
        elif isinstance(stmt, ast.Print):
            self._resolve_expr(stmt.expression)
        elif isinstance(stmt, ast.Var):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)
        elif isinstance(stmt, ast.Block):
            self._begin_scope()
            for inner in stmt.statements:
                self._resolve_stmt(inner)
            self._end_scope()
        elif isinstance(stmt, ast.If):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, ast.While):
            self._resolve_while(stmt)
        elif isinstance(stmt, ast.Break):
            if self.current_loop == LoopKind.NONE:
                self._error(stmt.keyword, "Can't break from code outside for or while loop.")
        elif isinstance(stmt, ast.Continue):
            if self.current_loop == LoopKind.NONE:
                self._error(stmt.keyword, "Can't continue from code outside for or while loop.")
        elif isinstance(stmt, ast.FunctionStmt):
            # defined before the body so the function can recurse
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionKind.FUNCTION)
        elif isinstance(stmt, ast.Return):
            self._resolve_return(stmt)
        elif isinstance(stmt, ast.Class):
            self._resolve_class(stmt)
        else:
            raise LoxInternalError(f"cannot resolve statement: {type(stmt).__name__}")

    def _resolve_while(self, stmt: ast.While):
        self._resolve_expr(stmt.condition)
        if stmt.increment is not None:
            self._resolve_expr(stmt.increment)
        enclosing_loop = self.current_loop
        self.current_loop = LoopKind.LOOP
        self._resolve_stmt(stmt.body)
        self.current_loop = enclosing_loop

    def _resolve_return(self, stmt: ast.Return):
        if self.current_function == FunctionKind.NONE:
            self._error(stmt.keyword, "Can't return from top-level code.")
        if stmt.value is not None:
            if self.current_function == FunctionKind.INITIALIZER:
                self._error(stmt.keyword, "Can't return a value from an initializer.")
            self._resolve_expr(stmt.value)

    def _resolve_class(self, stmt: ast.Class):
        enclosing_class = self.current_class
        self.current_class = ClassKind.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self._error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassKind.SUBCLASS
            self._resolve_expr(stmt.superclass)
            self._begin_scope()
            self.scopes[-1]["super"] = True

        self._begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            kind = FunctionKind.METHOD
            if method.name.lexeme == "init":
                kind = FunctionKind.INITIALIZER
            self._resolve_function(method, kind)

        self._end_scope()
        if stmt.superclass is not None:
            self._end_scope()

        self.current_class = enclosing_class

    # ---- expressions ----

    def _resolve_expr(self, expr):
        if isinstance(expr, ast.Literal):
            return
        if isinstance(expr, ast.Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self._error(expr.name, "Can't read local variable in its own initializer.")
            self._resolve_local(expr, expr.name.lexeme)
        elif isinstance(expr, ast.Assign):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name.lexeme)
        elif isinstance(expr, ast.Grouping):
            self._resolve_expr(expr.expression)
        elif isinstance(expr, ast.Unary):
            self._resolve_expr(expr.right)
        elif isinstance(expr, (ast.Binary, ast.Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)
        elif isinstance(expr, ast.Ternary):
            self._resolve_expr(expr.condition)
            self._resolve_expr(expr.then_expr)
            self._resolve_expr(expr.else_expr)
        elif isinstance(expr, ast.Call):
            self._resolve_expr(expr.callee)
            for arg in expr.args:
                self._resolve_expr(arg)
        elif isinstance(expr, ast.Get):
            self._resolve_expr(expr.object)
        elif isinstance(expr, ast.Set):
            self._resolve_expr(expr.value)
            self._resolve_expr(expr.object)
        elif isinstance(expr, ast.This):
            if self.current_class == ClassKind.NONE:
                self._error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self._resolve_local(expr, "this")
        elif isinstance(expr, ast.Super):
            if self.current_class == ClassKind.NONE:
                self._error(expr.keyword, "Can't use 'super' outside of a class.")
                return
            if self.current_class != ClassKind.SUBCLASS:
                self._error(expr.keyword, "Can't use 'super' in a class with no superclass.")
                return
            self._resolve_local(expr, "super")
        elif isinstance(expr, ast.FunctionExpr):
            self._resolve_function_expr(expr)
        else:
            raise LoxInternalError(f"cannot resolve expression: {type(expr).__name__}")

    def _resolve_function_expr(self, expr: ast.FunctionExpr):
        if expr.name is None:
            self._resolve_function(expr, FunctionKind.FUNCTION)
            return
        # a named function expression sees its own name in a frame of its own
        self._begin_scope()
        self._declare(expr.name)
        self._define(expr.name)
        self._resolve_function(expr, FunctionKind.FUNCTION)
        self._end_scope()
