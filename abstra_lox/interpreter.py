from __future__ import annotations
import math
import sys
import weakref
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable
from . import ast_nodes as ast
from .environment import Environment
from .errors import Diagnostics, LoxInternalError, LoxRuntimeError
from .lexer import TK, Token
from .runtime import LoxCallable, LoxClass, LoxFunction, LoxInstance


class Completion(Enum):
    NORMAL = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()


@dataclass(frozen=True)
class ExecResult:
    """How a statement finished. Anything but NORMAL unwinds to its handler."""

    completion: Completion
    value: Any = None


# Python frames one Lox call can take, nested expressions included
FRAMES_PER_CALL = 20

NORMAL = ExecResult(Completion.NORMAL)
BREAK = ExecResult(Completion.BREAK)
CONTINUE = ExecResult(Completion.CONTINUE)


def is_truthy(v) -> bool:
    return v is not None and v is not False


def is_equal(a, b) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # bool is an int subclass in Python; Lox never equates true with 1
    if type(a) is not type(b):
        return False
    return a == b


def stringify(v) -> str:
    if v is None:
        return "nil"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        if math.isnan(v):
            return "NaN"
        if math.isinf(v):
            return "Infinity" if v > 0 else "-Infinity"
        if v.is_integer() and abs(v) < 1e21:
            return f"{v:.0f}"
        return str(v)
    return str(v)


class Interpreter:
    def __init__(
        self,
        diagnostics: Diagnostics | None = None,
        write: Callable[[str], None] | None = None,
        max_call_depth: int = 200,
        max_instructions: int | None = None,
    ):
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.globals = Environment()
        # entries go away with the syntax tree of a finished run, unless a
        # function or class defined by that run still holds on to its nodes
        self.locals: weakref.WeakKeyDictionary[object, int] = weakref.WeakKeyDictionary()
        self.output: list[str] = []
        self.write = write if write is not None else self.output.append
        self.call_depth = 0
        self.max_call_depth = max_call_depth
        self.max_instructions = max_instructions
        self.instructions = 0
        limit = max_call_depth * FRAMES_PER_CALL + 1000
        if sys.getrecursionlimit() < limit:
            sys.setrecursionlimit(limit)

    # ---- public interface ----

    def resolve(self, locals_: dict[object, int]):
        self.locals.update(locals_)

    def interpret(self, statements: list) -> bool:
        """Run top-level statements; report a runtime error and stop at the first one."""
        try:
            for stmt in statements:
                self.execute(stmt, self.globals)
        except LoxRuntimeError as err:
            self.diagnostics.runtime_error(err)
            return False
        return True

    def execute_block(self, statements: list, env: Environment) -> ExecResult:
        for stmt in statements:
            result = self.execute(stmt, env)
            if result is not NORMAL:
                return result
        return NORMAL

    def _tick(self, token: Token):
        if self.max_instructions is None:
            return
        self.instructions += 1
        if self.instructions > self.max_instructions:
            raise LoxRuntimeError(token, "Execution quota exceeded.")

    # ---- statement execution ----

    def execute(self, stmt, env: Environment) -> ExecResult:
        if isinstance(stmt, ast.Expression):
            self.evaluate(stmt.expression, env)
            return NORMAL
        if isinstance(stmt, ast.Print):
            self.write(stringify(self.evaluate(stmt.expression, env)))
            return NORMAL
        if isinstance(stmt, ast.Var):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer, env)
            env.define(stmt.name.lexeme, value)
            return NORMAL
        if isinstance(stmt, ast.Block):
            return self.execute_block(stmt.statements, Environment(env))
        if isinstance(stmt, ast.If):
            if is_truthy(self.evaluate(stmt.condition, env)):
                return self.execute(stmt.then_branch, env)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch, env)
            return NORMAL
        if isinstance(stmt, ast.While):
            return self._exec_while(stmt, env)
        if isinstance(stmt, ast.Break):
            return BREAK
        if isinstance(stmt, ast.Continue):
            return CONTINUE
        if isinstance(stmt, ast.FunctionStmt):
            env.define(stmt.name.lexeme, LoxFunction(stmt, env))
            return NORMAL
        if isinstance(stmt, ast.Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value, env)
            return ExecResult(Completion.RETURN, value)
        if isinstance(stmt, ast.Class):
            self._exec_class(stmt, env)
            return NORMAL
        raise LoxInternalError(f"cannot execute statement: {type(stmt).__name__}")

    def _exec_while(self, stmt: ast.While, env: Environment) -> ExecResult:
        while is_truthy(self.evaluate(stmt.condition, env)):
            self._tick(stmt.keyword)
            result = self.execute(stmt.body, env)
            if result.completion is Completion.BREAK:
                break
            if result.completion is Completion.RETURN:
                return result
            if stmt.increment is not None:
                self.evaluate(stmt.increment, env)
        return NORMAL

    def _exec_class(self, stmt: ast.Class, env: Environment):
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass, env)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        env.define(stmt.name.lexeme, None)

        method_env = env
        if superclass is not None:
            method_env = Environment(env)
            method_env.define("super", superclass)

        methods = {
            method.name.lexeme: LoxFunction(method, method_env, method.name.lexeme == "init")
            for method in stmt.methods
        }
        env.define(stmt.name.lexeme, LoxClass(stmt.name.lexeme, superclass, methods))

    # ---- expression evaluation ----

    def evaluate(self, node, env: Environment) -> Any:
        if isinstance(node, ast.Literal):
            return node.value
        if isinstance(node, ast.Grouping):
            return self.evaluate(node.expression, env)
        if isinstance(node, ast.Variable):
            return self._lookup_variable(node.name, node, env)
        if isinstance(node, ast.Assign):
            value = self.evaluate(node.value, env)
            distance = self.locals.get(node)
            if distance is None:
                self.globals.assign(node.name, value)
            else:
                env.assign_at(distance, node.name.lexeme, value)
            return value
        if isinstance(node, ast.Logical):
            left = self.evaluate(node.left, env)
            if node.operator.kind == TK.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right, env)
        if isinstance(node, ast.Ternary):
            if is_truthy(self.evaluate(node.condition, env)):
                return self.evaluate(node.then_expr, env)
            return self.evaluate(node.else_expr, env)
        if isinstance(node, ast.Unary):
            return self._eval_unary(node, env)
        if isinstance(node, ast.Binary):
            return self._eval_binary(node, env)
        if isinstance(node, ast.Call):
            return self._eval_call(node, env)
        if isinstance(node, ast.Get):
            obj = self.evaluate(node.object, env)
            if isinstance(obj, LoxInstance):
                return obj.get(node.name)
            raise LoxRuntimeError(node.name, "Only instances have properties.")
        if isinstance(node, ast.Set):
            obj = self.evaluate(node.object, env)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(node.name, "Only instances have fields.")
            value = self.evaluate(node.value, env)
            obj.set(node.name, value)
            return value
        if isinstance(node, ast.This):
            return self._lookup_variable(node.keyword, node, env)
        if isinstance(node, ast.Super):
            return self._eval_super(node, env)
        if isinstance(node, ast.FunctionExpr):
            return self._eval_function_expr(node, env)
        raise LoxInternalError(f"cannot evaluate node: {type(node).__name__}")

    def _lookup_variable(self, name: Token, node, env: Environment):
        distance = self.locals.get(node)
        if distance is None:
            return self.globals.get(name)
        return env.get_at(distance, name.lexeme)

    def _eval_unary(self, node: ast.Unary, env: Environment):
        right = self.evaluate(node.right, env)
        if node.operator.kind == TK.BANG:
            return not is_truthy(right)
        if node.operator.kind == TK.MINUS:
            _check_number_operand(node.operator, right)
            return -right
        raise LoxInternalError(f"unknown unary operator: {node.operator.lexeme}")

    def _eval_binary(self, node: ast.Binary, env: Environment):
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        op = node.operator
        k = op.kind

        if k == TK.COMMA:
            return right
        if k == TK.EQ:
            return is_equal(left, right)
        if k == TK.NEQ:
            return not is_equal(left, right)
        if k == TK.PLUS:
            if _is_number(left) and _is_number(right):
                return left + right
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            raise LoxRuntimeError(op, "Operands must be two numbers or at least one string.")

        _check_number_operands(op, left, right)
        if k == TK.MINUS:
            return left - right
        if k == TK.STAR:
            return left * right
        if k == TK.SLASH:
            if right == 0:
                raise LoxRuntimeError(op, "Attempted to divide by zero.")
            return left / right
        if k == TK.GT:
            return left > right
        if k == TK.GE:
            return left >= right
        if k == TK.LT:
            return left < right
        if k == TK.LE:
            return left <= right
        raise LoxInternalError(f"unknown binary operator: {op.lexeme}")

    def _eval_call(self, node: ast.Call, env: Environment):
        callee = self.evaluate(node.callee, env)
        args = [self.evaluate(arg, env) for arg in node.args]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(node.paren, "Can only call functions and classes.")
        arity = callee.arity()
        if len(args) != arity:
            raise LoxRuntimeError(node.paren, f"Expected {arity} arguments but got {len(args)}.")
        return self.call(callee, args, node.paren)

    def call(self, callee: LoxCallable, args: list, token: Token) -> Any:
        """Invoke ``callee`` under the call-depth and instruction limits.

        Arity has already been checked. Errors are blamed on ``token``.
        """
        self._tick(token)

        self.call_depth += 1
        if self.call_depth > self.max_call_depth:
            self.call_depth -= 1
            raise LoxRuntimeError(token, "Stack overflow.")
        try:
            return callee.call(self, args)
        except RecursionError:
            raise LoxRuntimeError(token, "Stack overflow.")
        finally:
            self.call_depth -= 1

    def _eval_super(self, node: ast.Super, env: Environment):
        distance = self.locals.get(node)
        if distance is None:
            raise LoxInternalError("'super' was not resolved")
        superclass = env.get_at(distance, "super")
        # the 'this' frame sits just inside the 'super' frame
        instance = env.get_at(distance - 1, "this")
        method = superclass.find_method(node.method.lexeme)
        if method is None:
            raise LoxRuntimeError(node.method, f"Undefined property '{node.method.lexeme}'.")
        return method.bind(instance)

    def _eval_function_expr(self, node: ast.FunctionExpr, env: Environment):
        if node.name is None:
            return LoxFunction(node, env)
        own = Environment(env)
        func = LoxFunction(node, own)
        own.define(node.name.lexeme, func)
        return func


def _is_number(v) -> bool:
    return isinstance(v, float)


def _check_number_operand(operator: Token, operand):
    if not _is_number(operand):
        raise LoxRuntimeError(operator, "Operand must be a number.")


def _check_number_operands(operator: Token, left, right):
    if not (_is_number(left) and _is_number(right)):
        raise LoxRuntimeError(operator, "Operands must be numbers.")
