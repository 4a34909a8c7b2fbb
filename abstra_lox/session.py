from __future__ import annotations
import inspect
import logging
from enum import IntEnum
from typing import Any, Callable
from . import ast_nodes as ast
from .errors import Diagnostics, LoxSyntaxError
from .interpreter import Interpreter
from .lexer import Lexer, TK, Token
from .parser import Parser, TOO_DEEP
from .resolver import Resolver
from .runtime import LoxCallable, LoxFunction, LoxInstance, NativeFunction
from .stdlib import install_stdlib

logger = logging.getLogger(__name__)


class Outcome(IntEnum):
    """Result of one run; the value is the conventional process exit status."""

    OK = 0
    STATIC_ERROR = 65
    RUNTIME_ERROR = 70


class LoxSession:
    """A Lox execution session whose globals persist across runs.

    Args:
        max_call_depth: Max function call nesting depth (default 200).
        max_instructions: Max loop iterations plus calls per run, or None for
            no limit (default).
        repl: Let a trailing expression statement omit its ';' and print it.
        write: Receives each line written by ``print``. By default lines are
            captured and returned by ``execute``.
        report: Receives each formatted diagnostic.
    """

    def __init__(
        self,
        max_call_depth: int = 200,
        max_instructions: int | None = None,
        repl: bool = False,
        write: Callable[[str], None] | None = None,
        report: Callable[[str], None] | None = None,
    ):
        self.repl = repl
        self.diagnostics = Diagnostics(report)
        self.interpreter = Interpreter(
            self.diagnostics,
            write=write,
            max_call_depth=max_call_depth,
            max_instructions=max_instructions,
        )
        install_stdlib(self.interpreter)

    def run(self, code: str) -> Outcome:
        """Scan, parse, resolve and interpret ``code``. Errors go to the diagnostics."""
        self.diagnostics.reset()
        self.interpreter.instructions = 0

        tokens = Lexer(code, self.diagnostics).tokens
        statements = Parser(tokens, self.diagnostics, repl=self.repl).parse()
        logger.debug("scanned %d tokens, parsed %d statements", len(tokens), len(statements))
        if self.diagnostics.had_error:
            return Outcome.STATIC_ERROR

        if not self._resolve(lambda r: r.resolve(statements), tokens[-1]):
            return Outcome.STATIC_ERROR

        if not self.interpreter.interpret(statements):
            logger.debug("run stopped by a runtime error")
            return Outcome.RUNTIME_ERROR
        return Outcome.OK

    def execute(self, code: str) -> str:
        """Execute Lox code and return captured print output as a string."""
        self.interpreter.output.clear()
        outcome = self.run(code)
        if outcome is Outcome.STATIC_ERROR:
            raise LoxSyntaxError(self.diagnostics.messages)
        if outcome is Outcome.RUNTIME_ERROR:
            raise self.diagnostics.runtime_errors[-1]
        return "\n".join(self.interpreter.output)

    def eval(self, expression: str) -> Any:
        """Evaluate a Lox expression against the globals and return it as a Python value."""
        self.diagnostics.reset()
        self.interpreter.instructions = 0

        tokens = Lexer(expression, self.diagnostics).tokens
        expr = Parser(tokens, self.diagnostics).parse_expression()
        if expr is None or self.diagnostics.had_error:
            raise LoxSyntaxError(self.diagnostics.messages)
        if not self._resolve(lambda r: r.resolve_expression(expr), tokens[-1]):
            raise LoxSyntaxError(self.diagnostics.messages)

        return self._to_python(self.interpreter.evaluate(expr, self.interpreter.globals))

    def _resolve(self, step: Callable[[Resolver], dict], end: Token) -> bool:
        """Run one resolver pass and hand its table to the interpreter; False on errors."""
        try:
            locals_ = step(Resolver(self.diagnostics))
        except RecursionError:
            self.diagnostics.error(end, TOO_DEEP)
            return False
        logger.debug("resolved %d local references", len(locals_))
        if self.diagnostics.had_error:
            return False
        self.interpreter.resolve(locals_)
        return True

    def set(self, name: str, value: Any):
        """Define a global from a Python value."""
        self.interpreter.globals.define(name, self._to_lox(value, name))

    def get(self, name: str) -> Any:
        """Read a global as a Python value."""
        token = Token(TK.NAME, name, None, 0)
        return self._to_python(self.interpreter.globals.get(token))

    def _to_lox(self, value: Any, name: str = "?") -> Any:
        """Convert a Python value to a Lox value."""
        if value is None or isinstance(value, (bool, str, float, LoxCallable, LoxInstance)):
            return value
        if isinstance(value, int):
            return float(value)
        if callable(value):
            arity = len(inspect.signature(value).parameters)

            def wrapper(args):
                py_args = [self._to_python(a) for a in args]
                return self._to_lox(value(*py_args))

            return NativeFunction(getattr(value, "__name__", name), arity, wrapper)
        raise TypeError(f"cannot convert {type(value).__name__} to a Lox value")

    def _to_python(self, value: Any) -> Any:
        """Convert a Lox value to a Python value."""
        if isinstance(value, LoxFunction):
            return self._function_to_python(value)
        return value

    def _function_to_python(self, func: LoxFunction) -> Callable:
        """Wrap a Lox function as a Python callable."""
        interp = self.interpreter
        decl = func.declaration
        # runtime errors raised by the call are blamed on the declaration
        token = decl.keyword if isinstance(decl, ast.FunctionExpr) else decl.name

        def wrapper(*args):
            if len(args) != func.arity():
                raise TypeError(f"expected {func.arity()} arguments but got {len(args)}")
            lox_args = [self._to_lox(a) for a in args]
            return self._to_python(interp.call(func, lox_args, token))

        return wrapper
