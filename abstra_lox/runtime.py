from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable
from . import ast_nodes as ast
from .environment import Environment
from .errors import LoxRuntimeError
from .lexer import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxCallable:
    """Anything a call expression can invoke."""

    __slots__ = ()

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, args: list) -> Any:
        raise NotImplementedError


class NativeFunction(LoxCallable):
    __slots__ = ("name", "_arity", "func")

    def __init__(self, name: str, arity: int, func: Callable[[list], Any]):
        self.name = name
        self._arity = arity
        self.func = func

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, args: list) -> Any:
        return self.func(args)

    def __str__(self):
        return "<native fn>"

    def __repr__(self):
        return f"NativeFunction({self.name!r})"


class LoxFunction(LoxCallable):
    __slots__ = ("declaration", "closure", "is_initializer")

    def __init__(self, declaration: ast.FunctionDecl, closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str | None:
        return self.declaration.name.lexeme if self.declaration.name is not None else None

    def bind(self, instance: LoxInstance) -> LoxFunction:
        """Return a copy of this method whose closure has ``this`` bound to ``instance``."""
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, args: list) -> Any:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, args):
            env.define(param.lexeme, arg)
        result = interpreter.execute_block(self.declaration.body, env)
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return result.value

    def __str__(self):
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    __slots__ = ("name", "superclass", "methods")

    def __init__(self, name: str, superclass: LoxClass | None, methods: dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = dict(methods)

    def find_method(self, name: str) -> LoxFunction | None:
        klass = self
        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, args: list) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, args)
        return instance

    def __str__(self):
        return self.name


class LoxInstance:
    __slots__ = ("klass", "fields")

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: dict[str, Any] = {}

    def get(self, name: Token):
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"
