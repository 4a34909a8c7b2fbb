from __future__ import annotations
from typing import Any
from .errors import LoxInternalError, LoxRuntimeError
from .lexer import Token


class Environment:
    """One scope frame: a name -> value table plus a link to the enclosing frame.

    Frames are shared by every closure created while they were active, so a
    frame lives as long as its longest-lived holder.
    """

    __slots__ = ("values", "enclosing")

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, Any] = {}
        self.enclosing = enclosing

    def define(self, name: str, value):
        self.values[name] = value

    # ---- dynamic lookup, used for globals ----

    def get(self, name: Token):
        if name.lexeme in self.values:
            return self.values[name.lexeme]
        if self.enclosing is not None:
            return self.enclosing.get(name)
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value):
        if name.lexeme in self.values:
            self.values[name.lexeme] = value
            return
        if self.enclosing is not None:
            self.enclosing.assign(name, value)
            return
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    # ---- resolved lookup, used for locals ----

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise LoxInternalError(
                    f"scope chain is shorter than resolved distance {distance}"
                )
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str):
        values = self.ancestor(distance).values
        if name not in values:
            raise LoxInternalError(f"'{name}' is not defined at resolved distance {distance}")
        return values[name]

    def assign_at(self, distance: int, name: str, value):
        values = self.ancestor(distance).values
        if name not in values:
            raise LoxInternalError(f"'{name}' is not defined at resolved distance {distance}")
        values[name] = value
