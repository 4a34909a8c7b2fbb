from .session import LoxSession, Outcome
from .errors import LoxError, LoxSyntaxError, LoxRuntimeError

__all__ = ["LoxSession", "Outcome", "LoxError", "LoxSyntaxError", "LoxRuntimeError"]
