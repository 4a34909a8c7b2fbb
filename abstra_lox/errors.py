from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .lexer import Token

logger = logging.getLogger(__name__)


class LoxError(Exception):
    pass


class LoxSyntaxError(LoxError):
    """Raised by the session when scanning, parsing or resolution reported errors."""

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__("\n".join(self.messages))


class LoxRuntimeError(LoxError):
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    @property
    def line(self) -> int:
        return self.token.line


class LoxInternalError(LoxError):
    pass


class ParseError(Exception):
    pass


class Diagnostics:
    """Collects the errors reported by every phase of a run.

    Lexical, syntax and resolution errors set ``had_error``; runtime errors set
    ``had_runtime_error``. Every formatted message is forwarded to ``report``
    when one is given and kept in ``messages`` until the next ``reset``.
    """

    def __init__(self, report: Callable[[str], None] | None = None):
        self.report = report
        self.messages: list[str] = []
        self.runtime_errors: list[LoxRuntimeError] = []
        self.had_error = False
        self.had_runtime_error = False

    def reset(self):
        """Start a new run: clear the flags and the previous run's messages."""
        self.messages = []
        self.runtime_errors = []
        self.had_error = False
        self.had_runtime_error = False

    def error(self, where: int | Token, message: str):
        from .lexer import TK

        if isinstance(where, int):
            self._emit(where, "", message)
        elif where.kind is TK.EOF:
            self._emit(where.line, " at end", message)
        else:
            self._emit(where.line, f" at '{where.lexeme}'", message)

    def runtime_error(self, err: LoxRuntimeError):
        self.had_runtime_error = True
        self.runtime_errors.append(err)
        self._publish(f"{err.message}\n[line {err.line}]")

    def _emit(self, line: int, where: str, message: str):
        self.had_error = True
        self._publish(f"[line {line}] Error{where}: {message}")

    def _publish(self, text: str):
        logger.debug("diagnostic: %s", text)
        self.messages.append(text)
        if self.report is not None:
            self.report(text)
