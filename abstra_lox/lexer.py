from __future__ import annotations
from enum import Enum, auto
from .errors import Diagnostics


class TK(Enum):
    # Literals
    NUMBER = auto()
    STRING = auto()
    NAME = auto()
    # Keywords
    AND = auto()
    BREAK = auto()
    CLASS = auto()
    CONTINUE = auto()
    ELSE = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()
    # Symbols
    PLUS = auto()       # +
    MINUS = auto()      # -
    STAR = auto()       # *
    SLASH = auto()      # /
    BANG = auto()       # !
    NEQ = auto()        # !=
    ASSIGN = auto()     # =
    EQ = auto()         # ==
    LT = auto()         # <
    LE = auto()         # <=
    GT = auto()         # >
    GE = auto()         # >=
    LPAREN = auto()     # (
    RPAREN = auto()     # )
    LBRACE = auto()     # {
    RBRACE = auto()     # }
    SEMICOLON = auto()  # ;
    COMMA = auto()      # ,
    DOT = auto()        # .
    QUESTION = auto()   # ?
    COLON = auto()      # :
    EOF = auto()


KEYWORDS = {
    "and": TK.AND, "break": TK.BREAK, "class": TK.CLASS,
    "continue": TK.CONTINUE, "else": TK.ELSE, "false": TK.FALSE,
    "for": TK.FOR, "fun": TK.FUN, "if": TK.IF, "nil": TK.NIL,
    "or": TK.OR, "print": TK.PRINT, "return": TK.RETURN,
    "super": TK.SUPER, "this": TK.THIS, "true": TK.TRUE,
    "var": TK.VAR, "while": TK.WHILE,
}

_SINGLE_CHAR = {
    "(": TK.LPAREN, ")": TK.RPAREN, "{": TK.LBRACE, "}": TK.RBRACE,
    ",": TK.COMMA, ".": TK.DOT, "-": TK.MINUS, "+": TK.PLUS,
    ";": TK.SEMICOLON, "*": TK.STAR, "?": TK.QUESTION, ":": TK.COLON,
}

# char -> (kind when followed by '=', kind otherwise)
_WITH_EQUALS = {
    "!": (TK.NEQ, TK.BANG),
    "=": (TK.EQ, TK.ASSIGN),
    "<": (TK.LE, TK.LT),
    ">": (TK.GE, TK.GT),
}


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_alpha(ch: str) -> bool:
    return "a" <= ch <= "z" or "A" <= ch <= "Z" or ch == "_"


class Token:
    __slots__ = ("kind", "lexeme", "literal", "line")

    def __init__(self, kind: TK, lexeme: str, literal: object, line: int):
        self.kind = kind
        self.lexeme = lexeme
        self.literal = literal
        self.line = line

    def __repr__(self):
        return f"Token({self.kind}, {self.lexeme!r}, {self.literal!r}, line={self.line})"


class Lexer:
    """Turns source text into a flat token list ending with an EOF token.

    Lexical errors are reported to ``diagnostics`` and scanning carries on, so
    one pass surfaces every bad character in the source.
    """

    def __init__(self, source: str, diagnostics: Diagnostics | None = None):
        self.source = source
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.start = 0
        self.pos = 0
        self.line = 1
        self.tokens: list[Token] = []
        self._tokenize()

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _char(self) -> str:
        return self.source[self.pos] if self.pos < len(self.source) else ""

    def _peek(self, offset: int = 1) -> str:
        p = self.pos + offset
        return self.source[p] if p < len(self.source) else ""

    def _advance(self) -> str:
        ch = self.source[self.pos]
        if ch == "\n":
            self.line += 1
        self.pos += 1
        return ch

    def _match(self, expected: str) -> bool:
        if self.pos < len(self.source) and self.source[self.pos] == expected:
            self._advance()
            return True
        return False

    def _error(self, msg: str):
        self.diagnostics.error(self.line, msg)

    def _add(self, kind: TK, literal: object = None, line: int | None = None):
        text = self.source[self.start : self.pos]
        self.tokens.append(Token(kind, text, literal, self.line if line is None else line))

    def _skip_whitespace_and_comments(self):
        while not self._at_end():
            ch = self._char()
            if ch in " \t\r\n":
                self._advance()
            elif ch == "/" and self._peek() == "/":
                while not self._at_end() and self._char() != "\n":
                    self._advance()
            else:
                break

    def _read_string(self):
        line = self.line
        self._advance()  # opening quote
        while not self._at_end() and self._char() != '"':
            self._advance()
        if self._at_end():
            self._error("Unterminated string.")
            return
        self._advance()  # closing quote
        self._add(TK.STRING, self.source[self.start + 1 : self.pos - 1], line)

    def _read_number(self):
        while _is_digit(self._char()):
            self._advance()
        # a trailing '.' without a digit after it is not part of the number
        if self._char() == "." and _is_digit(self._peek()):
            self._advance()
            while _is_digit(self._char()):
                self._advance()
        self._add(TK.NUMBER, float(self.source[self.start : self.pos]))

    def _read_name(self):
        while _is_alpha(self._char()) or _is_digit(self._char()):
            self.pos += 1
        word = self.source[self.start : self.pos]
        self._add(KEYWORDS.get(word, TK.NAME))

    def _tokenize(self):
        while True:
            self._skip_whitespace_and_comments()
            self.start = self.pos
            if self._at_end():
                self.tokens.append(Token(TK.EOF, "", None, self.line))
                return

            ch = self._char()

            if ch == '"':
                self._read_string()
                continue

            if _is_digit(ch):
                self._read_number()
                continue

            if _is_alpha(ch):
                self._read_name()
                continue

            self._advance()
            if ch in _SINGLE_CHAR:
                self._add(_SINGLE_CHAR[ch])
            elif ch in _WITH_EQUALS:
                with_eq, plain = _WITH_EQUALS[ch]
                self._add(with_eq if self._match("=") else plain)
            elif ch == "/":
                self._add(TK.SLASH)
            else:
                self._error("Unexpected character.")
