from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union
from .lexer import Token

# Nodes compare and hash by identity: the resolver keys its distance table on
# the node objects themselves.


# --------------- Expressions ---------------

@dataclass(eq=False)
class Literal:
    value: object

@dataclass(eq=False)
class Grouping:
    expression: object

@dataclass(eq=False)
class Unary:
    operator: Token
    right: object

@dataclass(eq=False)
class Binary:
    left: object
    operator: Token
    right: object

@dataclass(eq=False)
class Logical:
    left: object
    operator: Token
    right: object

@dataclass(eq=False)
class Ternary:
    condition: object
    then_expr: object
    else_expr: object
    question: Token

@dataclass(eq=False)
class Variable:
    name: Token

@dataclass(eq=False)
class Assign:
    name: Token
    value: object

@dataclass(eq=False)
class Call:
    callee: object
    paren: Token
    args: list

@dataclass(eq=False)
class Get:
    object: object
    name: Token

@dataclass(eq=False)
class Set:
    object: object
    name: Token
    value: object

@dataclass(eq=False)
class This:
    keyword: Token

@dataclass(eq=False)
class Super:
    keyword: Token
    method: Token

@dataclass(eq=False)
class FunctionExpr:
    name: Optional[Token]
    params: list[Token]
    body: list
    keyword: Token


# --------------- Statements ---------------

@dataclass(eq=False)
class Expression:
    expression: object

@dataclass(eq=False)
class Print:
    expression: object

@dataclass(eq=False)
class Var:
    name: Token
    initializer: object = None

@dataclass(eq=False)
class Block:
    statements: list

@dataclass(eq=False)
class If:
    condition: object
    then_branch: object
    else_branch: object = None

@dataclass(eq=False)
class While:
    condition: object
    body: object
    increment: object = None  # set by 'for' desugaring
    keyword: Optional[Token] = None

@dataclass(eq=False)
class Break:
    keyword: Token

@dataclass(eq=False)
class Continue:
    keyword: Token

@dataclass(eq=False)
class FunctionStmt:
    name: Token
    params: list[Token]
    body: list

@dataclass(eq=False)
class Return:
    keyword: Token
    value: object = None

@dataclass(eq=False)
class Class:
    name: Token
    superclass: Optional[Variable]
    methods: list[FunctionStmt] = field(default_factory=list)


FunctionDecl = Union[FunctionStmt, FunctionExpr]
