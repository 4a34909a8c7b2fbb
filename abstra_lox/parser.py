from __future__ import annotations
from .lexer import TK, Token
from .errors import Diagnostics, ParseError
from . import ast_nodes as ast


MAX_ARGS = 255
TOO_DEEP = "Too much nesting."

# Tokens that begin a statement; synchronization stops in front of them.
_STATEMENT_STARTS = frozenset({
    TK.CLASS, TK.FUN, TK.VAR, TK.FOR, TK.IF, TK.WHILE, TK.PRINT, TK.RETURN,
})

_EQUALITY = (TK.NEQ, TK.EQ)
_COMPARISON = (TK.GT, TK.GE, TK.LT, TK.LE)
_TERM = (TK.MINUS, TK.PLUS)
_FACTOR = (TK.SLASH, TK.STAR)
_UNARY = (TK.BANG, TK.MINUS)


class Parser:
    """Recursive-descent parser producing a list of statement nodes.

    Syntax errors are reported to ``diagnostics``. After each one the parser
    skips ahead to the next statement boundary and keeps going, so a single
    run reports every independent error.

    With ``repl=True`` a trailing expression statement may drop its ``;`` and
    is turned into a ``print``.
    """

    def __init__(self, tokens: list[Token], diagnostics: Diagnostics | None = None, repl: bool = False):
        self.tokens = tokens
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.repl = repl
        self.pos = 0

    # ---- helpers ----

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _peek_kind(self) -> TK:
        return self.tokens[self.pos].kind

    def _at_end(self) -> bool:
        return self._peek_kind() == TK.EOF

    def _check(self, kind: TK) -> bool:
        return self._peek_kind() == kind

    def _check_next(self, kind: TK) -> bool:
        if self.pos + 1 >= len(self.tokens):
            return False
        return self.tokens[self.pos + 1].kind == kind

    def _advance(self) -> Token:
        tok = self._cur()
        if not self._at_end():
            self.pos += 1
        return tok

    def _match(self, *kinds: TK) -> Token | None:
        if self._peek_kind() in kinds:
            return self._advance()
        return None

    def _expect(self, kind: TK, msg: str) -> Token:
        if self._check(kind):
            return self._advance()
        raise self._error(self._cur(), msg)

    def _error(self, token: Token, msg: str) -> ParseError:
        """Report a syntax error and hand back the signal for the caller to raise."""
        self.diagnostics.error(token, msg)
        return ParseError(msg)

    def _synchronize(self):
        self._advance()
        while not self._at_end():
            if self._previous().kind == TK.SEMICOLON:
                return
            if self._peek_kind() in _STATEMENT_STARTS:
                return
            self._advance()

    # ---- top-level ----

    def parse(self) -> list:
        statements = []
        try:
            while not self._at_end():
                stmt = self._declaration()
                if stmt is not None:
                    statements.append(stmt)
        except RecursionError:
            self._error(self._cur(), TOO_DEEP)
        return statements

    def parse_expression(self):
        """Parse a single expression spanning the whole token list, or None on error."""
        try:
            expr = self._comma()
            if not self._at_end():
                raise self._error(self._cur(), "Expect end of expression.")
            return expr
        except ParseError:
            return None
        except RecursionError:
            self._error(self._cur(), TOO_DEEP)
            return None

    # ---- declarations ----

    def _declaration(self):
        try:
            if self._match(TK.CLASS):
                return self._class_declaration()
            if self._check(TK.FUN) and self._check_next(TK.NAME):
                self._advance()
                return self._function("function")
            if self._match(TK.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError:
            self._synchronize()
            return None

    def _class_declaration(self):
        name = self._expect(TK.NAME, "Expect class name.")

        superclass = None
        if self._match(TK.LT):
            superclass = ast.Variable(self._expect(TK.NAME, "Expect superclass name."))

        self._expect(TK.LBRACE, "Expect '{' before class body.")
        methods = []
        while not self._check(TK.RBRACE) and not self._at_end():
            methods.append(self._function("method"))
        self._expect(TK.RBRACE, "Expect '}' after class body.")
        return ast.Class(name, superclass, methods)

    def _function(self, kind: str) -> ast.FunctionStmt:
        name = self._expect(TK.NAME, f"Expect {kind} name.")
        self._expect(TK.LPAREN, f"Expect '(' after {kind} name.")
        params = self._parameters()
        self._expect(TK.LBRACE, f"Expect '{{' before {kind} body.")
        body = self._block()
        return ast.FunctionStmt(name, params, body)

    def _parameters(self) -> list[Token]:
        params: list[Token] = []
        if not self._check(TK.RPAREN):
            while True:
                if len(params) >= MAX_ARGS:
                    self._error(self._cur(), f"Can't have more than {MAX_ARGS} parameters.")
                params.append(self._expect(TK.NAME, "Expect parameter name."))
                if not self._match(TK.COMMA):
                    break
        self._expect(TK.RPAREN, "Expect ')' after parameters.")
        return params

    def _var_declaration(self):
        name = self._expect(TK.NAME, "Expect variable name.")
        initializer = None
        if self._match(TK.ASSIGN):
            initializer = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.Var(name, initializer)

    # ---- statements ----

    def _statement(self):
        k = self._peek_kind()
        if k == TK.BREAK:
            return self._break_statement()
        if k == TK.CONTINUE:
            return self._continue_statement()
        if k == TK.FOR:
            return self._for_statement()
        if k == TK.IF:
            return self._if_statement()
        if k == TK.PRINT:
            return self._print_statement()
        if k == TK.RETURN:
            return self._return_statement()
        if k == TK.WHILE:
            return self._while_statement()
        if k == TK.LBRACE:
            self._advance()
            return ast.Block(self._block())
        return self._expression_statement()

    def _block(self) -> list:
        statements = []
        while not self._check(TK.RBRACE) and not self._at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        self._expect(TK.RBRACE, "Expect '}' after block.")
        return statements

    def _break_statement(self):
        keyword = self._advance()
        self._expect(TK.SEMICOLON, "Expect ';' after 'break'.")
        return ast.Break(keyword)

    def _continue_statement(self):
        keyword = self._advance()
        self._expect(TK.SEMICOLON, "Expect ';' after 'continue'.")
        return ast.Continue(keyword)

    def _for_statement(self):
        """Desugar ``for (init; cond; incr) body`` into a block holding a while loop."""
        keyword = self._advance()
        self._expect(TK.LPAREN, "Expect '(' after 'for'.")

        if self._match(TK.SEMICOLON):
            initializer = None
        elif self._match(TK.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TK.SEMICOLON):
            condition = self._comma()
        self._expect(TK.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TK.RPAREN):
            increment = self._comma()
        self._expect(TK.RPAREN, "Expect ')' after for clauses.")

        body = self._statement()

        if condition is None:
            condition = ast.Literal(True)
        loop = ast.While(condition, body, increment, keyword)
        if initializer is not None:
            return ast.Block([initializer, loop])
        return loop

    def _if_statement(self):
        self._advance()
        self._expect(TK.LPAREN, "Expect '(' after 'if'.")
        condition = self._comma()
        self._expect(TK.RPAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = None
        if self._match(TK.ELSE):
            else_branch = self._statement()
        return ast.If(condition, then_branch, else_branch)

    def _print_statement(self):
        self._advance()
        value = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after value.")
        return ast.Print(value)

    def _return_statement(self):
        keyword = self._advance()
        value = None
        if not self._check(TK.SEMICOLON):
            value = self._comma()
        self._expect(TK.SEMICOLON, "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def _while_statement(self):
        keyword = self._advance()
        self._expect(TK.LPAREN, "Expect '(' after 'while'.")
        condition = self._comma()
        self._expect(TK.RPAREN, "Expect ')' after condition.")
        body = self._statement()
        return ast.While(condition, body, None, keyword)

    def _expression_statement(self):
        value = self._comma()
        if self.repl and self._at_end():
            return ast.Print(value)
        self._expect(TK.SEMICOLON, "Expect ';' after expression.")
        return ast.Expression(value)

    # ---- expressions ----

    def _comma(self):
        expr = self._expression()
        while self._match(TK.COMMA):
            operator = self._previous()
            right = self._expression()
            expr = ast.Binary(expr, operator, right)
        return expr

    def _expression(self):
        return self._assignment()

    def _assignment(self):
        expr = self._ternary()

        if self._match(TK.ASSIGN):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, ast.Variable):
                return ast.Assign(expr.name, value)
            if isinstance(expr, ast.Get):
                return ast.Set(expr.object, expr.name, value)

            # reported but not raised: the parser is not confused
            self._error(equals, "Invalid assignment target.")

        return expr

    def _ternary(self):
        expr = self._or()
        if self._match(TK.QUESTION):
            question = self._previous()
            then_expr = self._ternary()
            self._expect(TK.COLON, "Expect ':' after then branch of conditional expression.")
            else_expr = self._ternary()
            return ast.Ternary(expr, then_expr, else_expr, question)
        return expr

    def _or(self):
        expr = self._and()
        while self._match(TK.OR):
            operator = self._previous()
            right = self._and()
            expr = ast.Logical(expr, operator, right)
        return expr

    def _and(self):
        expr = self._equality()
        while self._match(TK.AND):
            operator = self._previous()
            right = self._equality()
            expr = ast.Logical(expr, operator, right)
        return expr

    def _equality(self):
        return self._binary(_EQUALITY, self._comparison)

    def _comparison(self):
        return self._binary(_COMPARISON, self._term)

    def _term(self):
        return self._binary(_TERM, self._factor)

    def _factor(self):
        return self._binary(_FACTOR, self._unary)

    def _binary(self, kinds: tuple[TK, ...], operand):
        """Left-associative chain of ``operand (op operand)*``."""
        expr = operand()
        while self._match(*kinds):
            operator = self._previous()
            right = operand()
            expr = ast.Binary(expr, operator, right)
        return expr

    def _unary(self):
        if self._match(*_UNARY):
            operator = self._previous()
            right = self._unary()
            return ast.Unary(operator, right)
        return self._call()

    def _call(self):
        expr = self._primary()
        while True:
            if self._match(TK.LPAREN):
                expr = self._finish_call(expr)
            elif self._match(TK.DOT):
                name = self._expect(TK.NAME, "Expect property name after '.'.")
                expr = ast.Get(expr, name)
            else:
                break
        return expr

    def _finish_call(self, callee):
        args = []
        if not self._check(TK.RPAREN):
            while True:
                if len(args) >= MAX_ARGS:
                    self._error(self._cur(), f"Can't have more than {MAX_ARGS} arguments.")
                args.append(self._expression())
                if not self._match(TK.COMMA):
                    break
        paren = self._expect(TK.RPAREN, "Expect ')' after arguments.")
        return ast.Call(callee, paren, args)

    def _primary(self):
        tok = self._cur()
        k = tok.kind
        if k == TK.FALSE:
            self._advance()
            return ast.Literal(False)
        if k == TK.TRUE:
            self._advance()
            return ast.Literal(True)
        if k == TK.NIL:
            self._advance()
            return ast.Literal(None)
        if k in (TK.NUMBER, TK.STRING):
            self._advance()
            return ast.Literal(tok.literal)
        if k == TK.THIS:
            self._advance()
            return ast.This(tok)
        if k == TK.SUPER:
            self._advance()
            self._expect(TK.DOT, "Expect '.' after 'super'.")
            method = self._expect(TK.NAME, "Expect superclass method name.")
            return ast.Super(tok, method)
        if k == TK.NAME:
            self._advance()
            return ast.Variable(tok)
        if k == TK.FUN:
            return self._function_expression()
        if k == TK.LPAREN:
            self._advance()
            expr = self._comma()
            self._expect(TK.RPAREN, "Expect ')' after expression.")
            return ast.Grouping(expr)
        raise self._error(tok, "Expect expression.")

    def _function_expression(self):
        keyword = self._advance()
        name = self._match(TK.NAME)
        self._expect(TK.LPAREN, "Expect '(' after 'fun'.")
        params = self._parameters()
        self._expect(TK.LBRACE, "Expect '{' before function body.")
        body = self._block()
        return ast.FunctionExpr(name, params, body, keyword)
