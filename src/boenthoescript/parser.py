"""Parser for the envelope script language.

The grammar is an ordered choice at every position: comment, block, array,
call, definition, number, symbol. Exports (``out name = expr``) are only
recognised at the top level of a script.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ast import KW_ARRAY, KW_BLOCK, KW_DEFINE, KW_EXPORT, KW_ROOT, Comment, Expr, Form, NumberList, Symbol
from .lexer import LexError, Token, line_col, tokenize

EXPORT_WORD = "out"

_CLOSERS = {
    "RPAREN": '")"',
    "RBRACE": '"}"',
    "RBRACK": '"]"',
}


class ParseError(SyntaxError):
    def __init__(
        self,
        message: str,
        start: int,
        end: int,
        line: int,
        column: int,
        expected: tuple[str, ...] = (),
        found: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.start = start
        self.end = end
        self.line = line
        self.column = column
        self.expected = expected
        self.found = found

    def __str__(self) -> str:
        expected_text = ""
        if self.expected:
            expected_text = f"; expected {', '.join(self.expected)}"
        found_text = ""
        if self.found is not None:
            found_text = f"; found {self.found}"
        return f"{self.message} at {self.line}:{self.column}{expected_text}{found_text}"


@dataclass
class _Parser:
    source: str
    tokens: list[Token]
    index: int = 0

    def parse_script(self) -> Form:
        statements: list[Expr] = []
        self._consume_separators()
        while self._peek().kind != "EOF":
            if self._at_export():
                statements.append(self._parse_export())
            else:
                statements.append(self._parse_expr())
            self._consume_separators()
        return Form(KW_ROOT, tuple(statements))

    def parse_expression_only(self) -> Expr:
        expr = self._parse_expr()
        self._expect("EOF", "end of input")
        return expr

    def parse_expr_list_only(self) -> list[Expr]:
        exprs = self._parse_expr_list(until="EOF")
        self._expect("EOF", "end of input")
        return exprs

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _advance(self) -> Token:
        tok = self.tokens[self.index]
        self.index += 1
        return tok

    def _expect(self, kind: str, description: str) -> Token:
        tok = self._peek()
        if tok.kind != kind:
            self._error(tok, expected=(description,))
        return self._advance()

    def _error(self, tok: Token | None = None, *, message: str | None = None, expected: tuple[str, ...] = ()) -> None:
        token = tok if tok is not None else self._peek()
        detail = message if message is not None else "Unexpected token"
        found = "EOF" if token.kind == "EOF" else f"{token.kind}({token.text})"
        line, column = line_col(self.source, token.pos)
        raise ParseError(
            detail,
            token.pos,
            token.end,
            line,
            column,
            expected=tuple(dict.fromkeys(expected)),
            found=found,
        )

    def _consume_separators(self) -> None:
        while self._peek().kind == "SEMI":
            self._advance()

    def _at_export(self) -> bool:
        head, name, eq = self._peek(), self._peek(1), self._peek(2)
        return (
            head.kind == "SYMBOL"
            and head.text == EXPORT_WORD
            and name.kind == "SYMBOL"
            and name.spaced
            and not name.line_break
            and eq.kind == "EQUALS"
        )

    def _parse_export(self) -> Form:
        self._advance()
        name = Symbol(self._advance().text)
        self._expect("EQUALS", '"="')
        value = self._parse_expr()
        return Form(KW_EXPORT, (name, value))

    def _parse_expr(self) -> Expr:
        tok = self._peek()

        if tok.kind == "COMMENT":
            self._advance()
            return Comment(tok.text)

        if tok.kind == "LBRACE":
            self._advance()
            body = self._parse_expr_list(until="RBRACE")
            self._expect("RBRACE", _CLOSERS["RBRACE"])
            return Form(KW_BLOCK, tuple(body))

        if tok.kind == "LBRACK":
            self._advance()
            items = self._parse_arguments(close="RBRACK")
            return Form(KW_ARRAY, tuple(items))

        if tok.kind == "SYMBOL":
            nxt = self._peek(1)
            if nxt.kind == "LPAREN" and not nxt.line_break:
                self._advance()
                self._advance()
                args = self._parse_arguments(close="RPAREN")
                return Form(tok.text, tuple(args))
            if nxt.kind == "EQUALS":
                self._advance()
                self._advance()
                value = self._parse_expr()
                return Form(KW_DEFINE, (Symbol(tok.text), value))
            self._advance()
            return Symbol(tok.text)

        if tok.kind == "NUMBER":
            self._advance()
            return NumberList((float(tok.text),))

        self._error(tok, expected=("expression",))
        raise AssertionError("unreachable")

    def _parse_expr_list(self, *, until: str) -> list[Expr]:
        exprs: list[Expr] = []
        self._consume_separators()
        while self._peek().kind not in {until, "EOF"}:
            exprs.append(self._parse_expr())
            self._consume_separators()
        return exprs

    def _parse_arguments(self, *, close: str) -> list[Expr]:
        args: list[Expr] = []
        if self._peek().kind == close:
            self._advance()
            return args
        args.append(self._parse_expr())
        while self._peek().kind == "COMMA":
            self._advance()
            args.append(self._parse_expr())
        tok = self._peek()
        if tok.kind != close:
            self._error(tok, expected=('","', _CLOSERS[close]))
        self._advance()
        return args


def _parser_for(source: str) -> _Parser:
    try:
        tokens = tokenize(source)
    except LexError as exc:
        line, column = line_col(source, exc.pos)
        raise ParseError(exc.message, exc.pos, exc.pos + 1, line, column, expected=exc.expected, found=exc.found) from exc
    return _Parser(source=source, tokens=tokens)


def parse(source: str) -> Form:
    """Parse a whole script into its root form."""
    return _parser_for(source).parse_script()


def parse_expression(source: str) -> Expr:
    return _parser_for(source).parse_expression_only()


def parse_expr_list(source: str) -> list[Expr]:
    return _parser_for(source).parse_expr_list_only()
