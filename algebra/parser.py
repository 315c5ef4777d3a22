"""
Pratt parser for algebra expressions.

Precedence, high to low: function call, ``^`` (right-assoc), unary ``-``,
``* /``, ``+ -``, and ``=`` which is only allowed once at the top level.
Every node goes through the canonical constructors, so the result of
``parse`` is already in canonical form.
"""

from fractions import Fraction

from algebra.errors import ParseError
from algebra.expr import (
    Eq, Expr, Num, Sym, add, div, eq, func, mul, neg, pow_, sub,
)
from algebra.lexer import normalize, tokenize

_EQUALS_BP = 10
_BINARY_BP = {"+": 20, "-": 20, "*": 30, "/": 30, "^": 50}
_PREFIX_BP = 40


class Parser:
    def __init__(self, tokens: list):
        self.tokens = tokens
        self.index = 0

    def peek(self):
        return self.tokens[self.index]

    def advance(self):
        tok = self.tokens[self.index]
        if tok.kind != "end":
            self.index += 1
        return tok

    def expect(self, kind: str, what: str):
        tok = self.advance()
        if tok.kind != kind:
            raise ParseError(f"Expected {what}", tok.pos)
        return tok

    def parse(self) -> Expr:
        if self.peek().kind == "end":
            raise ParseError("Empty expression", 0)
        tree = self.expression(0)
        tok = self.peek()
        if tok.kind != "end":
            raise ParseError(f"Unexpected '{tok.text}'", tok.pos)
        return tree

    def _binding_power(self, tok) -> int:
        if tok.kind == "op":
            return _BINARY_BP[tok.text]
        if tok.kind == "equals":
            return _EQUALS_BP
        return 0

    def expression(self, rbp: int) -> Expr:
        left = self.nud(self.advance())
        while rbp < self._binding_power(self.peek()):
            left = self.led(self.advance(), left)
        return left

    def _group(self) -> Expr:
        """Parse inside parentheses, where '=' is not allowed."""
        inner = self.expression(_EQUALS_BP)
        tok = self.peek()
        if tok.kind == "equals":
            raise ParseError("'=' is only allowed at the top level", tok.pos)
        return inner

    def nud(self, tok) -> Expr:
        if tok.kind == "number":
            return Num(Fraction(tok.text))
        if tok.kind == "name":
            return Sym(tok.text)
        if tok.kind == "lparen":
            inner = self._group()
            self.expect("rparen", "')'")
            return inner
        if tok.kind == "func":
            return self._call(tok)
        if tok.kind == "op" and tok.text == "-":
            return neg(self.expression(_PREFIX_BP))
        if tok.kind == "op" and tok.text == "+":
            return self.expression(_PREFIX_BP)
        if tok.kind == "end":
            raise ParseError("Unexpected end of expression", tok.pos)
        raise ParseError(f"Unexpected '{tok.text}'", tok.pos)

    def _call(self, tok) -> Expr:
        self.expect("lparen", f"'(' after {tok.text}")
        args = [self._group()]
        while self.peek().kind == "comma":
            self.advance()
            args.append(self._group())
        self.expect("rparen", "')'")
        if len(args) != 1:
            raise ParseError(f"{tok.text}() takes exactly one argument", tok.pos)
        return func(tok.text, *args)

    def led(self, tok, left: Expr) -> Expr:
        if tok.kind == "equals":
            if isinstance(left, Eq):
                raise ParseError("Only one '=' is allowed", tok.pos)
            right = self.expression(_EQUALS_BP)
            if self.peek().kind == "equals":
                raise ParseError("Only one '=' is allowed", self.peek().pos)
            return eq(left, right)
        op = tok.text
        if op == "^":
            # right-associative: a^b^c == a^(b^c)
            return pow_(left, self.expression(_BINARY_BP["^"] - 1))
        right = self.expression(_BINARY_BP[op])
        if op == "+":
            return add(left, right)
        if op == "-":
            return sub(left, right)
        if op == "*":
            return mul(left, right)
        return div(left, right)


def parse(text: str) -> Expr:
    """Parse user text (without any ``@`` annotation) into a canonical tree."""
    return Parser(tokenize(normalize(text))).parse()
