"""
Expression tree for the algebra core.

Nodes are immutable dataclasses.  Trees are always built through the smart
constructors (``add``, ``mul``, ``pow_`` ...) which keep them canonical:

  - Add / Mul are flat, with at most one numeric child and no identities
  - single-child Add / Mul collapse to the child, empty ones to 0 / 1
  - x^0 -> 1, x^1 -> x, 0^0 -> 1, exact numeric powers are folded
  - children are sorted by ``sort_key`` so construction order never leaks
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, Iterable, Union

from sympy import integer_nthroot

from algebra.errors import DomainError

Number = Union[Fraction, float]

# Named constants understood by numeric evaluation.
CONSTANTS = ("pi", "e")

FUNCTIONS = ("sqrt", "sin", "cos", "tan", "log", "ln", "exp", "abs")

HALF = Fraction(1, 2)

# Largest exponent folded exactly; bigger powers stay symbolic.
_MAX_EXACT_EXPONENT = 1000


class Expr:
    """Base class for all expression nodes."""

    def __str__(self) -> str:
        from algebra.printer import pretty
        return pretty(self)


@dataclass(frozen=True)
class Num(Expr):
    value: Number

    @property
    def is_exact(self) -> bool:
        return isinstance(self.value, Fraction)


@dataclass(frozen=True)
class Sym(Expr):
    name: str


@dataclass(frozen=True)
class Neg(Expr):
    arg: Expr


@dataclass(frozen=True)
class Add(Expr):
    args: tuple


@dataclass(frozen=True)
class Mul(Expr):
    args: tuple


@dataclass(frozen=True)
class Pow(Expr):
    base: Expr
    exp: Expr


@dataclass(frozen=True)
class Func(Expr):
    name: str
    args: tuple


@dataclass(frozen=True)
class Eq(Expr):
    lhs: Expr
    rhs: Expr


# ── Numbers ──────────────────────────────────────────────────────────────

def to_number(value) -> Number:
    """Coerce ints, Fractions and floats; integral floats become exact."""
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int):
        return Fraction(value)
    if isinstance(value, float):
        if value.is_integer():
            return Fraction(int(value))
        return value
    return Fraction(value)


def num(value) -> Num:
    return Num(to_number(value))


ZERO = Num(Fraction(0))
ONE = Num(Fraction(1))
MINUS_ONE = Num(Fraction(-1))


def is_integer(value) -> bool:
    return isinstance(value, Fraction) and value.denominator == 1


def exact_root(value: Fraction, n: int):
    """Return the exact real n-th root of *value*, or None."""
    if value < 0:
        if n % 2 == 0:
            return None
        root = exact_root(-value, n)
        return None if root is None else -root
    top, top_exact = integer_nthroot(value.numerator, n)
    bottom, bottom_exact = integer_nthroot(value.denominator, n)
    if top_exact and bottom_exact:
        return Fraction(int(top), int(bottom))
    return None


def power_of_numbers(base: Number, exp: Number):
    """Fold ``base ** exp`` when the result is representable, else None."""
    if base == 0 and exp < 0:
        raise DomainError("Division by zero")
    if isinstance(base, float) or isinstance(exp, float):
        if base < 0 and not float(exp).is_integer():
            return None
        try:
            return to_number(float(base) ** float(exp))
        except OverflowError:
            return None
    if abs(exp.numerator) > _MAX_EXACT_EXPONENT and abs(base) != 1:
        return None
    if exp.denominator == 1:
        return base ** exp.numerator
    root = exact_root(base, exp.denominator)
    if root is None:
        return None
    return root ** exp.numerator


# ── Ordering ─────────────────────────────────────────────────────────────

def _exponent_key(exp: Expr) -> tuple:
    if isinstance(exp, Num):
        return (0, exp.value, "")
    return (1, 0, repr(exp))


def sort_key(e: Expr) -> tuple:
    """Total order for the children of Add and Mul.

    Numbers first, then symbols alphabetically with the powers of one base
    kept together, then composites by structural hash and length.
    """
    if isinstance(e, Num):
        return (0, e.value)
    if isinstance(e, Sym):
        return (1, e.name, _exponent_key(ONE))
    if isinstance(e, Pow) and isinstance(e.base, Sym):
        return (1, e.base.name, _exponent_key(e.exp))
    text = repr(e)
    return (2, hashlib.md5(text.encode("utf-8")).hexdigest(), len(text))


def display_key(term: Expr) -> tuple:
    """Graded lexicographic order used when printing a sum.

    Higher total degree first; within a degree, larger powers of the
    alphabetically first variable win; constants go last.
    """
    coefficient, rest = split_coefficient(term)
    powers = {}
    others = []
    for factor in factors_of(rest):
        base, exp = as_base_exp(factor)
        if isinstance(base, Sym) and isinstance(exp, Num) and exp.is_exact:
            powers[base.name] = powers.get(base.name, 0) + exp.value
        elif factor != ONE:
            others.append(repr(factor))
    degree = sum(powers.values())
    monomial = tuple((name, -powers[name]) for name in sorted(powers) if powers[name] != 0)
    constant = 1 if rest == ONE else 0
    return (constant, -degree, monomial, tuple(sorted(others)), coefficient)


# ── Smart constructors ──────────────────────────────────────────────────

def _flatten(items: Iterable[Expr], kind: type) -> list:
    out = []
    for item in items:
        if isinstance(item, kind):
            out.extend(item.args)
        else:
            out.append(item)
    return out


def add(*terms: Expr) -> Expr:
    total = Fraction(0)
    rest = []
    for term in _flatten(terms, Add):
        if isinstance(term, Num):
            total = total + term.value
        else:
            rest.append(term)
    if total != 0:
        rest.append(Num(to_number(total)))
    if not rest:
        return ZERO
    if len(rest) == 1:
        return rest[0]
    return Add(tuple(sorted(rest, key=sort_key)))


def mul(*factors: Expr) -> Expr:
    coefficient = Fraction(1)
    rest = []
    for factor in _flatten(factors, Mul):
        if isinstance(factor, Num):
            coefficient = coefficient * factor.value
        else:
            rest.append(factor)
    if coefficient == 0:
        return ZERO
    if coefficient != 1:
        rest.append(Num(to_number(coefficient)))
    if not rest:
        return ONE
    if len(rest) == 1:
        return rest[0]
    return Mul(tuple(sorted(rest, key=sort_key)))


def pow_(base: Expr, exp: Expr) -> Expr:
    if isinstance(exp, Num):
        if exp.value == 0:
            return ONE
        if exp.value == 1:
            return base
        if isinstance(base, Num):
            folded = power_of_numbers(base.value, exp.value)
            if folded is not None:
                return Num(to_number(folded))
        elif is_integer(exp.value):
            if isinstance(base, Pow):
                return pow_(base.base, mul(base.exp, exp))
            if isinstance(base, Mul):
                return mul(*(pow_(factor, exp) for factor in base.args))
    if base == ONE:
        return ONE
    return Pow(base, exp)


def neg(e: Expr) -> Expr:
    return mul(MINUS_ONE, e)


def sub(a: Expr, b: Expr) -> Expr:
    return add(a, neg(b))


def div(a: Expr, b: Expr) -> Expr:
    if isinstance(b, Num):
        if b.value == 0:
            raise DomainError("Division by zero")
        return mul(a, Num(to_number(1 / b.value)))
    return mul(a, pow_(b, MINUS_ONE))


def func(name: str, *args: Expr) -> Expr:
    if name == "sqrt":
        return pow_(args[0], Num(HALF))
    return Func(name, tuple(args))


def eq(lhs: Expr, rhs: Expr) -> Eq:
    if isinstance(lhs, Eq) or isinstance(rhs, Eq):
        raise DomainError("An equation can only have one '='")
    return Eq(lhs, rhs)


def rebuild(e: Expr, children: list) -> Expr:
    """Rebuild *e* from new children through the canonical constructors."""
    if isinstance(e, Add):
        return add(*children)
    if isinstance(e, Mul):
        return mul(*children)
    if isinstance(e, Pow):
        return pow_(children[0], children[1])
    if isinstance(e, Func):
        return func(e.name, *children)
    if isinstance(e, Neg):
        return neg(children[0])
    if isinstance(e, Eq):
        return eq(children[0], children[1])
    return e


def children(e: Expr) -> tuple:
    if isinstance(e, (Add, Mul, Func)):
        return e.args
    if isinstance(e, Pow):
        return (e.base, e.exp)
    if isinstance(e, Neg):
        return (e.arg,)
    if isinstance(e, Eq):
        return (e.lhs, e.rhs)
    return ()


# ── Queries ──────────────────────────────────────────────────────────────

def walk(e: Expr):
    yield e
    for child in children(e):
        yield from walk(child)


def free_symbols(e: Expr, include_constants: bool = True) -> set:
    names = {node.name for node in walk(e) if isinstance(node, Sym)}
    if not include_constants:
        names -= set(CONSTANTS)
    return names


def contains(e: Expr, name: str) -> bool:
    return any(isinstance(node, Sym) and node.name == name for node in walk(e))


def factors_of(e: Expr) -> tuple:
    return e.args if isinstance(e, Mul) else (e,)


def terms_of(e: Expr) -> tuple:
    return e.args if isinstance(e, Add) else (e,)


def split_coefficient(term: Expr):
    """Split a term into (numeric coefficient, remaining factor)."""
    if isinstance(term, Num):
        return term.value, ONE
    if isinstance(term, Mul) and isinstance(term.args[0], Num):
        return term.args[0].value, mul(*term.args[1:])
    return Fraction(1), term


def as_base_exp(e: Expr):
    if isinstance(e, Pow):
        return e.base, e.exp
    return e, ONE


def numer_denom(e: Expr):
    """Split a product into numerator and denominator factors."""
    numer, denom = [], []
    for factor in factors_of(e):
        base, exp = as_base_exp(factor)
        if isinstance(exp, Num) and exp.value < 0 and not isinstance(base, Num):
            denom.append(pow_(base, Num(to_number(-exp.value))))
        else:
            numer.append(factor)
    return mul(*numer), mul(*denom)


def substitute(e: Expr, scope: dict) -> Expr:
    """Replace every symbol bound in *scope* at once."""
    if isinstance(e, Sym):
        return scope.get(e.name, e)
    kids = children(e)
    if not kids:
        return e
    return rebuild(e, [substitute(c, scope) for c in kids])


def replace_symbols(e: Expr, scope: dict) -> Expr:
    """Like ``substitute`` but keeps the raw shape for display (no folding)."""
    if isinstance(e, Sym):
        return scope.get(e.name, e)
    if isinstance(e, Add):
        return Add(tuple(replace_symbols(c, scope) for c in e.args))
    if isinstance(e, Mul):
        return Mul(tuple(replace_symbols(c, scope) for c in e.args))
    if isinstance(e, Pow):
        return Pow(replace_symbols(e.base, scope), replace_symbols(e.exp, scope))
    if isinstance(e, Func):
        return Func(e.name, tuple(replace_symbols(c, scope) for c in e.args))
    if isinstance(e, Eq):
        return Eq(replace_symbols(e.lhs, scope), replace_symbols(e.rhs, scope))
    return e


def map_bottom_up(e: Expr, rule: Callable[[Expr], Expr]) -> Expr:
    """Rewrite children first, then apply *rule* to the rebuilt parent."""
    kids = children(e)
    if kids:
        e = rebuild(e, [map_bottom_up(c, rule) for c in kids])
    return rule(e)
