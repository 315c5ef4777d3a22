"""
Polynomial factoring by pattern.

Rules are tried in a fixed order on the expanded polynomial; the first one
that fires splits it and every piece is factored again.  Each firing is
appended to ``trace`` as ``(rule, *details)`` for the step narrator.
"""

import logging
from fractions import Fraction
from math import gcd, lcm

from algebra import poly
from algebra.budget import Budget
from algebra.engine import expand, simplify
from algebra.expr import (
    ONE, ZERO, Add, Eq, Num, Sym, add, as_base_exp, display_key, div, eq, exact_root,
    factors_of, free_symbols, is_integer, mul, neg, numer_denom, num, pow_,
    split_coefficient, sub,
)

logger = logging.getLogger(__name__)

COMMON_FACTOR = "common factor"
DIFFERENCE_OF_SQUARES = "difference of squares"
PERFECT_SQUARE = "perfect square"
SUM_OF_CUBES = "sum of cubes"
DIFFERENCE_OF_CUBES = "difference of cubes"
RATIONAL_ROOT = "rational root"


def _term_powers(term):
    coefficient, rest = split_coefficient(term)
    powers = {}
    if rest != ONE:
        for factor in factors_of(rest):
            base, exp = as_base_exp(factor)
            powers[base] = exp
    return coefficient, powers


def _leading_term(p: Add):
    return min(p.args, key=display_key)


def _common_content(p: Add):
    """Rational content and shared monomial of *p*, sign from the leading term."""
    parts = [_term_powers(term) for term in p.args]
    content = ONE
    if all(isinstance(c, Fraction) for c, _ in parts):
        top, bottom = 0, 1
        for c, _ in parts:
            top = gcd(top, c.numerator)
            bottom = lcm(bottom, c.denominator)
        content = Num(Fraction(top, bottom))
    if split_coefficient(_leading_term(p))[0] < 0:
        content = mul(num(-1), content)
    shared = []
    for base, exp in parts[0][1].items():
        if isinstance(base, Num) or not (isinstance(exp, Num) and exp.is_exact and exp.value > 0):
            continue
        exps = [powers.get(base) for _, powers in parts]
        if all(isinstance(e, Num) and e.is_exact and e.value > 0 for e in exps):
            shared.append(pow_(base, Num(min(e.value for e in exps))))
    return mul(content, *shared)


def _root_of_term(term, k: int):
    """Exact k-th root of a monomial, or None."""
    coefficient, powers = _term_powers(term)
    if not isinstance(coefficient, Fraction):
        return None
    root = exact_root(coefficient, k)
    if root is None:
        return None
    factors = [Num(root)]
    for base, exp in powers.items():
        if not (isinstance(exp, Num) and exp.is_exact):
            return None
        reduced = exp.value / k
        if not is_integer(reduced) or reduced <= 0:
            return None
        factors.append(pow_(base, Num(reduced)))
    return mul(*factors)


def _difference_of_squares(p: Add, budget):
    if len(p.args) != 2:
        return None
    first, second = sorted(p.args, key=display_key)
    if split_coefficient(first)[0] < 0 or split_coefficient(second)[0] > 0:
        return None
    a = _root_of_term(first, 2)
    b = _root_of_term(neg(second), 2)
    if a is None or b is None:
        return None
    return [(add(a, b), 1), (sub(a, b), 1)], (DIFFERENCE_OF_SQUARES, a, b)


def _perfect_square(p: Add, budget):
    if len(p.args) != 3:
        return None
    ordered = sorted(p.args, key=display_key)
    for i, j, m in ((0, 2, 1), (0, 1, 2), (1, 2, 0)):
        a = _root_of_term(ordered[i], 2)
        b = _root_of_term(ordered[j], 2)
        if a is None or b is None:
            continue
        twice = mul(num(2), a, b)
        middle = ordered[m]
        if simplify(sub(middle, twice), budget) == ZERO:
            return [(add(a, b), 2)], (PERFECT_SQUARE, a, b, num(1))
        if simplify(add(middle, twice), budget) == ZERO:
            return [(sub(a, b), 2)], (PERFECT_SQUARE, a, b, num(-1))
    return None


def _sum_of_cubes(p: Add, budget):
    if len(p.args) != 2:
        return None
    first, second = sorted(p.args, key=display_key)
    a = _root_of_term(first, 3)
    b = _root_of_term(second, 3)
    if a is None or b is None:
        return None
    rule = SUM_OF_CUBES if split_coefficient(second)[0] > 0 else DIFFERENCE_OF_CUBES
    square = add(pow_(a, num(2)), neg(mul(a, b)), pow_(b, num(2)))
    return [(add(a, b), 1), (square, 1)], (rule, a, b)


def _rational_roots(p: Add, budget):
    names = free_symbols(p)
    if len(names) != 1:
        return None
    name = names.pop()
    cmap = poly.coefficient_map(p, name)
    if cmap is None:
        return None
    coeffs = poly.to_rational(cmap)
    if coeffs is None:
        return None
    n = poly.degree(coeffs)
    if n < 2 or n > budget.options.max_root_degree:
        return None
    pieces = []
    details = []
    for root in poly.rational_roots(coeffs, budget):
        count, coeffs = poly.multiplicity(coeffs, root)
        linear = poly.primitive_linear(root, name)
        pieces.append((linear, count))
        details.append(Num(root))
        # (q*v - p) is q times (v - p/q)
        coeffs = [c / root.denominator ** count for c in coeffs]
    if not pieces:
        return None
    pieces.append((poly.to_expr(coeffs, name), 1))
    return pieces, (RATIONAL_ROOT, Sym(name), *details)


_RULES = (_difference_of_squares, _perfect_square, _sum_of_cubes, _rational_roots)


def _factor_expanded(p, budget: Budget, trace: list):
    budget.check()
    if not isinstance(p, Add):
        return p
    content = _common_content(p)
    if content != ONE:
        trace.append((COMMON_FACTOR, content))
        rest = add(*(simplify(div(term, content), budget, combine_fractions=False)
                     for term in p.args))
        return mul(content, _factor_expanded(rest, budget, trace))
    for rule in _RULES:
        found = rule(p, budget)
        if found is None:
            continue
        pieces, details = found
        logger.debug("factor rule %s fired", details[0])
        trace.append(details)
        return mul(*(pow_(_factor_expanded(expand(piece, budget), budget, trace), num(count))
                     for piece, count in pieces))
    return p


def _factor_polynomial(e, budget: Budget, trace: list):
    return _factor_expanded(expand(e, budget), budget, trace)


def factor(e, budget: Budget = None, trace: list = None):
    """Factor over the rationals; returns *e* unchanged when no rule fires and nothing cancels."""
    budget = budget or Budget()
    trace = [] if trace is None else trace
    if isinstance(e, Eq):
        return eq(factor(e.lhs, budget, trace), factor(e.rhs, budget, trace))
    fired = len(trace)
    simplified = simplify(e, budget)
    numerator, denominator = numer_denom(simplified)
    result = _factor_polynomial(numerator, budget, trace)
    if denominator != ONE:
        result = div(result, _factor_polynomial(denominator, budget, trace))
    if len(trace) == fired:
        # keep the input unless a common factor was cancelled away
        return simplified if denominator != numer_denom(e)[1] else e
    return result
