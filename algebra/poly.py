"""
Univariate polynomial helpers.

Polynomials are dense coefficient lists, lowest degree first, over
``Fraction``.  ``coefficient_map`` bridges from an expanded expression tree;
``to_expr`` goes back.
"""

from fractions import Fraction
from math import gcd, lcm

from sympy import divisors

from algebra.budget import Budget
from algebra.expr import (
    ZERO, Num, Sym, add, as_base_exp, contains, factors_of, is_integer, mul,
    num, pow_, terms_of,
)

# Larger constants are not worth a divisor search.
_MAX_DIVISOR_SEARCH = 10 ** 12


def split_power(term, variable: str):
    """Return ``(n, rest)`` with ``term == rest * variable^n``, or None."""
    n = 0
    rest = []
    for factor in factors_of(term):
        base, exp = as_base_exp(factor)
        if base == Sym(variable):
            if not (isinstance(exp, Num) and is_integer(exp.value) and exp.value > 0):
                return None
            n += int(exp.value)
        elif contains(factor, variable):
            return None
        else:
            rest.append(factor)
    return n, mul(*rest)


def coefficient_map(expanded, variable: str):
    """Map degree -> coefficient for an expanded tree, or None if not polynomial."""
    coefficients = {}
    for term in terms_of(expanded):
        split = split_power(term, variable)
        if split is None:
            return None
        n, rest = split
        coefficients[n] = add(coefficients.get(n, ZERO), rest)
    return {n: c for n, c in coefficients.items() if c != ZERO}


def to_rational(coefficients: dict):
    """Dense Fraction list from a coefficient map, or None if any is symbolic."""
    if not coefficients:
        return [Fraction(0)]
    dense = [Fraction(0)] * (max(coefficients) + 1)
    for n, c in coefficients.items():
        if not (isinstance(c, Num) and c.is_exact):
            return None
        dense[n] = c.value
    return dense


def to_expr(coeffs: list, variable: str):
    v = Sym(variable)
    return add(*(mul(Num(c), pow_(v, num(n))) for n, c in enumerate(coeffs) if c != 0))


def trim(coeffs: list) -> list:
    coeffs = list(coeffs)
    while len(coeffs) > 1 and coeffs[-1] == 0:
        coeffs.pop()
    return coeffs


def degree(coeffs: list) -> int:
    coeffs = trim(coeffs)
    if len(coeffs) == 1 and coeffs[0] == 0:
        return -1
    return len(coeffs) - 1


def poly_divmod(numerator: list, denominator: list):
    """Long division; returns ``(quotient, remainder)``."""
    numerator = trim(numerator)
    denominator = trim(denominator)
    if degree(denominator) < 0:
        raise ZeroDivisionError("polynomial division by zero")
    remainder = [Fraction(c) for c in numerator]
    shift = len(remainder) - len(denominator)
    if shift < 0:
        return [Fraction(0)], remainder
    quotient = [Fraction(0)] * (shift + 1)
    lead = denominator[-1]
    for k in range(shift, -1, -1):
        factor = remainder[k + len(denominator) - 1] / lead
        quotient[k] = factor
        if factor:
            for i, c in enumerate(denominator):
                remainder[k + i] -= factor * c
    return trim(quotient), trim(remainder[:len(denominator) - 1] or [Fraction(0)])


def monic(coeffs: list) -> list:
    coeffs = trim(coeffs)
    lead = coeffs[-1]
    return [c / lead for c in coeffs] if lead else coeffs


def poly_gcd(a: list, b: list) -> list:
    """Monic greatest common divisor (Euclid)."""
    a, b = trim(a), trim(b)
    while degree(b) >= 0:
        a, b = b, poly_divmod(a, b)[1]
    if degree(a) < 0:
        return [Fraction(0)]
    return monic(a)


def quo(a: list, b: list) -> list:
    return poly_divmod(a, b)[0]


def evaluate(coeffs: list, x: Fraction) -> Fraction:
    total = Fraction(0)
    for c in reversed(coeffs):
        total = total * x + c
    return total


def integer_coefficients(coeffs: list) -> list:
    """Scale by the common denominator and divide out the integer content."""
    scale = lcm(*(c.denominator for c in coeffs))
    ints = [int(c * scale) for c in coeffs]
    content = 0
    for c in ints:
        content = gcd(content, c)
    if content > 1:
        ints = [c // content for c in ints]
    return ints


def rational_roots(coeffs: list, budget: Budget = None) -> list:
    """Distinct rational roots, ascending (rational-root theorem)."""
    budget = budget or Budget()
    coeffs = trim(coeffs)
    if degree(coeffs) < 1:
        return []
    roots = set()
    while coeffs[0] == 0 and len(coeffs) > 1:
        roots.add(Fraction(0))
        coeffs = coeffs[1:]
    if len(coeffs) > 1:
        ints = integer_coefficients(coeffs)
        constant, lead = abs(ints[0]), abs(ints[-1])
        if constant <= _MAX_DIVISOR_SEARCH and lead <= _MAX_DIVISOR_SEARCH:
            numerators, denominators = divisors(constant), divisors(lead)
            budget.require(len(numerators) * len(denominators),
                           budget.options.max_root_candidates, "rational-root candidates")
            tried = set()
            for p in numerators:
                budget.check()
                for q in denominators:
                    for candidate in (Fraction(p, q), Fraction(-p, q)):
                        if candidate in tried:
                            continue
                        tried.add(candidate)
                        if evaluate(coeffs, candidate) == 0:
                            roots.add(candidate)
    return sorted(roots)


def multiplicity(coeffs: list, root: Fraction):
    """Divide out ``(v - root)`` as often as possible; return ``(count, quotient)``."""
    count = 0
    linear = [-root, Fraction(1)]
    while degree(coeffs) >= 1:
        quotient, remainder = poly_divmod(coeffs, linear)
        if degree(remainder) >= 0:
            break
        coeffs = quotient
        count += 1
    return count, coeffs


def primitive_linear(root: Fraction, variable: str):
    """The integer factor ``q*v - p`` for ``root == p/q``."""
    return add(mul(num(root.denominator), Sym(variable)), num(-root.numerator))
