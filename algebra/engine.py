"""
Term-rewriting core: simplify, expand and the polynomial views built on them.

Every transformation is a bottom-up rewrite iterated to a fixed point.  Each
fixed point is bounded by ``Options.max_passes`` and every pass checks the
request ``Budget`` so a deadline or cancellation aborts promptly.
"""

import itertools
import logging
from fractions import Fraction
from math import lcm

from sympy import binomial, factorint

from algebra import poly
from algebra.budget import Budget
from algebra.errors import BudgetError, DomainError
from algebra.expr import (
    ONE, ZERO, Add, Eq, Func, Mul, Num, Pow, Sym, add, as_base_exp, div,
    factors_of, free_symbols, is_integer, map_bottom_up, mul, numer_denom, num,
    pow_, split_coefficient, sub, terms_of, to_number,
)
from algebra.expr import substitute as _substitute

logger = logging.getLogger(__name__)

# factorint on anything bigger is not worth the time of a single request.
_MAX_FACTOR_BASE = 10 ** 12

_PI = Sym("pi")
_E = Sym("e")


def _fixpoint(e, step, budget: Budget):
    for _ in range(budget.options.max_passes):
        budget.tick()
        rewritten = step(e)
        if rewritten == e:
            return e
        e = rewritten
    raise BudgetError("rewrite passes")


# ── simplify ────────────────────────────────────────────────────────────

def _collect_like_terms(e: Add):
    groups = {}
    for term in e.args:
        coefficient, rest = split_coefficient(term)
        groups[rest] = groups.get(rest, Fraction(0)) + coefficient
    return add(*(mul(Num(to_number(c)), rest) for rest, c in groups.items()))


def _denominator_powers(denominator) -> dict:
    powers = {}
    if denominator == ONE:
        return powers
    for factor in factors_of(denominator):
        base, exp = as_base_exp(factor)
        powers[base] = exp.value
    return powers


def has_symbolic_denominator(e) -> bool:
    return any(numer_denom(term)[1] != ONE for term in terms_of(e))


def combine_fractions(e: Add, budget: Budget = None):
    """Rewrite a sum over its lowest common denominator.

    Returns ``(numerator, denominator)`` with the numerator expanded.
    """
    budget = budget or Budget()
    parts = [numer_denom(term) for term in e.args]
    lcd = {}
    for _, denominator in parts:
        for base, exp in _denominator_powers(denominator).items():
            if base not in lcd or exp > lcd[base]:
                lcd[base] = exp
    numerators = []
    for numerator, denominator in parts:
        have = _denominator_powers(denominator)
        missing = [pow_(base, Num(to_number(exp - have.get(base, 0))))
                   for base, exp in lcd.items()]
        numerators.append(mul(numerator, *missing))
    common = mul(*(pow_(base, Num(to_number(exp))) for base, exp in lcd.items()))
    numerator = expand(add(*numerators), budget)
    # rational content of the numerator moves into the denominator
    scale = 1
    for term in terms_of(numerator):
        coefficient = split_coefficient(term)[0]
        if isinstance(coefficient, Fraction):
            scale = lcm(scale, coefficient.denominator)
    if scale != 1:
        numerator = expand(mul(num(scale), numerator), budget)
        common = mul(num(scale), common)
    return numerator, common


def _merge_powers(factors) -> list:
    exponents = {}
    for factor in factors:
        base, exp = as_base_exp(factor)
        exponents[base] = add(exponents.get(base, ZERO), exp)
    return [pow_(base, exp) for base, exp in exponents.items()]


def _cancel_polynomial_gcd(e: Mul, budget: Budget):
    numerator, denominator = numer_denom(e)
    if denominator == ONE:
        return e
    names = free_symbols(numerator) | free_symbols(denominator)
    if len(names) != 1:
        return _cancel_common_factor(e, numerator, denominator, budget)
    variable = names.pop()
    top = poly.coefficient_map(expand(numerator, budget), variable)
    bottom = poly.coefficient_map(expand(denominator, budget), variable)
    if top is None or bottom is None:
        return e
    top, bottom = poly.to_rational(top), poly.to_rational(bottom)
    if top is None or bottom is None or poly.degree(bottom) < 1:
        return e
    common = poly.poly_gcd(top, bottom)
    if poly.degree(common) < 1:
        return e
    logger.debug("cancelled common factor of degree %d", poly.degree(common))
    return div(poly.to_expr(poly.quo(top, common), variable),
               poly.to_expr(poly.quo(bottom, common), variable))


def _exact_quotient(top, bottom, variable: str, budget: Budget):
    """``top / bottom`` by long division in *variable*, or None if it leaves a remainder.

    Other symbols act as coefficients; each quotient coefficient must come out
    without a denominator.
    """
    divisor = coefficients(bottom, variable, budget)
    if not divisor or max(divisor) < 1:
        return None
    n = max(divisor)
    lead = divisor[n]
    v = Sym(variable)
    quotient = []
    remainder = expand(top, budget)
    for _ in range(budget.options.max_passes):
        budget.check()
        current = poly.coefficient_map(remainder, variable)
        if current is None:
            return None
        if not current:
            return add(*quotient)
        m = max(current)
        if m < n:
            return None
        factor = simplify(div(current[m], lead), budget)
        if numer_denom(factor)[1] != ONE:
            return None
        term = mul(factor, pow_(v, num(m - n)))
        quotient.append(term)
        remainder = expand(sub(remainder, mul(term, bottom)), budget)
    return None


def _cancel_common_factor(e: Mul, numerator, denominator, budget: Budget):
    """Divide out one sum in the denominator that divides the numerator exactly."""
    factors = list(factors_of(denominator))
    for i, factor in enumerate(factors):
        base, exp = as_base_exp(factor)
        if not isinstance(base, Add):
            continue
        for variable in sorted(free_symbols(base, include_constants=False)):
            quotient = _exact_quotient(numerator, base, variable, budget)
            if quotient is None:
                continue
            logger.debug("cancelled common factor in %s", variable)
            rest = factors[:i] + [pow_(base, sub(exp, ONE))] + factors[i + 1:]
            return div(quotient, mul(*rest))
    return e


def _extract_root(base: Fraction, q: int):
    """``base^(1/q)`` with perfect q-th powers pulled out, or None."""
    if base <= 0 or base.denominator != 1:
        return None
    n = base.numerator
    if n > _MAX_FACTOR_BASE:
        return None
    outside, inside = 1, 1
    for prime, k in factorint(n).items():
        outside *= prime ** (k // q)
        inside *= prime ** (k % q)
    if outside == 1:
        return None
    return mul(num(outside), pow_(num(inside), Num(Fraction(1, q))))


def _simplify_power(e: Pow):
    if not (isinstance(e.base, Num) and e.base.is_exact and isinstance(e.exp, Num) and e.exp.is_exact):
        return e
    base, exp = e.base.value, e.exp.value
    if abs(exp.numerator) != 1 or exp.denominator == 1:
        return e
    q = exp.denominator
    if exp < 0:
        # a^(-1/q) == (1/a)^(1/q)
        return pow_(Num(1 / base), Num(Fraction(1, q)))
    if base.denominator != 1:
        # (a/b)^(1/q) == (a*b^(q-1))^(1/q) / b
        a, b = base.numerator, base.denominator
        return div(pow_(num(a * b ** (q - 1)), e.exp), num(b))
    extracted = _extract_root(base, q)
    return e if extracted is None else extracted


def _exact_value(name: str, arg):
    if isinstance(arg, Num) and arg.is_exact:
        value = arg.value
        if name == "abs":
            return Num(abs(value))
        if value == 0 and name in ("sin", "tan"):
            return ZERO
        if value == 0 and name in ("cos", "exp"):
            return ONE
        if value == 1 and name in ("ln", "log"):
            return ZERO
        if value == 10 and name == "log":
            return ONE
    if arg == _PI:
        if name in ("sin", "tan"):
            return ZERO
        if name == "cos":
            return num(-1)
    if arg == _E and name == "ln":
        return ONE
    return None


def _simplify_rule(budget: Budget, combine: bool):
    def rule(e):
        if isinstance(e, Add):
            collected = _collect_like_terms(e)
            if combine and isinstance(collected, Add) and has_symbolic_denominator(collected):
                numerator, common = combine_fractions(collected, budget)
                return div(numerator, common)
            return collected
        if isinstance(e, Mul):
            if len(e.args) == 2 and isinstance(e.args[0], Num) and isinstance(e.args[1], Add):
                c = e.args[0]
                return add(*(mul(c, term) for term in e.args[1].args))
            coefficient, rest = split_coefficient(e)
            merged = mul(Num(coefficient), *_merge_powers(factors_of(rest)))
            if merged != e:
                return merged
            return _cancel_polynomial_gcd(e, budget)
        if isinstance(e, Pow):
            return _simplify_power(e)
        if isinstance(e, Func):
            value = _exact_value(e.name, e.args[0])
            return e if value is None else value
        return e
    return rule


def simplify(e, budget: Budget = None, combine_fractions: bool = True):
    """Collect like terms, merge powers, fold numbers and cancel common factors."""
    budget = budget or Budget()
    rule = _simplify_rule(budget, combine_fractions)
    return _fixpoint(e, lambda t: map_bottom_up(t, rule), budget)


# ── expand ──────────────────────────────────────────────────────────────

def binomial_terms(a, b, n: int) -> list:
    return [mul(Num(Fraction(int(binomial(n, k)))), pow_(a, num(n - k)), pow_(b, num(k)))
            for k in range(n + 1)]


def multinomial_square(terms) -> list:
    squares = [pow_(t, num(2)) for t in terms]
    cross = [mul(num(2), a, b) for a, b in itertools.combinations(terms, 2)]
    return squares + cross


def _distribute(factors, budget: Budget):
    sums = [terms_of(f) for f in factors]
    count = 1
    for s in sums:
        count *= len(s)
    budget.require(count, budget.options.max_terms, "expanded terms")
    return add(*(mul(*combo) for combo in itertools.product(*sums)))


def _expand_power(base: Add, n: int, budget: Budget):
    budget.require(n, budget.options.max_binomial_degree, "binomial degree")
    if len(base.args) == 2:
        a, b = base.args
        return add(*binomial_terms(a, b, n))
    if n == 2:
        return add(*multinomial_square(base.args))
    result = base
    for _ in range(n - 1):
        result = _distribute([result, base], budget)
    return result


def _expand_rule(budget: Budget):
    def rule(e):
        if isinstance(e, Pow) and isinstance(e.base, Add) and isinstance(e.exp, Num) \
                and is_integer(e.exp.value):
            n = int(e.exp.value)
            if n >= 2:
                return _expand_power(e.base, n, budget)
            if n <= -2:
                return pow_(_expand_power(e.base, -n, budget), num(-1))
        if isinstance(e, Mul) and any(isinstance(f, Add) for f in e.args):
            return _distribute(e.args, budget)
        return e
    return rule


def distribute(e, budget: Budget = None):
    """Full distribution without collecting like terms."""
    budget = budget or Budget()
    rule = _expand_rule(budget)
    return _fixpoint(e, lambda t: map_bottom_up(t, rule), budget)


def expand(e, budget: Budget = None):
    """Distribute every product and integer power of a sum, then tidy up."""
    budget = budget or Budget()
    return simplify(distribute(e, budget), budget, combine_fractions=False)


# ── polynomial views ────────────────────────────────────────────────────

def coefficients(e, variable: str, budget: Budget = None):
    """Degree -> coefficient map of ``expand(e)`` in *variable*, or None."""
    if isinstance(e, Eq):
        return None
    return poly.coefficient_map(expand(e, budget), variable)


def degree(e, variable: str, budget: Budget = None):
    cmap = coefficients(e, variable, budget)
    if cmap is None:
        return None
    return max(cmap, default=0)


def coeff(e, variable: str, n: int, budget: Budget = None):
    """Coefficient of ``variable^n``; ``n == 0`` gives the constant term."""
    cmap = coefficients(e, variable, budget)
    if cmap is None:
        raise DomainError(f"Expression is not a polynomial in {variable}")
    return simplify(cmap.get(n, ZERO), budget)


def collect(e, variable: str, budget: Budget = None):
    """Group the terms of *e* by powers of *variable*."""
    cmap = coefficients(e, variable, budget)
    if cmap is None:
        raise DomainError(f"Expression is not a polynomial in {variable}")
    v = Sym(variable)
    return add(*(mul(simplify(c, budget), pow_(v, num(n))) for n, c in sorted(cmap.items())))


def substitute(e, scope: dict, budget: Budget = None):
    """Simultaneous replacement of the names in *scope*, then simplify."""
    return simplify(_substitute(e, scope), budget)
