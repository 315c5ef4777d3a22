"""
Equation solving by classification on the degree of ``L - R``.

Linear and quadratic equations are solved in closed form (exact surds,
complex pairs, symbolic coefficients); degrees three to six go through
rational-root deflation and whatever linear or quadratic factor remains.
"""

import logging
from dataclasses import dataclass, field
from fractions import Fraction

from algebra import poly
from algebra.budget import Budget
from algebra.engine import coefficients, expand, simplify
from algebra.errors import BudgetError, DomainError, UnsolvableError
from algebra.expr import (
    HALF, ONE, ZERO, Eq, Num, add, contains, div, free_symbols, mul, neg, num,
    numer_denom, pow_, sub, substitute,
)
from algebra.numeric import to_float
from algebra.printer import format_number, pretty

logger = logging.getLogger(__name__)

ALL_REALS = "all real numbers"
NO_SOLUTION = "no solution"


@dataclass
class Quadratic:
    a: object
    b: object
    c: object
    discriminant: object


@dataclass
class Solution:
    """Everything the narrator needs to retell how the roots were found."""

    equation: Eq
    variable: str
    polynomial: object = None
    denominator: object = ONE
    degree: int = 0
    coefficients: dict = field(default_factory=dict)
    roots: list = field(default_factory=list)
    complex_roots: list = field(default_factory=list)
    rational_roots: list = field(default_factory=list)
    quadratic: Quadratic = None
    unsolved: object = None
    identity: bool = False

    @property
    def closed_form(self) -> bool:
        return self.unsolved is None or bool(self.roots or self.complex_roots)

    def root_texts(self) -> list:
        parts = [pretty(r) for r in self.roots]
        parts += [format_complex(re, im, s) for re, im in self.complex_roots for s in (-1, 1)]
        return parts

    @property
    def text(self) -> str:
        if self.degree == 0:
            return ALL_REALS if self.identity else NO_SOLUTION
        parts = self.root_texts()
        if self.unsolved is not None:
            parts.append(f"unsolved: {pretty(self.unsolved)} = 0")
        return ", ".join(parts) if parts else NO_SOLUTION


def format_complex(real, imag, sign: int) -> str:
    """``α ± βi`` with β > 0."""
    if imag == ONE:
        imag_text = "i"
    elif isinstance(imag, Num) and isinstance(imag.value, Fraction) and imag.value.denominator == 1:
        imag_text = f"{format_number(imag.value)}i"
    else:
        imag_text = f"({pretty(imag)})i"
    if real == ZERO:
        return imag_text if sign > 0 else "-" + imag_text
    return f"{pretty(real)} {'+' if sign > 0 else '-'} {imag_text}"


def _numeric(e) -> bool:
    return not free_symbols(e, include_constants=False)


def _sort_key(root):
    try:
        return (0, to_float(root), "")
    except DomainError:
        return (1, 0.0, pretty(root))


def _solve_quadratic(a, b, c, budget: Budget):
    discriminant = expand(sub(pow_(b, num(2)), mul(num(4), a, c)), budget)
    quadratic = Quadratic(a, b, c, discriminant)
    two_a = mul(num(2), a)
    if discriminant == ZERO:
        return quadratic, [simplify(div(neg(b), two_a), budget)], []
    if isinstance(discriminant, Num) and discriminant.value < 0:
        real = simplify(div(neg(b), two_a), budget)
        imag = simplify(div(pow_(Num(-discriminant.value), Num(HALF)), two_a), budget)
        if isinstance(a, Num) and a.value < 0:
            imag = simplify(neg(imag), budget)
        return quadratic, [], [(real, imag)]
    root = pow_(discriminant, Num(HALF))
    roots = [simplify(div(add(neg(b), mul(num(sign), root)), two_a), budget) for sign in (-1, 1)]
    return quadratic, roots, []


def _solve_rational(solution: Solution, coeffs: list, budget: Budget):
    remaining = coeffs
    for root in poly.rational_roots(coeffs, budget):
        _, remaining = poly.multiplicity(remaining, root)
        solution.rational_roots.append(root)
        solution.roots.append(Num(root))
    n = poly.degree(remaining)
    if n == 1:
        solution.roots.append(Num(-remaining[0] / remaining[1]))
    elif n == 2:
        c, b, a = (Num(v) for v in remaining)
        quadratic, roots, pairs = _solve_quadratic(a, b, c, budget)
        solution.quadratic = quadratic
        solution.roots.extend(roots)
        solution.complex_roots.extend(pairs)
    elif n >= 3:
        integral = [Fraction(c) for c in poly.integer_coefficients(remaining)]
        solution.unsolved = poly.to_expr(integral, solution.variable)


def _drop_excluded(solution: Solution, budget: Budget):
    """Discard roots that make a denominator vanish."""
    if solution.denominator == ONE:
        return
    v = solution.variable
    kept = []
    for root in solution.roots:
        if simplify(substitute(solution.denominator, {v: root}), budget) == ZERO:
            logger.debug("discarding excluded root %s", pretty(root))
            continue
        kept.append(root)
    solution.roots = kept


def _order_roots(solution: Solution):
    unique = []
    for root in solution.roots:
        if root not in unique:
            unique.append(root)
    if all(_numeric(r) for r in unique):
        unique.sort(key=_sort_key)
    solution.roots = unique
    solution.complex_roots.sort(key=lambda pair: (_sort_key(pair[0]), _sort_key(pair[1])))


def solve_equation(tree, variable: str, budget: Budget = None) -> Solution:
    """Classify ``L = R`` by degree in *variable* and find its roots."""
    budget = budget or Budget()
    if not isinstance(tree, Eq):
        raise DomainError("Solve needs an equation containing '='")
    solution = Solution(tree, variable)
    difference = simplify(sub(tree.lhs, tree.rhs), budget)
    numerator, denominator = numer_denom(difference)
    solution.denominator = denominator
    solution.polynomial = expand(numerator, budget)
    cmap = coefficients(numerator, variable, budget)
    if cmap is None:
        raise UnsolvableError(f"Cannot solve: not a polynomial equation in {variable}")
    solution.coefficients = cmap
    solution.degree = max(cmap, default=0)
    logger.debug("solving degree %d equation in %s", solution.degree, variable)

    if solution.degree == 0:
        constant = cmap.get(0, ZERO)
        if not _numeric(constant) and not contains(tree, variable):
            raise DomainError(f"The equation does not contain {variable}")
        solution.identity = constant == ZERO
        return solution
    if solution.degree == 1:
        a, b = cmap[1], cmap.get(0, ZERO)
        solution.roots = [simplify(div(neg(b), a), budget)]
    elif solution.degree == 2:
        a, b, c = cmap[2], cmap.get(1, ZERO), cmap.get(0, ZERO)
        solution.quadratic, solution.roots, solution.complex_roots = _solve_quadratic(a, b, c, budget)
    else:
        if solution.degree > budget.options.max_root_degree:
            raise BudgetError("rational-root degree")
        coeffs = poly.to_rational(cmap)
        if coeffs is None:
            raise UnsolvableError(
                f"Cannot solve a degree {solution.degree} equation with symbolic coefficients")
        _solve_rational(solution, coeffs, budget)
    _drop_excluded(solution, budget)
    _order_roots(solution)
    return solution


def solve(tree, variable: str, budget: Budget = None) -> str:
    """Result text for ``solve``; raises ``UnsolvableError`` when nothing was found."""
    solution = solve_equation(tree, variable, budget)
    if not solution.closed_form:
        raise UnsolvableError(f"No closed-form roots for {variable}", result=solution.text)
    return solution.text
