"""
Step narrator.

Re-runs the engine for one operation and retells what happened as an
ordered list of plain-English lines.  Narration is advisory: any failure is
logged and an empty list comes back, the computed result is never affected.
"""

import logging
from dataclasses import dataclass

from sympy import binomial

from algebra import factoring
from algebra.budget import Budget
from algebra.config import DEFAULT_OPTIONS, Options
from algebra.engine import (
    collect, combine_fractions, distribute, expand, has_symbolic_denominator, simplify,
)
from algebra.errors import DomainError
from algebra.evaluation import evaluate
from algebra.expr import (
    ONE, ZERO, Add, Mul, Num, Pow, add, display_key, free_symbols, is_integer,
    mul, neg, num, pow_, replace_symbols, split_coefficient, substitute, terms_of, walk,
)
from algebra.graph import function_of, parse_range, sample
from algebra.numeric import format_float
from algebra.poly import primitive_linear
from algebra.printer import pretty
from algebra.solving import solve_equation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    ordinal: int
    text: str


# ── solve ───────────────────────────────────────────────────────────────

def _solve_steps(tree, variable, scope, rng, budget):
    v = variable
    solution = solve_equation(tree, v, budget)
    lines = [
        f"Start with the equation: {pretty(tree)}",
        f"Rearrange to standard form: {pretty(solution.polynomial)} = 0",
    ]
    if solution.denominator != ONE:
        lines.append(f"Exclude values that make the denominator zero: {pretty(solution.denominator)} ≠ 0")
    cmap = solution.coefficients
    if solution.degree == 0:
        if solution.identity:
            lines.append("Both sides are always equal: all real numbers")
        else:
            lines.append("The two sides can never be equal: no solution")
        return lines
    if solution.degree == 1:
        a, b = cmap[1], cmap.get(0, ZERO)
        lines += [
            f"Identify coefficient of {v}: {pretty(a)}",
            f"Identify constant term: {pretty(b)}",
            f"Divide both sides by {pretty(a)}: {v} = ({pretty(neg(b))})/({pretty(a)})",
        ]
    elif solution.degree == 2:
        lines += _quadratic_lines(solution.quadratic, v)
    else:
        lines.append(f"Degree {solution.degree} polynomial: test rational roots p/q "
                     "with p dividing the constant term and q the leading coefficient")
        for root in solution.rational_roots:
            lines.append(f"{v} = {pretty(Num(root))} is a root, "
                         f"so divide out ({pretty(primitive_linear(root, v))})")
        if solution.quadratic is not None:
            lines += _quadratic_lines(solution.quadratic, v)[1:]
        if solution.unsolved is not None:
            lines.append(f"No rational roots remain in {pretty(solution.unsolved)} = 0")
    if solution.unsolved is None:
        lines.append(f"Simplify: {v} = {solution.text}")
    elif solution.roots or solution.complex_roots:
        lines.append(f"Roots found: {v} = {', '.join(solution.root_texts())}")
    else:
        lines.append(f"No closed-form roots: {pretty(solution.unsolved)} = 0 stays unsolved")
    return lines


def _quadratic_lines(quadratic, v):
    a, b, c = (pretty(t) for t in (quadratic.a, quadratic.b, quadratic.c))
    lines = [
        f"Identify a = {a}, b = {b}, c = {c}",
        f"Apply the quadratic formula: {v} = (-b ± sqrt(b^2 - 4ac))/(2a)",
        f"Substitute values: {v} = (-({b}) ± sqrt(({b})^2 - 4({a})({c})))/(2({a}))",
        f"Calculate the discriminant: b^2 - 4ac = {pretty(quadratic.discriminant)}",
    ]
    d = quadratic.discriminant
    if isinstance(d, Num) and d.value < 0:
        lines.append("The discriminant is negative, so the roots are complex")
    elif d == ZERO:
        lines.append("The discriminant is zero, so there is one repeated root")
    return lines


# ── simplify ────────────────────────────────────────────────────────────

def _has_like_terms(e) -> bool:
    seen = set()
    for term in terms_of(e):
        _, rest = split_coefficient(term)
        if rest in seen:
            return True
        seen.add(rest)
    return False


def _simplify_steps(tree, variable, scope, rng, budget):
    lines = [f"Start with the expression: {pretty(tree)}"]
    result = simplify(tree, budget)
    sums = [node for node in walk(tree) if isinstance(node, Add) and has_symbolic_denominator(node)]
    if sums:
        first = simplify(sums[0], budget, combine_fractions=False)
        if isinstance(first, Add) and has_symbolic_denominator(first):
            numerator, common = combine_fractions(first, budget)
            lines += [
                f"Find a common denominator: {pretty(common)}",
                f"Combine fractions: ({pretty(numerator)})/({pretty(common)})",
            ]
        lines.append(f"Simplify: {pretty(result)}")
    elif _has_like_terms(distribute(tree, budget)) or len(free_symbols(tree)) > 1:
        lines.append(f"Combine like terms: {pretty(result)}")
        try:
            lines.append(f"Collect terms with {variable}: {pretty(collect(result, variable, budget))}")
        except DomainError:
            logger.debug("nothing to collect in %s", variable)
    else:
        lines.append(f"Apply algebraic rules to simplify: {pretty(result)}")
    return lines


# ── expand ──────────────────────────────────────────────────────────────

def _is_binomial(e) -> bool:
    return isinstance(e, Add) and len(e.args) == 2


def _foil(first, second, budget) -> str:
    a, b = sorted(first.args, key=display_key)
    c, d = sorted(second.args, key=display_key)

    def product(u, w):
        return pretty(simplify(mul(u, w), budget))

    return (f"First: {product(a, c)}, Outer: {product(a, d)}, "
            f"Inner: {product(b, c)}, Last: {product(b, d)}")


def _expand_steps(tree, variable, scope, rng, budget):
    lines = [f"Start with the expression: {pretty(tree)}"]
    for node in walk(tree):
        if not (isinstance(node, Pow) and isinstance(node.base, Add)
                and isinstance(node.exp, Num) and is_integer(node.exp.value) and node.exp.value >= 2):
            continue
        n = int(node.exp.value)
        if _is_binomial(node.base) and n == 2:
            lines.append(f"Use FOIL method: {pretty(node)} = {pretty(Mul((node.base, node.base)))}; "
                         + _foil(node.base, node.base, budget))
        elif _is_binomial(node.base):
            row = ", ".join(str(binomial(n, k)) for k in range(n + 1))
            lines.append(f"Apply the binomial theorem: {pretty(node)} = "
                         f"sum of C({n},k) a^({n}-k) b^k with coefficients {row}")
        elif n == 2:
            lines.append(f"Square each term of {pretty(node.base)} and add twice every pairwise product")
        else:
            lines.append(f"Multiply {pretty(node.base)} by itself {n} times")
    if isinstance(tree, Mul):
        sums = [f for f in tree.args if isinstance(f, Add)]
        if len(sums) == 2 and all(_is_binomial(s) for s in sums):
            lines.append(f"Use FOIL method: {_foil(*sums, budget)}")
    raw = distribute(tree, budget)
    result = expand(tree, budget)
    lines.append(f"Result after expansion: {pretty(raw)}")
    if raw != result:
        lines.append(f"Combine like terms: {pretty(result)}")
    return lines


# ── factor ──────────────────────────────────────────────────────────────

def _factor_line(entry) -> str:
    rule, *details = entry
    if rule == factoring.COMMON_FACTOR:
        return f"Factor out the common factor: {pretty(details[0])}"
    if rule == factoring.DIFFERENCE_OF_SQUARES:
        a, b = details
        return (f"Apply the difference of squares a^2 - b^2 = (a+b)(a-b) "
                f"with a = {pretty(a)}, b = {pretty(b)}")
    if rule == factoring.PERFECT_SQUARE:
        a, b, sign = details
        square = pow_(add(a, mul(sign, b)), num(2))
        return f"Recognize a perfect square trinomial: {pretty(square)}"
    if rule == factoring.SUM_OF_CUBES:
        a, b = details
        return (f"Apply the sum of cubes a^3 + b^3 = (a+b)(a^2-ab+b^2) "
                f"with a = {pretty(a)}, b = {pretty(b)}")
    if rule == factoring.DIFFERENCE_OF_CUBES:
        a, b = details
        return (f"Apply the difference of cubes a^3 - b^3 = (a-b)(a^2+ab+b^2) "
                f"with a = {pretty(a)}, b = {pretty(neg(b))}")
    v, *roots = details
    return "; ".join(f"Find rational root {pretty(v)} = {pretty(r)}, "
                     f"so ({pretty(primitive_linear(r.value, v.name))}) is a factor" for r in roots)


def _factor_steps(tree, variable, scope, rng, budget):
    lines = [f"Start with the expression: {pretty(tree)}"]
    trace = []
    result = factoring.factor(tree, budget, trace)
    if not trace:
        if result is tree:
            lines.append(f"No factorization exists over the rationals: {pretty(tree)}")
        else:
            lines.append(f"Cancel common factors: {pretty(result)}")
        return lines
    lines += [_factor_line(entry) for entry in trace]
    lines.append(f"Result: {pretty(result)}")
    return lines


# ── evaluate / graph ────────────────────────────────────────────────────

def _evaluate_steps(tree, variable, scope, rng, budget):
    lines = [f"Start with the expression: {pretty(tree)}"]
    current = tree
    for name, value in scope.items():
        current = replace_symbols(current, {name: value})
        lines.append(f"Substitute {name} = {pretty(value)}: {pretty(current)}")
    lines.append(f"Calculate: {evaluate(tree, scope, budget)}")
    return lines


def _count(n: int, noun: str) -> str:
    return f"{n} {noun}" if n == 1 else f"{n} {noun}s"


def _graph_steps(tree, variable, scope, rng, budget):
    rng = rng or parse_range(None, variable, budget)
    f = function_of(tree)
    lines = [
        f"Start with the function: y = {pretty(f)}",
        f"Sample {_count(rng.samples, 'point')} for {rng.var} on "
        f"[{format_float(rng.min)}, {format_float(rng.max)}]",
    ]
    points = sample(f, rng, budget)
    dropped = rng.samples - len(points)
    if dropped:
        lines.append(f"Skip {_count(dropped, 'point')} where the function is undefined")
    lines.append(f"Plot {_count(len(points), 'point')}")
    return lines


_NARRATORS = {
    "evaluate": _evaluate_steps,
    "simplify": _simplify_steps,
    "expand": _expand_steps,
    "factor": _factor_steps,
    "solve": _solve_steps,
    "graph": _graph_steps,
}


def narrate(operation: str, tree, variable: str = "x", scope: dict = None,
            graph_range=None, options: Options = DEFAULT_OPTIONS) -> list:
    """Ordered ``Step`` list for *operation*; ``[]`` if narration fails."""
    scope = scope or {}
    try:
        budget = Budget(options)
        lines = []
        if scope and operation not in ("evaluate", "graph"):
            names = ", ".join(f"{name} = {pretty(value)}" for name, value in scope.items())
            tree = substitute(tree, scope)
            lines.append(f"Substitute {names}: {pretty(tree)}")
        lines += _NARRATORS[operation](tree, variable, scope, graph_range, budget)
    except Exception:
        logger.exception("could not narrate %s", operation)
        return []
    return [Step(i, text) for i, text in enumerate(lines, start=1)]
