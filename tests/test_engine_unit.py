"""Tests for simplify, expand and the polynomial views."""

from itertools import permutations

import pytest
from sympy import Symbol
from sympy.parsing.sympy_parser import (
    convert_xor, implicit_multiplication_application, parse_expr, standard_transformations,
)

from algebra.budget import Budget
from algebra.config import make_options
from algebra.engine import coeff, collect, degree, expand, simplify, substitute
from algebra.errors import BudgetError, DomainError
from algebra.expr import Sym, add, mul, num
from algebra.numeric import to_float
from algebra.parser import parse
from algebra.printer import pretty


# ── simplify ────────────────────────────────────────────────────────────

class TestSimplify:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2x+3x", "5x"),
            ("x*x", "x^2"),
            ("x^2*x^3", "x^5"),
            ("x-x", "0"),
            ("2(x+3)", "2x + 6"),
            ("1/x+1/x", "2/x"),
            ("(x^2-1)/(x-1)", "x + 1"),
            ("(x-y)/(y-x)", "-1"),
            ("(x^2-y^2)/(x-y)", "x + y"),
            ("x/2+1/(2x)", "(x^2+1)/(2x)"),
            ("sqrt(8)", "2sqrt(2)"),
            ("sin(pi)", "0"),
            ("ln(e)", "1"),
            ("cos(0)", "1"),
        ],
    )
    def test_simplify(self, text: str, expected: str) -> None:
        assert pretty(simplify(parse(text))) == expected

    def test_fractions_are_combined(self) -> None:
        result = simplify(parse("1/x + 1/y"))
        assert to_float(result, {"x": 2.0, "y": 3.0}) == pytest.approx(5 / 6)

    @pytest.mark.parametrize("text", ["2x+3x-y", "(x+1)(x-1)/(x+1)", "1/x+1/y", "x^2*x/x"])
    def test_simplify_is_idempotent(self, text: str) -> None:
        once = simplify(parse(text))
        assert simplify(once) == once

    def test_ordering_is_deterministic(self) -> None:
        x, y = Sym("x"), Sym("y")
        first = add(mul(num(3), x, y), num(2), mul(num(-1), y), mul(x, x))
        second = add(mul(x, x), mul(num(-1), y), num(2), mul(y, x, num(3)))
        assert first == second
        texts = {pretty(simplify(parse("+".join(order))))
                 for order in permutations(["x^2", "3xy", "-y", "2"])}
        assert texts == {"x^2 + 3xy - y + 2"}


# ── expand ──────────────────────────────────────────────────────────────

class TestExpand:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("(x+y)^3", "x^3 + 3x^2y + 3xy^2 + y^3"),
            ("(x+1)(x-1)", "x^2 - 1"),
            ("(x+2)^2", "x^2 + 4x + 4"),
            ("(a+b+c)^2", "a^2 + 2ab + 2ac + b^2 + 2bc + c^2"),
            ("3(x-2)", "3x - 6"),
        ],
    )
    def test_expand(self, text: str, expected: str) -> None:
        assert pretty(expand(parse(text))) == expected

    def test_expanded_value_matches(self) -> None:
        tree = parse("(2x-1)^5(x+3)")
        point = {"x": 1.3}
        assert to_float(expand(tree), point) == pytest.approx(to_float(tree, point))

    def test_binomial_degree_limit(self) -> None:
        with pytest.raises(BudgetError) as info:
            expand(parse("(x+1)^13"))
        assert info.value.what == "binomial degree"

    def test_term_limit(self) -> None:
        budget = Budget(make_options(max_terms=3))
        with pytest.raises(BudgetError):
            expand(parse("(a+b)(c+d)"), budget)


# ── budget ──────────────────────────────────────────────────────────────

def test_rewrite_pass_limit() -> None:
    with pytest.raises(BudgetError) as info:
        simplify(parse("2x+3x"), Budget(make_options(max_passes=1)))
    assert info.value.what == "rewrite passes"


def test_cancelled_budget_aborts(budget: Budget) -> None:
    budget.cancel()
    with pytest.raises(BudgetError) as info:
        simplify(parse("x+x"), budget)
    assert info.value.what == "cancelled"


# ── polynomial views ────────────────────────────────────────────────────

def test_coefficients_and_degree() -> None:
    p = parse("3x^2+2x+1")
    assert coeff(p, "x", 2) == num(3)
    assert coeff(p, "x", 1) == num(2)
    assert coeff(p, "x", 0) == num(1)
    assert coeff(p, "x", 5) == num(0)
    assert degree(p, "x") == 2
    assert degree(parse("(x+1)^3"), "x") == 3
    assert degree(parse("sin(x)"), "x") is None


def test_coeff_of_non_polynomial() -> None:
    with pytest.raises(DomainError):
        coeff(parse("sin(x)"), "x", 1)


def test_collect_groups_powers() -> None:
    a, b, c, x = Sym("a"), Sym("b"), Sym("c"), Sym("x")
    assert collect(parse("a*x + b*x + c"), "x") == add(mul(add(a, b), x), c)


def test_substitute_is_simultaneous() -> None:
    assert substitute(parse("x^2+y"), {"x": num(3)}) == parse("y+9")
    swapped = substitute(parse("x-y"), {"x": Sym("y"), "y": Sym("x")})
    assert swapped == parse("y-x")


# ── soundness against sympy ─────────────────────────────────────────────

TRANSFORMATIONS = standard_transformations + (implicit_multiplication_application, convert_xor)
POINT = {"x": 1.7, "y": -0.4, "a": 0.3, "b": 1.1, "c": 2.5}


@pytest.mark.parametrize(
    "text",
    ["(x+1)^3*(x-2)", "(x^2-1)/(x-1)+3*x", "(a+b-c)^2", "2*x*(x+y)-(x-y)^2", "1/x+1/y"],
)
def test_rewrites_agree_with_sympy(text: str) -> None:
    oracle = parse_expr(text, local_dict={n: Symbol(n) for n in POINT}, transformations=TRANSFORMATIONS)
    expected = float(oracle.subs({Symbol(n): v for n, v in POINT.items()}))
    tree = parse(text)
    assert to_float(simplify(tree), POINT) == pytest.approx(expected)
    assert to_float(expand(tree), POINT) == pytest.approx(expected)
