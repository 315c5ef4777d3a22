from fractions import Fraction

import pytest

from algebra.errors import DomainError, ParseError
from algebra.expr import Add, Eq, Func, Mul, Num, Pow, Sym, eq, num
from algebra.parser import parse
from algebra.printer import pretty


def test_numbers_are_exact() -> None:
    assert parse("0.5") == Num(Fraction(1, 2))
    assert parse("1/3+1/4") == Num(Fraction(7, 12))
    assert parse("2^10") == num(1024)


def test_precedence_and_associativity() -> None:
    assert parse("2^3^2") == num(512)
    assert parse("-2^2") == num(-4)
    assert parse("2+3*4") == num(14)
    assert parse("8/4/2") == num(1)
    assert parse("0^0") == num(1)


def test_construction_is_canonical() -> None:
    assert parse("x+y") == parse("y+x")
    assert parse("x*y*z") == parse("z*(y*x)")
    assert parse("x^1") == Sym("x")
    assert parse("x+0") == Sym("x")
    assert parse("1*x") == Sym("x")
    assert isinstance(parse("x+y+z"), Add) and len(parse("x+y+z").args) == 3


def test_functions_and_constants() -> None:
    assert parse("sqrt(x)") == Pow(Sym("x"), Num(Fraction(1, 2)))
    assert parse("sin(x)") == Func("sin", (Sym("x"),))
    assert parse("√16") == num(4)
    assert isinstance(parse("2pi"), Mul)


def test_equation_is_top_level_only() -> None:
    tree = parse("2x = 4")
    assert isinstance(tree, Eq)
    assert tree.rhs == num(4)
    with pytest.raises(ParseError):
        parse("x = 1 = 2")
    with pytest.raises(ParseError):
        parse("(x = 1)")


@pytest.mark.parametrize(
    "text",
    ["", "2+", "(x+1", "x+1)", "sin(x, y)", "*2", "sqrt()"],
)
def test_malformed_input(text: str) -> None:
    with pytest.raises(ParseError):
        parse(text)


def test_division_by_zero_literal() -> None:
    with pytest.raises(DomainError):
        parse("1/0")


@pytest.mark.parametrize(
    "text",
    [
        "x^2+3x+2",
        "(x+2)(x-2)",
        "2x/(x+1)",
        "sqrt(2)x",
        "sin(x)cos(x)",
        "-x^3+y",
        "x^(1/3)",
        "x/2",
        "3/(xy)",
        "e^x",
        "abs(x-1)",
    ],
)
def test_printed_output_parses_back(text: str) -> None:
    tree = parse(text)
    assert parse(pretty(tree)) == tree


def test_equation_constructor_rejects_nesting() -> None:
    x = Sym("x")
    assert eq(x, num(2)) == Eq(x, num(2))
    with pytest.raises(DomainError):
        eq(Eq(x, num(1)), num(2))
