from fractions import Fraction

import pytest

from algebra.errors import InternalError
from algebra.expr import Eq, Num, Sym, mul, num, pow_
from algebra.parser import parse
from algebra.printer import format_number, pretty


@pytest.mark.parametrize(
    "text,expected",
    [
        ("x^2+3x+2", "x^2 + 3x + 2"),
        ("2+3x+x^2", "x^2 + 3x + 2"),
        ("x-y", "x - y"),
        ("-x+1", "-x + 1"),
        ("x/2", "x/2"),
        ("2/x", "2/x"),
        ("2x/(x+1)", "2x/(x+1)"),
        ("sqrt(2)", "sqrt(2)"),
        ("x^(1/3)", "x^(1/3)"),
        ("(x+1)^2", "(x+1)^2"),
        ("sin(x)", "sin(x)"),
    ],
)
def test_pretty(text: str, expected: str) -> None:
    assert pretty(parse(text)) == expected


def test_sums_inside_parentheses_are_compact() -> None:
    assert pretty(parse("(x+2)(x-2)")) == "(x+2)(x-2)"


def test_equation() -> None:
    assert pretty(Eq(Sym("x"), num(5))) == "x = 5"


def test_format_number() -> None:
    assert format_number(Fraction(7, 12)) == "7/12"
    assert format_number(Fraction(-3)) == "-3"
    assert format_number(0.25) == "0.25"


def test_reciprocal_and_negation() -> None:
    assert pretty(pow_(Sym("x"), Num(Fraction(-1)))) == "1/x"
    assert pretty(mul(num(-1), Sym("x"))) == "-x"


def test_unknown_node_is_an_internal_error() -> None:
    with pytest.raises(InternalError):
        pretty(object())
