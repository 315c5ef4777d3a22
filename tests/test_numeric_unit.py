"""Tests for NumPy float evaluation and number formatting."""

import math

import numpy as np
import pytest

from algebra.errors import DomainError
from algebra.numeric import format_float, lambdify, snap, to_float
from algebra.parser import parse


class TestFormatFloat:
    def test_integer(self):
        assert format_float(7.0) == "7"

    def test_clean_decimal(self):
        assert format_float(2.5) == "2.5"

    def test_fourteen_significant_digits(self):
        assert format_float(0.1 + 0.2) == "0.3"
        assert format_float(math.sqrt(2)) == "1.4142135623731"

    def test_negative_zero(self):
        assert format_float(-0.0) == "0"


class TestToFloat:
    def test_constants_and_functions(self):
        assert to_float(parse("pi")) == pytest.approx(math.pi)
        assert to_float(parse("log(100)")) == pytest.approx(2.0)
        assert to_float(parse("ln(e)")) == pytest.approx(1.0)
        assert to_float(parse("abs(x)"), {"x": -3.0}) == pytest.approx(3.0)

    def test_odd_root_of_negative_stays_real(self):
        assert to_float(parse("x^(1/3)"), {"x": -8.0}) == pytest.approx(-2.0)

    def test_undefined_values(self):
        with pytest.raises(DomainError):
            to_float(parse("ln(x)"), {"x": -1.0})
        with pytest.raises(DomainError):
            to_float(parse("sqrt(x)"), {"x": -4.0})

    def test_unbound_symbol(self):
        with pytest.raises(DomainError):
            to_float(parse("x+1"))


def test_snap() -> None:
    assert snap(2.0000000000001) == 2.0
    assert snap(2.001) == 2.001


def test_lambdify_is_vectorised() -> None:
    xs = np.array([1.0, 2.0, 3.0])
    assert lambdify(parse("x^2"), "x")(xs).tolist() == [1.0, 4.0, 9.0]
    assert lambdify(parse("5"), "x")(xs).tolist() == [5.0, 5.0, 5.0]
    with pytest.raises(DomainError):
        lambdify(parse("x+z"), "x")
