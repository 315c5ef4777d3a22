"""Float evaluation of expression trees with NumPy.

The same evaluator serves scalar evaluation (``to_float``) and vectorised
graph sampling (``lambdify``); every function maps onto a NumPy ufunc so
arrays and scalars go through one code path.
"""

import math
from fractions import Fraction

import numpy as np

from algebra.errors import DomainError
from algebra.expr import Add, Eq, Func, Mul, Neg, Num, Pow, Sym, free_symbols

_UFUNCS = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "log": np.log10,
    "ln": np.log,
    "exp": np.exp,
    "abs": np.abs,
    "sqrt": np.sqrt,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}


def _power(base, exp: Num):
    value = exp.value
    if isinstance(value, Fraction) and value.denominator % 2 == 1 and value.denominator > 1:
        # odd roots of negative numbers stay real
        magnitude = np.power(np.abs(base), float(value))
        sign = np.sign(base) ** value.numerator
        return sign * magnitude
    return np.power(base, float(value))


def _evaluate(e, env: dict):
    if isinstance(e, Num):
        return float(e.value)
    if isinstance(e, Sym):
        if e.name in env:
            return env[e.name]
        raise DomainError(f"Unbound symbol '{e.name}'")
    if isinstance(e, Add):
        total = 0.0
        for term in e.args:
            total = total + _evaluate(term, env)
        return total
    if isinstance(e, Mul):
        product = 1.0
        for factor in e.args:
            product = product * _evaluate(factor, env)
        return product
    if isinstance(e, Pow):
        base = _evaluate(e.base, env)
        if isinstance(e.exp, Num):
            return _power(base, e.exp)
        return np.power(base, _evaluate(e.exp, env))
    if isinstance(e, Func):
        return _UFUNCS[e.name](_evaluate(e.args[0], env))
    if isinstance(e, Neg):
        return -_evaluate(e.arg, env)
    raise DomainError("Equations cannot be evaluated numerically")


def environment(scope: dict = None) -> dict:
    env = dict(_CONSTANTS)
    if scope:
        env.update(scope)
    return env


def to_float(e, scope: dict = None) -> float:
    """Evaluate *e* to a finite float; raises ``DomainError`` otherwise."""
    with np.errstate(all="ignore"):
        value = float(_evaluate(e, environment(scope)))
    if not math.isfinite(value):
        raise DomainError("Result is undefined for real numbers")
    return value


def lambdify(e, variable: str):
    """Vectorised ``f(xs)`` for a tree in one variable."""
    unbound = free_symbols(e) - set(_CONSTANTS) - {variable}
    if unbound:
        raise DomainError(f"Unbound symbol '{sorted(unbound)[0]}'")
    if isinstance(e, Eq):
        raise DomainError("Equations cannot be evaluated numerically")

    def f(xs):
        with np.errstate(all="ignore"):
            ys = _evaluate(e, environment({variable: xs}))
        return np.broadcast_to(np.asarray(ys, dtype=float), np.shape(xs))

    return f


def snap(value: float, rel_tol: float = 1e-10) -> float:
    """Map near-integers to exact integers."""
    nearest = round(value)
    if abs(value - nearest) <= rel_tol * max(1.0, abs(value)):
        return float(nearest)
    return value


def format_float(value: float) -> str:
    """At most 14 significant digits, no trailing zeros."""
    text = np.format_float_positional(value, precision=14, unique=True, fractional=False, trim="-")
    return "0" if text == "-0" else text
