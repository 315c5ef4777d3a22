"""
Function sampling for the ``graph`` operation.

Handles ``f(x)``, ``y = f(x)`` and ``f(x) = y`` with an optional range
annotation ``x=min:max[:samples]`` whose bounds may be expressions such as
``-pi:pi``.  Values are computed in one vectorised NumPy pass; non-finite
samples (poles, logs of negatives) are dropped.
"""

import json
import logging
from dataclasses import dataclass

import numpy as np

from algebra.budget import Budget
from algebra.errors import BudgetError, DomainError
from algebra.expr import Eq, Num, Sym, contains, is_integer
from algebra.lexer import split_top_level
from algebra.numeric import lambdify, to_float
from algebra.parser import parse
from algebra.printer import pretty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Range:
    var: str
    min: float
    max: float
    samples: int


def parse_range(annotation: str, variable: str, budget: Budget) -> Range:
    """Build a ``Range`` from ``v=min:max[:samples]`` (or the defaults)."""
    options = budget.options
    if annotation is None:
        rng = Range(variable, options.graph_min, options.graph_max, options.graph_samples)
    else:
        name, sep, bounds = annotation.partition("=")
        name = name.strip()
        if not sep or not name.isalpha():
            raise DomainError("Graph range must look like x=min:max[:samples]")
        parts = [text for _, text in split_top_level(bounds, ":")]
        if len(parts) not in (2, 3):
            raise DomainError("Graph range must look like x=min:max[:samples]")
        low, high = (to_float(parse(text)) for text in parts[:2])
        samples = options.graph_samples
        if len(parts) == 3:
            count = parse(parts[2])
            if not (isinstance(count, Num) and is_integer(count.value)):
                raise DomainError("Sample count must be an integer")
            samples = int(count.value)
        rng = Range(name, low, high, samples)
    if rng.samples > options.max_samples:
        raise BudgetError("graph samples")
    if rng.samples < 2:
        raise DomainError("A graph needs at least 2 samples")
    if rng.min >= rng.max:
        raise DomainError("Graph range minimum must be below its maximum")
    return rng


def function_of(tree):
    """The plotted expression: ``f`` for ``y = f`` or ``f = y``."""
    if not isinstance(tree, Eq):
        return tree
    y = Sym("y")
    if tree.lhs == y and not contains(tree.rhs, "y"):
        return tree.rhs
    if tree.rhs == y and not contains(tree.lhs, "y"):
        return tree.lhs
    raise DomainError("Only equations of the form y = f(x) can be graphed")


def sample(f, rng: Range, budget: Budget) -> list:
    budget.check()
    xs = np.linspace(rng.min, rng.max, rng.samples)
    ys = lambdify(f, rng.var)(xs)
    finite = np.isfinite(ys)
    logger.debug("graph kept %d of %d samples", int(finite.sum()), rng.samples)
    return [{"x": float(x), "y": float(y)} for x, y in zip(xs[finite], ys[finite])]


def graph(tree, rng: Range, budget: Budget = None) -> str:
    """JSON text ``{expression, variable, range, points}``."""
    budget = budget or Budget()
    f = function_of(tree)
    points = sample(f, rng, budget)
    return json.dumps({
        "expression": pretty(f),
        "variable": rng.var,
        "range": {"min": rng.min, "max": rng.max},
        "points": points,
    })
