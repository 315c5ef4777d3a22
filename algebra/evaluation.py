"""Substitution scopes and the ``evaluate`` operation."""

import logging

from algebra.budget import Budget
from algebra.engine import simplify
from algebra.errors import DomainError, ParseError
from algebra.expr import Eq, Num, free_symbols, substitute, to_number
from algebra.lexer import split_top_level
from algebra.numeric import snap, to_float
from algebra.parser import parse
from algebra.printer import pretty

logger = logging.getLogger(__name__)


def parse_scope(annotation: str) -> dict:
    """``x=5, y=pi/2`` -> ``{"x": Num(5), "y": ...}``; names must be unique."""
    scope = {}
    if not annotation:
        return scope
    for start, part in split_top_level(annotation, ","):
        name, sep, value = part.partition("=")
        name = name.strip()
        if not sep or not name.isascii() or not name.isalpha():
            raise ParseError("Expected name=value after '@'", start)
        if name in scope:
            raise DomainError(f"Duplicate substitution for '{name}'")
        tree = parse(value)
        if isinstance(tree, Eq):
            raise DomainError(f"Substitution for '{name}' must be an expression")
        scope[name] = tree
    return scope


def is_numeric(e) -> bool:
    return not free_symbols(e, include_constants=False)


def evaluate_expression(e, scope: dict, budget: Budget):
    """Substitute, simplify and fold to a number when nothing is unbound."""
    value = simplify(substitute(e, scope), budget)
    if not is_numeric(value) or (isinstance(value, Num) and value.is_exact):
        return value
    logger.debug("falling back to float evaluation of %s", pretty(value))
    return Num(to_number(snap(to_float(value), budget.options.rel_tol)))


def _same(lhs: Num, rhs: Num, rel_tol: float) -> bool:
    if lhs.is_exact and rhs.is_exact:
        return lhs.value == rhs.value
    a, b = float(lhs.value), float(rhs.value)
    return abs(a - b) <= rel_tol * max(1.0, abs(a), abs(b))


def evaluate(tree, scope: dict = None, budget: Budget = None) -> str:
    budget = budget or Budget()
    scope = scope or {}
    if isinstance(tree, Eq):
        lhs = evaluate_expression(tree.lhs, scope, budget)
        rhs = evaluate_expression(tree.rhs, scope, budget)
        if isinstance(lhs, Num) and isinstance(rhs, Num):
            return "true" if _same(lhs, rhs, budget.options.rel_tol) else "false"
        return pretty(Eq(lhs, rhs))
    return pretty(evaluate_expression(tree, scope, budget))
