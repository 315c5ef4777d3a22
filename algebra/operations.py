"""
Operation dispatcher: the single entry point used by the HTTP adapter.

``calculate`` parses one request, routes it to the engine and renders the
result; ``respond`` wraps it into an ``(status, body)`` pair so error kinds
map onto the outward ``{"error": ...}`` shape.
"""

import logging

from algebra.budget import Budget
from algebra.config import DEFAULT_OPTIONS, Options
from algebra.engine import expand, simplify
from algebra.errors import AlgebraError, DomainError, ParseError, UnsolvableError
from algebra.evaluation import evaluate, parse_scope
from algebra.expr import substitute
from algebra.factoring import factor
from algebra.graph import graph, parse_range
from algebra.lexer import split_annotation
from algebra.parser import parse
from algebra.printer import pretty
from algebra.solving import solve
from algebra.steps import narrate

logger = logging.getLogger(__name__)

OPERATIONS = ("evaluate", "simplify", "expand", "factor", "solve", "graph")


def _check_variable(variable: str) -> str:
    variable = (variable or "x").strip()
    if not (variable.isascii() and variable.isalpha()):
        raise DomainError(f"Invalid variable name '{variable}'")
    return variable


def calculate(expression: str, operation: str = "evaluate", variable: str = "x",
              want_steps: bool = False, options: Options = DEFAULT_OPTIONS) -> dict:
    """Run one request and return ``{"result": ..., "steps": [...]}``."""
    if operation not in OPERATIONS:
        raise DomainError(f"Unknown operation '{operation}'")
    variable = _check_variable(variable)
    if not expression or not expression.strip():
        raise ParseError("Expression cannot be empty", 0)
    budget = Budget(options)
    text, annotation = split_annotation(expression)
    tree = parse(text)
    logger.debug("%s %r in %s", operation, expression, variable)

    scope = {}
    rng = None
    if operation == "graph":
        rng = parse_range(annotation, variable, budget)
    else:
        scope = parse_scope(annotation)
    work = substitute(tree, scope) if scope and operation != "evaluate" else tree

    try:
        if operation == "evaluate":
            result = evaluate(tree, scope, budget)
        elif operation == "simplify":
            result = pretty(simplify(work, budget))
        elif operation == "expand":
            result = pretty(expand(work, budget))
        elif operation == "factor":
            result = pretty(factor(work, budget))
        elif operation == "solve":
            result = solve(work, variable, budget)
        else:
            result = graph(tree, rng, budget)
    except UnsolvableError as exc:
        if exc.result is None:
            raise
        result = exc.result

    response = {"result": result}
    if want_steps:
        response["steps"] = [step.text for step in narrate(operation, tree, variable, scope, rng, options)]
    logger.debug("finished %s in %.2f ms", operation, budget.elapsed_ms())
    return response


def respond(payload: dict):
    """Map a request dict to ``(status, body)``."""
    try:
        body = calculate(
            payload.get("expression", ""),
            payload.get("operation", "evaluate"),
            payload.get("variable") or "x",
            bool(payload.get("steps", payload.get("wantSteps", False))),
        )
    except AlgebraError as exc:
        return 400, {"error": str(exc)}
    except Exception:
        logger.exception("unexpected failure for %r", payload)
        return 500, {"error": "Internal error"}
    return 200, body
