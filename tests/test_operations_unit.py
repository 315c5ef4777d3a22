"""Tests for the operation dispatcher and the request/response mapping."""

import json

import pytest

from algebra import operations
from algebra.config import make_options
from algebra.errors import BudgetError, DomainError, ParseError
from algebra.operations import calculate, respond


@pytest.mark.parametrize(
    "operation,expression,expected",
    [
        ("evaluate", "1/3+1/4", "7/12"),
        ("solve", "4x+2=2(x+6)", "5"),
        ("expand", "(x+y)^3", "x^3 + 3x^2y + 3xy^2 + y^3"),
        ("factor", "x^2-4", "(x+2)(x-2)"),
        ("simplify", "2x+3x", "5x"),
        ("evaluate", "2x^2+2y @ x=5, y=3", "56"),
        ("evaluate", "2^3 * 2^2", "32"),
        ("evaluate", "sin(x) @ x=pi/4", "0.70710678118655"),
        ("expand", "(x+1)(x+2)", "x^2 + 3x + 2"),
        ("expand", "(a+b-c)^2", "a^2 + 2ab - 2ac + b^2 - 2bc + c^2"),
    ],
)
def test_end_to_end_scenarios(operation: str, expression: str, expected: str) -> None:
    assert calculate(expression, operation) == {"result": expected}


class TestEvaluate:
    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("2^10", "1024"),
            ("sqrt(16)", "4"),
            ("sqrt(2)", "1.4142135623731"),
            ("sin(pi/4)", "0.70710678118655"),
            ("0.1+0.2", "3/10"),
            ("x+1", "x + 1"),
            ("x=2 @ x=2", "true"),
            ("x=3 @ x=2", "false"),
            ("x^2 @ x=1/2", "1/4"),
            ("x*y @ x=2", "2y"),
        ],
    )
    def test_evaluate(self, expression: str, expected: str) -> None:
        assert calculate(expression)["result"] == expected

    def test_duplicate_substitution(self) -> None:
        with pytest.raises(DomainError):
            calculate("x @ x=1, x=2")

    def test_malformed_substitution(self) -> None:
        with pytest.raises(ParseError):
            calculate("x @ 1")

    def test_undefined_value(self) -> None:
        with pytest.raises(DomainError):
            calculate("sqrt(-1)")


class TestDispatcher:
    def test_scope_is_substituted_before_other_operations(self) -> None:
        assert calculate("x + y = 5 @ y=2", "solve")["result"] == "3"
        assert calculate("x^2 - y @ y=9", "factor")["result"] == "(x+3)(x-3)"

    def test_solve_in_another_variable(self) -> None:
        assert calculate("2t = 6", "solve", variable="t")["result"] == "3"

    def test_unsolved_remainder_is_a_result(self) -> None:
        assert calculate("x^3+x+1=0", "solve")["result"] == "unsolved: x^3 + x + 1 = 0"

    @pytest.mark.parametrize(
        "kwargs,error",
        [
            ({"expression": "x", "operation": "integrate"}, DomainError),
            ({"expression": "x", "variable": "x1"}, DomainError),
            ({"expression": "   "}, ParseError),
            ({"expression": "2x+"}, ParseError),
        ],
    )
    def test_rejected_requests(self, kwargs: dict, error: type) -> None:
        with pytest.raises(error):
            calculate(**kwargs)

    def test_options_limit_the_request(self) -> None:
        with pytest.raises(BudgetError):
            calculate("(x+1)^5", "expand", options=make_options(max_binomial_degree=4))

    def test_steps_are_attached_on_request(self) -> None:
        response = calculate("2x+3x", "simplify", want_steps=True)
        assert response["result"] == "5x"
        assert response["steps"][0] == "Start with the expression: 2x + 3x"


class TestGraph:
    def test_points(self) -> None:
        data = json.loads(calculate("x^2 @ x=-1:1:3", "graph")["result"])
        assert data["expression"] == "x^2"
        assert data["variable"] == "x"
        assert data["range"] == {"min": -1.0, "max": 1.0}
        assert data["points"] == [{"x": -1.0, "y": 1.0}, {"x": 0.0, "y": 0.0}, {"x": 1.0, "y": 1.0}]

    def test_default_range(self) -> None:
        data = json.loads(calculate("y = 2x", "graph")["result"])
        assert data["expression"] == "2x"
        assert len(data["points"]) == 101
        assert data["points"][0] == {"x": -10.0, "y": -20.0}

    def test_poles_are_dropped(self) -> None:
        data = json.loads(calculate("1/x @ x=-1:1:3", "graph")["result"])
        assert [p["x"] for p in data["points"]] == [-1.0, 1.0]

    def test_expression_bounds(self) -> None:
        data = json.loads(calculate("sin(t) @ t=-pi:pi:5", "graph", variable="t")["result"])
        assert data["range"]["max"] == pytest.approx(3.141592653589793)

    @pytest.mark.parametrize(
        "expression,error",
        [
            ("x @ x=1:0", DomainError),
            ("x @ x=0:1:1", DomainError),
            ("x @ x=0:1:20000", BudgetError),
            ("x @ x=0", DomainError),
            ("y^2 = x", DomainError),
            ("x+z", DomainError),
        ],
    )
    def test_rejected_graphs(self, expression: str, error: type) -> None:
        with pytest.raises(error):
            calculate(expression, "graph")


class TestRespond:
    def test_success(self) -> None:
        assert respond({"expression": "1/3+1/4", "operation": "evaluate"}) == (200, {"result": "7/12"})

    def test_steps_flag_spellings(self) -> None:
        status, body = respond({"expression": "x^2-4", "operation": "factor", "wantSteps": True})
        assert status == 200
        assert body["steps"][-1] == "Result: (x+2)(x-2)"
        status, body = respond({"expression": "x^2-4", "operation": "factor", "steps": True})
        assert "steps" in body

    def test_user_errors_are_400(self) -> None:
        status, body = respond({"expression": "1/0"})
        assert status == 400
        assert body == {"error": "Division by zero"}
        assert respond({"expression": ""})[0] == 400
        assert respond({"expression": "x", "operation": "integrate"})[0] == 400

    def test_unexpected_errors_are_500(self, monkeypatch) -> None:
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(operations, "calculate", broken)
        assert respond({"expression": "1"}) == (500, {"error": "Internal error"})
