import pytest

from algebra.errors import ParseError
from algebra.lexer import normalize, split_annotation, split_top_level, tokenize


def _texts(text: str) -> list:
    return [tok.text for tok in tokenize(normalize(text))]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2×3÷4−1", "2*3/4-1"),
        ("x**2", "x^2"),
        ("x²+y³", "x^2+y^3"),
        ("√9", "sqrt(9)"),
        ("√x", "sqrt(x)"),
        ("√(x+1)", "sqrt(x+1)"),
        ("2π", "2pi"),
        ("[x+1]", "(x+1)"),
    ],
)
def test_normalize_rewrites_unicode_and_alternatives(raw: str, expected: str) -> None:
    assert normalize(raw) == expected


def test_implicit_multiplication_is_made_explicit() -> None:
    assert _texts("2x(x+1)") == ["2", "*", "x", "*", "(", "x", "+", "1", ")", ""]
    assert _texts("(x+1)(x-1)")[5] == "*"
    assert _texts("xy") == ["x", "*", "y", ""]
    assert _texts("2pi") == ["2", "*", "pi", ""]


def test_function_names_split_from_leading_letters() -> None:
    assert _texts("xsin(x)") == ["x", "*", "sin", "(", "x", ")", ""]
    assert [tok.kind for tok in tokenize("ln(x)")][:2] == ["func", "lparen"]


@pytest.mark.parametrize(
    "text",
    ["x2", "foo(x)", "sin x", "2 3", "x $ 1", "2x#"],
)
def test_rejected_input(text: str) -> None:
    with pytest.raises(ParseError):
        tokenize(normalize(text))


def test_parse_error_reports_position() -> None:
    with pytest.raises(ParseError) as info:
        tokenize("x + $")
    assert info.value.position == 4
    assert "position 4" in str(info.value)


def test_split_annotation() -> None:
    assert split_annotation("2x+y @ x=1") == ("2x+y ", "x=1")
    assert split_annotation("2x+y") == ("2x+y", None)
    with pytest.raises(ParseError):
        split_annotation("x @ ")
    with pytest.raises(ParseError):
        split_annotation("x @ x=1 @ y=2")
    with pytest.raises(ParseError):
        split_annotation("(x @ x=1)")


def test_split_top_level_ignores_nested_separators() -> None:
    parts = split_top_level("x=f(1,2), y=3", ",")
    assert [text for _, text in parts] == ["x=f(1,2)", " y=3"]
    assert [start for start, _ in parts] == [0, 9]
