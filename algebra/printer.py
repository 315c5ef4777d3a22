"""
Infix rendering of expression trees.

Top-level sums are spaced (``x^2 + 3x + 2``); sums inside parentheses are
compact (``(x+2)(x-2)``).  Output always parses back to the same canonical
tree, so ``*`` is written wherever plain juxtaposition would be misread.
"""

import re
from fractions import Fraction

from algebra.errors import InternalError
from algebra.expr import (
    Add, Eq, Func, Mul, Neg, Num, Pow, Sym, display_key, sort_key,
)
from algebra.numeric import format_float

_FUNCTION_NAMES = ("sqrt", "sin", "cos", "tan", "log", "ln", "exp", "abs")
_ENDS_WITH_FUNCTION = re.compile(r"(sqrt|sin|cos|tan|log|ln|exp|abs)$")
_TRAILING_LETTERS = re.compile(r"[A-Za-z]*$")
_LEADING_LETTERS = re.compile(r"[A-Za-z]*")


def format_number(value) -> str:
    if isinstance(value, Fraction):
        if value.denominator == 1:
            return str(value.numerator)
        return f"{value.numerator}/{value.denominator}"
    return format_float(value)


def pretty(e) -> str:
    """Render *e* for display."""
    if isinstance(e, Eq):
        return f"{pretty(e.lhs)} = {pretty(e.rhs)}"
    return _render(e, spaced=True)


def _render(e, spaced: bool = False) -> str:
    if isinstance(e, Num):
        return format_number(e.value)
    if isinstance(e, Sym):
        return e.name
    if isinstance(e, Add):
        return _render_sum(e.args, spaced)
    if isinstance(e, Mul):
        return _render_product(e.args)
    if isinstance(e, Pow):
        return _render_power(e)
    if isinstance(e, Func):
        return f"{e.name}({_render(e.args[0])})"
    if isinstance(e, Neg):
        return "-" + _render_factor(e.arg)
    if isinstance(e, Eq):
        return f"{_render(e.lhs)} = {_render(e.rhs)}"
    raise InternalError(f"cannot render {type(e).__name__}")


def _split_sign(term):
    """Return ``(negative, text)`` for one term of a sum."""
    if isinstance(term, Num) and term.value < 0:
        return True, format_number(-term.value)
    if isinstance(term, Mul) and isinstance(term.args[0], Num) and term.args[0].value < 0:
        magnitude = -term.args[0].value
        rest = term.args[1:]
        if magnitude != 1:
            rest = (Num(magnitude),) + rest
        return True, _render_product(rest)
    return False, _render(term)


def _render_sum(terms, spaced: bool) -> str:
    plus, minus = (" + ", " - ") if spaced else ("+", "-")
    out = []
    for i, term in enumerate(sorted(terms, key=display_key)):
        negative, text = _split_sign(term)
        if i == 0:
            out.append("-" + text if negative else text)
        else:
            out.append((minus if negative else plus) + text)
    return "".join(out)


def _is_reciprocal(factor) -> bool:
    return isinstance(factor, Pow) and isinstance(factor.exp, Num) and factor.exp.value < 0


def _flip(factor):
    exponent = -factor.exp.value
    return factor.base if exponent == 1 else Pow(factor.base, Num(exponent))


def _order_factors(factors) -> list:
    radicals = [f for f in factors if isinstance(f, Pow) and isinstance(f.base, Num)]
    simple = [f for f in factors if f not in radicals and sort_key(f)[0] == 1]
    composite = [f for f in factors if f not in radicals and f not in simple]
    return (sorted(radicals, key=_render)
            + sorted(simple, key=sort_key)
            + sorted(composite, key=_render_factor))


def _render_factor(factor) -> str:
    if isinstance(factor, (Add, Mul, Neg)):
        return f"({_render(factor)})"
    if isinstance(factor, Num):
        return f"({format_number(factor.value)})"
    return _render(factor)


def _join_factors(parts) -> str:
    text = ""
    for part in parts:
        if not text:
            text += part
            continue
        tail = _TRAILING_LETTERS.search(text).group()
        head = _LEADING_LETTERS.match(part).group()
        star = False
        if part[0].isdigit():
            star = True
        elif part[0] == "(" and tail:
            star = len(tail) >= 3 or bool(_ENDS_WITH_FUNCTION.search(tail))
        elif tail and head:
            merged = tail + head
            star = any(merged.startswith(name) for name in _FUNCTION_NAMES if len(name) >= 3)
        text += ("*" if star else "") + part
    return text


def _render_product(factors) -> str:
    factors = list(factors)
    sign = ""
    coefficient = None
    if factors and isinstance(factors[0], Num):
        coefficient = factors.pop(0).value
        if coefficient < 0:
            sign, coefficient = "-", -coefficient
    numer = [f for f in factors if not _is_reciprocal(f)]
    denom = [_flip(f) for f in factors if _is_reciprocal(f)]

    parts = []
    bottom = []
    if isinstance(coefficient, Fraction):
        if coefficient.denominator != 1:
            bottom.append(str(coefficient.denominator))
        if coefficient.numerator != 1 or not numer:
            parts.append(str(coefficient.numerator))
    elif coefficient is not None:
        parts.append(format_float(coefficient))
    elif not numer:
        parts.append("1")
    parts.extend(_render_factor(f) for f in _order_factors(numer))
    text = sign + _join_factors(parts)

    if denom or bottom:
        pieces = bottom + [_render_factor(f) for f in _order_factors(denom)]
        below = _join_factors(pieces)
        if len(pieces) > 1:
            below = f"({below})"
        text += "/" + below
    return text


def _render_power(e: Pow) -> str:
    if isinstance(e.exp, Num) and e.exp.value < 0:
        return _render_product((e,))
    if e.exp == Num(Fraction(1, 2)):
        return f"sqrt({_render(e.base)})"
    base, exp = e.base, e.exp
    if isinstance(base, Sym) or isinstance(base, Func) \
            or (isinstance(base, Num) and isinstance(base.value, Fraction)
                and base.value.denominator == 1 and base.value >= 0):
        base_text = _render(base)
    else:
        base_text = f"({_render(base)})"
    if isinstance(exp, (Sym, Func)) \
            or (isinstance(exp, Num) and isinstance(exp.value, Fraction)
                and exp.value.denominator == 1 and exp.value >= 0):
        exp_text = _render(exp)
    else:
        exp_text = f"({_render(exp)})"
    return f"{base_text}^{exp_text}"
