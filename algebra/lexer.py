"""
Lexer and normaliser for user-typed algebra.

Turns raw text such as ``2x(x+1) − √9`` into a token stream with every
implicit multiplication made explicit, and splits off the ``@`` annotation
used for substitutions and graph ranges.
"""

import re
import string
from dataclasses import dataclass

from algebra.errors import ParseError
from algebra.expr import FUNCTIONS

_REPLACEMENTS = (
    ("**", "^"),
    ("×", "*"),
    ("·", "*"),
    ("÷", "/"),
    ("−", "-"),
    ("π", "pi"),
    ("²", "^2"),
    ("³", "^3"),
    ("[", "("), ("]", ")"),
    ("{", "("), ("}", ")"),
)

# √9, √x  ->  sqrt(9), sqrt(x);  √( -> sqrt(
_RADICAL_ATOM = re.compile(r"√\s*(\d+(?:\.\d+)?|[A-Za-z])")
_RADICAL = re.compile(r"√\s*")

_NUMBER = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_LETTERS = re.compile(r"[A-Za-z]+")

# Longest names first so "sqrt" wins over shorter suffixes.
_FUNCTIONS_BY_LENGTH = sorted(FUNCTIONS, key=len, reverse=True)

_OPERATORS = "+-*/^"


@dataclass(frozen=True)
class Token:
    kind: str   # number, name, func, op, lparen, rparen, comma, equals, end
    text: str
    pos: int


def normalize(text: str) -> str:
    """Rewrite Unicode and alternative spellings to the ASCII grammar."""
    s = text.strip()
    for old, new in _REPLACEMENTS:
        s = s.replace(old, new)
    s = _RADICAL_ATOM.sub(r"sqrt(\1)", s)
    s = _RADICAL.sub("sqrt", s)
    return s


def split_annotation(text: str):
    """Split ``expr @ annotation`` on the first top-level ``@``.

    Returns ``(expression, annotation)``; the annotation is None when absent.
    """
    depth = 0
    at = None
    for i, ch in enumerate(text):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "@":
            if depth > 0:
                raise ParseError("'@' is not allowed inside parentheses", i)
            if at is not None:
                raise ParseError("Only one '@' annotation is allowed", i)
            at = i
    if at is None:
        return text, None
    annotation = text[at + 1:].strip()
    if not annotation:
        raise ParseError("Missing assignments after '@'", at)
    return text[:at], annotation


def split_top_level(text: str, separator: str) -> list:
    """Split on *separator* outside parentheses, keeping start offsets."""
    parts = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append((start, text[start:i]))
            start = i + 1
    parts.append((start, text[start:]))
    return parts


def _next_char(text: str, i: int) -> str:
    while i < len(text) and text[i].isspace():
        i += 1
    return text[i] if i < len(text) else ""


def _split_letters(run: str, start: int) -> list:
    tokens = []
    i = 0
    while i < len(run):
        if run.startswith("pi", i):
            tokens.append(Token("name", "pi", start + i))
            i += 2
        else:
            tokens.append(Token("name", run[i], start + i))
            i += 1
    return tokens


def _name_tokens(run: str, start: int, before_paren: bool) -> list:
    """Tokenise a run of letters: implicit products, constants, functions."""
    if before_paren:
        for name in _FUNCTIONS_BY_LENGTH:
            if run.endswith(name):
                prefix = run[:-len(name)]
                tokens = _split_letters(prefix, start)
                tokens.append(Token("func", name, start + len(prefix)))
                return tokens
        if len(run) >= 3:
            raise ParseError(f"Unknown function '{run}'", start)
    else:
        for name in _FUNCTIONS_BY_LENGTH:
            if len(name) >= 3 and run.startswith(name):
                raise ParseError(f"Function '{name}' must be followed by '('", start)
    return _split_letters(run, start)


def _tokenize_raw(text: str) -> list:
    tokens = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in string.digits or (ch == "." and i + 1 < n and text[i + 1] in string.digits):
            m = _NUMBER.match(text, i)
            tokens.append(Token("number", m.group(), i))
            i = m.end()
            continue
        if ch in string.ascii_letters:
            m = _LETTERS.match(text, i)
            run = m.group()
            end = m.end()
            if end < n and text[end] in string.digits:
                digit = text[end]
                raise ParseError(
                    f"Ambiguous term '{run}{digit}': write {run}*{digit} or {run}^{digit}", i)
            tokens.extend(_name_tokens(run, i, _next_char(text, end) == "("))
            i = end
            continue
        if ch in _OPERATORS:
            tokens.append(Token("op", ch, i))
        elif ch == "(":
            tokens.append(Token("lparen", ch, i))
        elif ch == ")":
            tokens.append(Token("rparen", ch, i))
        elif ch == ",":
            tokens.append(Token("comma", ch, i))
        elif ch == "=":
            tokens.append(Token("equals", ch, i))
        else:
            raise ParseError(f"Invalid character '{ch}'", i)
        i += 1
    tokens.append(Token("end", "", n))
    return tokens


def _insert_implicit_multiplication(tokens: list) -> list:
    out = []
    for tok in tokens:
        if out:
            prev = out[-1]
            if prev.kind in ("number", "name", "rparen") and tok.kind in ("name", "func", "lparen"):
                out.append(Token("op", "*", tok.pos))
            elif prev.kind in ("name", "rparen") and tok.kind == "number":
                out.append(Token("op", "*", tok.pos))
            elif prev.kind == "number" and tok.kind == "number":
                raise ParseError("Missing operator between numbers", tok.pos)
        out.append(tok)
    return out


def tokenize(text: str) -> list:
    """Return the token list for already-normalised *text*."""
    return _insert_implicit_multiplication(_tokenize_raw(text))
