"""
Request-scoped options for the algebra core.

The core itself reads no environment; only the HTTP adapter asks for
``server_port()``.
"""

import os
from dataclasses import dataclass, replace

DEFAULT_PORT = 5001


@dataclass(frozen=True)
class Options:
    deadline: float = 2.0              # seconds of wall time per request
    max_passes: int = 128              # rewrite passes per fixed point
    max_samples: int = 10_000          # graph samples
    max_binomial_degree: int = 12
    max_root_degree: int = 6           # rational-root search
    max_root_candidates: int = 100_000  # p/q pairs tried by that search
    max_terms: int = 10_000            # terms produced by one distribution
    rel_tol: float = 1e-10             # near-integer snapping
    variable: str = "x"
    graph_min: float = -10.0
    graph_max: float = 10.0
    graph_samples: int = 101


DEFAULT_OPTIONS = Options()


def make_options(**overrides) -> Options:
    """Return a copy of the defaults with *overrides* applied."""
    return replace(DEFAULT_OPTIONS, **overrides)


def server_port(environ=None) -> int:
    environ = os.environ if environ is None else environ
    raw = environ.get("PORT", "")
    try:
        return int(raw) if raw else DEFAULT_PORT
    except ValueError:
        raise ValueError(f"PORT must be an integer, got '{raw}'.")
