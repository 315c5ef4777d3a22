"""Error kinds raised by the algebra core.

Every error is a ``ValueError`` so callers can keep the simple
``except ValueError`` -> HTTP 400 mapping used by the API layer.
"""


class AlgebraError(ValueError):
    """Base class for all failures reported back to the user."""


class ParseError(AlgebraError):
    """Malformed input detected by the lexer or the parser."""

    def __init__(self, message: str, position: int = 0):
        self.message = message
        self.position = position
        super().__init__(f"{message} (at position {position})")


class DomainError(AlgebraError):
    """The request is well formed but mathematically meaningless."""


class UnsolvableError(AlgebraError):
    """No closed-form solution exists.

    When ``result`` is set the equation was still classified and the text
    is worth returning to the user as a normal answer.
    """

    def __init__(self, message: str, result: str = None):
        self.result = result
        super().__init__(message)


class BudgetError(AlgebraError):
    """A time or iteration limit was exceeded."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Computation limit exceeded: {what}")


class InternalError(AlgebraError):
    """Unexpected state inside the engine."""
