"""Per-request limits: wall-clock deadline, pass counting and cancellation."""

import time

from algebra.config import DEFAULT_OPTIONS, Options
from algebra.errors import BudgetError


class Budget:
    """Checked by the engine at every rewrite-pass boundary."""

    def __init__(self, options: Options = DEFAULT_OPTIONS):
        self.options = options
        self.started = time.monotonic()
        self.deadline = self.started + options.deadline
        self.passes = 0
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def elapsed_ms(self) -> float:
        return round((time.monotonic() - self.started) * 1000, 2)

    def check(self) -> None:
        if self.cancelled:
            raise BudgetError("cancelled")
        if time.monotonic() > self.deadline:
            raise BudgetError("deadline")

    def tick(self) -> None:
        """Account for one rewrite pass."""
        self.passes += 1
        self.check()

    def require(self, value: int, limit: int, what: str) -> None:
        if value > limit:
            raise BudgetError(what)
