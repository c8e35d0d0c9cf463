"""Wall-clock budget shared by every call made within one cycle or task."""

from __future__ import annotations

import time
from typing import Callable

from .errors import DeadlineExceeded


class Deadline:
    """Absolute deadline measured on a monotonic clock."""

    def __init__(self, budget_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.budget_seconds = budget_seconds
        self._clock = clock
        self._expires_at = clock() + budget_seconds

    def remaining(self) -> float:
        """Return the seconds left, raising once the budget is spent."""
        left = self._expires_at - self._clock()
        if left <= 0:
            raise DeadlineExceeded(f"deadline of {self.budget_seconds:.0f}s exceeded")
        return left

    @property
    def expired(self) -> bool:
        return self._expires_at - self._clock() <= 0


__all__ = ["Deadline"]
