"""RetryPolicy — how many times a rolled-back message comes back, and when."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.message import Message


class RetryPolicy:
    """
    Redelivery bound for rolled-back messages.

    A message whose ``attempt`` has reached ``max_attempts`` is exhausted and
    goes to the dead-letter handler instead of back onto its destination.
    Backoff doubles from ``base_delay`` per attempt and never exceeds
    ``max_delay``; the defaults redeliver immediately.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 5,
        base_delay: float = 0.0,
        max_delay: float = 5.0,
        jitter: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if min(base_delay, max_delay) < 0:
            raise ValueError("Redelivery delays cannot be negative")
        if base_delay > max_delay:
            raise ValueError(
                f"base_delay ({base_delay}) exceeds max_delay ({max_delay})"
            )
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self._rng = rng if rng is not None else random.Random()  # noqa: S311

    def exhausted(self, message: Message) -> bool:
        return message.attempt >= self.max_attempts

    def backoff(self, attempt: int) -> float:
        """Seconds to hold a message back after ``attempt`` rolled back."""
        if attempt < 1 or self.base_delay == 0:
            return 0.0
        delay = min(self.base_delay * 2 ** (attempt - 1), self.max_delay)
        if self.jitter:
            delay *= 0.5 + self._rng.random()
        return delay

    def redelivery_delay(self, message: Message) -> float | None:
        """Delay before ``message`` is redelivered, or None once it is exhausted."""
        if self.exhausted(message):
            return None
        return self.backoff(message.attempt)
