"""Decision policies — choose COMMIT or ROLLBACK for a received message."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..domain.outcome import Outcome

if TYPE_CHECKING:
    from ..domain.message import Message


@runtime_checkable
class IDecisionPolicy(Protocol):
    """Per-consumer rule deciding the fate of a delivery's transaction."""

    def decide(self, message: Message) -> Outcome:
        ...


class ContentDecisionPolicy(IDecisionPolicy):
    """Roll back when the payload equals *keyword*, ignoring case."""

    def __init__(self, keyword: str = "rollback") -> None:
        self._keyword = keyword.casefold()

    def decide(self, message: Message) -> Outcome:
        if message.payload.casefold() == self._keyword:
            return Outcome.ROLLBACK
        return Outcome.COMMIT


class SeededRandomDecisionPolicy(IDecisionPolicy):
    """Roll back on a coin flip from a generator seeded at construction.

    The generator belongs to the instance, so two consumers built with the same
    seed make the same sequence of decisions.
    """

    def __init__(self, seed: int = 1) -> None:
        self.seed = seed
        self._rng = random.Random(seed)  # noqa: S311

    def decide(self, message: Message) -> Outcome:  # noqa: ARG002
        if self._rng.getrandbits(1):
            return Outcome.ROLLBACK
        return Outcome.COMMIT
