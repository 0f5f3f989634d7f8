"""Dead-letter routing for messages that rolled back on every allowed attempt."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, NamedTuple

from ..primitives.exceptions import DeadLetterError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..domain.message import Message

logger = logging.getLogger("tsq_bridge.dead_letter")


class DeadLetter(NamedTuple):
    message: Message
    reason: str
    error: BaseException | None = None
    routed_at: datetime | None = None


class DeadLetterHandler:
    """
    Terminal stop for a message the consumer gave up on.

    Every dead letter is recorded on :attr:`routed` and handed to the optional
    ``on_dead_letter`` callback (e.g. to park it in a DLQ destination).
    :meth:`route` always finishes by raising :class:`DeadLetterError` so the
    caller settles the message as discarded rather than redelivering it.
    """

    def __init__(
        self,
        on_dead_letter: Callable[[DeadLetter], Awaitable[None]] | None = None,
    ) -> None:
        self._on_dead_letter = on_dead_letter
        self.routed: list[DeadLetter] = []

    def __len__(self) -> int:
        return len(self.routed)

    async def route(
        self,
        message: Message,
        reason: str,
        error: BaseException | None = None,
    ) -> None:
        letter = DeadLetter(message, reason, error, datetime.now(timezone.utc))
        self.routed.append(letter)
        logger.warning(
            "Dead-lettering message %s from %s after %d attempt(s): %s",
            message.message_id,
            message.destination,
            message.attempt,
            reason,
        )
        if self._on_dead_letter is not None:
            await self._on_dead_letter(letter)
        raise DeadLetterError(reason, message_id=message.message_id)
