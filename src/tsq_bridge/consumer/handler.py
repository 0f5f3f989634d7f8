"""StoreWriteHandler — writes each payload to a temporary storage queue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..domain.outcome import Outcome

if TYPE_CHECKING:
    from ..domain.message import Message
    from ..ports.store import IKeyedStore
    from ..ports.transaction import TransactionScope
    from .policy import IDecisionPolicy

logger = logging.getLogger("tsq_bridge.consumer")


class StoreWriteHandler:
    """Append the payload to *queue_name* inside the delivery's scope.

    The decision policy then picks the outcome. The append is staged in the
    scope, so a ROLLBACK outcome leaves the queue untouched.
    """

    def __init__(
        self,
        store: IKeyedStore,
        queue_name: str,
        policy: IDecisionPolicy,
    ) -> None:
        self._store = store
        self._queue_name = queue_name
        self._policy = policy

    @property
    def queue_name(self) -> str:
        return self._queue_name

    async def __call__(self, message: Message, scope: TransactionScope) -> Outcome:
        logger.info("Received <%s>", message.payload)
        await self._store.append(
            self._queue_name,
            message.payload,
            scope,
            message_id=message.message_id,
        )
        outcome = self._policy.decide(message)
        if outcome is Outcome.ROLLBACK:
            logger.info("Rolling back")
        else:
            logger.info("Committing")
        return outcome
