"""InMemoryKeyedStore — process-local temporary storage queues."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..ports.store import IKeyedStore
from ..ports.transaction import ITransactionalResource
from ..primitives.exceptions import DuplicateEntryError, StoreError
from .validation import DEFAULT_MAX_QUEUE_NAME_LENGTH, validate_queue_name

if TYPE_CHECKING:
    from ..ports.transaction import TransactionScope

logger = logging.getLogger("tsq_bridge.store")


class InMemoryKeyedStore(IKeyedStore, ITransactionalResource):
    """Append-only keyed store held in memory.

    Appends are staged per scope and only reach the committed records when the
    owning scope commits; the store enlists itself on the first append. The
    commit step runs under a single lock, so concurrent scopes appending to the
    same queue never lose or duplicate entries. A message id already committed
    to a queue is refused with :class:`DuplicateEntryError`.

    ``available`` and :meth:`fail_next` simulate an unreachable store for tests.
    """

    def __init__(
        self,
        *,
        max_queue_name_length: int = DEFAULT_MAX_QUEUE_NAME_LENGTH,
    ) -> None:
        self._max_queue_name_length = max_queue_name_length
        self._records: dict[str, list[str]] = {}
        self._staged: dict[str, list[tuple[str, str, str | None]]] = {}
        self._committed_ids: set[tuple[str, str]] = set()
        self._lock = asyncio.Lock()
        self._failures_remaining = 0
        self.available = True

    def fail_next(self, count: int = 1) -> None:
        """Make the next *count* appends raise StoreError."""
        self._failures_remaining = count

    async def append(
        self,
        queue_name: str,
        value: str,
        scope: TransactionScope,
        *,
        message_id: str | None = None,
    ) -> None:
        validate_queue_name(queue_name, self._max_queue_name_length)
        if not self.available:
            raise StoreError("Store is unavailable", queue_name=queue_name)
        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            raise StoreError("Injected store failure", queue_name=queue_name)

        if message_id is not None and (queue_name, message_id) in self._committed_ids:
            raise DuplicateEntryError(
                f"Message {message_id} is already in {queue_name}",
                queue_name=queue_name,
                message_id=message_id,
            )

        scope.enlist(self)
        self._staged.setdefault(scope.scope_id, []).append(
            (queue_name, value, message_id)
        )
        logger.debug(
            "Staged append to %s in scope %s (message_id=%s)",
            queue_name,
            scope.scope_id,
            message_id,
        )

    async def commit(self, scope: TransactionScope) -> None:
        staged = self._staged.pop(scope.scope_id, [])
        async with self._lock:
            for queue_name, value, message_id in staged:
                self._records.setdefault(queue_name, []).append(value)
                if message_id is not None:
                    self._committed_ids.add((queue_name, message_id))

    async def rollback(self, scope: TransactionScope) -> None:
        discarded = self._staged.pop(scope.scope_id, [])
        if discarded:
            logger.debug(
                "Discarded %d staged append(s) of scope %s",
                len(discarded),
                scope.scope_id,
            )

    async def entries(self, queue_name: str) -> list[str]:
        async with self._lock:
            return list(self._records.get(queue_name, []))

    async def queue_names(self) -> list[str]:
        async with self._lock:
            return sorted(name for name, values in self._records.items() if values)

    @property
    def staged_count(self) -> int:
        """Appends waiting on an open scope (test helper)."""
        return sum(len(v) for v in self._staged.values())

    def clear(self) -> None:
        """Drop all records and staged appends (for test teardown)."""
        self._records.clear()
        self._staged.clear()
        self._committed_ids.clear()
