"""InMemoryTransactionScope — scope whose only participants are enlisted resources."""

from __future__ import annotations

from ..ports.transaction import TransactionScope


class InMemoryTransactionScope(TransactionScope):
    """In-memory implementation of TransactionScope.

    There is no backend transaction; enlisted resources (e.g.
    ``InMemoryKeyedStore``) hold the staged work. Records commit/rollback
    calls for assertions.
    """

    def __init__(self) -> None:
        super().__init__()
        self.commit_count: int = 0
        self.rollback_count: int = 0

    async def _commit(self) -> None:
        self.commit_count += 1

    async def _rollback(self) -> None:
        self.rollback_count += 1


def in_memory_scope_factory() -> InMemoryTransactionScope:
    return InMemoryTransactionScope()
