from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .transaction import TransactionScope


@runtime_checkable
class IKeyedStore(Protocol):
    """
    Port for the append-only keyed store (temporary storage queues).

    Appends are staged in the given transaction scope and become visible only
    when that scope commits.
    """

    async def append(
        self,
        queue_name: str,
        value: str,
        scope: TransactionScope,
        *,
        message_id: str | None = None,
    ) -> None:
        """
        Append *value* to the record named *queue_name* within *scope*.

        Raises:
            StoreError: If the store is unavailable or the name is invalid.
        """
        ...

    async def entries(self, queue_name: str) -> list[str]:
        """Committed entries of *queue_name*, oldest first."""
        ...

    async def queue_names(self) -> list[str]:
        """Names of all records holding at least one committed entry."""
        ...
