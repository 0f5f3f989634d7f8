"""CommitLedger — remembers committed message IDs so redeliveries are skipped."""

from __future__ import annotations

import asyncio


class CommitLedger:
    """Deduplicate deliveries by message_id so a message commits at most once.

    A message can be redelivered after its scope already committed (e.g. the
    process stopped between commit and ack). The consumer consults the ledger
    before opening a scope and acks such deliveries without reprocessing.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = asyncio.Lock()

    async def is_duplicate(self, message_id: str) -> bool:
        """Return True if this message_id has already been committed."""
        async with self._lock:
            return message_id in self._seen

    async def mark_processed(self, message_id: str) -> bool:
        """Record a commit; returns False if the id was already recorded."""
        async with self._lock:
            if message_id in self._seen:
                return False
            self._seen.add(message_id)
            return True

    def __len__(self) -> int:
        return len(self._seen)

    def clear_memory(self) -> None:
        """Clear the recorded ids (for testing)."""
        self._seen.clear()
