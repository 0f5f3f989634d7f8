"""Message channel adapters and delivery policies."""

from __future__ import annotations

from .dead_letter import DeadLetterHandler
from .idempotency import CommitLedger
from .memory import InMemoryChannel
from .retry import RetryPolicy

__all__ = [
    "CommitLedger",
    "DeadLetterHandler",
    "InMemoryChannel",
    "RetryPolicy",
]
