"""Ports — the seams between the consumer and its infrastructure."""

from __future__ import annotations

from .background_worker import IBackgroundWorker
from .channel import IMessageChannel
from .store import IKeyedStore
from .transaction import ITransactionalResource, ScopeStatus, TransactionScope

__all__ = [
    "IBackgroundWorker",
    "IKeyedStore",
    "IMessageChannel",
    "ITransactionalResource",
    "ScopeStatus",
    "TransactionScope",
]
