"""tsq-bridge — transactional message consumer writing to temporary storage queues."""

from __future__ import annotations

from .bootstrap import Bridge, build_bridge
from .config import BridgeSettings
from .consumer import (
    ContentDecisionPolicy,
    DeliveryReport,
    SeededRandomDecisionPolicy,
    StoreWriteHandler,
    TransactionalConsumer,
)
from .domain import DeliveryState, Message, Outcome
from .gateway import SendGateway
from .messaging import CommitLedger, DeadLetterHandler, InMemoryChannel, RetryPolicy
from .primitives.exceptions import (
    BridgeError,
    ChannelClosedError,
    PublishError,
    StoreError,
    TransactionError,
)
from .store import InMemoryKeyedStore
from .transaction import InMemoryTransactionScope

__all__ = [
    "BridgeError",
    "Bridge",
    "BridgeSettings",
    "ChannelClosedError",
    "CommitLedger",
    "ContentDecisionPolicy",
    "DeadLetterHandler",
    "DeliveryReport",
    "DeliveryState",
    "InMemoryChannel",
    "InMemoryKeyedStore",
    "InMemoryTransactionScope",
    "Message",
    "Outcome",
    "PublishError",
    "RetryPolicy",
    "SeededRandomDecisionPolicy",
    "SendGateway",
    "StoreError",
    "StoreWriteHandler",
    "TransactionError",
    "TransactionalConsumer",
]
