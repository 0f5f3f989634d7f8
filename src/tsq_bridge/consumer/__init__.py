"""Transactional consumer: decision policies, handler and worker pool."""

from __future__ import annotations

from .handler import StoreWriteHandler
from .policy import ContentDecisionPolicy, IDecisionPolicy, SeededRandomDecisionPolicy
from .worker import ConsumerStats, DeliveryReport, TransactionalConsumer

__all__ = [
    "ConsumerStats",
    "ContentDecisionPolicy",
    "DeliveryReport",
    "IDecisionPolicy",
    "SeededRandomDecisionPolicy",
    "StoreWriteHandler",
    "TransactionalConsumer",
]
