"""Primitive building blocks shared by every layer."""

from __future__ import annotations

from .exceptions import (
    BridgeError,
    ChannelClosedError,
    ConfigurationError,
    DeadLetterError,
    DeliveryError,
    DuplicateEntryError,
    InfrastructureError,
    MessagingError,
    MessagingSerializationError,
    PublishError,
    QueueNameError,
    ScopeStateError,
    StoreError,
    TransactionError,
)

__all__ = [
    "BridgeError",
    "ChannelClosedError",
    "ConfigurationError",
    "DeadLetterError",
    "DeliveryError",
    "DuplicateEntryError",
    "InfrastructureError",
    "MessagingError",
    "MessagingSerializationError",
    "PublishError",
    "QueueNameError",
    "ScopeStateError",
    "StoreError",
    "TransactionError",
]
