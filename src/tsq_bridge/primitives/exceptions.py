"""Exception hierarchy for tsq-bridge."""

from __future__ import annotations


class BridgeError(Exception):
    """Root exception for the entire tsq-bridge package."""


class ConfigurationError(BridgeError):
    """Raised when settings are missing or invalid."""


class InfrastructureError(BridgeError):
    """Base class for all infrastructure-related errors."""


# ── Messaging ────────────────────────────────────────────────────────


class MessagingError(InfrastructureError):
    """Base class for all messaging-related errors."""


class PublishError(MessagingError):
    """Raised when the channel rejects a message or cannot be reached."""

    def __init__(self, message: str, destination: str | None = None) -> None:
        self.destination = destination
        super().__init__(message)


class ChannelClosedError(PublishError):
    """Raised when publishing to a channel that has been closed."""


class DeliveryError(MessagingError):
    """Raised when an ack/nack refers to a delivery the channel cannot settle."""


class MessagingSerializationError(MessagingError):
    """Raised when a stored delivery cannot be turned back into a Message."""


class DeadLetterError(MessagingError):
    """Raised when a message is routed to the dead-letter queue after max retries."""

    def __init__(self, message: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(message)


# ── Store ────────────────────────────────────────────────────────────


class StoreError(InfrastructureError):
    """Raised when an append to the keyed store fails."""

    def __init__(self, message: str, queue_name: str | None = None) -> None:
        self.queue_name = queue_name
        super().__init__(message)


class QueueNameError(StoreError):
    """Raised when a queue name is empty or exceeds the configured length."""


class DuplicateEntryError(StoreError):
    """Raised when a message has already been appended to a queue."""

    def __init__(
        self, message: str, queue_name: str | None = None, message_id: str | None = None
    ) -> None:
        self.message_id = message_id
        super().__init__(message, queue_name=queue_name)


# ── Transactions ─────────────────────────────────────────────────────


class TransactionError(InfrastructureError):
    """Raised when a transaction scope fails to commit or roll back."""


class ScopeStateError(TransactionError):
    """Raised when a scope is used outside of its active lifetime."""
