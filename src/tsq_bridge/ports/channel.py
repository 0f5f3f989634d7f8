from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..domain.message import Message


@runtime_checkable
class IMessageChannel(Protocol):
    """
    Port for a point-to-point channel with at-least-once delivery.

    Every message handed out by :meth:`receive` stays in flight until it is
    settled with :meth:`ack` (done) or :meth:`nack` (redeliver or discard).
    """

    async def publish(
        self,
        destination: str,
        payload: str,
        *,
        correlation_id: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Message:
        """
        Enqueue *payload* on *destination*.

        Raises:
            PublishError: If the destination is invalid or the channel is
                unreachable.
        """
        ...

    async def receive(self, destination: str, timeout: float) -> Message | None:
        """Wait up to *timeout* seconds for the next message; ``None`` on timeout."""
        ...

    def subscribe(
        self, destination: str, *, timeout: float = 1.0
    ) -> AsyncIterator[Message]:
        """Lazily yield messages from *destination* until the channel closes."""
        ...

    async def ack(self, message: Message) -> None:
        """Settle *message* permanently; it will not be delivered again."""
        ...

    async def nack(
        self,
        message: Message,
        *,
        requeue: bool = True,
        delay: float = 0.0,
    ) -> None:
        """Return *message* for redelivery after *delay*, or drop it."""
        ...

    async def pending_count(self, destination: str) -> int:
        """Number of messages waiting on *destination* (not in flight)."""
        ...

    async def in_flight_count(self) -> int:
        """Number of delivered but unsettled messages."""
        ...

    async def close(self) -> None:
        """Stop accepting publishes and wake blocked receivers."""
        ...
