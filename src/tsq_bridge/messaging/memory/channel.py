"""InMemoryChannel — IMessageChannel backed by one asyncio queue per destination."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.message import Message
from ...ports.channel import IMessageChannel
from ...primitives.exceptions import ChannelClosedError, PublishError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger("tsq_bridge.channel")


class InMemoryChannel(IMessageChannel):
    """Point-to-point channel for a single process.

    Each destination is an ``asyncio.Queue``; ``receive`` hands a message to
    exactly one caller and tracks it as in flight until ``ack``/``nack``.
    ``nack`` re-enqueues a copy with ``attempt + 1``, optionally after a delay.

    Set ``available = False`` to simulate an unreachable broker: publishes then
    fail with :class:`PublishError`. ``get_published()`` supports test
    assertions.
    """

    def __init__(self) -> None:
        self._queues: dict[str, asyncio.Queue[Message]] = {}
        self._in_flight: dict[str, Message] = {}
        self._delayed: dict[asyncio.TimerHandle, Message] = {}
        self._published: list[Message] = []
        self._discarded: list[Message] = []
        self._closed = asyncio.Event()
        self.available = True

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _queue(self, destination: str) -> asyncio.Queue[Message]:
        return self._queues.setdefault(destination, asyncio.Queue())

    async def publish(
        self,
        destination: str,
        payload: str,
        *,
        correlation_id: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Message:
        if self.closed:
            raise ChannelClosedError("Channel is closed", destination=destination)
        if not self.available:
            raise PublishError(
                f"Destination {destination!r} is unreachable",
                destination=destination,
            )
        if not destination or not destination.strip():
            raise PublishError("Destination name must not be empty", destination)

        message = Message(
            destination=destination,
            payload=payload,
            correlation_id=correlation_id,
            headers=dict(headers or {}),
        )
        self._published.append(message)
        self._queue(destination).put_nowait(message)
        logger.debug("Published %s to %s", message.message_id, destination)
        return message

    async def receive(self, destination: str, timeout: float) -> Message | None:
        if self.closed:
            return None
        getter = asyncio.ensure_future(self._queue(destination).get())
        closer = asyncio.ensure_future(self._closed.wait())
        done, _ = await asyncio.wait(
            {getter, closer},
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
        closer.cancel()
        if getter not in done:
            getter.cancel()
            return None
        message = getter.result()
        self._in_flight[message.message_id] = message
        return message

    async def subscribe(
        self, destination: str, *, timeout: float = 1.0
    ) -> AsyncIterator[Message]:
        while not self.closed:
            message = await self.receive(destination, timeout)
            if message is not None:
                yield message

    async def ack(self, message: Message) -> None:
        if self._in_flight.pop(message.message_id, None) is None:
            logger.warning("Ignoring ack for %s: not in flight", message.message_id)

    async def nack(
        self,
        message: Message,
        *,
        requeue: bool = True,
        delay: float = 0.0,
    ) -> None:
        settled = self._in_flight.pop(message.message_id, None)
        if settled is None:
            logger.warning("Ignoring nack for %s: not in flight", message.message_id)
            return
        if not requeue:
            self._discarded.append(settled)
            return

        redelivery = settled.next_attempt()
        if delay > 0:
            loop = asyncio.get_running_loop()
            handle = loop.call_later(delay, self._requeue_delayed, redelivery)
            self._delayed[handle] = redelivery
        else:
            self._requeue(redelivery)

    def _requeue_delayed(self, message: Message) -> None:
        for handle, pending in list(self._delayed.items()):
            if pending is message:
                del self._delayed[handle]
                break
        self._requeue(message)

    def _requeue(self, message: Message) -> None:
        if self.closed:
            logger.warning(
                "Dropping redelivery of %s: channel closed", message.message_id
            )
            return
        self._queue(message.destination).put_nowait(message)
        logger.debug("Requeued %s (attempt %d)", message.message_id, message.attempt)

    async def pending_count(self, destination: str) -> int:
        queued = self._queues[destination].qsize() if destination in self._queues else 0
        delayed = sum(1 for m in self._delayed.values() if m.destination == destination)
        return queued + delayed

    async def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        for handle in self._delayed:
            handle.cancel()
        if self._delayed:
            logger.warning(
                "Channel closed with %d delayed redelivery(ies) pending",
                len(self._delayed),
            )
        self._delayed.clear()
        logger.info("InMemoryChannel closed")

    # ── Test helpers ─────────────────────────────────────────────

    def get_published(self) -> list[Message]:
        """Return all messages published so far, in order."""
        return list(self._published)

    def get_discarded(self) -> list[Message]:
        """Return messages nacked without requeue."""
        return list(self._discarded)
