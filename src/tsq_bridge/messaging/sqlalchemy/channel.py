"""
SQLAlchemy implementation of a durable, restartable message channel.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta, timezone
from typing import TYPE_CHECKING

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from ...domain.message import Message
from ...persistence.models import ChannelMessage, ChannelStatus, utcnow
from ...ports.channel import IMessageChannel
from ...primitives.exceptions import (
    ChannelClosedError,
    DeliveryError,
    MessagingSerializationError,
    PublishError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger("tsq_bridge.channel")


class SQLAlchemyChannel(IMessageChannel):
    """
    Durable channel keeping every message as a ``channel_messages`` row.

    * ``receive`` claims the oldest due PENDING row by a conditional update to
      IN_FLIGHT, so concurrent receivers never get the same delivery.
    * ``ack`` marks the row ACKED; ``nack`` returns it to PENDING with
      ``attempt + 1`` and a future ``available_at``, or marks it DEAD.
    * :meth:`recover` returns rows left IN_FLIGHT by a crashed process to
      PENDING, which is what makes delivery survive restarts.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        *,
        poll_interval: float = 0.05,
    ) -> None:
        self._session_factory = session_factory
        self._poll_interval = poll_interval
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

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
        if not destination or not destination.strip():
            raise PublishError("Destination name must not be empty", destination)

        message = Message(
            destination=destination,
            payload=payload,
            correlation_id=correlation_id,
            headers=dict(headers or {}),
        )
        try:
            async with self._session_factory() as session, session.begin():
                session.add(
                    ChannelMessage(
                        message_id=message.message_id,
                        destination=destination,
                        payload=payload,
                        attempt=message.attempt,
                        status=ChannelStatus.PENDING,
                        available_at=utcnow(),
                        correlation_id=correlation_id,
                        headers=message.headers,
                    )
                )
        except SQLAlchemyError as e:
            raise PublishError(
                f"Failed to publish to {destination!r}: {e}", destination
            ) from e
        logger.debug("Published %s to %s", message.message_id, destination)
        return message

    async def receive(self, destination: str, timeout: float) -> Message | None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not self.closed:
            message = await self._claim(destination)
            if message is not None:
                return message
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    self._closed.wait(), timeout=min(self._poll_interval, remaining)
                )
        return None

    async def _claim(self, destination: str) -> Message | None:
        stmt = (
            select(ChannelMessage)
            .where(
                ChannelMessage.destination == destination,
                ChannelMessage.status == ChannelStatus.PENDING,
                ChannelMessage.available_at <= utcnow(),
            )
            .order_by(ChannelMessage.id)
            .limit(1)
        )
        try:
            async with self._session_factory() as session, session.begin():
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    return None
                claimed = await session.execute(
                    update(ChannelMessage)
                    .where(
                        ChannelMessage.id == row.id,
                        ChannelMessage.status == ChannelStatus.PENDING,
                    )
                    .values(status=ChannelStatus.IN_FLIGHT)
                )
                if claimed.rowcount != 1:
                    return None
                try:
                    return self._to_message(row)
                except MessagingSerializationError:
                    logger.exception(
                        "Row %d on %s is not a valid message; marking it DEAD",
                        row.id,
                        destination,
                    )
                    await session.execute(
                        update(ChannelMessage)
                        .where(ChannelMessage.id == row.id)
                        .values(status=ChannelStatus.DEAD)
                    )
                    return None
        except SQLAlchemyError:
            logger.exception("Failed to claim a message from %s", destination)
            return None

    @staticmethod
    def _to_message(row: ChannelMessage) -> Message:
        try:
            return Message(
                message_id=row.message_id,
                destination=row.destination,
                payload=row.payload,
                attempt=row.attempt,
                timestamp=row.created_at.replace(tzinfo=timezone.utc),
                correlation_id=row.correlation_id,
                headers=dict(row.headers or {}),
            )
        except ValidationError as e:
            raise MessagingSerializationError(
                f"Cannot decode channel row {row.id}: {e}"
            ) from e

    async def subscribe(
        self, destination: str, *, timeout: float = 1.0
    ) -> AsyncIterator[Message]:
        while not self.closed:
            message = await self.receive(destination, timeout)
            if message is not None:
                yield message

    async def ack(self, message: Message) -> None:
        settled = await self._settle(message, status=ChannelStatus.ACKED)
        if not settled:
            logger.warning("Ignoring ack for %s: not in flight", message.message_id)

    async def nack(
        self,
        message: Message,
        *,
        requeue: bool = True,
        delay: float = 0.0,
    ) -> None:
        if requeue:
            settled = await self._settle(
                message,
                status=ChannelStatus.PENDING,
                attempt=message.attempt + 1,
                available_at=utcnow() + timedelta(seconds=delay),
            )
        else:
            settled = await self._settle(message, status=ChannelStatus.DEAD)
        if not settled:
            logger.warning("Ignoring nack for %s: not in flight", message.message_id)

    async def _settle(self, message: Message, **values: object) -> bool:
        stmt = (
            update(ChannelMessage)
            .where(
                ChannelMessage.message_id == message.message_id,
                ChannelMessage.status == ChannelStatus.IN_FLIGHT,
            )
            .values(**values)
        )
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount == 1
        except SQLAlchemyError as e:
            raise DeliveryError(f"Failed to settle {message.message_id}: {e}") from e

    async def recover(self) -> int:
        """Return deliveries orphaned IN_FLIGHT by a previous process to PENDING."""
        stmt = (
            update(ChannelMessage)
            .where(ChannelMessage.status == ChannelStatus.IN_FLIGHT)
            .values(
                status=ChannelStatus.PENDING,
                attempt=ChannelMessage.attempt + 1,
                available_at=utcnow(),
            )
        )
        async with self._session_factory() as session, session.begin():
            recovered = (await session.execute(stmt)).rowcount
        if recovered:
            logger.info("Recovered %d in-flight message(s)", recovered)
        return recovered

    async def _count(self, *criteria: object) -> int:
        stmt = select(func.count()).select_from(ChannelMessage).where(*criteria)
        async with self._session_factory() as session:
            return int((await session.execute(stmt)).scalar_one())

    async def pending_count(self, destination: str) -> int:
        return await self._count(
            ChannelMessage.destination == destination,
            ChannelMessage.status == ChannelStatus.PENDING,
        )

    async def in_flight_count(self) -> int:
        return await self._count(ChannelMessage.status == ChannelStatus.IN_FLIGHT)

    async def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        logger.info("SQLAlchemyChannel closed")
