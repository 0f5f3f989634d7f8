import enum
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Naive UTC timestamp; columns are timezone-less so comparisons stay portable."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Declarative base for the durable store and channel tables."""


class TSQEntry(Base):
    """
    One appended value of a temporary storage queue.

    Rows are insert-only; the autoincrement ``id`` gives the entry order.
    """

    __tablename__ = "tsq_entries"

    id: Mapped[int] = mapped_column(
        Integer().with_variant(BigInteger, "postgresql"),
        primary_key=True,
        autoincrement=True,
    )
    queue_name: Mapped[str] = mapped_column(String(64), index=True)
    value: Mapped[str] = mapped_column(Text)
    message_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_tsq_entries_queue_id", "queue_name", "id"),
        # A delivery lands in a queue at most once, across redeliveries.
        Index("ux_tsq_entries_queue_message", "queue_name", "message_id", unique=True),
    )


class ChannelStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_FLIGHT = "IN_FLIGHT"
    ACKED = "ACKED"
    DEAD = "DEAD"


class ChannelMessage(Base):
    """
    Durable channel row. A message is claimed by flipping PENDING → IN_FLIGHT
    and settled by ACKED (done), PENDING again (redeliver) or DEAD.
    """

    __tablename__ = "channel_messages"

    id: Mapped[int] = mapped_column(
        Integer().with_variant(BigInteger, "postgresql"),
        primary_key=True,
        autoincrement=True,
    )
    message_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    destination: Mapped[str] = mapped_column(String(255))
    payload: Mapped[str] = mapped_column(Text)
    attempt: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[ChannelStatus] = mapped_column(
        Enum(ChannelStatus), default=ChannelStatus.PENDING
    )
    available_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    correlation_id: Mapped[str | None] = mapped_column(String, nullable=True)
    headers: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_channel_pending", "destination", "status", "available_at", "id"),
    )
