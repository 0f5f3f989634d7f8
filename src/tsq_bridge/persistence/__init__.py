"""SQLAlchemy models and schema helpers for the durable backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import Base, ChannelMessage, ChannelStatus, TSQEntry

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


async def create_schema(engine: AsyncEngine) -> None:
    """Create the ``tsq_entries`` and ``channel_messages`` tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["Base", "ChannelMessage", "ChannelStatus", "TSQEntry", "create_schema"]
