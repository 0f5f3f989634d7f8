"""Wiring — assemble channel, store, consumer and gateway from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from .config import BridgeSettings
from .consumer.handler import StoreWriteHandler
from .consumer.policy import (
    ContentDecisionPolicy,
    IDecisionPolicy,
    SeededRandomDecisionPolicy,
)
from .consumer.worker import TransactionalConsumer
from .gateway.gateway import SendGateway
from .messaging.dead_letter import DeadLetterHandler
from .messaging.memory import InMemoryChannel
from .messaging.retry import RetryPolicy
from .messaging.sqlalchemy import SQLAlchemyChannel
from .persistence import create_schema
from .store.memory import InMemoryKeyedStore
from .store.sqlalchemy import SQLAlchemyKeyedStore
from .transaction.memory import in_memory_scope_factory
from .transaction.sqlalchemy import sqlalchemy_scope_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from .ports.channel import IMessageChannel
    from .ports.store import IKeyedStore

logger = logging.getLogger("tsq_bridge.bootstrap")


@dataclass
class Bridge:
    """A fully wired bridge; :meth:`start` and :meth:`stop` drive its lifecycle."""

    settings: BridgeSettings
    channel: IMessageChannel
    store: IKeyedStore
    consumer: TransactionalConsumer
    gateway: SendGateway
    dead_letter: DeadLetterHandler
    engine: AsyncEngine | None = None

    @property
    def running(self) -> bool:
        return self.consumer.running

    async def start(self) -> None:
        if self.engine is not None:
            await create_schema(self.engine)
        if isinstance(self.channel, SQLAlchemyChannel):
            await self.channel.recover()
        await self.consumer.start()
        logger.info(
            "Bridge started (backend=%s, destination=%s, store_queue=%s)",
            self.settings.backend,
            self.settings.default_destination,
            self.settings.store_queue,
        )

    async def stop(self) -> None:
        await self.consumer.stop()
        await self.channel.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Bridge stopped")

    async def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "consumer_running": self.consumer.running,
            "pending": await self.channel.pending_count(
                self.settings.default_destination
            ),
            "stats": {
                "committed": self.consumer.stats.committed,
                "rolled_back": self.consumer.stats.rolled_back,
                "dead_lettered": self.consumer.stats.dead_lettered,
                "duplicates": self.consumer.stats.duplicates,
            },
        }


def build_policy(settings: BridgeSettings) -> IDecisionPolicy:
    """Pick the single decision policy the settings ask for."""
    if settings.decision_policy == "random":
        return SeededRandomDecisionPolicy(seed=settings.random_seed)
    return ContentDecisionPolicy(keyword=settings.rollback_keyword)


def build_retry_policy(settings: BridgeSettings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.max_attempts,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay,
        jitter=settings.retry_jitter,
    )


def build_bridge(
    settings: BridgeSettings | None = None,
    *,
    dead_letter: DeadLetterHandler | None = None,
) -> Bridge:
    """Wire a :class:`Bridge` for ``settings.backend``.

    ``memory`` keeps everything in process; ``sqlalchemy`` persists the channel
    and the store in ``settings.database_url``. Tables are created on
    :meth:`Bridge.start`.
    """
    settings = settings or BridgeSettings()
    engine: AsyncEngine | None = None

    if settings.backend == "sqlalchemy":
        engine = create_async_engine(settings.database_url)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        channel: IMessageChannel = SQLAlchemyChannel(session_factory)
        store: IKeyedStore = SQLAlchemyKeyedStore(
            session_factory,
            max_queue_name_length=settings.max_queue_name_length,
        )
        scope_factory = sqlalchemy_scope_factory(session_factory)
    else:
        channel = InMemoryChannel()
        store = InMemoryKeyedStore(max_queue_name_length=settings.max_queue_name_length)
        scope_factory = in_memory_scope_factory

    if dead_letter is None:
        dead_letter = DeadLetterHandler()
    consumer = TransactionalConsumer(
        channel,
        settings.default_destination,
        StoreWriteHandler(store, settings.store_queue, build_policy(settings)),
        scope_factory,
        pool_size=settings.pool_size,
        receive_timeout=settings.receive_timeout,
        retry_policy=build_retry_policy(settings),
        dead_letter=dead_letter,
    )
    gateway = SendGateway(channel, settings.default_destination)
    return Bridge(
        settings=settings,
        channel=channel,
        store=store,
        consumer=consumer,
        gateway=gateway,
        dead_letter=dead_letter,
        engine=engine,
    )
