"""Shared fixtures for tsq-bridge tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from tsq_bridge.consumer import (
    ContentDecisionPolicy,
    StoreWriteHandler,
    TransactionalConsumer,
)
from tsq_bridge.messaging import (
    CommitLedger,
    DeadLetterHandler,
    InMemoryChannel,
    RetryPolicy,
)
from tsq_bridge.persistence import create_schema
from tsq_bridge.store import InMemoryKeyedStore
from tsq_bridge.transaction import in_memory_scope_factory

if TYPE_CHECKING:
    from pathlib import Path

DESTINATION = "BROWNAD.REQUEST.QUEUE"
STORE_QUEUE = "SPRINGQ"


@pytest.fixture
def channel() -> InMemoryChannel:
    return InMemoryChannel()


@pytest.fixture
def store() -> InMemoryKeyedStore:
    return InMemoryKeyedStore()


@pytest.fixture
def dead_letter() -> DeadLetterHandler:
    return DeadLetterHandler()


@pytest.fixture
def ledger() -> CommitLedger:
    return CommitLedger()


@pytest.fixture
def consumer(
    channel: InMemoryChannel,
    store: InMemoryKeyedStore,
    dead_letter: DeadLetterHandler,
    ledger: CommitLedger,
) -> TransactionalConsumer:
    return TransactionalConsumer(
        channel,
        DESTINATION,
        StoreWriteHandler(store, STORE_QUEUE, ContentDecisionPolicy()),
        in_memory_scope_factory,
        receive_timeout=0.05,
        retry_policy=RetryPolicy(max_attempts=3),
        dead_letter=dead_letter,
        ledger=ledger,
    )


@pytest.fixture
async def engine(tmp_path: Path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bridge.db'}")
    await create_schema(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)
