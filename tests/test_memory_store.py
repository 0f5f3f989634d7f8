from __future__ import annotations

import asyncio

import pytest

from tsq_bridge.ports.store import IKeyedStore
from tsq_bridge.primitives.exceptions import (
    DuplicateEntryError,
    QueueNameError,
    StoreError,
)
from tsq_bridge.store import InMemoryKeyedStore, validate_queue_name
from tsq_bridge.transaction import InMemoryTransactionScope


@pytest.mark.asyncio
async def test_append_visible_only_after_commit(store: InMemoryKeyedStore) -> None:
    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "hello", scope)
        assert await store.entries("SPRINGQ") == []
        assert store.staged_count == 1

    assert await store.entries("SPRINGQ") == ["hello"]
    assert store.staged_count == 0


@pytest.mark.asyncio
async def test_rollback_leaves_record_unchanged(store: InMemoryKeyedStore) -> None:
    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "first", scope)

    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "second", scope)
        scope.set_rollback_only()

    assert await store.entries("SPRINGQ") == ["first"]
    assert store.staged_count == 0


@pytest.mark.asyncio
async def test_entries_preserve_append_order_within_scope(
    store: InMemoryKeyedStore,
) -> None:
    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "a", scope)
        await store.append("SPRINGQ", "b", scope)
        await store.append("OTHERQ", "x", scope)

    assert await store.entries("SPRINGQ") == ["a", "b"]
    assert await store.queue_names() == ["OTHERQ", "SPRINGQ"]


@pytest.mark.asyncio
async def test_concurrent_scopes_lose_nothing(store: InMemoryKeyedStore) -> None:
    async def write(value: str) -> None:
        async with InMemoryTransactionScope() as scope:
            await store.append("SPRINGQ", value, scope)
            await asyncio.sleep(0)

    values = [f"v{i}" for i in range(50)]
    await asyncio.gather(*(write(v) for v in values))

    entries = await store.entries("SPRINGQ")
    assert sorted(entries) == sorted(values)
    assert len(entries) == len(set(entries))


@pytest.mark.asyncio
async def test_unavailable_store_raises(store: InMemoryKeyedStore) -> None:
    store.available = False
    async with InMemoryTransactionScope() as scope:
        with pytest.raises(StoreError, match="unavailable"):
            await store.append("SPRINGQ", "x", scope)


@pytest.mark.asyncio
async def test_fail_next_injects_limited_failures(store: InMemoryKeyedStore) -> None:
    store.fail_next(1)
    scope = InMemoryTransactionScope()
    with pytest.raises(StoreError):
        await store.append("SPRINGQ", "x", scope)
    await store.append("SPRINGQ", "y", scope)
    await scope.commit()
    assert await store.entries("SPRINGQ") == ["y"]


@pytest.mark.parametrize("name", ["", "   ", "A_VERY_LONG_QUEUE_NAME"])
def test_invalid_queue_names_rejected(name: str) -> None:
    with pytest.raises(QueueNameError):
        validate_queue_name(name)


def test_queue_name_limit_is_configurable() -> None:
    assert validate_queue_name("A_VERY_LONG_QUEUE_NAME", max_length=32)


def test_protocol_compliance(store: InMemoryKeyedStore) -> None:
    assert isinstance(store, IKeyedStore)


@pytest.mark.asyncio
async def test_committed_message_id_is_refused(store: InMemoryKeyedStore) -> None:
    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "first", scope, message_id="m1")

    with pytest.raises(DuplicateEntryError) as exc_info:
        async with InMemoryTransactionScope() as scope:
            await store.append("SPRINGQ", "again", scope, message_id="m1")

    assert exc_info.value.message_id == "m1"
    assert exc_info.value.queue_name == "SPRINGQ"
    assert await store.entries("SPRINGQ") == ["first"]


@pytest.mark.asyncio
async def test_rolled_back_message_id_can_be_appended_again(
    store: InMemoryKeyedStore,
) -> None:
    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "try", scope, message_id="m1")
        scope.set_rollback_only()

    async with InMemoryTransactionScope() as scope:
        await store.append("SPRINGQ", "retry", scope, message_id="m1")

    assert await store.entries("SPRINGQ") == ["retry"]
