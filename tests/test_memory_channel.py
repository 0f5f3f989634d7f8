"""Tests for InMemoryChannel."""

from __future__ import annotations

import asyncio

import pytest

from tsq_bridge.messaging import InMemoryChannel
from tsq_bridge.ports.channel import IMessageChannel
from tsq_bridge.primitives.exceptions import ChannelClosedError, PublishError

DEST = "BROWNAD.REQUEST.QUEUE"


@pytest.mark.asyncio
async def test_publish_then_receive(channel: InMemoryChannel) -> None:
    sent = await channel.publish(DEST, "hello", correlation_id="c-1")
    got = await channel.receive(DEST, timeout=0.1)

    assert got == sent
    assert got.payload == "hello"
    assert got.attempt == 1
    assert got.correlation_id == "c-1"
    assert await channel.in_flight_count() == 1
    assert channel.get_published() == [sent]


@pytest.mark.asyncio
async def test_receive_times_out_with_none(channel: InMemoryChannel) -> None:
    assert await channel.receive(DEST, timeout=0.01) is None


@pytest.mark.asyncio
async def test_destinations_are_isolated(channel: InMemoryChannel) -> None:
    await channel.publish("A", "for-a")
    assert await channel.receive("B", timeout=0.01) is None
    got = await channel.receive("A", timeout=0.1)
    assert got is not None
    assert got.payload == "for-a"


@pytest.mark.asyncio
async def test_fifo_within_destination(channel: InMemoryChannel) -> None:
    for p in ("1", "2", "3"):
        await channel.publish(DEST, p)
    received = [(await channel.receive(DEST, timeout=0.1)).payload for _ in range(3)]
    assert received == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_each_message_goes_to_one_receiver(channel: InMemoryChannel) -> None:
    await channel.publish(DEST, "only-once")
    results = await asyncio.gather(
        channel.receive(DEST, timeout=0.05),
        channel.receive(DEST, timeout=0.05),
    )
    assert sum(r is not None for r in results) == 1


@pytest.mark.asyncio
async def test_ack_settles_permanently(channel: InMemoryChannel) -> None:
    await channel.publish(DEST, "x")
    msg = await channel.receive(DEST, timeout=0.1)
    await channel.ack(msg)

    assert await channel.in_flight_count() == 0
    assert await channel.receive(DEST, timeout=0.01) is None


@pytest.mark.asyncio
async def test_nack_redelivers_with_incremented_attempt(
    channel: InMemoryChannel,
) -> None:
    sent = await channel.publish(DEST, "again")
    first = await channel.receive(DEST, timeout=0.1)
    await channel.nack(first)

    second = await channel.receive(DEST, timeout=0.1)
    assert second.message_id == sent.message_id
    assert second.attempt == 2
    assert second.redelivered


@pytest.mark.asyncio
async def test_nack_with_delay_holds_message_back(channel: InMemoryChannel) -> None:
    await channel.publish(DEST, "later")
    msg = await channel.receive(DEST, timeout=0.1)
    await channel.nack(msg, delay=0.05)

    assert await channel.pending_count(DEST) == 1
    assert await channel.receive(DEST, timeout=0.01) is None
    redelivered = await channel.receive(DEST, timeout=0.5)
    assert redelivered is not None
    assert redelivered.attempt == 2


@pytest.mark.asyncio
async def test_nack_without_requeue_discards(channel: InMemoryChannel) -> None:
    await channel.publish(DEST, "drop")
    msg = await channel.receive(DEST, timeout=0.1)
    await channel.nack(msg, requeue=False)

    assert await channel.receive(DEST, timeout=0.01) is None
    assert [m.payload for m in channel.get_discarded()] == ["drop"]


@pytest.mark.asyncio
async def test_settling_unknown_delivery_is_noop(
    channel: InMemoryChannel, caplog: pytest.LogCaptureFixture
) -> None:
    msg = await channel.publish(DEST, "x")
    await channel.ack(msg)
    await channel.nack(msg)

    assert "not in flight" in caplog.text
    assert await channel.pending_count(DEST) == 1


@pytest.mark.asyncio
async def test_publish_to_closed_channel_fails(channel: InMemoryChannel) -> None:
    await channel.close()
    with pytest.raises(ChannelClosedError):
        await channel.publish(DEST, "x")


@pytest.mark.asyncio
async def test_unreachable_and_invalid_destination(channel: InMemoryChannel) -> None:
    with pytest.raises(PublishError, match="empty"):
        await channel.publish("", "x")
    channel.available = False
    with pytest.raises(PublishError, match="unreachable"):
        await channel.publish(DEST, "x")


@pytest.mark.asyncio
async def test_close_wakes_blocked_receiver(channel: InMemoryChannel) -> None:
    waiter = asyncio.create_task(channel.receive(DEST, timeout=10))
    await asyncio.sleep(0.01)
    await channel.close()
    assert await asyncio.wait_for(waiter, timeout=1) is None


@pytest.mark.asyncio
async def test_subscribe_yields_until_closed(channel: InMemoryChannel) -> None:
    await channel.publish(DEST, "a")
    await channel.publish(DEST, "b")
    seen: list[str] = []

    async for msg in channel.subscribe(DEST, timeout=0.01):
        seen.append(msg.payload)
        await channel.ack(msg)
        if len(seen) == 2:
            await channel.close()

    assert seen == ["a", "b"]


def test_protocol_compliance(channel: InMemoryChannel) -> None:
    assert isinstance(channel, IMessageChannel)
