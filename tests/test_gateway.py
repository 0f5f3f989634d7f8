"""Tests for SendGateway."""

from __future__ import annotations

import pytest

from tsq_bridge.gateway import ERROR_PREFIX, SendGateway, is_error
from tsq_bridge.messaging import InMemoryChannel


@pytest.fixture
def gateway(channel: InMemoryChannel) -> SendGateway:
    return SendGateway(channel, default_destination="BROWNAD.REQUEST.QUEUE")


@pytest.mark.asyncio
async def test_send_returns_payload(
    gateway: SendGateway, channel: InMemoryChannel
) -> None:
    assert await gateway.send("ORDERS", "hello") == "hello"
    published = channel.get_published()
    assert [(m.destination, m.payload) for m in published] == [("ORDERS", "hello")]
    assert published[0].correlation_id


@pytest.mark.asyncio
async def test_send_without_destination_uses_default(
    gateway: SendGateway, channel: InMemoryChannel
) -> None:
    await gateway.send(None, "x")
    assert channel.get_published()[0].destination == "BROWNAD.REQUEST.QUEUE"
    assert gateway.default_destination == "BROWNAD.REQUEST.QUEUE"


@pytest.mark.asyncio
async def test_send_keeps_given_correlation_id(
    gateway: SendGateway, channel: InMemoryChannel
) -> None:
    await gateway.send(None, "x", correlation_id="corr-1")
    assert channel.get_published()[0].correlation_id == "corr-1"


@pytest.mark.asyncio
async def test_publish_failure_becomes_error_string(
    gateway: SendGateway, channel: InMemoryChannel
) -> None:
    channel.available = False
    result = await gateway.send(None, "foo")
    assert result.startswith(ERROR_PREFIX)
    assert "unreachable" in result
    assert is_error(result)
    assert channel.get_published() == []


@pytest.mark.asyncio
async def test_closed_channel_becomes_error_string(
    gateway: SendGateway, channel: InMemoryChannel
) -> None:
    await channel.close()
    result = await gateway.send(None, "foo")
    assert is_error(result)
    assert "closed" in result


def test_is_error_on_plain_payload() -> None:
    assert not is_error("hello")
