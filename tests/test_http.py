"""Tests for the FastAPI send surface."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from tsq_bridge.bootstrap import Bridge, build_bridge
from tsq_bridge.config import BridgeSettings
from tsq_bridge.gateway.http import create_app, usage_banner


@pytest.fixture
def bridge() -> Bridge:
    return build_bridge(BridgeSettings(receive_timeout=0.05, max_attempts=2))


@pytest.fixture
def client(bridge: Bridge) -> TestClient:
    return TestClient(create_app(bridge, manage_lifecycle=False))


def test_root_shows_usage_banner(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Usage:" in response.text
    assert "/send/{queue}?data={input string}" in response.text


def test_usage_banner_timestamp_format() -> None:
    banner = usage_banner(datetime(2026, 1, 2, 3, 4, 5, 600000))
    assert "Date/Time: 2026-01-02:03-04-05.600000" in banner


def test_send_default_destination(client: TestClient, bridge: Bridge) -> None:
    response = client.get("/send", params={"data": "hello"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "hello"
    published = bridge.channel.get_published()
    assert [(m.destination, m.payload) for m in published] == [
        ("BROWNAD.REQUEST.QUEUE", "hello")
    ]


@pytest.mark.parametrize("method", ["GET", "POST", "PUT"])
def test_send_to_named_queue_any_method(
    client: TestClient, bridge: Bridge, method: str
) -> None:
    response = client.request(method, "/send/ORDERS", params={"data": "x"})

    assert response.status_code == 200
    assert response.text == "x"
    assert bridge.channel.get_published()[0].destination == "ORDERS"


def test_correlation_header_is_stamped(client: TestClient, bridge: Bridge) -> None:
    client.get("/send", params={"data": "x"}, headers={"X-Correlation-ID": "abc"})
    assert bridge.channel.get_published()[0].correlation_id == "abc"


def test_missing_data_is_validation_error(client: TestClient) -> None:
    assert client.get("/send").status_code == 422


def test_unreachable_channel_returns_error_string(
    client: TestClient, bridge: Bridge
) -> None:
    bridge.channel.available = False

    response = client.get("/send", params={"data": "foo"})

    assert response.status_code == 200
    assert response.text.startswith("ERROR on JMS send")
    assert asyncio.run(bridge.store.entries("SPRINGQ")) == []


def test_end_to_end_send_is_committed_to_store(bridge: Bridge) -> None:
    with TestClient(create_app(bridge)) as client:
        assert client.get("/send", params={"data": "hello"}).text == "hello"
        assert client.get("/send", params={"data": "rollback"}).text == "rollback"

        deadline = time.monotonic() + 5
        health = client.get("/health").json()
        while time.monotonic() < deadline and not (
            health["stats"]["committed"] == 1 and health["stats"]["dead_lettered"] == 1
        ):
            time.sleep(0.02)
            health = client.get("/health").json()

        assert health["status"] == "ok"
        assert health["consumer_running"] is True

    assert health["stats"]["committed"] == 1
    assert health["stats"]["rolled_back"] == 2
    assert health["stats"]["dead_lettered"] == 1
    assert not bridge.consumer.running
    assert asyncio.run(bridge.store.entries("SPRINGQ")) == ["hello"]
