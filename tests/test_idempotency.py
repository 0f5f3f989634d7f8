"""Tests for CommitLedger."""

from __future__ import annotations

import pytest

from tsq_bridge.messaging import CommitLedger


@pytest.mark.asyncio
async def test_mark_then_duplicate(ledger: CommitLedger) -> None:
    assert not await ledger.is_duplicate("m1")
    assert await ledger.mark_processed("m1")
    assert await ledger.is_duplicate("m1")
    assert len(ledger) == 1


@pytest.mark.asyncio
async def test_second_mark_reports_false(ledger: CommitLedger) -> None:
    await ledger.mark_processed("m1")
    assert not await ledger.mark_processed("m1")


@pytest.mark.asyncio
async def test_clear_memory(ledger: CommitLedger) -> None:
    await ledger.mark_processed("m1")
    ledger.clear_memory()
    assert not await ledger.is_duplicate("m1")
