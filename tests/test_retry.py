"""Tests for RetryPolicy."""

from __future__ import annotations

import random

import pytest

from tsq_bridge.domain.message import Message
from tsq_bridge.messaging import RetryPolicy


def _at(attempt: int) -> Message:
    return Message(destination="Q", payload="x", attempt=attempt)


def test_exhausted_at_max_attempts() -> None:
    policy = RetryPolicy(max_attempts=3)
    assert not policy.exhausted(_at(1))
    assert not policy.exhausted(_at(2))
    assert policy.exhausted(_at(3))
    assert policy.exhausted(_at(4))


def test_single_attempt_goes_straight_to_dead_letter() -> None:
    assert RetryPolicy(max_attempts=1).redelivery_delay(_at(1)) is None


def test_default_policy_redelivers_immediately() -> None:
    policy = RetryPolicy()
    assert policy.redelivery_delay(_at(1)) == 0.0
    assert policy.redelivery_delay(_at(4)) == 0.0
    assert policy.redelivery_delay(_at(5)) is None


def test_backoff_doubles_and_is_capped() -> None:
    policy = RetryPolicy(base_delay=1.0, max_delay=5.0)
    assert [policy.backoff(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]
    assert policy.backoff(0) == 0.0


def test_jitter_is_reproducible_with_seeded_rng() -> None:
    a = RetryPolicy(base_delay=1.0, jitter=True, rng=random.Random(7))
    b = RetryPolicy(base_delay=1.0, jitter=True, rng=random.Random(7))
    delays = [a.backoff(1) for _ in range(5)]
    assert delays == [b.backoff(1) for _ in range(5)]
    assert all(0.5 <= d <= 1.5 for d in delays)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"base_delay": -1.0},
        {"base_delay": 10.0, "max_delay": 1.0},
    ],
)
def test_invalid_configuration(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
