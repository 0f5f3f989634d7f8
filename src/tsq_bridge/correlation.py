"""Correlation IDs — ties an HTTP send to the delivery it triggers.

The gateway stamps the ID onto the outgoing :class:`~tsq_bridge.domain.Message`;
the consumer rebinds it (with the message ID as causation) while the delivery
is processed, so log lines on both sides share it.
"""

from __future__ import annotations

import contextlib
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_correlation_id: ContextVar[str | None] = ContextVar(
    "tsq_bridge_correlation_id", default=None
)
_causation_id: ContextVar[str | None] = ContextVar(
    "tsq_bridge_causation_id", default=None
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def get_causation_id() -> str | None:
    """ID of the message currently being delivered, if any."""
    return _causation_id.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


@contextlib.contextmanager
def correlation_scope(
    correlation_id: str | None,
    causation_id: str | None = None,
) -> Iterator[str | None]:
    """Bind both IDs for the duration of the block and restore them after."""
    tokens = (_correlation_id.set(correlation_id), _causation_id.set(causation_id))
    try:
        yield correlation_id
    finally:
        _causation_id.reset(tokens[1])
        _correlation_id.reset(tokens[0])
