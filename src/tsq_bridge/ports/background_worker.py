"""Lifecycle protocol for long-running components (consumer pools, the bridge)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IBackgroundWorker(Protocol):
    """
    A component that owns background tasks between ``start`` and ``stop``.

    ``stop`` must let in-flight deliveries settle before returning; anything
    still running after the shutdown timeout is cancelled and its message is
    redelivered by the channel.
    """

    @property
    def running(self) -> bool:
        """True between a successful ``start`` and the matching ``stop``."""
        ...

    async def start(self) -> None:
        """Spawn the background tasks. Calling twice is a no-op."""
        ...

    async def stop(self) -> None:
        """Signal shutdown and wait for in-flight work to settle."""
        ...
