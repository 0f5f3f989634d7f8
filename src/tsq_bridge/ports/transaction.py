"""TransactionScope — abstract base class for a per-delivery transaction."""

from __future__ import annotations

import enum
import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..primitives.exceptions import ScopeStateError, TransactionError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("tsq_bridge.transaction")


class ScopeStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


@runtime_checkable
class ITransactionalResource(Protocol):
    """A participant whose pending work is finalized by the enclosing scope."""

    async def commit(self, scope: TransactionScope) -> None:
        """Make the work staged under *scope* durable and visible."""
        ...

    async def rollback(self, scope: TransactionScope) -> None:
        """Discard the work staged under *scope*."""
        ...


class TransactionScope(ABC):
    """
    Abstract base class for transaction scopes.

    A scope wraps exactly one message delivery. Store writes made inside it are
    either all made visible on commit or all discarded on rollback.

    Lifecycle guarantees:

    * Leaving ``async with`` normally commits, unless :meth:`set_rollback_only`
      was called, in which case the scope rolls back.
    * Leaving with an exception rolls back; the exception propagates.
    * ``on_commit`` hooks run only **after** a successful commit.
    * Once finished, further ``commit()``/``rollback()`` calls are no-ops.

    Example:
        ```python
        async with InMemoryTransactionScope() as scope:
            await store.append("SPRINGQ", "hello", scope)
            if payload == "rollback":
                scope.set_rollback_only()
        ```
    """

    def __init__(self) -> None:
        self.scope_id = uuid.uuid4().hex
        self._on_commit_hooks: deque[Callable[[], Awaitable[Any]]] = deque()
        self._resources: list[ITransactionalResource] = []
        self._rollback_only = False
        self._status = ScopeStatus.ACTIVE

    @property
    def status(self) -> ScopeStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status is ScopeStatus.ACTIVE

    @property
    def rollback_only(self) -> bool:
        return self._rollback_only

    def set_rollback_only(self) -> None:
        """Mark the scope so that its only possible outcome is rollback."""
        self._ensure_active("set_rollback_only")
        self._rollback_only = True

    def enlist(self, resource: ITransactionalResource) -> None:
        """Register a participant to be committed/rolled back with this scope."""
        self._ensure_active("enlist")
        if not any(r is resource for r in self._resources):
            self._resources.append(resource)

    def on_commit(self, callback: Callable[[], Awaitable[Any]]) -> None:
        """Run *callback* once the scope has committed; dropped on rollback."""
        self._on_commit_hooks.append(callback)

    async def trigger_commit_hooks(self) -> None:
        """Drain the on_commit queue. A failing hook is logged and skipped."""
        while self._on_commit_hooks:
            callback = self._on_commit_hooks.popleft()
            try:
                await callback()
            except Exception as exc:
                logger.error(
                    "on_commit hook failed for scope %s: %s",
                    self.scope_id,
                    exc,
                    exc_info=True,
                )

    async def commit(self) -> None:
        """Commit enlisted resources, then the backend transaction.

        Raises:
            TransactionError: If the scope is rollback-only or any participant
                fails; the scope is rolled back before raising.
        """
        if not self.is_active:
            return
        if self._rollback_only:
            await self.rollback()
            raise TransactionError(
                f"Scope {self.scope_id} is marked rollback-only and cannot commit"
            )
        try:
            for resource in self._resources:
                await resource.commit(self)
            await self._commit()
        except Exception as e:  # noqa: BLE001
            logger.warning("Commit of scope %s failed; rolling back", self.scope_id)
            try:
                await self.rollback()
            except TransactionError:
                logger.exception("Rollback after failed commit also failed")
            raise TransactionError(f"Failed to commit transaction: {e}") from e
        self._status = ScopeStatus.COMMITTED
        logger.debug("Scope %s committed", self.scope_id)

    async def rollback(self) -> None:
        """Discard enlisted work and roll back the backend transaction."""
        if not self.is_active:
            return
        self._status = ScopeStatus.ROLLED_BACK
        for resource in self._resources:
            try:
                await resource.rollback(self)
            except Exception:
                logger.exception(
                    "Resource %s failed to roll back scope %s",
                    type(resource).__name__,
                    self.scope_id,
                )
        try:
            await self._rollback()
        except Exception as e:  # noqa: BLE001
            raise TransactionError(f"Failed to rollback transaction: {e}") from e
        logger.debug("Scope %s rolled back", self.scope_id)

    async def _begin(self) -> None:  # noqa: B027
        """Open the backend transaction. Default: nothing to open."""

    @abstractmethod
    async def _commit(self) -> None:
        """Commit the backend transaction. Must be implemented by subclasses."""
        ...

    @abstractmethod
    async def _rollback(self) -> None:
        """Rollback the backend transaction. Must be implemented by subclasses."""
        ...

    def _ensure_active(self, operation: str) -> None:
        if not self.is_active:
            raise ScopeStateError(
                f"Cannot {operation} on scope {self.scope_id} "
                f"in state {self._status.value}"
            )

    async def __aenter__(self) -> TransactionScope:
        await self._begin()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """
        Exit the context manager.

        1. Success and not rollback-only: commit(), then trigger_commit_hooks()
        2. Rollback-only or exception: rollback() and skip hooks
        """
        if exc_type is None and not self._rollback_only:
            await self.commit()
            await self.trigger_commit_hooks()
        else:
            await self.rollback()
