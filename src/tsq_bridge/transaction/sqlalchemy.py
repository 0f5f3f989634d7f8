"""
SQLAlchemy implementation of the per-delivery transaction scope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..ports.transaction import TransactionScope
from ..primitives.exceptions import ScopeStateError, TransactionError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncSession

    AsyncSessionFactory = Callable[[], AsyncSession]


class SQLAlchemyTransactionScope(TransactionScope):
    """
    Transaction scope backed by a SQLAlchemy ``AsyncSession``.

    The scope owns its session: it is created from ``session_factory`` on
    enter, a transaction is begun, and the session is closed on exit.

    ```python
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with SQLAlchemyTransactionScope(factory) as scope:
        await store.append("SPRINGQ", "hello", scope)
    ```

    Stores that persist through SQLAlchemy write directly into
    :attr:`session`, so their rows share the scope's database transaction.
    """

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    @property
    def session(self) -> AsyncSession:
        """Get the active session. Raises if the scope was not entered."""
        if self._session is None:
            raise ScopeStateError(
                f"Scope {self.scope_id} has no session; use it as `async with`"
            )
        return self._session

    async def _begin(self) -> None:
        try:
            self._session = self._session_factory()
            if not self._session.in_transaction():
                await self._session.begin()
        except Exception as e:  # noqa: BLE001
            raise TransactionError(f"Failed to begin transaction: {e}") from e

    async def _commit(self) -> None:
        await self.session.commit()

    async def _rollback(self) -> None:
        if self._session is not None and self._session.in_transaction():
            await self._session.rollback()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Commit or rollback via the base class, then close the session."""
        try:
            await super().__aexit__(exc_type, exc_val, exc_tb)
        finally:
            if self._session is not None:
                try:
                    await self._session.close()
                except Exception as e:  # noqa: BLE001
                    raise TransactionError(f"Failed to close session: {e}") from e


def sqlalchemy_scope_factory(
    session_factory: AsyncSessionFactory,
) -> Callable[[], SQLAlchemyTransactionScope]:
    """Bind *session_factory* into a zero-argument scope factory."""

    def factory() -> SQLAlchemyTransactionScope:
        return SQLAlchemyTransactionScope(session_factory)

    return factory
