"""
SQLAlchemy implementation of the keyed store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import distinct, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..persistence.models import TSQEntry
from ..ports.store import IKeyedStore
from ..primitives.exceptions import DuplicateEntryError, StoreError
from ..transaction.sqlalchemy import SQLAlchemyTransactionScope
from .validation import DEFAULT_MAX_QUEUE_NAME_LENGTH, validate_queue_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from ..ports.transaction import TransactionScope

logger = logging.getLogger("tsq_bridge.store")


class SQLAlchemyKeyedStore(IKeyedStore):
    """
    Durable keyed store writing ``tsq_entries`` rows.

    Appends go through the scope's session, so the row is part of the same
    database transaction and disappears if the scope rolls back. A
    ``(queue_name, message_id)`` pair is unique: appending a message that a
    previous delivery already committed raises :class:`DuplicateEntryError`.
    Reads use a fresh session from ``session_factory`` and only see committed
    rows.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        *,
        max_queue_name_length: int = DEFAULT_MAX_QUEUE_NAME_LENGTH,
    ) -> None:
        self._session_factory = session_factory
        self._max_queue_name_length = max_queue_name_length

    async def append(
        self,
        queue_name: str,
        value: str,
        scope: TransactionScope,
        *,
        message_id: str | None = None,
    ) -> None:
        validate_queue_name(queue_name, self._max_queue_name_length)
        if not isinstance(scope, SQLAlchemyTransactionScope):
            raise StoreError(
                f"SQLAlchemyKeyedStore requires a SQLAlchemyTransactionScope, "
                f"got {type(scope).__name__}",
                queue_name=queue_name,
            )
        try:
            scope.session.add(
                TSQEntry(queue_name=queue_name, value=value, message_id=message_id)
            )
            await scope.session.flush()
        except IntegrityError as e:
            if message_id is None:
                raise StoreError(
                    f"Failed to append to {queue_name}: {e}", queue_name=queue_name
                ) from e
            raise DuplicateEntryError(
                f"Message {message_id} is already in {queue_name}",
                queue_name=queue_name,
                message_id=message_id,
            ) from e
        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to append to {queue_name}: {e}", queue_name=queue_name
            ) from e
        logger.debug("Appended to %s in scope %s", queue_name, scope.scope_id)

    async def entries(self, queue_name: str) -> list[str]:
        stmt = (
            select(TSQEntry.value)
            .where(TSQEntry.queue_name == queue_name)
            .order_by(TSQEntry.id)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read {queue_name}: {e}", queue_name) from e

    async def queue_names(self) -> list[str]:
        stmt = select(distinct(TSQEntry.queue_name)).order_by(TSQEntry.queue_name)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list queues: {e}") from e
