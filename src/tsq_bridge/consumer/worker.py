"""TransactionalConsumer — worker pool turning deliveries into committed appends."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..correlation import correlation_scope
from ..domain.outcome import DeliveryState, Outcome
from ..messaging.dead_letter import DeadLetterHandler
from ..messaging.idempotency import CommitLedger
from ..messaging.retry import RetryPolicy
from ..ports.background_worker import IBackgroundWorker
from ..primitives.exceptions import DeadLetterError, DuplicateEntryError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..domain.message import Message
    from ..ports.channel import IMessageChannel
    from ..ports.transaction import TransactionScope

    MessageHandler = Callable[[Message, TransactionScope], Awaitable[Outcome]]
    ScopeFactory = Callable[[], TransactionScope]

logger = logging.getLogger("tsq_bridge.consumer")


@dataclass
class DeliveryReport:
    """Final state of one delivery plus the states it passed through."""

    message: Message
    state: DeliveryState = DeliveryState.RECEIVED
    history: list[DeliveryState] = field(
        default_factory=lambda: [DeliveryState.RECEIVED]
    )
    outcome: Outcome | None = None
    error: BaseException | None = None

    def advance(self, state: DeliveryState) -> None:
        self.state = state
        self.history.append(state)


@dataclass
class ConsumerStats:
    committed: int = 0
    rolled_back: int = 0
    dead_lettered: int = 0
    duplicates: int = 0
    failures: int = 0


class TransactionalConsumer(IBackgroundWorker):
    """Pulls messages from one destination and processes each in its own scope.

    For every delivery:

    1. A delivery whose ``message_id`` is already in the commit ledger is acked
       and skipped.
    2. A scope is opened from ``scope_factory`` and ``handler`` runs inside it,
       returning an :class:`Outcome`.
    3. COMMIT: the scope commits, the id is recorded and the message acked.
    4. ROLLBACK, or any exception (store failure, commit failure): the scope
       rolls back and the message is nacked for redelivery with the retry
       policy's backoff. Once ``max_attempts`` is reached it goes to the
       dead-letter handler and is dropped from the channel.

    ``pool_size`` worker tasks run concurrently. Each waits at most
    ``receive_timeout`` for a message, so :meth:`stop` is observed promptly;
    deliveries already being processed are allowed to finish.

    Usage::

        consumer = TransactionalConsumer(
            channel,
            "BROWNAD.REQUEST.QUEUE",
            StoreWriteHandler(store, "SPRINGQ", ContentDecisionPolicy()),
            in_memory_scope_factory,
            pool_size=4,
        )
        await consumer.start()
    """

    def __init__(
        self,
        channel: IMessageChannel,
        destination: str,
        handler: MessageHandler,
        scope_factory: ScopeFactory,
        *,
        pool_size: int = 1,
        receive_timeout: float = 1.0,
        shutdown_timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        dead_letter: DeadLetterHandler | None = None,
        ledger: CommitLedger | None = None,
    ) -> None:
        if pool_size < 1:
            raise ValueError("pool_size must be >= 1")
        if receive_timeout <= 0:
            raise ValueError("receive_timeout must be > 0")
        self._channel = channel
        self._destination = destination
        self._handler = handler
        self._scope_factory = scope_factory
        self._pool_size = pool_size
        self._receive_timeout = receive_timeout
        self._shutdown_timeout = shutdown_timeout
        self._retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self._dead_letter = (
            dead_letter if dead_letter is not None else DeadLetterHandler()
        )
        self._ledger = ledger if ledger is not None else CommitLedger()
        self._running = False
        self._tasks: list[asyncio.Task[None]] = []
        self._in_flight = 0
        self.stats = ConsumerStats()

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._run_loop(worker_id))
            for worker_id in range(self._pool_size)
        ]
        logger.info(
            "TransactionalConsumer started on %s (pool_size=%d)",
            self._destination,
            self._pool_size,
        )

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._tasks:
            _, pending = await asyncio.wait(
                self._tasks, timeout=self._receive_timeout + self._shutdown_timeout
            )
            for task in pending:
                task.cancel()
            if pending:
                logger.warning(
                    "Cancelled %d worker(s) that did not finish in time", len(pending)
                )
                with contextlib.suppress(asyncio.CancelledError):
                    await asyncio.gather(*pending, return_exceptions=True)
        self._tasks = []
        logger.info("TransactionalConsumer stopped")

    async def _run_loop(self, worker_id: int) -> None:
        while self._running:
            try:
                await self.process_next(self._receive_timeout)
            except Exception:
                logger.exception("Consumer worker %d error", worker_id)

    async def process_next(self, timeout: float | None = None) -> DeliveryReport | None:
        """Receive and process a single delivery; ``None`` if none arrived."""
        message = await self._channel.receive(
            self._destination,
            self._receive_timeout if timeout is None else timeout,
        )
        if message is None:
            return None
        return await self.process(message)

    async def drain(
        self,
        *,
        timeout: float = 0.05,
        max_messages: int | None = None,
    ) -> list[DeliveryReport]:
        """Process deliveries until none arrives within *timeout* (useful in tests)."""
        reports: list[DeliveryReport] = []
        while max_messages is None or len(reports) < max_messages:
            report = await self.process_next(timeout)
            if report is None:
                break
            reports.append(report)
        return reports

    async def process(self, message: Message) -> DeliveryReport:
        """Run one delivery through its transaction scope and settle it.

        A delivery cancelled mid-flight (e.g. by :meth:`stop` after
        ``shutdown_timeout``) is handed back to the channel before the
        cancellation propagates.
        """
        with correlation_scope(message.correlation_id, message.message_id):
            self._in_flight += 1
            try:
                return await self._process(message)
            except asyncio.CancelledError:
                await self._requeue_cancelled(message)
                raise
            finally:
                self._in_flight -= 1

    async def _requeue_cancelled(self, message: Message) -> None:
        logger.warning(
            "Delivery of %s cancelled; returning it to %s",
            message.message_id,
            message.destination,
        )
        try:
            await self._channel.nack(message, requeue=True)
        except Exception:
            logger.exception("Could not requeue cancelled %s", message.message_id)

    async def _process(self, message: Message) -> DeliveryReport:
        report = DeliveryReport(message=message)
        logger.debug(
            "Delivery %s attempt %d on %s",
            message.message_id,
            message.attempt,
            message.destination,
        )

        if await self._ledger.is_duplicate(message.message_id):
            return await self._settle_duplicate(report)

        try:
            async with self._scope_factory() as scope:
                report.advance(DeliveryState.STORE_WRITE_ATTEMPTED)
                report.outcome = await self._handler(message, scope)
                if report.outcome is Outcome.ROLLBACK:
                    scope.set_rollback_only()
        except DuplicateEntryError:
            return await self._settle_duplicate(report)
        except Exception as e:  # noqa: BLE001
            logger.exception(
                "Delivery of %s failed on attempt %d; rolled back",
                message.message_id,
                message.attempt,
            )
            report.outcome = Outcome.ROLLBACK
            report.error = e
            self.stats.failures += 1

        if report.outcome is Outcome.COMMIT:
            await self._ledger.mark_processed(message.message_id)
            await self._ack(message)
            report.advance(DeliveryState.COMMITTED)
            self.stats.committed += 1
            return report

        report.advance(DeliveryState.ROLLED_BACK)
        self.stats.rolled_back += 1
        await self._redeliver_or_dead_letter(report)
        return report

    async def _settle_duplicate(self, report: DeliveryReport) -> DeliveryReport:
        """Ack a delivery whose message was already committed by an earlier one."""
        message = report.message
        logger.info("Skipping already committed message %s", message.message_id)
        await self._ledger.mark_processed(message.message_id)
        await self._ack(message)
        report.advance(DeliveryState.DUPLICATE)
        self.stats.duplicates += 1
        return report

    async def _ack(self, message: Message) -> None:
        try:
            await self._channel.ack(message)
        except Exception:
            # The store already holds the commit; a redelivery is skipped as a
            # duplicate.
            logger.exception(
                "Ack of %s failed; it will be redelivered", message.message_id
            )

    async def _redeliver_or_dead_letter(self, report: DeliveryReport) -> None:
        message = report.message
        delay = self._retry_policy.redelivery_delay(message)
        if delay is not None:
            await self._channel.nack(message, requeue=True, delay=delay)
            logger.info(
                "Message %s returned for redelivery (attempt %d, delay %.2fs)",
                message.message_id,
                message.attempt,
                delay,
            )
            return

        reason = (
            f"Rolled back on attempt {message.attempt}: {report.error}"
            if report.error is not None
            else f"Rolled back on all {message.attempt} attempt(s)"
        )
        try:
            await self._dead_letter.route(message, reason, report.error)
        except DeadLetterError as e:
            logger.error("Message %s dead-lettered: %s", e.message_id, e)
        except Exception:
            logger.exception("Dead-letter callback failed for %s", message.message_id)
        await self._channel.nack(message, requeue=False)
        report.advance(DeliveryState.DEAD_LETTERED)
        self.stats.dead_lettered += 1
