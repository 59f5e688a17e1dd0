"""
APScheduler integration for recurring order polling.

``start`` runs an immediate poll, then registers an interval job on an
in-process ``AsyncIOScheduler`` that polls every ``interval_seconds``.

Polls never overlap. The interval job is limited to one running instance
(late ticks are coalesced, not queued), and every poll, whether scheduled,
immediate or left over from before a restart, runs under a single lock.

``stop`` is cooperative. It shuts the APScheduler down so no further tick
fires; a poll already in flight runs to completion. Await ``wait_closed()``
to observe that completion.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from recurring_orders.core.errors import ProviderError, ServiceNotStartedError
from recurring_orders.core.logging import get_logger
from recurring_orders.schemas.execution import ErrorKind, PollResult
from recurring_orders.schemas.recurring_order import RecurringOrderDefinition
from recurring_orders.services.executor import RecurringOrderExecutor

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0
POLL_JOB_ID = "recurring_order_poll"

DueOrdersProvider = Callable[[], Awaitable[Sequence[RecurringOrderDefinition]]]


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class RecurringOrderScheduler:
    """Drives periodic polls of the due-orders provider."""

    def __init__(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        due_orders_provider: DueOrdersProvider | None = None,
        executor: RecurringOrderExecutor | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._state = SchedulerState.STOPPED
        self._provider = due_orders_provider
        self._executor = executor
        self._aps: AsyncIOScheduler | None = None
        self._generation = 0
        self._poll_lock = asyncio.Lock()
        self._in_flight: set[asyncio.Task[PollResult]] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def is_configured(self) -> bool:
        return self._provider is not None and self._executor is not None

    async def start(
        self, due_orders_provider: DueOrdersProvider, executor: RecurringOrderExecutor
    ) -> None:
        """Register collaborators, poll once immediately, then poll every interval."""
        if self.is_running:
            logger.debug("scheduler_already_running")
            return

        self._provider = due_orders_provider
        self._executor = executor
        self._state = SchedulerState.RUNNING
        self._generation += 1
        generation = self._generation

        logger.bind(interval_seconds=self.interval_seconds).info("scheduler_started")

        # Waits for a poll left over from before a restart
        await self._spawn_poll()

        # stop(), or stop() and a new start(), may have happened during the first poll
        if not self.is_running or generation != self._generation:
            return

        aps = AsyncIOScheduler(timezone="UTC")
        aps.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=POLL_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        aps.start()
        self._aps = aps

    def stop(self) -> None:
        """Prevent further polls. Does not interrupt a poll in flight."""
        if not self.is_running:
            return

        self._state = SchedulerState.STOPPED
        aps, self._aps = self._aps, None
        if aps is not None and aps.running:
            aps.shutdown(wait=False)
        logger.info("scheduler_stopped")

    async def wait_closed(self) -> None:
        """Wait until every in-flight poll has finished naturally."""
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        # Let the deferred APScheduler shutdown run
        await asyncio.sleep(0)

    async def _tick(self) -> None:
        if not self.is_running:
            return
        await self._spawn_poll()

    async def _spawn_poll(self) -> PollResult:
        # Shielded so an APScheduler shutdown cancelling the tick leaves the poll running
        task = asyncio.create_task(self.check_pending_orders())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def check_pending_orders(self) -> PollResult:
        """
        Run one poll: fetch the due orders and execute them sequentially.

        Never raises, and never runs concurrently with another poll. A
        failing provider aborts this poll only and is reported on the
        returned PollResult.
        """
        async with self._poll_lock:
            try:
                return await self._poll()
            except Exception as e:
                logger.bind(error=str(e) or e.__class__.__name__).error("scheduler_poll_failed")
                return PollResult(
                    error_kind=ErrorKind.POLL_FAILED, error_message=str(e) or e.__class__.__name__
                )

    async def _poll(self) -> PollResult:
        if self._provider is None or self._executor is None:
            logger.debug("scheduler_not_configured")
            return PollResult()

        try:
            due_orders = await self.fetch_due_orders()
        except ProviderError as e:
            logger.bind(error=str(e)).error("due_orders_lookup_failed")
            return PollResult(error_kind=ErrorKind.PROVIDER_FAILED, error_message=str(e))

        if not due_orders:
            return PollResult()

        logger.bind(count=len(due_orders)).info("pending_recurring_orders_found")
        return await self.run_orders(due_orders)

    async def run_orders(self, orders: Sequence[RecurringOrderDefinition]) -> PollResult:
        """Execute the given orders sequentially, in order, with the registered executor."""
        if self._executor is None:
            raise ServiceNotStartedError("no executor registered")

        results = await self._executor.execute_many(orders)
        poll = PollResult(results=results)
        logger.bind(
            processed=poll.processed, succeeded=poll.succeeded, failed=poll.failed
        ).info("pending_recurring_orders_processed")
        return poll

    async def fetch_due_orders(self) -> list[RecurringOrderDefinition]:
        """Ask the provider for the current due set, wrapping failures in ProviderError."""
        if self._provider is None:
            raise ProviderError("no due-orders provider registered")
        try:
            return list(await self._provider())
        except Exception as e:
            raise ProviderError(str(e) or e.__class__.__name__) from e
