"""
Recurring order service: the host-facing entry point.

The host constructs one service at its composition root and passes it to
whatever needs to start, stop or query it. Typical wiring:

    service = RecurringOrderService.from_config(AsyncSessionLocal)
    await service.start(book.due_orders, orders_api.materialize)
    ...
    stats = await service.get_service_stats()
    service.stop()
"""

from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recurring_orders.config import AppConfig, get_config
from recurring_orders.core.datetime_utils import utc_now
from recurring_orders.core.errors import ProviderError, ServiceNotStartedError
from recurring_orders.core.logging import get_logger
from recurring_orders.core.scheduler import (
    DEFAULT_INTERVAL_SECONDS,
    DueOrdersProvider,
    RecurringOrderScheduler,
)
from recurring_orders.schemas.execution import (
    ExecutionLogEntry,
    ManualRunOutcome,
    ManualRunResult,
    ServiceStats,
)
from recurring_orders.services.execution_log_store import DEFAULT_CAPACITY, ExecutionLogStore
from recurring_orders.services.executor import OrderMaterializer, RecurringOrderExecutor
from recurring_orders.services.notifications import (
    LoggingNotifier,
    NotificationSink,
    build_notifier,
)
from recurring_orders.services.payment_validation import (
    BasePaymentValidator,
    StubPaymentValidator,
)
from recurring_orders.services.stats import StatsAggregator

logger = get_logger(__name__)

DEFAULT_RETENTION_DAYS = 30

# UI-owned confirmation step: receives the pending count, returns True to proceed
ConfirmCallback = Callable[[int], Awaitable[bool]]


class RecurringOrderService:
    """Composes scheduler, executor, log store and stats for the host."""

    def __init__(
        self,
        store: ExecutionLogStore,
        validator: BasePaymentValidator | None = None,
        notifier: NotificationSink | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.validator = validator or StubPaymentValidator()
        self.notifier = notifier or LoggingNotifier()
        self.retention_days = retention_days
        self.scheduler = RecurringOrderScheduler(interval_seconds=interval_seconds)
        self.stats = StatsAggregator(store, clock=clock)
        self._executor: RecurringOrderExecutor | None = None

    @classmethod
    def from_config(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        config: AppConfig | None = None,
        validator: BasePaymentValidator | None = None,
    ) -> "RecurringOrderService":
        """Build a service from config.yml / environment settings."""
        config = config or get_config()
        store = ExecutionLogStore(
            session_factory, capacity=config.recurring_orders.log_capacity or DEFAULT_CAPACITY
        )
        notifier = build_notifier(
            config.notifications.webhook_url,
            timeout_seconds=config.notifications.timeout_seconds,
        )
        return cls(
            store,
            validator=validator,
            notifier=notifier,
            interval_seconds=config.recurring_orders.check_interval_seconds,
            retention_days=config.recurring_orders.log_retention_days,
        )

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    @property
    def executor(self) -> RecurringOrderExecutor | None:
        return self._executor

    async def start(
        self, due_orders_provider: DueOrdersProvider, materialize_order: OrderMaterializer
    ) -> None:
        """Start periodic execution. A no-op while already running."""
        if self.is_running:
            logger.debug("recurring_order_service_already_running")
            return

        self._executor = RecurringOrderExecutor(
            validator=self.validator,
            store=self.store,
            materialize_order=materialize_order,
            notifier=self.notifier,
        )
        await self.scheduler.start(due_orders_provider, self._executor)

    def stop(self) -> None:
        """Stop scheduling further polls. A no-op while already stopped."""
        self.scheduler.stop()

    async def wait_closed(self) -> None:
        await self.scheduler.wait_closed()

    async def execute_all_pending(self, confirm: ConfirmCallback | None = None) -> ManualRunResult:
        """
        Manually execute every pending recurring order.

        Args:
            confirm: UI confirmation step, called with the pending count only
                when there is something to run. Omitted means confirmed.

        Returns:
            ManualRunResult describing what happened

        Raises:
            ServiceNotStartedError: If start() was never called
        """
        if self._executor is None or not self.scheduler.is_configured:
            raise ServiceNotStartedError()

        try:
            pending = await self.scheduler.fetch_due_orders()
        except ProviderError as e:
            logger.bind(error=str(e)).error("manual_execution_lookup_failed")
            await self._signal(self.notifier.notify_manual_run_failed, str(e))
            return ManualRunResult(outcome=ManualRunOutcome.PROVIDER_FAILED)

        if not pending:
            logger.info("manual_execution_nothing_pending")
            await self._signal(self.notifier.notify_nothing_pending)
            return ManualRunResult(outcome=ManualRunOutcome.NOTHING_PENDING)

        try:
            if confirm is not None and not await confirm(len(pending)):
                logger.bind(pending=len(pending)).info("manual_execution_cancelled")
                return ManualRunResult(
                    outcome=ManualRunOutcome.CANCELLED, pending_count=len(pending)
                )

            logger.bind(pending=len(pending)).info("manual_execution_started")
            poll = await self.scheduler.run_orders(pending)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.bind(pending=len(pending), error=message).error("manual_execution_failed")
            await self._signal(self.notifier.notify_manual_run_failed, message)
            return ManualRunResult(outcome=ManualRunOutcome.FAILED, pending_count=len(pending))

        await self._signal(self.notifier.notify_batch_completed, poll.processed)
        return ManualRunResult(
            outcome=ManualRunOutcome.COMPLETED,
            pending_count=len(pending),
            poll=poll,
        )

    async def get_service_stats(self) -> ServiceStats:
        return await self.stats.compute(is_running=self.is_running)

    async def get_execution_logs(self, limit: int | None = None) -> list[ExecutionLogEntry]:
        return await self.store.list_entries(limit)

    async def clear_old_logs(self, days_to_keep: int | None = None) -> int | None:
        """
        Drop log entries older than ``days_to_keep`` days.

        Defaults to the configured retention. Returns the number of entries
        kept, or None when the store could not be cleaned.
        """
        return await self.store.clear_older_than(
            self.retention_days if days_to_keep is None else days_to_keep
        )

    async def _signal(self, notify: Callable[..., Awaitable[bool]], *args: object) -> None:
        try:
            await notify(*args)
        except Exception as e:
            logger.bind(error=str(e)).warning("notification_failed")
