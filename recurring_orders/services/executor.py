"""
Execution of a single due recurring order.

One attempt is: validate payment, materialize the order, notify, log. Exactly
one execution log entry is appended per attempt whichever branch is taken, and
no exception raised while handling one order escapes ``execute``.
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from recurring_orders.core.errors import MaterializationError
from recurring_orders.core.logging import get_logger
from recurring_orders.schemas.execution import (
    ErrorKind,
    ExecutionLogEntry,
    ExecutionResult,
    ExecutionStatus,
    NewExecutionLogEntry,
)
from recurring_orders.schemas.recurring_order import RecurringOrderDefinition
from recurring_orders.services.execution_log_store import ExecutionLogStore
from recurring_orders.services.notifications import NotificationSink
from recurring_orders.services.payment_validation import BasePaymentValidator, PaymentCheck

logger = get_logger(__name__)

# Host order-creation pathway: recurring order id -> new order id
OrderMaterializer = Callable[[str], Awaitable[str]]


class RecurringOrderExecutor:
    """Runs execution attempts against the host's materializer."""

    def __init__(
        self,
        validator: BasePaymentValidator,
        store: ExecutionLogStore,
        materialize_order: OrderMaterializer,
        notifier: NotificationSink,
    ) -> None:
        self._validator = validator
        self._store = store
        self._materialize_order = materialize_order
        self._notifier = notifier

    async def execute(self, order: RecurringOrderDefinition) -> ExecutionResult:
        """Perform one execution attempt and record its outcome."""
        log = logger.bind(recurring_order_id=order.id)
        log.info("processing_recurring_order")

        check = await self._check_payment(order)
        if not check.is_valid:
            reason = check.reason or "payment method invalid"
            log.bind(reason=reason).warning("payment_validation_failed")
            await self._signal(self._notifier.notify_payment_failure, order, reason)
            return await self._record_failure(order, ErrorKind.PAYMENT_INVALID, reason)

        try:
            new_order_id = await self._materialize_order(order.id)
            if not new_order_id:
                raise MaterializationError("materializer returned no order id")
        except Exception as e:
            message = str(e) or e.__class__.__name__
            log.bind(error=message).error("recurring_order_execution_failed")
            await self._signal(self._notifier.notify_execution_failure, order, message)
            return await self._record_failure(order, ErrorKind.MATERIALIZATION_FAILED, message)

        log.bind(order_id=new_order_id).info("recurring_order_executed")
        await self._signal(self._notifier.notify_success, order, new_order_id)
        stored = await self._append(
            NewExecutionLogEntry(
                recurring_order_id=order.id,
                order_id=new_order_id,
                status=ExecutionStatus.SUCCESS,
            )
        )
        return ExecutionResult(
            recurring_order_id=order.id,
            status=ExecutionStatus.SUCCESS,
            order_id=new_order_id,
            error_kind=None if stored is not None else ErrorKind.PERSISTENCE_FAILED,
            log_written=stored is not None,
        )

    async def execute_many(
        self, orders: Sequence[RecurringOrderDefinition]
    ) -> list[ExecutionResult]:
        """Execute orders one after another, in the order given."""
        return [await self.execute(order) for order in orders]

    async def _check_payment(self, order: RecurringOrderDefinition) -> PaymentCheck:
        try:
            return await self._validator.check(order.payment_method)
        except Exception as e:
            logger.bind(recurring_order_id=order.id, error=str(e)).error(
                "payment_validation_error"
            )
            return PaymentCheck(is_valid=False, reason=f"payment validation error: {e}")

    async def _record_failure(
        self, order: RecurringOrderDefinition, kind: ErrorKind, message: str
    ) -> ExecutionResult:
        stored = await self._append(
            NewExecutionLogEntry(
                recurring_order_id=order.id,
                order_id=None,
                status=ExecutionStatus.ERROR,
                error_message=message,
            )
        )
        return ExecutionResult(
            recurring_order_id=order.id,
            status=ExecutionStatus.ERROR,
            error_kind=kind,
            error_message=message,
            log_written=stored is not None,
        )

    async def _append(self, entry: NewExecutionLogEntry) -> ExecutionLogEntry | None:
        try:
            return await self._store.append(entry)
        except Exception as e:
            logger.bind(recurring_order_id=entry.recurring_order_id, error=str(e)).error(
                "execution_log_write_failed"
            )
            return None

    async def _signal(self, notify: Callable[..., Awaitable[bool]], *args: Any) -> None:
        try:
            await notify(*args)
        except Exception as e:
            logger.bind(error=str(e)).warning("notification_failed")
