"""
Notification signals raised by recurring order execution.

Delivery mechanics (push, in-app alerts) belong to the host. This module only
builds the human-readable messages and hands them to a sink. Sinks are
fire-and-forget: a failing sink must never affect execution or logging.
"""

from abc import ABC, abstractmethod

import httpx
from pydantic import BaseModel

from recurring_orders.core.logging import get_logger
from recurring_orders.schemas.recurring_order import RecurringOrderDefinition

logger = get_logger(__name__)


class Notification(BaseModel):
    """A user-facing message."""

    kind: str
    title: str
    body: str
    recurring_order_id: str | None = None
    order_id: str | None = None


def short_order_number(order_id: str) -> str:
    """Last 8 characters of an order id, upper-cased, for display."""
    return order_id[-8:].upper()


def build_success_notification(order: RecurringOrderDefinition, order_id: str) -> Notification:
    return Notification(
        kind="success",
        title="Recurring order placed",
        body=(
            f"Your recurring order from {order.restaurant_name} was processed successfully.\n\n"
            f"Order number: {short_order_number(order_id)}"
        ),
        recurring_order_id=order.id,
        order_id=order_id,
    )


def build_payment_failure_notification(
    order: RecurringOrderDefinition, reason: str
) -> Notification:
    return Notification(
        kind="payment_failure",
        title="Payment problem",
        body=(
            f"We couldn't process the payment for your recurring order from "
            f"{order.restaurant_name} ({reason}). Please review your payment method."
        ),
        recurring_order_id=order.id,
    )


def build_execution_failure_notification(
    order: RecurringOrderDefinition, message: str
) -> Notification:
    return Notification(
        kind="execution_failure",
        title="Recurring order failed",
        body=f"Your recurring order from {order.restaurant_name} could not be placed: {message}",
        recurring_order_id=order.id,
    )


def build_nothing_pending_notification() -> Notification:
    return Notification(
        kind="nothing_pending",
        title="No pending orders",
        body="There are no recurring orders pending execution.",
    )


def build_batch_completed_notification(count: int) -> Notification:
    noun = "order" if count == 1 else "orders"
    return Notification(
        kind="batch_completed",
        title="Completed!",
        body=f"All pending recurring orders have been processed ({count} {noun}).",
    )


def build_manual_run_failed_notification(message: str) -> Notification:
    return Notification(
        kind="manual_run_failed",
        title="Error",
        body=f"Pending orders could not be executed: {message}",
    )


class NotificationSink(ABC):
    """Receives the signals raised while executing recurring orders."""

    @abstractmethod
    async def send(self, notification: Notification) -> bool:
        """Deliver a notification. Returns True when delivered."""
        pass

    async def notify_success(self, order: RecurringOrderDefinition, order_id: str) -> bool:
        return await self.send(build_success_notification(order, order_id))

    async def notify_payment_failure(self, order: RecurringOrderDefinition, reason: str) -> bool:
        return await self.send(build_payment_failure_notification(order, reason))

    async def notify_execution_failure(
        self, order: RecurringOrderDefinition, message: str
    ) -> bool:
        return await self.send(build_execution_failure_notification(order, message))

    async def notify_nothing_pending(self) -> bool:
        return await self.send(build_nothing_pending_notification())

    async def notify_batch_completed(self, count: int) -> bool:
        return await self.send(build_batch_completed_notification(count))

    async def notify_manual_run_failed(self, message: str) -> bool:
        return await self.send(build_manual_run_failed_notification(message))


class LoggingNotifier(NotificationSink):
    """Default sink: writes notifications to the application log."""

    async def send(self, notification: Notification) -> bool:
        logger.bind(
            kind=notification.kind,
            recurring_order_id=notification.recurring_order_id,
            order_id=notification.order_id,
        ).info(f"notification: {notification.title} - {notification.body}")
        return True


class WebhookNotifier(NotificationSink):
    """Posts notifications as JSON to a webhook URL."""

    def __init__(self, webhook_url: str, timeout_seconds: float = 10.0) -> None:
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds

    async def send(self, notification: Notification) -> bool:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            try:
                resp = await client.post(self.webhook_url, json=notification.model_dump())

                if resp.status_code not in (200, 201, 202, 204):
                    logger.bind(
                        status=resp.status_code,
                        body=resp.text[:500],
                        kind=notification.kind,
                    ).error("notification_webhook_failed")
                    return False

                logger.bind(kind=notification.kind).debug("notification_webhook_sent")
                return True

            except httpx.TimeoutException:
                logger.bind(kind=notification.kind).error("notification_webhook_timeout")
                return False
            except httpx.HTTPError as e:
                logger.bind(kind=notification.kind, error=str(e)).error(
                    "notification_webhook_error"
                )
                return False


def build_notifier(webhook_url: str = "", timeout_seconds: float = 10.0) -> NotificationSink:
    """Webhook sink when a URL is configured, log-only sink otherwise."""
    if webhook_url:
        return WebhookNotifier(webhook_url, timeout_seconds=timeout_seconds)
    return LoggingNotifier()
