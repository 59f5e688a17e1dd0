"""
Schedule arithmetic for recurring order definitions.

Deciding which definitions are due belongs to the host. These helpers cover
the common case: definitions carrying a RecurringConfig and a
``next_execution`` timestamp, plus an in-memory DefinitionBook that exposes a
ready-made due-orders provider.

Usage:
    book = DefinitionBook(definitions)
    await service.start(book.due_orders, materialize_order)
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta

from recurring_orders.core.datetime_utils import add_months, to_naive_utc, utc_now
from recurring_orders.core.logging import get_logger
from recurring_orders.schemas.recurring_order import (
    Frequency,
    OrderBookStats,
    RecurringConfig,
    RecurringOrderDefinition,
)

logger = get_logger(__name__)


def calculate_next_execution(config: RecurringConfig, now: datetime | None = None) -> datetime:
    """
    Compute the next execution time for a schedule.

    The time of day is set to ``hour:minute`` on the reference date, then
    moved forward according to the frequency:

    - daily: the next day unless that time is still ahead today
    - weekly: seven days later
    - monthly: one calendar month later (day clamped to month end)
    - custom: ``custom_days`` days later

    Args:
        config: Schedule of the recurring order
        now: Reference point, defaults to the current UTC time

    Returns:
        Naive UTC datetime of the next execution
    """
    now = to_naive_utc(now) if now else utc_now()
    candidate = now.replace(hour=config.hour, minute=config.minute, second=0, microsecond=0)

    if config.frequency == Frequency.DAILY:
        if candidate <= now:
            candidate += timedelta(days=1)
    elif config.frequency == Frequency.WEEKLY:
        candidate += timedelta(days=7)
    elif config.frequency == Frequency.MONTHLY:
        candidate = add_months(candidate, 1)
    else:
        candidate += timedelta(days=config.custom_days)

    return candidate


def is_due(definition: RecurringOrderDefinition, now: datetime | None = None) -> bool:
    """Active definitions whose next execution is at or before now."""
    if not definition.is_active or definition.next_execution is None:
        return False
    now = to_naive_utc(now) if now else utc_now()
    return to_naive_utc(definition.next_execution) <= now


def select_due_orders(
    definitions: Iterable[RecurringOrderDefinition], now: datetime | None = None
) -> list[RecurringOrderDefinition]:
    """Due definitions, in the order given."""
    now = to_naive_utc(now) if now else utc_now()
    return [d for d in definitions if is_due(d, now)]


def upcoming_orders(
    definitions: Iterable[RecurringOrderDefinition],
    now: datetime | None = None,
    hours_ahead: int = 24,
) -> list[RecurringOrderDefinition]:
    """Active definitions executing within the next ``hours_ahead`` hours."""
    now = to_naive_utc(now) if now else utc_now()
    horizon = now + timedelta(hours=hours_ahead)
    return [
        d
        for d in definitions
        if d.is_active
        and d.next_execution is not None
        and to_naive_utc(d.next_execution) <= horizon
    ]


def advance_after_execution(
    definition: RecurringOrderDefinition, now: datetime | None = None
) -> RecurringOrderDefinition:
    """Copy of the definition with its counters and next execution moved forward."""
    now = to_naive_utc(now) if now else utc_now()
    next_execution = (
        calculate_next_execution(definition.recurring_config, now)
        if definition.recurring_config
        else None
    )
    return definition.model_copy(
        update={
            "execution_count": definition.execution_count + 1,
            "last_executed": now,
            "next_execution": next_execution,
        }
    )


class DefinitionBook:
    """In-memory set of recurring order definitions fed by the host."""

    def __init__(
        self,
        definitions: Iterable[RecurringOrderDefinition] = (),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._definitions: dict[str, RecurringOrderDefinition] = {d.id: d for d in definitions}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, recurring_order_id: str) -> RecurringOrderDefinition | None:
        return self._definitions.get(recurring_order_id)

    def all(self) -> list[RecurringOrderDefinition]:
        return list(self._definitions.values())

    def upsert(self, definition: RecurringOrderDefinition) -> None:
        """Add or replace a definition, computing next_execution when missing."""
        if definition.next_execution is None and definition.recurring_config:
            definition = definition.model_copy(
                update={
                    "next_execution": calculate_next_execution(
                        definition.recurring_config, self._clock()
                    )
                }
            )
        self._definitions[definition.id] = definition

    def replace_all(self, definitions: Sequence[RecurringOrderDefinition]) -> None:
        self._definitions = {}
        for definition in definitions:
            self.upsert(definition)

    def remove(self, recurring_order_id: str) -> None:
        self._definitions.pop(recurring_order_id, None)

    async def due_orders(self) -> list[RecurringOrderDefinition]:
        """Due-orders provider for the scheduler."""
        return select_due_orders(self._definitions.values(), self._clock())

    def record_execution(self, recurring_order_id: str) -> RecurringOrderDefinition | None:
        """Advance a definition's schedule after the host placed its order."""
        definition = self._definitions.get(recurring_order_id)
        if definition is None:
            logger.bind(recurring_order_id=recurring_order_id).warning(
                "recurring_order_definition_not_found"
            )
            return None
        advanced = advance_after_execution(definition, self._clock())
        self._definitions[recurring_order_id] = advanced
        return advanced

    def order_stats(self) -> OrderBookStats:
        """Counts and money placed through the book's definitions."""
        definitions = self._definitions.values()
        return OrderBookStats(
            total_orders=len(self._definitions),
            active_orders=sum(1 for d in definitions if d.is_active),
            total_executions=sum(d.execution_count for d in definitions),
            total_saved=round(sum(d.total * d.execution_count for d in definitions), 2),
        )
