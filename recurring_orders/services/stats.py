"""Aggregate statistics over the execution log, recomputed on every request."""

from collections.abc import Sequence
from datetime import datetime

from recurring_orders.core.datetime_utils import get_cutoff, to_naive_utc, utc_now
from recurring_orders.schemas.execution import ExecutionLogEntry, ExecutionStatus, ServiceStats
from recurring_orders.services.execution_log_store import Clock, ExecutionLogStore


def compute_success_rate(successful: int, total: int) -> float:
    """Percentage of successful executions, one decimal place; 0 when nothing ran."""
    if total <= 0:
        return 0.0
    return round(successful / total * 100, 1)


def summarize(
    entries: Sequence[ExecutionLogEntry],
    now: datetime | None = None,
    is_running: bool = False,
) -> ServiceStats:
    """Build ServiceStats from a snapshot of log entries."""
    cutoff = get_cutoff(hours=24, now=to_naive_utc(now) if now else utc_now())

    total = len(entries)
    successful = sum(1 for e in entries if e.status == ExecutionStatus.SUCCESS)
    failed = sum(1 for e in entries if e.status == ExecutionStatus.ERROR)
    last_24h = sum(1 for e in entries if e.timestamp > cutoff)

    return ServiceStats(
        total_executions=total,
        successful_executions=successful,
        failed_executions=failed,
        success_rate=compute_success_rate(successful, total),
        executions_last_24h=last_24h,
        is_running=is_running,
    )


class StatsAggregator:
    """Derives ServiceStats from the execution log store."""

    def __init__(self, store: ExecutionLogStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def compute(self, is_running: bool = False) -> ServiceStats:
        entries = await self._store.list_entries()
        return summarize(entries, now=self._clock(), is_running=is_running)
