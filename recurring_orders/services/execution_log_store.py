"""
Bounded, durable record of recurring order execution attempts.

Entries are stored in the ``execution_logs`` table and read back most recent
first. The table never holds more than ``capacity`` rows: every append evicts
the oldest rows beyond it. Failures never propagate to the caller; a failed
read yields an empty log and a failed write is reported by ``append``
returning None.
"""

from collections.abc import Callable
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recurring_orders.core.datetime_utils import get_cutoff, to_naive_utc, utc_now
from recurring_orders.core.errors import PersistenceError
from recurring_orders.core.logging import get_logger
from recurring_orders.models.execution_log import ExecutionLog
from recurring_orders.schemas.execution import (
    ExecutionLogEntry,
    ExecutionStatus,
    NewExecutionLogEntry,
)

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100

Clock = Callable[[], datetime]


class ExecutionLogStore:
    """Append-only execution log with FIFO eviction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        capacity: int = DEFAULT_CAPACITY,
        clock: Clock = utc_now,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._session_factory = session_factory
        self._capacity = capacity
        self._clock = clock

    @property
    def capacity(self) -> int:
        return self._capacity

    def _now(self) -> datetime:
        return to_naive_utc(self._clock())

    async def append(self, entry: NewExecutionLogEntry) -> ExecutionLogEntry | None:
        """
        Record an execution attempt.

        The timestamp is assigned here and never goes backwards relative to
        the newest stored entry, even across restarts.

        Args:
            entry: Attempt outcome without a timestamp

        Returns:
            The stored entry, or None when the write failed
        """
        try:
            async with self._session_factory() as session:
                latest = await session.scalar(select(func.max(ExecutionLog.timestamp)))
                timestamp = self._now()
                if latest is not None and latest > timestamp:
                    timestamp = latest

                row = ExecutionLog(
                    recurring_order_id=entry.recurring_order_id,
                    order_id=entry.order_id,
                    status=entry.status.value,
                    timestamp=timestamp,
                    error_message=entry.error_message,
                )
                session.add(row)
                await session.flush()
                await self._evict_overflow(session)
                await session.commit()
        except Exception as e:
            logger.bind(
                recurring_order_id=entry.recurring_order_id,
                status=entry.status.value,
                error=str(e),
            ).error("execution_log_write_failed")
            return None

        logger.bind(recurring_order_id=entry.recurring_order_id).debug("execution_log_saved")
        return ExecutionLogEntry(
            recurring_order_id=entry.recurring_order_id,
            order_id=entry.order_id,
            status=entry.status,
            error_message=entry.error_message,
            timestamp=timestamp,
        )

    async def _evict_overflow(self, session: AsyncSession) -> None:
        oldest_kept = await session.scalar(
            select(ExecutionLog.id)
            .order_by(ExecutionLog.id.desc())
            .offset(self._capacity - 1)
            .limit(1)
        )
        if oldest_kept is None:
            return
        await session.execute(
            delete(ExecutionLog)
            .where(ExecutionLog.id < oldest_kept)
            .execution_options(synchronize_session=False)
        )

    async def list_entries(self, limit: int | None = None) -> list[ExecutionLogEntry]:
        """Return stored entries, most recent first. Unreadable state reads as empty."""
        try:
            return await self._read_entries(limit)
        except PersistenceError as e:
            logger.bind(error=str(e)).error("execution_log_read_failed")
            return []

    async def _read_entries(self, limit: int | None) -> list[ExecutionLogEntry]:
        query = select(ExecutionLog).order_by(ExecutionLog.id.desc())
        if limit is not None:
            query = query.limit(limit)

        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
            return [_to_entry(row) for row in rows]
        except Exception as e:
            raise PersistenceError(str(e)) from e

    async def count(self) -> int:
        """Number of stored entries (0 when the log cannot be read)."""
        try:
            async with self._session_factory() as session:
                return await session.scalar(select(func.count(ExecutionLog.id))) or 0
        except Exception as e:
            logger.bind(error=str(e)).error("execution_log_count_failed")
            return 0

    async def clear_older_than(self, retention_days: int) -> int | None:
        """
        Remove entries with ``timestamp <= now - retention_days``.

        An entry exactly at the cutoff is removed; only strictly newer
        entries are kept.

        Args:
            retention_days: Days of history to keep

        Returns:
            Number of entries retained, or None when the cleanup failed
        """
        if retention_days < 0:
            raise ValueError("retention_days must not be negative")

        cutoff = get_cutoff(days=retention_days, now=self._now())
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(ExecutionLog)
                    .where(ExecutionLog.timestamp <= cutoff)
                    .execution_options(synchronize_session=False)
                )
                retained = await session.scalar(select(func.count(ExecutionLog.id))) or 0
                await session.commit()
        except Exception as e:
            logger.bind(retention_days=retention_days, error=str(e)).error(
                "execution_log_cleanup_failed"
            )
            return None

        logger.bind(retention_days=retention_days, retained=retained).info(
            "execution_logs_cleared"
        )
        return retained


def _to_entry(row: ExecutionLog) -> ExecutionLogEntry:
    """Map a stored row to an entry; raises ValueError on undecodable rows."""
    return ExecutionLogEntry(
        recurring_order_id=row.recurring_order_id,
        order_id=row.order_id,
        status=ExecutionStatus(row.status),
        timestamp=row.timestamp,
        error_message=row.error_message,
    )
