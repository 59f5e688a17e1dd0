"""Tests for the bounded execution log store."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from recurring_orders.schemas.execution import ExecutionStatus, NewExecutionLogEntry
from recurring_orders.services.execution_log_store import ExecutionLogStore

pytestmark = pytest.mark.asyncio


def _success(recurring_order_id: str, order_id: str = "ORDER-1") -> NewExecutionLogEntry:
    return NewExecutionLogEntry(
        recurring_order_id=recurring_order_id,
        order_id=order_id,
        status=ExecutionStatus.SUCCESS,
    )


def _error(recurring_order_id: str, message: str = "boom") -> NewExecutionLogEntry:
    return NewExecutionLogEntry(
        recurring_order_id=recurring_order_id,
        status=ExecutionStatus.ERROR,
        error_message=message,
    )


class TestAppend:
    """Tests for ExecutionLogStore.append."""

    async def test_assigns_timestamp_at_write_time(self, log_store, clock):
        """Should stamp entries with the store's clock."""
        stored = await log_store.append(_success("recurring_1"))

        assert stored is not None
        assert stored.timestamp == clock.now

        entries = await log_store.list_entries()
        assert len(entries) == 1
        assert entries[0].timestamp == clock.now
        assert entries[0].recurring_order_id == "recurring_1"
        assert entries[0].order_id == "ORDER-1"
        assert entries[0].status == ExecutionStatus.SUCCESS
        assert entries[0].error_message is None

    async def test_lists_most_recent_first(self, log_store, clock):
        """Should return newest entries first."""
        for i in range(3):
            await log_store.append(_success(f"recurring_{i}"))
            clock.advance(seconds=1)

        entries = await log_store.list_entries()
        assert [e.recurring_order_id for e in entries] == [
            "recurring_2",
            "recurring_1",
            "recurring_0",
        ]

    async def test_same_timestamp_keeps_insertion_order(self, log_store):
        """Entries written at the same instant still read back newest first."""
        await log_store.append(_success("first"))
        await log_store.append(_error("second"))

        entries = await log_store.list_entries()
        assert [e.recurring_order_id for e in entries] == ["second", "first"]

    async def test_timestamps_never_go_backwards(self, log_store, clock):
        """A clock stepping back must not produce an older timestamp."""
        first = await log_store.append(_success("first"))
        clock.advance(minutes=-10)
        second = await log_store.append(_success("second"))

        assert second.timestamp == first.timestamp

    async def test_monotonic_across_store_instances(self, session_factory, clock):
        """A fresh store (restart) continues from the newest persisted timestamp."""
        first_store = ExecutionLogStore(session_factory, clock=clock)
        first = await first_store.append(_success("before_restart"))

        earlier_clock = lambda: clock.now - timedelta(hours=1)  # noqa: E731
        second_store = ExecutionLogStore(session_factory, clock=earlier_clock)
        second = await second_store.append(_success("after_restart"))

        assert second.timestamp >= first.timestamp

    async def test_write_failure_returns_none(self, log_store):
        """Should swallow database errors and report the lost entry."""
        error = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(log_store, "_evict_overflow", side_effect=error):
            stored = await log_store.append(_success("recurring_1"))

        assert stored is None
        assert await log_store.list_entries() == []


class TestUnreachableDatabase:
    """A session factory failing outside SQLAlchemy degrades every operation."""

    @pytest.fixture
    def unreachable_store(self, clock):
        session_factory = MagicMock(side_effect=ConnectionRefusedError("db unreachable"))
        return ExecutionLogStore(session_factory, clock=clock)

    async def test_append_returns_none(self, unreachable_store):
        assert await unreachable_store.append(_success("recurring_1")) is None

    async def test_reads_as_empty(self, unreachable_store):
        assert await unreachable_store.list_entries() == []
        assert await unreachable_store.count() == 0

    async def test_cleanup_reports_failure(self, unreachable_store):
        assert await unreachable_store.clear_older_than(7) is None


class TestCapacity:
    """Tests for FIFO eviction."""

    async def test_never_exceeds_capacity(self, log_store, clock):
        """101 appends against capacity 100 keep 100 entries, dropping the first."""
        for i in range(101):
            await log_store.append(_success(f"recurring_{i}"))
            clock.advance(seconds=1)

        entries = await log_store.list_entries()
        assert len(entries) == 100
        ids = {e.recurring_order_id for e in entries}
        assert "recurring_0" not in ids
        assert entries[0].recurring_order_id == "recurring_100"
        assert entries[-1].recurring_order_id == "recurring_1"

    async def test_small_capacity_evicts_oldest(self, session_factory, clock):
        """Should evict oldest entries first."""
        store = ExecutionLogStore(session_factory, capacity=2, clock=clock)
        for name in ("a", "b", "c"):
            await store.append(_success(name))
            clock.advance(seconds=1)

        entries = await store.list_entries()
        assert [e.recurring_order_id for e in entries] == ["c", "b"]
        assert await store.count() == 2

    async def test_rejects_invalid_capacity(self, session_factory):
        """Capacity must be at least one entry."""
        with pytest.raises(ValueError):
            ExecutionLogStore(session_factory, capacity=0)


class TestListEntries:
    """Tests for reading the log."""

    async def test_empty_store(self, log_store):
        """Should return an empty list when nothing was written."""
        assert await log_store.list_entries() == []
        assert await log_store.count() == 0

    async def test_limit(self, log_store, clock):
        """Should honour the limit, newest first."""
        for i in range(5):
            await log_store.append(_success(f"recurring_{i}"))
            clock.advance(seconds=1)

        entries = await log_store.list_entries(limit=2)
        assert [e.recurring_order_id for e in entries] == ["recurring_4", "recurring_3"]

    async def test_corrupted_rows_read_as_empty(self, log_store, db_session):
        """Undecodable persisted state is treated as an empty log."""
        await log_store.append(_success("recurring_1"))
        await db_session.execute(
            text(
                "INSERT INTO execution_logs (recurring_order_id, status, timestamp) "
                "VALUES ('recurring_2', 'exploded', '2026-03-15 12:00:00')"
            )
        )
        await db_session.commit()

        assert await log_store.list_entries() == []

    async def test_missing_table_reads_as_empty(self, log_store, db_engine):
        """A store whose table is gone degrades to empty instead of raising."""
        async with db_engine.begin() as conn:
            await conn.execute(text("DROP TABLE execution_logs"))

        assert await log_store.list_entries() == []
        assert await log_store.count() == 0
        assert await log_store.append(_success("recurring_1")) is None
        assert await log_store.clear_older_than(30) is None


class TestClearOlderThan:
    """Tests for retention cleanup."""

    async def test_removes_old_entries_and_returns_retained_count(self, log_store, clock):
        """Should drop entries older than the retention window."""
        await log_store.append(_success("old"))
        clock.advance(days=40)
        await log_store.append(_success("recent"))

        retained = await log_store.clear_older_than(30)

        assert retained == 1
        entries = await log_store.list_entries()
        assert [e.recurring_order_id for e in entries] == ["recent"]

    async def test_cutoff_boundary(self, log_store, clock):
        """An entry exactly at the cutoff is removed; one a second newer is kept."""
        start = clock.now
        await log_store.append(_success("at_cutoff"))
        clock.advance(seconds=1)
        await log_store.append(_success("just_inside"))

        clock.now = start + timedelta(days=7)
        retained = await log_store.clear_older_than(7)

        assert retained == 1
        entries = await log_store.list_entries()
        assert [e.recurring_order_id for e in entries] == ["just_inside"]

    async def test_zero_days_clears_everything_up_to_now(self, log_store, clock):
        """Zero retention removes every entry not newer than now."""
        await log_store.append(_success("a"))
        await log_store.append(_error("b"))

        assert await log_store.clear_older_than(0) == 0
        assert await log_store.list_entries() == []

    async def test_rejects_negative_days(self, log_store):
        """Negative retention is a caller error."""
        with pytest.raises(ValueError):
            await log_store.clear_older_than(-1)

    async def test_accepts_aware_clock(self, session_factory):
        """Timezone-aware clocks are normalized to naive UTC."""
        from datetime import UTC

        store = ExecutionLogStore(
            session_factory, clock=lambda: datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
        )
        stored = await store.append(_success("aware"))

        assert stored.timestamp == datetime(2026, 1, 1, 10, 0)
        assert stored.timestamp.tzinfo is None
