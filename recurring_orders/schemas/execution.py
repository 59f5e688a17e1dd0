"""Execution log entries, statistics and per-attempt results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExecutionStatus(str, Enum):
    """Outcome recorded for an execution attempt."""

    SUCCESS = "success"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Why an attempt or a poll did not succeed."""

    PAYMENT_INVALID = "payment_invalid"
    MATERIALIZATION_FAILED = "materialization_failed"
    PROVIDER_FAILED = "provider_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    POLL_FAILED = "poll_failed"


class NewExecutionLogEntry(BaseModel):
    """Entry as handed to the log store, before a timestamp is assigned."""

    recurring_order_id: str
    order_id: str | None = None
    status: ExecutionStatus
    error_message: str | None = None


class ExecutionLogEntry(NewExecutionLogEntry):
    """Immutable record of one execution attempt."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime


class ServiceStats(BaseModel):
    """Aggregate counters derived from the execution log."""

    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    success_rate: float = Field(default=0.0, ge=0, le=100)
    executions_last_24h: int = 0
    is_running: bool = False


class ExecutionResult(BaseModel):
    """What happened during one execution attempt."""

    recurring_order_id: str
    status: ExecutionStatus
    order_id: str | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    log_written: bool = True


class PollResult(BaseModel):
    """Outcome of one pass over the due orders."""

    results: list[ExecutionResult] = Field(default_factory=list)
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == ExecutionStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self.processed - self.succeeded


class ManualRunOutcome(str, Enum):
    """Result of a user-triggered run of all pending orders."""

    NOTHING_PENDING = "nothing_pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    PROVIDER_FAILED = "provider_failed"
    FAILED = "failed"


class ManualRunResult(BaseModel):
    """Outcome of execute_all_pending."""

    outcome: ManualRunOutcome
    pending_count: int = 0
    poll: PollResult | None = None
