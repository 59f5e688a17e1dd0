from recurring_orders.schemas.execution import (
    ErrorKind,
    ExecutionLogEntry,
    ExecutionResult,
    ExecutionStatus,
    ManualRunOutcome,
    ManualRunResult,
    NewExecutionLogEntry,
    PollResult,
    ServiceStats,
)
from recurring_orders.schemas.recurring_order import (
    Frequency,
    OrderBookStats,
    OrderItem,
    PaymentMethod,
    RecurringConfig,
    RecurringOrderDefinition,
    RestaurantRef,
)

__all__ = [
    "ErrorKind",
    "ExecutionLogEntry",
    "ExecutionResult",
    "ExecutionStatus",
    "ManualRunOutcome",
    "ManualRunResult",
    "NewExecutionLogEntry",
    "PollResult",
    "ServiceStats",
    "Frequency",
    "OrderBookStats",
    "OrderItem",
    "PaymentMethod",
    "RecurringConfig",
    "RecurringOrderDefinition",
    "RestaurantRef",
]
