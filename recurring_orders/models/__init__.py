from recurring_orders.models.base import Base
from recurring_orders.models.execution_log import ExecutionLog

__all__ = [
    "Base",
    "ExecutionLog",
]
