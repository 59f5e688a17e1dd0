"""Recurring order execution history model."""

from datetime import datetime

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from recurring_orders.models.base import Base


class ExecutionLog(Base):
    """Records each execution attempt of a recurring order."""

    __tablename__ = "execution_logs"

    # Autoincrement id doubles as the insertion order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recurring_order_id: Mapped[str] = mapped_column(String(100), index=True)
    order_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20))  # success, error
    timestamp: Mapped[datetime] = mapped_column(index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
