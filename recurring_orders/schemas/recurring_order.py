"""Recurring order definitions as supplied by the host application."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Frequency(str, Enum):
    """How often a recurring order repeats."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"  # Every custom_days days


class RecurringConfig(BaseModel):
    """Schedule of a recurring order."""

    frequency: Frequency = Frequency.WEEKLY
    hour: int = Field(default=12, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    custom_days: int = Field(default=7, ge=1)


class PaymentMethod(BaseModel):
    """Configured payment method.

    Only ``type`` is interpreted here (wallet, card or cash). Method-specific
    fields such as a wallet id or a card's last digits are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    type: str | None = None


class RestaurantRef(BaseModel):
    """Reference to the restaurant an order is placed with."""

    id: str
    name: str | None = None


class OrderItem(BaseModel):
    """One line of the order template."""

    product_id: str
    name: str | None = None
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(default=0.0, ge=0)


class RecurringOrderDefinition(BaseModel):
    """Saved template that periodically produces concrete orders."""

    id: str
    restaurant: RestaurantRef | None = None
    items: list[OrderItem] = Field(default_factory=list)
    payment_method: PaymentMethod | None = None
    recurring_config: RecurringConfig | None = None
    is_active: bool = True
    next_execution: datetime | None = None
    last_executed: datetime | None = None
    execution_count: int = 0
    total: float = 0.0

    @property
    def restaurant_name(self) -> str:
        if self.restaurant and self.restaurant.name:
            return self.restaurant.name
        return "your restaurant"


class OrderBookStats(BaseModel):
    """Totals across a set of recurring order definitions."""

    total_orders: int = 0
    active_orders: int = 0
    total_executions: int = 0
    total_saved: float = 0.0
