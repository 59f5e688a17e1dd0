"""Payment validation models."""

from enum import Enum

from pydantic import BaseModel


class PaymentType(str, Enum):
    """Payment method types the validator knows how to classify."""

    WALLET = "wallet"
    CARD = "card"
    CASH = "cash"


NO_PAYMENT_METHOD = "no payment method configured"


class PaymentCheck(BaseModel):
    """Result of checking a payment method."""

    is_valid: bool
    payment_type: str | None = None
    reason: str | None = None  # Set when invalid
