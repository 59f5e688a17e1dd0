"""Payment validation with a pluggable validator boundary."""

from .base import BasePaymentValidator
from .models import NO_PAYMENT_METHOD, PaymentCheck, PaymentType
from .stub import StubPaymentValidator

__all__ = [
    "BasePaymentValidator",
    "NO_PAYMENT_METHOD",
    "PaymentCheck",
    "PaymentType",
    "StubPaymentValidator",
]
