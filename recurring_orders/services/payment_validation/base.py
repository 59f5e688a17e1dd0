"""Abstract base class for payment validators."""

from abc import ABC, abstractmethod

from recurring_orders.schemas.recurring_order import PaymentMethod

from .models import PaymentCheck


class BasePaymentValidator(ABC):
    """Decides whether a configured payment method can be charged right now."""

    provider_name: str = "unknown"

    @abstractmethod
    async def check(self, payment_method: PaymentMethod | None) -> PaymentCheck:
        """
        Classify a payment method.

        Args:
            payment_method: The method configured on the recurring order

        Returns:
            PaymentCheck with a reason when the method is unusable
        """
        pass

    async def validate(self, payment_method: PaymentMethod | None) -> bool:
        """Return True when the payment method is currently usable."""
        result = await self.check(payment_method)
        return result.is_valid
