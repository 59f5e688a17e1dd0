"""Stub validator - classifies by payment type without contacting any processor."""

from recurring_orders.schemas.recurring_order import PaymentMethod

from .base import BasePaymentValidator
from .models import NO_PAYMENT_METHOD, PaymentCheck, PaymentType


class StubPaymentValidator(BasePaymentValidator):
    """
    Four-way classification over ``payment_method.type``.

    wallet: valid. Balance sufficiency is the host's concern; due orders are
        expected to be pre-filtered for eligibility.
    card: valid. A real deployment checks with the payment processor.
    cash: always valid.
    missing or unrecognized type: invalid.
    """

    provider_name = "stub"

    async def check(self, payment_method: PaymentMethod | None) -> PaymentCheck:
        if payment_method is None or not payment_method.type:
            return PaymentCheck(is_valid=False, reason=NO_PAYMENT_METHOD)

        payment_type = payment_method.type
        try:
            kind = PaymentType(payment_type)
        except ValueError:
            return PaymentCheck(
                is_valid=False,
                payment_type=payment_type,
                reason=f"unsupported payment method: {payment_type!r}",
            )

        if kind == PaymentType.WALLET:
            return await self._check_wallet(payment_method)
        if kind == PaymentType.CARD:
            return await self._check_card(payment_method)
        return PaymentCheck(is_valid=True, payment_type=kind.value)

    async def _check_wallet(self, payment_method: PaymentMethod) -> PaymentCheck:
        return PaymentCheck(is_valid=True, payment_type=PaymentType.WALLET.value)

    async def _check_card(self, payment_method: PaymentMethod) -> PaymentCheck:
        return PaymentCheck(is_valid=True, payment_type=PaymentType.CARD.value)
