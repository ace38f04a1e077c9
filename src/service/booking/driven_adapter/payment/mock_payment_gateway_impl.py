"""Mock payment gateways (credit card, PayPal) that approve any well-formed request."""

from typing import Any, Mapping

import anyio
from uuid_utils.compat import uuid7

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway, PaymentResult


class MockPaymentGatewayImpl(IPaymentGateway):
    def __init__(
        self,
        *,
        provider: str,
        transaction_prefix: str,
        required_field: str,
        latency_seconds: float = 0.0,
    ) -> None:
        self.provider = provider
        self.transaction_prefix = transaction_prefix
        self.required_field = required_field
        self.latency_seconds = latency_seconds

    @Logger.io
    async def pay(
        self, *, amount: int, currency: str, details: Mapping[str, Any]
    ) -> PaymentResult:
        if not details.get(self.required_field):
            return PaymentResult(
                success=False,
                message=f'{self.provider} payment failed: {self.required_field} is required',
            )

        Logger.base.info(f'💳 [PAYMENT] {self.provider} charging {amount} {currency}')
        await anyio.sleep(self.latency_seconds)

        return PaymentResult(
            success=True,
            message=f'{self.provider} payment successful',
            transaction_id=f'{self.transaction_prefix}_{uuid7().hex}',
        )

    @Logger.io
    async def refund(self, *, transaction_id: str, amount: int) -> PaymentResult:
        Logger.base.info(
            f'💸 [PAYMENT] {self.provider} refunding {amount} from transaction {transaction_id}'
        )
        await anyio.sleep(self.latency_seconds)

        return PaymentResult(
            success=True,
            message=f'{self.provider} refund successful',
            transaction_id=transaction_id,
        )
